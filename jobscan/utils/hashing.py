"""Deterministic keys derived from job fields.

- job signature: dedup key for one pipeline run (title + company + location)
- job id: fallback identifier when an adapter does not supply one
"""

import hashlib
import re
from typing import Optional

_SIGNATURE_DISALLOWED = re.compile(r"[^a-z0-9-]")


def compute_job_signature(title: Optional[str], company: Optional[str], location: Optional[str]) -> str:
    """Compute the dedup signature for a job.

    Each part is lowercased and trimmed, the parts are joined with '-', and
    every character outside [a-z0-9-] is removed. Empty parts still yield a
    deterministic (degenerate) signature.

    Example:
        >>> compute_job_signature("Backend Engineer", "Acme", "Santiago, Chile")
        'backendengineer-acme-santiagochile'
    """
    parts = [(part or "").lower().strip() for part in (title, company, location)]
    return _SIGNATURE_DISALLOWED.sub("", "-".join(parts))


def compute_job_id(title: Optional[str], company: Optional[str], location: Optional[str]) -> str:
    """Derive a stable 16-character job id from title, company and location."""
    source = f"{title or ''}-{company or ''}-{location or ''}"
    return hashlib.sha256(source.encode("utf-8")).hexdigest()[:16]
