"""Command-line entry point for the jobscan pipeline."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from jobscan.adapters import AdapterError, get_adapter
from jobscan.config.environment import EnvironmentConfig
from jobscan.config.exceptions import ConfigurationError
from jobscan.config.loader import load_config
from jobscan.config.models import AppConfig, TagExtractionConfig
from jobscan.logging import get_logger
from jobscan.logging.config import configure_logging
from jobscan.normalization import JobNormalizer
from jobscan.pipeline import (
    JobConsolidator,
    JsonFileSink,
    ScrapingPipeline,
    StatisticsAggregator,
    find_tag_conflicts,
)
from jobscan.tags import (
    ExtractionOptions,
    KeywordCatalog,
    TagClassifier,
    TagExtractor,
    default_catalog,
    load_catalog,
)

logger = get_logger(__name__, component="cli")


def build_catalog(tag_config: TagExtractionConfig) -> KeywordCatalog:
    """Packaged (or configured) catalog plus custom tags and local variations.

    Raises:
        CatalogError: If the catalog file or the extensions are inconsistent
    """
    catalog = load_catalog(tag_config.catalog_path) if tag_config.catalog_path else default_catalog()
    if tag_config.custom_tags or tag_config.local_variations:
        catalog = catalog.extended(tag_config.custom_tags, tag_config.local_variations)
    return catalog


def build_extraction_options(tag_config: TagExtractionConfig) -> ExtractionOptions:
    return ExtractionOptions(
        min_word_length=tag_config.min_word_length,
        case_sensitive=tag_config.case_sensitive,
        include_variations=tag_config.include_variations,
        max_tags=tag_config.max_tags,
        normalize=tag_config.normalize,
    )


def check_filter_conflicts(app_config: AppConfig, classifier: TagClassifier) -> None:
    """
    Reject filters whose required and excluded tags overlap after alias resolution.

    Covers the global filters and every adapter's effective filters.

    Raises:
        ConfigurationError: If any filter set can never match a job
    """
    errors = []

    conflicts = find_tag_conflicts(app_config.global_filters, classifier)
    if conflicts:
        errors.append(f"global_filters: {', '.join(conflicts)}")

    for registration in app_config.adapters:
        if not {"required_tags", "exclude_tags"} & registration.filters.model_fields_set:
            continue
        merged = app_config.global_filters.merged_with(registration.filters)
        conflicts = find_tag_conflicts(merged, classifier)
        if conflicts:
            errors.append(f"adapters -> {registration.name} -> filters: {', '.join(conflicts)}")

    if errors:
        raise ConfigurationError(
            "Tags cannot be both required and excluded",
            errors=errors,
            suggestions=[
                "Aliases count as the same tag (js and javascript)",
                "Remove the tag from either requiredTags or excludeTags",
            ],
        )


def build_pipeline(app_config: AppConfig, output_dir: Path) -> ScrapingPipeline:
    """Wire catalog, normalizer, consolidator, aggregator, sink and adapters."""
    catalog = build_catalog(app_config.tag_extraction)
    extractor = TagExtractor(catalog, build_extraction_options(app_config.tag_extraction))
    classifier = TagClassifier(catalog)
    check_filter_conflicts(app_config, classifier)

    settings = app_config.pipeline
    pipeline = ScrapingPipeline(
        config=settings,
        normalizer=JobNormalizer(extractor, classifier),
        consolidator=JobConsolidator(),
        aggregator=StatisticsAggregator(classifier, top_n=settings.top_tags),
        sink=JsonFileSink(output_dir, settings.consolidated_file, settings.stats_file),
    )

    for registration in app_config.adapters:
        adapter = get_adapter(registration, app_config.advanced)
        pipeline.register_adapter(registration.name, adapter, registration)

    return pipeline


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def extract_command(text: str, config_path: Optional[Path]) -> int:
    """Print the tags found in ``text`` as JSON."""
    tag_config = TagExtractionConfig()
    if config_path is not None:
        app_config, _ = load_config(config_path)
        tag_config = app_config.tag_extraction

    catalog = build_catalog(tag_config)
    extractor = TagExtractor(catalog, build_extraction_options(tag_config))
    classifier = TagClassifier(catalog)

    tags = extractor.extract_tags(text)
    categorized = {k: v for k, v in classifier.categorize_tags(tags).items() if v}

    print(json.dumps({"tags": tags, "categorizedTags": categorized}, ensure_ascii=False, indent=2))
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="jobscan",
        description="Collect job postings, tag them with skills and write consolidated JSON",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory (overrides OUTPUT_DIR and config)",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run adapters concurrently (bounded by pipeline.max_concurrent)",
    )
    parser.add_argument(
        "--extract",
        metavar="TEXT",
        default=None,
        help="Print the tags extracted from TEXT and exit",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the pipeline once.

    Returns:
        Exit code: 0 on success, 1 on configuration errors or adapter failures
    """
    start_time = time.time()
    args = parse_args(argv)

    try:
        if args.extract is not None:
            return extract_command(args.extract, args.config)

        # Step 1: Configuration
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        # Step 2: Logging
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        if args.parallel:
            app_config.pipeline.parallel = True
        output_dir = args.output_dir or env_config.output_dir or app_config.pipeline.output_dir

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "adapter_count": len(app_config.adapters),
                "enabled_adapter_count": len(app_config.get_enabled_adapters()),
                "output_dir": str(output_dir),
                "parallel": app_config.pipeline.parallel,
            },
        )

        # Step 3: Build and run
        pipeline = build_pipeline(app_config, output_dir)
        try:
            result = pipeline.run(app_config.global_filters)
        finally:
            pipeline.close()

        logger.info(
            f"Run completed: {result.total_jobs} jobs, "
            f"{result.stats.unique_companies} companies, {result.stats.unique_tags} tags",
            extra={
                "event": "service.run.completed",
                "duration_seconds": round(time.time() - start_time, 2),
                "had_errors": result.had_errors,
            },
        )

        return 1 if result.had_errors else 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            "Configuration error",
            extra={"event": "config.error", "error_type": type(e).__name__},
        )
        return 1
    except AdapterError as e:
        print(f"Adapter setup failed: {e}", file=sys.stderr)
        logger.error(
            "Adapter setup failed",
            extra={"event": "adapter.setup.failed", "error_type": type(e).__name__},
        )
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except OSError as e:
        print(f"I/O error: {e}", file=sys.stderr)
        logger.critical(
            "Failed to write pipeline output",
            extra={"event": "service.output.failed", "error": str(e)},
            exc_info=True,
        )
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
