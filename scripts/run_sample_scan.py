#!/usr/bin/env python3
"""Sample scan harness for end-to-end validation.

Runs the jobscan pipeline against deterministic fixture postings instead of
the live job board APIs, writes the usual JSON output and prints a summary.
Every adapter in the configuration is served from the fixture file, keyed by
its identifier.

Usage:
    # Run with the bundled fixtures (no network required)
    python scripts/run_sample_scan.py --config config.example.yaml

    # Custom fixtures and output directory
    python scripts/run_sample_scan.py --config config.yaml \\
        --fixtures tests/fixtures/fixture_jobs.yaml --output-dir /tmp/jobscan

For live runs use the jobscan command instead.
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from jobscan.config.exceptions import ConfigurationError
from jobscan.config.loader import load_config
from jobscan.logging.config import configure_logging
from jobscan.main import build_catalog, build_extraction_options, check_filter_conflicts
from jobscan.normalization import JobNormalizer
from jobscan.pipeline import JobConsolidator, JsonFileSink, ScrapingPipeline, StatisticsAggregator
from jobscan.tags import TagClassifier, TagExtractor
from tests.helpers.fixture_adapter import FixtureAdapter


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_summary_table(result):
    """Print a formatted summary table of pipeline results."""
    print_header("Pipeline Execution Summary")

    metrics = [
        ("Total Jobs Fetched", result.total_fetched),
        ("Total Jobs Normalized", result.total_normalized),
        ("Duplicates Removed", result.duplicates_removed),
        ("Jobs Written", result.total_jobs),
        ("Unique Companies", result.stats.unique_companies),
        ("Unique Tags", result.stats.unique_tags),
        ("Adapter Errors", len(result.errors)),
        ("Duration (seconds)", f"{result.total_duration_seconds:.2f}"),
    ]

    max_label_width = max(len(label) for label, _ in metrics)

    print("┌" + "─" * (max_label_width + 2) + "┬" + "─" * 22 + "┐")
    print(f"│ {'Metric':<{max_label_width}} │ {'Value':<20} │")
    print("├" + "─" * (max_label_width + 2) + "┼" + "─" * 22 + "┤")

    for label, value in metrics:
        print(f"│ {label:<{max_label_width}} │ {str(value):<20} │")

    print("└" + "─" * (max_label_width + 2) + "┴" + "─" * 22 + "┘")

    if result.adapter_stats:
        print("\n" + "-" * 80)
        print(" Per-Adapter Breakdown")
        print("-" * 80 + "\n")

        for stats in result.adapter_stats:
            print(f"Adapter: {stats.adapter_name}")
            print(f"  Fetched: {stats.fetched_count}")
            print(f"  Normalized: {stats.normalized_count}")
            print(f"  Kept: {stats.kept_count}")
            if stats.error_types:
                print(f"  Error Types: {stats.error_types}")
            if stats.error_message:
                print(f"  Error Message: {stats.error_message}")
            print()

    if result.stats.top_tags:
        print(" Top Tags")
        for tag, count in result.stats.top_tags:
            print(f"  {tag:<30} {count}")


def main():
    """Main entry point for sample scan harness."""
    parser = argparse.ArgumentParser(
        description="Run a sample scan against fixture postings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.example.yaml"),
        help="Path to configuration file (default: config.example.yaml)",
    )
    parser.add_argument(
        "--fixtures",
        type=Path,
        default=Path("tests/fixtures/fixture_jobs.yaml"),
        help="Path to fixtures YAML file (default: tests/fixtures/fixture_jobs.yaml)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output/sample"),
        help="Output directory (default: output/sample)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    load_dotenv()

    print_header("jobscan - Sample Scan Harness")

    print(f"Configuration file: {args.config}")
    print(f"Fixtures: {args.fixtures}")
    print(f"Output directory: {args.output_dir}")

    if not args.fixtures.exists():
        print(f"\n❌ Error: Fixture file not found: {args.fixtures}")
        return 1

    try:
        app_config, _ = load_config(args.config)
    except ConfigurationError as e:
        print(f"\n❌ {e}")
        return 1

    configure_logging(
        level=args.log_level,
        format_type=app_config.logging.format,
        environment="validation",
    )

    print(f"✓ Loaded {len(app_config.adapters)} adapters")
    print(f"✓ {len(app_config.get_enabled_adapters())} adapters enabled")

    catalog = build_catalog(app_config.tag_extraction)
    classifier = TagClassifier(catalog)
    try:
        check_filter_conflicts(app_config, classifier)
    except ConfigurationError as e:
        print(f"\n❌ {e}")
        return 1

    settings = app_config.pipeline
    pipeline = ScrapingPipeline(
        config=settings,
        normalizer=JobNormalizer(
            TagExtractor(catalog, build_extraction_options(app_config.tag_extraction)), classifier
        ),
        consolidator=JobConsolidator(),
        aggregator=StatisticsAggregator(classifier, top_n=settings.top_tags),
        sink=JsonFileSink(args.output_dir, settings.consolidated_file, settings.stats_file),
    )

    adapter = FixtureAdapter(
        args.fixtures,
        timeout=app_config.advanced.http_request_timeout,
        user_agent=app_config.advanced.user_agent,
        max_jobs=app_config.advanced.max_jobs_per_source,
    )
    for registration in app_config.adapters:
        pipeline.register_adapter(registration.name, adapter, registration)

    print("\n🚀 Running pipeline...")
    try:
        result = pipeline.run(app_config.global_filters)
    finally:
        pipeline.close()

    print_summary_table(result)
    print(f"\n✓ Output written to {args.output_dir}")

    return 1 if result.had_errors else 0


if __name__ == "__main__":
    sys.exit(main())
