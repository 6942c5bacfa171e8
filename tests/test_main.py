"""Unit tests for the main entry point.

Tests the main() function including:
- CLI argument parsing
- Configuration loading with priority (CLI > env > config)
- Catalog wiring from tag_extraction settings
- The --extract command
- A full run against fixture adapters
- Exit code handling
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from jobscan.adapters import AdapterConfigurationError, AdapterHTTPError
from jobscan.config import TagExtractionConfig
from jobscan.main import build_catalog, build_extraction_options, load_runtime_config, main, parse_args
from tests.helpers.fixture_adapter import FixtureAdapter

FIXTURE_JOBS = Path(__file__).parent / "fixtures" / "fixture_jobs.yaml"

CONFIG_TEMPLATE = """
pipeline:
  output_dir: "{output_dir}"
adapters:
  - name: "fintual"
    type: "lever"
    identifier: "fintual"
    company: "Fintual"
  - name: "betterfly"
    type: "lever"
    identifier: "betterfly"
    company: "Betterfly"
logging:
  level: "WARNING"
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "OUTPUT_DIR", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_TEMPLATE.format(output_dir=tmp_path / "from-config"), encoding="utf-8")
    return path


@pytest.fixture
def fixture_adapters():
    """Route every registration to the YAML fixture adapter."""
    adapter = FixtureAdapter(FIXTURE_JOBS)
    with patch("jobscan.main.get_adapter", return_value=adapter):
        yield adapter


@pytest.fixture
def no_logging_setup():
    with patch("jobscan.main.configure_logging") as mock_configure:
        yield mock_configure


# ============================================================================
# Argument parsing
# ============================================================================


class TestParseArgs:
    def test_defaults(self):
        args = parse_args([])

        assert args.config is None
        assert args.log_level is None
        assert args.output_dir is None
        assert args.parallel is False
        assert args.extract is None

    def test_all_options(self):
        args = parse_args(
            ["--config", "conf.yaml", "--log-level", "DEBUG", "--output-dir", "out", "--parallel"]
        )

        assert args.config == Path("conf.yaml")
        assert args.log_level == "DEBUG"
        assert args.output_dir == Path("out")
        assert args.parallel is True

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            parse_args(["--log-level", "VERBOSE"])


# ============================================================================
# Runtime configuration
# ============================================================================


class TestLoadRuntimeConfig:
    def test_config_file_level_used_by_default(self, config_file):
        _, env_config = load_runtime_config(config_file, None)

        assert env_config.log_level == "WARNING"

    def test_environment_overrides_config(self, config_file, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")

        _, env_config = load_runtime_config(config_file, None)

        assert env_config.log_level == "ERROR"

    def test_cli_overrides_everything(self, config_file, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        _, env_config = load_runtime_config(config_file, "DEBUG")

        assert env_config.log_level == "DEBUG"


# ============================================================================
# Catalog wiring
# ============================================================================


class TestBuildCatalog:
    def test_default_catalog(self, catalog):
        assert build_catalog(TagExtractionConfig()) is catalog

    def test_custom_tags_and_variations(self):
        tag_config = TagExtractionConfig(
            custom_tags=["Nearshore"], local_variations={"product manager": ["pm"]}
        )

        catalog = build_catalog(tag_config)

        assert "nearshore" in catalog.entries
        assert catalog.resolve("pm") == "product manager"

    def test_extraction_options(self):
        options = build_extraction_options(TagExtractionConfig(max_tags=5, normalize=False))

        assert options.max_tags == 5
        assert options.normalize is False
        assert options.include_variations is True


# ============================================================================
# --extract
# ============================================================================


class TestExtractCommand:
    def test_prints_tags_as_json(self, capsys):
        exit_code = main(["--extract", "Python, Django y Kubernetes"])

        assert exit_code == 0
        data = json.loads(capsys.readouterr().out)
        assert {"python", "django", "kubernetes"} <= set(data["tags"])
        assert "python" in data["categorizedTags"]["languages"]
        assert "kubernetes" in data["categorizedTags"]["cloud"]
        assert "databases" not in data["categorizedTags"]

    def test_uses_config_extensions(self, tmp_path, capsys):
        path = tmp_path / "config.yaml"
        path.write_text('tag_extraction:\n  custom_tags: ["Nearshore"]\n', encoding="utf-8")

        exit_code = main(["--config", str(path), "--extract", "Equipo nearshore, Python"])

        assert exit_code == 0
        data = json.loads(capsys.readouterr().out)
        assert "nearshore" in data["tags"]
        assert "nearshore" in data["categorizedTags"]["other"]

    def test_without_config_custom_tags_unknown(self, capsys):
        main(["--extract", "Equipo nearshore, Python"])

        data = json.loads(capsys.readouterr().out)
        assert "nearshore" not in data["tags"]


# ============================================================================
# Full runs
# ============================================================================


class TestMainRun:
    def test_successful_run_writes_output(self, config_file, tmp_path, fixture_adapters, no_logging_setup):
        output_dir = tmp_path / "out"

        exit_code = main(["--config", str(config_file), "--output-dir", str(output_dir)])

        assert exit_code == 0
        assert fixture_adapters.calls == ["fintual", "betterfly"]

        jobs = json.loads((output_dir / "all_jobs.json").read_text(encoding="utf-8"))
        assert [job["id"] for job in jobs] == ["fin-1", "fin-2", "bf-2"]
        assert jobs[0]["metadata"]["scraper"] == "fintual"
        assert "python" in jobs[0]["tags"]
        assert jobs[2]["company"] == "Betterfly"

        stats = json.loads((output_dir / "pipeline_stats.json").read_text(encoding="utf-8"))
        assert stats["jobs"]["total"] == 3
        assert stats["adapters"] == {"total": 2, "executed": 2, "errors": 0}

    def test_output_dir_from_config(self, config_file, tmp_path, fixture_adapters, no_logging_setup):
        assert main(["--config", str(config_file)]) == 0

        assert (tmp_path / "from-config" / "all_jobs.json").exists()

    def test_output_dir_from_environment(
        self, config_file, tmp_path, monkeypatch, fixture_adapters, no_logging_setup
    ):
        monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "from-env"))

        assert main(["--config", str(config_file)]) == 0

        assert (tmp_path / "from-env" / "all_jobs.json").exists()

    def test_logging_configured_from_config(self, config_file, tmp_path, fixture_adapters, no_logging_setup):
        main(["--config", str(config_file), "--output-dir", str(tmp_path / "out")])

        no_logging_setup.assert_called_once_with(
            level="WARNING", format_type="key-value", environment="local"
        )

    def test_adapter_failure_exit_code(self, config_file, tmp_path, fixture_adapters, no_logging_setup):
        error = AdapterHTTPError("HTTP 500", status_code=500, url="https://api.lever.co")

        with patch.object(fixture_adapters, "fetch_jobs", side_effect=error):
            exit_code = main(["--config", str(config_file), "--output-dir", str(tmp_path / "out")])

        assert exit_code == 1
        stats = json.loads((tmp_path / "out" / "pipeline_stats.json").read_text(encoding="utf-8"))
        assert stats["adapters"]["errors"] == 2

    def test_adapters_closed_after_run(self, config_file, tmp_path, fixture_adapters, no_logging_setup):
        with patch.object(fixture_adapters, "close") as mock_close:
            main(["--config", str(config_file), "--output-dir", str(tmp_path / "out")])

        mock_close.assert_called_once_with()

    def test_adapters_closed_when_output_fails(self, config_file, tmp_path, fixture_adapters, no_logging_setup):
        with patch.object(fixture_adapters, "close") as mock_close, patch(
            "jobscan.pipeline.sinks.JsonFileSink.write_jobs", side_effect=PermissionError("read-only")
        ):
            exit_code = main(["--config", str(config_file), "--output-dir", str(tmp_path / "out")])

        assert exit_code == 1
        mock_close.assert_called_once_with()


# ============================================================================
# Error handling
# ============================================================================


class TestMainErrors:
    def test_missing_config_file(self, tmp_path, capsys):
        exit_code = main(["--config", str(tmp_path / "missing.yaml")])

        assert exit_code == 1
        assert "Configuration Error" in capsys.readouterr().err

    def test_invalid_config(self, tmp_path, capsys, no_logging_setup):
        path = tmp_path / "config.yaml"
        path.write_text('adapters:\n  - name: "x"\n    type: "workday"\n    identifier: "x"\n', encoding="utf-8")

        assert main(["--config", str(path)]) == 1

    def test_adapter_setup_failure(self, config_file, capsys, no_logging_setup):
        with patch("jobscan.main.get_adapter", side_effect=AdapterConfigurationError("bad timeout")):
            exit_code = main(["--config", str(config_file)])

        assert exit_code == 1
        assert "Adapter setup failed" in capsys.readouterr().err

    def test_alias_filter_conflict(self, tmp_path, capsys, no_logging_setup):
        path = tmp_path / "config.yaml"
        path.write_text(
            CONFIG_TEMPLATE.format(output_dir=tmp_path / "out")
            + "global_filters:\n  requiredTags: [js]\n  excludeTags: [javascript]\n",
            encoding="utf-8",
        )

        with patch("jobscan.main.get_adapter") as mock_get_adapter:
            exit_code = main(["--config", str(path)])

        assert exit_code == 1
        err = capsys.readouterr().err
        assert "both required and excluded" in err
        assert "global_filters: javascript" in err
        mock_get_adapter.assert_not_called()

    def test_adapter_alias_filter_conflict(self, tmp_path, capsys, no_logging_setup):
        path = tmp_path / "config.yaml"
        text = CONFIG_TEMPLATE.format(output_dir=tmp_path / "out").replace(
            '    company: "Betterfly"\n',
            '    company: "Betterfly"\n    filters:\n      requiredTags: [kubernetes]\n',
        )
        path.write_text(text + "global_filters:\n  excludeTags: [k8s]\n", encoding="utf-8")

        exit_code = main(["--config", str(path)])

        assert exit_code == 1
        assert "adapters -> betterfly -> filters: kubernetes" in capsys.readouterr().err

    def test_keyboard_interrupt(self, config_file, no_logging_setup):
        with patch("jobscan.main.load_runtime_config", side_effect=KeyboardInterrupt):
            assert main(["--config", str(config_file)]) == 130
