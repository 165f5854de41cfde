"""Tests for configuration loading and validation."""

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from limitscope.core.config import load_config
from limitscope.core.schemas import AccountingConfig
from limitscope.utils.logging import JsonFormatter, get_logger, setup_logging


class TestAccountingConfig:
    """Tests for AccountingConfig defaults and validation."""

    def test_defaults(self) -> None:
        """Test the default configuration targets the real system."""
        config = AccountingConfig()

        assert config.cgroup_root == Path("/sys/fs/cgroup")
        assert config.proc_root == Path("/proc")
        assert config.min_cpu_interval_ms == 100
        assert config.default_cpu_interval_ms == 1000
        assert config.cpu_pressure_threshold == 80.0

    def test_default_interval_raised_to_minimum(self) -> None:
        """Test a default interval below the minimum is raised."""
        config = AccountingConfig(min_cpu_interval_ms=500, default_cpu_interval_ms=200)
        assert config.default_cpu_interval_ms == 500

    def test_unknown_keys_rejected(self) -> None:
        """Test typos in config keys fail loudly."""
        with pytest.raises(ValidationError):
            AccountingConfig(cgroup_rot="/tmp")

    def test_threshold_bounds(self) -> None:
        """Test non-positive thresholds are rejected."""
        with pytest.raises(ValidationError):
            AccountingConfig(cpu_pressure_threshold=0)


class TestLoadConfig:
    """Tests for load_config."""

    def test_yaml(self, tmp_path) -> None:
        """Test loading a YAML config."""
        path = tmp_path / "limits.yaml"
        path.write_text("cgroup_root: /tmp/cg\nmemory_pressure_threshold: 90\n")

        config = load_config(path)

        assert config.cgroup_root == Path("/tmp/cg")
        assert config.memory_pressure_threshold == 90.0

    def test_json(self, tmp_path) -> None:
        """Test loading a JSON config."""
        path = tmp_path / "limits.json"
        path.write_text(json.dumps({"min_cpu_interval_ms": 250}))

        config = load_config(path)

        assert config.min_cpu_interval_ms == 250
        assert config.default_cpu_interval_ms == 1000

    def test_empty_yaml_is_defaults(self, tmp_path) -> None:
        """Test an empty YAML document yields defaults."""
        path = tmp_path / "empty.yml"
        path.write_text("")

        assert load_config(path) == AccountingConfig()

    def test_missing_file(self, tmp_path) -> None:
        """Test a missing config raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_unsupported_suffix(self, tmp_path) -> None:
        """Test unknown config formats are rejected."""
        path = tmp_path / "limits.toml"
        path.write_text("x = 1\n")

        with pytest.raises(ValueError, match="Unsupported config format"):
            load_config(path)

    def test_invalid_values(self, tmp_path) -> None:
        """Test schema violations surface as ValidationError."""
        path = tmp_path / "bad.yaml"
        path.write_text("min_cpu_interval_ms: 1\n")

        with pytest.raises(ValidationError):
            load_config(path)


class TestLogging:
    """Tests for logging setup."""

    def test_json_formatter(self) -> None:
        """Test records serialize to one JSON object."""
        record = logging.LogRecord(
            "limitscope.test", logging.WARNING, __file__, 1, "hi %s", ("there",), None
        )

        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "WARNING"
        assert payload["logger"] == "limitscope.test"
        assert payload["message"] == "hi there"

    def test_setup_logging_with_file(self, tmp_path) -> None:
        """Test a log file receives records from package loggers."""
        log_file = tmp_path / "logs" / "limitscope.log"
        package_logger = setup_logging(level="debug", log_file=log_file, rich_console=False)

        try:
            get_logger("limitscope.cgroups.parser").debug("written")
            for handler in package_logger.handlers:
                handler.flush()

            assert package_logger.name == "limitscope"
            assert package_logger.level == logging.DEBUG
            assert "written" in log_file.read_text()
        finally:
            for handler in list(package_logger.handlers):
                package_logger.removeHandler(handler)
                handler.close()
            package_logger.propagate = True
            package_logger.setLevel(logging.NOTSET)

    def test_setup_logging_replaces_handlers(self) -> None:
        """Test repeated setup does not stack handlers."""
        package_logger = setup_logging(json_format=True)
        try:
            setup_logging(json_format=True)
            assert len(package_logger.handlers) == 1
            assert isinstance(package_logger.handlers[0].formatter, JsonFormatter)
        finally:
            for handler in list(package_logger.handlers):
                package_logger.removeHandler(handler)
                handler.close()
            package_logger.propagate = True
            package_logger.setLevel(logging.NOTSET)
