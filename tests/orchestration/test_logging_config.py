"""
Logging Configuration Tests.

Tests the shared namespace logger:
- Component loggers propagate to a single set of handlers
- Reconfiguration replaces handlers instead of stacking them
- Environment overrides
"""

import io
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from vuxsort_orchestrator.logging_config import (
    LOGGER_NAMESPACE,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    monkeypatch.delenv("VUXSORT_LOG_LEVEL", raising=False)
    monkeypatch.delenv("VUXSORT_LOG_FILE", raising=False)
    yield
    monkeypatch.delenv("VUXSORT_LOG_FILE", raising=False)
    configure_logging("INFO")


class TestNamespaceLogger:
    """Handler ownership."""

    def test_components_share_namespace_handlers(self):
        configure_logging("INFO")
        coordinator = get_logger("coordinator")
        engine = get_logger("engine")
        get_logger("coordinator")

        namespace = logging.getLogger(LOGGER_NAMESPACE)
        assert len(namespace.handlers) == 1
        assert coordinator.handlers == [] and engine.handlers == []
        assert coordinator.propagate and engine.propagate
        assert namespace.propagate is False

    def test_reconfigure_replaces_handlers(self):
        configure_logging("INFO")
        configure_logging("DEBUG")

        namespace = logging.getLogger(LOGGER_NAMESPACE)
        assert len(namespace.handlers) == 1
        assert namespace.level == logging.DEBUG

    def test_level_applies_to_every_component(self):
        stream = io.StringIO()
        configure_logging("WARNING", stream=stream)

        get_logger("analyzer").info("hidden")
        get_logger("quality").warning("shown")

        output = stream.getvalue()
        assert "hidden" not in output
        assert "[ WARNING] [vuxsort.orchestration.quality] shown" in output


class TestEnvironment:
    """VUXSORT_LOG_LEVEL and VUXSORT_LOG_FILE."""

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("VUXSORT_LOG_LEVEL", "error")

        namespace = configure_logging()

        assert namespace.level == logging.ERROR

    def test_file_from_environment(self, monkeypatch, tmp_path):
        log_file = tmp_path / "orchestration.log"
        monkeypatch.setenv("VUXSORT_LOG_FILE", str(log_file))

        configure_logging(stream=io.StringIO())
        get_logger("engine").info("written to file")
        monkeypatch.delenv("VUXSORT_LOG_FILE")
        configure_logging("INFO")

        assert "written to file" in log_file.read_text()
