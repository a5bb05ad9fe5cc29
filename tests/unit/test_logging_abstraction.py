"""Unit tests for the logging layer."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from light_panel.correlation import correlation_context
from light_panel.logging_abstraction import (
    HumanReadableFormatter,
    JSONFormatter,
    PanelLogger,
    get_logger,
    quiet_foreign_loggers,
    set_package_level,
)


def _record(msg: str = "status %s -> %s", args: tuple[object, ...] = ("Connecting", "Connected"), **extra):
    record = logging.LogRecord(
        name="light_panel.mqtt.coordinator",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args,
        exc_info=None,
    )
    if extra:
        record.extra_data = extra
    return record


class TestFormatters:
    def test_json_formatter_includes_correlation_and_context(self):
        with correlation_context("abc123"):
            line = JSONFormatter().format(_record(topic="lampu"))

        data = json.loads(line)
        assert data["message"] == "status Connecting -> Connected"
        assert data["level"] == "INFO"
        assert data["correlation_id"] == "abc123"
        assert data["context"] == {"topic": "lampu"}

    def test_human_formatter_appends_context(self):
        with correlation_context("0123456789abcdef"):
            line = HumanReadableFormatter().format(_record(topic="lampu", fixtures=4))

        assert "[01234567]" in line
        assert "status Connecting -> Connected" in line
        assert line.endswith("| topic=lampu | fixtures=4")

    def test_human_formatter_without_correlation(self):
        line = HumanReadableFormatter().format(_record())
        assert "[--------]" in line


class TestPanelLogger:
    """Tests for handler setup and structured logging."""

    def test_writes_json_and_human_files(self, tmp_path: Path):
        json_file = tmp_path / "logs" / "panel.jsonl"
        human_file = tmp_path / "logs" / "panel.log"
        logger = PanelLogger(
            "light_panel.test.files",
            log_format="both",
            json_file=json_file,
            human_output=str(human_file),
        )

        logger.warning("publish to %s failed", "lampu", extra={"attempt": 1})
        for handler in logger.handlers:
            handler.flush()

        entry = json.loads(json_file.read_text().splitlines()[-1])
        assert entry["message"] == "publish to lampu failed"
        assert entry["context"] == {"attempt": 1}
        assert "publish to lampu failed | attempt=1" in human_file.read_text()

    def test_handlers_are_not_duplicated(self):
        first = get_logger("light_panel.test.dupes")
        second = get_logger("light_panel.test.dupes")

        assert len(second.handlers) == len(first.handlers) == 1

    def test_set_level_updates_handlers(self):
        logger = get_logger("light_panel.test.level")

        logger.set_level(logging.DEBUG)

        assert logger.logger.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in logger.handlers)


class TestLevels:
    def test_set_package_level_only_touches_panel_loggers(self):
        panel = get_logger("light_panel.test.package")
        other = logging.getLogger("someone_else")
        other.setLevel(logging.WARNING)

        set_package_level(logging.DEBUG)

        assert panel.logger.level == logging.DEBUG
        assert other.level == logging.WARNING
        set_package_level(logging.INFO)

    def test_quiet_foreign_loggers(self):
        quiet_foreign_loggers(logging.ERROR)

        assert logging.getLogger("aiomqtt").level == logging.ERROR
        assert logging.getLogger("aiomqtt").propagate is False
