"""Logging layer for the light panel.

Human-readable console output plus an optional JSON-lines file, both tagged
with the correlation ID of the intent being handled.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast

from typing_extensions import override

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "PanelLogger",
    "get_logger",
    "quiet_foreign_loggers",
    "set_package_level",
]


def _extra_context(record: logging.LogRecord) -> Mapping[str, object] | None:
    extra_data = getattr(record, "extra_data", None)
    if isinstance(extra_data, Mapping) and extra_data:
        return cast("Mapping[str, object]", extra_data)
    return None


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        from light_panel.correlation import get_correlation_id

        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }
        context = _extra_context(record)
        if context:
            log_data["context"] = dict(context)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """timestamp level [module:line] [corr_id] > message | key=value ..."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        from light_panel.correlation import get_correlation_id

        correlation_id = get_correlation_id()
        record.correlation_id = f"[{correlation_id[:8]}]" if correlation_id else "[--------]"
        formatted = super().format(record)

        context = _extra_context(record)
        if context:
            context_str = " | ".join(f"{k}={v}" for k, v in context.items())
            formatted = f"{formatted} | {context_str}"
        return formatted


class PanelLogger:
    """Thin wrapper over a stdlib logger that accepts structured `extra` context."""

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stdout",
    ) -> None:
        """Initialize PanelLogger.

        Args:
            name: Logger name (typically module name)
            log_format: "json", "human", or "both"
            json_file: Path for JSON output (None disables the file handler)
            human_output: "stdout", "stderr", or a file path

        """
        from light_panel.const import PANEL_DEBUG

        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)
        self.log_format: str = log_format
        self.logger.setLevel(logging.DEBUG if PANEL_DEBUG else logging.INFO)

        # handlers survive re-imports; don't stack duplicates
        if not self.logger.handlers:
            self._configure_handlers(json_file, human_output)

    def _configure_handlers(self, json_file: str | Path | None, human_output: str | None) -> None:
        handler_level = self.logger.level

        if self.log_format in ("json", "both") and json_file:
            try:
                json_path = Path(json_file)
                json_path.parent.mkdir(parents=True, exist_ok=True)
                json_handler = logging.FileHandler(json_path, mode="a")
            except OSError as e:
                print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)
            else:
                json_handler.setFormatter(JSONFormatter())
                json_handler.setLevel(handler_level)
                self.logger.addHandler(json_handler)

        if self.log_format in ("human", "both"):
            output = human_output or "stdout"
            human_handler: logging.Handler
            if output == "stdout":
                human_handler = logging.StreamHandler(sys.stdout)
            elif output == "stderr":
                human_handler = logging.StreamHandler(sys.stderr)
            else:
                try:
                    human_path = Path(output)
                    human_path.parent.mkdir(parents=True, exist_ok=True)
                    human_handler = logging.FileHandler(human_path, mode="a")
                except OSError as e:
                    print(f"Warning: Failed to create human log file {output}: {e}", file=sys.stderr)
                    human_handler = logging.StreamHandler(sys.stdout)
            human_handler.setFormatter(HumanReadableFormatter())
            human_handler.setLevel(handler_level)
            self.logger.addHandler(human_handler)

    def _log(self, level: int, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        extra_payload = {"extra_data": dict(extra)} if extra else None
        self.logger.log(level, msg, *args, extra=extra_payload)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.ERROR, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log at ERROR with the active traceback attached."""
        log_extra = {"extra_data": dict(extra)} if extra else None
        self.logger.exception(msg, *args, extra=log_extra)

    def set_level(self, level: int) -> None:
        """Set the level on the logger and all of its handlers."""
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return self.logger.handlers


def quiet_foreign_loggers(level: int = logging.WARNING) -> None:
    """Cap the MQTT library loggers so connection chatter stays out of panel output."""
    from light_panel.const import FOREIGN_LOGGERS

    for name in FOREIGN_LOGGERS:
        foreign = logging.getLogger(name)
        foreign.setLevel(level)
        foreign.propagate = False


def set_package_level(level: int) -> None:
    """Apply a level to every light_panel logger created so far (CLI -D)."""
    from light_panel.const import PANEL_LOG_NAME

    for name, candidate in list(logging.Logger.manager.loggerDict.items()):
        if name.startswith(PANEL_LOG_NAME) and isinstance(candidate, logging.Logger):
            candidate.setLevel(level)
            for handler in candidate.handlers:
                handler.setLevel(level)


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> PanelLogger:
    """Get or create a PanelLogger, defaulting to the PANEL_LOG_* settings."""
    from light_panel.const import (
        PANEL_LOG_FORMAT,
        PANEL_LOG_HUMAN_OUTPUT,
        PANEL_LOG_JSON_FILE,
    )

    return PanelLogger(
        name=name,
        log_format=log_format or PANEL_LOG_FORMAT,
        json_file=json_file or PANEL_LOG_JSON_FILE,
        human_output=human_output or PANEL_LOG_HUMAN_OUTPUT,
    )
