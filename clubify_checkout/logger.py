"""Loguru-backed structured logger.

Every SDK record is bound with ``sdk="clubify_checkout"`` and a component
name, so the SDK sink only picks up its own records and host applications
can filter them out of their own loguru sinks.
"""

import sys

import typing as t
from loguru import logger as _loguru

from .config import LoggerSettings

SDK_NAME = "clubify_checkout"


@t.runtime_checkable
class LoggerProtocol(t.Protocol):
    def debug(self, msg: str, **context: t.Any) -> None: ...

    def info(self, msg: str, **context: t.Any) -> None: ...

    def warning(self, msg: str, **context: t.Any) -> None: ...

    def error(self, msg: str, **context: t.Any) -> None: ...


def _format_context(context: dict[str, t.Any]) -> str:
    if not context:
        return ""
    return " ".join(f"{k}={v!r}" for k, v in context.items())


def _is_testing_mode() -> bool:
    return "pytest" in sys.modules


class Logger:
    """Structured logger: ``logger.info("message", key=value, ...)``."""

    _sink_id: t.ClassVar[int | None] = None

    def __init__(
        self,
        component: str = "sdk",
        settings: LoggerSettings | None = None,
        **bound: t.Any,
    ) -> None:
        self.component = component
        self.settings = settings or LoggerSettings()
        self._bound = bound
        self._logger = _loguru.bind(sdk=SDK_NAME, component=component, context="")

    def init(self) -> None:
        """Install the SDK stderr sink once per process."""
        if Logger._sink_id is not None or not self.settings.enabled:
            return
        if _is_testing_mode():
            return
        Logger._sink_id = _loguru.add(
            sys.stderr,
            level=self.settings.level.upper(),
            format=self.settings.format,
            serialize=self.settings.serialize,
            colorize=self.settings.colorize,
            filter=lambda record: record["extra"].get("sdk") == SDK_NAME,
        )

    @classmethod
    def remove_sink(cls) -> None:
        if cls._sink_id is not None:
            _loguru.remove(cls._sink_id)
            cls._sink_id = None

    def bind(self, **context: t.Any) -> "Logger":
        return Logger(self.component, self.settings, **self._bound | context)

    def child(self, component: str) -> "Logger":
        return Logger(component, self.settings, **self._bound)

    def _log(self, level: str, msg: str, context: dict[str, t.Any]) -> None:
        merged = self._bound | context
        extra = merged | {"context": _format_context(merged)}
        self._logger.bind(**extra).opt(depth=2).log(level, msg)

    def debug(self, msg: str, **context: t.Any) -> None:
        self._log("DEBUG", msg, context)

    def info(self, msg: str, **context: t.Any) -> None:
        self._log("INFO", msg, context)

    def warning(self, msg: str, **context: t.Any) -> None:
        self._log("WARNING", msg, context)

    def error(self, msg: str, **context: t.Any) -> None:
        self._log("ERROR", msg, context)
