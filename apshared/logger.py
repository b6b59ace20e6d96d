"""
wifiap Structured Logger
=========================

Every component logs through a :class:`ToolLogger` bound to a child of
the ``wifiap`` logger.  :func:`configure_logging` decides once per
process where those records go:

- a Rich handler on stderr with colour-coded levels, and
- optionally a rotating log file, as plain text or JSON lines.

Keyword arguments that :mod:`logging` does not know are collected into
the record as structured fields::

    log = ToolLogger("selectors.channel")
    with log.operation("create"):
        log.info("Selected channel %d", 11, band="2.4GHz")

References:
    - Python logging HOWTO. https://docs.python.org/3/howto/logging.html
    - Rich library. https://github.com/Textualize/rich
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator, MutableMapping

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER_NAME = "wifiap"

_LEVEL_STYLES = Theme(
    {
        "logging.level.debug": "dim cyan",
        "logging.level.info": "bright_blue",
        "logging.level.warning": "bold yellow",
        "logging.level.error": "bold red",
        "logging.level.critical": "bold white on red",
    }
)

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# Keywords passed straight through to logging.Logger._log
_LOGGING_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


class _JSONLineFormatter(logging.Formatter):
    """One JSON object per record.

    Keys: ``timestamp``, ``level``, ``logger``, ``message`` and, when set,
    ``component``, ``operation``, ``extra`` (structured fields) and
    ``exc_info``.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, getattr(record, key))
            for key in ("component", "operation")
            if getattr(record, key, None) is not None
        )
        fields = getattr(record, "tool_extra", None)
        if fields:
            payload["extra"] = fields
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _stderr_handler(level: int) -> logging.Handler:
    return RichHandler(
        level=level,
        console=Console(stderr=True, theme=_LEVEL_STYLES),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )


def _file_handler(
    path: Path, level: int, json_lines: bool, max_bytes: int, backup_count: int
) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(
        _JSONLineFormatter() if json_lines else logging.Formatter(_TEXT_FORMAT)
    )
    return handler


def configure_logging(
    *,
    level: str = "WARNING",
    log_file: str | Path | None = None,
    json_logs: bool = False,
    console: bool = True,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """(Re)attach the handlers of the ``wifiap`` logger.

    Calling it again replaces the previous handlers.

    Args:
        level:        Minimum severity name; unknown names mean WARNING.
        log_file:     Rotating log file; ``None`` logs to stderr only.
        json_logs:    Write JSON lines to the file instead of text.
        console:      Attach the Rich stderr handler.
        max_bytes:    Size at which the file rotates.
        backup_count: Rotated files kept.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.WARNING

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(numeric)
    root.propagate = False
    while root.handlers:
        old = root.handlers[0]
        root.removeHandler(old)
        old.close()

    if console:
        root.addHandler(_stderr_handler(numeric))
    if log_file is not None:
        root.addHandler(
            _file_handler(Path(log_file), numeric, json_logs, max_bytes, backup_count)
        )
    return root


class ToolLogger(logging.LoggerAdapter):
    """Logger for one wifiap component.

    Args:
        component: Dotted name below ``wifiap`` (``"backend.nmcli"``).
    """

    def __init__(self, component: str) -> None:
        super().__init__(logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}"), {})
        self.component = component
        self._operation: str | None = None

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        fields = {k: kwargs.pop(k) for k in list(kwargs) if k not in _LOGGING_KWARGS}
        extra = dict(kwargs.get("extra") or {})
        extra["component"] = self.component
        extra["operation"] = self._operation
        if fields:
            extra["tool_extra"] = fields
        kwargs["extra"] = extra
        return msg, kwargs

    @contextmanager
    def operation(self, name: str) -> Iterator[ToolLogger]:
        """Tag records logged inside the block with *name*."""
        previous, self._operation = self._operation, name
        try:
            yield self
        finally:
            self._operation = previous

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        """Log at DEBUG how long the block took."""
        started = time.perf_counter()
        self.debug("%s: started", label)
        try:
            yield
        finally:
            self.debug("%s: done in %.3fs", label, time.perf_counter() - started)
