"""Logging bootstrap.

One stdout handler on the root logger, shared with uvicorn.  In
production every record is a JSON object; locally it is a coloured
line.  Records carry the active OpenTelemetry ``trace_id`` and
``span_id`` (empty strings outside a span) so log lines can be joined
with traces.
"""

from __future__ import annotations

import logging
import sys

from opentelemetry import trace

from novachat.configs.system import LoggingConfig

_QUIET_LOGGERS = ("httpx", "httpcore", "opentelemetry", "sqlalchemy.engine")
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
_JSON_RENAMES = {"asctime": "timestamp", "levelname": "level", "name": "logger"}

_CONSOLE_FORMAT = "%(levelprefix)s %(asctime)s %(name)s  %(message)s"
_CONSOLE_DATEFMT = "%H:%M:%S"


class TraceContextFilter(logging.Filter):
    """Copy the current span's ids onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = trace.get_current_span().get_span_context()
        if ctx is not None and ctx.is_valid:
            trace_id = trace.format_trace_id(ctx.trace_id)
            span_id = trace.format_span_id(ctx.span_id)
        else:
            trace_id = span_id = ""
        record.trace_id = trace_id  # type: ignore[attr-defined]
        record.span_id = span_id  # type: ignore[attr-defined]
        return True


def _build_formatter(config: LoggingConfig) -> logging.Formatter:
    if config.json_output:
        from pythonjsonlogger.json import JsonFormatter

        return JsonFormatter(
            fmt=_JSON_FIELDS,
            rename_fields=_JSON_RENAMES,
            static_fields={"service": "novachat"},
        )

    from uvicorn.logging import DefaultFormatter

    return DefaultFormatter(
        fmt=_CONSOLE_FORMAT, datefmt=_CONSOLE_DATEFMT, use_colors=True
    )


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Install the shared handler; call once before the app starts."""
    config = config or LoggingConfig()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(TraceContextFilter())
    handler.setFormatter(_build_formatter(config))

    root = logging.getLogger()
    root.setLevel(config.level.upper())
    root.handlers = [handler]

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
