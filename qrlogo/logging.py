"""qrlogo structured logging: audit events and call tracing."""

import functools
import json
import logging
import sys
import time
import traceback
from datetime import datetime, timezone

# Custom AUDIT level (between WARNING=30 and ERROR=40)
AUDIT = 35
logging.addLevelName(AUDIT, "AUDIT")

ROOT_LOGGER = "qrlogo"
_TRACED_ATTR = "_qrlogo_traced"


def _truncate(value: object, max_len: int = 80) -> str:
    """Truncate a string for safe logging."""
    s = str(value)
    if len(s) > max_len:
        return s[:max_len] + "..."
    return s


def _timestamp(record: logging.LogRecord, fmt: str) -> str:
    return datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(fmt)[:-3]


def _fields(record: logging.LogRecord) -> dict:
    """Structured parts of a record; plain messages only when there is no event."""
    fields = {}
    for name in ("event", "duration_ms", "ctx"):
        if hasattr(record, name):
            fields[name] = getattr(record, name)
    if "event" not in fields and record.getMessage():
        fields["msg"] = record.getMessage()
    if record.exc_info and record.exc_info[1]:
        fields["traceback"] = traceback.format_exception(*record.exc_info)
    return fields


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log files."""

    def format(self, record):
        entry = {
            "ts": _timestamp(record, "%Y-%m-%dT%H:%M:%S.%f") + "Z",
            "level": record.levelname,
            "src": record.name,
            **_fields(record),
        }
        if "duration_ms" in entry:
            entry["duration_ms"] = round(entry["duration_ms"], 2)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output for the terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "AUDIT": "\033[35m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
    }
    RESET = "\033[0m"

    def format(self, record):
        fields = _fields(record)
        color = self.COLORS.get(record.levelname, "")
        line = [
            _timestamp(record, "%H:%M:%S.%f"),
            f"{color}{record.levelname:5s}{self.RESET}",
            f"[{record.name}]",
            fields.get("event"),
        ]
        if "duration_ms" in fields:
            line.append(f"({fields['duration_ms']:.1f}ms)")
        if fields.get("ctx"):
            line.append(" ".join(f"{k}={_truncate(v)}" for k, v in fields["ctx"].items()))
        line.append(fields.get("msg"))

        text = " ".join(part for part in line if part)
        if "traceback" in fields:
            text += "\n" + "".join(fields["traceback"])
        return text


def setup_logging(level: str = "INFO", log_file: str | None = None, json_format: bool = False):
    """Configure the root qrlogo logger.

    Args:
        level: Log level name (DEBUG, INFO, AUDIT, WARNING, ERROR).
        log_file: If set, also write JSON lines to this path.
        json_format: Use JSON on the console as well.
    """
    root = logging.getLogger(ROOT_LOGGER)
    level_name = level.upper()
    root.setLevel(AUDIT if level_name == "AUDIT" else getattr(logging, level_name, logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(JsonFormatter() if json_format else ConsoleFormatter())
    root.addHandler(console)

    if log_file:
        fh = logging.FileHandler(log_file)
        fh.setFormatter(JsonFormatter())
        root.addHandler(fh)


def get_logger(module_name: str) -> logging.Logger:
    """Get a logger scoped under the qrlogo namespace."""
    return logging.getLogger(f"{ROOT_LOGGER}.{module_name}")


def _emit(log: logging.Logger, level: int, event: str, ctx: dict,
          duration_ms: float | None = None, exc_info=None):
    if not log.isEnabledFor(level):
        return
    record = log.makeRecord(
        name=log.name, level=level, fn="", lno=0,
        msg="", args=(), exc_info=exc_info,
    )
    record.event = event
    record.ctx = ctx
    if duration_ms is not None:
        record.duration_ms = duration_ms
    log.handle(record)


def audit(event: str, logger: logging.Logger | None = None, **context):
    """Emit an AUDIT-level structured log entry.

    Args:
        event: Machine-readable event tag (e.g., "qr.saved").
        logger: Logger to use. Defaults to the qrlogo root.
        **context: Key-value pairs for the event context.
    """
    log = logger or logging.getLogger(ROOT_LOGGER)
    if log.isEnabledFor(AUDIT):
        _emit(log, AUDIT, event, context)


def _summarize(value) -> str:
    if isinstance(value, (str, int, float, bool)):
        return _truncate(repr(value), 80)
    if isinstance(value, (list, tuple)):
        return f"{type(value).__name__}[{len(value)}]"
    if isinstance(value, dict):
        return f"dict[{len(value)} keys]"
    return type(value).__name__


def trace(func=None, *, logger_name: str | None = None):
    """Decorator that logs function entry/exit with timing.

    - DEBUG on entry with arguments
    - INFO on exit with duration
    - ERROR on exception with duration (traceback only at DEBUG)
    - DEBUG when an exception already logged by an inner traced call passes through
    """
    def decorator(fn):
        _logger_name = logger_name or fn.__module__.replace(f"{ROOT_LOGGER}.", "")
        log = get_logger(_logger_name)

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            fn_name = fn.__name__

            if log.isEnabledFor(logging.DEBUG):
                safe_args = []
                for a in args:
                    s = repr(a)
                    if len(s) > 100 or "Image" in type(a).__name__ or "ndarray" in type(a).__name__:
                        safe_args.append(f"<{type(a).__name__}>")
                    else:
                        safe_args.append(_truncate(s, 80))
                safe_kwargs = {k: _truncate(repr(v), 80) for k, v in kwargs.items()}
                _emit(log, logging.DEBUG, f"{fn_name}.enter",
                      {"args": safe_args, "kwargs": safe_kwargs})

            start = time.perf_counter()
            try:
                result = fn(*args, **kwargs)
            except Exception as exc:
                elapsed = (time.perf_counter() - start) * 1000
                if getattr(exc, _TRACED_ATTR, False):
                    # already reported by an inner traced frame
                    _emit(log, logging.DEBUG, f"{fn_name}.reraise",
                          {"function": fn_name, "error": type(exc).__name__},
                          duration_ms=elapsed)
                    raise
                exc_info = sys.exc_info() if log.isEnabledFor(logging.DEBUG) else None
                _emit(log, logging.ERROR, f"{fn_name}.error",
                      {"function": fn_name, "error": _truncate(exc, 120)},
                      duration_ms=elapsed, exc_info=exc_info)
                setattr(exc, _TRACED_ATTR, True)
                raise

            elapsed = (time.perf_counter() - start) * 1000
            if log.isEnabledFor(logging.INFO):
                _emit(log, logging.INFO, f"{fn_name}.done",
                      {"result": _summarize(result)}, duration_ms=elapsed)
            return result

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
