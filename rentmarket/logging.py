"""
rentmarket.logging
------------------

Structured logging for the marketplace:
- JSON or concise colored text formats
- Context-local fields via `contextvars` (trace_id, op, listing_id, caller, height)
- Helpers to bind/unbind context fields and open trace scopes

Usage
-----
    from rentmarket import logging as mlog

    mlog.configure(json=False, level="INFO")   # once at process start
    log = mlog.get_logger(__name__)

    with mlog.trace_scope():
        mlog.bind(op="rent_nft", listing_id=7)
        log.info("rental started")

Modules inside the package keep using `logging.getLogger(__name__)`; this
module only decides how records are rendered.
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import os
import sys
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_RENTMARKET_LOG_CONTEXT", default={})

DEFAULT_CONTEXT_KEYS = (
    "trace_id",
    "component",
    "op",
    "listing_id",
    "caller",
    "height",
)

# LogRecord attributes that are never treated as structured extras.
_RESERVED = frozenset(
    (
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
        "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "taskName", "message",
    )
)


# ----------------------------
# Context
# ----------------------------


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    cur = dict(_LOG_CONTEXT.get())
    cur.update({k: _coerce_value(v) for k, v in fields.items()})
    _LOG_CONTEXT.set(cur)


def unbind(*keys: str) -> None:
    cur = dict(_LOG_CONTEXT.get())
    for k in keys:
        cur.pop(k, None)
    _LOG_CONTEXT.set(cur)


def clear_context() -> None:
    _LOG_CONTEXT.set({})


def short_uuid() -> str:
    return uuid.uuid4().hex[:12]


@contextmanager
def trace_scope(trace_id: Optional[str] = None, **fields: Any) -> Iterator[str]:
    """
    Ensure a trace_id (and any extra fields) for the duration of the scope.
    Restores the prior context on exit.
    """
    prev = dict(_LOG_CONTEXT.get())
    tid = trace_id or prev.get("trace_id") or short_uuid()
    try:
        bind(trace_id=tid, **fields)
        yield tid
    finally:
        _LOG_CONTEXT.set(prev)


# ----------------------------
# Formatters
# ----------------------------


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, Enum):
        return v.value
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    if isinstance(v, Path):
        return str(v)
    if isinstance(v, _dt.datetime):
        if v.tzinfo is None:
            v = v.replace(tzinfo=_dt.timezone.utc)
        return v.isoformat()
    if is_dataclass(v) and not isinstance(v, type):
        return asdict(v)
    return str(v)


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: _coerce_value(v)
        for k, v in record.__dict__.items()
        if not k.startswith("_") and k not in _RESERVED
    }


def _supports_color(stream: Any) -> bool:
    try:
        return stream.isatty() and os.environ.get("NO_COLOR") is None
    except (AttributeError, ValueError):
        return False


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(context())
        for k, v in _extras(record).items():
            payload.setdefault(k, v)
        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return json.dumps(payload, default=str, separators=(",", ":"))


_GREY = "\x1b[90m"
_RESET = "\x1b[0m"
_LEVEL_COLOR = {
    logging.DEBUG: _GREY,
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[1m\x1b[35m",
}


class TextFormatter(logging.Formatter):
    """
    One line per record:
      2026-01-05T12:34:56.789+00:00 | INFO  | rentmarket.market | op=rent_nft listing_id=3 | rental started
    """

    def __init__(self, stream: Any = None) -> None:
        super().__init__()
        self._color = _supports_color(stream) if stream is not None else False

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        parts = [f"{k}={ctx[k]}" for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None]
        parts += [f"{k}={v}" for k, v in _extras(record).items() if k not in ctx]
        lvl = f"{record.levelname:<5}"
        if self._color:
            lvl = f"{_LEVEL_COLOR.get(record.levelno, '')}{lvl}{_RESET}"
        line = f"{_utcnow_iso()} | {lvl} | {record.name}"
        if parts:
            line += " | " + " ".join(parts)
        line += f" | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# ----------------------------
# Setup
# ----------------------------


_LEVEL_TO_INT = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return _LEVEL_TO_INT.get(level.upper(), logging.INFO)


def _decide_json(json_flag: Optional[bool], stream: Any) -> bool:
    if json_flag is not None:
        return json_flag
    env = os.environ.get("RENTMARKET_LOG_FORMAT", "").strip().lower()
    if env in ("json", "text"):
        return env == "json"
    return not _supports_color(stream)


def configure(
    *,
    json: Optional[bool] = None,
    level: str | int = "INFO",
    stream: io.TextIOBase = sys.stderr,  # type: ignore[assignment]
    file_path: Optional[Path | str] = None,
    logger_name: str = "rentmarket",
) -> logging.Logger:
    """
    Configure the `rentmarket` logger tree (not the root logger).

    json=None picks JSON unless attached to a TTY, or follows
    RENTMARKET_LOG_FORMAT=(json|text). A file handler, when requested, always
    writes JSON.
    """
    lvl = _coerce_level(level)
    logger = logging.getLogger(logger_name)
    logger.setLevel(lvl)
    for h in list(logger.handlers):
        logger.removeHandler(h)

    console = logging.StreamHandler(stream)
    console.setLevel(lvl)
    console.setFormatter(JSONFormatter() if _decide_json(json, stream) else TextFormatter(stream))
    logger.addHandler(console)

    if file_path:
        p = Path(file_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, encoding="utf-8")
        fh.setLevel(lvl)
        fh.setFormatter(JSONFormatter())
        logger.addHandler(fh)

    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "rentmarket")


__all__ = [
    "configure",
    "get_logger",
    "bind",
    "unbind",
    "clear_context",
    "context",
    "trace_scope",
    "short_uuid",
    "JSONFormatter",
    "TextFormatter",
]
