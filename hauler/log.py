"""Small levelled console logger with context propagation."""

from __future__ import annotations

import contextvars
import json
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import IO, Any

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "trace": -1,
    "debug": 0,
    "info": 1,
    "warn": 2,
    "error": 3,
    "fatal": 4,
    "panic": 5,
    "disabled": 7,
}
_state = {"level": _LEVELS["trace"]}
_current: contextvars.ContextVar["Logger | None"] = contextvars.ContextVar(
    "hauler_logger", default=None
)
_VERB = re.compile(r"%[-+# 0-9.]*[a-zA-Z%]")


def _go_format(fmt: str, args: tuple[Any, ...]) -> str:
    if not args:
        return fmt
    remaining = iter(args)

    def repl(m: re.Match) -> str:
        verb = m.group(0)
        if verb == "%%":
            return "%"
        try:
            arg = next(remaining)
        except StopIteration:
            return f"%!{verb[-1]}(MISSING)"
        if verb[-1] == "q":
            return json.dumps(str(arg))
        if isinstance(arg, bool):
            return "true" if arg else "false"
        return str(arg)

    return _VERB.sub(repl, fmt)


@dataclass
class Logger:
    """Writes formatted, levelled lines; a logger without output discards them."""

    out: IO[str] | None = None
    fields: dict[str, str] = field(default_factory=dict)

    def set_level(self, level: str) -> None:
        _state["level"] = _LEVELS.get(level.lower(), _LEVELS["info"])

    def with_fields(self, fields: dict[str, str]) -> "Logger":
        return Logger(self.out, {**self.fields, **fields})

    def with_context(self) -> contextvars.Token:
        return _current.set(self)

    def _emit(self, level: str, label: str, fmt: str, args: tuple[Any, ...]) -> None:
        if self.out is None or _LEVELS[level] < _state["level"]:
            return
        parts = [datetime.now().strftime(TIME_FORMAT), label, _go_format(fmt, args)]
        parts.extend(f"{k}={v}" for k, v in self.fields.items())
        self.out.write(" ".join(parts) + "\n")

    def errorf(self, fmt: str, *args: Any) -> None:
        self._emit("error", "ERR", fmt, args)

    def infof(self, fmt: str, *args: Any) -> None:
        self._emit("info", "INF", fmt, args)

    def warnf(self, fmt: str, *args: Any) -> None:
        self._emit("warn", "WRN", fmt, args)

    def debugf(self, fmt: str, *args: Any) -> None:
        self._emit("debug", "DBG", fmt, args)


def new_logger(out: IO[str] | None = None) -> Logger:
    """Return a logger writing to out, or to standard output."""
    return Logger(out if out is not None else sys.stdout)


def from_context() -> Logger:
    """Return the logger stored in the current context, or a discarding one."""
    current = _current.get()
    return current if current is not None else Logger(None)