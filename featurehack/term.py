"""Terminal status output and process-wide diagnostic flags."""

from __future__ import annotations

import enum
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import IO, Iterator


class Coloring(enum.Enum):
    """When to colour status output."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


@dataclass
class _State:
    coloring: Coloring = Coloring.AUTO
    verbose: bool = False
    error: bool = False
    warn: bool = False


_state = _State()

_RESET = "\x1b[0m"
_BOLD = "\x1b[1m"
_COLORS = {
    "black": 30,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "magenta": 35,
    "cyan": 36,
    "white": 37,
}


def parse_coloring(value: str) -> Coloring:
    """Parse ``auto``, ``always`` or ``never``."""
    try:
        return Coloring(value)
    except ValueError:
        raise ValueError(
            f"must be auto, always, or never, but found `{value}`"
        ) from None


def set_coloring(color: str | None) -> None:
    """Set the colour mode from an option value or ``CARGO_TERM_COLOR``."""
    if color is not None:
        try:
            mode = parse_coloring(color)
        except ValueError as e:
            raise ValueError(f"argument for --color {e}") from None
    else:
        env = os.environ.get("CARGO_TERM_COLOR")
        if env is None:
            mode = Coloring.AUTO
        else:
            try:
                mode = parse_coloring(env)
            except ValueError as e:
                raise ValueError(f"CARGO_TERM_COLOR {e}") from None
    if mode is Coloring.AUTO and not _isatty(sys.stderr):
        mode = Coloring.NEVER
    _state.coloring = mode


def coloring() -> Coloring:
    """Return the current colour mode."""
    return _state.coloring


def _isatty(stream: IO[str]) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def is_verbose() -> bool:
    return _state.verbose


def set_verbose(value: bool) -> None:
    _state.verbose = bool(value)


@contextmanager
def scoped_verbose(value: bool) -> Iterator[None]:
    """Temporarily set the verbose flag, restoring the previous value."""
    previous = _state.verbose
    _state.verbose = bool(value)
    try:
        yield
    finally:
        _state.verbose = previous


def had_error() -> bool:
    """Whether an error has been reported."""
    return _state.error


def had_warning() -> bool:
    """Whether a warning has been reported."""
    return _state.warn


def reset_flags() -> None:
    """Clear the verbose, error and warning flags."""
    _state.verbose = False
    _state.error = False
    _state.warn = False


def _use_color(stream: IO[str]) -> bool:
    mode = _state.coloring
    if mode is Coloring.ALWAYS:
        return True
    if mode is Coloring.NEVER:
        return False
    return _isatty(stream)


def print_status(status: str, color: str | None) -> IO[str]:
    """Write a ``status: `` prefix to stderr and return the stream."""
    stream = sys.stderr
    if _use_color(stream):
        fg = f"\x1b[{_COLORS[color]}m" if color is not None else ""
        stream.write(f"{_RESET}{_BOLD}{fg}{status}{_RESET}{_BOLD}:{_RESET} ")
    else:
        stream.write(f"{status}: ")
    return stream


def error(message: str) -> None:
    """Report an error and remember that one occurred."""
    _state.error = True
    stream = print_status("error", "red")
    stream.write(f"{message}\n")
    stream.flush()


def warn(message: str) -> None:
    """Report a warning and remember that one occurred."""
    _state.warn = True
    stream = print_status("warning", "yellow")
    stream.write(f"{message}\n")
    stream.flush()


def info(message: str) -> None:
    """Report an informational message."""
    stream = print_status("info", None)
    stream.write(f"{message}\n")
    stream.flush()