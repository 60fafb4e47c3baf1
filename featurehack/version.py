"""Parsing of toolchain version strings such as ``1.58`` or ``1.45.2``."""

from __future__ import annotations

import re
from dataclasses import dataclass

_U32_MAX = 2**32 - 1
_DIGITS = re.compile(r"\+?[0-9]+")


def _parse_component(text: str) -> int:
    if not _DIGITS.fullmatch(text):
        raise ValueError(f"invalid digit found in string `{text}`")
    value = int(text)
    if value > _U32_MAX:
        raise ValueError(f"number too large: `{text}`")
    return value


@dataclass(frozen=True)
class Version:
    """A version made of a major, a minor and an optional patch number."""

    major: int
    minor: int
    patch: int | None = None

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse ``major.minor[.patch]``; raise ValueError on bad input."""
        parts = text.split(".", 2)
        major = _parse_component(parts[0])
        if len(parts) < 2:
            raise ValueError("missing minor version")
        minor = _parse_component(parts[1])
        patch = _parse_component(parts[2]) if len(parts) > 2 else None
        return cls(major, minor, patch)

    def __str__(self) -> str:
        if self.patch is None:
            return f"{self.major}.{self.minor}"
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(text: str) -> Version:
    """Parse a version string into a :class:`Version`."""
    return Version.parse(text)