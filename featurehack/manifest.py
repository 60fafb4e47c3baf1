"""Reading package manifests and stripping dev-dependencies from them."""

from __future__ import annotations

import os
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import InlineTable

_DEV = "dev-dependencies"
_BARE_KEY = re.compile(r"[A-Za-z0-9_-]+")
_LINES = re.compile(r"[^\n]*\n|[^\n]+")
_ESCAPES = {
    "b": "\b",
    "t": "\t",
    "n": "\n",
    "f": "\f",
    "r": "\r",
    "e": "\x1b",
    '"': '"',
    "\\": "\\",
}


class ManifestError(Exception):
    """A manifest could not be parsed or lacks a required field."""


@dataclass(frozen=True)
class PackageInfo:
    """The parts of the ``[package]`` table that are needed."""

    publish: bool
    rust_version: str | None


@dataclass
class Manifest:
    """A package manifest, its original text and its parsed form."""

    raw: str
    doc: Any
    package: PackageInfo
    features: dict[str, list[str]]

    @classmethod
    def from_str(cls, text: str, path: str | os.PathLike[str]) -> Manifest:
        """Parse manifest ``text``; ``path`` is used in error messages."""
        shown = Path(path)
        try:
            doc = tomlkit.parse(text)
        except (TOMLKitError, ValueError) as e:
            raise ManifestError(f"failed to parse manifest `{shown}` as toml") from e
        plain = doc.unwrap()
        try:
            package = _package_info(doc, plain)
            features = _features(doc, plain)
        except _FieldError as e:
            raise ManifestError(
                f"failed to parse `{e.field}` field from manifest `{shown}`"
            ) from None
        return cls(text, doc, package, features)

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> Manifest:
        """Read and parse the manifest at ``path``."""
        with open(path, encoding="utf-8", newline="") as f:
            text = f.read()
        return cls.from_str(text, path)

    def remove_dev_deps(self) -> str:
        """Return the manifest text with all dev-dependencies removed."""
        return remove_dev_deps(self.raw)


class _FieldError(Exception):
    def __init__(self, field: str) -> None:
        super().__init__(field)
        self.field = field


def _is_table(item: Any) -> bool:
    return isinstance(item, Mapping) and not isinstance(item, InlineTable)


def _package_info(doc: Any, plain: dict[str, Any]) -> PackageInfo:
    if not _is_table(doc.get("package")):
        raise _FieldError("package")
    package = plain["package"]

    publish_value = package.get("publish")
    if publish_value is None:
        publish = True
    elif isinstance(publish_value, bool):
        publish = publish_value
    elif isinstance(publish_value, list):
        publish = bool(publish_value)
    else:
        raise _FieldError("publish")

    rust_version = package.get("rust-version")
    if rust_version is not None and not isinstance(rust_version, str):
        raise _FieldError("rust-version")
    return PackageInfo(publish, rust_version)


def _features(doc: Any, plain: dict[str, Any]) -> dict[str, list[str]]:
    raw = doc.get("features")
    if raw is None:
        return {}
    if not _is_table(raw):
        raise _FieldError("features")
    result: dict[str, list[str]] = {}
    for name, values in plain["features"].items():
        if not isinstance(values, list):
            raise _FieldError("features")
        result[name] = [v for v in values if isinstance(v, str)]
    return dict(sorted(result.items()))


@dataclass
class _Entry:
    kind: str
    lines: list[str]
    path: tuple[str, ...] = ()


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in " \t":
        pos += 1
    return pos


def _basic_string(text: str, pos: int) -> tuple[str, int]:
    out: list[str] = []
    while pos < len(text) and text[pos] != '"':
        ch = text[pos]
        if ch == "\\" and pos + 1 < len(text):
            code = text[pos + 1]
            if code in "uU":
                width = 4 if code == "u" else 8
                digits = text[pos + 2 : pos + 2 + width]
                try:
                    out.append(chr(int(digits, 16)))
                except ValueError:
                    out.append(digits)
                pos += 2 + width
                continue
            out.append(_ESCAPES.get(code, code))
            pos += 2
            continue
        out.append(ch)
        pos += 1
    return "".join(out), pos + 1


def _parse_key(text: str, pos: int) -> tuple[tuple[str, ...], int]:
    parts: list[str] = []
    while True:
        pos = _skip_ws(text, pos)
        if pos >= len(text):
            break
        ch = text[pos]
        if ch == '"':
            part, pos = _basic_string(text, pos + 1)
        elif ch == "'":
            end = text.find("'", pos + 1)
            if end < 0:
                end = len(text)
            part, pos = text[pos + 1 : end], end + 1
        else:
            match = _BARE_KEY.match(text, pos)
            if match is None:
                break
            part, pos = match.group(), match.end()
        parts.append(part)
        pos = _skip_ws(text, pos)
        if pos < len(text) and text[pos] == ".":
            pos += 1
            continue
        break
    return tuple(parts), pos


def _value_end(lines: list[str], index: int, pos: int) -> int:
    """Return the index of the line after the value starting at ``pos``."""
    depth = 0
    closing: str | None = None
    while index < len(lines):
        line = lines[index]
        n = len(line)
        while pos < n:
            if closing is not None:
                if line[pos] == "\\" and closing in ('"', '"""'):
                    pos += 2
                elif line.startswith(closing, pos):
                    run = pos
                    while run < n and line[run] == closing[0] and run - pos < 5:
                        run += 1
                    pos = run if len(closing) == 3 else pos + 1
                    closing = None
                else:
                    pos += 1
                continue
            ch = line[pos]
            if line.startswith('"""', pos) or line.startswith("'''", pos):
                closing = line[pos : pos + 3]
                pos += 3
            elif ch in "\"'":
                closing = ch
                pos += 1
            elif ch in "[{":
                depth += 1
                pos += 1
            elif ch in "]}":
                depth -= 1
                pos += 1
            elif ch == "#":
                break
            else:
                pos += 1
        index += 1
        pos = 0
        if closing in ('"', "'"):
            closing = None
        if depth <= 0 and closing is None:
            return index
    return index


def _entries(text: str) -> Iterator[_Entry]:
    lines = _LINES.findall(text)
    i = 0
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            yield _Entry("trivia", [line])
            i += 1
        elif stripped.startswith("["):
            body = line.lstrip()
            start = 2 if body.startswith("[[") else 1
            path, _ = _parse_key(body, start)
            yield _Entry("header", [line], path)
            i += 1
        else:
            path, pos = _parse_key(line, 0)
            if pos < len(line) and line[pos] == "=":
                pos += 1
            end = _value_end(lines, i, pos)
            yield _Entry("keyval", lines[i:end], path)
            i = end


def _is_dev_path(path: tuple[str, ...]) -> bool:
    if path and path[0] == _DEV:
        return True
    return len(path) >= 3 and path[0] == "target" and path[2] == _DEV


def _terminated(lines: list[str]) -> list[str]:
    if lines and not lines[-1].endswith("\n"):
        return [*lines[:-1], lines[-1] + "\n"]
    return lines


def remove_dev_deps(text: str) -> str:
    """Remove ``dev-dependencies`` and ``target.*.dev-dependencies`` from manifest text.

    Blank and comment lines directly before a removed table or key are removed
    with it; everything else keeps its original formatting.
    """
    out: list[str] = []
    pending: list[str] = []
    table: tuple[str, ...] = ()
    dropping = False
    for entry in _entries(text):
        if entry.kind == "trivia":
            pending.extend(entry.lines)
            continue
        if entry.kind == "header":
            table = entry.path
            dropping = _is_dev_path(table)
            remove = dropping
        else:
            remove = dropping or _is_dev_path(table + entry.path)
        if not remove:
            out.extend(pending)
            out.extend(_terminated(entry.lines))
        pending = []
    out.extend(pending)
    return "".join(out)