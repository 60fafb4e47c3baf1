"""Toolchain management through rustup and version-range expansion."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from featurehack import term
from featurehack.process import ProcessBuilder, ProcessError
from featurehack.version import Version

_STEP = re.compile(r"\+?[0-9]+")
_RUSTUP_VERSION_CMD = "`rustup --version`"


class Rustup:
    """The installed rustup, identified by its minor version (0 if unknown)."""

    def __init__(self) -> None:
        try:
            self.version = rustup_minor_version()
        except (ProcessError, ValueError) as e:
            term.warn(f"unable to determine rustup version: {e}")
            self.version = 0


def parse_rustup_version(output: str) -> int:
    """Extract the minor version from ``rustup --version`` output."""
    words = output.split(" ")
    if len(words) < 2 or words[0] != "rustup":
        raise ValueError(f"unexpected output from {_RUSTUP_VERSION_CMD}: {output}")
    version = Version.parse(words[1])
    if version.major != 1 or version.patch is None:
        raise ValueError(f"unexpected output from {_RUSTUP_VERSION_CMD}: {output}")
    return version.minor


def rustup_minor_version() -> int:
    """Run ``rustup --version`` and return its minor version."""
    return parse_rustup_version(ProcessBuilder("rustup", "--version").read())


def _check(version: Version) -> None:
    if version.major != 1:
        raise ValueError("major version must be 1")
    if version.patch is not None:
        term.warn(
            "--version-range always selects the latest patch release per minor release, "
            f"not the specified patch release `{version.patch}`"
        )


def _parse_step(step: str | None) -> int:
    if step is None:
        return 1
    if not _STEP.fullmatch(step) or int(step) > 255:
        raise ValueError(f"invalid --version-step `{step}`")
    value = int(step)
    if value == 0:
        raise ValueError("--version-step cannot be zero")
    return value


def version_range(
    range_text: str,
    step: str | None,
    rust_versions: Iterable[str | None],
    stable_minor_version: int | Callable[[], int] | None,
) -> list[str]:
    """Expand ``start..end`` into toolchain names like ``+1.58``.

    ``rust_versions`` holds the rust-version of each workspace member and is
    used when the start is omitted. ``stable_minor_version`` supplies the end
    when it is omitted: an int, or a callable run after installing stable.
    """
    start_text, sep, end_text = range_text.partition("..")
    if start_text == "":
        rust_version: str | None = None
        for v in rust_versions:
            if v is None or v == rust_version:
                continue
            if rust_version is None:
                rust_version = v
            else:
                raise ValueError(
                    "automatic detection of the lower bound of the version range is not yet "
                    "supported when the minimum supported Rust version of the crates in the "
                    "workspace do not match"
                )
        if rust_version is None:
            raise ValueError("no rust-version field in Cargo.toml is specified")
        start = Version.parse(rust_version)
    else:
        start = Version.parse(start_text)
    _check(start)

    if not sep or end_text == "":
        if stable_minor_version is None:
            raise ValueError("the upper bound requires the version of stable cargo")
        if callable(stable_minor_version):
            install_toolchain("stable", None, False)
            end = stable_minor_version()
        else:
            end = stable_minor_version
    else:
        end_version = Version.parse(end_text)
        _check(end_version)
        end = end_version.minor

    stride = _parse_step(step)
    versions = [f"+1.{minor}" for minor in range(start.minor, end + 1, stride)]
    if not versions:
        raise ValueError(f"specified version range `{range_text}` is empty")
    return versions


def install_toolchain(toolchain: str, target: str | None, print_output: bool) -> None:
    """Install ``toolchain`` (and ``target``) unless it is already present."""
    toolchain = toolchain.removeprefix("+")

    if target is None:
        try:
            ProcessBuilder("cargo", f"+{toolchain}", "--version").run_with_output()
        except ProcessError:
            pass
        else:
            return

    cmd = ProcessBuilder("rustup", "toolchain", "add", toolchain, "--no-self-update")
    if target is not None:
        cmd.args(["--target", target])
    if print_output:
        cmd.run()
    else:
        cmd.run_with_output()