"""Building, displaying and running external commands."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterable
from pathlib import Path

from featurehack import term


def _describe_status(returncode: int) -> str:
    if returncode < 0:
        return f"signal: {-returncode}"
    return f"exit status: {returncode}"


class ProcessError(Exception):
    """An external process could not be started or did not succeed."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stdout: bytes | None = None,
        stderr: bytes | None = None,
    ) -> None:
        exit_text = "never executed" if returncode is None else _describe_status(returncode)
        desc = f"{message} ({exit_text})"
        for label, data in (("stdout", stdout), ("stderr", stderr)):
            if data is None:
                continue
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError:
                continue
            if text.strip():
                desc += f"\n--- {label}\n{text}"
        super().__init__(desc)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class ProcessBuilder:
    """A command line laid out as
    ``<program> <leading> <propagated leading> <args> [--features <list>] [-- <trailing>]``.
    """

    def __init__(self, program: str | os.PathLike[str], *args: str | os.PathLike[str]) -> None:
        self.program = os.fspath(program)
        self._leading: list[str] = []
        self._propagated_leading: list[str] = []
        self._trailing: list[str] = []
        self._args: list[str] = [os.fspath(a) for a in args]
        self._features: list[str] = []

    def arg(self, value: str | os.PathLike[str]) -> ProcessBuilder:
        """Add an argument."""
        self._args.append(os.fspath(value))
        return self

    def args(self, values: Iterable[str | os.PathLike[str]]) -> ProcessBuilder:
        """Add several arguments."""
        self._args.extend(os.fspath(v) for v in values)
        return self

    def leading_arg(self, value: str) -> ProcessBuilder:
        """Add an argument placed directly after the program."""
        self._leading.append(value)
        return self

    def set_propagated(
        self, leading_args: Iterable[str], trailing_args: Iterable[str]
    ) -> ProcessBuilder:
        """Set the arguments passed through from the user's command line."""
        self._propagated_leading = list(leading_args)
        self._trailing = list(trailing_args)
        return self

    def append_features(self, features: Iterable[str]) -> None:
        """Add features to the ``--features`` list."""
        self._features.extend(features)

    def append_features_from_args(
        self,
        features: Iterable[str],
        known_features: Iterable[str],
        package_name: str,
        ignore_unknown: bool,
    ) -> None:
        """Add user-requested features, optionally skipping unknown ones."""
        features = list(features)
        if ignore_unknown:
            known = set(known_features)
            for feature in features:
                if feature in known:
                    self._features.append(feature)
                else:
                    term.info(f"skipped applying unknown `{feature}` feature to {package_name}")
        elif features:
            self._features.extend(features)

    def features_list(self) -> str:
        """Return the comma-separated feature list."""
        return ",".join(self._features)

    def argv(self) -> list[str]:
        """Return the full command line."""
        argv = [self.program, *self._leading, *self._propagated_leading, *self._args]
        if self._features:
            argv += ["--features", self.features_list()]
        if self._trailing:
            argv += ["--", *self._trailing]
        return argv

    def render(self, alternate: bool) -> str:
        """Return the command for display, in backquotes."""
        full = alternate or term.is_verbose()
        parts = [self.program if full else Path(self.program).stem]
        parts += self._leading
        parts += self._propagated_leading
        args = iter(self._args)
        for value in args:
            if value == "--manifest-path":
                path = next(args, None)
                if path is None or not full:
                    continue
                shown = Path(path)
                try:
                    shown = shown.relative_to(Path.cwd())
                except ValueError:
                    pass
                parts += ["--manifest-path", str(shown)]
            else:
                parts.append(value)
        if self._features:
            parts += ["--features", self.features_list()]
        if self._trailing:
            parts += ["--", *self._trailing]
        return "`" + " ".join(parts) + "`"

    def __str__(self) -> str:
        return self.render(False)

    def copy(self) -> ProcessBuilder:
        """Return an independent copy."""
        other = ProcessBuilder(self.program)
        other._leading = list(self._leading)
        other._propagated_leading = list(self._propagated_leading)
        other._trailing = list(self._trailing)
        other._args = list(self._args)
        other._features = list(self._features)
        return other

    def run(self) -> None:
        """Run the process, raising ProcessError on a non-zero exit."""
        try:
            completed = subprocess.run(self.argv(), check=False)
        except OSError as e:
            raise ProcessError(f"could not execute process {self.render(True)}") from e
        if completed.returncode != 0:
            raise ProcessError(
                f"process didn't exit successfully: {self.render(True)}",
                completed.returncode,
            )

    def run_with_output(self) -> subprocess.CompletedProcess:
        """Run the process capturing its output; raise ProcessError on failure."""
        try:
            completed = subprocess.run(self.argv(), capture_output=True, check=False)
        except OSError as e:
            raise ProcessError(f"could not execute process {self.render(True)}") from e
        if completed.returncode != 0:
            raise ProcessError(
                f"process didn't exit successfully: {self.render(True)}",
                completed.returncode,
                completed.stdout,
                completed.stderr,
            )
        return completed

    def read(self) -> str:
        """Run the process and return its stdout without trailing newlines."""
        output = self.run_with_output().stdout or b""
        try:
            text = output.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValueError(f"failed to parse output from {self.render(True)}") from e
        return text.rstrip("\r\n")