"""Restoring files that were temporarily rewritten."""

from __future__ import annotations

import signal
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from featurehack import term


@dataclass
class _SavedFile:
    text: str
    path: Path

    def restore(self) -> None:
        if term.is_verbose():
            term.info(f"restoring {self.path}")
        self.path.write_text(self.text, encoding="utf-8", newline="")


class RestoreManager:
    """Remembers the original text of one file so it can be written back."""

    def __init__(self, needs_restore: bool) -> None:
        self.needs_restore = needs_restore
        self._current: _SavedFile | None = None
        self._lock = threading.Lock()

    def set(self, text: str, path: str | Path) -> RestoreHandle:
        """Record ``text`` as the content to write back to ``path``."""
        if not self.needs_restore:
            return RestoreHandle(None)
        with self._lock:
            self._current = _SavedFile(text, Path(path))
        return RestoreHandle(self)

    def restore(self) -> None:
        """Write back the recorded file, if any; only once per record."""
        with self._lock:
            current, self._current = self._current, None
        if current is not None:
            current.restore()

    def install_interrupt_handler(self) -> None:
        """Restore the recorded file and exit when interrupted."""

        def handler(signum, frame):
            try:
                self.restore()
            except OSError as e:
                term.error(str(e))
                sys.exit(1)
            sys.exit(0)

        signal.signal(signal.SIGINT, handler)


class RestoreHandle:
    """Restores the file recorded by a manager when closed."""

    def __init__(self, manager: RestoreManager | None) -> None:
        self._manager = manager

    def close(self) -> None:
        """Restore the file now; later calls do nothing."""
        manager, self._manager = self._manager, None
        if manager is not None:
            manager.restore()

    def __enter__(self) -> RestoreHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc_type is None:
            self.close()
        else:
            try:
                self.close()
            except OSError as e:
                term.error(str(e))
        return False