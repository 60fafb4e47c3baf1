"""Versions, terminal status output, file restoring, command lines, toolchain ranges, manifests and cargo metadata."""

__version__ = "0.1.0"

__all__ = ["manifest", "metadata", "process", "restore", "rustup", "term", "version"]