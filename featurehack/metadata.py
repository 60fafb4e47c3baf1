"""Parsing the output of ``cargo metadata``."""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from featurehack import term
from featurehack.process import ProcessBuilder, ProcessError
from featurehack.restore import RestoreManager

_MISSING = object()


class MetadataError(Exception):
    """The metadata output could not be parsed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


def _field_error(key: str) -> MetadataError:
    return MetadataError(f"failed to parse `{key}` field from metadata", key)


def _object(value: Any, key: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise _field_error(key)
    return dict(value)


def _take(obj: dict[str, Any], key: str, kind: type) -> Any:
    value = obj.pop(key, _MISSING)
    if value is _MISSING or not isinstance(value, kind):
        raise _field_error(key)
    return value


def _take_nullable(obj: dict[str, Any], key: str, kind: type) -> Any:
    value = obj.pop(key, _MISSING)
    if value is None:
        return None
    if value is _MISSING or not isinstance(value, kind):
        raise _field_error(key)
    return value


def _loads_object(text: str, source: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MetadataError(f"failed to parse output from {source}") from e
    if not isinstance(data, dict):
        raise MetadataError(f"failed to parse output from {source}")
    return data


@dataclass
class DepKindInfo:
    """The kind and target platform of a dependency edge."""

    kind: str | None
    target: str | None

    @classmethod
    def _from_value(cls, value: Any) -> DepKindInfo:
        obj = _object(value, "dep_kinds")
        return cls(
            kind=_take_nullable(obj, "kind", str),
            target=_take_nullable(obj, "target", str),
        )


@dataclass
class NodeDep:
    """A dependency in a resolved node."""

    pkg: str
    dep_kinds: list[DepKindInfo] = field(default_factory=list)

    @classmethod
    def _from_value(cls, value: Any, cargo_version: int) -> NodeDep:
        obj = _object(value, "deps")
        pkg = _take(obj, "pkg", str)
        dep_kinds = (
            [DepKindInfo._from_value(v) for v in _take(obj, "dep_kinds", list)]
            if cargo_version >= 41
            else []
        )
        return cls(pkg, dep_kinds)


@dataclass
class Node:
    """A node in the resolved dependency graph."""

    deps: list[NodeDep] = field(default_factory=list)

    @classmethod
    def _from_value(cls, value: Any, cargo_version: int) -> tuple[str, Node]:
        obj = _object(value, "nodes")
        node_id = _take(obj, "id", str)
        deps = (
            [NodeDep._from_value(v, cargo_version) for v in _take(obj, "deps", list)]
            if cargo_version >= 30
            else []
        )
        return node_id, cls(deps)


@dataclass
class Resolve:
    """The resolved dependency graph of the workspace."""

    nodes: dict[str, Node]
    root: str | None

    @classmethod
    def _from_value(cls, obj: dict[str, Any], cargo_version: int) -> Resolve:
        obj = dict(obj)
        nodes = dict(Node._from_value(v, cargo_version) for v in _take(obj, "nodes", list))
        return cls(nodes, _take_nullable(obj, "root", str))


@dataclass
class Dependency:
    """A dependency declared by a package."""

    name: str
    optional: bool
    rename: str | None = None

    @classmethod
    def _from_value(cls, value: Any) -> Dependency:
        obj = _object(value, "dependencies")
        name = _take(obj, "name", str)
        optional = obj.get("optional")
        if not isinstance(optional, bool):
            raise _field_error("optional")
        return cls(name, optional, _take_nullable(obj, "rename", str))

    def as_feature(self) -> str | None:
        """The feature name this dependency provides, if it is optional."""
        if not self.optional:
            return None
        return self.rename if self.rename is not None else self.name


@dataclass
class Package:
    """A package in the workspace or its dependencies."""

    name: str
    dependencies: list[Dependency]
    features: dict[str, list[str]]
    manifest_path: Path
    publish: bool = True
    rust_version: str | None = None

    @classmethod
    def _from_value(cls, value: Any, cargo_version: int) -> tuple[str, Package]:
        obj = _object(value, "packages")
        package_id = _take(obj, "id", str)
        name = _take(obj, "name", str)
        dependencies = [Dependency._from_value(v) for v in _take(obj, "dependencies", list)]
        features: dict[str, list[str]] = {}
        for key, values in _take(obj, "features", dict).items():
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise _field_error("features")
            features[key] = list(values)
        manifest_path = Path(_take(obj, "manifest_path", str))
        if cargo_version >= 39:
            registries = _take_nullable(obj, "publish", list)
            publish = registries is None or bool(registries)
        else:
            publish = True
        rust_version = _take_nullable(obj, "rust_version", str) if cargo_version >= 58 else None
        return package_id, cls(
            name=name,
            dependencies=dependencies,
            features=dict(sorted(features.items())),
            manifest_path=manifest_path,
            publish=publish,
            rust_version=rust_version,
        )

    def optional_deps(self) -> Iterator[str]:
        """Yield the feature names of the optional dependencies."""
        for dep in self.dependencies:
            feature = dep.as_feature()
            if feature is not None:
                yield feature


@dataclass
class Metadata:
    """The parts of ``cargo metadata`` output that are needed."""

    cargo_version: int
    packages: dict[str, Package]
    workspace_members: list[str]
    resolve: Resolve
    workspace_root: Path

    @classmethod
    def from_obj(cls, data: dict[str, Any], cargo_version: int) -> Metadata:
        """Build from the decoded JSON object; the input is not modified."""
        obj = dict(data)
        members = _take(obj, "workspace_members", list)
        if not all(isinstance(m, str) for m in members):
            raise _field_error("workspace_members")
        packages = dict(Package._from_value(v, cargo_version) for v in _take(obj, "packages", list))
        resolve = Resolve._from_value(_take(obj, "resolve", dict), cargo_version)
        root = Path(_take(obj, "workspace_root", str))
        return cls(cargo_version, packages, list(members), resolve, root)

    @classmethod
    def from_json(cls, text: str, cargo_version: int) -> Metadata:
        """Build from the JSON text printed by ``cargo metadata``."""
        return cls.from_obj(_loads_object(text, "`cargo metadata`"), cargo_version)

    @classmethod
    def load(
        cls,
        cargo: str | os.PathLike[str],
        manifest_path: str | os.PathLike[str] | None,
        restore: RestoreManager,
        cargo_version: int,
        stable_cargo_version: int,
    ) -> Metadata:
        """Run ``cargo metadata`` and parse its output.

        When stable cargo is newer than ``cargo``, stable is tried first with
        the lockfile restored afterwards, falling back to ``cargo``.
        """

        def command(program: str | os.PathLike[str], *args: str) -> ProcessBuilder:
            cmd = ProcessBuilder(program, *args)
            if manifest_path is not None:
                cmd.arg("--manifest-path")
                cmd.arg(manifest_path)
            return cmd

        if stable_cargo_version > cargo_version:
            cmd = command(cargo, "metadata", "--format-version=1", "--no-deps")
            no_deps = _loads_object(cmd.read(), str(cmd))
            root = no_deps.get("workspace_root")
            if not isinstance(root, str):
                raise _field_error("workspace_root")
            lockfile = Path(root) / "Cargo.lock"
            if not lockfile.exists():
                command(cargo, "generate-lockfile").run_with_output()
            text: str | None
            with term.scoped_verbose(False):
                with open(lockfile, encoding="utf-8", newline="") as f:
                    handle = restore.set(f.read(), lockfile)
                cmd = command("cargo", "+stable", "metadata", "--format-version=1")
                try:
                    text = cmd.read()
                except (ProcessError, ValueError):
                    text = None
                finally:
                    handle.close()
            if text is not None:
                cargo_version = stable_cargo_version
            else:
                cmd = command(cargo, "metadata", "--format-version=1")
                text = cmd.read()
        else:
            cmd = command(cargo, "metadata", "--format-version=1")
            text = cmd.read()

        return cls.from_obj(_loads_object(text, str(cmd)), cargo_version)