# featurehack

Building blocks for tools that drive `cargo` across many configurations:
a range of Rust toolchains, several feature sets, or each member of a
workspace. The package is a library; it parses versions, manifests and
`cargo metadata` output, builds and runs command lines, and restores files
that were edited for the length of a run.

## Modules

- `featurehack.version`: `Version` (`major`, `minor`, optional `patch`) and
  `parse_version`, for strings such as `1.58` or `1.58.1`. Malformed input
  raises `ValueError`.
- `featurehack.term`: `info`, `warn` and `error` write `info: `,
  `warning: ` and `error: ` status lines to stderr. Colour follows
  `set_coloring` (`"auto"`, `"always"`, `"never"`, or `None` to read
  `CARGO_TERM_COLOR`); `parse_coloring` and `coloring` give the `Coloring`
  mode. A verbosity flag is kept with `is_verbose`, `set_verbose` and the
  `scoped_verbose` context manager. `had_error` and `had_warning` report
  whether an error or a warning was printed; `reset_flags` clears all three
  flags.
- `featurehack.restore`: `RestoreManager(needs_restore)` records a file's
  original text with `set(text, path)`, which returns a `RestoreHandle`. The
  text is written back when the handle's `close` is called or its `with`
  block ends. `install_interrupt_handler` makes Ctrl-C restore the file and
  exit. A manager created with `needs_restore=False` records nothing.
- `featurehack.process`: `ProcessBuilder` assembles a command line laid out
  as
  `<program> <leading args> <propagated args> <args> [--features a,b] [-- <trailing args>]`.
  `argv()` gives the full argument list; `str()` and `render(alternate)` give
  the backquoted form used in progress lines, which hides `--manifest-path`
  and shortens the program to its stem unless `alternate` is true or verbose
  output is on. `append_features_from_args` can skip, with an `info` line,
  features a package does not know. `run`, `run_with_output` and `read`
  start the process; a process that cannot start or exits non-zero raises
  `ProcessError`, which carries the return code and any captured output.
- `featurehack.rustup`: `version_range(range_text, step, rust_versions,
  stable_minor_version)` turns `1.58..1.60` into `["+1.58", "+1.59",
  "+1.60"]`. An omitted start is taken from the members' `rust-version`
  values, which must agree; an omitted end is taken from
  `stable_minor_version` (an int, or a callable that is called after stable
  is installed). `install_toolchain` runs `rustup toolchain add` when the
  toolchain is missing or a target is given. `parse_rustup_version`,
  `rustup_minor_version` and `Rustup().version` give rustup's minor version.
- `featurehack.manifest`: `Manifest.load(path)` and
  `Manifest.from_str(text, path)` read a `Cargo.toml` into its raw text,
  parsed document, `PackageInfo` (`publish`, `rust_version`) and feature
  table. `remove_dev_deps(text)` (and `Manifest.remove_dev_deps()`) return the
  text without `[dev-dependencies]` and `[target.*.dev-dependencies]`,
  keeping the rest as written. Bad input raises `ManifestError`.
- `featurehack.metadata`: `Metadata.from_json(text, cargo_version)` and
  `Metadata.from_obj(data, cargo_version)` read `cargo metadata` output into
  `Metadata`, `Package`, `Dependency`, `Resolve`, `Node`, `NodeDep` and
  `DepKindInfo`; fields that older cargo versions do not emit are skipped by
  `cargo_version`. `Metadata.load` runs `cargo metadata` itself, trying
  stable cargo first when it is newer and restoring `Cargo.lock` afterwards.
  `Package.optional_deps()` yields the feature names of optional
  dependencies. Bad input raises `MetadataError`.

## Examples

Parse a toolchain version:

```python
from featurehack.version import parse_version

version = parse_version("1.58.1")
assert (version.major, version.minor, version.patch) == (1, 58, 1)
```

Expand a toolchain range:

```python
from featurehack.rustup import version_range

assert version_range("1.58..1.60", None, [], None) == ["+1.58", "+1.59", "+1.60"]
```

Strip dev-dependencies from a manifest:

```python
from featurehack.manifest import remove_dev_deps

text = """\
[package]
[dependencies]
[dev-dependencies]
foo = "0.1"
"""
print(remove_dev_deps(text))
```

Build a cargo command line:

```python
from featurehack.process import ProcessBuilder

line = ProcessBuilder("cargo", "check")
line.arg("--no-default-features")
line.append_features(["a", "b"])
print(line)          # `cargo check --no-default-features --features a,b`
print(line.argv())   # the full argument list handed to the process
```

Edit a file temporarily and have it restored afterwards:

```python
from pathlib import Path
from featurehack.restore import RestoreManager

path = Path("Cargo.toml")
original = path.read_text()
manager = RestoreManager(True)
with manager.set(original, path):
    path.write_text(original.replace("[dev-dependencies]", "[unused]"))
# the original text is back here
```

## What it does not do

There is no command to run: the package installs no program and does not
itself walk a workspace running `cargo` for every feature, feature
combination or toolchain. It does not parse such a tool's command-line
options, and it does not compute feature powersets or group features; a
caller builds those lists and hands them to `ProcessBuilder`.