import os
import sys
from pathlib import Path

import pytest

from featurehack import term
from featurehack.process import ProcessBuilder, ProcessError


@pytest.fixture(autouse=True)
def _quiet_term():
    term.reset_flags()
    term.set_coloring("never")
    yield
    term.reset_flags()


def test_argv_order():
    cmd = ProcessBuilder("cargo", "check")
    cmd.leading_arg("+1.58")
    cmd.set_propagated(["-v"], ["--ignored"])
    cmd.arg("--no-default-features")
    cmd.append_features(["a", "b"])
    assert cmd.argv() == [
        "cargo",
        "+1.58",
        "-v",
        "check",
        "--no-default-features",
        "--features",
        "a,b",
        "--",
        "--ignored",
    ]


def test_render_matches_source_style():
    cmd = ProcessBuilder("cargo", "check", "--no-default-features")
    cmd.append_features(["a", "default"])
    assert str(cmd) == "`cargo check --no-default-features --features a,default`"


def test_render_trailing_args():
    cmd = ProcessBuilder("cargo", "test")
    cmd.set_propagated([], ["--ignored"])
    assert str(cmd) == "`cargo test -- --ignored`"


def test_render_uses_stem_unless_alternate():
    program = str(Path("bin") / "cargo.exe")
    cmd = ProcessBuilder(program, "check")
    assert cmd.render(False) == "`cargo check`"
    assert cmd.render(True) == f"`{program} check`"


def test_manifest_path_hidden_unless_verbose():
    manifest = Path.cwd() / "member1" / "Cargo.toml"
    cmd = ProcessBuilder("cargo", "check", "-v").arg("--manifest-path").arg(manifest)
    assert str(cmd) == "`cargo check -v`"
    rel = str(Path("member1") / "Cargo.toml")
    with term.scoped_verbose(True):
        assert str(cmd) == f"`cargo check -v --manifest-path {rel}`"
    assert cmd.render(True) == f"`cargo check -v --manifest-path {rel}`"


def test_manifest_path_still_in_argv():
    cmd = ProcessBuilder("cargo", "check").args(["--manifest-path", "x/Cargo.toml"])
    assert cmd.argv()[-2:] == ["--manifest-path", "x/Cargo.toml"]


def test_features_list_and_empty():
    cmd = ProcessBuilder("cargo")
    assert cmd.features_list() == ""
    assert "--features" not in cmd.argv()
    cmd.append_features(["x"])
    cmd.append_features(["y", "z"])
    assert cmd.features_list() == "x,y,z"


def test_append_features_from_args_ignores_unknown(capsys):
    cmd = ProcessBuilder("cargo", "check")
    cmd.append_features_from_args(["f"], ["a", "b"], "member1", True)
    assert cmd.features_list() == ""
    assert "skipped applying unknown `f` feature to member1" in capsys.readouterr().err

    cmd2 = ProcessBuilder("cargo", "check")
    cmd2.append_features_from_args(["f"], ["f"], "member2", True)
    assert cmd2.features_list() == "f"
    assert "skipped" not in capsys.readouterr().err


def test_append_features_from_args_keeps_all_without_ignore():
    cmd = ProcessBuilder("cargo", "run")
    cmd.append_features_from_args(["real", "member2"], [], "optional_deps", False)
    assert cmd.features_list() == "real,member2"


def test_copy_is_independent():
    base = ProcessBuilder("cargo", "check")
    other = base.copy()
    other.arg("--all-features")
    other.append_features(["a"])
    assert base.argv() == ["cargo", "check"]
    assert other.argv() == ["cargo", "check", "--all-features", "--features", "a"]


def test_read_strips_trailing_newlines():
    cmd = ProcessBuilder(sys.executable, "-c", "print('hello'); print()")
    assert cmd.read() == "hello"


def test_run_success_and_failure():
    ProcessBuilder(sys.executable, "-c", "pass").run()
    with pytest.raises(ProcessError) as excinfo:
        ProcessBuilder(sys.executable, "-c", "import sys; sys.exit(3)").run()
    assert excinfo.value.returncode == 3
    assert "process didn't exit successfully" in str(excinfo.value)


def test_run_with_output_failure_includes_stderr():
    code = "import sys; sys.stderr.write('boom'); sys.exit(1)"
    with pytest.raises(ProcessError) as excinfo:
        ProcessBuilder(sys.executable, "-c", code).run_with_output()
    message = str(excinfo.value)
    assert "--- stderr\nboom" in message
    assert "--- stdout" not in message


def test_missing_program_never_executed(tmp_path):
    missing = os.fspath(tmp_path / "does-not-exist")
    with pytest.raises(ProcessError) as excinfo:
        ProcessBuilder(missing).run()
    assert "could not execute process" in str(excinfo.value)
    assert excinfo.value.returncode is None