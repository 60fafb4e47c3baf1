import pytest

from featurehack import term
from featurehack.term import Coloring


@pytest.fixture(autouse=True)
def clean_state():
    term.reset_flags()
    term.set_coloring("never")
    yield
    term.reset_flags()
    term.set_coloring("never")


def test_parse_coloring_values():
    assert term.parse_coloring("auto") is Coloring.AUTO
    assert term.parse_coloring("always") is Coloring.ALWAYS
    assert term.parse_coloring("never") is Coloring.NEVER


def test_parse_coloring_invalid():
    with pytest.raises(ValueError, match="must be auto, always, or never, but found `x`"):
        term.parse_coloring("x")


def test_set_coloring_explicit():
    term.set_coloring("always")
    assert term.coloring() is Coloring.ALWAYS


def test_set_coloring_invalid_option():
    with pytest.raises(ValueError, match="argument for --color"):
        term.set_coloring("bogus")


def test_set_coloring_from_env(monkeypatch):
    monkeypatch.setenv("CARGO_TERM_COLOR", "always")
    term.set_coloring(None)
    assert term.coloring() is Coloring.ALWAYS


def test_set_coloring_invalid_env(monkeypatch):
    monkeypatch.setenv("CARGO_TERM_COLOR", "sometimes")
    with pytest.raises(ValueError, match="CARGO_TERM_COLOR must be auto"):
        term.set_coloring(None)


def test_auto_without_tty_becomes_never(capsys):
    term.set_coloring("auto")
    assert term.coloring() is Coloring.NEVER


def test_warn_sets_flag_and_prints(capsys):
    assert not term.had_warning()
    term.warn("careful")
    assert term.had_warning()
    assert not term.had_error()
    assert capsys.readouterr().err == "warning: careful\n"


def test_error_sets_flag_and_prints(capsys):
    term.error("broken")
    assert term.had_error()
    assert capsys.readouterr().err == "error: broken\n"


def test_info_sets_no_flag(capsys):
    term.info("hello")
    assert not term.had_error()
    assert not term.had_warning()
    assert capsys.readouterr().err == "info: hello\n"


def test_colored_output_has_escape_codes(capsys):
    term.set_coloring("always")
    term.error("broken")
    err = capsys.readouterr().err
    assert "\x1b[" in err
    assert "error" in err
    assert err.endswith("broken\n")


def test_scoped_verbose_restores():
    term.set_verbose(True)
    with term.scoped_verbose(False):
        assert term.is_verbose() is False
    assert term.is_verbose() is True


def test_reset_flags_clears(capsys):
    term.set_verbose(True)
    term.warn("w")
    term.error("e")
    term.reset_flags()
    assert (term.is_verbose(), term.had_warning(), term.had_error()) == (False, False, False)