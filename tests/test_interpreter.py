import os
from pathlib import Path

import pytest

from dpm import config, errors
from dpm.interpreter import Interpreter
from dpm.types.nil import Nil
from dpm.types.symbol import Symbol


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ("DPM_BASEDIR", "DPM_DEBUG", "DPM_PRELUDE_PATH"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


def test_state_persists_across_eval_calls():
    interp = Interpreter(prelude=None)
    interp.eval("(let x 5)")
    assert interp.eval("(+ x 1)") == 6


def test_empty_source_is_nil():
    assert Interpreter(prelude=None).eval("") is Nil


def test_prelude_string():
    interp = Interpreter(prelude='(set-var "ENV" "dev")')
    assert interp.ctx.get("ENV") == "dev"


def test_auto_prelude_from_default_location(tmp_path):
    (tmp_path / ".dpm").mkdir()
    (tmp_path / ".dpm" / "prelude.dpm").write_text("(let from-prelude #t)\n")
    interp = Interpreter()
    assert interp.ctx.get("from-prelude") is True


def test_auto_prelude_paths_from_environment(tmp_path, monkeypatch):
    first, second = tmp_path / "one.dpm", tmp_path / "two.dpm"
    first.write_text("(let order (list 1))")
    second.write_text("(let order (list (list-first order) 2))")
    missing = tmp_path / "missing.dpm"
    monkeypatch.setenv("DPM_PRELUDE_PATH", os.pathsep.join(map(str, [first, missing, second])))
    assert Interpreter().ctx.get("order") == (1, 2)


def test_no_prelude_is_fine():
    assert dict(Interpreter().ctx.variables) == {}


def test_basedir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("DPM_BASEDIR", str(tmp_path))
    assert Interpreter(prelude=None).ctx.basedir == tmp_path


def test_explicit_basedir_wins(tmp_path, monkeypatch):
    monkeypatch.setenv("DPM_BASEDIR", "/elsewhere")
    assert Interpreter(prelude=None, basedir=tmp_path).ctx.basedir == tmp_path


def test_debug_from_environment(monkeypatch):
    monkeypatch.setenv("DPM_DEBUG", "yes")
    assert Interpreter(prelude=None).ctx.debug is True


def test_eval_forms_is_lazy():
    interp = Interpreter(prelude=None)
    forms = interp.eval_forms("(let a 1) (bogus) (let b 2)")
    form, value = next(forms)
    assert form == (Symbol("let"), Symbol("a"), 1)
    assert value == 1
    with pytest.raises(errors.DpmUnknownCommand):
        next(forms)
    assert "b" not in interp.ctx


def test_load_script(tmp_path):
    script = tmp_path / "script.dpm"
    script.write_text('; setup\n(set-var "A" "1")\n(concat (get-var "A") "2")\n')
    assert Interpreter(prelude=None).load(script) == "12"


def test_load_missing_script(tmp_path):
    with pytest.raises(errors.DpmCommandFailure, match="Failed to read script"):
        Interpreter(prelude=None).load(tmp_path / "missing.dpm")


def test_sessions_are_isolated():
    a, b = Interpreter(prelude=None), Interpreter(prelude=None)
    a.eval("(let x 1)")
    assert "x" not in b.ctx


# -----------------------------------------------------
# config helpers
# -----------------------------------------------------

def test_paths_from_env(monkeypatch):
    monkeypatch.setenv("DPM_TEST_PATHS", os.pathsep.join(["a", " ", "b/c"]))
    assert config.paths_from_env("DPM_TEST_PATHS", []) == [Path("a"), Path("b/c")]
    monkeypatch.delenv("DPM_TEST_PATHS")
    assert config.paths_from_env("DPM_TEST_PATHS", ["x"]) == [Path("x")]


@pytest.mark.parametrize("raw,expected", [
    ("1", True), ("true", True), ("ON", True), ("yes", True),
    ("0", False), ("false", False), ("nope", False), ("", False),
])
def test_flag_from_env(monkeypatch, raw, expected):
    monkeypatch.setenv("DPM_TEST_FLAG", raw)
    assert config.flag_from_env("DPM_TEST_FLAG") is expected


def test_default_prelude_is_under_basedir(tmp_path):
    assert config.get_prelude_paths(tmp_path) == [tmp_path / ".dpm" / "prelude.dpm"]
