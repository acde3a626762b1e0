import io
import logging

import pytest

from dpm import __version__, log
from dpm.commands import tags
from dpm.cli import main, parse_cfg, repl
from dpm.interpreter import Interpreter


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ("DPM_BASEDIR", "DPM_DEBUG", "DPM_PRELUDE_PATH"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    # keep the stderr handler from binding to a captured stream
    monkeypatch.setattr(log, "_configured", True)


def test_expressions_share_one_session(capsys):
    assert main(["(let x 2)", "(print (+ x 40))"]) == 0
    assert capsys.readouterr().out == "42\n"


def test_results_are_not_echoed(capsys):
    assert main(["(+ 1 2)"]) == 0
    assert capsys.readouterr().out == ""


def test_error_exits_with_status_one(capsys):
    assert main(['(print "before")', "(bogus)", '(print "after")']) == 1
    out, err = capsys.readouterr()
    assert out == "before\n"
    assert err == "error: Unknown command: bogus\n"


def test_parse_error_exits_with_status_one(capsys):
    assert main(["(print 1"]) == 1
    assert "Unbalanced parentheses" in capsys.readouterr().err


def test_cfg_values_are_set_before_evaluation(capsys):
    assert main(["-c", "NAME=web", "--cfg", "URL=http://x?a=b", '(print (get-var "NAME") (get-var "URL"))']) == 0
    assert capsys.readouterr().out == "web http://x?a=b\n"


@pytest.mark.parametrize("bad", ["novalue", "=value"])
def test_bad_cfg_is_a_usage_error(capsys, bad):
    with pytest.raises(SystemExit) as info:
        main(["-c", bad, "(+ 1 2)"])
    assert info.value.code == 2
    assert "Invalid configuration format" in capsys.readouterr().err


def test_parse_cfg_keeps_everything_after_the_first_equals():
    assert parse_cfg("A=b=c") == ("A", "b=c")
    assert parse_cfg("EMPTY=") == ("EMPTY", "")


def test_basedir_option(tmp_path, capsys):
    sub = tmp_path / "svc"
    sub.mkdir()
    assert main(["-C", str(sub), "(print (basedir))"]) == 0
    assert capsys.readouterr().out == f"{sub}\n"


def test_basedir_option_must_exist(tmp_path, capsys):
    with pytest.raises(SystemExit) as info:
        main(["-C", str(tmp_path / "missing"), "(+ 1 2)"])
    assert info.value.code == 2


def test_script_files_run_before_expressions(tmp_path, capsys):
    script = tmp_path / "setup.dpm"
    script.write_text('(set-var "STAGE" "script")\n')
    assert main(["-f", str(script), '(print (get-var "STAGE"))']) == 0
    assert capsys.readouterr().out == "script\n"


def test_missing_script_file(tmp_path, capsys):
    assert main(["-f", str(tmp_path / "nope.dpm")]) == 1
    assert "Failed to read script" in capsys.readouterr().err


def test_prelude_sees_cfg_values(tmp_path, monkeypatch, capsys):
    prelude = tmp_path / "prelude.dpm"
    prelude.write_text('(set-var "GREETING" "hello ${NAME}")\n')
    monkeypatch.setenv("DPM_PRELUDE_PATH", str(prelude))
    assert main(["-c", "NAME=dpm", '(print (get-var "GREETING"))']) == 0
    assert capsys.readouterr().out == "hello dpm\n"


def test_failing_prelude(tmp_path, monkeypatch, capsys):
    prelude = tmp_path / "prelude.dpm"
    prelude.write_text("(bogus)")
    monkeypatch.setenv("DPM_PRELUDE_PATH", str(prelude))
    assert main(["(+ 1 2)"]) == 1
    assert capsys.readouterr().err == "error: Unknown command: bogus\n"


def test_verbose_enables_debug_logging():
    assert main(["-v", "(+ 1 2)"]) == 0
    assert logging.getLogger("dpm").isEnabledFor(logging.DEBUG)


def test_version(capsys):
    with pytest.raises(SystemExit) as info:
        main(["--version"])
    assert info.value.code == 0
    assert capsys.readouterr().out.strip() == f"dpm {__version__}"


def test_no_arguments_starts_the_prompt(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("(+ 1 2)\n"))
    assert main([]) == 0
    assert capsys.readouterr().out == "dpm> 3\ndpm> \n"


# -----------------------------------------------------
# Interactive prompt
# -----------------------------------------------------

def run_repl(text, tmp_path):
    interp = Interpreter(prelude=None, basedir=tmp_path, debug=False)
    stdout = io.StringIO()
    status = repl(interp, stdin=io.StringIO(text), stdout=stdout)
    return status, stdout.getvalue(), interp


def test_repl_echoes_readable_values(tmp_path):
    status, out, _ = run_repl('(+ 1 2)\n"a\\"b"\n(list 1 "x" nil #t)\n', tmp_path)
    assert status == 0
    assert out == 'dpm> 3\ndpm> "a\\"b"\ndpm> (1 "x" nil #t)\ndpm> \n'


def test_repl_continues_incomplete_input(tmp_path):
    _, out, interp = run_repl("(let x\n  5)\nx\n", tmp_path)
    assert out == "dpm> ...> 5\ndpm> 5\ndpm> \n"
    assert interp.ctx.get("x") == 5


def test_repl_continues_unterminated_string(tmp_path):
    _, out, _ = run_repl('(concat "a\nb")\n', tmp_path)
    assert out == 'dpm> ...> "a\\nb"\ndpm> \n'


def test_repl_reports_errors_and_keeps_going(tmp_path, capsys):
    _, out, interp = run_repl("(let a 1) (bogus) (let b 2)\n)\n(+ a 1)\n", tmp_path)
    assert out == "dpm> 1\ndpm> dpm> 2\ndpm> \n"
    err = capsys.readouterr().err.splitlines()
    assert err[0] == "error: Unknown command: bogus"
    assert err[1].startswith("error: Unexpected ')'")
    assert "b" not in interp.ctx


# -----------------------------------------------------
# Hostile input
# -----------------------------------------------------

def test_deeply_nested_expression_exits_with_status_one(capsys):
    assert main(["(list " * 400 + "1" + ")" * 400]) == 1
    assert "nested too deeply" in capsys.readouterr().err


def test_non_utf8_script_exits_with_status_one(tmp_path, capsys):
    script = tmp_path / "latin1.dpm"
    script.write_bytes(b'(print "\xff\xfe")\n')
    assert main(["-f", str(script)]) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert err.startswith(f"error: Failed to read script {script}")


def test_non_utf8_prelude_exits_with_status_one(tmp_path, monkeypatch, capsys):
    prelude = tmp_path / "prelude.dpm"
    prelude.write_bytes(b"\xff(let a 1)")
    monkeypatch.setenv("DPM_PRELUDE_PATH", str(prelude))
    assert main(["(+ 1 2)"]) == 1
    assert "Failed to read script" in capsys.readouterr().err


class InterruptingStdin:
    """Replays lines, raising KeyboardInterrupt wherever a line is None."""

    def __init__(self, lines):
        self.lines = list(lines)

    def readline(self):
        if not self.lines:
            return ""
        line = self.lines.pop(0)
        if line is None:
            raise KeyboardInterrupt
        return line


def test_repl_ctrl_c_discards_pending_input(tmp_path):
    interp = Interpreter(prelude=None, basedir=tmp_path, debug=False)
    stdout = io.StringIO()
    stdin = InterruptingStdin(["(let x\n", None, "(+ 1 2)\n"])
    assert repl(interp, stdin=stdin, stdout=stdout) == 0
    assert stdout.getvalue() == "dpm> ...> \ndpm> 3\ndpm> \n"
    assert "x" not in interp.ctx


def test_repl_ctrl_c_during_a_command(tmp_path, capsys):
    interp = Interpreter(prelude=None, basedir=tmp_path, debug=False)

    def interrupted(ctx, args):
        raise KeyboardInterrupt

    interp.registry.register_handler("slow", "Interrupted mid-run", tags.CORE, interrupted)
    stdout = io.StringIO()
    status = repl(interp, stdin=io.StringIO("(slow) (let after 1)\n(+ 1 1)\n"), stdout=stdout)
    assert status == 0
    assert stdout.getvalue() == "dpm> dpm> 2\ndpm> \n"
    assert capsys.readouterr().err == "error: interrupted\n"
    assert "after" not in interp.ctx
