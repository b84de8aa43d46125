"""Tests for the pipehammer CLI, config, and error rendering."""

from __future__ import annotations

from pathlib import Path

import pytest

from pipehammer.cli import main
from pipehammer.config import config_for, find_config, load_config
from pipehammer.errors import (
    CompileError,
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    DispatchError,
    EvaluationError,
    Severity,
)
from pipehammer.source import GENERATED, SourceFile, Span

# --- CLI tests ---


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("check", "expand", "run", "format", "view"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestCheckCommand:
    def test_clean_project(self, runner, tmp_project):
        result = runner.invoke(main, ["check", str(tmp_project)])
        assert result.exit_code == 0
        assert "checked testproj: 1 file(s), no errors" in result.output

    def test_reports_errors(self, runner, tmp_project):
        (tmp_project / "src" / "bad.pipe").write_text("pipe f(x) -> g(x)\n")
        result = runner.invoke(main, ["check", str(tmp_project)])
        assert result.exit_code == 1
        assert "E300" in result.output

    def test_warnings_do_not_fail(self, runner, tmp_project):
        (tmp_project / "src" / "warn.pipe").write_text("pipe f(x, y) -> Ok(x)\n")
        result = runner.invoke(main, ["check", str(tmp_project)])
        assert result.exit_code == 0
        assert "W300" in result.output

    def test_no_files(self, runner, tmp_path):
        result = runner.invoke(main, ["check", str(tmp_path)])
        assert result.exit_code == 0
        assert "no .pipe files found" in result.output

    def test_debug_prints_clauses(self, runner, tmp_project):
        (tmp_project / "pipehammer.toml").write_text(
            '[package]\nname = "testproj"\n[expand]\ndebug = true\n[render]\ncolor = false\n'
        )
        result = runner.invoke(main, ["check", str(tmp_project)])
        assert result.exit_code == 0
        assert "// safe_div/2" in result.output

    def test_examples(self, runner, pipelines_file):
        result = runner.invoke(main, ["check", str(pipelines_file)])
        assert result.exit_code == 0


class TestExpandCommand:
    def test_listing(self, runner, tmp_project):
        result = runner.invoke(main, ["expand", "--no-color", str(tmp_project / "src" / "math.pipe")])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "// safe_div/2"
        assert lines[1] == "def safe_div(Error(e), _) -> Error(e)  // error-passthrough"
        assert "// add/2" in lines

    def test_color_from_config(self, runner, tmp_project):
        result = runner.invoke(main, ["expand", str(tmp_project / "src" / "math.pipe")])
        assert "\x1b[" not in result.output

    def test_color_flag(self, runner, tmp_project):
        result = runner.invoke(main, ["expand", "--color", str(tmp_project / "src" / "math.pipe")])
        assert result.exit_code == 0
        assert "\x1b[" in result.output

    def test_checker_errors_still_list_clauses(self, runner, tmp_path):
        bad = tmp_path / "bad.pipe"
        bad.write_text("pipe f(x) -> g(x)\n")
        result = runner.invoke(main, ["expand", "--no-color", str(bad)])
        assert result.exit_code == 1
        assert "def f(Ok(x1)) -> f(x1)  // ok-unwrap" in result.output

    def test_parse_error(self, runner, tmp_path):
        bad = tmp_path / "bad.pipe"
        bad.write_text("pipe f(x) x\n")
        result = runner.invoke(main, ["expand", "--no-color", str(bad)])
        assert result.exit_code == 1
        assert "E200" in result.output


class TestRunCommand:
    def test_plain_arguments(self, runner, tmp_project):
        math = str(tmp_project / "src" / "math.pipe")
        result = runner.invoke(main, ["run", math, "safe_div", "4", "2"])
        assert result.exit_code == 0
        assert result.output.strip() == "Ok(2.0)"

    def test_result_arguments(self, runner, tmp_project):
        math = str(tmp_project / "src" / "math.pipe")
        result = runner.invoke(main, ["run", math, "add", "Ok(1)", "2"])
        assert result.output.strip() == "Ok(3)"
        result = runner.invoke(main, ["run", math, "add", "Error(:boom)", "2"])
        assert result.output.strip() == "Error(:boom)"

    def test_error_value(self, runner, tmp_project):
        math = str(tmp_project / "src" / "math.pipe")
        result = runner.invoke(main, ["run", math, "safe_div", "1", "0"])
        assert result.exit_code == 0
        assert result.output.strip() == "Error(:division_by_zero)"

    def test_dispatch_failure(self, runner, tmp_path):
        source = tmp_path / "p.pipe"
        source.write_text("pipe positive(x) when x > 0 -> Ok(x)\n")
        result = runner.invoke(main, ["run", str(source), "positive", "--", "-1"])
        assert result.exit_code == 1
        assert "R200" in result.output

    def test_unknown_function(self, runner, tmp_project):
        math = str(tmp_project / "src" / "math.pipe")
        result = runner.invoke(main, ["run", math, "nope", "1"])
        assert result.exit_code == 1
        assert "R102" in result.output

    def test_bad_argument(self, runner, tmp_project):
        math = str(tmp_project / "src" / "math.pipe")
        result = runner.invoke(main, ["run", math, "add", "1 +", "2"])
        assert result.exit_code == 1
        assert "E200" in result.output

    def test_compile_error(self, runner, tmp_path):
        source = tmp_path / "bad.pipe"
        source.write_text("pipe f(x) -> g(x)\n")
        result = runner.invoke(main, ["run", str(source), "f", "1"])
        assert result.exit_code == 1
        assert "E300" in result.output


class TestFormatCommand:
    def test_check_clean(self, runner, tmp_project):
        result = runner.invoke(main, ["format", "--check", str(tmp_project)])
        assert result.exit_code == 0

    def test_check_reports_unformatted(self, runner, tmp_path):
        source = tmp_path / "m.pipe"
        source.write_text("pipe   f(x)->x\n")
        result = runner.invoke(main, ["format", "--check", str(tmp_path)])
        assert result.exit_code == 1
        assert "would reformat" in result.output
        assert source.read_text() == "pipe   f(x)->x\n"

    def test_rewrites_files(self, runner, tmp_path):
        source = tmp_path / "m.pipe"
        source.write_text("pipe   f(x)->x\n")
        result = runner.invoke(main, ["format", str(tmp_path)])
        assert result.exit_code == 0
        assert "formatted" in result.output
        assert source.read_text() == "pipe f(x) -> x\n"

    def test_stdin(self, runner):
        result = runner.invoke(main, ["format", "--stdin"], input="pipe f( x )->x\n")
        assert result.exit_code == 0
        assert result.output == "pipe f(x) -> x\n"

    def test_stdin_parse_error(self, runner):
        result = runner.invoke(main, ["format", "--stdin"], input="pipe f(x) x\n")
        assert result.exit_code == 1
        assert "E200" in result.output

    def test_parse_error_in_file(self, runner, tmp_path):
        (tmp_path / "bad.pipe").write_text("pipe f(x) x\n")
        result = runner.invoke(main, ["format", str(tmp_path)])
        assert result.exit_code == 1


class TestViewCommand:
    def test_dumps_ast(self, runner, tmp_project):
        result = runner.invoke(main, ["view", str(tmp_project / "src" / "math.pipe")])
        assert result.exit_code == 0
        assert "Module" in result.output
        assert "PipeDef" in result.output
        assert "LiteralPattern" in result.output
        assert "synthesize: True" in result.output

    def test_map_entries(self, runner, tmp_path):
        source = tmp_path / "m.pipe"
        source.write_text("pipe f(%{a: a}) -> Ok(a)\n")
        result = runner.invoke(main, ["view", str(source)])
        assert result.exit_code == 0
        assert "MapPattern" in result.output
        assert "a:" in result.output


# --- Config tests ---


class TestConfig:
    def test_load_config(self, tmp_project):
        config = load_config(tmp_project / "pipehammer.toml")
        assert config.package.name == "testproj"
        assert config.package.version == "1.0.0"
        assert config.render.color is False
        assert config.expand.debug is False

    def test_find_config_walks_up(self, tmp_project):
        found = find_config(tmp_project / "src")
        assert found == (tmp_project / "pipehammer.toml").resolve()

    def test_find_config_from_file(self, tmp_project):
        found = find_config(tmp_project / "src" / "math.pipe")
        assert found.name == "pipehammer.toml"

    def test_config_for_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr("pipehammer.config.CONFIG_FILENAME", "absent-pipehammer.toml")
        config = config_for(tmp_path)
        assert config.package.name == "untitled"
        assert config.render.color is True
        assert config.expand.debug is False

    def test_find_config_missing(self, tmp_path, monkeypatch):
        monkeypatch.setattr("pipehammer.config.CONFIG_FILENAME", "absent-pipehammer.toml")
        with pytest.raises(FileNotFoundError):
            find_config(tmp_path)

    def test_partial_config(self, tmp_path):
        (tmp_path / "pipehammer.toml").write_text("[expand]\ndebug = true\n")
        config = config_for(tmp_path)
        assert config.expand.debug is True
        assert config.package.name == "untitled"
        assert config.render.color is True


# --- Diagnostic rendering ---


class TestDiagnosticRenderer:
    def test_render_with_source(self, tmp_path):
        source = tmp_path / "m.pipe"
        source.write_text("pipe f(x) -> g(x)\n")
        diag = Diagnostic(
            severity=Severity.ERROR,
            code="E300",
            message="undefined function 'g/1'",
            labels=[DiagnosticLabel(span=Span(str(source), 1, 14, 1, 17), message="here")],
            notes=["declared as g/2"],
        )
        text = DiagnosticRenderer(color=False).render(diag)
        assert text.splitlines()[0] == "error[E300]: undefined function 'g/1'"
        assert f"--> {source}:1:14" in text
        assert "pipe f(x) -> g(x)" in text
        assert "^^^^" in text
        assert "here" in text
        assert "= note: declared as g/2" in text

    def test_in_memory_source(self):
        renderer = DiagnosticRenderer(color=False)
        renderer.add_source(SourceFile(Path("<arg 1>"), "1 +"))
        diag = Diagnostic(
            severity=Severity.WARNING,
            code="W300",
            message="m",
            labels=[DiagnosticLabel(span=Span("<arg 1>", 1, 3, 1, 3), message="")],
        )
        text = renderer.render(diag)
        assert text.startswith("warning[W300]: m")
        assert "1 +" in text

    def test_missing_file_keeps_location(self, tmp_path):
        missing = tmp_path / "gone.pipe"
        diag = Diagnostic(
            severity=Severity.ERROR,
            code="E301",
            message="m",
            labels=[DiagnosticLabel(span=Span(str(missing), 3, 2, 3, 4), message="")],
        )
        lines = DiagnosticRenderer(color=False).render(diag).splitlines()
        assert lines[1] == f"  --> {missing}:3:2"
        assert lines[-1] == "     |  ^^^"

    def test_generated_span_is_skipped(self):
        diag = Diagnostic(
            severity=Severity.NOTE,
            code="N000",
            message="generated",
            labels=[DiagnosticLabel(span=GENERATED, message="")],
        )
        assert DiagnosticRenderer(color=False).render(diag) == "note[N000]: generated"

    def test_color(self):
        diag = Diagnostic(severity=Severity.ERROR, code="E1", message="m")
        assert "\033[" in DiagnosticRenderer(color=True).render(diag)


class TestErrors:
    def test_compile_error_message(self):
        diags = [
            Diagnostic(severity=Severity.ERROR, code="E100", message="a"),
            Diagnostic(severity=Severity.ERROR, code="E200", message="b"),
        ]
        err = CompileError(diags)
        assert str(err) == "2 error(s): a; b"
        assert err.diagnostics == diags

    def test_runtime_error_to_diagnostic(self):
        span = Span("m.pipe", 2, 1, 2, 5)
        diag = EvaluationError("boom", span).to_diagnostic()
        assert (diag.code, diag.message) == ("R100", "boom")
        assert diag.labels[0].span == span

    def test_dispatch_error_without_span(self):
        diag = DispatchError("f/1", (1,), "1").to_diagnostic()
        assert diag.code == "R200"
        assert diag.labels == []
        assert diag.message == "no clause of f/1 matches arguments (1)"
