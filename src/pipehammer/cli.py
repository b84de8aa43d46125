"""pipehammer CLI."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from pipehammer import __version__
from pipehammer.build import BuildResult, compile_file
from pipehammer.config import config_for
from pipehammer.errors import CompileError, Diagnostic, DiagnosticRenderer, PipehammerError
from pipehammer.evaluator import Environment
from pipehammer.formatter import PipeFormatter
from pipehammer.lexer import Lexer
from pipehammer.parser import Parser, parse_expression
from pipehammer.source import SourceFile
from pipehammer.values import show


def _pipe_files(target: Path) -> list[Path]:
    return sorted(target.rglob("*.pipe")) if target.is_dir() else [target]


def _report(diagnostics: list[Diagnostic], renderer: DiagnosticRenderer) -> None:
    for diag in diagnostics:
        click.echo(renderer.render(diag), err=True)


def _echo_clauses(result: BuildResult, *, color: bool) -> None:
    listing = PipeFormatter().format_clauses(result.clauses)
    if color:
        from pipehammer.highlight import highlight_source

        listing = highlight_source(listing)
    click.echo(listing, nl=False, color=color)


@click.group()
@click.version_option(__version__, prog_name="pipehammer")
def main() -> None:
    """Clause synthesis for Ok/Error pipelines."""


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
def check(path: str) -> None:
    """Check .pipe files and report diagnostics."""
    target = Path(path)
    config = config_for(target)
    renderer = DiagnosticRenderer(color=config.render.color)

    files = _pipe_files(target)
    if not files:
        click.echo("warning: no .pipe files found", err=True)
        return

    had_errors = False
    for pipe_file in files:
        result = compile_file(pipe_file)
        _report(result.diagnostics, renderer)
        if not result.ok:
            had_errors = True
        elif config.expand.debug:
            _echo_clauses(result, color=config.render.color)

    if had_errors:
        raise SystemExit(1)
    click.echo(f"checked {config.package.name}: {len(files)} file(s), no errors")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--color/--no-color", default=None, help="Highlight the clause listing.")
def expand(file: str, color: bool | None) -> None:
    """Print the clauses generated for a .pipe file, in dispatch order."""
    target = Path(file)
    config = config_for(target)
    use_color = config.render.color if color is None else color
    renderer = DiagnosticRenderer(color=use_color)

    result = compile_file(target)
    _report(result.diagnostics, renderer)
    if result.module is None:
        raise SystemExit(1)
    _echo_clauses(result, color=use_color)
    if not result.ok:
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("function")
@click.argument("args", nargs=-1)
def run(file: str, function: str, args: tuple[str, ...]) -> None:
    """Call FUNCTION from FILE; each ARG is parsed as an expression."""
    target = Path(file)
    config = config_for(target)
    renderer = DiagnosticRenderer(color=config.render.color)

    result = compile_file(target)
    _report(result.diagnostics, renderer)
    if not result.ok:
        raise SystemExit(1)
    if config.expand.debug:
        _echo_clauses(result, color=config.render.color)

    program = result.program
    try:
        values = []
        for i, text in enumerate(args):
            name = f"<arg {i + 1}>"
            renderer.add_source(SourceFile(Path(name), text))
            expr = parse_expression(text, name)
            values.append(program.evaluator.evaluate(expr, Environment()))
        value = program.call(function, *values)
    except CompileError as e:
        _report(e.diagnostics, renderer)
        raise SystemExit(1)
    except PipehammerError as e:
        click.echo(renderer.render(e.to_diagnostic()), err=True)
        raise SystemExit(1)

    click.echo(show(value))


@main.command(name="format")
@click.argument("path", default=".", type=click.Path(exists=True))
@click.option("--check", is_flag=True, help="Check formatting without modifying files.")
@click.option("--stdin", "use_stdin", is_flag=True, help="Read from stdin, write to stdout.")
def format_cmd(path: str, check: bool, use_stdin: bool) -> None:
    """Format .pipe source files."""
    formatter = PipeFormatter()

    if use_stdin:
        source = sys.stdin.read()
        try:
            tokens = Lexer(source, "<stdin>").lex()
            module = Parser(tokens, "<stdin>").parse()
        except CompileError as e:
            renderer = DiagnosticRenderer(color=False)
            renderer.add_source(SourceFile(Path("<stdin>"), source))
            _report(e.diagnostics, renderer)
            raise SystemExit(1)
        formatted = formatter.format(module)
        if check:
            if formatted != source:
                raise SystemExit(1)
        else:
            sys.stdout.write(formatted)
        return

    target = Path(path)
    config = config_for(target)
    pipe_files = _pipe_files(target)

    if not pipe_files:
        click.echo("no .pipe files found", err=True)
        return

    needs_formatting = False
    had_errors = False
    for pipe_file in pipe_files:
        source = pipe_file.read_text()
        filename = str(pipe_file)
        try:
            tokens = Lexer(source, filename).lex()
            module = Parser(tokens, filename).parse()
        except CompileError as e:
            _report(e.diagnostics, DiagnosticRenderer(color=config.render.color))
            had_errors = True
            continue

        formatted = formatter.format(module)
        if formatted != source:
            if check:
                click.echo(f"would reformat {filename}")
                needs_formatting = True
            else:
                pipe_file.write_text(formatted)
                click.echo(f"formatted {filename}")

    if had_errors or (check and needs_formatting):
        raise SystemExit(1)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def view(file: str) -> None:
    """View the AST of a .pipe source file."""
    source = Path(file).read_text()
    filename = str(file)

    try:
        tokens = Lexer(source, filename).lex()
        module = Parser(tokens, filename).parse()
    except CompileError as e:
        renderer = DiagnosticRenderer(color=config_for(Path(file)).render.color)
        _report(e.diagnostics, renderer)
        raise SystemExit(1)

    _dump_ast(module, 0)


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            if field_name == "span":
                continue
            value = getattr(node, field_name)
            if isinstance(value, list):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_ast(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2)
            elif value is not None:
                click.echo(f"{indent}  {field_name}: {value!r}")
    elif isinstance(node, tuple):
        # map and record entries
        key, value = node
        click.echo(f"{indent}{key}:")
        _dump_ast(value, depth + 1)
    else:
        click.echo(f"{indent}{name}: {node!r}")
