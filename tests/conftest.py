from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from pipehammer.build import compile_file

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


@pytest.fixture
def pipelines_file() -> Path:
    return EXAMPLES_DIR / "pipelines.pipe"


@pytest.fixture
def pipelines(pipelines_file):
    """The installed Program of examples/pipelines.pipe."""
    result = compile_file(pipelines_file)
    assert result.ok, [f"{d.code}: {d.message}" for d in result.diagnostics]
    return result.program


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tmp_project(tmp_path):
    """Create a minimal pipehammer project in a temp dir."""
    (tmp_path / "pipehammer.toml").write_text(
        '[package]\nname = "testproj"\nversion = "1.0.0"\n'
        "[render]\ncolor = false\n"
    )
    src = tmp_path / "src"
    src.mkdir()
    (src / "math.pipe").write_text(
        "pipe safe_div(_x, 0) -> Error(:division_by_zero)\n"
        "pipe safe_div(x, y) -> Ok(x / y)\n"
        "\n"
        "pipe add(x, y) -> Ok(x + y)\n"
    )
    return tmp_path
