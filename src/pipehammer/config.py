"""TOML config loading for pipehammer.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILENAME = "pipehammer.toml"


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"


@dataclass
class ExpandConfig:
    debug: bool = False


@dataclass
class RenderConfig:
    color: bool = True


@dataclass
class PipehammerConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    expand: ExpandConfig = field(default_factory=ExpandConfig)
    render: RenderConfig = field(default_factory=RenderConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find pipehammer.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_FILENAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> PipehammerConfig:
    """Parse a pipehammer.toml file into a PipehammerConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = PipehammerConfig()

    if "package" in data:
        pkg = data["package"]
        config.package = PackageConfig(
            name=pkg.get("name", "untitled"),
            version=pkg.get("version", "0.0.0"),
        )

    if "expand" in data:
        config.expand = ExpandConfig(debug=bool(data["expand"].get("debug", False)))

    if "render" in data:
        config.render = RenderConfig(color=bool(data["render"].get("color", True)))

    return config


def config_for(target: Path | None = None) -> PipehammerConfig:
    """Load the config governing `target`, or defaults when there is none."""
    try:
        return load_config(find_config(target))
    except FileNotFoundError:
        return PipehammerConfig()
