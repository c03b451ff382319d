"""
Configuration loader — reads devbootstrap.yml into BootstrapSettings.

The file is optional.  Without one, the built-in defaults below apply:
tool version requirements and the catalog of project loops offered in
the selection stage.  A file only needs to list what it overrides;
requirement and loop entries are merged over the defaults by key.

Example::

    requirements:
      python: {minimum_version: "3.11", recommended_version: "3.12"}
    loops:
      - name: go-service-linux
        description: Go HTTP service
        platform: linux
    wsl_distro: Ubuntu-24.04
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from devbootstrap.core.errors import ConfigError
from devbootstrap.core.models.tool import VersionRequirement

logger = logging.getLogger(__name__)

CONFIG_FILE = "devbootstrap.yml"


class LoopDefinition(BaseModel):
    """A project template the bootstrap phase can create."""

    name: str
    description: str = ""
    platform: Literal["windows", "linux", "any"] = "any"


DEFAULT_REQUIREMENTS: dict[str, VersionRequirement] = {
    "git": VersionRequirement(minimum_version="2.30.0", recommended_version="2.45.0"),
    "git-lfs": VersionRequirement(minimum_version="3.0.0", recommended_version="3.5.0"),
    "python": VersionRequirement(minimum_version="3.10.0", recommended_version="3.12.0"),
    "poetry": VersionRequirement(minimum_version="1.5.0", recommended_version="1.8.0"),
    "docker": VersionRequirement(minimum_version="24.0.0", recommended_version="26.0.0"),
    "wsl": VersionRequirement(minimum_version="2.0.0", recommended_version="2.1.0"),
}

DEFAULT_LOOPS: list[LoopDefinition] = [
    LoopDefinition(name="python-cli", description="Python command-line tool"),
    LoopDefinition(
        name="python-fast-api-linux",
        description="FastAPI web service (Linux/WSL)",
        platform="linux",
    ),
    LoopDefinition(
        name="python-mcp-server",
        description="Model Context Protocol server",
        platform="linux",
    ),
    LoopDefinition(
        name="dotnet-console-windows",
        description=".NET console application",
        platform="windows",
    ),
]


class BootstrapSettings(BaseModel):
    """Validated contents of devbootstrap.yml (with defaults filled in)."""

    requirements: dict[str, VersionRequirement] = Field(
        default_factory=lambda: dict(DEFAULT_REQUIREMENTS),
    )
    loops: list[LoopDefinition] = Field(default_factory=lambda: list(DEFAULT_LOOPS))
    wsl_distro: str | None = None
    # Absolute path of the file these settings came from, if any
    source_path: str | None = None

    def get_version_requirement(self, tool: str) -> VersionRequirement:
        """Requirement for ``tool``; an empty requirement if none is configured."""
        return self.requirements.get(tool, VersionRequirement())

    def get_loop(self, name: str) -> LoopDefinition | None:
        wanted = name.strip().lower()
        for loop in self.loops:
            if loop.name.lower() == wanted:
                return loop
        return None


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for devbootstrap.yml starting from the given directory, walking up."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_settings(path: Path | None = None, search: bool = True) -> BootstrapSettings:
    """Load settings from ``path`` (or the nearest devbootstrap.yml).

    Returns defaults when no file is found.  An explicit ``path`` that
    does not exist is an error.

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    if path is None and search:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found, using built-in defaults", CONFIG_FILE)
        return BootstrapSettings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        settings = BootstrapSettings()
    elif not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    else:
        settings = parse_settings(data, source=str(path))
    return settings.model_copy(update={"source_path": str(path.resolve())})


def parse_settings(data: dict, source: str = "<memory>") -> BootstrapSettings:
    """Validate a settings mapping and merge it over the defaults."""
    try:
        overrides = {
            tool: VersionRequirement.model_validate(req or {})
            for tool, req in (data.get("requirements") or {}).items()
        }
        loops = [LoopDefinition.model_validate(item) for item in (data.get("loops") or [])]
    except (ValidationError, AttributeError, TypeError) as e:
        raise ConfigError(f"Invalid configuration in {source}: {e}") from e

    requirements = dict(DEFAULT_REQUIREMENTS)
    requirements.update(overrides)

    merged_loops = {loop.name: loop for loop in DEFAULT_LOOPS}
    merged_loops.update({loop.name: loop for loop in loops})

    settings = BootstrapSettings(
        requirements=requirements,
        loops=list(merged_loops.values()),
        wsl_distro=data.get("wsl_distro"),
    )
    logger.info(
        "Loaded settings from %s (%d requirements, %d loops)",
        source, len(settings.requirements), len(settings.loops),
    )
    return settings
