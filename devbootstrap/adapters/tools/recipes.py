"""
Tool recipes — how each tool is detected and installed per platform.

Each recipe declares:
    label           human-readable name
    cli             executable probed on PATH (per platform)
    version_args    arguments that print the version
    version_pattern regex with one group capturing the version
    windows         {"winget": id} | {"pip": package} | {"command": [...]}
    linux           {"apt": [packages]} | {"pipx": package}
    post_install    optional command run (unprivileged) after installing
    requires_linux  tool only makes sense on a Linux target
    hint            manual fix suggestion, shown in remediation output
"""

from __future__ import annotations

from typing import Any

TOOL_RECIPES: dict[str, dict[str, Any]] = {
    "git": {
        "label": "Git",
        "cli": {"windows": "git", "linux": "git"},
        "version_args": ["--version"],
        "version_pattern": r"git version\s+(\d+\.\d+\.\d+)",
        "windows": {"winget": "Git.Git"},
        "linux": {"apt": ["git"]},
        "hint": {
            "windows": "winget install --id Git.Git -e",
            "linux": "sudo apt-get install -y git",
        },
    },
    "git-lfs": {
        "label": "Git LFS",
        "cli": {"windows": "git-lfs", "linux": "git-lfs"},
        "version_args": ["version"],
        "version_pattern": r"git-lfs/(\d+\.\d+\.\d+)",
        "windows": {"winget": "GitHub.GitLFS"},
        "linux": {"apt": ["git-lfs"]},
        "post_install": ["git", "lfs", "install"],
        "hint": {
            "windows": "winget install --id GitHub.GitLFS -e && git lfs install",
            "linux": "sudo apt-get install -y git-lfs && git lfs install",
        },
    },
    "python": {
        "label": "Python",
        "cli": {"windows": "python", "linux": "python3"},
        "version_args": ["--version"],
        "version_pattern": r"Python\s+(\d+\.\d+\.\d+)",
        "windows": {"winget": "Python.Python.3.12"},
        "linux": {"apt": ["python3", "python3-pip", "python3-venv", "pipx"]},
        "hint": {
            "windows": "winget install --id Python.Python.3.12 -e",
            "linux": "sudo apt-get install -y python3 python3-pip python3-venv pipx",
        },
    },
    "poetry": {
        "label": "Poetry",
        "cli": {"windows": "poetry", "linux": "poetry"},
        "version_args": ["--version"],
        "version_pattern": r"version\s+(\d+\.\d+\.\d+)",
        "windows": {"pip": "poetry"},
        "linux": {"pipx": "poetry"},
        "hint": {
            "windows": "python -m pip install --user poetry",
            "linux": "pipx install poetry",
        },
    },
    "docker": {
        "label": "Docker",
        "cli": {"windows": "docker", "linux": "docker"},
        "version_args": ["--version"],
        "version_pattern": r"Docker version\s+(\d+\.\d+\.\d+)",
        "windows": {"winget": "Docker.DockerDesktop"},
        "linux": {"apt": ["docker.io", "docker-compose-v2"]},
        "hint": {
            "windows": "winget install --id Docker.DockerDesktop -e (then start Docker Desktop)",
            "linux": "sudo apt-get install -y docker.io && sudo usermod -aG docker $USER",
        },
    },
    "wsl": {
        "label": "Windows Subsystem for Linux",
        "cli": {"windows": "wsl.exe"},
        "version_args": ["--version"],
        "version_pattern": r"(\d+\.\d+\.\d+)",
        "windows": {"command": ["wsl.exe", "--install", "--no-launch"]},
        "hint": {
            "windows": "wsl --install (run from an elevated terminal, then reboot)",
        },
    },
}


def get_recipe(tool: str) -> dict[str, Any] | None:
    return TOOL_RECIPES.get(tool)


def manual_hint(tool: str, platform: str) -> str | None:
    """Manual installation suggestion for remediation output."""
    recipe = TOOL_RECIPES.get(tool)
    if recipe is None:
        return None
    return recipe.get("hint", {}).get(platform)
