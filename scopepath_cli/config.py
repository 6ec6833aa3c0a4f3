"""Configuration paths and defaults for ScopePath."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("SCOPEPATH_HOME", str(Path.home() / ".scopepath"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Directories never descended into when walking a source tree
SKIP_DIRS = {
    ".git", ".svn", ".hg", ".vs", ".idea", ".vscode",
    "Library", "Temp", "Logs", "obj", "bin",
    "node_modules", "__pycache__", ".venv", "venv",
}

DEFAULT_SCOPE_CONFIG = {
    "prefix": "",
    "exclude": "",
    "use_source_as_root": True,
    "collapse_duplicates": True,
    "syntax": "csharp",
    "search_root": "",
    "project_root": "",
}


def ensure_base_dir() -> None:
    """Create the configuration directory if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
