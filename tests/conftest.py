"""Pytest configuration and fixtures for ScopePath tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator

import pytest

from scopepath_cli.models import SuggestionInput


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch):
    """Point the config file at a throwaway directory for every test."""
    base_dir = tmp_path_factory.mktemp("scopepath_home")
    monkeypatch.setattr("scopepath_cli.config.BASE_DIR", base_dir)
    monkeypatch.setattr("scopepath_cli.config.CONFIG_FILE", base_dir / "config.toml")
    return base_dir


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to the read-only sample project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def sample_project(temp_dir: Path, sample_project_path: Path) -> Path:
    """Copy the sample project somewhere the tests may modify it."""
    target = temp_dir / "project"
    shutil.copytree(sample_project_path, target)
    return target


@pytest.fixture
def game_options(sample_project: Path) -> SuggestionInput:
    """Suggestion settings that use the Game folder as root."""
    return SuggestionInput(root_path=str(sample_project / "Game"))


@pytest.fixture
def write_source(temp_dir: Path):
    """Write a source file below temp_dir and return its path."""

    def _write(relative: str, text: str) -> Path:
        path = temp_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(text.encode("utf-8"))
        return path

    return _write


@pytest.fixture
def snapshot():
    """Return a function mapping every file below a folder to its bytes."""

    def _snapshot(folder: Path) -> Dict[str, bytes]:
        return {
            str(p.relative_to(folder)): p.read_bytes()
            for p in sorted(folder.rglob("*"))
            if p.is_file()
        }

    return _snapshot
