"""Shared fixtures for FilePrune tests."""

from pathlib import Path

import pytest

from fileprune.analysis.engine import Analyzer
from fileprune.config import build_analysis_config

# Path to the demo TypeScript project
FIXTURES_PATH = Path(__file__).parent / "fixtures" / "ts_app"


def write_project(root: Path, files: dict[str, str]) -> Path:
    """Write ``{relative path: source}`` under ``root`` and return the root."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_project(tmp_path: Path):
    """Factory writing a small project into tmp_path."""

    def _make(files: dict[str, str]) -> Path:
        return write_project(tmp_path, files)

    return _make


@pytest.fixture
def make_analyzer(make_project):
    """Factory building an Analyzer for a project written into tmp_path."""

    def _make(files: dict[str, str], **overrides) -> Analyzer:
        root = make_project(files)
        return Analyzer(build_analysis_config(root, overrides=overrides or None))

    return _make


def rel(paths, root: Path) -> list[str]:
    """Project-relative posix paths, sorted."""
    return sorted(Path(p).relative_to(root.resolve()).as_posix() for p in paths)
