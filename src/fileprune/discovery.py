"""Source file discovery for FilePrune.

Expands include globs under the project root, then drops files matched by
the always-excluded directories, .gitignore patterns and configured
excludes, using the pathspec library for gitignore-style matching.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pathspec

from fileprune.errors import AnalysisAbortedError

logger = logging.getLogger(__name__)


# Dependency and build output directories, plus hidden directories
DEFAULT_EXCLUDES = [
    "node_modules/",
    "dist/",
    "build/",
    "es/",
    "lib/",
    ".*/",
]


@dataclass
class ExclusionConfig:
    """Patterns collected for file exclusion."""

    gitignore_patterns: list[str] = field(default_factory=list)
    config_patterns: list[str] = field(default_factory=list)
    default_patterns: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)


class FileExcluder:
    """Decides which discovered files are left out of the analysis."""

    def __init__(
        self,
        project_root: Path,
        include_ignored: bool = False,
        extra_excludes: list[str] | None = None,
    ) -> None:
        """Collect exclusion patterns for a project.

        Args:
            project_root: Directory that patterns are relative to.
            include_ignored: If True, skip .gitignore patterns. The default
                excludes and configured excludes still apply.
            extra_excludes: Patterns from fileprune configuration.
        """
        self.project_root = project_root
        self.include_ignored = include_ignored
        self._config = ExclusionConfig()

        self._config.default_patterns = list(DEFAULT_EXCLUDES)
        self._config.sources.append("defaults")
        if not include_ignored:
            self._load_gitignore()
        if extra_excludes:
            self._config.config_patterns = list(extra_excludes)
            self._config.sources.append("config")

        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", self.patterns)

    def _load_gitignore(self) -> None:
        gitignore_path = self.project_root / ".gitignore"
        if not gitignore_path.exists():
            return
        try:
            content = gitignore_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot read %s: %s", gitignore_path, e)
            return
        self._config.gitignore_patterns = [
            line.strip()
            for line in content.splitlines()
            if line.strip() and not line.startswith("#")
        ]
        self._config.sources.append(str(gitignore_path))

    def should_exclude(self, file_path: Path) -> bool:
        """Check if a file, or any directory above it, is excluded."""
        try:
            rel_path = file_path.relative_to(self.project_root)
        except ValueError:
            return False

        if self._spec.match_file(rel_path.as_posix()):
            return True

        # Directory patterns only match paths with a trailing slash
        parts = rel_path.parts
        for i in range(1, len(parts)):
            if self._spec.match_file("/".join(parts[:i]) + "/"):
                return True

        return False

    def filter_files(self, files: list[Path]) -> list[Path]:
        return [f for f in files if not self.should_exclude(f)]

    @property
    def sources(self) -> list[str]:
        """Return list of pattern sources used."""
        return self._config.sources

    @property
    def patterns(self) -> list[str]:
        return (
            self._config.default_patterns
            + self._config.gitignore_patterns
            + self._config.config_patterns
        )


def has_source_extension(path: Path, extensions: list[str]) -> bool:
    """Extension filter that also accepts compound suffixes like ``.d.ts``."""
    name = path.name
    return any(name.endswith(ext) for ext in extensions)


def discover_files(
    root: Path,
    include: list[str],
    exclude: list[str] | None = None,
    extensions: list[str] | None = None,
    include_ignored: bool = False,
) -> list[Path]:
    """Collect the canonical paths of all source files to analyze.

    Raises:
        AnalysisAbortedError: If the root directory does not exist.
    """
    if not root.is_dir():
        raise AnalysisAbortedError(f"Root directory not found: {root}")

    root = root.resolve()
    excluder = FileExcluder(root, include_ignored=include_ignored, extra_excludes=exclude)

    found: set[Path] = set()
    for pattern in include:
        try:
            matches = list(root.glob(pattern))
        except (OSError, ValueError) as e:
            raise AnalysisAbortedError(f"Invalid include pattern {pattern!r}: {e}") from e
        for match in matches:
            if not match.is_file():
                continue
            if extensions and not has_source_extension(match, extensions):
                continue
            found.add(match.resolve())

    files = sorted(excluder.filter_files(list(found)), key=str)
    logger.info(
        "Discovered %d source files under %s (exclusion sources: %s)",
        len(files),
        root,
        ", ".join(excluder.sources),
    )
    return files
