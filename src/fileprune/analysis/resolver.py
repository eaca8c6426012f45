"""Module specifier resolution."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from fileprune.models.config import ResolverConfig

logger = logging.getLogger(__name__)

INDEX_BASENAME = "index"


class ModuleResolver:
    """Resolves module specifiers to canonical file paths.

    Resolution depends only on the specifier, the importing file, the alias
    table and the extension order, so results are memoized on exactly those
    inputs.
    """

    def __init__(self, config: ResolverConfig) -> None:
        self.config = config
        self._cache: dict[tuple[str, Path], Path | None] = {}

    @property
    def extensions(self) -> list[str]:
        return self.config.extensions

    def clear_cache(self) -> None:
        self._cache.clear()

    def resolve(self, specifier: str, from_file: Path) -> Path | None:
        """Resolve ``specifier`` as written in ``from_file``.

        Returns None for specifiers that do not map to a project file
        (packages, builtins, typos); those never produce an edge.
        """
        key = (specifier, from_file.parent)
        if key in self._cache:
            return self._cache[key]

        path = self._resolve_uncached(_strip_query(specifier), from_file)
        self._cache[key] = path
        return path

    def _resolve_uncached(self, specifier: str, from_file: Path) -> Path | None:
        if not specifier:
            return None

        if _is_relative(specifier):
            return self.probe(from_file.parent / specifier)

        for rule in self.config.aliases:
            for target in rule.expand(specifier):
                found = self.probe((rule.base or self.config.alias_base) / target)
                if found:
                    logger.debug("Alias %s resolved %s -> %s", rule.pattern, specifier, found)
                    return found

        return None

    def probe(self, base: Path) -> Path | None:
        """Find the file ``base`` refers to.

        Tries the literal path, then each extension appended, then an index
        file inside ``base`` for each extension.
        """
        base = Path(os.path.normpath(base))
        if base.is_file():
            return base.resolve()

        for ext in self.extensions:
            candidate = base.with_name(base.name + ext)
            if candidate.is_file():
                return candidate.resolve()

        for ext in self.extensions:
            candidate = base / f"{INDEX_BASENAME}{ext}"
            if candidate.is_file():
                return candidate.resolve()

        return None


def _is_relative(specifier: str) -> bool:
    return specifier in (".", "..") or specifier.startswith(("./", "../"))


def _strip_query(specifier: str) -> str:
    for marker in ("?", "#"):
        # "#" also starts subpath imports ("#utils"); only strip a suffix
        index = specifier.find(marker)
        if index > 0:
            specifier = specifier[:index]
    return specifier
