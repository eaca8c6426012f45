"""Analysis session tying discovery, graph building and reporting together."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Iterable

from fileprune.analysis.graph import BuildResult, GraphBuilder
from fileprune.analysis.report import build_report, compute_result, infer_entries
from fileprune.analysis.resolver import ModuleResolver
from fileprune.discovery import discover_files
from fileprune.frontend import SyntaxProvider, create_frontend
from fileprune.models.config import AnalysisConfig, InclusionPolicy
from fileprune.models.results import AnalysisReport, AnalysisResult

logger = logging.getLogger(__name__)


class Analyzer:
    """Owns the state of one project analysis.

    Discovery results, parsed files and the frozen reference graph are
    computed on first use and kept until ``reset()``, so several policies
    can be evaluated against the same graph.
    """

    def __init__(
        self,
        config: AnalysisConfig,
        provider: SyntaxProvider | None = None,
    ) -> None:
        self.config = config
        self.resolver = ModuleResolver(config.resolver_config)
        self._provider = provider
        self._files: list[Path] | None = None
        self._build: BuildResult | None = None
        self._advisories: list[str] = list(config.advisories)
        self._build_ms = 0

    @property
    def root(self) -> Path:
        return self.config.root

    @property
    def provider(self) -> SyntaxProvider:
        if self._provider is None:
            self._provider = create_frontend(self.resolver)
        return self._provider

    @property
    def files(self) -> list[Path]:
        """Discovered source files plus any explicit entry outside the include globs."""
        if self._files is None:
            discovered = discover_files(
                self.root,
                self.config.include,
                self.config.exclude,
                self.config.source_extensions,
                self.config.include_ignored,
            )
            self._files = sorted(set(discovered) | set(self.explicit_entries), key=str)
        return self._files

    @property
    def explicit_entries(self) -> list[Path]:
        entries = []
        for entry in self.config.entries:
            path = entry if entry.is_absolute() else self.root / entry
            if not path.is_file():
                note = f"Entry point not found: {path}"
                if note not in self._advisories:
                    logger.warning(note)
                    self._advisories.append(note)
                continue
            entries.append(path.resolve())
        return entries

    @property
    def build_result(self) -> BuildResult:
        if self._build is None:
            self.rebuild()
        assert self._build is not None
        return self._build

    def rebuild(self, on_progress: Callable[[str], None] | None = None) -> BuildResult:
        """Rediscover files and rebuild the reference graph from scratch."""
        self.reset()
        start = time.monotonic()

        if on_progress:
            on_progress("Discovering files...")
        files = self.files

        if on_progress:
            on_progress(f"Building reference graph for {len(files)} files...")
        builder = GraphBuilder(self.resolver, self.provider)
        self._build = builder.build(files, workers=self.config.workers)

        self._build_ms = int((time.monotonic() - start) * 1000)
        return self._build

    def reset(self) -> None:
        """Drop every cached artifact; the next analysis starts from disk."""
        self._files = None
        self._build = None
        self._advisories = list(self.config.advisories)
        self.resolver.clear_cache()
        if self._provider is not None:
            self._provider.reset()

    def entries(self) -> set[Path]:
        """Explicit entries, supplemented by inferred index files."""
        entries = set(self.explicit_entries)
        if self.config.infer_entries:
            inferred = infer_entries(self.build_result.graph, self.files)
            logger.debug("Inferred %d index entries", len(inferred - entries))
            entries |= inferred
        if not entries:
            note = "No entry points configured or inferred; every file is unreferenced"
            if note not in self._advisories:
                logger.warning(note)
                self._advisories.append(note)
        return entries

    def analyze(
        self,
        policy: InclusionPolicy | None = None,
        used_files: Iterable[Path] | None = None,
    ) -> AnalysisResult:
        """Compute the unused-file result under ``policy``.

        Passing ``used_files`` switches the policy to the external used set.
        """
        policy = policy or self.config.policy
        if used_files is not None and not policy.use_external_used_set:
            policy = InclusionPolicy(
                follow_type_only_edges=policy.follow_type_only_edges,
                treat_type_only_as_reference=policy.treat_type_only_as_reference,
                use_external_used_set=True,
            )

        return compute_result(
            self.build_result.graph,
            self.files,
            self.entries(),
            policy,
            used_files=used_files,
        )

    def report(self, result: AnalysisResult, started: float | None = None) -> AnalysisReport:
        """Build the serializable report for a result of this session."""
        duration_ms = (
            int((time.monotonic() - started) * 1000) if started is not None else self._build_ms
        )
        return build_report(
            result,
            self.build_result,
            self.root,
            duration_ms,
            advisories=self._advisories,
        )
