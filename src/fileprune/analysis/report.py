"""Unused-file computation and report assembly."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable

from fileprune import __version__
from fileprune.analysis.graph import BuildResult, ReferenceGraph
from fileprune.analysis.reachability import reach, type_only_touched
from fileprune.analysis.resolver import INDEX_BASENAME
from fileprune.models.config import InclusionPolicy
from fileprune.models.results import (
    AnalysisMetadata,
    AnalysisReport,
    AnalysisResult,
    AnalysisSummary,
    UnusedFile,
)

logger = logging.getLogger(__name__)


def is_index_file(path: Path) -> bool:
    """True for ``index.ts``, ``index.tsx``, ``index.d.ts`` and the like."""
    return path.name.split(".", 1)[0] == INDEX_BASENAME


def infer_entries(graph: ReferenceGraph, files: Iterable[Path]) -> set[Path]:
    """Index files that nothing else references.

    Package-style entry points are usually never imported from inside the
    project, so they would otherwise be reported as unused.
    """
    return {f for f in files if is_index_file(f) and not graph.referenced_by(f)}


def compute_result(
    graph: ReferenceGraph,
    all_files: Iterable[Path],
    entries: Iterable[Path],
    policy: InclusionPolicy,
    used_files: Iterable[Path] | None = None,
) -> AnalysisResult:
    """Derive reachable, type-only and unused sets under ``policy``.

    When the policy asks for an external used set, ``used_files`` replaces
    graph reachability entirely.
    """
    entry_set = frozenset(entries)

    if policy.use_external_used_set:
        if used_files is None:
            raise ValueError("Policy requires an external used-files set but none was given")
        reachable = frozenset(used_files) | entry_set
        strict_base = reachable
    else:
        reachable = frozenset(reach(graph, entry_set, policy))
        if policy.follow_type_only_edges:
            strict_base = frozenset(reach(graph, entry_set, InclusionPolicy.strict()))
        else:
            strict_base = reachable

    touched = frozenset(type_only_touched(graph, strict_base))

    return AnalysisResult(
        all_files=frozenset(all_files),
        entries=entry_set,
        reachable=reachable,
        type_only_touched=touched,
        policy=policy,
    )


def relative_to_root(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def build_report(
    result: AnalysisResult,
    build: BuildResult,
    root: Path,
    duration_ms: int,
    advisories: list[str] | None = None,
) -> AnalysisReport:
    """Assemble the serializable report for one analysis run."""
    unused = result.unused
    summary = AnalysisSummary(
        files_scanned=len(result.all_files),
        entrypoints=len(result.entries),
        reachable=len(result.reachable & result.all_files),
        type_only=len(result.type_only_files),
        unused=len(unused),
        unresolved_specifiers=build.unresolved_count,
    )

    return AnalysisReport(
        metadata=AnalysisMetadata(
            project=root.name,
            root=root,
            analyzed_at=datetime.now(),
            fileprune_version=__version__,
            files_scanned=len(result.all_files),
            analysis_duration_ms=duration_ms,
        ),
        summary=summary,
        policy=result.policy,
        entrypoints=[relative_to_root(e, root) for e in sorted(result.entries, key=str)],
        unused_files=[UnusedFile(file=f, relative_path=relative_to_root(f, root)) for f in unused],
        type_only_files=[relative_to_root(f, root) for f in result.type_only_files],
        possible_waste=sorted(build.possible_waste, key=lambda w: (str(w.file), w.line)),
        warnings=list(advisories or []) + build.warnings,
        reference_graph=build.graph.to_dict(result.all_files),
    )
