"""Data models for analysis results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from fileprune.models.config import InclusionPolicy


@dataclass
class AnalysisMetadata:
    """Metadata about the analysis run."""

    project: str
    root: Path
    analyzed_at: datetime
    fileprune_version: str
    files_scanned: int
    analysis_duration_ms: int

    def to_dict(self) -> dict:
        return {
            "project": self.project,
            "root": str(self.root),
            "analyzed_at": self.analyzed_at.isoformat(),
            "fileprune_version": self.fileprune_version,
            "files_scanned": self.files_scanned,
            "analysis_duration_ms": self.analysis_duration_ms,
        }


@dataclass
class PossibleWaste:
    """A runtime construct that a file imports but only uses as a type."""

    file: Path
    line: int
    name: str
    target: Path

    def to_dict(self) -> dict:
        return {
            "file": str(self.file),
            "line": self.line,
            "name": self.name,
            "target": str(self.target),
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one analysis run.

    ``unused`` is derived from the other sets and the policy every time it
    is read; nothing can update it on its own.
    """

    all_files: frozenset[Path]
    entries: frozenset[Path]
    reachable: frozenset[Path]
    type_only_touched: frozenset[Path]
    policy: InclusionPolicy = field(default_factory=InclusionPolicy)

    @property
    def unused(self) -> list[Path]:
        referenced = set(self.entries) | set(self.reachable)
        if self.policy.treat_type_only_as_reference:
            referenced |= self.type_only_touched
        return sorted((f for f in self.all_files if f not in referenced), key=str)

    @property
    def type_only_files(self) -> list[Path]:
        """Files that runtime-reachable files reference only as types."""
        return sorted(self.type_only_touched - self.entries, key=str)


@dataclass
class UnusedFile:
    """An unreferenced file as written to the report."""

    file: Path
    relative_path: str

    def to_dict(self) -> dict:
        return {
            "file": str(self.file),
            "relative_path": self.relative_path,
        }


@dataclass
class AnalysisSummary:
    """Counts shown in the summary panel and the JSON report."""

    files_scanned: int
    entrypoints: int
    reachable: int
    type_only: int
    unused: int
    unresolved_specifiers: int = 0

    def to_dict(self) -> dict:
        return {
            "files_scanned": self.files_scanned,
            "entrypoints": self.entrypoints,
            "reachable": self.reachable,
            "type_only": self.type_only,
            "unused": self.unused,
            "unresolved_specifiers": self.unresolved_specifiers,
        }


@dataclass
class AnalysisReport:
    """Complete report, ready to be written to disk."""

    version: str = "1.0"
    metadata: AnalysisMetadata | None = None
    summary: AnalysisSummary | None = None
    policy: InclusionPolicy = field(default_factory=InclusionPolicy)
    entrypoints: list[str] = field(default_factory=list)
    unused_files: list[UnusedFile] = field(default_factory=list)
    type_only_files: list[str] = field(default_factory=list)
    possible_waste: list[PossibleWaste] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    reference_graph: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        result: dict = {"version": self.version}

        if self.metadata:
            result["metadata"] = self.metadata.to_dict()

        if self.summary:
            result["summary"] = self.summary.to_dict()

        result["policy"] = self.policy.to_dict()
        result["entrypoints"] = self.entrypoints
        result["unused_files"] = [uf.to_dict() for uf in self.unused_files]
        result["type_only_files"] = self.type_only_files
        result["possible_waste"] = [pw.to_dict() for pw in self.possible_waste]
        result["warnings"] = self.warnings
        result["reference_graph"] = self.reference_graph

        return result
