"""Data models for FilePrune."""

from fileprune.models.config import (
    AliasRule,
    AnalysisConfig,
    InclusionPolicy,
    ResolverConfig,
)
from fileprune.models.dependency import (
    Binding,
    BindingForm,
    Contribution,
    DeclarationKind,
    Edge,
    ModuleStatement,
    NameReference,
    ReferenceKind,
    StatementBinding,
)
from fileprune.models.results import (
    AnalysisMetadata,
    AnalysisReport,
    AnalysisResult,
    AnalysisSummary,
    PossibleWaste,
    UnusedFile,
)

__all__ = [
    # Config models
    "AliasRule",
    "AnalysisConfig",
    "InclusionPolicy",
    "ResolverConfig",
    # Dependency models
    "Binding",
    "BindingForm",
    "Contribution",
    "DeclarationKind",
    "Edge",
    "ModuleStatement",
    "NameReference",
    "ReferenceKind",
    "StatementBinding",
    # Results models
    "AnalysisMetadata",
    "AnalysisReport",
    "AnalysisResult",
    "AnalysisSummary",
    "PossibleWaste",
    "UnusedFile",
]
