"""Analysis modules for unused file detection."""

from fileprune.analysis.resolver import ModuleResolver
from fileprune.analysis.classifier import BindingClassifier, Classification, UsageIndex
from fileprune.analysis.graph import BuildResult, GraphBuilder, ReferenceGraph
from fileprune.analysis.reachability import reach, type_only_touched
from fileprune.analysis.report import build_report, compute_result, infer_entries

__all__ = [
    "BindingClassifier",
    "BuildResult",
    "Classification",
    "GraphBuilder",
    "ModuleResolver",
    "ReferenceGraph",
    "UsageIndex",
    "build_report",
    "compute_result",
    "infer_entries",
    "reach",
    "type_only_touched",
]
