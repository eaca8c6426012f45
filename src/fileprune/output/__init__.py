"""Output modules for CLI display and file writing."""

from fileprune.output.json_writer import load_results, write_results
from fileprune.output.tree import build_references_tree, build_results_tree, display_tree

__all__ = [
    "build_references_tree",
    "build_results_tree",
    "display_tree",
    "load_results",
    "write_results",
]
