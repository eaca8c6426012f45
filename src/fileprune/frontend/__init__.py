"""Language front ends that supply syntax and symbol information."""

from __future__ import annotations

from fileprune.analysis.resolver import ModuleResolver
from fileprune.errors import AnalysisAbortedError
from fileprune.frontend.protocol import SyntaxProvider


def create_frontend(resolver: ModuleResolver) -> SyntaxProvider:
    """Build the default tree-sitter front end.

    Raises AnalysisAbortedError when the grammar cannot be loaded, since no
    file could be parsed and any report would be meaningless.
    """
    try:
        from fileprune.frontend.typescript import TypeScriptFrontend

        return TypeScriptFrontend(resolver)
    except (ImportError, OSError, ValueError) as e:
        raise AnalysisAbortedError(f"TypeScript parser unavailable: {e}") from e


__all__ = ["SyntaxProvider", "create_frontend"]
