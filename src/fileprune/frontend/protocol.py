"""Protocol for language front ends."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from fileprune.models.dependency import (
    Binding,
    DeclarationKind,
    ModuleStatement,
    NameReference,
)


@runtime_checkable
class SyntaxProvider(Protocol):
    """What the analysis needs to know about source files.

    The core never inspects syntax trees itself; it only sees the records
    returned here. Implementations raise ``SourceReadError`` for a file
    they cannot read.
    """

    def statements(self, path: Path) -> list[ModuleStatement]:
        """Top-level import and re-export-from statements of a file.

        Nested or dynamic imports are not included.
        """
        ...

    def references(self, path: Path) -> list[NameReference]:
        """Every identifier occurrence in a file outside the statements
        returned by :meth:`statements`."""
        ...

    def declaration_kind_of(self, binding: Binding) -> DeclarationKind:
        """Kind of the declaration an exported name refers to.

        Returns ``DeclarationKind.UNKNOWN`` when the name cannot be found.
        """
        ...

    def underlying_of(self, binding: Binding) -> Binding | None:
        """One hop along a re-export chain.

        Returns the binding an exported name forwards to, or None when the
        name is declared in its own file (or cannot be followed).
        """
        ...

    def reset(self) -> None:
        """Forget anything cached about files so they are read again."""
        ...
