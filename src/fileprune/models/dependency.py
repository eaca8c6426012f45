"""Data models for module references and symbol tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path


class ReferenceKind(Enum):
    """Why one file references another."""

    VALUE = auto()
    TYPE_ONLY = auto()
    SIDE_EFFECT = auto()
    NAMESPACE = auto()

    @property
    def rank(self) -> int:
        """Dominance rank used when merging statements on the same pair."""
        return _KIND_RANK[self]

    @property
    def is_runtime(self) -> bool:
        """True for kinds that cause the target to execute."""
        return self is not ReferenceKind.TYPE_ONLY

    def merge(self, other: ReferenceKind) -> ReferenceKind:
        """Return the dominant kind of the two.

        VALUE and SIDE_EFFECT share the top rank; VALUE wins the tie so the
        merge stays commutative.
        """
        if self.rank != other.rank:
            return self if self.rank > other.rank else other
        if ReferenceKind.VALUE in (self, other):
            return ReferenceKind.VALUE
        return self


_KIND_RANK = {
    ReferenceKind.VALUE: 2,
    ReferenceKind.SIDE_EFFECT: 2,
    ReferenceKind.NAMESPACE: 1,
    ReferenceKind.TYPE_ONLY: 0,
}


class DeclarationKind(Enum):
    """Kind of declaration a bound name ultimately refers to."""

    TYPE_ALIAS = auto()
    INTERFACE = auto()
    TYPE_PARAMETER = auto()
    CLASS = auto()
    ENUM = auto()
    FUNCTION = auto()
    VARIABLE = auto()
    UNKNOWN = auto()

    @property
    def is_type_only(self) -> bool:
        """True for constructs with no runtime representation."""
        return self in (
            DeclarationKind.TYPE_ALIAS,
            DeclarationKind.INTERFACE,
            DeclarationKind.TYPE_PARAMETER,
        )

    @property
    def is_dual(self) -> bool:
        """True for constructs that are both a type and a value."""
        return self in (DeclarationKind.CLASS, DeclarationKind.ENUM)


class BindingForm(Enum):
    """How a name is bound by an import or re-export statement."""

    DEFAULT = auto()
    NAMED = auto()
    NAMESPACE = auto()


@dataclass(frozen=True)
class Binding:
    """An exported name of a file ("default" for default exports)."""

    file: Path
    name: str

    def __str__(self) -> str:
        return f"{self.file}#{self.name}"


@dataclass
class StatementBinding:
    """One name introduced by an import or re-export statement."""

    form: BindingForm
    imported: str  # name in the target file ("default", "*" for namespaces)
    local: str  # local name for imports, exported name for re-exports
    type_only: bool = False


@dataclass
class ModuleStatement:
    """A top-level import or re-export-from statement."""

    specifier: str
    line: int
    is_export: bool = False
    type_only: bool = False  # whole-statement `import type` / `export type`
    star: bool = False  # `export * from` / `export * as ns from`
    bindings: list[StatementBinding] = field(default_factory=list)

    @property
    def is_side_effect(self) -> bool:
        """True for statements that bind no names (`import "./x"`)."""
        return not self.bindings and not self.star


@dataclass
class NameReference:
    """An occurrence of an identifier somewhere in a file."""

    name: str
    line: int
    in_type_position: bool
    is_property_base: bool = False


@dataclass
class Edge:
    """A merged, kind-tagged reference from one file to another."""

    source: Path
    target: Path
    kind: ReferenceKind
    lines: list[int] = field(default_factory=list)

    @property
    def is_self(self) -> bool:
        return self.source == self.target

    def merged(self, other: Edge) -> Edge:
        """Combine two edges on the same directed pair."""
        return Edge(
            source=self.source,
            target=self.target,
            kind=self.kind.merge(other.kind),
            lines=sorted(set(self.lines) | set(other.lines)),
        )

    def to_dict(self) -> dict:
        return {
            "target": str(self.target),
            "kind": self.kind.name.lower(),
            "lines": self.lines,
        }


@dataclass
class Contribution:
    """A single classified reference produced by one statement binding."""

    target: Path
    kind: ReferenceKind
    line: int
    name: str | None = None
