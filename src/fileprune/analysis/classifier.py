"""Classification of import and re-export statements by reference kind."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from fileprune.frontend.protocol import SyntaxProvider
from fileprune.models.dependency import (
    Binding,
    BindingForm,
    Contribution,
    DeclarationKind,
    ModuleStatement,
    NameReference,
    ReferenceKind,
    StatementBinding,
)
from fileprune.models.results import PossibleWaste

logger = logging.getLogger(__name__)

# Longest re-export chain followed before giving up
MAX_ALIAS_HOPS = 10


@dataclass
class UsageIndex:
    """Where each local name of a file occurs, split by position."""

    value_names: set[str] = field(default_factory=set)
    type_names: set[str] = field(default_factory=set)
    property_bases: set[str] = field(default_factory=set)

    @classmethod
    def from_references(cls, references: list[NameReference]) -> UsageIndex:
        index = cls()
        for ref in references:
            if ref.in_type_position:
                index.type_names.add(ref.name)
                continue
            index.value_names.add(ref.name)
            if ref.is_property_base:
                index.property_bases.add(ref.name)
        return index


@dataclass
class Classification:
    """Result of classifying every statement of one file."""

    contributions: list[Contribution] = field(default_factory=list)
    possible_waste: list[PossibleWaste] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class BindingClassifier:
    """Decides why a file references each of its import targets.

    A statement contributes one ``(target, kind)`` per bound name:

    1. no bound names: SIDE_EFFECT
    2. ``import type`` / ``export type``: TYPE_ONLY
    3. default binding: VALUE
    4. named binding: TYPE_ONLY when marked ``type`` or when the underlying
       declaration is a pure type; otherwise VALUE only if the local name
       is used in a value position
    5. namespace binding: NAMESPACE if used as a property access base
    6. re-exports: as 2-4 on the exported names, with no usage scan
    """

    def __init__(self, provider: SyntaxProvider, max_hops: int = MAX_ALIAS_HOPS) -> None:
        self.provider = provider
        self.max_hops = max_hops

    def classify_file(
        self,
        path: Path,
        resolved: list[tuple[ModuleStatement, Path]],
    ) -> Classification:
        """Classify every resolved statement of ``path``."""
        result = Classification()
        if not resolved:
            return result

        usage = UsageIndex.from_references(self.provider.references(path))
        for statement, target in resolved:
            for contribution in self.classify_statement(statement, target, usage, result):
                result.contributions.append(contribution)

            for binding in statement.bindings:
                if self._is_possible_waste(statement, binding, target, usage):
                    result.possible_waste.append(
                        PossibleWaste(file=path, line=statement.line, name=binding.local, target=target)
                    )

        return result

    def classify_statement(
        self,
        statement: ModuleStatement,
        target: Path,
        usage: UsageIndex,
        result: Classification | None = None,
    ) -> list[Contribution]:
        """Contributions of a single statement whose specifier resolved to ``target``."""
        line = statement.line

        # Erased at compile time even when the clause is empty
        if statement.type_only:
            if not statement.bindings:
                return [Contribution(target, ReferenceKind.TYPE_ONLY, line)]
            return [
                Contribution(target, ReferenceKind.TYPE_ONLY, line, b.local)
                for b in statement.bindings
            ]

        if statement.is_side_effect:
            return [Contribution(target, ReferenceKind.SIDE_EFFECT, line)]

        if statement.is_export and statement.star:
            contributions = [Contribution(target, ReferenceKind.VALUE, line)]
        else:
            contributions = []

        for binding in statement.bindings:
            kind = self._binding_kind(statement, binding, target, usage, result)
            contributions.append(Contribution(target, kind, line, binding.local))

        return contributions

    def _binding_kind(
        self,
        statement: ModuleStatement,
        binding: StatementBinding,
        target: Path,
        usage: UsageIndex,
        result: Classification | None,
    ) -> ReferenceKind:
        if binding.form is BindingForm.DEFAULT:
            return ReferenceKind.VALUE

        if binding.form is BindingForm.NAMESPACE:
            if binding.local in usage.property_bases:
                return ReferenceKind.NAMESPACE
            return ReferenceKind.TYPE_ONLY

        if binding.type_only:
            return ReferenceKind.TYPE_ONLY

        kind = self.declaration_kind(Binding(target, binding.imported), result)
        if kind is DeclarationKind.UNKNOWN:
            return ReferenceKind.VALUE
        if kind.is_type_only:
            return ReferenceKind.TYPE_ONLY

        if statement.is_export:
            # Forwarding a runtime construct is itself a value use
            return ReferenceKind.VALUE

        if binding.local in usage.value_names:
            return ReferenceKind.VALUE
        return ReferenceKind.TYPE_ONLY

    def declaration_kind(
        self,
        binding: Binding,
        result: Classification | None = None,
        warn: bool = True,
    ) -> DeclarationKind:
        """Follow re-exports to the declaring file and return the kind there.

        Gives up after ``max_hops`` hops and answers UNKNOWN, which callers
        treat as a value reference.
        """
        current = binding
        for _ in range(self.max_hops + 1):
            underlying = self.provider.underlying_of(current)
            if underlying is None:
                kind = self.provider.declaration_kind_of(current)
                if kind is DeclarationKind.UNKNOWN:
                    logger.debug("Could not resolve declaration of %s", current)
                return kind
            current = underlying

        if not warn:
            return DeclarationKind.UNKNOWN
        message = f"Alias chain for {binding} exceeds {self.max_hops} hops; treating as value"
        logger.warning(message)
        if result is not None:
            result.warnings.append(message)
        return DeclarationKind.UNKNOWN

    def _is_possible_waste(
        self,
        statement: ModuleStatement,
        binding: StatementBinding,
        target: Path,
        usage: UsageIndex,
    ) -> bool:
        """A runtime construct imported by name but only used as a type."""
        if statement.is_export or statement.type_only or binding.type_only:
            return False
        if binding.form is not BindingForm.NAMED:
            return False
        if binding.local in usage.value_names or binding.local not in usage.type_names:
            return False
        kind = self.declaration_kind(Binding(target, binding.imported), warn=False)
        return kind.is_dual or kind in (DeclarationKind.FUNCTION, DeclarationKind.VARIABLE)

