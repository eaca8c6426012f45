"""Tests for reference kind classification."""

from pathlib import Path

import pytest

from fileprune.analysis.classifier import MAX_ALIAS_HOPS, BindingClassifier, UsageIndex
from fileprune.models.dependency import (
    Binding,
    BindingForm,
    DeclarationKind,
    ModuleStatement,
    NameReference,
    ReferenceKind,
    StatementBinding,
)

TARGET = Path("/project/src/target.ts")
SOURCE = Path("/project/src/source.ts")


class FakeProvider:
    """In-memory SyntaxProvider.

    ``kinds`` maps bindings to declaration kinds, ``forwards`` maps
    re-exported bindings to the binding they forward to.
    """

    def __init__(self, kinds=None, forwards=None, references=None):
        self.kinds: dict[Binding, DeclarationKind] = kinds or {}
        self.forwards: dict[Binding, Binding] = forwards or {}
        self._references: list[NameReference] = references or []
        self.underlying_calls = 0

    def statements(self, path):
        return []

    def references(self, path):
        return self._references

    def declaration_kind_of(self, binding):
        return self.kinds.get(binding, DeclarationKind.UNKNOWN)

    def underlying_of(self, binding):
        self.underlying_calls += 1
        return self.forwards.get(binding)

    def reset(self):
        pass


def named(name: str, local: str | None = None, type_only: bool = False) -> StatementBinding:
    return StatementBinding(BindingForm.NAMED, name, local or name, type_only)


def usage(values=(), types=(), bases=()) -> UsageIndex:
    return UsageIndex(set(values), set(types), set(bases))


def kinds_of(contributions) -> list[ReferenceKind]:
    return [c.kind for c in contributions]


class TestRulePriority:
    """Tests for each classification rule."""

    def test_side_effect_import(self):
        classifier = BindingClassifier(FakeProvider())
        statement = ModuleStatement("./target", 1)

        result = classifier.classify_statement(statement, TARGET, usage())

        assert kinds_of(result) == [ReferenceKind.SIDE_EFFECT]

    def test_whole_statement_type_only_skips_inspection(self):
        provider = FakeProvider(kinds={Binding(TARGET, "Foo"): DeclarationKind.CLASS})
        classifier = BindingClassifier(provider)
        statement = ModuleStatement("./target", 1, type_only=True, bindings=[named("Foo")])

        result = classifier.classify_statement(statement, TARGET, usage(values=["Foo"]))

        assert kinds_of(result) == [ReferenceKind.TYPE_ONLY]
        assert provider.underlying_calls == 0

    @pytest.mark.parametrize("is_export", [False, True])
    def test_empty_type_only_clause_is_not_side_effect(self, is_export):
        classifier = BindingClassifier(FakeProvider())
        statement = ModuleStatement("./target", 1, type_only=True, is_export=is_export)

        result = classifier.classify_statement(statement, TARGET, usage())

        assert kinds_of(result) == [ReferenceKind.TYPE_ONLY]

    def test_default_import_is_value(self):
        classifier = BindingClassifier(FakeProvider())
        statement = ModuleStatement(
            "./target", 1, bindings=[StatementBinding(BindingForm.DEFAULT, "default", "X")]
        )

        result = classifier.classify_statement(statement, TARGET, usage())

        assert kinds_of(result) == [ReferenceKind.VALUE]

    def test_specifier_type_marker(self):
        classifier = BindingClassifier(FakeProvider())
        statement = ModuleStatement("./target", 1, bindings=[named("T", type_only=True)])

        result = classifier.classify_statement(statement, TARGET, usage(values=["T"]))

        assert kinds_of(result) == [ReferenceKind.TYPE_ONLY]

    def test_interface_is_type_only_even_if_name_used(self):
        provider = FakeProvider(kinds={Binding(TARGET, "I"): DeclarationKind.INTERFACE})
        classifier = BindingClassifier(provider)
        statement = ModuleStatement("./target", 1, bindings=[named("I")])

        result = classifier.classify_statement(statement, TARGET, usage(values=["I"]))

        assert kinds_of(result) == [ReferenceKind.TYPE_ONLY]

    def test_function_used_as_value(self):
        provider = FakeProvider(kinds={Binding(TARGET, "f"): DeclarationKind.FUNCTION})
        classifier = BindingClassifier(provider)
        statement = ModuleStatement("./target", 1, bindings=[named("f")])

        result = classifier.classify_statement(statement, TARGET, usage(values=["f"]))

        assert kinds_of(result) == [ReferenceKind.VALUE]

    def test_class_used_only_as_type(self):
        provider = FakeProvider(kinds={Binding(TARGET, "C"): DeclarationKind.CLASS})
        classifier = BindingClassifier(provider)
        statement = ModuleStatement("./target", 1, bindings=[named("C")])

        result = classifier.classify_statement(statement, TARGET, usage(types=["C"]))

        assert kinds_of(result) == [ReferenceKind.TYPE_ONLY]

    def test_unused_dual_construct_is_type_only(self):
        provider = FakeProvider(kinds={Binding(TARGET, "E"): DeclarationKind.ENUM})
        classifier = BindingClassifier(provider)
        statement = ModuleStatement("./target", 1, bindings=[named("E")])

        result = classifier.classify_statement(statement, TARGET, usage())

        assert kinds_of(result) == [ReferenceKind.TYPE_ONLY]

    def test_aliased_import_uses_local_name(self):
        provider = FakeProvider(kinds={Binding(TARGET, "f"): DeclarationKind.FUNCTION})
        classifier = BindingClassifier(provider)
        statement = ModuleStatement("./target", 1, bindings=[named("f", local="g")])

        assert kinds_of(
            classifier.classify_statement(statement, TARGET, usage(values=["g"]))
        ) == [ReferenceKind.VALUE]
        assert kinds_of(
            classifier.classify_statement(statement, TARGET, usage(values=["f"]))
        ) == [ReferenceKind.TYPE_ONLY]

    def test_unknown_declaration_is_value(self):
        classifier = BindingClassifier(FakeProvider())
        statement = ModuleStatement("./target", 1, bindings=[named("mystery")])

        result = classifier.classify_statement(statement, TARGET, usage())

        assert kinds_of(result) == [ReferenceKind.VALUE]

    def test_namespace_with_property_access(self):
        classifier = BindingClassifier(FakeProvider())
        statement = ModuleStatement(
            "./target", 1, bindings=[StatementBinding(BindingForm.NAMESPACE, "*", "ns")]
        )

        result = classifier.classify_statement(
            statement, TARGET, usage(values=["ns"], bases=["ns"])
        )

        assert kinds_of(result) == [ReferenceKind.NAMESPACE]

    def test_namespace_used_only_in_types(self):
        classifier = BindingClassifier(FakeProvider())
        statement = ModuleStatement(
            "./target", 1, bindings=[StatementBinding(BindingForm.NAMESPACE, "*", "ns")]
        )

        result = classifier.classify_statement(statement, TARGET, usage(types=["ns"]))

        assert kinds_of(result) == [ReferenceKind.TYPE_ONLY]


class TestReexports:
    """Tests for re-export statements."""

    def test_reexported_function_is_value(self):
        provider = FakeProvider(kinds={Binding(TARGET, "f"): DeclarationKind.FUNCTION})
        classifier = BindingClassifier(provider)
        statement = ModuleStatement("./target", 1, is_export=True, bindings=[named("f")])

        result = classifier.classify_statement(statement, TARGET, usage())

        assert kinds_of(result) == [ReferenceKind.VALUE]

    def test_reexported_interface_is_type_only(self):
        provider = FakeProvider(kinds={Binding(TARGET, "I"): DeclarationKind.INTERFACE})
        classifier = BindingClassifier(provider)
        statement = ModuleStatement("./target", 1, is_export=True, bindings=[named("I")])

        result = classifier.classify_statement(statement, TARGET, usage())

        assert kinds_of(result) == [ReferenceKind.TYPE_ONLY]

    def test_export_star_is_value(self):
        classifier = BindingClassifier(FakeProvider())
        statement = ModuleStatement("./target", 1, is_export=True, star=True)

        result = classifier.classify_statement(statement, TARGET, usage())

        assert kinds_of(result) == [ReferenceKind.VALUE]

    def test_export_type_star_is_type_only(self):
        classifier = BindingClassifier(FakeProvider())
        statement = ModuleStatement("./target", 1, is_export=True, star=True, type_only=True)

        result = classifier.classify_statement(statement, TARGET, usage())

        assert kinds_of(result) == [ReferenceKind.TYPE_ONLY]


class TestAliasChasing:
    """Tests for following re-export chains."""

    def chain(self, length: int, final: DeclarationKind):
        files = [Path(f"/project/src/hop{i}.ts") for i in range(length + 1)]
        forwards = {Binding(files[i], "X"): Binding(files[i + 1], "X") for i in range(length)}
        return FakeProvider(kinds={Binding(files[-1], "X"): final}, forwards=forwards), files[0]

    def test_follows_chain_to_declaration(self):
        provider, first = self.chain(3, DeclarationKind.INTERFACE)
        classifier = BindingClassifier(provider)

        assert classifier.declaration_kind(Binding(first, "X")) is DeclarationKind.INTERFACE

    def test_chain_at_bound_is_followed(self):
        provider, first = self.chain(MAX_ALIAS_HOPS, DeclarationKind.INTERFACE)
        classifier = BindingClassifier(provider)

        assert classifier.declaration_kind(Binding(first, "X")) is DeclarationKind.INTERFACE

    def test_chain_beyond_bound_is_value(self, caplog):
        provider, first = self.chain(MAX_ALIAS_HOPS + 1, DeclarationKind.INTERFACE)
        classifier = BindingClassifier(provider)
        statement = ModuleStatement("./hop0", 1, bindings=[named("X")])

        with caplog.at_level("WARNING"):
            result = classifier.classify_statement(statement, first, usage())

        assert kinds_of(result) == [ReferenceKind.VALUE]
        assert "exceeds" in caplog.text

    def test_cyclic_aliases_terminate(self):
        a, b = Path("/project/a.ts"), Path("/project/b.ts")
        provider = FakeProvider(
            forwards={Binding(a, "X"): Binding(b, "X"), Binding(b, "X"): Binding(a, "X")}
        )
        classifier = BindingClassifier(provider)

        assert classifier.declaration_kind(Binding(a, "X")) is DeclarationKind.UNKNOWN
        assert provider.underlying_calls == MAX_ALIAS_HOPS + 1

    @pytest.mark.parametrize("hops", [1, 3])
    def test_custom_hop_limit(self, hops):
        provider, first = self.chain(hops + 1, DeclarationKind.INTERFACE)
        classifier = BindingClassifier(provider, max_hops=hops)

        assert classifier.declaration_kind(Binding(first, "X")) is DeclarationKind.UNKNOWN


class TestClassifyFile:
    def test_contributions_and_possible_waste(self):
        provider = FakeProvider(
            kinds={
                Binding(TARGET, "Service"): DeclarationKind.CLASS,
                Binding(TARGET, "run"): DeclarationKind.FUNCTION,
            },
            references=[
                NameReference("Service", 3, in_type_position=True),
                NameReference("run", 4, in_type_position=False),
            ],
        )
        classifier = BindingClassifier(provider)
        statement = ModuleStatement("./target", 1, bindings=[named("Service"), named("run")])

        result = classifier.classify_file(SOURCE, [(statement, TARGET)])

        assert {(c.name, c.kind) for c in result.contributions} == {
            ("Service", ReferenceKind.TYPE_ONLY),
            ("run", ReferenceKind.VALUE),
        }
        assert [(w.name, w.line) for w in result.possible_waste] == [("Service", 1)]

    def test_no_resolved_statements(self):
        classifier = BindingClassifier(FakeProvider())

        result = classifier.classify_file(SOURCE, [])

        assert result.contributions == []
        assert result.possible_waste == []


class TestUsageIndex:
    def test_splits_positions(self):
        index = UsageIndex.from_references(
            [
                NameReference("a", 1, in_type_position=False, is_property_base=True),
                NameReference("b", 2, in_type_position=True),
                NameReference("c", 3, in_type_position=True, is_property_base=True),
            ]
        )

        assert index.value_names == {"a"}
        assert index.type_names == {"b", "c"}
        assert index.property_bases == {"a"}
