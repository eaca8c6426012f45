"""TypeScript/JavaScript front end built on tree-sitter.

Parses each file once, extracts its top-level import and re-export
statements, every identifier occurrence together with whether it sits in a
type position, and a table of the names the file exports.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from fileprune.analysis.resolver import ModuleResolver
from fileprune.errors import SourceReadError
from fileprune.models.dependency import (
    Binding,
    BindingForm,
    DeclarationKind,
    ModuleStatement,
    NameReference,
    StatementBinding,
)

logger = logging.getLogger(__name__)

# Grammar per file suffix; files with JSX need the tsx grammar
GRAMMAR_BY_SUFFIX = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "tsx",
    ".jsx": "tsx",
    ".mjs": "tsx",
    ".cjs": "tsx",
}

# Declaration node type -> kind of the declared name
DECLARATION_KINDS = {
    "class_declaration": DeclarationKind.CLASS,
    "abstract_class_declaration": DeclarationKind.CLASS,
    "class": DeclarationKind.CLASS,
    "function_declaration": DeclarationKind.FUNCTION,
    "generator_function_declaration": DeclarationKind.FUNCTION,
    "function_signature": DeclarationKind.FUNCTION,
    "function_expression": DeclarationKind.FUNCTION,
    "function": DeclarationKind.FUNCTION,
    "arrow_function": DeclarationKind.FUNCTION,
    "interface_declaration": DeclarationKind.INTERFACE,
    "type_alias_declaration": DeclarationKind.TYPE_ALIAS,
    "enum_declaration": DeclarationKind.ENUM,
    "internal_module": DeclarationKind.VARIABLE,
    "module": DeclarationKind.VARIABLE,
    "lexical_declaration": DeclarationKind.VARIABLE,
    "variable_declaration": DeclarationKind.VARIABLE,
}

# Ancestors that put every identifier below them in a type position
TYPE_CONTEXTS = {
    "type_annotation",
    "opting_type_annotation",
    "omitting_type_annotation",
    "adding_type_annotation",
    "asserts_annotation",
    "type_predicate_annotation",
    "type_alias_declaration",
    "interface_declaration",
    "class_heritage",
    "extends_type_clause",
    "implements_clause",
    "type_query",
    "type_arguments",
    "type_parameters",
    "nested_type_identifier",
}

IDENTIFIER_TYPES = {"identifier", "type_identifier", "shorthand_property_identifier"}


@dataclass
class ExportEntry:
    """What an exported (or local) name stands for.

    Either ``kind`` is set (declared in this file) or ``specifier`` and
    ``imported`` point at a name in another module.
    """

    kind: DeclarationKind | None = None
    specifier: str | None = None
    imported: str | None = None


@dataclass
class ParsedFile:
    """Everything extracted from a single source file."""

    path: Path
    statements: list[ModuleStatement] = field(default_factory=list)
    references: list[NameReference] = field(default_factory=list)
    exports: dict[str, ExportEntry] = field(default_factory=dict)
    star_exports: list[str] = field(default_factory=list)


class TypeScriptFrontend:
    """SyntaxProvider for .ts/.tsx/.js/.jsx sources."""

    def __init__(self, resolver: ModuleResolver) -> None:
        self.resolver = resolver
        self._languages = {
            "typescript": Language(tree_sitter_typescript.language_typescript()),
            "tsx": Language(tree_sitter_typescript.language_tsx()),
        }
        self._files: dict[Path, ParsedFile] = {}
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Forget every parsed file."""
        with self._lock:
            self._files.clear()

    # === SyntaxProvider ===

    def statements(self, path: Path) -> list[ModuleStatement]:
        return self._parsed(path).statements

    def references(self, path: Path) -> list[NameReference]:
        return self._parsed(path).references

    def declaration_kind_of(self, binding: Binding) -> DeclarationKind:
        try:
            parsed = self._parsed(binding.file)
        except SourceReadError:
            return DeclarationKind.UNKNOWN

        entry = parsed.exports.get(binding.name)
        if entry is None or entry.kind is None:
            return DeclarationKind.UNKNOWN
        return entry.kind

    def underlying_of(self, binding: Binding) -> Binding | None:
        try:
            parsed = self._parsed(binding.file)
        except SourceReadError:
            return None

        entry = parsed.exports.get(binding.name)
        if entry is not None:
            if entry.kind is not None or entry.specifier is None:
                return None
            target = self.resolver.resolve(entry.specifier, binding.file)
            if target is None:
                return None
            return Binding(target, entry.imported or binding.name)

        if binding.name == "default":
            return None

        # Not declared here; look through `export * from` targets
        for specifier in parsed.star_exports:
            target = self.resolver.resolve(specifier, binding.file)
            if target is not None and self._provides(target, binding.name, set()):
                return Binding(target, binding.name)
        return None

    def _provides(self, path: Path, name: str, seen: set[Path]) -> bool:
        if path in seen:
            return False
        seen.add(path)
        try:
            parsed = self._parsed(path)
        except SourceReadError:
            return False
        if name in parsed.exports:
            return True
        for specifier in parsed.star_exports:
            target = self.resolver.resolve(specifier, path)
            if target is not None and self._provides(target, name, seen):
                return True
        return False

    # === Parsing ===

    def _parsed(self, path: Path) -> ParsedFile:
        with self._lock:
            cached = self._files.get(path)
        if cached is not None:
            return cached

        parsed = self._parse(path)
        with self._lock:
            return self._files.setdefault(path, parsed)

    def _parse(self, path: Path) -> ParsedFile:
        grammar = _grammar_for(path)
        if grammar is None:
            # Stylesheets, JSON and other assets have no statements or exports
            return ParsedFile(path=path)

        try:
            source = path.read_bytes()
        except OSError as e:
            raise SourceReadError(path, str(e)) from e

        # Parser objects are not shareable between threads
        parser = Parser(self._languages[grammar])
        tree = parser.parse(source)
        if tree.root_node.has_error:
            logger.debug("Syntax errors in %s; continuing with partial tree", path)

        return _FileExtractor(path).extract(tree.root_node)


def _grammar_for(path: Path) -> str | None:
    return GRAMMAR_BY_SUFFIX.get(path.suffix.lower())


def _text(node: Node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _string_value(node: Node) -> str:
    text = _text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def _has_keyword(node: Node, keyword: str) -> bool:
    return any(not child.is_named and child.type == keyword for child in node.children)


def _line(node: Node) -> int:
    return node.start_point[0] + 1


class _FileExtractor:
    """Walks one syntax tree and fills a ParsedFile."""

    def __init__(self, path: Path) -> None:
        self.parsed = ParsedFile(path=path)
        self.locals: dict[str, ExportEntry] = {}
        self.local_exports: dict[str, str] = {}  # exported name -> local name

    def extract(self, root: Node) -> ParsedFile:
        for node in root.named_children:
            if node.type == "import_statement":
                self._import_statement(node)
            elif node.type == "export_statement":
                self._export_statement(node)
            else:
                self._declaration(node, exported=False)

        for exported, local in self.local_exports.items():
            entry = self.locals.get(local)
            if entry is not None:
                self.parsed.exports[exported] = entry

        self._collect_references(root)
        return self.parsed

    # --- imports ---

    def _import_statement(self, node: Node) -> None:
        source = node.child_by_field_name("source")
        require_clause = None
        if source is None:
            for child in node.named_children:
                if child.type == "import_require_clause":
                    require_clause = child
                    source = child.child_by_field_name("source")
        if source is None:
            return

        statement = ModuleStatement(
            specifier=_string_value(source),
            line=_line(node),
            type_only=_has_keyword(node, "type"),
        )

        if require_clause is not None:
            # import x = require("./x")
            for child in require_clause.named_children:
                if child.type == "identifier":
                    statement.bindings.append(
                        StatementBinding(BindingForm.DEFAULT, "default", _text(child))
                    )
                    break

        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for child in clause.named_children:
                if child.type == "identifier":
                    statement.bindings.append(
                        StatementBinding(BindingForm.DEFAULT, "default", _text(child))
                    )
                elif child.type == "namespace_import":
                    name = next((c for c in child.named_children if c.type == "identifier"), None)
                    if name is not None:
                        statement.bindings.append(
                            StatementBinding(BindingForm.NAMESPACE, "*", _text(name))
                        )
                elif child.type == "named_imports":
                    for spec in child.named_children:
                        if spec.type == "import_specifier":
                            statement.bindings.append(self._import_specifier(spec))

        for binding in statement.bindings:
            if binding.form is BindingForm.NAMESPACE:
                self.locals[binding.local] = ExportEntry(kind=DeclarationKind.VARIABLE)
            else:
                self.locals[binding.local] = ExportEntry(
                    specifier=statement.specifier, imported=binding.imported
                )

        self.parsed.statements.append(statement)

    def _import_specifier(self, spec: Node) -> StatementBinding:
        name = spec.child_by_field_name("name")
        alias = spec.child_by_field_name("alias")
        imported = _string_value(name) if name is not None else "default"
        local = _text(alias) if alias is not None else imported
        return StatementBinding(
            BindingForm.NAMED,
            imported,
            local,
            type_only=_has_keyword(spec, "type"),
        )

    # --- exports ---

    def _export_statement(self, node: Node) -> None:
        source = node.child_by_field_name("source")
        if source is not None:
            self._reexport_statement(node, _string_value(source))
            return

        declaration = node.child_by_field_name("declaration")
        is_default = _has_keyword(node, "default")

        if declaration is not None:
            self._declaration(declaration, exported=not is_default)
            if is_default:
                kind = _declaration_kind(declaration)
                self.parsed.exports["default"] = ExportEntry(kind=kind)
            return

        if is_default:
            value = node.child_by_field_name("value")
            if value is None:
                return
            if value.type == "identifier":
                self.local_exports["default"] = _text(value)
            else:
                kind = DECLARATION_KINDS.get(value.type, DeclarationKind.VARIABLE)
                self.parsed.exports["default"] = ExportEntry(kind=kind)
            return

        for child in node.named_children:
            if child.type == "export_clause":
                for spec in child.named_children:
                    if spec.type != "export_specifier":
                        continue
                    name = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    if name is None:
                        continue
                    local = _string_value(name)
                    exported = _string_value(alias) if alias is not None else local
                    self.local_exports[exported] = local

    def _reexport_statement(self, node: Node, specifier: str) -> None:
        statement = ModuleStatement(
            specifier=specifier,
            line=_line(node),
            is_export=True,
            type_only=_has_keyword(node, "type"),
        )

        for child in node.children:
            if child.type == "*" and not child.is_named:
                statement.star = True
                self.parsed.star_exports.append(specifier)
            elif child.type == "namespace_export":
                # export * as ns from "./x" exports one namespace object
                statement.star = True
                name = child.named_children[-1] if child.named_children else None
                if name is not None:
                    self.parsed.exports[_string_value(name)] = ExportEntry(
                        kind=DeclarationKind.VARIABLE
                    )
            elif child.type == "export_clause":
                for spec in child.named_children:
                    if spec.type != "export_specifier":
                        continue
                    name = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    if name is None:
                        continue
                    imported = _string_value(name)
                    exported = _string_value(alias) if alias is not None else imported
                    statement.bindings.append(
                        StatementBinding(
                            BindingForm.NAMED,
                            imported,
                            exported,
                            type_only=_has_keyword(spec, "type"),
                        )
                    )
                    self.parsed.exports[exported] = ExportEntry(
                        specifier=specifier, imported=imported
                    )

        self.parsed.statements.append(statement)

    # --- declarations ---

    def _declaration(self, node: Node, exported: bool) -> list[str]:
        """Record the names a top-level declaration introduces."""
        if node.type == "ambient_declaration":
            names: list[str] = []
            for child in node.named_children:
                names.extend(self._declaration(child, exported))
            return names

        if node.type == "expression_statement":
            inner = node.named_children[0] if node.named_children else None
            if inner is not None and inner.type in ("internal_module", "module"):
                return self._declaration(inner, exported)
            return []

        kind = DECLARATION_KINDS.get(node.type)
        if kind is None:
            return []

        if node.type in ("lexical_declaration", "variable_declaration"):
            names = []
            for declarator in node.named_children:
                if declarator.type == "variable_declarator":
                    target = declarator.child_by_field_name("name")
                    if target is not None:
                        names.extend(_pattern_names(target))
        else:
            name = node.child_by_field_name("name")
            names = [_string_value(name)] if name is not None else []

        for name in names:
            self._record(name, kind, exported)
        return names

    def _record(self, name: str, kind: DeclarationKind, exported: bool) -> None:
        table = [self.locals]
        if exported:
            table.append(self.parsed.exports)
        for entries in table:
            existing = entries.get(name)
            # Declaration merging: a value declaration outranks a type one
            if existing is None or existing.kind is None or (
                existing.kind.is_type_only and not kind.is_type_only
            ):
                entries[name] = ExportEntry(kind=kind)

    # --- references ---

    def _collect_references(self, root: Node) -> None:
        stack: list[tuple[Node, bool]] = [(root, False)]
        while stack:
            node, in_type = stack.pop()

            if node.type == "import_statement":
                continue
            if node.type == "export_statement" and node.child_by_field_name("source") is not None:
                continue

            if node.type in IDENTIFIER_TYPES:
                parent = node.parent
                is_base = (
                    parent is not None
                    and parent.type == "member_expression"
                    and parent.child_by_field_name("object") == node
                )
                self.parsed.references.append(
                    NameReference(
                        name=_text(node),
                        line=_line(node),
                        in_type_position=in_type or node.type == "type_identifier",
                        is_property_base=is_base,
                    )
                )
                continue

            child_in_type = in_type or node.type in TYPE_CONTEXTS
            for child in reversed(node.children):
                stack.append((child, child_in_type))


def _declaration_kind(node: Node) -> DeclarationKind:
    if node.type == "ambient_declaration":
        for child in node.named_children:
            if child.type in DECLARATION_KINDS:
                return DECLARATION_KINDS[child.type]
    return DECLARATION_KINDS.get(node.type, DeclarationKind.VARIABLE)


def _pattern_names(node: Node) -> list[str]:
    """Names bound by a variable declarator target (plain or destructured)."""
    if node.type == "identifier":
        return [_text(node)]
    names: list[str] = []
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type in ("identifier", "shorthand_property_identifier_pattern"):
            parent = current.parent
            # skip the key in `{ key: local }`
            if parent is not None and parent.type == "pair_pattern" and (
                parent.child_by_field_name("key") == current
            ):
                continue
            names.append(_text(current))
            continue
        stack.extend(current.named_children)
    return names
