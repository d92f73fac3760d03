"""Extractor for data-store definitions (tables, ORM models, Prisma models)."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from tree_sitter import Node

from .base import Extractor
from .syntax import (
    SourceTree,
    binding_name,
    first_argument,
    grammar_for,
    iter_nodes,
    object_fields,
    parse_source,
)
from .utils import make_entity, semantic_type
from ..models import Entity, EntityKind, Field, FileMeta

# Prisma blocks never nest braces, so a line-anchored match is enough.
_PRISMA_MODEL = re.compile(r"^model\s+(\w+)\s*\{(.*?)^\}", re.MULTILINE | re.DOTALL)
_PRISMA_FIELD = re.compile(r"^\s*(\w+)\s+([\w\[\]?]+)")
_FIELD_FACTORY = re.compile(r"(?:Column|mapped_column|Field|\w+Field|ForeignKey)")

_MODEL_BASES = frozenset(
    {
        "BaseModel",
        "SQLModel",
        "Base",
        "DeclarativeBase",
        "Model",
        "models.Model",
        "db.Model",
        "Document",
    }
)
_IGNORED_ATTRIBUTES = frozenset({"model_config", "Config", "Meta"})


class SchemaExtractor(Extractor):
    """Recognises schema-definition constructs as data-store entities."""

    name = "schema"
    languages = frozenset({"JavaScript", "TypeScript", "Python", "Prisma"})

    def extract(self, meta: FileMeta, text: str) -> Iterable[Entity]:
        if meta.language == "Prisma":
            return self._prisma_models(meta.path, text)
        grammar = grammar_for(meta)
        if grammar is None:
            return []
        source = parse_source(grammar, text)
        if grammar == "python":
            return self._python_models(meta.path, source)
        return self._define_tables(meta.path, source)

    @staticmethod
    def _define_tables(path: str, source: SourceTree) -> List[Entity]:
        entities: List[Entity] = []
        for call in iter_nodes(source.root, "call_expression"):
            if source.text(call.child_by_field_name("function")) != "defineTable":
                continue
            name = binding_name(source, call)
            if not name:
                continue
            fields = object_fields(source, first_argument(call))
            entities.append(make_entity(path, name, EntityKind.DATA_STORE, fields, source.text(call)))
        return entities

    @staticmethod
    def _python_models(path: str, source: SourceTree) -> List[Entity]:
        entities: List[Entity] = []
        for node in iter_nodes(source.root, "class_definition"):
            if not _model_bases(source, node.child_by_field_name("superclasses")) & _MODEL_BASES:
                continue
            body = node.child_by_field_name("body")
            entities.append(
                make_entity(
                    path,
                    source.text(node.child_by_field_name("name")),
                    EntityKind.DATA_STORE,
                    _class_fields(source, body),
                    source.text(body),
                )
            )
        return entities

    @staticmethod
    def _prisma_models(path: str, text: str) -> List[Entity]:
        entities: List[Entity] = []
        for match in _PRISMA_MODEL.finditer(text):
            name, body = match.groups()
            fields: List[Field] = []
            for line in body.splitlines():
                stripped = line.strip()
                if not stripped or stripped.startswith(("@@", "//")):
                    continue
                field_match = _PRISMA_FIELD.match(stripped)
                if field_match:
                    fields.append(Field(field_match.group(1), field_match.group(2)))
            entities.append(make_entity(path, name, EntityKind.DATA_STORE, fields, body))
        return entities


def _model_bases(source: SourceTree, superclasses: Optional[Node]) -> set[str]:
    if superclasses is None:
        return set()
    names = set()
    for base in superclasses.named_children:
        if base.type == "keyword_argument":
            continue
        if base.type == "subscript":
            base = base.child_by_field_name("value") or base
        names.add(source.text(base))
    return names


def _class_fields(source: SourceTree, body: Optional[Node]) -> List[Field]:
    """Read class-level annotated attributes and ``Column(...)``-style assignments."""
    fields: List[Field] = []
    if body is None:
        return fields
    seen: set[str] = set()
    for statement in body.named_children:
        if statement.type != "expression_statement" or not statement.named_children:
            continue
        assignment = statement.named_children[0]
        if assignment.type != "assignment":
            continue
        target = assignment.child_by_field_name("left")
        if target is None or target.type != "identifier":
            continue
        name = source.text(target)
        annotation = assignment.child_by_field_name("type")
        value = assignment.child_by_field_name("right")
        if annotation is not None:
            kind = semantic_type(source.text(annotation))
        elif value is not None and value.type == "call":
            kind = _factory_type(source, value)
            if kind is None:
                continue
        else:
            continue
        if name.startswith("_") or name in seen or name in _IGNORED_ATTRIBUTES:
            continue
        seen.add(name)
        fields.append(Field(name, kind))
    return fields


def _factory_type(source: SourceTree, call: Node) -> Optional[str]:
    """Return the column type of ``Column(Integer, ...)``, or the factory name itself."""
    factory = source.text(call.child_by_field_name("function"))
    if not _FIELD_FACTORY.fullmatch(factory.rsplit(".", 1)[-1]):
        return None
    arguments = call.child_by_field_name("arguments")
    if arguments is not None and arguments.named_children:
        first = arguments.named_children[0]
        if first.type in {"identifier", "attribute"}:
            return source.text(first)
        if first.type == "call":
            return source.text(first.child_by_field_name("function"))
    return factory


__all__ = ["SchemaExtractor"]
