"""Extractor for read and write operations exposed through recognised markers."""

from __future__ import annotations

from typing import Iterable, List

from .base import Extractor
from .syntax import (
    SourceTree,
    exported_declarators,
    first_argument,
    grammar_for,
    object_fields,
    object_property,
    parse_source,
    python_functions,
)
from .utils import make_entity
from ..models import Entity, EntityKind, FileMeta

_READ_MARKERS = frozenset({"query", "internalQuery"})
_WRITE_MARKERS = frozenset({"mutation", "internalMutation", "action", "internalAction"})
_PY_READ_DECORATORS = frozenset({"query", "reader", "read_operation"})
_PY_WRITE_DECORATORS = frozenset({"mutation", "command", "writer", "write_operation"})


class OperationExtractor(Extractor):
    """Finds exported functions tagged as queries or mutations."""

    name = "operations"
    languages = frozenset({"JavaScript", "TypeScript", "Python"})

    def extract(self, meta: FileMeta, text: str) -> Iterable[Entity]:
        grammar = grammar_for(meta)
        if grammar is None:
            return []
        source = parse_source(grammar, text)
        if grammar == "python":
            return self._python_operations(meta.path, source)
        return self._exported_operations(meta.path, source)

    @staticmethod
    def _exported_operations(path: str, source: SourceTree) -> List[Entity]:
        entities: List[Entity] = []
        for name, value in exported_declarators(source):
            if value.type != "call_expression":
                continue
            marker = source.text(value.child_by_field_name("function"))
            if marker in _READ_MARKERS:
                kind = EntityKind.READ_OPERATION
            elif marker in _WRITE_MARKERS:
                kind = EntityKind.WRITE_OPERATION
            else:
                continue
            args = object_property(source, first_argument(value), "args")
            entities.append(make_entity(path, name, kind, object_fields(source, args), source.text(value)))
        return entities

    @staticmethod
    def _python_operations(path: str, source: SourceTree) -> List[Entity]:
        entities: List[Entity] = []
        for function in python_functions(source):
            if function.name.startswith("_"):
                continue
            markers = {decorator.name for decorator in function.decorators}
            if markers & _PY_READ_DECORATORS:
                kind = EntityKind.READ_OPERATION
            elif markers & _PY_WRITE_DECORATORS:
                kind = EntityKind.WRITE_OPERATION
            else:
                continue
            entities.append(make_entity(path, function.name, kind, function.parameters, function.body))
        return entities


__all__ = ["OperationExtractor"]
