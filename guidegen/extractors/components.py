"""Extractor for UI components and stateful hooks in JavaScript/TypeScript sources."""

from __future__ import annotations

import re
from typing import Iterable, List

from .base import Extractor
from .syntax import grammar_for, parse_source, returns_markup, script_functions, script_parameters
from .utils import make_entity
from ..models import Entity, EntityKind, FileMeta

_HOOK_NAME = re.compile(r"use[A-Z0-9]\w*")


class ComponentExtractor(Extractor):
    """Recognises capitalised markup-returning functions and ``useXxx`` hooks."""

    name = "components"
    languages = frozenset({"JavaScript", "TypeScript"})

    def extract(self, meta: FileMeta, text: str) -> Iterable[Entity]:
        grammar = grammar_for(meta)
        if grammar is None or grammar == "python":
            return []
        source = parse_source(grammar, text)
        entities: List[Entity] = []
        for function in script_functions(source):
            body = function.body_node
            if _HOOK_NAME.fullmatch(function.name):
                kind = EntityKind.STATEFUL_HOOK
            elif function.name[0].isupper() and returns_markup(body):
                kind = EntityKind.UI_COMPONENT
            else:
                continue
            fields = script_parameters(source, function.parameters_node)
            entities.append(make_entity(meta.path, function.name, kind, fields, source.text(body)))
        return entities


__all__ = ["ComponentExtractor"]
