"""Extractor for HTTP routes declared with decorators or router calls."""

from __future__ import annotations

import re
from typing import Iterable, List

from .base import Extractor
from .syntax import SourceTree, first_argument, grammar_for, iter_nodes, parse_source, python_functions
from .utils import make_entity
from ..models import Entity, EntityKind, Field, FileMeta

_PY_ROUTE_DECORATOR = re.compile(
    r"^\w+(?:\.\w+)*\.(get|post|put|delete|patch|route|api_route)\(\s*(['\"])([^'\"]+)\2"
)
_EXPRESS_CALLEE = re.compile(r"(?:app|router)\.(get|post|put|delete|patch)")
_PATH_PARAM = re.compile(r"\{(\w+)(?::[^}]*)?\}|<(?:\w+:)?(\w+)>|:(\w+)")


class RouteExtractor(Extractor):
    """Detects FastAPI/Flask decorated handlers and Express routes."""

    name = "routes"
    languages = frozenset({"JavaScript", "TypeScript", "Python"})

    def extract(self, meta: FileMeta, text: str) -> Iterable[Entity]:
        grammar = grammar_for(meta)
        if grammar is None:
            return []
        source = parse_source(grammar, text)
        if grammar == "python":
            return self._python_routes(meta.path, source)
        return self._express_routes(meta.path, source)

    @staticmethod
    def _python_routes(path: str, source: SourceTree) -> List[Entity]:
        entities: List[Entity] = []
        for function in python_functions(source):
            for decorator in function.decorators:
                match = _PY_ROUTE_DECORATOR.match(decorator.expression)
                if not match:
                    continue
                fields = _merge_fields(_path_params(match.group(3)), function.parameters)
                entities.append(make_entity(path, function.name, EntityKind.ROUTE, fields, function.body))
                break
        return entities

    @staticmethod
    def _express_routes(path: str, source: SourceTree) -> List[Entity]:
        entities: List[Entity] = []
        for call in iter_nodes(source.root, "call_expression"):
            callee = _EXPRESS_CALLEE.fullmatch(source.text(call.child_by_field_name("function")))
            route_node = first_argument(call)
            if not callee or route_node is None or route_node.type not in {"string", "template_string"}:
                continue
            route = source.text(route_node).strip("'\"`")
            name = f"{callee.group(1).upper()} {route}"
            entities.append(make_entity(path, name, EntityKind.ROUTE, _path_params(route), source.text(call)))
        return entities


def _path_params(route: str) -> List[Field]:
    names = [next(group for group in match.groups() if group) for match in _PATH_PARAM.finditer(route)]
    return [Field(name, "path") for name in names]


def _merge_fields(primary: List[Field], extra: List[Field]) -> List[Field]:
    seen = {item.name for item in primary}
    merged = list(primary)
    for item in extra:
        if item.name not in seen:
            merged.append(item)
            seen.add(item.name)
    return merged


__all__ = ["RouteExtractor"]
