"""Tree-sitter parsing shared by the extractors."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

import tree_sitter_javascript
import tree_sitter_python
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from ..models import Field, FileMeta
from .utils import semantic_type

_GRAMMARS: Dict[str, Callable[[], object]] = {
    "python": tree_sitter_python.language,
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
    "javascript": tree_sitter_javascript.language,
}

RECEIVERS = frozenset({"self", "cls", "ctx"})

JSX_NODES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})

# Nodes that open a new function scope in JavaScript/TypeScript.
SCRIPT_SCOPES = frozenset(
    {
        "arrow_function",
        "class_declaration",
        "function_declaration",
        "function_expression",
        "generator_function_declaration",
        "method_definition",
    }
)


def grammar_for(meta: FileMeta) -> Optional[str]:
    """Return the grammar key used to parse ``meta``, or None when none applies."""
    lower = meta.path.lower()
    if meta.language == "Python" or lower.endswith(".py"):
        return "python"
    if lower.endswith(".tsx"):
        return "tsx"
    if meta.language == "TypeScript" or lower.endswith((".ts", ".mts", ".cts")):
        return "typescript"
    if meta.language == "JavaScript" or lower.endswith((".js", ".jsx", ".mjs", ".cjs")):
        return "javascript"
    return None


@lru_cache(maxsize=None)
def _language(grammar: str) -> Language:
    return Language(_GRAMMARS[grammar]())


@dataclass(frozen=True, eq=False)
class SourceTree:
    """A parsed file together with the bytes its nodes point into."""

    grammar: str
    tree: Tree
    source: bytes

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


@lru_cache(maxsize=32)
def parse_source(grammar: str, text: str) -> SourceTree:
    """Parse ``text`` with the named grammar.

    Every extractor reads the same file, so recent trees are cached and shared.
    A fresh ``Parser`` is built per call because parsers must not be shared
    between the catalog's worker threads.
    """
    source = text.encode("utf-8")
    parser = Parser(_language(grammar))
    return SourceTree(grammar=grammar, tree=parser.parse(source), source=source)


def walk(node: Node, *, stop: FrozenSet[str] = frozenset()) -> Iterator[Node]:
    """Yield ``node`` and its descendants in document order.

    Descendants of nodes whose type is in ``stop`` are not visited.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if current is not node and current.type in stop:
            continue
        stack.extend(reversed(current.children))


def iter_nodes(root: Node, *types: str) -> Iterator[Node]:
    for node in walk(root):
        if node.type in types:
            yield node


def unwrap_parens(node: Node) -> Node:
    while node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


def _unquote(text: str) -> str:
    return text.strip("'\"`")


# Python ---------------------------------------------------------------------


@dataclass(frozen=True)
class Decorator:
    """A decorator's marker name (``query`` for ``@api.query(cache=True)``) and source."""

    name: str
    expression: str


@dataclass(frozen=True)
class PythonFunction:
    name: str
    decorators: Tuple[Decorator, ...]
    parameters: List[Field]
    body: str


def _decorator(source: SourceTree, node: Node) -> Optional[Decorator]:
    if not node.named_children:
        return None
    expression = node.named_children[0]
    target = expression
    if target.type == "call":
        target = target.child_by_field_name("function") or target
    if target.type == "attribute":
        target = target.child_by_field_name("attribute") or target
    return Decorator(name=source.text(target), expression=source.text(expression))


def decorators_of(source: SourceTree, definition: Node) -> Tuple[Decorator, ...]:
    """Return the decorators applied to a function or class definition."""
    parent = definition.parent
    if parent is None or parent.type != "decorated_definition":
        return ()
    found = (_decorator(source, child) for child in parent.children if child.type == "decorator")
    return tuple(item for item in found if item is not None)


def python_parameters(
    source: SourceTree, parameters: Optional[Node], *, skip: Iterable[str] = RECEIVERS
) -> List[Field]:
    """Read a ``parameters`` node into fields; ``**kwargs`` and receivers are left out."""
    skipped = set(skip)
    fields: List[Field] = []
    if parameters is None:
        return fields
    for child in parameters.named_children:
        if child.type in {"default_parameter", "typed_default_parameter"}:
            target = child.child_by_field_name("name")
        elif child.type == "typed_parameter":
            target = child.named_children[0] if child.named_children else None
        else:
            target = child
        if target is not None and target.type == "list_splat_pattern":
            target = target.named_children[0] if target.named_children else None
        if target is None or target.type != "identifier":
            continue
        name = source.text(target)
        if name in skipped:
            continue
        annotation = child.child_by_field_name("type")
        fields.append(Field(name, semantic_type(source.text(annotation)) if annotation else ""))
    return fields


def python_functions(source: SourceTree) -> Iterator[PythonFunction]:
    """Yield every ``def`` in the file, nested ones included, in document order."""
    for node in iter_nodes(source.root, "function_definition"):
        name = source.text(node.child_by_field_name("name"))
        if not name:
            continue
        yield PythonFunction(
            name=name,
            decorators=decorators_of(source, node),
            parameters=python_parameters(source, node.child_by_field_name("parameters")),
            body=source.text(node.child_by_field_name("body")),
        )


# JavaScript / TypeScript -----------------------------------------------------


def object_fields(source: SourceTree, node: Optional[Node]) -> List[Field]:
    """Read the ``key: value`` pairs of an object literal; spreads and shorthands are skipped."""
    fields: List[Field] = []
    if node is None or node.type != "object":
        return fields
    for child in node.named_children:
        if child.type != "pair":
            continue
        key = child.child_by_field_name("key")
        if key is None or key.type not in {"property_identifier", "string"}:
            continue
        value = source.text(child.child_by_field_name("value"))
        fields.append(Field(_unquote(source.text(key)), semantic_type(value)))
    return fields


def object_property(source: SourceTree, node: Optional[Node], key: str) -> Optional[Node]:
    """Return the value node stored under ``key`` in an object literal."""
    if node is None or node.type != "object":
        return None
    for child in node.named_children:
        if child.type == "pair" and _unquote(source.text(child.child_by_field_name("key"))) == key:
            return child.child_by_field_name("value")
    return None


def first_argument(call: Node) -> Optional[Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None or not arguments.named_children:
        return None
    return arguments.named_children[0]


def _destructured_names(source: SourceTree, pattern: Node) -> List[str]:
    names: List[str] = []
    for child in pattern.named_children:
        if child.type == "shorthand_property_identifier_pattern":
            names.append(source.text(child))
        elif child.type == "pair_pattern":
            names.append(_unquote(source.text(child.child_by_field_name("key"))))
        elif child.type == "object_assignment_pattern":
            names.append(source.text(child.child_by_field_name("left")))
    return [name for name in names if name]


def script_parameters(
    source: SourceTree, parameters: Optional[Node], *, skip: Iterable[str] = RECEIVERS
) -> List[Field]:
    """Read ``formal_parameters`` (or a bare arrow parameter) into fields.

    Destructured props contribute one field per property; rest parameters are skipped.
    """
    skipped = set(skip)
    fields: List[Field] = []
    if parameters is None:
        return fields
    if parameters.type == "identifier":
        name = source.text(parameters)
        return [] if name in skipped else [Field(name)]
    for child in parameters.named_children:
        pattern, annotation = child, None
        if child.type in {"required_parameter", "optional_parameter"}:
            pattern = child.child_by_field_name("pattern")
            annotation = child.child_by_field_name("type")
        if pattern is not None and pattern.type == "assignment_pattern":
            pattern = pattern.child_by_field_name("left")
        if pattern is None:
            continue
        if pattern.type == "object_pattern":
            fields.extend(Field(name) for name in _destructured_names(source, pattern))
        elif pattern.type == "identifier":
            name = source.text(pattern)
            if name not in skipped:
                fields.append(Field(name, semantic_type(source.text(annotation)) if annotation else ""))
    return fields


@dataclass(frozen=True)
class ScriptFunction:
    """A named function declaration or a variable bound to an arrow/function expression."""

    name: str
    node: Node

    @property
    def parameters_node(self) -> Optional[Node]:
        return self.node.child_by_field_name("parameters") or self.node.child_by_field_name("parameter")

    @property
    def body_node(self) -> Optional[Node]:
        return self.node.child_by_field_name("body")


def script_functions(source: SourceTree) -> Iterator[ScriptFunction]:
    """Yield declared and variable-bound functions in document order."""
    for node in iter_nodes(source.root, "function_declaration", "variable_declarator"):
        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            continue
        if node.type == "function_declaration":
            yield ScriptFunction(source.text(name_node), node)
            continue
        value = node.child_by_field_name("value")
        if value is not None and value.type in {"arrow_function", "function_expression", "function"}:
            yield ScriptFunction(source.text(name_node), value)


def returns_markup(body: Optional[Node]) -> bool:
    """Return True when a function body evaluates to JSX in its own scope."""
    if body is None:
        return False
    if body.type != "statement_block":
        return unwrap_parens(body).type in JSX_NODES
    for node in walk(body, stop=SCRIPT_SCOPES):
        if node.type in SCRIPT_SCOPES:
            continue
        if node.type == "return_statement" and node.named_children:
            if unwrap_parens(node.named_children[0]).type in JSX_NODES:
                return True
    return False


def exported_declarators(source: SourceTree) -> Iterator[Tuple[str, Node]]:
    """Yield ``(name, value)`` for ``export const name = value`` bindings."""
    for node in iter_nodes(source.root, "variable_declarator"):
        declaration = node.parent
        if declaration is None or declaration.type not in {"lexical_declaration", "variable_declaration"}:
            continue
        if declaration.parent is None or declaration.parent.type != "export_statement":
            continue
        name_node = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if name_node is None or name_node.type != "identifier" or value is None:
            continue
        yield source.text(name_node), value


def binding_name(source: SourceTree, node: Node) -> Optional[str]:
    """Name an expression by the object key or variable it is assigned to.

    Method chains such as ``defineTable({...}).index(...)`` are climbed first.
    """
    current = node
    parent = current.parent
    while parent is not None and parent.type in {"member_expression", "call_expression"}:
        current, parent = parent, parent.parent
    if parent is None:
        return None
    if parent.type == "pair" and parent.child_by_field_name("value") == current:
        key = parent.child_by_field_name("key")
        if key is not None and key.type in {"property_identifier", "string"}:
            return _unquote(source.text(key))
    if parent.type == "variable_declarator":
        name = parent.child_by_field_name("name")
        if name is not None and name.type == "identifier":
            return source.text(name)
    return None


__all__ = [
    "Decorator",
    "JSX_NODES",
    "PythonFunction",
    "RECEIVERS",
    "ScriptFunction",
    "SourceTree",
    "binding_name",
    "decorators_of",
    "exported_declarators",
    "first_argument",
    "grammar_for",
    "iter_nodes",
    "object_fields",
    "object_property",
    "parse_source",
    "python_functions",
    "python_parameters",
    "returns_markup",
    "script_functions",
    "script_parameters",
    "unwrap_parens",
    "walk",
]
