"""Builds the hierarchy of advisory documents from a catalog."""

from __future__ import annotations

import posixpath
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Tuple

from ..errors import BudgetUnsatisfiable
from ..logging import get_logger
from ..models import (
    Catalog,
    DirectoryNode,
    DocumentNode,
    DocumentSection,
    DocumentTree,
    Entity,
    EntityKind,
)
from .constants import DEFAULT_FILENAME, SECTION_ORDER, SECTION_TITLES, TRUNCATION_ORDER
from .render import DocumentRenderer, count_words
from .rules import RuleSet, load_rules

_POPULAR_LIMIT = 5

_KIND_ORDER: Tuple[EntityKind, ...] = tuple(EntityKind)

_SEARCH_HINTS: Dict[EntityKind, Tuple[str, str]] = {
    EntityKind.DATA_STORE: ("Data stores", r"defineTable\(|class \w+\((BaseModel|SQLModel|Base)\b|^model \w+"),
    EntityKind.READ_OPERATION: ("Read operations", r"(query|internalQuery)\(|@query\b"),
    EntityKind.WRITE_OPERATION: ("Write operations", r"(mutation|action|internalMutation|internalAction)\(|@mutation\b"),
    EntityKind.STATEFUL_HOOK: ("Stateful hooks", r"(function|const) use[A-Z]\w*"),
    EntityKind.UI_COMPONENT: ("UI components", r"(function|const) [A-Z]\w*"),
    EntityKind.ROUTE: ("Routes", r"\.(get|post|put|delete|patch|route)\("),
}


@dataclass(frozen=True)
class Budgets:
    """Word limits for the root document and for directory documents."""

    root_words: int = 600
    directory_words: int = 900

    def for_path(self, path: str) -> int:
        return self.root_words if not path else self.directory_words


@dataclass
class _Plan:
    path: str
    entities: List[Entity] = field(default_factory=list)
    children: List["_Plan"] = field(default_factory=list)
    parent: Optional[str] = None

    def walk(self) -> List["_Plan"]:
        ordered = [self]
        for child in self.children:
            ordered.extend(child.walk())
        return ordered


class DocumentTreeGenerator:
    """Chooses which directories get a document and renders each one."""

    def __init__(
        self,
        renderer: DocumentRenderer | None = None,
        rules: RuleSet | None = None,
        *,
        min_entities: int = 3,
        filename: str = DEFAULT_FILENAME,
        workers: int | None = None,
    ) -> None:
        self.renderer = renderer or DocumentRenderer()
        self.rules = rules if rules is not None else load_rules()
        self.min_entities = min_entities
        self.filename = filename
        self.workers = workers
        self.logger = get_logger("docs")

    def generate(
        self,
        catalog: Catalog,
        directory_tree: DirectoryNode,
        budgets: Budgets | None = None,
    ) -> DocumentTree:
        """Return the document tree for ``catalog`` laid over ``directory_tree``.

        Directories whose entity subset falls below ``min_entities`` fold into
        their nearest documented ancestor. The root always gets a document.
        """
        budgets = budgets or Budgets()
        root_plan = self._plan(catalog, directory_tree)
        plans = root_plan.walk()
        self.logger.debug("Planned %d documents", len(plans))

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            rendered = list(
                pool.map(lambda plan: self._build_node(plan, catalog, budgets), plans)
            )

        nodes: Dict[str, DocumentNode] = {}
        warnings: List[object] = []
        for node, warning in rendered:
            nodes[node.path] = node
            if warning is not None:
                warnings.append(warning)
                self.logger.warning("%s", warning)

        for plan in plans:
            nodes[plan.path].children = [nodes[child.path] for child in plan.children]

        tree = DocumentTree(root=nodes[root_plan.path], warnings=warnings)
        self.logger.info(
            "Generated %d documents (%d warnings)", len(plans), len(warnings)
        )
        return tree

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------
    def _plan(self, catalog: Catalog, directory_tree: DirectoryNode) -> _Plan:
        by_directory: Dict[str, List[Entity]] = {}
        for entity in catalog.entities:
            by_directory.setdefault(entity.directory, []).append(entity)

        visited: set[str] = set()

        def _visit(directory: DirectoryNode) -> Tuple[List[_Plan], List[Entity]]:
            visited.add(directory.path)
            subset = list(by_directory.get(directory.path, ()))
            hoisted: List[_Plan] = []
            for child in sorted(directory.children, key=lambda item: item.path):
                child_plans, folded = _visit(child)
                hoisted.extend(child_plans)
                subset.extend(folded)

            if not directory.path or len(subset) >= self.min_entities:
                plan = _Plan(path=directory.path, entities=subset, children=hoisted)
                for child_plan in hoisted:
                    child_plan.parent = directory.path
                return [plan], []
            return hoisted, subset

        plans, _ = _visit(directory_tree)
        root = plans[0]
        for directory, entities in sorted(by_directory.items()):
            if directory not in visited:
                root.entities.extend(entities)
        for plan in root.walk():
            plan.entities.sort(key=lambda entity: entity.id)
        return root

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _build_node(
        self, plan: _Plan, catalog: Catalog, budgets: Budgets
    ) -> Tuple[DocumentNode, Optional[BudgetUnsatisfiable]]:
        static = self.rules.for_directory(plan.path)
        sections: List[DocumentSection] = []
        for name in SECTION_ORDER:
            if name == "identity":
                body = self.renderer.render_section(name, self._identity_context(plan, catalog))
            elif name == "structure":
                body = self.renderer.render_section(name, self._structure_context(plan))
            elif name == "quick_find":
                context = self._quick_find_context(plan)
                if not context["hints"]:
                    continue
                body = self.renderer.render_section(name, context)
            else:
                body = static.get(name, "").strip()
                if not body:
                    continue
            sections.append(DocumentSection(name=name, title=SECTION_TITLES[name], body=body))

        node = DocumentNode(
            path=plan.path,
            size_budget_words=budgets.for_path(plan.path),
            sections=sections,
            entity_ids=[entity.id for entity in plan.entities],
        )
        return node, self._enforce_budget(node)

    def _enforce_budget(self, node: DocumentNode) -> Optional[BudgetUnsatisfiable]:
        words = count_words(self.renderer.render_document(node))
        for name in TRUNCATION_ORDER:
            if words <= node.size_budget_words:
                return None
            if node.section(name) is None:
                continue
            node.sections = [section for section in node.sections if section.name != name]
            node.truncated.append(name)
            words = count_words(self.renderer.render_document(node))
        if words <= node.size_budget_words:
            return None
        node.over_budget = True
        return BudgetUnsatisfiable(node.path, words, node.size_budget_words)

    def _identity_context(self, plan: _Plan, catalog: Catalog) -> Dict[str, object]:
        kinds = Counter(entity.kind for entity in plan.entities)
        domains = sorted({entity.domain for entity in plan.entities if entity.domain})
        parent_link = ""
        if plan.parent is not None:
            parent_link = self._link(plan.path, plan.parent)
        return {
            "is_root": not plan.path,
            "project": PurePosixPath(catalog.root.replace("\\", "/")).name or "repository",
            "path": plan.path,
            "parent_link": parent_link,
            "entity_total": len(plan.entities),
            "kind_counts": [f"{kinds[kind]} {kind.value}" for kind in _KIND_ORDER if kinds[kind]],
            "domains": domains,
        }

    def _structure_context(self, plan: _Plan) -> Dict[str, object]:
        grouped: Dict[EntityKind, List[Entity]] = {}
        for entity in plan.entities:
            grouped.setdefault(entity.kind, []).append(entity)
        groups = [
            {
                "kind": kind.value,
                "entities": [
                    {
                        "name": entity.name,
                        "path": entity.path,
                        "fields": entity.field_names,
                        "consumers": len(entity.consumers),
                    }
                    for entity in grouped[kind]
                ],
            }
            for kind in _KIND_ORDER
            if kind in grouped
        ]
        children = [
            {"path": child.path, "link": self._link(plan.path, child.path)}
            for child in plan.children
        ]
        return {"children": children, "groups": groups}

    def _quick_find_context(self, plan: _Plan) -> Dict[str, object]:
        present = {entity.kind for entity in plan.entities}
        scope = plan.path or "."
        hints = []
        for kind in _KIND_ORDER:
            if kind not in present:
                continue
            label, pattern = _SEARCH_HINTS[kind]
            hints.append({"label": label, "command": f"rg -n '{pattern}' {scope}"})
        popular = sorted(
            (entity for entity in plan.entities if entity.consumers),
            key=lambda entity: (-len(entity.consumers), entity.name, entity.id),
        )[:_POPULAR_LIMIT]
        return {
            "hints": hints,
            "popular": [
                {"name": entity.name, "consumers": len(entity.consumers)} for entity in popular
            ],
        }

    def _link(self, source_dir: str, target_dir: str) -> str:
        target = posixpath.join(target_dir, self.filename) if target_dir else self.filename
        return posixpath.relpath(target, start=source_dir or ".")


def document_paths(tree: DocumentTree, filename: str = DEFAULT_FILENAME) -> List[str]:
    """Return the relative output path of every node in ``tree``."""
    return [
        posixpath.join(node.path, filename) if node.path else filename
        for node in tree.nodes()
    ]


__all__ = ["Budgets", "DocumentTreeGenerator", "document_paths"]
