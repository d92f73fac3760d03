"""Core data models shared across guidegen components."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set, Tuple


class EntityKind(str, Enum):
    """Kinds of existing functionality the catalog recognises."""

    DATA_STORE = "data-store"
    READ_OPERATION = "read-operation"
    WRITE_OPERATION = "write-operation"
    STATEFUL_HOOK = "stateful-hook"
    UI_COMPONENT = "ui-component"
    ROUTE = "route"


class Action(str, Enum):
    """Final verdicts the advisor can reach."""

    USE_EXISTING = "use-existing"
    EXTEND = "extend"
    CREATE_NEW = "create-new"
    RECONSIDER = "reconsider"


@dataclass
class FileMeta:
    """Metadata for an individual repository file."""

    path: str
    size: int
    language: Optional[str]
    role: str
    hash: str


@dataclass
class RepoManifest:
    """Normalized, read-only view of the repository snapshot."""

    root: str
    files: List[FileMeta]


@dataclass(frozen=True)
class Field:
    """A named, loosely typed field or parameter."""

    name: str
    type: str = ""


_IMMUTABLE_ENTITY_ATTRS = frozenset({"id", "kind"})


@dataclass
class Entity:
    """A unit of existing functionality discovered in the codebase."""

    id: str
    kind: EntityKind
    name: str
    path: str
    domain: str
    fields: List[Field] = field(default_factory=list)
    consumers: Set[str] = field(default_factory=set)
    references: Tuple[str, ...] = ()

    def __setattr__(self, name: str, value: object) -> None:
        if name in _IMMUTABLE_ENTITY_ATTRS and name in self.__dict__:
            raise AttributeError(f"Entity.{name} cannot be reassigned")
        super().__setattr__(name, value)

    @property
    def directory(self) -> str:
        head, _, _ = self.path.rpartition("/")
        return head

    @property
    def field_names(self) -> List[str]:
        return [item.name for item in self.fields]


@dataclass(frozen=True)
class SkippedFile:
    """A file the catalog could not classify, with the reason."""

    path: str
    reason: str


@dataclass
class Catalog:
    """Inventory of entities for one repository snapshot, sorted by id."""

    root: str
    entities: List[Entity] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)

    def get(self, entity_id: str) -> Optional[Entity]:
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def by_kind(self) -> Dict[EntityKind, List[Entity]]:
        grouped: Dict[EntityKind, List[Entity]] = {}
        for entity in self.entities:
            grouped.setdefault(entity.kind, []).append(entity)
        return grouped

    def in_directory(self, directory: str, *, recursive: bool = True) -> List[Entity]:
        """Return entities located in ``directory`` (posix, ``""`` is the root)."""
        if not recursive:
            return [entity for entity in self.entities if entity.directory == directory]
        if not directory:
            return list(self.entities)
        prefix = f"{directory}/"
        return [entity for entity in self.entities if entity.path.startswith(prefix)]

    def summary(self) -> Dict[str, object]:
        kinds = Counter(entity.kind.value for entity in self.entities)
        domains = Counter(entity.domain for entity in self.entities)
        return {
            "root": self.root,
            "entities": len(self.entities),
            "kinds": dict(sorted(kinds.items())),
            "domains": dict(sorted(domains.items())),
            "skipped": len(self.skipped),
        }


@dataclass
class ChangeProposal:
    """A proposed code change to evaluate."""

    description: str
    target_domain: Optional[str] = None
    kind: Optional[EntityKind] = None
    fields: List[str] = field(default_factory=list)
    estimated_naive_lines: Optional[int] = None
    estimated_extend_lines: Optional[int] = None
    call_sites: int = 0
    criteria: Dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class Candidate:
    """An existing entity that overlaps with a proposal."""

    entity: Entity
    score: float


@dataclass(frozen=True)
class RationaleEntry:
    """One scored criterion and its signed contribution."""

    criterion: str
    label: str
    applies: bool
    contribution: int


@dataclass
class Recommendation:
    """Outcome of evaluating a proposal."""

    action: Action
    score: int
    rationale: List[RationaleEntry] = field(default_factory=list)
    terminal: str = ""
    polarity: Optional[str] = None
    candidates: List[Tuple[str, float]] = field(default_factory=list)

    @property
    def requires_review(self) -> bool:
        return self.action is Action.RECONSIDER

    def to_dict(self) -> Dict[str, object]:
        return {
            "action": self.action.value,
            "score": self.score,
            "terminal": self.terminal,
            "polarity": self.polarity,
            "requires_review": self.requires_review,
            "candidates": [
                {"id": entity_id, "score": round(score, 4)}
                for entity_id, score in self.candidates
            ],
            "rationale": [
                {
                    "criterion": entry.criterion,
                    "label": entry.label,
                    "applies": entry.applies,
                    "contribution": entry.contribution,
                }
                for entry in self.rationale
            ],
        }


@dataclass
class DirectoryNode:
    """A directory in the snapshot and the files directly inside it."""

    path: str
    files: List[str] = field(default_factory=list)
    children: List["DirectoryNode"] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1] if self.path else ""


@dataclass
class DocumentSection:
    """A rendered section body within a guidance document."""

    name: str
    title: str
    body: str


@dataclass
class DocumentNode:
    """One emitted advisory document governing a directory."""

    path: str
    size_budget_words: int
    sections: List[DocumentSection] = field(default_factory=list)
    children: List["DocumentNode"] = field(default_factory=list)
    entity_ids: List[str] = field(default_factory=list)
    over_budget: bool = False
    truncated: List[str] = field(default_factory=list)

    def section(self, name: str) -> Optional[DocumentSection]:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def walk(self) -> Iterator["DocumentNode"]:
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class DocumentTree:
    """The full set of generated documents plus non-fatal warnings."""

    root: DocumentNode
    warnings: List[object] = field(default_factory=list)

    def nodes(self) -> List[DocumentNode]:
        return list(self.root.walk())

    def resolve(self, file_path: str) -> DocumentNode:
        """Return the node whose path is the longest component prefix of ``file_path``."""
        target = [part for part in file_path.replace("\\", "/").split("/") if part not in {"", "."}]
        best = self.root
        best_depth = 0
        for node in self.root.walk():
            parts = node.path.split("/") if node.path else []
            if len(parts) > best_depth and target[: len(parts)] == parts:
                best = node
                best_depth = len(parts)
        return best
