"""Similarity matching between a change proposal and existing catalog entities."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Set, Tuple

from .config import MatcherConfig
from .extractors.utils import normalise_domain
from .models import Candidate, Catalog, ChangeProposal, Entity, EntityKind

# Checked in order; the first keyword hit decides the implied kind.
_KIND_KEYWORDS: Tuple[Tuple[EntityKind, Tuple[str, ...]], ...] = (
    (EntityKind.STATEFUL_HOOK, ("hook",)),
    (EntityKind.ROUTE, ("endpoint", "route", "webhook")),
    (EntityKind.UI_COMPONENT, ("component", "page", "view", "widget", "display", "screen", "modal", "card")),
    (EntityKind.DATA_STORE, ("table", "schema", "model", "collection", "store", "column")),
    (EntityKind.WRITE_OPERATION, ("create", "update", "delete", "save", "insert", "mutation", "write", "remove")),
    (EntityKind.READ_OPERATION, ("query", "fetch", "list", "get", "read", "search", "lookup", "load")),
)

_STOPWORDS = frozenset(
    {"a", "an", "and", "for", "in", "of", "on", "the", "to", "with", "by", "from", "that", "this", "new", "add"}
)

_DEFAULT_NAIVE_BASE = 40
_DEFAULT_NAIVE_PER_FIELD = 10
_EXTEND_OVERHEAD = 5


def _tokens(text: str) -> Set[str]:
    return {word for word in re.findall(r"[a-z0-9]+", text.lower()) if word not in _STOPWORDS}


def implied_kind(proposal: ChangeProposal) -> Optional[EntityKind]:
    """Return the kind the proposal declares or implies through its description."""
    if proposal.kind is not None:
        return proposal.kind
    words = _tokens(proposal.description)
    for kind, keywords in _KIND_KEYWORDS:
        if any(keyword in words or f"{keyword}s" in words for keyword in keywords):
            return kind
    return None


def jaccard(left: Set[str], right: Set[str]) -> float:
    if not left or not right:
        return 0.0
    return len(left & right) / len(left | right)


class SimilarityMatcher:
    """Ranks catalog entities by field/parameter overlap with a proposal."""

    def __init__(self, config: MatcherConfig | None = None) -> None:
        self.config = config or MatcherConfig()

    def find_candidates(self, catalog: Catalog, proposal: ChangeProposal) -> List[Candidate]:
        """Return at most ``max_candidates`` overlapping entities, best first."""
        proposal_names = self._proposal_names(proposal)
        domain = normalise_domain(proposal.target_domain) if proposal.target_domain else None
        kind = implied_kind(proposal)

        scored: List[Candidate] = []
        for entity in catalog.entities:
            score = self.overlap(entity, proposal_names, domain, kind)
            if score > 0:
                scored.append(Candidate(entity=entity, score=score))

        scored.sort(key=lambda candidate: (-candidate.score, candidate.entity.id))
        return scored[: self.config.max_candidates]

    def overlap(
        self,
        entity: Entity,
        proposal_names: Set[str],
        domain: Optional[str],
        kind: Optional[EntityKind],
    ) -> float:
        score = jaccard(proposal_names, {name.lower() for name in entity.field_names})
        if domain is not None and entity.domain == domain:
            score *= self.config.domain_weight
        if kind is not None and entity.kind is not kind:
            score *= self.config.kind_penalty
        return score

    @staticmethod
    def _proposal_names(proposal: ChangeProposal) -> Set[str]:
        if proposal.fields:
            return {name.lower() for name in proposal.fields}
        return _tokens(proposal.description)


def estimate_lines(proposal: ChangeProposal, candidates: Sequence[Candidate]) -> Tuple[int, int]:
    """Return ``(naive, extend)`` line estimates, preferring caller-supplied values."""
    naive = proposal.estimated_naive_lines
    if naive is None:
        naive = _DEFAULT_NAIVE_BASE + _DEFAULT_NAIVE_PER_FIELD * len(proposal.fields)
    extend = proposal.estimated_extend_lines
    if extend is None:
        extend = naive // (len(candidates) + 1) + _EXTEND_OVERHEAD if candidates else naive
    return naive, extend


__all__ = ["SimilarityMatcher", "estimate_lines", "implied_kind", "jaccard"]
