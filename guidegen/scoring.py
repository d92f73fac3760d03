"""Weighted complexity scoring and the end-to-end extend-or-create advisor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .config import DecisionConfig, MatcherConfig, ScoringConfig
from .decision import DecisionNode, DecisionOutcome, DecisionTreeEvaluator
from .logging import get_logger
from .matcher import SimilarityMatcher
from .models import Action, Candidate, Catalog, ChangeProposal, RationaleEntry, Recommendation

SMALL_EXTENSION_LINES = 50


@dataclass(frozen=True)
class Criterion:
    """A scored criterion; the create weight is the negated extend weight."""

    key: str
    label: str
    extend_weight: int

    @property
    def create_weight(self) -> int:
        return -self.extend_weight

    def weight(self, polarity: str) -> int:
        return self.extend_weight if polarity == "extend" else self.create_weight


CRITERIA: Tuple[Criterion, ...] = (
    Criterion("similar_data_structure", "Similar data structure exists", 3),
    Criterion("existing_index", "Existing index/lookup covers the pattern", 2),
    Criterion("related_read_operation", "An existing read operation returns related data", 3),
    Criterion("similar_display", "A display element already shows similar info", 2),
    Criterion("small_extension", f"Extension requires < {SMALL_EXTENSION_LINES} new lines", 3),
    Criterion("circular_dependency", "Extension would create a circular dependency", -5),
    Criterion("different_domain", "Feature domain is significantly different", -3),
    Criterion("multiple_owners", "More than 2 owning teams on existing code", -2),
    Criterion("fragile_code", "Existing code already fragile/complex", -2),
    Criterion("different_caching", "New feature needs a different caching strategy", -2),
)

CRITERIA_KEYS: Tuple[str, ...] = tuple(criterion.key for criterion in CRITERIA)


class ComplexityScorer:
    """Sums signed criterion weights and maps the total to an action."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or ScoringConfig()

    def score(
        self,
        proposal: ChangeProposal,
        outcome: DecisionOutcome | None = None,
        candidates: Sequence[Candidate] = (),
    ) -> Recommendation:
        """Return a recommendation; tree terminals that already decided skip scoring."""
        listed = _candidate_pairs(candidates)
        if outcome is not None and outcome.action is not None:
            return Recommendation(
                action=outcome.action,
                score=0,
                rationale=[],
                terminal=outcome.node.value,
                polarity=None,
                candidates=listed,
            )

        polarity = outcome.polarity if outcome is not None else "extend"
        flags = self.resolve_flags(proposal)
        rationale: List[RationaleEntry] = []
        for criterion in CRITERIA:
            applies = flags[criterion.key]
            contribution = criterion.weight(polarity) if applies else 0
            rationale.append(RationaleEntry(criterion.key, criterion.label, applies, contribution))
        total = sum(entry.contribution for entry in rationale)

        return Recommendation(
            action=self.action_for(total, polarity),
            score=total,
            rationale=rationale,
            terminal=(outcome.node if outcome is not None else DecisionNode.CAN_EXTEND).value,
            polarity=polarity,
            candidates=listed,
        )

    def action_for(self, total: int, polarity: str) -> Action:
        """Map a signed total to an action; the sign argues for the polarity's branch."""
        favoured, opposed = (
            (Action.EXTEND, Action.CREATE_NEW) if polarity == "extend" else (Action.CREATE_NEW, Action.EXTEND)
        )
        if total >= self.config.extend_threshold:
            return favoured
        if total <= self.config.create_threshold:
            return opposed
        return Action.RECONSIDER

    @staticmethod
    def resolve_flags(proposal: ChangeProposal) -> Dict[str, bool]:
        """Return every criterion flag; criteria the proposal omits do not apply."""
        return {key: bool(proposal.criteria.get(key, False)) for key in CRITERIA_KEYS}


def _candidate_pairs(candidates: Sequence[Candidate]) -> List[Tuple[str, float]]:
    return [(candidate.entity.id, candidate.score) for candidate in candidates]


class Advisor:
    """Runs matcher, decision tree and scorer for one proposal at a time."""

    def __init__(
        self,
        matcher: SimilarityMatcher | None = None,
        evaluator: DecisionTreeEvaluator | None = None,
        scorer: ComplexityScorer | None = None,
    ) -> None:
        self.matcher = matcher or SimilarityMatcher()
        self.evaluator = evaluator or DecisionTreeEvaluator()
        self.scorer = scorer or ComplexityScorer()
        self.logger = get_logger("advisor")

    @classmethod
    def from_config(
        cls,
        matcher: Optional[MatcherConfig] = None,
        decision: Optional[DecisionConfig] = None,
        scoring: Optional[ScoringConfig] = None,
    ) -> "Advisor":
        return cls(SimilarityMatcher(matcher), DecisionTreeEvaluator(decision), ComplexityScorer(scoring))

    def advise(self, catalog: Catalog, proposal: ChangeProposal) -> Recommendation:
        candidates = self.matcher.find_candidates(catalog, proposal)
        self.logger.debug(
            "Found %d candidates for proposal: %s", len(candidates), proposal.description
        )
        outcome = self.evaluator.evaluate(proposal, candidates)
        self.logger.debug(
            "Decision path: %s",
            " -> ".join(f"{node.value}={answer}" for node, answer in outcome.path),
        )
        recommendation = self.scorer.score(proposal, outcome, candidates)
        self.logger.info(
            "Recommendation: %s (score %+d, terminal %s)",
            recommendation.action.value,
            recommendation.score,
            recommendation.terminal,
        )
        return recommendation


__all__ = [
    "Advisor",
    "CRITERIA",
    "CRITERIA_KEYS",
    "ComplexityScorer",
    "Criterion",
    "SMALL_EXTENSION_LINES",
]
