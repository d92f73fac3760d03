"""Decision tree that classifies a proposal before numeric scoring."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .config import DecisionConfig
from .matcher import estimate_lines, implied_kind
from .models import Action, Candidate, ChangeProposal


class DecisionNode(str, Enum):
    """States of the evaluator, visited in declaration order."""

    CAN_USE_AS_IS = "CanUseAsIs"
    CAN_EXTEND = "CanExtend"
    REUSABLE_ELSEWHERE = "ReusableElsewhere"
    RECONSIDER = "Reconsider"


@dataclass(frozen=True)
class DecisionOutcome:
    """Where the tree stopped and the answers given along the way.

    ``action`` is set only for terminals that need no scoring.
    """

    node: DecisionNode
    action: Optional[Action]
    path: Tuple[Tuple[DecisionNode, bool], ...] = field(default_factory=tuple)

    @property
    def needs_scoring(self) -> bool:
        return self.action is None

    @property
    def polarity(self) -> str:
        return "extend" if self.node is DecisionNode.CAN_EXTEND else "create"


class DecisionTreeEvaluator:
    """Pure three-question classifier; never touches the catalog."""

    def __init__(self, config: DecisionConfig | None = None) -> None:
        self.config = config or DecisionConfig()

    def evaluate(self, proposal: ChangeProposal, candidates: Sequence[Candidate]) -> DecisionOutcome:
        path: List[Tuple[DecisionNode, bool]] = []
        top = candidates[0] if candidates else None

        kind = implied_kind(proposal)
        use_as_is = (
            top is not None
            and top.score >= self.config.use_as_is
            and kind is not None
            and top.entity.kind is kind
        )
        path.append((DecisionNode.CAN_USE_AS_IS, use_as_is))
        if use_as_is:
            return DecisionOutcome(DecisionNode.CAN_USE_AS_IS, Action.USE_EXISTING, tuple(path))

        naive, extend = estimate_lines(proposal, candidates)
        can_extend = (
            top is not None
            and self.config.extend_min <= top.score < self.config.use_as_is
            and extend < naive
        )
        path.append((DecisionNode.CAN_EXTEND, can_extend))
        if can_extend:
            return DecisionOutcome(DecisionNode.CAN_EXTEND, None, tuple(path))

        reusable = proposal.call_sites >= self.config.reuse_call_sites
        path.append((DecisionNode.REUSABLE_ELSEWHERE, reusable))
        if reusable:
            return DecisionOutcome(DecisionNode.REUSABLE_ELSEWHERE, Action.CREATE_NEW, tuple(path))

        return DecisionOutcome(DecisionNode.RECONSIDER, None, tuple(path))


__all__ = ["DecisionNode", "DecisionOutcome", "DecisionTreeEvaluator"]
