"""Error taxonomy for guidegen runs."""

from __future__ import annotations

from typing import Sequence


class GuidegenError(Exception):
    """Base class for guidegen failures."""


class ExtractionSkipped(GuidegenError):
    """Raised by an extractor when a file cannot be classified.

    Non-fatal: the catalog builder records the reason and continues.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class InvalidProposal(GuidegenError, ValueError):
    """Raised when a change proposal is missing required fields or malformed."""

    def __init__(self, problems: Sequence[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid proposal: " + "; ".join(self.problems))


class BudgetUnsatisfiable(GuidegenError):
    """A document stays over its word budget after all optional sections are removed.

    Collected as a warning on the generated tree; generation never raises it.
    """

    def __init__(self, path: str, words: int, budget: int) -> None:
        label = path or "."
        super().__init__(f"{label}: {words} words exceeds budget of {budget} after truncation")
        self.path = path
        self.words = words
        self.budget = budget


class IOFailure(GuidegenError):
    """The snapshot is unreadable or the output directory is unwritable."""


class OutputUnwritable(IOFailure):
    """The output directory cannot be created or written."""


__all__ = [
    "BudgetUnsatisfiable",
    "ExtractionSkipped",
    "GuidegenError",
    "IOFailure",
    "InvalidProposal",
    "OutputUnwritable",
]
