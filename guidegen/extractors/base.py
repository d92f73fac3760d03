"""Base classes for extractor plugins."""

from abc import ABC, abstractmethod
from typing import FrozenSet, Iterable

from ..models import Entity, FileMeta


class Extractor(ABC):
    """Contract for extractors that turn one source file into catalog entities."""

    name: str = ""
    languages: FrozenSet[str] = frozenset()

    def supports(self, meta: FileMeta) -> bool:
        """Return True when this extractor should read the given file."""
        return meta.language in self.languages

    @abstractmethod
    def extract(self, meta: FileMeta, text: str) -> Iterable[Entity]:
        """Produce entities defined in ``text``; raise ExtractionSkipped to reject the file."""
