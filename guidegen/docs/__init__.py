"""Advisory document generation."""

from .constants import DEFAULT_FILENAME, SECTION_ORDER, TRUNCATION_ORDER
from .generator import Budgets, DocumentTreeGenerator, document_paths
from .render import DocumentRenderer, count_words, normalise_markdown
from .rules import RuleSet, load_rules, parse_rules
from .writer import DocumentWriter, find_nearest_document

__all__ = [
    "Budgets",
    "DEFAULT_FILENAME",
    "DocumentRenderer",
    "DocumentTreeGenerator",
    "DocumentWriter",
    "RuleSet",
    "SECTION_ORDER",
    "TRUNCATION_ORDER",
    "count_words",
    "document_paths",
    "find_nearest_document",
    "load_rules",
    "normalise_markdown",
    "parse_rules",
]
