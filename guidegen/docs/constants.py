"""Shared constants for guidance document sections."""

from __future__ import annotations

SECTION_ORDER: tuple[str, ...] = (
    "identity",
    "setup",
    "structure",
    "conventions",
    "key_files",
    "quick_find",
    "gotchas",
)

SECTION_TITLES: dict[str, str] = {
    "identity": "Identity",
    "setup": "Setup",
    "structure": "Structure",
    "conventions": "Conventions",
    "key_files": "Key Files",
    "quick_find": "Quick Find",
    "gotchas": "Gotchas",
}

# Rendered from catalog data; everything else comes from the rules document.
LIVE_SECTIONS: frozenset[str] = frozenset({"identity", "structure", "quick_find"})

STATIC_SECTIONS: tuple[str, ...] = tuple(
    name for name in SECTION_ORDER if name not in LIVE_SECTIONS
)

# Removal order when a document is over budget. identity is never removed.
TRUNCATION_ORDER: tuple[str, ...] = (
    "gotchas",
    "conventions",
    "key_files",
    "setup",
    "quick_find",
    "structure",
)

DEFAULT_FILENAME = "AGENTS.md"


__all__ = [
    "DEFAULT_FILENAME",
    "LIVE_SECTIONS",
    "SECTION_ORDER",
    "SECTION_TITLES",
    "STATIC_SECTIONS",
    "TRUNCATION_ORDER",
]
