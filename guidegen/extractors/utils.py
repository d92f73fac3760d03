"""Shared helper utilities for extractor implementations."""

from __future__ import annotations

import re
from typing import List, Sequence, Tuple

from ..models import Entity, EntityKind, Field

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")
_IDENTIFIER_RE = re.compile(r"\b[A-Za-z_][A-Za-z0-9_]*\b")
_SEMANTIC_TYPE_RE = re.compile(r"\bv\.(\w+)")

# Directory and file names that say nothing about the business domain.
_GENERIC_SEGMENTS = frozenset(
    {
        "api",
        "app",
        "apps",
        "backend",
        "client",
        "common",
        "component",
        "components",
        "convex",
        "core",
        "db",
        "features",
        "frontend",
        "handlers",
        "hooks",
        "index",
        "init",
        "lib",
        "libs",
        "main",
        "model",
        "models",
        "packages",
        "pages",
        "prisma",
        "routes",
        "schema",
        "schemas",
        "server",
        "services",
        "shared",
        "src",
        "types",
        "ui",
        "utils",
        "views",
        "web",
    }
)


def split_words(name: str) -> List[str]:
    """Split camelCase, snake_case and kebab-case names into lowercase words."""
    words: List[str] = []
    for chunk in re.split(r"[^A-Za-z0-9]+", name):
        words.extend(match.group(0).lower() for match in _WORD_RE.finditer(chunk))
    return words


def normalise_domain(value: str) -> str:
    """Lowercase a domain tag and reduce simple plurals to the singular."""
    tag = "_".join(split_words(value))
    if len(tag) <= 3:
        return tag
    if tag.endswith("ies"):
        return tag[:-3] + "y"
    if tag.endswith(("ses", "xes", "ches", "shes")):
        return tag[:-2]
    if tag.endswith("s") and not tag.endswith(("ss", "us")):
        return tag[:-1]
    return tag


def infer_domain(path: str, symbol: str) -> str:
    """Infer a domain tag from the nearest meaningful directory, file or symbol name."""
    parts = path.split("/")
    for segment in reversed(parts[:-1]):
        lowered = segment.lower().lstrip("_")
        if lowered and lowered not in _GENERIC_SEGMENTS and not lowered.startswith(("test", "(")):
            return normalise_domain(segment)

    stem = parts[-1].split(".", 1)[0]
    for candidate in (stem, symbol):
        words = [word for word in split_words(candidate) if word not in {"use", "get", "list"}]
        if words and words[0] not in _GENERIC_SEGMENTS:
            return normalise_domain(words[0])
    return "general"


def collect_identifiers(text: str) -> Tuple[str, ...]:
    return tuple(sorted(set(_IDENTIFIER_RE.findall(text))))


def make_entity(
    path: str,
    name: str,
    kind: EntityKind,
    fields: Sequence[Field] = (),
    body: str = "",
) -> Entity:
    """Create an entity with a stable ``path::symbol`` id and inferred domain."""
    references = tuple(ref for ref in collect_identifiers(body) if ref != name)
    return Entity(
        id=f"{path}::{name}",
        kind=kind,
        name=name,
        path=path,
        domain=infer_domain(path, name),
        fields=list(fields),
        references=references,
    )


def semantic_type(expression: str) -> str:
    """Summarise a validator or annotation expression as a short type label."""
    validators = _SEMANTIC_TYPE_RE.findall(expression)
    if validators:
        return " ".join(validators)
    cleaned = expression.strip().lstrip(":").strip().rstrip(";,").strip()
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned[:40]


__all__ = [
    "collect_identifiers",
    "infer_domain",
    "make_entity",
    "normalise_domain",
    "semantic_type",
    "split_words",
]
