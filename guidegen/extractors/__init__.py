"""Extractor plugin implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Sequence, Set

from .base import Extractor
from .components import ComponentExtractor
from .operations import OperationExtractor
from .routes import RouteExtractor
from .schema import SchemaExtractor

_ENTRY_POINT_GROUP = "guidegen.extractors"

_BUILTIN_FACTORIES: dict[str, Callable[[], Extractor]] = {
    "schema": SchemaExtractor,
    "operations": OperationExtractor,
    "components": ComponentExtractor,
    "routes": RouteExtractor,
}


def discover_extractors(enabled: Sequence[str] | None = None) -> List[Extractor]:
    """Return instantiated extractors, honoring optional enabled names."""

    enabled_set: Set[str] | None = None
    if enabled:
        enabled_set = {name.lower() for name in enabled}

    extractors: List[Extractor] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], Extractor]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, Extractor):
            raise TypeError(f"Extractor factory for '{name}' did not return an Extractor instance")
        extractors.append(instance)
        seen.add(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load extractor entry point '{entry.name}': {exc}") from exc

        def _factory(obj: object = loaded) -> Extractor:
            return _coerce_extractor(obj)

        _add(entry.name, _factory)

    if enabled_set is not None:
        missing = enabled_set - seen
        if missing:
            raise ValueError(f"Unknown extractors requested: {', '.join(sorted(missing))}")

    return extractors


def _coerce_extractor(obj: object) -> Extractor:
    if isinstance(obj, Extractor):
        return obj
    if isinstance(obj, type) and issubclass(obj, Extractor):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Extractor):
            return instance
    raise TypeError("Extractor entry point must be an Extractor subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "ComponentExtractor",
    "Extractor",
    "OperationExtractor",
    "RouteExtractor",
    "SchemaExtractor",
    "discover_extractors",
]
