"""Builds the entity catalog from a repository snapshot."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import ExtractionSkipped
from .extractors import Extractor, discover_extractors
from .logging import get_logger
from .models import Catalog, Entity, FileMeta, RepoManifest, SkippedFile

SOURCE_LANGUAGES = frozenset({"Python", "JavaScript", "TypeScript", "Prisma"})

_MAX_FILE_BYTES = 1024 * 1024


@dataclass
class _FileResult:
    path: str
    entities: List[Entity] = field(default_factory=list)
    skipped: Optional[SkippedFile] = None


class CatalogBuilder:
    """Runs extractors over every source file and merges results deterministically."""

    def __init__(
        self,
        extractors: Optional[Iterable[Extractor]] = None,
        *,
        workers: int | None = None,
    ) -> None:
        self.extractors: List[Extractor] = (
            list(extractors) if extractors is not None else discover_extractors()
        )
        self.workers = workers
        self.logger = get_logger("catalog")

    def build(self, manifest: RepoManifest) -> Catalog:
        """Return a catalog of entities sorted by id, plus the files that were skipped."""
        root = Path(manifest.root)
        candidates = [meta for meta in manifest.files if meta.language in SOURCE_LANGUAGES]
        self.logger.debug("Extracting entities from %d source files", len(candidates))

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            results = list(pool.map(lambda meta: self._process(root, meta), candidates))
        results.extend(
            _FileResult(meta.path, skipped=SkippedFile(meta.path, "unsupported language"))
            for meta in manifest.files
            if meta.language not in SOURCE_LANGUAGES
        )

        entities: Dict[str, Entity] = {}
        skipped: List[SkippedFile] = []
        for result in sorted(results, key=lambda item: item.path):
            if result.skipped is not None:
                skipped.append(result.skipped)
                continue
            for entity in result.entities:
                if entity.id in entities:
                    skipped.append(SkippedFile(entity.path, f"duplicate entity id {entity.id}"))
                    continue
                entities[entity.id] = entity

        ordered = [entities[key] for key in sorted(entities)]
        _link_consumers(ordered)
        skipped.sort(key=lambda item: (item.path, item.reason))

        for item in skipped:
            self.logger.debug("Skipped %s: %s", item.path, item.reason)
        self.logger.info(
            "Catalog built with %d entities (%d files skipped)", len(ordered), len(skipped)
        )
        return Catalog(root=manifest.root, entities=ordered, skipped=skipped)

    def _process(self, root: Path, meta: FileMeta) -> _FileResult:
        try:
            return _FileResult(meta.path, entities=self._extract(root, meta))
        except ExtractionSkipped as exc:
            return _FileResult(meta.path, skipped=SkippedFile(meta.path, exc.reason))

    def _extract(self, root: Path, meta: FileMeta) -> List[Entity]:
        if meta.role == "test":
            raise ExtractionSkipped(meta.path, "test file")
        if meta.size > _MAX_FILE_BYTES:
            raise ExtractionSkipped(meta.path, f"file larger than {_MAX_FILE_BYTES} bytes")
        try:
            text = (root / meta.path).read_text(encoding="utf-8")
        except UnicodeDecodeError:
            raise ExtractionSkipped(meta.path, "not valid UTF-8") from None
        except OSError as exc:
            raise ExtractionSkipped(meta.path, f"unreadable: {exc.strerror or exc}") from None

        entities: List[Entity] = []
        applicable = [extractor for extractor in self.extractors if extractor.supports(meta)]
        for extractor in applicable:
            try:
                entities.extend(extractor.extract(meta, text))
            except ExtractionSkipped:
                raise
            except Exception as exc:
                raise ExtractionSkipped(
                    meta.path, f"{extractor.name or type(extractor).__name__} failed: {exc}"
                ) from exc
        if not entities:
            raise ExtractionSkipped(meta.path, "no recognizable entities")
        return entities


def _link_consumers(entities: Sequence[Entity]) -> None:
    """Record, on each entity, the ids of other entities whose bodies mention it."""
    by_name: Dict[str, List[Entity]] = {}
    for entity in entities:
        by_name.setdefault(entity.name, []).append(entity)
    for consumer in entities:
        for reference in consumer.references:
            for target in by_name.get(reference, ()):
                if target.id != consumer.id:
                    target.consumers.add(consumer.id)


def build_catalog(manifest: RepoManifest, *, enabled: Sequence[str] | None = None, workers: int | None = None) -> Catalog:
    """Convenience wrapper building a catalog with discovered extractors."""
    return CatalogBuilder(discover_extractors(enabled), workers=workers).build(manifest)


__all__ = ["CatalogBuilder", "SOURCE_LANGUAGES", "build_catalog"]
