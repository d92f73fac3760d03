"""Pipeline orchestration for analyze, score and generate runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .catalog import CatalogBuilder
from .config import ConfigError, GuidegenConfig, load_config
from .docs import (
    Budgets,
    DocumentRenderer,
    DocumentTreeGenerator,
    DocumentWriter,
    load_rules,
)
from .extractors import Extractor, discover_extractors
from .logging import get_logger
from .models import Catalog, DocumentTree, Recommendation, RepoManifest
from .proposal import load_proposal
from .repo_scanner import RepoScanner, build_directory_tree
from .scoring import Advisor


@dataclass
class GenerateOutcome:
    """Result of a document generation run."""

    tree: DocumentTree
    written: List[Path] = field(default_factory=list)


class Orchestrator:
    """Wires scanning, cataloguing, advising and document generation together."""

    def __init__(
        self,
        scanner: RepoScanner | None = None,
        extractors: Optional[Iterable[Extractor]] = None,
        advisor: Advisor | None = None,
    ) -> None:
        self.scanner = scanner or RepoScanner()
        self._extractor_overrides = list(extractors) if extractors is not None else None
        self._advisor_override = advisor
        self.logger = get_logger("orchestrator")

    def run_analyze(self, path: str) -> Catalog:
        """Scan a repository and return its entity catalog."""
        repo_path = Path(path).expanduser().resolve()
        self.logger.info("Starting analyze run for %s", repo_path)
        manifest = self.scanner.scan(str(repo_path))
        config = self._load_config(repo_path)
        return self._build_catalog(manifest, config)

    def run_score(self, proposal_path: str, repo: str | None = None) -> Recommendation:
        """Evaluate a proposal file against a repository, or an empty catalog."""
        proposal, proposal_repo = load_proposal(Path(proposal_path).expanduser())
        repo_path = Path(repo).expanduser().resolve() if repo else proposal_repo

        if repo_path is None:
            self.logger.info("No repository given; scoring against an empty catalog")
            config = GuidegenConfig(root=Path.cwd())
            catalog = Catalog(root="")
        else:
            self.logger.info("Scoring proposal against %s", repo_path)
            manifest = self.scanner.scan(str(repo_path))
            config = self._load_config(repo_path)
            catalog = self._build_catalog(manifest, config)

        advisor = self._advisor_override or Advisor.from_config(
            config.matcher, config.decision, config.scoring
        )
        return advisor.advise(catalog, proposal)

    def run_generate(self, path: str, out_dir: str) -> GenerateOutcome:
        """Generate the advisory document tree for a repository into ``out_dir``."""
        repo_path = Path(path).expanduser().resolve()
        self.logger.info("Starting generate run for %s", repo_path)
        manifest = self.scanner.scan(str(repo_path))
        config = self._load_config(repo_path)
        catalog = self._build_catalog(manifest, config)

        docs = config.docs
        renderer = DocumentRenderer(docs.templates_dir, project_name=repo_path.name or "repository")
        generator = DocumentTreeGenerator(
            renderer,
            load_rules(docs.rules_file),
            min_entities=docs.min_entities,
            filename=docs.filename,
            workers=config.extractors.workers,
        )
        tree = generator.generate(
            catalog,
            build_directory_tree(manifest),
            Budgets(root_words=docs.root_words, directory_words=docs.directory_words),
        )
        writer = DocumentWriter(renderer, filename=docs.filename)
        written = writer.write(tree, Path(out_dir).expanduser().resolve())
        return GenerateOutcome(tree=tree, written=written)

    def _build_catalog(self, manifest: RepoManifest, config: GuidegenConfig) -> Catalog:
        self.logger.debug("Scanner discovered %d files", len(manifest.files))
        extractors = self._select_extractors(config)
        self.logger.debug("Selected %d extractors", len(extractors))
        return CatalogBuilder(extractors, workers=config.extractors.workers).build(manifest)

    def _select_extractors(self, config: GuidegenConfig) -> List[Extractor]:
        if self._extractor_overrides is not None:
            return list(self._extractor_overrides)
        return discover_extractors(config.extractors.enabled or None)

    def _load_config(self, repo_path: Path) -> GuidegenConfig:
        try:
            return load_config(repo_path)
        except ConfigError as exc:
            self.logger.warning("Ignoring invalid configuration: %s", exc)
            return GuidegenConfig(root=repo_path)


__all__ = ["GenerateOutcome", "Orchestrator"]
