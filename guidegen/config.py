"""Configuration loading for guidegen (.guidegen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".guidegen.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ExtractorConfig:
    """Extractor enablement and worker pool size."""

    enabled: List[str] = field(default_factory=list)
    workers: Optional[int] = None


@dataclass
class MatcherConfig:
    """Overlap scoring weights for the similarity matcher."""

    max_candidates: int = 5
    domain_weight: float = 2.0
    kind_penalty: float = 0.5


@dataclass
class DecisionConfig:
    """Thresholds for the extend-or-create decision tree."""

    use_as_is: float = 0.9
    extend_min: float = 0.4
    reuse_call_sites: int = 2


@dataclass
class ScoringConfig:
    """Score bands that let the complexity scorer auto-decide."""

    extend_threshold: int = 5
    create_threshold: int = -5


@dataclass
class DocsConfig:
    """Guidance document generation settings."""

    min_entities: int = 3
    root_words: int = 600
    directory_words: int = 900
    filename: str = "AGENTS.md"
    rules_file: Optional[Path] = None
    templates_dir: Optional[Path] = None


@dataclass
class GuidegenConfig:
    """Represents the settings defined in .guidegen.yml."""

    root: Path
    exclude_paths: List[str] = field(default_factory=list)
    extractors: ExtractorConfig = field(default_factory=ExtractorConfig)
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    decision: DecisionConfig = field(default_factory=DecisionConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    docs: DocsConfig = field(default_factory=DocsConfig)


def load_config(config_path: Path) -> GuidegenConfig:
    """Load configuration from disk, returning defaults when no file exists."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return GuidegenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    extractors = ExtractorConfig()
    extractor_data = _as_dict(data.get("extractors"))
    if extractor_data:
        extractors.enabled = _as_str_list(extractor_data.get("enabled"))
        workers = _as_int(extractor_data.get("workers"))
        extractors.workers = workers if workers and workers > 0 else None

    matcher = MatcherConfig()
    matcher_data = _as_dict(data.get("matcher"))
    if matcher_data:
        matcher.max_candidates = _positive_int(
            matcher_data.get("max_candidates"), matcher.max_candidates
        )
        matcher.domain_weight = _as_float(matcher_data.get("domain_weight")) or matcher.domain_weight
        matcher.kind_penalty = _as_float(matcher_data.get("kind_penalty")) or matcher.kind_penalty

    decision = DecisionConfig()
    decision_data = _as_dict(data.get("decision"))
    if decision_data:
        decision.use_as_is = _as_float(decision_data.get("use_as_is")) or decision.use_as_is
        decision.extend_min = _as_float(decision_data.get("extend_min")) or decision.extend_min
        decision.reuse_call_sites = _positive_int(
            decision_data.get("reuse_call_sites"), decision.reuse_call_sites
        )
        if decision.extend_min > decision.use_as_is:
            raise ConfigError("decision.extend_min must not exceed decision.use_as_is")

    scoring = ScoringConfig()
    scoring_data = _as_dict(data.get("scoring"))
    if scoring_data:
        extend_threshold = _as_int(scoring_data.get("extend_threshold"))
        create_threshold = _as_int(scoring_data.get("create_threshold"))
        if extend_threshold is not None:
            scoring.extend_threshold = extend_threshold
        if create_threshold is not None:
            scoring.create_threshold = create_threshold
        if scoring.create_threshold >= scoring.extend_threshold:
            raise ConfigError("scoring.create_threshold must be below scoring.extend_threshold")

    docs = DocsConfig()
    docs_data = _as_dict(data.get("docs"))
    if docs_data:
        docs.min_entities = _positive_int(docs_data.get("min_entities"), docs.min_entities)
        docs.root_words = _positive_int(docs_data.get("root_words"), docs.root_words)
        docs.directory_words = _positive_int(
            docs_data.get("directory_words"), docs.directory_words
        )
        docs.filename = _as_str(docs_data.get("filename")) or docs.filename
        rules_file = _as_str(docs_data.get("rules_file"))
        templates_dir = _as_str(docs_data.get("templates_dir"))
        docs.rules_file = root / rules_file if rules_file else None
        docs.templates_dir = root / templates_dir if templates_dir else None

    return GuidegenConfig(
        root=root,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        extractors=extractors,
        matcher=matcher,
        decision=decision,
        scoring=scoring,
        docs=docs,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _positive_int(value: Any, default: int) -> int:
    parsed = _as_int(value)
    if parsed is None or parsed <= 0:
        return default
    return parsed


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
