"""Tests for guidegen.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from guidegen.config import ConfigError, GuidegenConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, GuidegenConfig)
    assert config.root == tmp_path.resolve()
    assert config.exclude_paths == []
    assert config.extractors.enabled == []
    assert config.extractors.workers is None
    assert config.matcher.max_candidates == 5
    assert config.decision.use_as_is == pytest.approx(0.9)
    assert config.decision.extend_min == pytest.approx(0.4)
    assert config.scoring.extend_threshold == 5
    assert config.scoring.create_threshold == -5
    assert config.docs.min_entities == 3
    assert config.docs.root_words == 600
    assert config.docs.directory_words == 900
    assert config.docs.filename == "AGENTS.md"
    assert config.docs.rules_file is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".guidegen.yml"
    config_file.write_text(
        """
exclude_paths:
  - "vendor/"
extractors:
  enabled: [schema, operations]
  workers: 4
matcher:
  max_candidates: 3
  domain_weight: 1.5
  kind_penalty: 0.25
decision:
  use_as_is: 0.8
  extend_min: "0.3"
  reuse_call_sites: 3
scoring:
  extend_threshold: 6
  create_threshold: -4
docs:
  min_entities: 2
  root_words: 400
  directory_words: 700
  filename: GUIDE.md
  rules_file: docs/rules.yml
  templates_dir: docs/templates
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.exclude_paths == ["vendor/"]
    assert config.extractors.enabled == ["schema", "operations"]
    assert config.extractors.workers == 4
    assert config.matcher.max_candidates == 3
    assert config.matcher.domain_weight == pytest.approx(1.5)
    assert config.matcher.kind_penalty == pytest.approx(0.25)
    assert config.decision.use_as_is == pytest.approx(0.8)
    assert config.decision.extend_min == pytest.approx(0.3)
    assert config.decision.reuse_call_sites == 3
    assert config.scoring.extend_threshold == 6
    assert config.scoring.create_threshold == -4
    assert config.docs.min_entities == 2
    assert config.docs.root_words == 400
    assert config.docs.directory_words == 700
    assert config.docs.filename == "GUIDE.md"
    assert config.docs.rules_file == tmp_path.resolve() / "docs" / "rules.yml"
    assert config.docs.templates_dir == tmp_path.resolve() / "docs" / "templates"


def test_load_config_ignores_non_positive_counts(tmp_path: Path) -> None:
    (tmp_path / ".guidegen.yml").write_text(
        "docs:\n  min_entities: 0\n  root_words: -10\nextractors:\n  workers: 0\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.docs.min_entities == 3
    assert config.docs.root_words == 600
    assert config.extractors.workers is None


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".guidegen.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".guidegen.yml").write_text("matcher: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_inverted_thresholds(tmp_path: Path) -> None:
    (tmp_path / ".guidegen.yml").write_text(
        "decision:\n  use_as_is: 0.5\n  extend_min: 0.7\n", encoding="utf-8"
    )
    with pytest.raises(ConfigError):
        load_config(tmp_path)

    (tmp_path / ".guidegen.yml").write_text(
        "scoring:\n  extend_threshold: 2\n  create_threshold: 2\n", encoding="utf-8"
    )
    with pytest.raises(ConfigError):
        load_config(tmp_path)
