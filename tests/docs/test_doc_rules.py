"""Tests for static rule loading and markdown rendering."""

from __future__ import annotations

from pathlib import Path

import pytest

from guidegen.config import ConfigError
from guidegen.docs import DocumentRenderer, load_rules, normalise_markdown, parse_rules


def test_default_rules_cover_static_sections() -> None:
    rules = load_rules()

    assert set(rules.sections) == {"setup", "conventions", "key_files", "gotchas"}
    assert rules.for_directory("app") == {}


def test_parse_rules_accepts_flat_mapping() -> None:
    rules = parse_rules({"setup": "Run make.", "gotchas": None})

    assert rules.sections == {"setup": "Run make."}


def test_directory_overrides_apply_only_to_their_directory() -> None:
    rules = parse_rules(
        {
            "sections": {"setup": "Root setup."},
            "directories": {"/app/billing/": {"gotchas": "Amounts are in cents."}},
        }
    )

    assert rules.for_directory("") == {"setup": "Root setup."}
    assert rules.for_directory("app/billing") == {"gotchas": "Amounts are in cents."}
    assert rules.for_directory("app") == {}


@pytest.mark.parametrize(
    "data",
    [
        {"identity": "Not allowed."},
        {"unknown_section": "text"},
        {"setup": ["a", "list"]},
        ["not", "a", "mapping"],
    ],
)
def test_parse_rules_rejects_invalid_documents(data: object) -> None:
    with pytest.raises(ConfigError):
        parse_rules(data)


def test_load_rules_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_rules(tmp_path / "missing.yml")


def test_normalise_markdown_collapses_blank_runs_and_trailing_space() -> None:
    raw = "# Title\r\n\r\n\r\nText   \n## Next\n\n\n\n```\ncode   \n\n\n```\n\n\n"

    assert normalise_markdown(raw) == "# Title\n\nText\n\n## Next\n\n```\ncode\n\n\n```\n"


def test_custom_templates_shadow_packaged_templates(tmp_path: Path) -> None:
    sections = tmp_path / "sections"
    sections.mkdir()
    (sections / "identity.md.j2").write_text("Custom identity for {{ path or 'root' }}.\n", encoding="utf-8")

    renderer = DocumentRenderer(tmp_path)

    assert renderer.render_section("identity", {"path": ""}) == "Custom identity for root."
    structure = renderer.render_section("structure", {"children": [], "groups": []})
    assert structure == "No catalogued entities."
