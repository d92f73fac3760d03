"""Static rule text consumed verbatim by the document generator."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from ..config import ConfigError
from .constants import LIVE_SECTIONS, STATIC_SECTIONS

DEFAULT_RULES_PATH = Path(__file__).with_name("default_rules.yml")


@dataclass
class RuleSet:
    """Section text for the root document plus per-directory overrides."""

    sections: Dict[str, str] = field(default_factory=dict)
    directories: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def for_directory(self, path: str) -> Dict[str, str]:
        """Return the static sections a node at ``path`` carries.

        The root carries the global sections; other directories carry only their
        own overrides so they never repeat what the parent guide says.
        """
        if not path:
            merged = dict(self.sections)
            merged.update(self.directories.get("", {}))
            return merged
        return dict(self.directories.get(path, {}))


def load_rules(path: Path | None = None) -> RuleSet:
    """Load a rules document, defaulting to the packaged rules."""
    rules_path = path or DEFAULT_RULES_PATH
    try:
        text = rules_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read rules file {rules_path}: {exc}") from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse rules file {rules_path.name}: {exc}") from exc
    return parse_rules(data)


def parse_rules(data: Any) -> RuleSet:
    """Build a rule set from ``{sections: {...}, directories: {...}}`` or a flat mapping."""
    if not isinstance(data, dict):
        raise ConfigError("Rules document must contain a mapping at the root")

    if "sections" in data or "directories" in data:
        sections = _section_map(data.get("sections") or {}, "sections")
        raw_directories = data.get("directories") or {}
        if not isinstance(raw_directories, dict):
            raise ConfigError("Rules 'directories' must map directory paths to sections")
        directories = {
            _normalise_dir(str(key)): _section_map(value or {}, f"directories.{key}")
            for key, value in raw_directories.items()
        }
        return RuleSet(sections=sections, directories=directories)

    return RuleSet(sections=_section_map(data, "rules"))


def _section_map(raw: Any, where: str) -> Dict[str, str]:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Rules '{where}' must map section names to text")
    sections: Dict[str, str] = {}
    for key, value in raw.items():
        name = str(key)
        if name in LIVE_SECTIONS:
            raise ConfigError(f"Section '{name}' is generated from the catalog and cannot be configured")
        if name not in STATIC_SECTIONS:
            allowed = ", ".join(STATIC_SECTIONS)
            raise ConfigError(f"Unknown section '{name}' in {where}; expected one of: {allowed}")
        if value is None:
            continue
        if not isinstance(value, str):
            raise ConfigError(f"Section '{name}' in {where} must be text")
        sections[name] = value
    return sections


def _normalise_dir(path: str) -> str:
    cleaned = path.replace("\\", "/").strip().strip("/")
    return "" if cleaned in {"", "."} else cleaned


__all__ = ["DEFAULT_RULES_PATH", "RuleSet", "load_rules", "parse_rules"]
