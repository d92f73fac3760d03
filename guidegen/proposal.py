"""Loading and validation of change proposals from YAML or JSON files."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .errors import InvalidProposal, IOFailure
from .models import ChangeProposal, EntityKind
from .scoring import CRITERIA_KEYS

_KNOWN_KEYS = frozenset(
    {
        "description",
        "target_domain",
        "kind",
        "fields",
        "estimated_naive_lines",
        "estimated_extend_lines",
        "call_sites",
        "criteria",
        "repo",
    }
)


def parse_proposal(data: Mapping[str, Any]) -> ChangeProposal:
    """Validate a mapping and return a proposal, collecting every problem found."""
    problems: List[str] = []

    unknown = sorted(str(key) for key in data if key not in _KNOWN_KEYS)
    if unknown:
        problems.append(f"unknown keys: {', '.join(unknown)}")

    description = data.get("description")
    if not isinstance(description, str) or not description.strip():
        problems.append("description is required")
        description = ""

    target_domain = data.get("target_domain")
    if target_domain is not None and not isinstance(target_domain, str):
        problems.append("target_domain must be a string")
        target_domain = None

    kind: Optional[EntityKind] = None
    raw_kind = data.get("kind")
    if raw_kind is not None:
        try:
            kind = EntityKind(str(raw_kind))
        except ValueError:
            allowed = ", ".join(item.value for item in EntityKind)
            problems.append(f"kind must be one of: {allowed}")

    fields = data.get("fields") or []
    if not isinstance(fields, list) or not all(isinstance(item, str) for item in fields):
        problems.append("fields must be a list of names")
        fields = []

    naive = _optional_count(data, "estimated_naive_lines", problems)
    extend = _optional_count(data, "estimated_extend_lines", problems)
    call_sites = _optional_count(data, "call_sites", problems) or 0

    criteria, criteria_problems = _parse_criteria(data.get("criteria"))
    problems.extend(criteria_problems)

    if problems:
        raise InvalidProposal(problems)

    return ChangeProposal(
        description=description.strip(),
        target_domain=target_domain,
        kind=kind,
        fields=list(fields),
        estimated_naive_lines=naive,
        estimated_extend_lines=extend,
        call_sites=call_sites,
        criteria=criteria,
    )


def load_proposal(path: Path) -> Tuple[ChangeProposal, Optional[Path]]:
    """Read a proposal file; return the proposal and its optional repository path."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise IOFailure(f"Unable to read proposal {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidProposal([f"could not parse {path.name}: {exc}"]) from exc
    if not isinstance(data, dict):
        raise InvalidProposal(["proposal file must contain a mapping"])

    proposal = parse_proposal(data)
    repo = data.get("repo")
    repo_path = (path.parent / str(repo)).resolve() if repo else None
    return proposal, repo_path


def _optional_count(data: Mapping[str, Any], key: str, problems: List[str]) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        problems.append(f"{key} must be a non-negative integer")
        return None
    return value


def _parse_criteria(raw: Any) -> Tuple[Dict[str, bool], List[str]]:
    if raw is None:
        return {}, []
    if not isinstance(raw, dict):
        return {}, ["criteria must be a mapping of criterion to true/false"]
    problems: List[str] = []
    criteria: Dict[str, bool] = {}
    for key, value in raw.items():
        if key not in CRITERIA_KEYS:
            problems.append(f"unknown criterion: {key}")
            continue
        if not isinstance(value, bool):
            problems.append(f"criterion {key} must be true or false")
            continue
        criteria[key] = value
    return criteria, problems


__all__ = ["load_proposal", "parse_proposal"]
