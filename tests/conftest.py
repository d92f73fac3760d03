from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def write_proposal(tmp_path: Path) -> Callable[[str], Path]:
    """Return a helper that writes proposal YAML next to the test repository."""

    def _write(content: str, name: str = "proposal.yml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return path

    return _write
