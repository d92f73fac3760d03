"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from guidegen.config import ConfigError
from guidegen.errors import InvalidProposal, IOFailure, OutputUnwritable
from guidegen.models import (
    Action,
    Catalog,
    DocumentNode,
    DocumentTree,
    Entity,
    EntityKind,
    RationaleEntry,
    Recommendation,
    SkippedFile,
)
from guidegen.orchestrator import GenerateOutcome
from guidegen.service import create_app


class _StubOrchestrator:
    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[object, ...]]] = []

    def run_analyze(self, path: str) -> Catalog:
        self.calls.append(("analyze", (path,)))
        if path == "missing":
            raise IOFailure("Repository path not found: missing")
        entity = Entity(
            id="convex/schema.ts::users",
            kind=EntityKind.DATA_STORE,
            name="users",
            path="convex/schema.ts",
            domain="user",
        )
        return Catalog(
            root=path,
            entities=[entity],
            skipped=[SkippedFile("scripts/run.py", "no recognizable entities")],
        )

    def run_score(self, proposal_path: str, repo: str | None = None) -> Recommendation:
        self.calls.append(("score", (proposal_path, repo)))
        if proposal_path == "bad.yml":
            raise InvalidProposal(["description is required"])
        return Recommendation(
            action=Action.EXTEND,
            score=6,
            rationale=[RationaleEntry("similar_data_structure", "Similar data structure exists", True, 3)],
            terminal="CanExtend",
            polarity="extend",
            candidates=[("convex/schema.ts::users", 0.5)],
        )

    def run_generate(self, path: str, out_dir: str) -> GenerateOutcome:
        self.calls.append(("generate", (path, out_dir)))
        if out_dir == "/readonly":
            raise OutputUnwritable("Output directory /readonly is not writable")
        if path == "bad-rules":
            raise ConfigError("Rules file must contain a mapping")
        tree = DocumentTree(root=DocumentNode(path="", size_budget_words=600))
        return GenerateOutcome(tree=tree, written=[Path(out_dir) / "AGENTS.md"])


@pytest.fixture
def orchestrator() -> _StubOrchestrator:
    return _StubOrchestrator()


@pytest.fixture
def client(orchestrator: _StubOrchestrator) -> TestClient:
    return TestClient(create_app(lambda: orchestrator))


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_analyze_endpoint_returns_summary(client: TestClient) -> None:
    response = client.post("/analyze", json={"path": "/work/repo"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["entities"] == 1
    assert payload["kinds"] == {"data-store": 1}
    assert payload["skipped"] == [{"path": "scripts/run.py", "reason": "no recognizable entities"}]


def test_analyze_endpoint_maps_io_failure_to_404(client: TestClient) -> None:
    response = client.post("/analyze", json={"path": "missing"})

    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


def test_score_endpoint_returns_recommendation(
    client: TestClient, orchestrator: _StubOrchestrator
) -> None:
    response = client.post("/score", json={"proposal_path": "p.yml", "repo": "/work/repo"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["action"] == "extend"
    assert payload["score"] == 6
    assert payload["candidates"] == [{"id": "convex/schema.ts::users", "score": 0.5}]
    assert orchestrator.calls == [("score", ("p.yml", "/work/repo"))]


def test_score_endpoint_maps_invalid_proposal_to_422(client: TestClient) -> None:
    response = client.post("/score", json={"proposal_path": "bad.yml"})

    assert response.status_code == 422
    assert response.json()["problems"] == ["description is required"]


def test_generate_endpoint_lists_documents(client: TestClient) -> None:
    response = client.post("/generate", json={"path": "/work/repo", "out_dir": "/tmp/guides"})

    assert response.status_code == 200
    assert response.json() == {"documents": [str(Path("/tmp/guides") / "AGENTS.md")], "warnings": []}


def test_generate_endpoint_maps_unwritable_output_to_507(client: TestClient) -> None:
    response = client.post("/generate", json={"path": "/work/repo", "out_dir": "/readonly"})

    assert response.status_code == 507
    assert "not writable" in response.json()["detail"]


def test_generate_endpoint_maps_config_error_to_422(client: TestClient) -> None:
    response = client.post("/generate", json={"path": "bad-rules", "out_dir": "/tmp/guides"})

    assert response.status_code == 422
    assert response.json()["detail"] == "Rules file must contain a mapping"
