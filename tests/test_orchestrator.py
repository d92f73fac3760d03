"""Tests for guidegen.orchestrator."""

from __future__ import annotations

from pathlib import Path

import pytest

from guidegen.errors import InvalidProposal, IOFailure, OutputUnwritable
from guidegen.models import Action
from guidegen.orchestrator import Orchestrator
from tests._fixtures.repo_builder import RepoBuilder

REPO_FILES = {
    "convex/schema.ts": """
        import { defineSchema, defineTable } from "convex/server";
        import { v } from "convex/values";

        export default defineSchema({
          orders: defineTable({ customerId: v.id("customers"), status: v.string(), total: v.number() }),
        });
    """,
    "convex/orders.ts": """
        import { mutation, query } from "./_generated/server";
        import { v } from "convex/values";

        export const byCustomer = query({
          args: { customerId: v.id("customers"), status: v.string() },
          handler: async (ctx, args) => {
            return await ctx.db.query("orders").collect();
          },
        });

        export const cancel = mutation({
          args: { orderId: v.id("orders") },
          handler: async (ctx, args) => {
            await ctx.db.patch(args.orderId, { status: "cancelled" });
          },
        });
    """,
    "web/orders/OrderList.tsx": """
        export function OrderList({ customerId }: Props) {
          const orders = useOrders(customerId);
          return <ul>{orders.length}</ul>;
        }
    """,
}


def test_run_analyze_builds_catalog(repo_builder: RepoBuilder) -> None:
    repo_builder.write(REPO_FILES)

    catalog = Orchestrator().run_analyze(str(repo_builder.path()))

    assert [entity.name for entity in catalog.entities] == ["byCustomer", "cancel", "orders", "OrderList"]


def test_run_analyze_honours_enabled_extractors(repo_builder: RepoBuilder) -> None:
    repo_builder.write(REPO_FILES)
    repo_builder.write({".guidegen.yml": "extractors:\n  enabled: [schema]\n"})

    catalog = Orchestrator().run_analyze(str(repo_builder.path()))

    assert [entity.name for entity in catalog.entities] == ["orders"]


def test_run_analyze_falls_back_to_defaults_for_invalid_config(repo_builder: RepoBuilder) -> None:
    repo_builder.write(REPO_FILES)
    repo_builder.write({".guidegen.yml": "- not\n- a mapping\n"})

    catalog = Orchestrator().run_analyze(str(repo_builder.path()))

    assert len(catalog.entities) == 4


def test_run_analyze_missing_repository_is_io_failure(tmp_path: Path) -> None:
    with pytest.raises(IOFailure):
        Orchestrator().run_analyze(str(tmp_path / "missing"))


def test_run_score_matches_against_repository(repo_builder: RepoBuilder, write_proposal) -> None:
    repo_builder.write(REPO_FILES)
    proposal = write_proposal(
        """
        description: Fetch orders for a customer
        kind: read-operation
        fields: [customerId, status]
        repo: repo
        """
    )

    recommendation = Orchestrator().run_score(str(proposal))

    assert recommendation.action is Action.USE_EXISTING
    assert recommendation.candidates[0][0] == "convex/orders.ts::byCustomer"


def test_run_score_without_repository_uses_empty_catalog(write_proposal) -> None:
    proposal = write_proposal("description: Shared currency formatter\ncall_sites: 4\n")

    recommendation = Orchestrator().run_score(str(proposal))

    assert recommendation.action is Action.CREATE_NEW
    assert recommendation.terminal == "ReusableElsewhere"
    assert recommendation.candidates == []


def test_run_score_invalid_proposal(write_proposal) -> None:
    proposal = write_proposal("fields: [a]\n")

    with pytest.raises(InvalidProposal):
        Orchestrator().run_score(str(proposal))


def test_run_generate_writes_document_tree(repo_builder: RepoBuilder, tmp_path: Path) -> None:
    repo_builder.write(REPO_FILES)
    out_dir = tmp_path / "guides"

    outcome = Orchestrator().run_generate(str(repo_builder.path()), str(out_dir))

    assert outcome.written == [out_dir / "AGENTS.md", out_dir / "convex" / "AGENTS.md"]
    root_text = (out_dir / "AGENTS.md").read_text(encoding="utf-8")
    assert root_text.startswith("# Agent Guide: repo\n")
    assert "OrderList" in root_text
    convex_text = (out_dir / "convex" / "AGENTS.md").read_text(encoding="utf-8")
    assert "byCustomer" in convex_text
    assert "[parent guide](../AGENTS.md)" in convex_text
    assert not (repo_builder.path() / "AGENTS.md").exists()


def test_run_generate_uses_configured_filename(repo_builder: RepoBuilder, tmp_path: Path) -> None:
    repo_builder.write(REPO_FILES)
    repo_builder.write({".guidegen.yml": "docs:\n  filename: CLAUDE.md\n  min_entities: 10\n"})
    out_dir = tmp_path / "guides"

    outcome = Orchestrator().run_generate(str(repo_builder.path()), str(out_dir))

    assert outcome.written == [out_dir / "CLAUDE.md"]


def test_run_generate_rejects_unwritable_output(repo_builder: RepoBuilder, tmp_path: Path) -> None:
    repo_builder.write(REPO_FILES)
    blocker = tmp_path / "guides"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(OutputUnwritable):
        Orchestrator().run_generate(str(repo_builder.path()), str(blocker))
