"""Tests for the read/write operation extractor."""

from __future__ import annotations

import textwrap

from guidegen.extractors.operations import OperationExtractor
from guidegen.models import EntityKind, FileMeta


def _meta(path: str, language: str) -> FileMeta:
    return FileMeta(path=path, size=0, language=language, role="src", hash="")


def test_operation_extractor_classifies_exported_markers() -> None:
    source = textwrap.dedent(
        """
        import { query, mutation } from "./_generated/server";
        import { v } from "convex/values";

        export const listByTeam = query({
          args: { teamId: v.id("teams") },
          handler: async (ctx, args) => {
            return await ctx.db.query("users").collect();
          },
        });

        export const rename = mutation({
          args: { userId: v.id("users"), name: v.string() },
          handler: async (ctx, { userId, name }) => {
            await ctx.db.patch(userId, { name });
          },
        });

        export const helper = 42;
        """
    )

    entities = list(OperationExtractor().extract(_meta("convex/users.ts", "TypeScript"), source))

    assert [(entity.name, entity.kind) for entity in entities] == [
        ("listByTeam", EntityKind.READ_OPERATION),
        ("rename", EntityKind.WRITE_OPERATION),
    ]
    assert entities[0].field_names == ["teamId"]
    assert entities[0].fields[0].type == "id"
    assert entities[1].field_names == ["userId", "name"]
    assert all(entity.domain == "user" for entity in entities)


def test_operation_extractor_reads_decorated_python_functions() -> None:
    source = textwrap.dedent(
        """
        from app.framework import mutation, query


        @query
        def get_order(order_id: int, include_items: bool = False):
            return load(order_id)


        @mutation
        def cancel_order(ctx, order_id: int, reason: str):
            return None


        @query
        def _private():
            pass


        def plain(x):
            return x
        """
    )

    entities = list(OperationExtractor().extract(_meta("app/orders/ops.py", "Python"), source))

    assert [(entity.name, entity.kind) for entity in entities] == [
        ("get_order", EntityKind.READ_OPERATION),
        ("cancel_order", EntityKind.WRITE_OPERATION),
    ]
    assert entities[0].field_names == ["order_id", "include_items"]
    assert [item.type for item in entities[0].fields] == ["int", "bool"]
    assert entities[1].field_names == ["order_id", "reason"]
    assert "load" in entities[0].references


def test_operation_extractor_reads_multiline_decorator_calls() -> None:
    source = textwrap.dedent(
        """
        @query(
            cache=True,
        )
        def list_users(org_id: str, limit: int = 10):
            return []


        @query
        def get_user(user_id: str):
            return None
        """
    )

    entities = list(OperationExtractor().extract(_meta("api/users.py", "Python"), source))

    assert [(entity.id, entity.field_names) for entity in entities] == [
        ("api/users.py::list_users", ["org_id", "limit"]),
        ("api/users.py::get_user", ["user_id"]),
    ]
    assert all(entity.kind is EntityKind.READ_OPERATION for entity in entities)
