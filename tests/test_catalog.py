"""Tests for guidegen.catalog."""

from __future__ import annotations

from typing import Iterable

import pytest

from guidegen.catalog import CatalogBuilder
from guidegen.extractors import Extractor
from guidegen.models import Entity, EntityKind, FileMeta
from tests._fixtures.repo_builder import RepoBuilder

FILES = {
    "convex/schema.ts": """
        import { defineSchema, defineTable } from "convex/server";
        import { v } from "convex/values";

        export default defineSchema({
          users: defineTable({ name: v.string(), email: v.string() }),
        });
    """,
    "convex/users.ts": """
        import { query } from "./_generated/server";
        import { v } from "convex/values";

        export const byEmail = query({
          args: { email: v.string() },
          handler: async (ctx, args) => {
            return await ctx.db.query("users").first();
          },
        });
    """,
    "web/hooks/useUser.ts": """
        export function useUser(email: string) {
          return useQuery(byEmail, { email });
        }
    """,
    "web/components/UserCard.tsx": """
        export function UserCard({ email }: Props) {
          const user = useUser(email);
          return <div>{user.name}</div>;
        }
    """,
    "web/components/UserCard.test.tsx": """
        export function UserCardTest() {
          return <UserCard email="a@b.c" />;
        }
    """,
    "scripts/notes.py": """
        print("nothing to see")
    """,
    "README.md": "# Demo\n",
}


def test_catalog_collects_entities_sorted_by_id(repo_builder: RepoBuilder) -> None:
    repo_builder.write(FILES)

    catalog = repo_builder.catalog()

    assert [entity.id for entity in catalog.entities] == [
        "convex/schema.ts::users",
        "convex/users.ts::byEmail",
        "web/components/UserCard.tsx::UserCard",
        "web/hooks/useUser.ts::useUser",
    ]
    kinds = {entity.name: entity.kind for entity in catalog.entities}
    assert kinds == {
        "users": EntityKind.DATA_STORE,
        "byEmail": EntityKind.READ_OPERATION,
        "UserCard": EntityKind.UI_COMPONENT,
        "useUser": EntityKind.STATEFUL_HOOK,
    }


def test_catalog_records_skipped_files_with_reasons(repo_builder: RepoBuilder) -> None:
    repo_builder.write(FILES)

    catalog = repo_builder.catalog()
    reasons = {item.path: item.reason for item in catalog.skipped}

    assert reasons["web/components/UserCard.test.tsx"] == "test file"
    assert reasons["scripts/notes.py"] == "no recognizable entities"
    assert reasons["README.md"] == "unsupported language"


def test_catalog_links_consumers_by_reference(repo_builder: RepoBuilder) -> None:
    repo_builder.write(FILES)

    catalog = repo_builder.catalog()

    by_email = catalog.get("convex/users.ts::byEmail")
    use_user = catalog.get("web/hooks/useUser.ts::useUser")
    assert by_email is not None and use_user is not None
    assert by_email.consumers == {"web/hooks/useUser.ts::useUser"}
    assert use_user.consumers == {"web/components/UserCard.tsx::UserCard"}


def test_catalog_is_deterministic_across_runs(repo_builder: RepoBuilder) -> None:
    repo_builder.write(FILES)
    manifest = repo_builder.scan()

    first = CatalogBuilder(workers=1).build(manifest)
    second = CatalogBuilder(workers=8).build(manifest)

    assert first == second


def test_catalog_skips_files_that_are_not_utf8(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"convex/schema.ts": FILES["convex/schema.ts"]})
    (repo_builder.path() / "convex" / "binary.ts").write_bytes(b"\xff\xfe\x00bad")

    catalog = repo_builder.catalog()

    reasons = {item.path: item.reason for item in catalog.skipped}
    assert reasons["convex/binary.ts"] == "not valid UTF-8"
    assert len(catalog.entities) == 1


class _FailingExtractor(Extractor):
    name = "failing"
    languages = frozenset({"Python"})

    def extract(self, meta: FileMeta, text: str) -> Iterable[Entity]:
        raise RuntimeError("boom")


def test_catalog_isolates_extractor_failures(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"app/a.py": "x = 1\n", "app/b.py": "y = 2\n"})

    catalog = CatalogBuilder([_FailingExtractor()]).build(repo_builder.scan())

    assert catalog.entities == []
    assert [item.path for item in catalog.skipped] == ["app/a.py", "app/b.py"]
    assert all("failing failed: boom" in item.reason for item in catalog.skipped)


def test_entity_identity_cannot_change(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"convex/schema.ts": FILES["convex/schema.ts"]})
    entity = repo_builder.catalog().entities[0]

    with pytest.raises(AttributeError):
        entity.id = "other::id"
    with pytest.raises(AttributeError):
        entity.kind = EntityKind.ROUTE

    entity.consumers.add("somewhere::else")
    assert "somewhere::else" in entity.consumers


def test_catalog_summary_counts_kinds_and_domains(repo_builder: RepoBuilder) -> None:
    repo_builder.write(FILES)

    summary = repo_builder.catalog().summary()

    assert summary["entities"] == 4
    assert summary["kinds"] == {
        "data-store": 1,
        "read-operation": 1,
        "stateful-hook": 1,
        "ui-component": 1,
    }
    assert summary["skipped"] == 3


def test_catalog_records_non_source_files_as_unsupported(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "README.md": "# Users\n",
            "package.json": '{"name": "demo"}\n',
            "src/users/Card.tsx": FILES["web/components/UserCard.tsx"],
        }
    )

    catalog = repo_builder.catalog()

    assert [entity.id for entity in catalog.entities] == ["src/users/Card.tsx::UserCard"]
    assert [(item.path, item.reason) for item in catalog.skipped] == [
        ("README.md", "unsupported language"),
        ("package.json", "unsupported language"),
    ]
