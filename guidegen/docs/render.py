"""Jinja2 rendering and markdown normalisation for guidance documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models import DocumentNode

DEFAULT_TEMPLATES_DIR = Path(__file__).with_name("templates")


class DocumentRenderer:
    """Renders live sections and whole documents from templates.

    A custom templates directory shadows the packaged one file by file.
    """

    def __init__(self, templates_dir: Path | None = None, *, project_name: str = "repository") -> None:
        self.templates_dir = templates_dir
        self.project_name = project_name
        self._env = self._create_env(templates_dir)

    def render_section(self, name: str, context: Dict[str, Any]) -> str:
        template = self._env.get_template(f"sections/{name}.md.j2")
        return normalise_markdown(template.render(**context)).strip()

    def render_document(self, node: DocumentNode) -> str:
        template = self._env.get_template("document.md.j2")
        rendered = template.render(
            title=self.title_for(node.path),
            sections=[
                {"name": section.name, "title": section.title, "body": section.body.strip()}
                for section in node.sections
            ],
        )
        return normalise_markdown(rendered)

    def title_for(self, path: str) -> str:
        if not path:
            return f"Agent Guide: {self.project_name}"
        return f"Agent Guide: {path}/"

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories: List[str] = []
        if templates_dir is not None:
            directories.append(str(templates_dir))
        directories.append(str(DEFAULT_TEMPLATES_DIR))
        return Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )


def count_words(text: str) -> int:
    return len(text.split())


def normalise_markdown(markdown: str) -> str:
    """Normalise line endings, trailing spaces, blank runs and heading spacing."""
    normalized = markdown.replace("\r\n", "\n").replace("\r", "\n")
    cleaned: List[str] = []
    in_code = False
    previous_blank = False

    for line in normalized.split("\n"):
        stripped = line.rstrip()
        if stripped.startswith("```"):
            in_code = not in_code
            cleaned.append(stripped)
            previous_blank = False
            continue

        if not in_code:
            if stripped.startswith("#") and cleaned and cleaned[-1] != "":
                cleaned.append("")
            if not stripped:
                if previous_blank or not cleaned:
                    continue
                previous_blank = True
                cleaned.append("")
                continue

        cleaned.append(stripped)
        previous_blank = False

    while cleaned and cleaned[-1] == "":
        cleaned.pop()

    return "\n".join(cleaned) + "\n"


__all__ = ["DEFAULT_TEMPLATES_DIR", "DocumentRenderer", "count_words", "normalise_markdown"]
