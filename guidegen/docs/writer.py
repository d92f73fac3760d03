"""Materialises a document tree onto disk."""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..errors import OutputUnwritable
from ..logging import get_logger
from ..models import DocumentTree
from .constants import DEFAULT_FILENAME
from .render import DocumentRenderer


class DocumentWriter:
    """Renders every node and writes one file per node under an output directory."""

    def __init__(self, renderer: DocumentRenderer | None = None, *, filename: str = DEFAULT_FILENAME) -> None:
        self.renderer = renderer or DocumentRenderer()
        self.filename = filename
        self.logger = get_logger("docs.writer")

    def render(self, tree: DocumentTree) -> Dict[str, str]:
        """Return ``{relative path: markdown}`` for every node, in tree order."""
        return {
            self._relative_path(node.path): self.renderer.render_document(node)
            for node in tree.nodes()
        }

    def write(self, tree: DocumentTree, out_dir: Path) -> List[Path]:
        """Write the tree beneath ``out_dir`` and return the written paths.

        Documents are staged next to their targets and only moved into place once
        every one of them has been written, so a failure leaves no new files behind.
        """
        documents = self.render(tree)
        out_dir = out_dir.expanduser()
        if out_dir.exists() and not out_dir.is_dir():
            raise OutputUnwritable(f"Output path {out_dir} is not a directory")

        created: List[Path] = []
        staged: List[Tuple[Path, Path]] = []
        try:
            for relative in documents:
                self._ensure_directory((out_dir / relative).parent, created)
            for relative, content in documents.items():
                target = out_dir / relative
                partial = target.with_name(f".{target.name}.partial")
                staged.append((partial, target))
                partial.write_text(content, encoding="utf-8")
            for partial, target in staged:
                os.replace(partial, target)
        except OSError as exc:
            _discard(staged, created)
            raise OutputUnwritable(f"Cannot write documents under {out_dir}: {exc}") from exc
        except OutputUnwritable:
            _discard(staged, created)
            raise

        written = [target for _, target in staged]
        for target in written:
            self.logger.debug("Wrote %s", target)
        self.logger.info("Wrote %d documents to %s", len(written), out_dir)
        return written

    @staticmethod
    def _ensure_directory(directory: Path, created: List[Path]) -> None:
        missing = [directory, *directory.parents]
        missing = [path for path in missing if not path.exists()]
        for path in reversed(missing):
            path.mkdir()
            created.append(path)
        if not directory.is_dir():
            raise OutputUnwritable(f"Output path {directory} is not a directory")
        if not os.access(directory, os.W_OK):
            raise OutputUnwritable(f"Output directory {directory} is not writable")

    def _relative_path(self, node_path: str) -> str:
        return posixpath.join(node_path, self.filename) if node_path else self.filename


def _discard(staged: List[Tuple[Path, Path]], created: List[Path]) -> None:
    """Remove staged files and the directories created for them, newest first."""
    for partial, _ in staged:
        partial.unlink(missing_ok=True)
    for directory in reversed(created):
        try:
            directory.rmdir()
        except OSError:
            continue


def find_nearest_document(
    out_dir: Path, file_path: str, filename: str = DEFAULT_FILENAME
) -> Optional[Path]:
    """Return the closest written document governing ``file_path``, if any."""
    parts = [part for part in file_path.replace("\\", "/").split("/") if part not in {"", "."}]
    directories = parts[:-1] if parts and not (out_dir / Path(*parts)).is_dir() else parts
    while True:
        candidate = out_dir.joinpath(*directories, filename)
        if candidate.is_file():
            return candidate
        if not directories:
            return None
        directories = directories[:-1]


__all__ = ["DocumentWriter", "find_nearest_document"]
