"""Repository scanning and snapshot utilities."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterator, List, Sequence

from .config import ConfigError, load_config
from .errors import IOFailure
from .logging import get_logger
from .models import DirectoryNode, FileMeta, RepoManifest

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
    ".next",
    "dist",
    "build",
    "_generated",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

_LANGUAGE_BY_SUFFIX = {
    ".py": "Python",
    ".pyi": "Python",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".prisma": "Prisma",
    ".md": "Markdown",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".json": "JSON",
    ".toml": "TOML",
}

_ROLE_RULES: tuple[tuple[str, str], ...] = (
    ("tests", "test"),
    ("test", "test"),
    ("__tests__", "test"),
    ("docs", "docs"),
    ("examples", "examples"),
    ("config", "config"),
)

logger = get_logger("scanner")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .guidegen.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        logger.warning("Unable to read %s; ignoring it", path)
        return []
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _parse_config_excludes(root: Path) -> List[IgnoreRule]:
    try:
        config = load_config(root)
    except ConfigError as exc:
        logger.warning("Ignoring exclude_paths from invalid config: %s", exc)
        return []

    rules: List[IgnoreRule] = []
    for pattern in config.exclude_paths:
        rule = _build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def _load_ignore_rules(root: Path) -> List[IgnoreRule]:
    rules = _parse_gitignore(root / ".gitignore")
    rules.extend(_parse_config_excludes(root))
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _iter_files(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept_dirs = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_ignore(rel_path, True, rules):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            if filename in _EXCLUDED_FILES:
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            yield current_dir / filename


def _detect_language(path: Path) -> str | None:
    return _LANGUAGE_BY_SUFFIX.get(path.suffix.lower())


def _detect_role(relative_path: str) -> str:
    parts = relative_path.split("/")
    for segment, role in _ROLE_RULES:
        if segment in parts[:-1]:
            return role
    name = parts[-1]
    if ".test." in name or ".spec." in name or name.startswith("test_"):
        return "test"
    if relative_path.endswith((".md", ".rst")):
        return "docs"
    return "src"


def _hash_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


class RepoScanner:
    """Walks the repository to produce a normalized manifest without writing to it."""

    def scan(self, root: str) -> RepoManifest:
        """Return a manifest describing project files and roles."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise IOFailure(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise IOFailure(f"Repository path is not a directory: {root}")
        if not os.access(root_path, os.R_OK | os.X_OK):
            raise IOFailure(f"Repository path is not readable: {root}")

        rules = _load_ignore_rules(root_path)
        files: List[FileMeta] = []
        for path in _iter_files(root_path, rules):
            rel_path = path.relative_to(root_path).as_posix()
            try:
                size = path.stat().st_size
                file_hash = _hash_file(path)
            except OSError as exc:
                logger.warning("Unable to read %s: %s", rel_path, exc)
                continue
            files.append(
                FileMeta(
                    path=rel_path,
                    size=size,
                    language=_detect_language(path),
                    role=_detect_role(rel_path),
                    hash=file_hash,
                )
            )

        files.sort(key=lambda meta: meta.path)
        logger.debug("Scanned %d files under %s", len(files), root_path)
        return RepoManifest(root=str(root_path), files=files)


def build_directory_tree(manifest: RepoManifest) -> DirectoryNode:
    """Group manifest files into a directory tree rooted at ``""``."""
    nodes: Dict[str, DirectoryNode] = {"": DirectoryNode(path="")}

    def _ensure(directory: str) -> DirectoryNode:
        node = nodes.get(directory)
        if node is not None:
            return node
        parent_path, _, _ = directory.rpartition("/")
        parent = _ensure(parent_path)
        node = DirectoryNode(path=directory)
        nodes[directory] = node
        parent.children.append(node)
        return node

    for meta in manifest.files:
        directory, _, _ = meta.path.rpartition("/")
        _ensure(directory).files.append(meta.path)

    for node in nodes.values():
        node.files.sort()
        node.children.sort(key=lambda child: child.path)
    return nodes[""]


__all__ = ["IgnoreRule", "RepoScanner", "build_directory_tree"]
