"""Local repository discovery: anchor files, source files and their contents."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from .logging import get_logger
from .models import ANCHOR_FILE_NAMES, AnchorFile

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

DEFAULT_MAX_BYTES = 1_000_000

_LOGGER = get_logger("scanner")


@dataclass
class RepoSnapshot:
    """Anchors per kind plus every repository-relative file path found on disk."""

    root: str
    anchors: Dict[str, List[AnchorFile]] = field(default_factory=dict)
    files: List[str] = field(default_factory=list)

    def anchors_for(self, kind: str) -> List[AnchorFile]:
        return self.anchors.get(kind, [])


def _iter_files(root: Path) -> Iterator[str]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)

        for filename in filenames:
            if filename in _EXCLUDED_FILES:
                continue
            yield f"{rel_dir}/{filename}" if rel_dir else filename


def _anchor_sort_key(anchor: AnchorFile) -> tuple[int, str]:
    return (anchor.path.count("/"), anchor.path)


def _describe_anchor(root: Path, rel_path: str, kind: str) -> AnchorFile:
    absolute = root / rel_path
    if not absolute.is_symlink():
        return AnchorFile(path=rel_path, kind=kind)  # type: ignore[arg-type]
    try:
        target: Optional[str] = os.readlink(absolute)
    except OSError:
        target = None
    return AnchorFile(path=rel_path, kind=kind, is_symlink=True, symlink_target=target)  # type: ignore[arg-type]


class RepoScanner:
    """Walks a local checkout to collect anchors and source files."""

    def __init__(self, anchor_file_names: Mapping[str, str] | None = None) -> None:
        self.anchor_file_names = dict(anchor_file_names or ANCHOR_FILE_NAMES)

    def scan(self, root: str | Path) -> RepoSnapshot:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        kind_by_name = {name: kind for kind, name in self.anchor_file_names.items()}
        anchors: Dict[str, List[AnchorFile]] = {kind: [] for kind in self.anchor_file_names}
        files: List[str] = []

        for rel_path in _iter_files(root_path):
            files.append(rel_path)
            kind = kind_by_name.get(rel_path.rsplit("/", 1)[-1])
            if kind is not None:
                anchors[kind].append(_describe_anchor(root_path, rel_path, kind))

        for found in anchors.values():
            found.sort(key=_anchor_sort_key)
        files.sort()

        _LOGGER.debug(
            "Scanned %s: %d files, anchors %s",
            root_path,
            len(files),
            {kind: len(found) for kind, found in anchors.items()},
        )
        return RepoSnapshot(root=str(root_path), anchors=anchors, files=files)


def read_contents(
    root: str | Path,
    paths: Iterable[str],
    *,
    max_bytes: Optional[int] = None,
) -> Dict[str, str]:
    """Read text content for ``paths`` relative to ``root``.

    Unreadable files and files larger than ``max_bytes`` are left out of the
    result; budget math treats missing entries as not yet fetched. Invalid
    UTF-8 is replaced rather than rejected so NUL-bearing binaries still read.
    """
    root_path = Path(root)
    contents: Dict[str, str] = {}
    for rel_path in paths:
        target = root_path / rel_path
        try:
            if max_bytes is not None and target.stat().st_size > max_bytes:
                _LOGGER.debug("Skipping %s: larger than %d bytes", rel_path, max_bytes)
                continue
            data = target.read_bytes()
        except OSError as exc:
            _LOGGER.debug("Skipping %s: %s", rel_path, exc)
            continue
        contents[rel_path] = data.decode("utf-8", errors="replace")
    return contents


__all__ = ["DEFAULT_MAX_BYTES", "RepoScanner", "RepoSnapshot", "read_contents"]
