"""Maps changed files (for example from a pull-request diff) to covering anchors."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .coverage import IgnorePredicate, find_covering_anchor
from .models import AnchorNode, CoverageForest
from .paths import normalize_path

UNCOVERED_KEY = "__uncovered__"


@dataclass(frozen=True)
class ChangedFileCoverage:
    path: str
    anchor_path: Optional[str]
    ignored: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {"path": self.path, "anchor_path": self.anchor_path, "ignored": self.ignored}


@dataclass(frozen=True)
class ChangedFilesSummary:
    total: int = 0
    covered: int = 0
    uncovered: int = 0
    ignored: int = 0
    affected_anchors: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "covered": self.covered,
            "uncovered": self.uncovered,
            "ignored": self.ignored,
            "affected_anchors": self.affected_anchors,
        }


@dataclass(frozen=True)
class ChangedFilesMapping:
    """Changed files with their covering anchor, grouped by anchor path.

    Files without a covering anchor are grouped under :data:`UNCOVERED_KEY`.
    """

    files: Tuple[ChangedFileCoverage, ...] = ()
    by_anchor: Mapping[str, Tuple[ChangedFileCoverage, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    summary: ChangedFilesSummary = field(default_factory=ChangedFilesSummary)

    def to_dict(self) -> Dict[str, object]:
        return {
            "files": [entry.to_dict() for entry in self.files],
            "by_anchor": {
                key: [entry.path for entry in entries]
                for key, entries in sorted(self.by_anchor.items())
            },
            "summary": self.summary.to_dict(),
        }


def _assemble(files: List[ChangedFileCoverage]) -> ChangedFilesMapping:
    grouped: Dict[str, List[ChangedFileCoverage]] = {}
    for entry in files:
        grouped.setdefault(entry.anchor_path or UNCOVERED_KEY, []).append(entry)

    covered = sum(1 for entry in files if entry.anchor_path is not None)
    summary = ChangedFilesSummary(
        total=len(files),
        covered=covered,
        uncovered=len(files) - covered,
        ignored=sum(1 for entry in files if entry.ignored),
        affected_anchors=sum(1 for key in grouped if key != UNCOVERED_KEY),
    )
    return ChangedFilesMapping(
        files=tuple(files),
        by_anchor=MappingProxyType({key: tuple(value) for key, value in grouped.items()}),
        summary=summary,
    )


def map_changed_file(
    path: str, forest: CoverageForest, ignore: Optional[IgnorePredicate] = None
) -> ChangedFileCoverage:
    """Resolve one changed file; ignored files still record their covering anchor.

    ``path`` may carry a leading ``./`` or ``/`` as diff tools emit them.
    """
    path = normalize_path(path)
    node = find_covering_anchor(path, forest)
    return ChangedFileCoverage(
        path=path,
        anchor_path=node.path if node is not None else None,
        ignored=bool(ignore(path)) if ignore is not None else False,
    )


def map_changed_files(
    changed_paths: Iterable[str],
    forest: CoverageForest,
    ignore: Optional[IgnorePredicate] = None,
) -> ChangedFilesMapping:
    return _assemble([map_changed_file(path, forest, ignore) for path in changed_paths])


def affected_anchors(mapping: ChangedFilesMapping, forest: CoverageForest) -> List[AnchorNode]:
    """Return anchors with at least one changed file, sorted by path."""
    nodes = [
        forest.nodes[key]
        for key in mapping.by_anchor
        if key != UNCOVERED_KEY and key in forest.nodes
    ]
    return sorted(nodes, key=lambda node: node.path)


def changed_files_for(anchor_path: str, mapping: ChangedFilesMapping) -> Tuple[ChangedFileCoverage, ...]:
    return mapping.by_anchor.get(anchor_path, ())


def uncovered_changed_files(mapping: ChangedFilesMapping) -> Tuple[ChangedFileCoverage, ...]:
    return mapping.by_anchor.get(UNCOVERED_KEY, ())


def ignored_changed_files(mapping: ChangedFilesMapping) -> Tuple[ChangedFileCoverage, ...]:
    return tuple(entry for entry in mapping.files if entry.ignored)


def has_affected_anchors(mapping: ChangedFilesMapping) -> bool:
    return mapping.summary.affected_anchors > 0


def without_ignored(mapping: ChangedFilesMapping) -> ChangedFilesMapping:
    """Return a new mapping that drops ignored files and recomputes the summary."""
    return _assemble([entry for entry in mapping.files if not entry.ignored])


__all__ = [
    "UNCOVERED_KEY",
    "ChangedFileCoverage",
    "ChangedFilesMapping",
    "ChangedFilesSummary",
    "affected_anchors",
    "changed_files_for",
    "has_affected_anchors",
    "ignored_changed_files",
    "map_changed_file",
    "map_changed_files",
    "uncovered_changed_files",
    "without_ignored",
]
