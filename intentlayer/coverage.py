"""Resolves which anchor is responsible for each source file."""

from __future__ import annotations

from typing import Callable, Collection, Dict, Iterable, List, Optional, Tuple

from .logging import get_logger
from .models import ANCHOR_FILE_NAMES, AnchorNode, CoverageForest, CoveredFilesResult
from .paths import directory_of, file_name_of, is_ancestor_directory

IgnorePredicate = Callable[[str], bool]

DEFAULT_ANCHOR_FILE_NAMES: Tuple[str, ...] = tuple(ANCHOR_FILE_NAMES.values())

_LOGGER = get_logger("coverage")


def find_covering_anchor(file_path: str, forest: CoverageForest) -> Optional[AnchorNode]:
    """Return the nearest anchor at or above the file's directory."""
    directory = directory_of(file_path)
    while True:
        node = forest.node_for_directory(directory)
        if node is not None:
            return node
        if directory == "":
            return None
        directory = directory_of(directory)


def _is_anchor_file(path: str, anchor_file_names: Collection[str]) -> bool:
    return file_name_of(path) in anchor_file_names


def _in_subtree(file_directory: str, node_directory: str) -> bool:
    return file_directory == node_directory or is_ancestor_directory(node_directory, file_directory)


def covered_files_for(
    node: AnchorNode,
    all_files: Iterable[str],
    forest: CoverageForest,
    ignore: Optional[IgnorePredicate] = None,
    anchor_file_names: Collection[str] = DEFAULT_ANCHOR_FILE_NAMES,
) -> CoveredFilesResult:
    """Return the files ``node`` covers, with ignored files reported separately.

    Anchor files of either kind are never covered content. A file only counts
    for ``node`` when ``node`` is its nearest covering anchor, which keeps the
    covered sets of one forest disjoint.
    """
    covered = set()
    ignored = set()
    for file_path in all_files:
        if file_path == node.path or _is_anchor_file(file_path, anchor_file_names):
            continue
        if not _in_subtree(directory_of(file_path), node.directory):
            continue
        owner = find_covering_anchor(file_path, forest)
        if owner is None or owner.path != node.path:
            continue
        if ignore is not None and ignore(file_path):
            ignored.add(file_path)
        else:
            covered.add(file_path)

    return CoveredFilesResult(
        anchor_path=node.path,
        covered=tuple(sorted(covered)),
        ignored=tuple(sorted(ignored)),
    )


def covered_files_for_forest(
    forest: CoverageForest,
    all_files: Iterable[str],
    ignore: Optional[IgnorePredicate] = None,
    anchor_file_names: Collection[str] = DEFAULT_ANCHOR_FILE_NAMES,
) -> Dict[str, CoveredFilesResult]:
    """Compute coverage for every anchor in ``forest``, keyed by anchor path."""
    files = list(all_files)
    results = {
        node.path: covered_files_for(node, files, forest, ignore, anchor_file_names)
        for node in forest
    }
    _LOGGER.debug(
        "Resolved coverage for %d %s anchors over %d files",
        len(results),
        forest.kind,
        len(files),
    )
    return results


def uncovered_files(
    forest: CoverageForest,
    all_files: Iterable[str],
    anchor_file_names: Collection[str] = DEFAULT_ANCHOR_FILE_NAMES,
) -> Tuple[str, ...]:
    """Return non-anchor files that no anchor in ``forest`` covers."""
    orphans: List[str] = []
    for file_path in set(all_files):
        if _is_anchor_file(file_path, anchor_file_names):
            continue
        if find_covering_anchor(file_path, forest) is None:
            orphans.append(file_path)
    return tuple(sorted(orphans))


__all__ = [
    "DEFAULT_ANCHOR_FILE_NAMES",
    "IgnorePredicate",
    "covered_files_for",
    "covered_files_for_forest",
    "find_covering_anchor",
    "uncovered_files",
]
