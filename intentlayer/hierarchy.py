"""Builds and walks coverage forests of anchor files.

An anchor covers its directory and every subdirectory below it until a more
specific anchor takes over. A node's parent is the nearest ancestor directory
holding an anchor of the same kind; intermediate directories without anchors
are skipped.
"""

from __future__ import annotations

from collections import Counter
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from .logging import get_logger
from .models import AnchorFile, AnchorKind, AnchorNode, CoverageForest
from .paths import directory_of, nearest_ancestor_with_property

_LOGGER = get_logger("hierarchy")


class DuplicateAnchorDirectoryError(ValueError):
    """Raised when two anchors of one kind claim the same directory."""

    def __init__(self, directories: Sequence[str]) -> None:
        shown = ", ".join(directory or "(root)" for directory in directories)
        super().__init__(f"Multiple anchors share a directory: {shown}")
        self.directories = tuple(directories)


def validate_unique_directories(anchors: Iterable[AnchorFile]) -> None:
    """Reject anchor lists where two distinct paths map to one directory.

    ``build_forest`` does not check this; callers that cannot guarantee
    uniqueness should validate at the boundary.
    """
    paths = {anchor.path for anchor in anchors}
    counts = Counter(directory_of(path) for path in paths)
    duplicates = sorted(directory for directory, count in counts.items() if count > 1)
    if duplicates:
        raise DuplicateAnchorDirectoryError(duplicates)


def build_forest(anchors: Iterable[AnchorFile], kind: AnchorKind) -> CoverageForest:
    """Build the coverage forest for one anchor kind.

    When two anchors share a directory the later one in input order wins.
    """
    by_directory: Dict[str, AnchorFile] = {}
    for anchor in anchors:
        by_directory[directory_of(anchor.path)] = anchor

    directories = set(by_directory)
    parent_by_directory: Dict[str, Optional[str]] = {}
    children_by_directory: Dict[str, List[str]] = {directory: [] for directory in by_directory}
    root_directories: List[str] = []

    for directory in by_directory:
        parent = nearest_ancestor_with_property(directory, directories)
        parent_by_directory[directory] = parent
        if parent is None:
            root_directories.append(directory)
        else:
            children_by_directory[parent].append(directory)

    def _path(directory: str) -> str:
        return by_directory[directory].path

    for children in children_by_directory.values():
        children.sort(key=_path)
    root_directories.sort(key=_path)

    depth_by_directory: Dict[str, int] = {}
    stack = [(directory, 0) for directory in root_directories]
    while stack:
        directory, depth = stack.pop()
        depth_by_directory[directory] = depth
        stack.extend((child, depth + 1) for child in children_by_directory[directory])

    nodes: Dict[str, AnchorNode] = {}
    for directory, anchor in by_directory.items():
        parent = parent_by_directory[directory]
        nodes[anchor.path] = AnchorNode(
            file=anchor,
            directory=directory,
            parent=_path(parent) if parent is not None else None,
            children=tuple(_path(child) for child in children_by_directory[directory]),
            depth=depth_by_directory[directory],
        )

    _LOGGER.debug(
        "Built %s forest: %d anchors, %d roots", kind, len(nodes), len(root_directories)
    )
    return CoverageForest(
        kind=kind,
        roots=tuple(_path(directory) for directory in root_directories),
        nodes=MappingProxyType(nodes),
        _by_directory=MappingProxyType(
            {directory: anchor.path for directory, anchor in by_directory.items()}
        ),
    )


def build_forests(
    agents: Iterable[AnchorFile], claude: Iterable[AnchorFile]
) -> Dict[str, CoverageForest]:
    """Build both anchor families; each forms its own independent forest."""
    return {
        "agents": build_forest(agents, "agents"),
        "claude": build_forest(claude, "claude"),
    }


def root_anchor(anchors: Iterable[AnchorFile]) -> Optional[AnchorFile]:
    """Return the anchor sitting at the repository root, if any."""
    for anchor in anchors:
        if "/" not in anchor.path:
            return anchor
    return None


def ancestors(forest: CoverageForest, node: AnchorNode) -> List[AnchorNode]:
    """Return ancestors ordered from the immediate parent up to the root."""
    result: List[AnchorNode] = []
    current = forest.parent_of(node)
    while current is not None:
        result.append(current)
        current = forest.parent_of(current)
    return result


def descendants(forest: CoverageForest, node: AnchorNode) -> List[AnchorNode]:
    """Return every node below ``node`` in pre-order."""
    result: List[AnchorNode] = []
    stack = list(reversed(forest.children_of(node)))
    while stack:
        current = stack.pop()
        result.append(current)
        stack.extend(reversed(forest.children_of(current)))
    return result


def least_common_ancestor(
    forest: CoverageForest, first: AnchorNode, second: AnchorNode
) -> Optional[AnchorNode]:
    """Return the deepest node that is ``first`` or ``second`` or an ancestor of both."""
    lineage = {first.path} | {node.path for node in ancestors(forest, first)}
    current: Optional[AnchorNode] = second
    while current is not None:
        if current.path in lineage:
            return current
        current = forest.parent_of(current)
    return None


def iter_pre_order(forest: CoverageForest) -> Iterator[AnchorNode]:
    return iter(forest)


def iter_post_order(forest: CoverageForest) -> Iterator[AnchorNode]:
    """Yield children before their parent (leaf-first)."""
    stack = [(node, False) for node in reversed(forest.root_nodes())]
    while stack:
        node, expanded = stack.pop()
        if expanded:
            yield node
            continue
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(forest.children_of(node)))


def max_depth(forest: CoverageForest) -> int:
    """Number of levels in the forest: 0 when empty, 1 for roots only."""
    if not forest.nodes:
        return 0
    return max(node.depth for node in forest.nodes.values()) + 1


__all__ = [
    "DuplicateAnchorDirectoryError",
    "ancestors",
    "build_forest",
    "build_forests",
    "descendants",
    "iter_post_order",
    "iter_pre_order",
    "least_common_ancestor",
    "max_depth",
    "root_anchor",
    "validate_unique_directories",
]
