"""Core data models shared across intentlayer components.

Everything here is plain, immutable data. The coverage forest is an arena:
nodes are addressed by anchor path and refer to their parent and children by
key, so a forest can be copied or serialised without following references.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Literal, Mapping, Optional, Tuple

AnchorKind = Literal["agents", "claude"]
SkipReason = Literal["binary", "too_large"]

ANCHOR_KINDS: Tuple[AnchorKind, ...] = ("agents", "claude")

ANCHOR_FILE_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "agents": "AGENTS.md",
        "claude": "CLAUDE.md",
    }
)


@dataclass(frozen=True)
class AnchorFile:
    """A documentation anchor as supplied by the caller."""

    path: str
    kind: AnchorKind
    is_symlink: bool = False
    symlink_target: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"path": self.path, "kind": self.kind}
        if self.is_symlink:
            payload["is_symlink"] = True
            payload["symlink_target"] = self.symlink_target
        return payload


@dataclass(frozen=True)
class AnchorNode:
    """One anchor placed in a coverage forest."""

    file: AnchorFile
    directory: str
    parent: Optional[str]
    children: Tuple[str, ...]
    depth: int

    @property
    def path(self) -> str:
        return self.file.path

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "directory": self.directory,
            "parent": self.parent,
            "children": list(self.children),
            "depth": self.depth,
        }


@dataclass(frozen=True)
class CoverageForest:
    """All anchor trees of a single kind."""

    kind: AnchorKind
    roots: Tuple[str, ...] = ()
    nodes: Mapping[str, AnchorNode] = field(default_factory=lambda: MappingProxyType({}))
    _by_directory: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), repr=False, compare=False
    )

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, anchor_path: object) -> bool:
        return anchor_path in self.nodes

    def __iter__(self) -> Iterator[AnchorNode]:
        """Iterate nodes in pre-order, roots and children in sorted order."""
        stack = [self.nodes[path] for path in reversed(self.roots)]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(self.nodes[child] for child in reversed(node.children))

    def node(self, anchor_path: str) -> Optional[AnchorNode]:
        return self.nodes.get(anchor_path)

    def parent_of(self, node: AnchorNode) -> Optional[AnchorNode]:
        if node.parent is None:
            return None
        return self.nodes.get(node.parent)

    def children_of(self, node: AnchorNode) -> Tuple[AnchorNode, ...]:
        return tuple(self.nodes[child] for child in node.children)

    def root_nodes(self) -> Tuple[AnchorNode, ...]:
        return tuple(self.nodes[path] for path in self.roots)

    def node_for_directory(self, directory: str) -> Optional[AnchorNode]:
        anchor_path = self._by_directory.get(directory)
        if anchor_path is None:
            return None
        return self.nodes[anchor_path]

    def directories(self) -> frozenset[str]:
        return frozenset(self._by_directory)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "roots": list(self.roots),
            "nodes": {path: node.to_dict() for path, node in sorted(self.nodes.items())},
        }


@dataclass(frozen=True)
class CoveredFilesResult:
    """Files an anchor is responsible for, split into covered and ignored."""

    anchor_path: str
    covered: Tuple[str, ...] = ()
    ignored: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "anchor_path": self.anchor_path,
            "covered": list(self.covered),
            "ignored": list(self.ignored),
        }


@dataclass(frozen=True)
class TokenCountOutcome:
    """Token estimate for a single file, or the reason it was left out."""

    tokens: int
    skipped: bool = False
    skip_reason: Optional[SkipReason] = None


@dataclass(frozen=True)
class FileTokenDetail:
    path: str
    tokens: int
    skipped: bool = False
    skip_reason: Optional[SkipReason] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"path": self.path, "tokens": self.tokens, "skipped": self.skipped}
        if self.skip_reason is not None:
            payload["skip_reason"] = self.skip_reason
        return payload


@dataclass(frozen=True)
class CoveredCodeTokens:
    """Aggregate token count over a set of covered files."""

    total: int = 0
    counted: int = 0
    skipped: int = 0
    files: Tuple[FileTokenDetail, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "counted": self.counted,
            "skipped": self.skipped,
            "files": [detail.to_dict() for detail in self.files],
        }


@dataclass(frozen=True)
class NodeBudget:
    """Size of an anchor relative to the code it covers."""

    anchor_path: str
    anchor_tokens: int
    covered_tokens: int
    budget_percent: float
    exceeds_budget: bool
    files_counted: int
    files_skipped: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "anchor_path": self.anchor_path,
            "anchor_tokens": self.anchor_tokens,
            "covered_tokens": self.covered_tokens,
            "budget_percent": self.budget_percent,
            "exceeds_budget": self.exceeds_budget,
            "files_counted": self.files_counted,
            "files_skipped": self.files_skipped,
        }


@dataclass(frozen=True)
class ForestBudget:
    per_anchor: Mapping[str, NodeBudget] = field(default_factory=lambda: MappingProxyType({}))
    anchors_exceeding: Tuple[NodeBudget, ...] = ()

    @property
    def total_anchors(self) -> int:
        return len(self.per_anchor)

    @property
    def exceeding_count(self) -> int:
        return len(self.anchors_exceeding)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "per_anchor": {path: budget.to_dict() for path, budget in sorted(self.per_anchor.items())},
            "anchors_exceeding": [budget.anchor_path for budget in self.anchors_exceeding],
            "total_anchors": self.total_anchors,
            "exceeding_count": self.exceeding_count,
        }


@dataclass(frozen=True)
class SplitSuggestion:
    """A proposed child anchor that would absorb part of a parent's coverage."""

    directory: str
    suggested_path: str
    files: Tuple[str, ...]
    tokens: int
    coverage_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directory": self.directory,
            "suggested_path": self.suggested_path,
            "files": list(self.files),
            "tokens": self.tokens,
            "coverage_percent": self.coverage_percent,
        }


@dataclass(frozen=True)
class NodeSplitAnalysis:
    anchor_path: str
    should_split: bool
    budget_percent: float
    suggestions: Tuple[SplitSuggestion, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "anchor_path": self.anchor_path,
            "should_split": self.should_split,
            "budget_percent": self.budget_percent,
            "suggestions": [suggestion.to_dict() for suggestion in self.suggestions],
        }


@dataclass(frozen=True)
class ForestSplitAnalysis:
    analyses: Tuple[NodeSplitAnalysis, ...] = ()

    @property
    def total_suggestions(self) -> int:
        return sum(len(analysis.suggestions) for analysis in self.analyses)

    @property
    def anchors_to_split(self) -> Tuple[str, ...]:
        return tuple(analysis.anchor_path for analysis in self.analyses)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analyses": [analysis.to_dict() for analysis in self.analyses],
            "total_suggestions": self.total_suggestions,
            "anchors_to_split": list(self.anchors_to_split),
        }


__all__ = [
    "ANCHOR_FILE_NAMES",
    "ANCHOR_KINDS",
    "AnchorFile",
    "AnchorKind",
    "AnchorNode",
    "CoverageForest",
    "CoveredCodeTokens",
    "CoveredFilesResult",
    "FileTokenDetail",
    "ForestBudget",
    "ForestSplitAnalysis",
    "NodeBudget",
    "NodeSplitAnalysis",
    "SkipReason",
    "SplitSuggestion",
    "TokenCountOutcome",
]
