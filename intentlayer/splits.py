"""Suggests new child anchors for anchors that exceed their token budget."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, List, Mapping, Optional, Sequence

from .logging import get_logger
from .models import (
    ANCHOR_FILE_NAMES,
    CoveredFilesResult,
    ForestBudget,
    ForestSplitAnalysis,
    NodeSplitAnalysis,
    SplitSuggestion,
)
from .paths import immediate_subdirectory, join
from .tokenizer import (
    DEFAULT_BUDGET_PERCENT,
    CoverageEntry,
    TokenCountOptions,
    covered_code_tokens,
)

MIN_FILES_FOR_SPLIT = 3
MIN_COVERAGE_PERCENT_FOR_SPLIT = 10.0

_LOGGER = get_logger("splits")


@dataclass(frozen=True)
class SplitPolicy:
    """Thresholds a subdirectory must meet to be proposed as a new anchor."""

    min_files: int = MIN_FILES_FOR_SPLIT
    min_coverage_percent: float = MIN_COVERAGE_PERCENT_FOR_SPLIT


_DEFAULT_POLICY = SplitPolicy()


def _group_by_subdirectory(
    covered_paths: Iterable[str],
    anchor_directory: str,
    existing_anchor_directories: AbstractSet[str],
) -> Dict[str, List[str]]:
    groups: Dict[str, List[str]] = {}
    for path in covered_paths:
        segment = immediate_subdirectory(path, anchor_directory)
        if segment is None:
            continue
        subdirectory = join(anchor_directory, segment)
        if subdirectory in existing_anchor_directories:
            continue
        groups.setdefault(subdirectory, []).append(path)
    return groups


def propose_splits(
    anchor_path: str,
    anchor_directory: str,
    covered_paths: Sequence[str],
    content_by_path: Mapping[str, str],
    budget_percent: float,
    threshold_percent: float = DEFAULT_BUDGET_PERCENT,
    existing_anchor_directories: AbstractSet[str] = frozenset(),
    options: Optional[TokenCountOptions] = None,
    anchor_file_name: str = ANCHOR_FILE_NAMES["agents"],
    policy: Optional[SplitPolicy] = None,
) -> NodeSplitAnalysis:
    """Propose child anchors at immediate subdirectories of ``anchor_directory``.

    Files sitting directly in ``anchor_directory`` never form a group. A
    subdirectory qualifies when it has at least ``policy.min_files`` covered
    files and holds at least ``policy.min_coverage_percent`` of the anchor's
    covered tokens. Suggestions are ordered by coverage, largest first.
    """
    policy = policy or _DEFAULT_POLICY
    if budget_percent <= threshold_percent:
        return NodeSplitAnalysis(
            anchor_path=anchor_path, should_split=False, budget_percent=budget_percent
        )

    groups = _group_by_subdirectory(covered_paths, anchor_directory, existing_anchor_directories)
    total_tokens = covered_code_tokens(covered_paths, content_by_path, options).total

    suggestions: List[SplitSuggestion] = []
    for subdirectory, files in groups.items():
        if len(files) < policy.min_files:
            continue
        group_tokens = covered_code_tokens(files, content_by_path, options).total
        coverage_percent = group_tokens / total_tokens * 100 if total_tokens > 0 else 0.0
        if coverage_percent < policy.min_coverage_percent:
            continue
        suggestions.append(
            SplitSuggestion(
                directory=subdirectory,
                suggested_path=f"{subdirectory}/{anchor_file_name}",
                files=tuple(files),
                tokens=group_tokens,
                coverage_percent=coverage_percent,
            )
        )

    suggestions.sort(key=lambda item: (-item.coverage_percent, item.directory))
    return NodeSplitAnalysis(
        anchor_path=anchor_path,
        should_split=True,
        budget_percent=budget_percent,
        suggestions=tuple(suggestions),
    )


def analyze_forest_for_splits(
    forest_budget: ForestBudget,
    covered_by_anchor: Mapping[str, CoverageEntry],
    directory_by_anchor: Mapping[str, str],
    content_by_path: Mapping[str, str],
    threshold_percent: float = DEFAULT_BUDGET_PERCENT,
    existing_anchor_directories: AbstractSet[str] = frozenset(),
    options: Optional[TokenCountOptions] = None,
    anchor_file_name: str = ANCHOR_FILE_NAMES["agents"],
    policy: Optional[SplitPolicy] = None,
) -> ForestSplitAnalysis:
    """Run :func:`propose_splits` for every anchor already over budget.

    Anchors lacking coverage or directory information are skipped.
    """
    analyses: List[NodeSplitAnalysis] = []
    for budget in forest_budget.anchors_exceeding:
        entry = covered_by_anchor.get(budget.anchor_path)
        directory = directory_by_anchor.get(budget.anchor_path)
        if entry is None or directory is None:
            continue
        covered = entry.covered if isinstance(entry, CoveredFilesResult) else entry
        analysis = propose_splits(
            budget.anchor_path,
            directory,
            covered,
            content_by_path,
            budget.budget_percent,
            threshold_percent,
            existing_anchor_directories,
            options,
            anchor_file_name,
            policy,
        )
        if analysis.should_split:
            analyses.append(analysis)

    result = ForestSplitAnalysis(analyses=tuple(analyses))
    _LOGGER.debug(
        "%d anchors over budget, %d split suggestions",
        len(result.anchors_to_split),
        result.total_suggestions,
    )
    return result


__all__ = [
    "MIN_COVERAGE_PERCENT_FOR_SPLIT",
    "MIN_FILES_FOR_SPLIT",
    "SplitPolicy",
    "analyze_forest_for_splits",
    "propose_splits",
]
