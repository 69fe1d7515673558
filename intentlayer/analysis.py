"""Runs the full coverage, budget and split pipeline over a repository."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .changes import ChangedFilesMapping, map_changed_files
from .config import IntentLayerConfig, load_config
from .coverage import IgnorePredicate, covered_files_for_forest, uncovered_files
from .hierarchy import build_forest
from .ignore import load_intentlayer_ignore
from .logging import get_logger
from .models import CoverageForest, CoveredFilesResult, ForestBudget, ForestSplitAnalysis
from .scanner import RepoScanner, RepoSnapshot, read_contents
from .splits import analyze_forest_for_splits
from .tokenizer import forest_budget
from .validation import SymlinkValidationResult, validate_symlink_config

_LOGGER = get_logger("analysis")


@dataclass(frozen=True)
class KindAnalysis:
    """Everything computed for one anchor family."""

    kind: str
    anchor_file_name: str
    forest: CoverageForest
    coverage: Mapping[str, CoveredFilesResult]
    uncovered: Tuple[str, ...]
    budget: ForestBudget
    splits: ForestSplitAnalysis
    changes: Optional[ChangedFilesMapping] = None


@dataclass(frozen=True)
class AnalysisResult:
    root: str
    threshold_percent: float
    kinds: Mapping[str, KindAnalysis]
    symlink: SymlinkValidationResult


def analyze_kind(
    kind: str,
    snapshot: RepoSnapshot,
    contents: Mapping[str, str],
    config: IntentLayerConfig,
    ignore: Optional[IgnorePredicate] = None,
    changed_files: Optional[Sequence[str]] = None,
) -> KindAnalysis:
    anchor_names = tuple(config.anchor_file_names.values())
    anchor_file_name = config.anchor_file_names[kind]
    options = config.token_options()

    forest = build_forest(snapshot.anchors_for(kind), kind)  # type: ignore[arg-type]
    coverage = covered_files_for_forest(forest, snapshot.files, ignore, anchor_names)
    anchor_texts = {
        node.path: contents[node.path] for node in forest if node.path in contents
    }
    budget = forest_budget(
        coverage, anchor_texts, contents, config.token_budget_percent, options
    )

    if config.split_large_nodes:
        splits = analyze_forest_for_splits(
            budget,
            coverage,
            {node.path: node.directory for node in forest},
            contents,
            config.token_budget_percent,
            forest.directories(),
            options,
            anchor_file_name,
            config.split_policy(),
        )
    else:
        splits = ForestSplitAnalysis()

    changes = None
    if changed_files is not None:
        changes = map_changed_files(changed_files, forest, ignore)

    return KindAnalysis(
        kind=kind,
        anchor_file_name=anchor_file_name,
        forest=forest,
        coverage=MappingProxyType(coverage),
        uncovered=uncovered_files(forest, snapshot.files, anchor_names),
        budget=budget,
        splits=splits,
        changes=changes,
    )


def analyze_snapshot(
    snapshot: RepoSnapshot,
    contents: Mapping[str, str],
    config: IntentLayerConfig,
    ignore: Optional[IgnorePredicate] = None,
    changed_files: Optional[Iterable[str]] = None,
) -> AnalysisResult:
    """Analyze an already-scanned repository; performs no I/O."""
    changed = list(changed_files) if changed_files is not None else None
    symlink = validate_symlink_config(
        snapshot.anchors_for("agents"),
        snapshot.anchors_for("claude"),
        config.symlink,
        config.anchor_file_names,
    )
    if not symlink.valid:
        _LOGGER.warning("%s", symlink.error)

    kinds: Dict[str, KindAnalysis] = {}
    for kind in config.kinds():
        analysis = analyze_kind(kind, snapshot, contents, config, ignore, changed)
        kinds[kind] = analysis
        _LOGGER.info(
            "%s: %d anchors, %d over budget, %d split suggestions",
            analysis.anchor_file_name,
            len(analysis.forest),
            analysis.budget.exceeding_count,
            analysis.splits.total_suggestions,
        )

    return AnalysisResult(
        root=snapshot.root,
        threshold_percent=config.token_budget_percent,
        kinds=MappingProxyType(kinds),
        symlink=symlink,
    )


def analyze_repository(
    root: str | Path,
    config: Optional[IntentLayerConfig] = None,
    changed_files: Optional[Iterable[str]] = None,
    *,
    max_bytes: Optional[int] = None,
) -> AnalysisResult:
    """Scan ``root`` from disk, read contents and run :func:`analyze_snapshot`."""
    root_path = Path(root).expanduser()
    if config is None:
        config = load_config(root_path)
    snapshot = RepoScanner(config.anchor_file_names).scan(root_path)
    ignore = load_intentlayer_ignore(Path(snapshot.root), config.exclude_paths)
    contents = read_contents(snapshot.root, snapshot.files, max_bytes=max_bytes)
    return analyze_snapshot(snapshot, contents, config, ignore, changed_files)


__all__ = [
    "AnalysisResult",
    "KindAnalysis",
    "analyze_kind",
    "analyze_repository",
    "analyze_snapshot",
]
