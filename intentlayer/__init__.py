"""Coverage hierarchy, token budgets and split advice for AGENTS.md / CLAUDE.md anchors."""

from .coverage import covered_files_for, covered_files_for_forest, find_covering_anchor
from .hierarchy import build_forest, build_forests
from .models import (
    AnchorFile,
    AnchorNode,
    CoverageForest,
    CoveredFilesResult,
    NodeBudget,
    SplitSuggestion,
)
from .splits import SplitPolicy, analyze_forest_for_splits, propose_splits
from .tokenizer import (
    TokenCountOptions,
    classify_for_budget,
    count_tokens,
    covered_code_tokens,
    forest_budget,
    node_budget,
)

__version__ = "0.1.0"

__all__ = [
    "AnchorFile",
    "AnchorNode",
    "CoverageForest",
    "CoveredFilesResult",
    "NodeBudget",
    "SplitPolicy",
    "SplitSuggestion",
    "TokenCountOptions",
    "analyze_forest_for_splits",
    "build_forest",
    "build_forests",
    "classify_for_budget",
    "count_tokens",
    "covered_code_tokens",
    "covered_files_for",
    "covered_files_for_forest",
    "find_covering_anchor",
    "forest_budget",
    "node_budget",
    "propose_splits",
]
