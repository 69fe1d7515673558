"""Approximate token counting and anchor budget calculation.

Token counts use a model-agnostic heuristic of four characters per token.
They are meant for budget enforcement, not for exact context accounting.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .logging import get_logger
from .models import (
    CoveredCodeTokens,
    CoveredFilesResult,
    FileTokenDetail,
    ForestBudget,
    NodeBudget,
    TokenCountOutcome,
)

CHARS_PER_TOKEN = 4
DEFAULT_BUDGET_PERCENT = 5.0
DEFAULT_MAX_LINES = 8000

_LOGGER = get_logger("tokenizer")

CoverageEntry = Union[CoveredFilesResult, Sequence[str]]


@dataclass(frozen=True)
class TokenCountOptions:
    """Which files to leave out of budget math.

    ``max_lines = 0`` disables the size check.
    """

    skip_binary: bool = True
    max_lines: int = DEFAULT_MAX_LINES


_DEFAULT_OPTIONS = TokenCountOptions()


def count_tokens(text: Optional[str]) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def count_tokens_multiple(texts: Iterable[Optional[str]]) -> int:
    return sum(count_tokens(text) for text in texts)


def is_binary(text: str) -> bool:
    """Heuristic: text containing a NUL character is treated as binary."""
    return "\0" in text


def count_lines(text: Optional[str]) -> int:
    """Count ``\\n``-delimited lines; a trailing newline does not add a line."""
    if not text:
        return 0
    newlines = text.count("\n")
    return newlines if text.endswith("\n") else newlines + 1


def classify_for_budget(
    text: str, options: Optional[TokenCountOptions] = None
) -> TokenCountOutcome:
    """Count tokens unless the file is binary or too long to be useful.

    The binary check runs first, so binary content is reported as ``binary``
    even when it is also over the line limit.
    """
    options = options or _DEFAULT_OPTIONS
    if options.skip_binary and is_binary(text):
        return TokenCountOutcome(tokens=0, skipped=True, skip_reason="binary")
    if options.max_lines > 0 and count_lines(text) > options.max_lines:
        return TokenCountOutcome(tokens=0, skipped=True, skip_reason="too_large")
    return TokenCountOutcome(tokens=count_tokens(text))


def covered_code_tokens(
    paths: Iterable[str],
    content_by_path: Mapping[str, str],
    options: Optional[TokenCountOptions] = None,
) -> CoveredCodeTokens:
    """Sum token counts over ``paths``.

    Paths without an entry in ``content_by_path`` have not been fetched and
    are left out of both the totals and the per-file details.
    """
    total = 0
    counted = 0
    skipped = 0
    details: List[FileTokenDetail] = []

    for path in paths:
        content = content_by_path.get(path)
        if content is None:
            continue
        outcome = classify_for_budget(content, options)
        if outcome.skipped:
            skipped += 1
        else:
            total += outcome.tokens
            counted += 1
        details.append(
            FileTokenDetail(
                path=path,
                tokens=outcome.tokens,
                skipped=outcome.skipped,
                skip_reason=outcome.skip_reason,
            )
        )

    return CoveredCodeTokens(total=total, counted=counted, skipped=skipped, files=tuple(details))


def budget_percent(anchor_tokens: int, covered_tokens: int) -> float:
    """Anchor size as a percentage of covered code; 0 when nothing is covered."""
    if covered_tokens <= 0:
        return 0.0
    return anchor_tokens / covered_tokens * 100


def node_budget(
    anchor_path: str,
    anchor_text: str,
    covered_paths: Iterable[str],
    content_by_path: Mapping[str, str],
    threshold_percent: float = DEFAULT_BUDGET_PERCENT,
    options: Optional[TokenCountOptions] = None,
) -> NodeBudget:
    """Compute the budget of one anchor.

    A node exceeds its budget only when strictly above ``threshold_percent``.
    """
    covered = covered_code_tokens(covered_paths, content_by_path, options)
    anchor_tokens = count_tokens(anchor_text)
    percent = budget_percent(anchor_tokens, covered.total)
    return NodeBudget(
        anchor_path=anchor_path,
        anchor_tokens=anchor_tokens,
        covered_tokens=covered.total,
        budget_percent=percent,
        exceeds_budget=percent > threshold_percent,
        files_counted=covered.counted,
        files_skipped=covered.skipped,
    )


def _covered_paths(entry: CoverageEntry) -> Sequence[str]:
    if isinstance(entry, CoveredFilesResult):
        return entry.covered
    return entry


def forest_budget(
    covered_by_anchor: Mapping[str, CoverageEntry],
    anchor_text_by_path: Mapping[str, str],
    content_by_path: Mapping[str, str],
    threshold_percent: float = DEFAULT_BUDGET_PERCENT,
    options: Optional[TokenCountOptions] = None,
) -> ForestBudget:
    """Compute budgets for every anchor that has both coverage and known text.

    Anchors whose text is unknown are left out rather than treated as empty.
    """
    per_anchor: Dict[str, NodeBudget] = {}
    exceeding: List[NodeBudget] = []

    for anchor_path, entry in covered_by_anchor.items():
        anchor_text = anchor_text_by_path.get(anchor_path)
        if anchor_text is None:
            continue
        result = node_budget(
            anchor_path,
            anchor_text,
            _covered_paths(entry),
            content_by_path,
            threshold_percent,
            options,
        )
        per_anchor[anchor_path] = result
        if result.exceeds_budget:
            exceeding.append(result)

    _LOGGER.debug(
        "Budgets computed for %d anchors, %d over %.1f%%",
        len(per_anchor),
        len(exceeding),
        threshold_percent,
    )
    return ForestBudget(per_anchor=MappingProxyType(per_anchor), anchors_exceeding=tuple(exceeding))


__all__ = [
    "CHARS_PER_TOKEN",
    "DEFAULT_BUDGET_PERCENT",
    "DEFAULT_MAX_LINES",
    "TokenCountOptions",
    "budget_percent",
    "classify_for_budget",
    "count_lines",
    "count_tokens",
    "count_tokens_multiple",
    "covered_code_tokens",
    "forest_budget",
    "is_binary",
    "node_budget",
]
