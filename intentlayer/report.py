"""Renders analysis results as Markdown (Jinja2) or JSON-ready dictionaries."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader

from .analysis import AnalysisResult, KindAnalysis

_DEFAULT_TEMPLATES = Path(__file__).with_name("templates")


def _tree_lines(analysis: KindAnalysis) -> List[str]:
    lines: List[str] = []
    for node in analysis.forest:
        coverage = analysis.coverage.get(node.path)
        covered = len(coverage.covered) if coverage else 0
        suffix = " (symlink)" if node.file.is_symlink else ""
        lines.append(f"{'  ' * node.depth}- {node.path}{suffix} ({covered} files)")
    return lines


def _kind_context(analysis: KindAnalysis) -> Dict[str, Any]:
    budgets = sorted(
        analysis.budget.per_anchor.values(),
        key=lambda budget: (-budget.budget_percent, budget.anchor_path),
    )
    return {
        "kind": analysis.kind,
        "anchor_file_name": analysis.anchor_file_name,
        "tree": _tree_lines(analysis),
        "budgets": budgets,
        "splits": analysis.splits.analyses,
        "uncovered": analysis.uncovered,
        "changes": analysis.changes,
    }


class ReportRenderer:
    """Markdown report builder; user templates override the packaged ones."""

    def __init__(self, templates_dir: Optional[Path] = None) -> None:
        directories = [str(_DEFAULT_TEMPLATES)]
        if templates_dir is not None and templates_dir != _DEFAULT_TEMPLATES:
            directories.insert(0, str(templates_dir))
        self._env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["percent"] = lambda value: f"{value:.1f}%"

    def render(self, result: AnalysisResult) -> str:
        template = self._env.get_template("report.j2")
        rendered = template.render(
            root_name=Path(result.root).name or result.root,
            threshold=result.threshold_percent,
            symlink=result.symlink,
            kinds=[_kind_context(analysis) for analysis in result.kinds.values()],
        )
        return rendered.strip() + "\n"


def result_to_dict(result: AnalysisResult) -> Dict[str, Any]:
    kinds: Dict[str, Any] = {}
    for kind, analysis in result.kinds.items():
        kinds[kind] = {
            "anchor_file_name": analysis.anchor_file_name,
            "forest": analysis.forest.to_dict(),
            "coverage": {
                path: entry.to_dict() for path, entry in sorted(analysis.coverage.items())
            },
            "uncovered": list(analysis.uncovered),
            "budget": analysis.budget.to_dict(),
            "splits": analysis.splits.to_dict(),
            "changes": analysis.changes.to_dict() if analysis.changes is not None else None,
        }
    return {
        "root": result.root,
        "threshold_percent": result.threshold_percent,
        "symlink": {
            "valid": result.symlink.valid,
            "error": result.symlink.error,
            "conflict_directories": list(result.symlink.conflict_directories),
        },
        "kinds": kinds,
    }


__all__ = ["ReportRenderer", "result_to_dict"]
