"""Tests for intentlayer.analysis."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from intentlayer.analysis import analyze_kind, analyze_repository, analyze_snapshot
from intentlayer.config import IntentLayerConfig
from intentlayer.ignore import parse_intentlayer_ignore
from tests._fixtures.snapshots import demo_snapshot


def _config(**overrides) -> IntentLayerConfig:
    return replace(IntentLayerConfig(root=Path("/work/demo")), **overrides)


def test_analyze_snapshot_budget_and_splits() -> None:
    snapshot, contents = demo_snapshot()

    result = analyze_snapshot(snapshot, contents, _config())

    assert result.root == "/work/demo"
    assert result.threshold_percent == pytest.approx(5.0)
    assert list(result.kinds) == ["agents"]
    assert result.symlink.valid is True

    agents = result.kinds["agents"]
    assert agents.anchor_file_name == "AGENTS.md"
    assert agents.coverage["AGENTS.md"].covered == ("README.md", "lib/a.py", "lib/b.py", "lib/c.py")
    assert agents.coverage["app/AGENTS.md"].covered == ("app/main.py",)
    assert agents.uncovered == ()

    root_budget = agents.budget.per_anchor["AGENTS.md"]
    assert root_budget.anchor_tokens == 20
    assert root_budget.covered_tokens == 100
    assert root_budget.exceeds_budget is True
    assert agents.budget.per_anchor["app/AGENTS.md"].budget_percent == pytest.approx(1.0)

    assert agents.splits.anchors_to_split == ("AGENTS.md",)
    suggestion = agents.splits.analyses[0].suggestions[0]
    assert suggestion.suggested_path == "lib/AGENTS.md"
    assert suggestion.coverage_percent == pytest.approx(90.0)
    assert agents.changes is None


def test_split_suggestions_can_be_disabled() -> None:
    snapshot, contents = demo_snapshot()

    result = analyze_snapshot(snapshot, contents, _config(split_large_nodes=False))

    agents = result.kinds["agents"]
    assert agents.budget.exceeding_count == 1
    assert agents.splits.analyses == ()


def test_higher_threshold_clears_budget() -> None:
    snapshot, contents = demo_snapshot()

    result = analyze_snapshot(snapshot, contents, _config(token_budget_percent=25))

    assert result.kinds["agents"].budget.exceeding_count == 0
    assert result.kinds["agents"].splits.total_suggestions == 0


def test_both_kinds_and_symlink_conflict() -> None:
    snapshot, contents = demo_snapshot(with_claude=True)

    result = analyze_snapshot(snapshot, contents, _config(files="both", symlink=True))

    assert list(result.kinds) == ["agents", "claude"]
    assert result.symlink.valid is False
    assert result.symlink.conflict_directories == ("(root)",)

    claude = result.kinds["claude"]
    assert claude.anchor_file_name == "CLAUDE.md"
    budget = claude.budget.per_anchor["CLAUDE.md"]
    assert budget.covered_tokens == 200
    assert budget.budget_percent == pytest.approx(5.0)
    assert budget.exceeds_budget is False
    assert "AGENTS.md" not in claude.coverage["CLAUDE.md"].covered


def test_empty_kind_reports_everything_uncovered() -> None:
    snapshot, contents = demo_snapshot()

    analysis = analyze_kind("claude", snapshot, contents, _config())

    assert len(analysis.forest) == 0
    assert analysis.uncovered == ("README.md", "app/main.py", "lib/a.py", "lib/b.py", "lib/c.py")
    assert analysis.budget.total_anchors == 0


def test_changed_files_mapped_per_kind() -> None:
    snapshot, contents = demo_snapshot()
    changed = (path for path in ["app/main.py", "lib/a.py", "docs/new.md"])

    result = analyze_snapshot(snapshot, contents, _config(), changed_files=changed)

    changes = result.kinds["agents"].changes
    assert changes is not None
    assert [entry.path for entry in changes.by_anchor["AGENTS.md"]] == ["lib/a.py", "docs/new.md"]
    assert [entry.path for entry in changes.by_anchor["app/AGENTS.md"]] == ["app/main.py"]
    assert changes.summary.uncovered == 0


def test_ignore_predicate_removes_files_from_budget() -> None:
    snapshot, contents = demo_snapshot()
    ignore = parse_intentlayer_ignore("lib/\n")

    result = analyze_snapshot(snapshot, contents, _config(), ignore=ignore)

    agents = result.kinds["agents"]
    assert agents.coverage["AGENTS.md"].covered == ("README.md",)
    assert agents.coverage["AGENTS.md"].ignored == ("lib/a.py", "lib/b.py", "lib/c.py")
    assert agents.budget.per_anchor["AGENTS.md"].covered_tokens == 10


def test_analyze_repository_reads_config_and_ignore_file(repo_builder) -> None:
    repo_builder.write(
        {
            "AGENTS.md": "d" * 40,
            ".intentlayer.yml": "token_budget_percent: 50\nexclude_paths:\n  - generated/\n",
            ".intentlayerignore": "*.snap\n",
            "src/main.py": "x" * 400,
            "generated/api.ts": "y" * 400,
            "tests/a.snap": "z" * 40,
        }
    )

    result = analyze_repository(repo_builder.path())

    assert result.threshold_percent == pytest.approx(50.0)
    coverage = result.kinds["agents"].coverage["AGENTS.md"]
    assert coverage.ignored == ("generated/api.ts", "tests/a.snap")
    assert "src/main.py" in coverage.covered
    assert result.kinds["agents"].budget.exceeding_count == 0


def test_analyze_repository_missing_path(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        analyze_repository(tmp_path / "missing", _config())


def test_symlink_conflict_uses_configured_anchor_names(repo_builder) -> None:
    repo_builder.write({"AI.md": "# Root\n", "ASSISTANT.md": "# Root\n", "main.py": "x = 1\n"})
    config = IntentLayerConfig(
        root=repo_builder.path(),
        files="both",
        symlink=True,
        anchor_file_names={"agents": "AI.md", "claude": "ASSISTANT.md"},
    )

    result = analyze_repository(repo_builder.path(), config)

    assert result.symlink.valid is False
    assert "but AI.md and ASSISTANT.md are both regular files" in (result.symlink.error or "")
    assert result.symlink.claude_file_name == "ASSISTANT.md"
