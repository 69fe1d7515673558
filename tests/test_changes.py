"""Tests for intentlayer.changes."""

from __future__ import annotations

from intentlayer.changes import (
    UNCOVERED_KEY,
    affected_anchors,
    changed_files_for,
    has_affected_anchors,
    ignored_changed_files,
    map_changed_file,
    map_changed_files,
    uncovered_changed_files,
    without_ignored,
)
from intentlayer.hierarchy import build_forest
from intentlayer.ignore import parse_intentlayer_ignore

CHANGED = [
    "packages/api/src/routes.ts",
    "packages/api/src/routes.test.ts",
    "packages/web/app.tsx",
    "README.md",
]


def _forest(make_anchors):
    return build_forest(make_anchors(["packages/AGENTS.md", "packages/api/AGENTS.md"]), "agents")


def test_map_changed_file_resolves_nearest_anchor(make_anchors) -> None:
    forest = _forest(make_anchors)

    entry = map_changed_file("packages/api/src/routes.ts", forest)

    assert entry.anchor_path == "packages/api/AGENTS.md"
    assert entry.ignored is False
    assert map_changed_file("README.md", forest).anchor_path is None


def test_map_changed_files_groups_by_anchor(make_anchors) -> None:
    forest = _forest(make_anchors)

    mapping = map_changed_files(CHANGED, forest)

    assert [entry.path for entry in changed_files_for("packages/api/AGENTS.md", mapping)] == [
        "packages/api/src/routes.ts",
        "packages/api/src/routes.test.ts",
    ]
    assert [entry.path for entry in changed_files_for("packages/AGENTS.md", mapping)] == [
        "packages/web/app.tsx"
    ]
    assert [entry.path for entry in uncovered_changed_files(mapping)] == ["README.md"]
    assert changed_files_for("missing/AGENTS.md", mapping) == ()

    summary = mapping.summary
    assert summary.total == 4
    assert summary.covered == 3
    assert summary.uncovered == 1
    assert summary.ignored == 0
    assert summary.affected_anchors == 2
    assert has_affected_anchors(mapping)


def test_ignored_files_keep_their_anchor(make_anchors) -> None:
    forest = _forest(make_anchors)
    ignore = parse_intentlayer_ignore("*.test.ts\n")

    mapping = map_changed_files(CHANGED, forest, ignore)

    ignored = ignored_changed_files(mapping)
    assert [entry.path for entry in ignored] == ["packages/api/src/routes.test.ts"]
    assert ignored[0].anchor_path == "packages/api/AGENTS.md"
    assert mapping.summary.ignored == 1


def test_without_ignored_recomputes_summary(make_anchors) -> None:
    forest = _forest(make_anchors)
    ignore = parse_intentlayer_ignore("*.tsx\n")

    mapping = without_ignored(map_changed_files(CHANGED, forest, ignore))

    assert [entry.path for entry in mapping.files] == [
        "packages/api/src/routes.ts",
        "packages/api/src/routes.test.ts",
        "README.md",
    ]
    assert mapping.summary.total == 3
    assert mapping.summary.ignored == 0
    assert mapping.summary.affected_anchors == 1
    assert "packages/AGENTS.md" not in mapping.by_anchor


def test_affected_anchors_sorted_nodes(make_anchors) -> None:
    forest = _forest(make_anchors)

    mapping = map_changed_files(list(reversed(CHANGED)), forest)

    assert [node.path for node in affected_anchors(mapping, forest)] == [
        "packages/AGENTS.md",
        "packages/api/AGENTS.md",
    ]


def test_empty_change_set(make_anchors) -> None:
    mapping = map_changed_files([], _forest(make_anchors))

    assert mapping.files == ()
    assert mapping.summary.total == 0
    assert not has_affected_anchors(mapping)
    assert uncovered_changed_files(mapping) == ()


def test_all_uncovered_with_empty_forest() -> None:
    mapping = map_changed_files(["a.py", "b/c.py"], build_forest([], "agents"))

    assert list(mapping.by_anchor) == [UNCOVERED_KEY]
    assert mapping.summary.uncovered == 2
    assert not has_affected_anchors(mapping)


def test_to_dict_shape(make_anchors) -> None:
    mapping = map_changed_files(["packages/web/app.tsx", "README.md"], _forest(make_anchors))

    payload = mapping.to_dict()

    assert payload["by_anchor"] == {
        UNCOVERED_KEY: ["README.md"],
        "packages/AGENTS.md": ["packages/web/app.tsx"],
    }
    assert payload["summary"]["total"] == 2
    assert payload["files"][0] == {
        "path": "packages/web/app.tsx",
        "anchor_path": "packages/AGENTS.md",
        "ignored": False,
    }


def test_map_changed_file_normalizes_diff_style_paths(make_anchors) -> None:
    forest = build_forest(make_anchors(["AGENTS.md", "pkg/AGENTS.md"]), "agents")

    for raw in ("./pkg/x.ts", "/pkg/x.ts"):
        entry = map_changed_file(raw, forest)

        assert entry.path == "pkg/x.ts"
        assert entry.anchor_path == "pkg/AGENTS.md"

    mapping = map_changed_files(["./pkg/x.ts", "pkg/y.ts"], forest)
    assert [entry.path for entry in changed_files_for("pkg/AGENTS.md", mapping)] == ["pkg/x.ts", "pkg/y.ts"]
