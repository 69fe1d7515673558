"""Tests for intentlayer.validation."""

from __future__ import annotations

import pytest

from intentlayer.models import AnchorFile
from intentlayer.validation import (
    ROOT_LABEL,
    SymlinkConflictError,
    ensure_symlink_config,
    format_symlink_conflict,
    validate_symlink_config,
)


def _agents(path: str, symlink: bool = False) -> AnchorFile:
    return AnchorFile(path=path, kind="agents", is_symlink=symlink)


def _claude(path: str, symlink: bool = False) -> AnchorFile:
    return AnchorFile(path=path, kind="claude", is_symlink=symlink)


def test_disabled_symlinking_is_always_valid() -> None:
    result = validate_symlink_config([_agents("AGENTS.md")], [_claude("CLAUDE.md")], False)

    assert result.valid is True
    assert result.error is None
    assert result.conflict_directories == ()


def test_symlinked_pair_is_valid() -> None:
    result = validate_symlink_config(
        [_agents("AGENTS.md")], [_claude("CLAUDE.md", symlink=True)], True
    )

    assert result.valid is True


def test_anchors_in_different_directories_do_not_conflict() -> None:
    result = validate_symlink_config([_agents("src/AGENTS.md")], [_claude("lib/CLAUDE.md")], True)

    assert result.valid is True


def test_single_conflict_at_root() -> None:
    result = validate_symlink_config([_agents("AGENTS.md")], [_claude("CLAUDE.md")], True)

    assert result.valid is False
    assert result.conflict_directories == (ROOT_LABEL,)
    assert result.error == (
        "Symlinking is enabled but AGENTS.md and CLAUDE.md are both regular files "
        "in 1 directory: (root)"
    )


def test_multiple_conflicts_are_sorted() -> None:
    agents = [_agents("src/AGENTS.md"), _agents("lib/AGENTS.md"), _agents("ok/AGENTS.md")]
    claude = [_claude("src/CLAUDE.md"), _claude("lib/CLAUDE.md"), _claude("ok/CLAUDE.md", symlink=True)]

    result = validate_symlink_config(agents, claude, True)

    assert result.conflict_directories == ("lib", "src")
    assert "in 2 directories: lib, src" in (result.error or "")


def test_format_symlink_conflict_lists_directories() -> None:
    result = validate_symlink_config(
        [_agents("AGENTS.md"), _agents("pkg/AGENTS.md")],
        [_claude("CLAUDE.md"), _claude("pkg/CLAUDE.md")],
        True,
    )

    message = format_symlink_conflict(result)

    assert message.startswith("Intent Layer Symlink Configuration Error")
    assert "Resolution options:" in message
    assert "set 'symlink: false' in .intentlayer.yml" in message
    assert message.endswith("Affected directories:\n  - Repository root\n  - pkg")


def test_ensure_symlink_config_raises_on_conflict() -> None:
    with pytest.raises(SymlinkConflictError) as excinfo:
        ensure_symlink_config([_agents("a/AGENTS.md")], [_claude("a/CLAUDE.md")], True)

    assert excinfo.value.conflict_directories == ("a",)
    assert "Affected directories:" in str(excinfo.value)


def test_ensure_symlink_config_passes_when_valid() -> None:
    ensure_symlink_config([_agents("a/AGENTS.md")], [_claude("a/CLAUDE.md")], False)


def test_custom_anchor_names_appear_in_messages() -> None:
    names = {"agents": "AI.md", "claude": "ASSISTANT.md"}

    result = validate_symlink_config(
        [AnchorFile(path="AI.md", kind="agents")],
        [AnchorFile(path="ASSISTANT.md", kind="claude")],
        True,
        names,
    )

    assert result.error == (
        "Symlinking is enabled but AI.md and ASSISTANT.md are both regular files "
        "in 1 directory: (root)"
    )
    message = format_symlink_conflict(result)
    assert "delete either AI.md or ASSISTANT.md" in message
    assert "AGENTS.md" not in message
