"""Checks the symlink configuration against the anchors present in a repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .logging import get_logger
from .models import ANCHOR_FILE_NAMES, AnchorFile
from .paths import directory_of

ROOT_LABEL = "(root)"

_LOGGER = get_logger("validation")


class SymlinkConflictError(RuntimeError):
    """Raised when ``symlink: true`` is configured but both anchors are real files."""

    def __init__(self, message: str, conflict_directories: Iterable[str]) -> None:
        super().__init__(message)
        self.conflict_directories = tuple(conflict_directories)


@dataclass(frozen=True)
class SymlinkValidationResult:
    valid: bool
    error: Optional[str] = None
    conflict_directories: Tuple[str, ...] = ()
    agents_file_name: str = ANCHOR_FILE_NAMES["agents"]
    claude_file_name: str = ANCHOR_FILE_NAMES["claude"]


def validate_symlink_config(
    agents: Iterable[AnchorFile],
    claude: Iterable[AnchorFile],
    symlink_enabled: bool,
    anchor_file_names: Optional[Mapping[str, str]] = None,
) -> SymlinkValidationResult:
    """Find directories holding both anchor kinds where neither is a symlink.

    Only meaningful when symlinking is enabled; otherwise always valid.
    ``anchor_file_names`` maps each kind to its configured file name for
    the messages.
    """
    names = {**ANCHOR_FILE_NAMES, **(anchor_file_names or {})}
    agents_name = names["agents"]
    claude_name = names["claude"]
    if not symlink_enabled:
        return SymlinkValidationResult(
            valid=True, agents_file_name=agents_name, claude_file_name=claude_name
        )

    claude_by_directory: Dict[str, AnchorFile] = {
        directory_of(anchor.path): anchor for anchor in claude
    }
    conflicts: List[str] = []
    for anchor in agents:
        directory = directory_of(anchor.path)
        other = claude_by_directory.get(directory)
        if other is None:
            continue
        if not anchor.is_symlink and not other.is_symlink:
            conflicts.append(directory or ROOT_LABEL)

    if not conflicts:
        return SymlinkValidationResult(
            valid=True, agents_file_name=agents_name, claude_file_name=claude_name
        )

    conflicts.sort()
    error = (
        f"Symlinking is enabled but {agents_name} and {claude_name} are both regular files in "
        f"{len(conflicts)} director{'y' if len(conflicts) == 1 else 'ies'}: "
        + ", ".join(conflicts)
    )
    return SymlinkValidationResult(
        valid=False,
        error=error,
        conflict_directories=tuple(conflicts),
        agents_file_name=agents_name,
        claude_file_name=claude_name,
    )


def format_symlink_conflict(result: SymlinkValidationResult) -> str:
    """Render a conflict as a user-facing message with resolution steps."""
    lines = [
        "Intent Layer Symlink Configuration Error",
        "",
        result.error or "Symlink configuration conflict detected.",
        "",
        "Resolution options:",
        f"  1. Convert one file to a symlink: delete either {result.agents_file_name} "
        f"or {result.claude_file_name} "
        "and replace it with a symlink to the other",
        "  2. Keep both files separate: set 'symlink: false' in .intentlayer.yml",
        "  3. Remove duplicate: if both files have the same content, delete one",
        "",
    ]
    if result.conflict_directories:
        lines.append("Affected directories:")
        for directory in result.conflict_directories:
            label = "Repository root" if directory == ROOT_LABEL else directory
            lines.append(f"  - {label}")
    return "\n".join(lines)


def ensure_symlink_config(
    agents: Iterable[AnchorFile],
    claude: Iterable[AnchorFile],
    symlink_enabled: bool,
    anchor_file_names: Optional[Mapping[str, str]] = None,
) -> None:
    """Raise :class:`SymlinkConflictError` when the configuration conflicts."""
    result = validate_symlink_config(agents, claude, symlink_enabled, anchor_file_names)
    if result.valid:
        return
    message = format_symlink_conflict(result)
    _LOGGER.error(message)
    raise SymlinkConflictError(message, result.conflict_directories)


__all__ = [
    "ROOT_LABEL",
    "SymlinkConflictError",
    "SymlinkValidationResult",
    "ensure_symlink_config",
    "format_symlink_conflict",
    "validate_symlink_config",
]
