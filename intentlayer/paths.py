"""String helpers for slash-separated, repository-relative paths.

The empty string stands for the repository root directory.
"""

from __future__ import annotations

from typing import AbstractSet, Optional


def normalize_path(path: str) -> str:
    """Strip surrounding whitespace, leading ``./`` segments and leading slashes."""
    normalized = path.strip()
    while True:
        if normalized.startswith("./"):
            normalized = normalized[2:]
        elif normalized.startswith("/"):
            normalized = normalized[1:]
        else:
            break
    return "" if normalized == "." else normalized


def directory_of(path: str) -> str:
    """Return the directory portion of ``path`` (``""`` for root-level files)."""
    index = path.rfind("/")
    return "" if index == -1 else path[:index]


def file_name_of(path: str) -> str:
    return path[path.rfind("/") + 1 :]


def join(directory: str, name: str) -> str:
    return name if directory == "" else f"{directory}/{name}"


def is_ancestor_directory(ancestor: str, descendant: str) -> bool:
    """Return True when ``descendant`` is strictly nested under ``ancestor``.

    The root is an ancestor of every non-root directory. Otherwise the
    descendant must continue with a ``/`` right after the ancestor prefix, so
    ``src`` is not an ancestor of ``src-old``.
    """
    if ancestor == "":
        return descendant != ""
    return (
        len(descendant) > len(ancestor)
        and descendant.startswith(ancestor)
        and descendant[len(ancestor)] == "/"
    )


def nearest_ancestor_with_property(directory: str, have: AbstractSet[str]) -> Optional[str]:
    """Walk up from ``directory`` and return the first ancestor found in ``have``.

    ``directory`` itself is never returned.
    """
    current = directory
    while current != "":
        current = directory_of(current)
        if current in have:
            return current
    return None


def immediate_subdirectory(path: str, parent_directory: str) -> Optional[str]:
    """Return the first segment of ``path``'s directory below ``parent_directory``.

    ``None`` when the file sits directly inside ``parent_directory``.
    """
    file_dir = directory_of(path)
    if file_dir == parent_directory:
        return None
    relative = file_dir if parent_directory == "" else file_dir[len(parent_directory) + 1 :]
    return relative.split("/", 1)[0]


__all__ = [
    "directory_of",
    "file_name_of",
    "immediate_subdirectory",
    "is_ancestor_directory",
    "join",
    "nearest_ancestor_with_property",
    "normalize_path",
]
