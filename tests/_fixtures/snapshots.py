"""In-memory repository snapshots shared by analysis and report tests."""

from __future__ import annotations

from typing import Dict, Tuple

from intentlayer.models import AnchorFile
from intentlayer.scanner import RepoSnapshot

DEMO_FILES = [
    "AGENTS.md",
    "README.md",
    "app/AGENTS.md",
    "app/main.py",
    "lib/a.py",
    "lib/b.py",
    "lib/c.py",
]


def demo_snapshot(with_claude: bool = False) -> Tuple[RepoSnapshot, Dict[str, str]]:
    """A root anchor at 20% of its coverage with a ``lib`` directory worth splitting.

    ``app/AGENTS.md`` sits at 1%. With ``with_claude`` a regular ``CLAUDE.md``
    is added next to the root ``AGENTS.md``.
    """
    files = list(DEMO_FILES)
    anchors = {
        "agents": [AnchorFile("AGENTS.md", "agents"), AnchorFile("app/AGENTS.md", "agents")],
        "claude": [],
    }
    contents = {
        "AGENTS.md": "d" * 80,
        "README.md": "r" * 40,
        "app/AGENTS.md": "d" * 4,
        "app/main.py": "m" * 400,
        "lib/a.py": "x" * 120,
        "lib/b.py": "x" * 120,
        "lib/c.py": "x" * 120,
    }
    if with_claude:
        files.append("CLAUDE.md")
        anchors["claude"].append(AnchorFile("CLAUDE.md", "claude"))
        contents["CLAUDE.md"] = "c" * 40
    snapshot = RepoSnapshot(root="/work/demo", anchors=anchors, files=sorted(files))
    return snapshot, contents


__all__ = ["DEMO_FILES", "demo_snapshot"]
