from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Sequence

import pytest

from intentlayer.models import AnchorFile
from tests._fixtures.repo_builder import RepoBuilder

AnchorFactory = Callable[..., List[AnchorFile]]


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def make_anchors() -> AnchorFactory:
    """Turn plain paths into AnchorFile objects of a single kind."""

    def _make(paths: Sequence[str], kind: str = "agents") -> List[AnchorFile]:
        return [AnchorFile(path=path, kind=kind) for path in paths]  # type: ignore[arg-type]

    return _make
