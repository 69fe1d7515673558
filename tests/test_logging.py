"""Tests for intentlayer.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from intentlayer.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("intentlayer")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_get_logger_nests_under_package() -> None:
    assert get_logger().name == "intentlayer"
    assert get_logger("scanner").name == "intentlayer.scanner"


@pytest.mark.parametrize(
    ("verbose", "quiet", "expected"),
    [
        (False, False, logging.INFO),
        (True, False, logging.DEBUG),
        (False, True, logging.WARNING),
        (True, True, logging.DEBUG),
    ],
)
def test_configure_logging_levels(verbose: bool, quiet: bool, expected: int) -> None:
    logger = configure_logging(verbose=verbose, quiet=quiet)

    assert logger.level == expected
    assert logger.propagate is False


def test_repeated_configuration_does_not_duplicate_handlers(tmp_path: Path) -> None:
    configure_logging()
    logger = configure_logging(log_file=tmp_path / "run.log")

    assert len(logger.handlers) == 2
    get_logger("test").info("hello")
    assert "INFO intentlayer.test: hello" in (tmp_path / "run.log").read_text(encoding="utf-8")
