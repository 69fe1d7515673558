"""Gitignore-style matching for ``.intentlayerignore`` files.

Files matched here are left out of coverage (reported as ignored) and of
token budget math. Rules are evaluated in order and the last matching rule
wins, so ``!pattern`` re-includes a path excluded earlier. A file below an
ignored directory stays ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from pathspec.patterns.gitignore import GitIgnorePatternError
from pathspec.patterns.gitignore.basic import GitIgnoreBasicPattern

from .logging import get_logger
from .paths import normalize_path

INTENTLAYERIGNORE_FILENAME = ".intentlayerignore"

_LOGGER = get_logger("ignore")


@dataclass(frozen=True)
class IgnoreRule:
    """A single parsed ignore pattern.

    ``pattern`` is the glob without its ``!`` prefix and surrounding
    slashes; ``matcher`` holds the compiled gitignore form of it.
    """

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool
    matcher: GitIgnoreBasicPattern = field(repr=False, compare=False)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        # Directories carry a trailing slash so "name/" rules only hit them.
        candidate = f"{rel_path}/" if is_dir else rel_path
        return self.matcher.match_file(candidate) is not None


def build_ignore_rule(line: str) -> Optional[IgnoreRule]:
    """Parse one line of an ignore file; blank lines and comments yield None."""
    pattern = line.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negate = pattern.startswith("!")
    if negate:
        pattern = pattern[1:]

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern.rstrip("/")

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern.lstrip("/")

    if not pattern:
        return None

    source = f"{'/' if anchored else ''}{pattern}{'/' if directory_only else ''}"
    try:
        matcher = GitIgnoreBasicPattern(source)
    except GitIgnorePatternError as exc:
        _LOGGER.warning("Skipping invalid ignore pattern %r: %s", line.strip(), exc)
        return None

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
        matcher=matcher,
    )


def _evaluate(rules: Sequence[IgnoreRule], rel_path: str, is_dir: bool) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


class IntentLayerIgnore:
    """Ordered collection of ignore rules usable as a ``path -> bool`` predicate."""

    def __init__(self, rules: Iterable[IgnoreRule] = ()) -> None:
        self._rules: List[IgnoreRule] = list(rules)

    @property
    def rules(self) -> Sequence[IgnoreRule]:
        return tuple(self._rules)

    def add(self, content: str) -> "IntentLayerIgnore":
        """Add every rule found in raw ignore-file ``content``."""
        return self.add_patterns(content.splitlines())

    def add_patterns(self, patterns: Iterable[str]) -> "IntentLayerIgnore":
        for line in patterns:
            rule = build_ignore_rule(line)
            if rule is not None:
                self._rules.append(rule)
        return self

    def ignores(self, path: str) -> bool:
        rel_path = normalize_path(path)
        if not rel_path or not self._rules:
            return False

        parts = rel_path.split("/")
        for index in range(1, len(parts)):
            if _evaluate(self._rules, "/".join(parts[:index]), True):
                return True
        return _evaluate(self._rules, rel_path, False)

    def __call__(self, path: str) -> bool:
        return self.ignores(path)

    def filter(self, paths: Iterable[str]) -> List[str]:
        """Return the paths that are not ignored, preserving order."""
        return [path for path in paths if not self.ignores(path)]

    def create_filter(self) -> Callable[[str], bool]:
        return lambda path: not self.ignores(path)


def parse_intentlayer_ignore(content: str) -> IntentLayerIgnore:
    return IntentLayerIgnore().add(content)


def load_intentlayer_ignore(
    root: Path, extra_patterns: Iterable[str] = ()
) -> IntentLayerIgnore:
    """Read ``.intentlayerignore`` under ``root`` (if present) plus extra patterns."""
    ignore = IntentLayerIgnore()
    ignore_file = root / INTENTLAYERIGNORE_FILENAME
    if ignore_file.is_file():
        ignore.add(ignore_file.read_text(encoding="utf-8"))
    return ignore.add_patterns(extra_patterns)


__all__ = [
    "INTENTLAYERIGNORE_FILENAME",
    "IgnoreRule",
    "IntentLayerIgnore",
    "build_ignore_rule",
    "load_intentlayer_ignore",
    "parse_intentlayer_ignore",
]
