"""Collection of source paths matching registered name patterns."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol

# Path fragments that are never collected, whatever the pattern.
GLOBAL_PATTERN_EXCLUSIONS: tuple[str, ...] = ("node_modules",)


class Collector(Protocol):
    """Anything that can look up the paths collected for a pattern."""

    def search(self, pattern: str) -> list[str]:
        """Return the paths collected for ``pattern``."""


class PatternMatchKind(IntEnum):
    """What kind of entry a pattern applies to."""

    FILE = 0
    DIRECTORY = 1
    EXTENSION = 2


@dataclass(frozen=True)
class PatternMatch:
    """A regular expression applied to the names of source entries."""

    kind: PatternMatchKind
    pattern: str
    key: str = ""
    matched: bool = False
    exclusions: tuple[str, ...] | None = None


def _walk(source: str) -> Iterator[tuple[str, str, bool]]:
    """Yield ``(path, name, is_dir)`` for ``source`` and everything below it."""
    is_dir = os.path.isdir(os.stat(source))
    yield source, os.path.basename(os.path.normpath(source)), is_dir
    if is_dir:
        yield from _walk_children(source)


def _walk_children(directory: str) -> Iterator[tuple[str, str, bool]]:
    with os.scandir(directory) as scan:
        entries = sorted(scan, key=lambda entry: entry.name)
    for entry in entries:
        path = os.path.normpath(os.path.join(directory, entry.name))
        is_dir = entry.is_dir(follow_symlinks=False)
        yield path, entry.name, is_dir
        if is_dir:
            yield from _walk_children(path)


class SourceCollector:
    """Walks a source tree and records the paths whose names match patterns."""

    def __init__(
        self,
        patterns: Iterable[PatternMatch] = (),
        exclusions: Iterable[str] = (),
    ) -> None:
        self._entries: dict[str, set[str]] = {}
        self._patterns: dict[PatternMatch, None] = {}
        self._exclusions: dict[str, None] = {}
        self.add_pattern_matches(patterns)
        self.add_pattern_exclusions(exclusions)

    @property
    def pattern_matches(self) -> tuple[PatternMatch, ...]:
        return tuple(self._patterns)

    @property
    def pattern_exclusions(self) -> tuple[str, ...]:
        return tuple(self._exclusions)

    def search(self, pattern: str) -> list[str]:
        """Return the collected paths for ``pattern``, sorted."""
        return sorted(self._entries.get(pattern, ()))

    def add_entry(self, pattern: str, value: str) -> None:
        self._entries.setdefault(pattern, set()).add(value)

    def add_pattern_matches(self, patterns: Iterable[PatternMatch]) -> None:
        for pattern in patterns:
            self._patterns[pattern] = None

    def add_pattern_exclusions(self, patterns: Iterable[str]) -> None:
        for pattern in patterns:
            self._exclusions[pattern] = None

    def run(self, source: str | os.PathLike[str]) -> None:
        """Walk ``source`` and record every path matching a pattern."""
        for path, name, is_dir in _walk(os.fspath(source)):
            self._collect(path, name, is_dir)

    def _collect(self, path: str, name: str, is_dir: bool) -> None:
        for match in self._patterns:
            exclusions = [*self._exclusions, *(match.exclusions or ())]
            if any(exclusion in path for exclusion in exclusions):
                return
            if match.kind is PatternMatchKind.DIRECTORY and not is_dir:
                continue
            if re.search(match.pattern, name):
                self.add_entry(match.pattern, path)