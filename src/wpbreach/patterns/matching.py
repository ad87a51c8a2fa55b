# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Regex execution helpers shared by the registry and the detectors."""

from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass

import regex

from wpbreach.core.exceptions import ScanTimeoutError


@dataclass(frozen=True)
class MatchLocation:
    """One regex hit with its 1-based position in the scanned text."""

    text: str
    offset: int
    line: int
    column: int


def line_number(content: str, offset: int) -> int:
    """1-based line of *offset*: one plus the newlines before it."""
    return content.count("\n", 0, offset) + 1


def column_number(content: str, offset: int) -> int:
    return offset - (content.rfind("\n", 0, offset) + 1) + 1


def line_at(content: str, line: int) -> str:
    """Return the text of 1-based *line*, or an empty string past the end."""
    lines = content.split("\n")
    if 1 <= line <= len(lines):
        return lines[line - 1]
    return ""


def iter_matches(
    pattern: regex.Pattern,
    content: str,
    *,
    file_path: str = "",
    deadline: float | None = None,
) -> Iterator[MatchLocation]:
    """Yield every non-overlapping match of *pattern* in *content*.

    *deadline* is a ``time.monotonic()`` value. The remaining budget is
    handed to the regex engine, which aborts a runaway search on its own
    and releases the GIL while matching, so one catastrophic pattern
    cannot starve sibling workers. Exhausting the budget raises
    :class:`ScanTimeoutError`.
    """
    timeout = None
    if deadline is not None:
        timeout = deadline - time.monotonic()
        if timeout <= 0:
            raise _budget_exceeded(pattern, file_path)

    try:
        for match in pattern.finditer(content, concurrent=True, timeout=timeout):
            if deadline is not None and time.monotonic() > deadline:
                raise _budget_exceeded(pattern, file_path)
            offset = match.start()
            yield MatchLocation(
                text=match.group(0),
                offset=offset,
                line=line_number(content, offset),
                column=column_number(content, offset),
            )
    except TimeoutError as exc:
        raise _budget_exceeded(pattern, file_path) from exc


def _budget_exceeded(pattern: regex.Pattern, file_path: str) -> ScanTimeoutError:
    return ScanTimeoutError(file_path, f"pattern budget exceeded while matching {pattern.pattern[:60]!r}")
