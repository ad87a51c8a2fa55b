# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Abstract category detector interface and detector registration."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from enum import StrEnum
from typing import ClassVar, TypeVar

import regex

from wpbreach.core.config import ConfidenceBoosts
from wpbreach.core.exceptions import DetectorError
from wpbreach.detectors.false_positive import FalsePositiveFilter
from wpbreach.models.analysis import DetailedAnalysis, SafePracticeObservation
from wpbreach.models.finding import Finding
from wpbreach.patterns.registry import PatternRegistry, get_registry

logger = logging.getLogger("wpbreach.detectors")

E = TypeVar("E", bound=StrEnum)
V = TypeVar("V")


def table_lookup(table: dict[E, V], enum_cls: type[E], key: str, default: V) -> V:
    """Look *key* up in a pattern-type table, falling back to *default*."""
    try:
        return table[enum_cls(key)]
    except ValueError:
        return default


class CategoryDetector(ABC):
    """All vulnerability-class detectors implement this interface.

    Detectors are stateless between calls: the same ``(content, path)``
    always yields the same findings in the same order, so one instance
    can be shared across scan workers.
    """

    name: ClassVar[str]

    def __init__(
        self,
        registry: PatternRegistry | None = None,
        boosts: ConfidenceBoosts | None = None,
    ) -> None:
        self._registry = registry
        self.boosts = boosts or ConfidenceBoosts()

    @property
    def registry(self) -> PatternRegistry:
        if self._registry is None:
            self._registry = get_registry()
        return self._registry

    @abstractmethod
    def detect(self, content: str, file_path: str, *, deadline: float | None = None) -> list[Finding]:
        """Return raw findings for *content*, before false-positive filtering."""
        ...

    @abstractmethod
    def analyze(self, code: str, file_path: str) -> DetailedAnalysis:
        """Describe risk, attack vectors and fixes for one snippet."""
        ...

    @abstractmethod
    def check_safe_practices(self, content: str) -> list[SafePracticeObservation]:
        """Count known-good idioms in *content*."""
        ...

    @abstractmethod
    def false_positive_filter(self, finding: Finding) -> FalsePositiveFilter:
        """The filter that judges *finding*."""
        ...

    def is_false_positive(self, finding: Finding, content: str) -> bool:
        return self.false_positive_filter(finding).check(finding, content)

    def filter(self, findings: Iterable[Finding], content: str) -> list[Finding]:
        return [f for f in findings if not self.is_false_positive(f, content)]

    def scan(self, content: str, file_path: str, *, deadline: float | None = None) -> list[Finding]:
        """Detect and filter in one call."""
        raw = self.detect(content, file_path, deadline=deadline)
        kept = self.filter(raw, content)
        if len(kept) != len(raw):
            logger.debug(
                "%s suppressed %d of %d findings in %s",
                self.name,
                len(raw) - len(kept),
                len(raw),
                file_path,
            )
        return kept

    @staticmethod
    def count_calls(function: str, content: str) -> int:
        return len(regex.findall(regex.escape(function) + r"\s*\(", content, regex.IGNORECASE))


T = TypeVar("T", bound=CategoryDetector)


class DetectorRegistry:
    """Central registry for category detector classes."""

    _detectors: dict[str, type[CategoryDetector]] = {}

    @classmethod
    def register(cls, detector_class: type[T]) -> type[T]:
        cls._detectors[detector_class.name] = detector_class
        return detector_class

    @classmethod
    def get(cls, name: str) -> type[CategoryDetector]:
        try:
            return cls._detectors[name]
        except KeyError:
            raise DetectorError(f"no detector registered as {name!r}") from None

    @classmethod
    def names(cls) -> list[str]:
        return list(cls._detectors)

    @classmethod
    def create(
        cls,
        names: Iterable[str],
        registry: PatternRegistry | None = None,
        boosts: ConfidenceBoosts | None = None,
    ) -> list[CategoryDetector]:
        """Instantiate the named detectors, in the order given."""
        return [cls.get(name)(registry=registry, boosts=boosts) for name in names]


def detector(cls: type[T]) -> type[T]:
    """Decorator to register a detector class."""
    return DetectorRegistry.register(cls)
