# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Detailed analysis and safe-practice models returned by detectors."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SafePracticeObservation(BaseModel):
    """A known-good idiom found in a file, with its occurrence count."""

    practice: str
    function: str | None = None
    description: str
    occurrences: int = Field(ge=1)


class CodeSuggestion(BaseModel):
    """Advisory rewrite. Produced by pattern substitution, never verified."""

    type: str
    description: str
    original: str = ""
    secure: str = ""


class OutputContext(BaseModel):
    output_context: str = "html"
    dangerous_functions: list[str] = Field(default_factory=list)
    input_sources: list[str] = Field(default_factory=list)


class DetailedAnalysis(BaseModel):
    """Deep-dive on one code snippet, consumed by the fix engine."""

    vulnerability_type: str
    risk_level: str
    exploitable: bool = True
    impact: dict[str, bool] = Field(default_factory=dict)
    attack_vectors: list[str] = Field(default_factory=list)
    mitigation_steps: list[str] = Field(default_factory=list)
    code_suggestions: list[CodeSuggestion] = Field(default_factory=list)
    xss_type: str | None = None
    context: OutputContext | None = None
    file: str = ""
