# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared test fixtures and configuration."""

import logging
from pathlib import Path

import pytest

from wpbreach.core.config import Settings
from wpbreach.patterns.registry import PatternRegistry, reset_registry

FIXTURES_DIR = Path(__file__).parent / "fixtures"
PHP_DIR = FIXTURES_DIR / "php"
VULNERABLE_DIR = PHP_DIR / "vulnerable"
SAFE_DIR = PHP_DIR / "safe"
RULES_DIR = FIXTURES_DIR / "rules"


@pytest.fixture
def vulnerable_dir() -> Path:
    return VULNERABLE_DIR


@pytest.fixture
def safe_dir() -> Path:
    return SAFE_DIR


@pytest.fixture
def rules_dir() -> Path:
    return RULES_DIR


@pytest.fixture
def registry() -> PatternRegistry:
    """A freshly loaded registry, isolated from the process-wide one."""
    return PatternRegistry().load()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep WPBREACH_* variables from the host out of every test."""
    import os

    for key in list(os.environ):
        if key.startswith("WPBREACH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("WPBREACH_LOG_LEVEL", "WARNING")


@pytest.fixture(autouse=True)
def _reset_registry():
    """Reset the process-wide registry between tests."""
    reset_registry()
    yield
    reset_registry()


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers installed by CLI runs so they never outlive the test."""
    yield
    logging.getLogger("wpbreach").handlers.clear()
