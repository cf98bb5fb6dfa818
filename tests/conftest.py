"""Pytest configuration for the tykon test suite."""

import sys
from pathlib import Path

import pytest

# Repository root on the path so `tykon` imports without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

from tykon.config import Config

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def config() -> Config:
    """Default emission settings used across tests."""
    return Config(package="com.example")


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR
