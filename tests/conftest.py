"""Pytest configuration and fixtures."""

import os

import pytest

from paperwriter.core.config import get_settings
from paperwriter.core.schemas_draft import Draft


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["POLISH_PROVIDER"] = "anthropic"
    os.environ["PAPERWRITER_ENV"] = "test"
    get_settings.cache_clear()


@pytest.fixture
def paper_draft() -> Draft:
    """A draft with identifying fields set and empty layers."""
    return Draft(country="Brazil", committee="UNEP", topic="Climate Finance")
