"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- test_settings: Settings isolated from the environment and .env file
- sample_record: Catalog record with a locale name map and aliases
- catalog_documents: Factory for numbered catalog documents
"""

import pytest

from catalog_norm.config.settings import Settings


@pytest.fixture
def test_settings() -> Settings:
    """Return settings that ignore the process environment."""
    return Settings(
        _env_file=None,
        supabase_url=None,
        supabase_key=None,
        app_env="development",
        commit_concurrency=4,
    )


@pytest.fixture
def sample_record() -> dict:
    """Return a sample catalog record for testing."""
    return {
        "name": {"en": "Pranayama", "ja": "プラナヤマ"},
        "aliases": ["Prāṇāyāma"],
    }


@pytest.fixture
def catalog_documents():
    """Return a factory building ``count`` simple catalog documents."""

    def factory(count: int) -> dict[str, dict]:
        return {
            f"app-{i:05d}": {"name": {"en": f"App {i}"}, "aliases": [f"Alias {i}"]}
            for i in range(count)
        }

    return factory
