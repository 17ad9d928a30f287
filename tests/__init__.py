"""
catalog-norm Test Suite.

- unit/: normalization, batching, stores, maintenance runs, settings, CLI
- conftest.py: Shared fixtures and test configuration

Run tests with: pytest
Run with coverage: pytest --cov=catalog_norm
"""
