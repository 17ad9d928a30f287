"""
Configuration Management.

This module provides centralized configuration using Pydantic Settings.

Configuration sources (in order of precedence):
1. Environment variables
2. .env file
3. Default values

The Supabase service key is loaded from the environment and never
committed to source control.

Example:
    from catalog_norm.config import get_settings

    settings = get_settings()
    table = settings.catalog_table
"""

from catalog_norm.config.settings import MAX_BATCH_SIZE, Settings, get_settings

__all__ = [
    "MAX_BATCH_SIZE",
    "Settings",
    "get_settings",
]
