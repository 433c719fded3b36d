"""
Test fixtures for deterministic testing.

This module provides:
- fixture_db: temp SQLite databases seeded with a pinned wedding timeline
"""

from .fixture_db import FIXTURE_TODAY, WEDDING_DATE, create_fixture_db

__all__ = ["FIXTURE_TODAY", "WEDDING_DATE", "create_fixture_db"]
