"""
Centralized configuration for the event planner.

All hardcoded values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Identity
# ============================================================

AUDIT_ACTOR: str = os.environ.get("EVENTPLAN_ACTOR", "admin")
"""Actor recorded on audit entries written by recalculation."""

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("EVENTPLAN_LOG_LEVEL", "INFO")
"""Root log level for the API server and CLI."""

# ============================================================
# Recalibration engine
# ============================================================

ENGINE_CONFIG_PATH: str | None = os.environ.get("EVENTPLAN_ENGINE_CONFIG")
"""Path to an alternative recalibration.yaml. Unset uses config/recalibration.yaml."""

# ============================================================
# API
# ============================================================

CORS_ORIGINS: list[str] = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
]
"""Allowed CORS origins. "*" allows all (development default)."""
