"""
Canonical Block Resolver.

Maps a block's symbolic key ("8-10m", "2w", "Month 12m checklist") to its
canonical months-before-event offsets on the 12-month reference horizon.

Resolution order:
1. Case-insensitive substring match against the catalog, in catalog order
2. Pattern <num>[-<num>]<unit> with unit m (months) or w (weeks, /4)
3. None: the caller skips the block
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from eventplan.models import BlockOffsets, Distribution
from eventplan.recalibration.lead_time import CANONICAL_HORIZON_MONTHS

logger = logging.getLogger(__name__)

WEEKS_PER_MONTH = 4
DEFAULT_MAX_DEPENDENCY_PASSES = 100

DEFAULT_CATALOG: tuple[tuple[str, BlockOffsets], ...] = (
    ("12m", BlockOffsets(12, 10)),
    ("8-10m", BlockOffsets(10, 8)),
    ("6-8m", BlockOffsets(8, 6)),
    ("4-6m", BlockOffsets(6, 4)),
    ("3-4m", BlockOffsets(4, 3)),
    ("1-2m", BlockOffsets(2, 1)),
    ("2w", BlockOffsets(0.5, 0)),
)

_KEY_PATTERN = re.compile(r"(\d+)(?:-(\d+))?([mw])", re.IGNORECASE)


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for a recalibration run, loaded from config/recalibration.yaml."""

    catalog: tuple[tuple[str, BlockOffsets], ...] = DEFAULT_CATALOG
    canonical_horizon_months: int = CANONICAL_HORIZON_MONTHS
    max_dependency_passes: int = DEFAULT_MAX_DEPENDENCY_PASSES
    default_distribution: Distribution = Distribution.FRONTLOAD


def load_engine_config(config_path: Path | None = None) -> EngineConfig:
    """
    Load engine config from YAML. Missing file falls back to built-in defaults.

    Raises:
        ValueError: if the file exists but is not a mapping or an entry is malformed
    """
    if config_path is None or not config_path.exists():
        if config_path is not None:
            logger.info("Engine config %s not found, using defaults", config_path)
        return EngineConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Engine config {config_path} must be a mapping, got {type(raw).__name__}")

    catalog = DEFAULT_CATALOG
    if "canonical_blocks" in raw:
        entries = []
        for entry in raw["canonical_blocks"]:
            try:
                key = str(entry["key"])
                offsets = BlockOffsets(float(entry["start"]), float(entry["end"]))
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Malformed canonical block entry {entry!r}: {e}") from e
            if offsets.start_months < offsets.end_months or offsets.end_months < 0:
                raise ValueError(f"Canonical block {key!r} must have start >= end >= 0")
            entries.append((key, offsets))
        catalog = tuple(entries)

    horizon = int(raw.get("canonical_horizon_months", CANONICAL_HORIZON_MONTHS))
    if horizon <= 0:
        raise ValueError(f"canonical_horizon_months must be positive, got {horizon}")

    return EngineConfig(
        catalog=catalog,
        canonical_horizon_months=horizon,
        max_dependency_passes=int(
            raw.get("max_dependency_passes", DEFAULT_MAX_DEPENDENCY_PASSES)
        ),
        default_distribution=Distribution(
            raw.get("default_distribution", Distribution.FRONTLOAD)
        ),
    )


def resolve_block_offsets(
    block_key: str,
    catalog: tuple[tuple[str, BlockOffsets], ...] = DEFAULT_CATALOG,
) -> BlockOffsets | None:
    """Resolve *block_key* to canonical offsets, or None if it is unrecognized."""
    lowered = block_key.lower()
    for key, offsets in catalog:
        if key.lower() in lowered:
            return offsets

    match = _KEY_PATTERN.search(block_key)
    if not match:
        return None

    first = int(match.group(1))
    second = int(match.group(2)) if match.group(2) else first
    unit = match.group(3).lower()

    start, end = max(first, second), min(first, second)
    if unit == "w":
        return BlockOffsets(start / WEEKS_PER_MONTH, end / WEEKS_PER_MONTH)
    return BlockOffsets(float(start), float(end))
