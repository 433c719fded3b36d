"""
Block Date Scheduler - concrete start/end dates for each canonical block.

Invariants on the returned windows (given enough lead time):
- start_date < end_date
- no window starts before today or ends after the event
- windows never move backwards: block[i].start >= block[i-1].end
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from eventplan.models import Block, BlockOffsets, BlockWindow
from eventplan.recalibration.canonical import DEFAULT_CATALOG, resolve_block_offsets
from eventplan.recalibration.lead_time import DAYS_PER_MONTH

logger = logging.getLogger(__name__)

START_FLOOR_DAYS = 2
END_FLOOR_DAYS = 3
EVENT_BUFFER_DAYS = 1


@dataclass
class ScheduleOutcome:
    windows: list[BlockWindow] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def round_to_week(d: date) -> date:
    """Snap back to the Sunday that starts d's calendar week."""
    return d - timedelta(days=(d.weekday() + 1) % 7)


def months_before(event_date: date, months: float) -> date:
    """
    Date *months* before the event.

    Whole months use calendar arithmetic; a fractional remainder is taken
    as days at 30 per month.
    """
    whole = int(months)
    extra_days = round((months - whole) * DAYS_PER_MONTH)
    return event_date - relativedelta(months=whole) - timedelta(days=extra_days)


def _fix_order(start: date, end: date) -> date:
    if start >= end:
        return start + timedelta(days=1)
    return end


def compute_window(
    event_date: date,
    offsets: BlockOffsets,
    scale_factor: float,
    today: date,
    previous_end: date | None = None,
) -> tuple[date, date]:
    """Start/end for one block after floor, ceiling, consistency and monotonicity fixes."""
    start = round_to_week(months_before(event_date, offsets.start_months * scale_factor))
    end = round_to_week(months_before(event_date, offsets.end_months * scale_factor))

    if start < today:
        start = today + timedelta(days=START_FLOOR_DAYS)
    if end < today:
        end = today + timedelta(days=END_FLOOR_DAYS)

    if end > event_date:
        end = event_date - timedelta(days=EVENT_BUFFER_DAYS)

    end = _fix_order(start, end)

    if previous_end is not None and start < previous_end:
        start = previous_end
        end = _fix_order(start, end)

    return start, end


def schedule_blocks(
    event_date: date,
    blocks: list[Block],
    scale_factor: float,
    today: date,
    catalog=DEFAULT_CATALOG,
) -> ScheduleOutcome:
    """
    Assign windows to blocks in `order`.

    Blocks whose key does not resolve are left out of the windows and
    listed in `skipped`; they keep whatever dates they had.
    """
    outcome = ScheduleOutcome()
    previous_end: date | None = None

    for block in sorted(blocks, key=lambda b: b.order):
        offsets = resolve_block_offsets(block.key, catalog)
        if offsets is None:
            logger.debug("Skipping block %s: unrecognized key %r", block.id, block.key)
            outcome.skipped.append(block.id)
            continue

        start, end = compute_window(event_date, offsets, scale_factor, today, previous_end)
        outcome.windows.append(BlockWindow(block_id=block.id, start_date=start, end_date=end))
        previous_end = end

    return outcome
