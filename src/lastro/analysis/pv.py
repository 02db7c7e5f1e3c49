# src/lastro/analysis/pv.py
from __future__ import annotations

import calendar
import math
from datetime import date, datetime
from decimal import Decimal
from fractions import Fraction
from typing import Iterable, Sequence

from lastro.domain.money import D, quantize_places
from lastro.domain.stages import TAXAS_STAGE_TYPE, PVRow, StageForPV


def _as_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _round_half_up(x: Fraction) -> int:
    return math.floor(x + Fraction(1, 2))


def _month_segments(start: date, end: date) -> list[tuple[str, int]]:
    """(YYYY-MM, overlapping days) for every calendar month touched by [start, end]."""
    segments: list[tuple[str, int]] = []
    y, m = start.year, start.month
    while (y, m) <= (end.year, end.month):
        month_start = date(y, m, 1)
        month_end = date(y, m, calendar.monthrange(y, m)[1])
        eff_start = max(start, month_start)
        eff_end = min(end, month_end)
        days = (eff_end - eff_start).days + 1
        if days > 0:
            segments.append((f"{y:04d}-{m:02d}", days))
        y, m = (y + 1, 1) if m == 12 else (y, m + 1)
    return segments


def distribute_pv(
    stage_id: str,
    start_date: date | str,
    end_date: date | str,
    total_cents: int,
) -> list[PVRow]:
    """
    Spread a stage's value over calendar months, pro rata to days in range.

    Works in integer cents. Every month but the last gets round(days/total * cents);
    the last month takes the remainder so the rows add up exactly. If that
    remainder goes negative, the deficit is pulled back from earlier months.
    Zero-valued months are dropped.
    """
    start = _as_date(start_date)
    end = _as_date(end_date)
    total_days = (end - start).days + 1
    if total_days <= 0:
        return []

    segments = _month_segments(start, end)
    if not segments:
        return []

    cents = [
        _round_half_up(Fraction(days * total_cents, total_days))
        for _, days in segments[:-1]
    ]
    cents.append(total_cents - sum(cents))

    if cents[-1] < 0:
        for i in range(len(cents) - 2, -1, -1):
            if cents[-1] >= 0:
                break
            pull = min(cents[i], -cents[-1])
            cents[i] -= pull
            cents[-1] += pull

    return [
        PVRow(
            stage_id=stage_id,
            month_key=month_key,
            value=Decimal(c).scaleb(-2),
        )
        for (month_key, _), c in zip(segments, cents)
        if c > 0
    ]


def leaf_stage_ids(stages: Iterable[StageForPV]) -> set[str]:
    """Stages that no other stage lists as its parent."""
    stages = list(stages)
    parent_ids = {s.parent_id for s in stages if s.parent_id}
    return {s.id for s in stages if s.id not in parent_ids}


def value_to_cents(value: Decimal | float | int | str | None) -> int:
    return int(quantize_places(D(value).scaleb(2), 0))


def stage_window(stage: StageForPV) -> tuple[date, date] | None:
    """
    Date range a stage distributes over, or None when it has no usable range.

    Fee stages are single-day events on their start date.
    """
    if stage.stage_type == TAXAS_STAGE_TYPE:
        if stage.start_date is None:
            return None
        return stage.start_date, stage.start_date
    if stage.start_date is None or stage.end_date is None:
        return None
    return stage.start_date, stage.end_date


def eligible_stages(stages: Sequence[StageForPV]) -> list[StageForPV]:
    """Leaf stages with a positive value and a resolvable date range."""
    leaves = leaf_stage_ids(stages)
    return [
        s
        for s in stages
        if s.id in leaves and value_to_cents(s.total_value) > 0 and stage_window(s) is not None
    ]


def build_planned_values(stages: Sequence[StageForPV]) -> list[PVRow]:
    rows: list[PVRow] = []
    for stage in eligible_stages(stages):
        start, end = stage_window(stage)  # type: ignore[misc]
        rows.extend(distribute_pv(stage.id, start, end, value_to_cents(stage.total_value)))
    return rows


def needs_pv_sync(stages: Sequence[StageForPV], last_synced_at: datetime | None) -> bool:
    """
    Never synced and something to distribute, or any stage touched after the
    last sync.
    """
    if last_synced_at is None:
        return bool(eligible_stages(stages))
    return any(s.updated_at is not None and s.updated_at > last_synced_at for s in stages)
