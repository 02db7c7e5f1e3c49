# src/lastro/analysis/scurve.py
from __future__ import annotations

import re
from decimal import Decimal
from typing import Sequence

import pandas as pd

from lastro.adapters.logging_utils import get_logger
from lastro.analysis.pv import leaf_stage_ids, value_to_cents
from lastro.domain.stages import MonthlyValueRow, SCurvePoint, SCurveResult, StageForPV

logger = get_logger(__name__)

MONTHS_PT = ["Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez"]

_MONTH_KEY_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def month_label(month_key: str) -> str:
    year, month = month_key.split("-")
    return f"{MONTHS_PT[int(month) - 1]}/{year}"


def _cents_to_decimal(cents: int) -> Decimal:
    return Decimal(int(cents)).scaleb(-2)


def build_s_curve(
    stages: Sequence[StageForPV],
    monthly_values: Sequence[MonthlyValueRow],
) -> SCurveResult:
    """
    Planned (PV) vs actual (AC) cumulative curve over the leaf stages.

    Rules:
      - only current leaves count; rows of unknown stages are dropped
      - month_key must be YYYY-MM; anything else is logged and dropped
      - only 'planned' and 'actual' value types are used
      - the month range is continuous from the first to the last month seen
      - sums are done in integer cents
    """
    active_ids = {s.id for s in stages}
    leaves = leaf_stage_ids(stages)
    if not leaves:
        return SCurveResult(status="no-leaves")

    records = []
    for v in monthly_values:
        if v.stage_id not in active_ids:
            continue
        if not _MONTH_KEY_RE.match(v.month_key):
            logger.warning(
                "scurve_invalid_month_key",
                extra={"context": {"month_key": v.month_key, "stage_id": v.stage_id}},
            )
            continue
        if v.stage_id not in leaves:
            continue
        if v.value_type not in ("planned", "actual"):
            continue
        records.append(
            {"month_key": v.month_key, "value_type": v.value_type, "cents": value_to_cents(v.value)}
        )

    if not records:
        return SCurveResult(status="no-values")

    df = pd.DataFrame.from_records(records)
    monthly = (
        df.pivot_table(index="month_key", columns="value_type", values="cents", aggfunc="sum", fill_value=0)
        .reindex(columns=["planned", "actual"], fill_value=0)
    )
    monthly.index = pd.PeriodIndex(monthly.index, freq="M")

    full_range = pd.period_range(monthly.index.min(), monthly.index.max(), freq="M")
    monthly = monthly.reindex(full_range, fill_value=0).astype("int64")
    cumulative = monthly.cumsum()

    data: list[SCurvePoint] = []
    for period in full_range:
        mk = period.strftime("%Y-%m")
        pv_acc = int(cumulative.at[period, "planned"])
        ac_acc = int(cumulative.at[period, "actual"])
        data.append(
            SCurvePoint(
                month_key=mk,
                label=month_label(mk),
                pv_monthly=_cents_to_decimal(monthly.at[period, "planned"]),
                ac_monthly=_cents_to_decimal(monthly.at[period, "actual"]),
                pv_cumulative=_cents_to_decimal(pv_acc),
                ac_cumulative=_cents_to_decimal(ac_acc),
                deviation_cumulative=_cents_to_decimal(ac_acc - pv_acc),
            )
        )
    return SCurveResult(status="ok", data=data)
