# src/lastro/domain/stages.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict

ValueType = Literal["planned", "actual"]

# fee stages happen on a single day
TAXAS_STAGE_TYPE = "taxas"


class StageForPV(BaseModel):
    """Work-breakdown node as loaded for planned-value distribution."""
    model_config = ConfigDict(extra="ignore")

    id: str
    parent_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    total_value: Decimal = Decimal(0)
    stage_type: str | None = None
    updated_at: datetime | None = None


class PVRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage_id: str
    month_key: str  # YYYY-MM
    value: Decimal
    value_type: ValueType = "planned"


class MonthlyValueRow(BaseModel):
    """Stored monthly value (planned or actual) as read back for the S-curve."""
    model_config = ConfigDict(extra="ignore")

    stage_id: str
    month_key: str
    value: Decimal
    value_type: str


class SCurvePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    month_key: str
    label: str
    pv_monthly: Decimal
    ac_monthly: Decimal
    pv_cumulative: Decimal
    ac_cumulative: Decimal
    deviation_cumulative: Decimal


class SCurveResult(BaseModel):
    status: Literal["no-leaves", "no-values", "ok"]
    data: list[SCurvePoint] = []
