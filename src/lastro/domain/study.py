# src/lastro/domain/study.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

FinancingSystem = Literal["PRICE", "SAC"]
ValueMode = Literal["PERCENT", "FIXED"]
IptuMode = Literal["mensal", "anual"]

LineType = Literal[
    "ACQUISITION_COST",
    "MONTHLY_COST",
    "EXIT_COST",
    "CONSTRUCTION_COST",
]

RecordStatus = Literal["ACTIVE", "DELETED"]

ViabilityIndicator = Literal["VIABLE", "UNVIABLE", "ATTENTION", "UNKNOWN"]

StudyStatus = Literal["COMPLETE", "DRAFT"]


class StudyInputs(BaseModel):
    """
    Flat record of a study's financial parameters (steps A to E of the study form).

    All money/area/rate fields are Decimal. Rates and percents are in percent
    units, e.g. monthly_interest_rate=1 means 1% a month.
    """
    model_config = ConfigDict(extra="ignore")

    # Step A: acquisition price and areas
    purchase_value: Decimal = Decimal(0)
    usable_area_m2: Decimal = Decimal(0)
    total_area_m2: Decimal = Decimal(0)
    land_area_m2: Decimal = Decimal(0)
    purchase_price_per_m2: Decimal = Decimal(0)
    price_per_m2_manual: bool = False

    # Step B: financing
    financing_enabled: bool = False
    financing_system: FinancingSystem | None = None
    down_payment_value: Decimal = Decimal(0)
    financing_term_months: int | None = None
    monthly_interest_rate: Decimal = Decimal(0)

    # Step C: acquisition costs
    down_payment_acquisition: Decimal = Decimal(0)
    itbi_mode: ValueMode = "PERCENT"
    itbi_percent: Decimal = Decimal(0)
    itbi_value: Decimal = Decimal(0)
    bank_appraisal: Decimal = Decimal(0)
    registration_fee: Decimal = Decimal(0)
    deed_fee: Decimal = Decimal(0)

    # Step D: holding
    months_to_sale: int | None = None
    monthly_financing_payment: Decimal = Decimal(0)
    has_condo_fee: bool = False
    condo_fee: Decimal = Decimal(0)
    iptu_mode: IptuMode = "mensal"
    iptu_value: Decimal = Decimal(0)
    monthly_expenses: Decimal = Decimal(0)

    # Step E: exit
    sale_value: Decimal = Decimal(0)
    payoff_at_sale: Decimal = Decimal(0)
    brokerage_mode: ValueMode = "PERCENT"
    brokerage_percent: Decimal = Decimal(0)
    brokerage_value: Decimal = Decimal(0)
    income_tax: Decimal = Decimal(0)

    @model_validator(mode="before")
    @classmethod
    def _nulls_to_defaults(cls, data: Any) -> Any:
        # database rows carry NULL for untouched numeric columns
        if not isinstance(data, dict):
            return data
        keep_null = {"financing_system", "financing_term_months", "months_to_sale"}
        cleaned = {k: v for k, v in data.items() if v is not None or k in keep_null}
        if cleaned.get("financing_system") == "":
            cleaned["financing_system"] = None
        return cleaned


class LineItem(BaseModel):
    """Discretionary cash-flow adjustment attached to a study."""
    model_config = ConfigDict(extra="ignore")

    line_type: LineType
    amount: Decimal = Decimal(0)
    value_mode: ValueMode = "FIXED"
    percent_value: Decimal = Decimal(0)
    is_recurring: bool = False
    months: int | None = None
    status: RecordStatus = "ACTIVE"

    @model_validator(mode="before")
    @classmethod
    def _soft_delete_flag(cls, data: Any) -> Any:
        if isinstance(data, dict) and "is_deleted" in data and "status" not in data:
            data = dict(data)
            data["status"] = "DELETED" if data.pop("is_deleted") else "ACTIVE"
        return data

    @property
    def is_deleted(self) -> bool:
        return self.status == "DELETED"


class UserThresholds(BaseModel):
    roi_viable_threshold: Decimal = Decimal(30)
    roi_attention_threshold: Decimal = Decimal(10)


@dataclass(frozen=True)
class FinancingSchedule:
    financed_amount: Decimal
    first_installment: Decimal
    last_installment: Decimal
    total_paid: Decimal
    total_interest: Decimal
    annual_rate: Decimal
    down_payment_percent: Decimal
    monthly_payment: Decimal
    payoff: Decimal

    @classmethod
    def zero(cls) -> "FinancingSchedule":
        z = Decimal("0.00")
        return cls(
            financed_amount=z,
            first_installment=z,
            last_installment=z,
            total_paid=z,
            total_interest=z,
            annual_rate=Decimal("0.0000"),
            down_payment_percent=Decimal("0.0000"),
            monthly_payment=z,
            payoff=z,
        )


class ComputedResult(BaseModel):
    """
    Derived cache for a study. Recomputed on every save; never edited directly.
    """
    model_config = ConfigDict(frozen=True)

    acquisition_total: Decimal
    holding_total: Decimal
    exit_total: Decimal
    construction_total: Decimal
    total_disbursed: Decimal
    total_invested_capital: Decimal
    sale_net: Decimal
    profit: Decimal
    roi: Decimal
    viability_indicator: ViabilityIndicator
    missing_fields: list[str] = Field(default_factory=list)
    is_official: bool

    financed_amount: Decimal
    first_installment: Decimal
    last_installment: Decimal
    total_paid_financing: Decimal
    total_interest: Decimal
    annual_interest_rate: Decimal
    down_payment_percent: Decimal
    provider_contracts_total: Decimal

    # written back onto the study inputs
    monthly_financing_payment: Decimal
    payoff_at_sale: Decimal
    purchase_price_per_m2: Decimal

    @property
    def study_status(self) -> StudyStatus:
        return "COMPLETE" if self.is_official else "DRAFT"

    def computed_record(self) -> dict[str, Any]:
        """Columns of the study_computed record."""
        return self.model_dump(
            exclude={"monthly_financing_payment", "payoff_at_sale", "purchase_price_per_m2"}
        )

    def derived_input_fields(self) -> dict[str, Decimal]:
        return {
            "monthly_financing_payment": self.monthly_financing_payment,
            "payoff_at_sale": self.payoff_at_sale,
            "purchase_price_per_m2": self.purchase_price_per_m2,
        }


@dataclass
class StudySnapshot:
    """Everything the loader hands to the engine for one study."""
    inputs: StudyInputs
    line_items: list[LineItem] = field(default_factory=list)
    thresholds: UserThresholds = field(default_factory=UserThresholds)
    provider_contracts_total: Decimal = Decimal(0)
    construction_total: Decimal = Decimal(0)
    bills_paid_total: Decimal = Decimal(0)
