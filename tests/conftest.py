# tests/conftest.py
from decimal import Decimal

import pytest

from lastro.domain.study import LineItem, StudyInputs, UserThresholds


@pytest.fixture
def make_inputs():
    """Factory for StudyInputs with a complete, financing-free baseline."""

    def _make(**overrides) -> StudyInputs:
        base = dict(
            purchase_value=Decimal("200000"),
            usable_area_m2=Decimal("100"),
            months_to_sale=6,
            itbi_mode="FIXED",
            itbi_value=Decimal("6000"),
            registration_fee=Decimal("1500"),
            deed_fee=Decimal("2500"),
            has_condo_fee=True,
            condo_fee=Decimal("500"),
            iptu_mode="anual",
            iptu_value=Decimal("1200"),
            monthly_expenses=Decimal("400"),
            sale_value=Decimal("300000"),
            brokerage_mode="PERCENT",
            brokerage_percent=Decimal("5"),
            income_tax=Decimal("5000"),
        )
        base.update(overrides)
        return StudyInputs(**base)

    return _make


@pytest.fixture
def line_items() -> list[LineItem]:
    return [
        LineItem(line_type="ACQUISITION_COST", amount=Decimal("1000")),
        LineItem(line_type="MONTHLY_COST", amount=Decimal("200"), is_recurring=True),
        LineItem(line_type="MONTHLY_COST", amount=Decimal("100"), is_recurring=True, months=3),
        LineItem(line_type="EXIT_COST", amount=Decimal("999"), status="DELETED"),
        LineItem(line_type="CONSTRUCTION_COST", amount=Decimal("5000")),
    ]


@pytest.fixture
def thresholds() -> UserThresholds:
    return UserThresholds(roi_viable_threshold=Decimal("30"), roi_attention_threshold=Decimal("10"))


@pytest.fixture
def financed_inputs(make_inputs):
    """100k purchase, 10k down, 90k financed at 1% a month over 12 months."""

    def _make(system: str | None = "PRICE", **overrides) -> StudyInputs:
        params = dict(
            purchase_value=Decimal("100000"),
            financing_enabled=True,
            financing_system=system,
            down_payment_value=Decimal("10000"),
            financing_term_months=12,
            monthly_interest_rate=Decimal("1"),
        )
        params.update(overrides)
        return make_inputs(**params)

    return _make
