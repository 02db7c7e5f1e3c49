from decimal import Decimal

import pytest

from lastro.services.validation import validate_line_item, validate_study_inputs


def test_percent_and_ptbr_strings_are_normalized():
    inputs = validate_study_inputs(
        {
            "purchase_value": "R$ 250.000,00",
            "usable_area_m2": "85,5",
            "financing_enabled": "true",
            "financing_system": "price",
            "financing_term_months": "360",
            "monthly_interest_rate": "0,95%",
            "down_payment_value": 50000,
            "months_to_sale": "12",
            "sale_value": "400000",
        }
    )

    assert inputs.purchase_value == Decimal("250000.00")
    assert inputs.usable_area_m2 == Decimal("85.5")
    assert inputs.financing_enabled is True
    assert inputs.financing_system == "PRICE"
    assert inputs.financing_term_months == 360
    assert inputs.monthly_interest_rate == Decimal("0.95")
    assert inputs.months_to_sale == 12


def test_itbi_percent_mode_derives_value():
    inputs = validate_study_inputs(
        {"purchase_value": "200000", "itbi_mode": "percentual", "itbi_percent": "3"}
    )

    assert inputs.itbi_mode == "PERCENT"
    assert inputs.itbi_value == Decimal("6000.00")


def test_itbi_percent_is_the_default_mode():
    inputs = validate_study_inputs({"purchase_value": "200000", "itbi_percent": "3"})

    assert inputs.itbi_mode == "PERCENT"
    assert inputs.itbi_value == Decimal("6000.00")


def test_itbi_fixed_mode_keeps_value():
    inputs = validate_study_inputs(
        {"purchase_value": "200000", "itbi_mode": "fixo", "itbi_percent": "3", "itbi_value": "4500"}
    )

    assert inputs.itbi_mode == "FIXED"
    assert inputs.itbi_value == Decimal("4500")


def test_mode_aliases():
    inputs = validate_study_inputs({"iptu_mode": "Annual", "brokerage_mode": "valor", "financing_system": ""})

    assert inputs.iptu_mode == "anual"
    assert inputs.brokerage_mode == "FIXED"
    assert inputs.financing_system is None


def test_missing_business_fields_are_not_errors():
    inputs = validate_study_inputs({})

    assert inputs.purchase_value == Decimal(0)
    assert inputs.months_to_sale is None


@pytest.mark.parametrize(
    "raw,message",
    [
        ({"purchase_value": "-1"}, "purchase_value must be non-negative"),
        ({"usable_area_m2": -10}, "usable_area_m2 must be non-negative"),
        ({"months_to_sale": -3}, "months_to_sale must be non-negative"),
        ({"financing_term_months": "12.5"}, "whole number"),
        ({"financing_enabled": True, "financing_term_months": 0}, "at least 1"),
        ({"financing_system": "GERMAN"}, "Invalid financing_system"),
        ({"iptu_mode": "weekly"}, "Invalid iptu_mode"),
        ({"brokerage_mode": "SOMETIMES"}, "Invalid brokerage_mode"),
        ({"sale_value": "lots"}, "Invalid number for sale_value"),
    ],
)
def test_structurally_invalid_input_is_rejected(raw, message):
    with pytest.raises(ValueError, match=message):
        validate_study_inputs(raw)


def test_line_item_validation():
    item = validate_line_item(
        {"line_type": "monthly_cost", "amount": "1.500,00", "is_recurring": 1, "months": "4", "is_deleted": False}
    )

    assert item.line_type == "MONTHLY_COST"
    assert item.amount == Decimal("1500.00")
    assert item.is_recurring is True
    assert item.months == 4
    assert item.status == "ACTIVE"


def test_line_item_soft_delete_flag():
    item = validate_line_item({"line_type": "EXIT_COST", "amount": 10, "is_deleted": True})

    assert item.is_deleted is True
    assert item.status == "DELETED"


@pytest.mark.parametrize(
    "raw",
    [
        {"line_type": "BRIBE", "amount": 1},
        {"line_type": "EXIT_COST", "amount": -1},
        {"line_type": "EXIT_COST", "amount": 1, "months": -2},
    ],
)
def test_invalid_line_items(raw):
    with pytest.raises(ValueError):
        validate_line_item(raw)
