# src/lastro/services/validation.py

from decimal import Decimal
from typing import Any

from lastro.domain.money import D, to_money
from lastro.domain.study import LineItem, StudyInputs

# Money / area / rate fields that can never be negative
NON_NEGATIVE_FIELDS = [
    "purchase_value",
    "usable_area_m2",
    "total_area_m2",
    "land_area_m2",
    "purchase_price_per_m2",
    "down_payment_value",
    "monthly_interest_rate",
    "down_payment_acquisition",
    "itbi_percent",
    "itbi_value",
    "bank_appraisal",
    "registration_fee",
    "deed_fee",
    "condo_fee",
    "iptu_value",
    "monthly_expenses",
    "sale_value",
    "brokerage_percent",
    "brokerage_value",
    "income_tax",
]

INT_FIELDS = ["financing_term_months", "months_to_sale"]

BOOL_FIELDS = ["price_per_m2_manual", "financing_enabled", "has_condo_fee"]

_VALUE_MODE_ALIASES = {
    "PERCENT": "PERCENT",
    "PERCENTUAL": "PERCENT",
    "%": "PERCENT",
    "FIXED": "FIXED",
    "FIXO": "FIXED",
    "VALOR": "FIXED",
}

_IPTU_MODE_ALIASES = {
    "mensal": "mensal",
    "monthly": "mensal",
    "anual": "anual",
    "annual": "anual",
}

_LINE_TYPES = {"ACQUISITION_COST", "MONTHLY_COST", "EXIT_COST", "CONSTRUCTION_COST"}


def _to_decimal(val: Any, field_name: str) -> Decimal:
    """
    Coerce values like:
      - 250000
      - "250000"
      - "6.5%"
      - "1.234,56"  (pt-BR)
    into Decimal. Blank/None become 0.
    """
    if val is None:
        return Decimal(0)
    if isinstance(val, (bool,)):
        raise ValueError(f"Invalid type for {field_name}: {type(val)}")
    if isinstance(val, (int, float, Decimal)):
        return D(val)
    if isinstance(val, str):
        s = val.strip().replace("R$", "").replace(" ", "")
        if s.endswith("%"):
            s = s[:-1]
        if "," in s:
            # Brazilian formatting: dots group thousands, comma is the decimal mark
            s = s.replace(".", "").replace(",", ".")
        try:
            return D(s)
        except ValueError as err:
            raise ValueError(f"Invalid number for {field_name}: {val!r}") from err
    raise ValueError(f"Invalid type for {field_name}: {type(val)}")


def _to_int_optional(val: Any, field_name: str) -> int | None:
    if val is None or (isinstance(val, str) and not val.strip()):
        return None
    d = _to_decimal(val, field_name)
    if d != d.to_integral_value():
        raise ValueError(f"{field_name} must be a whole number of months")
    return int(d)


def _to_bool(val: Any) -> bool:
    if isinstance(val, str):
        return val.strip().lower() in {"1", "true", "sim", "yes", "on"}
    return bool(val)


def _value_mode(val: Any, field_name: str) -> str:
    key = str(val or "").strip().upper()
    if key not in _VALUE_MODE_ALIASES:
        raise ValueError(f"Invalid {field_name}: {val!r}")
    return _VALUE_MODE_ALIASES[key]


def validate_study_inputs(raw: dict[str, Any]) -> StudyInputs:
    """
    Normalize and check a raw study payload before it reaches the engine.

    Responsibilities:
      - Coerce numeric / percent-like / pt-BR strings.
      - Reject structurally invalid values (negatives, bad modes, bad terms).
      - Derive itbi_value from itbi_percent when ITBI is in PERCENT mode.

    Missing business fields are fine here; the engine reports them in
    missing_fields.
    """
    cleaned: dict[str, Any] = {}

    for field in NON_NEGATIVE_FIELDS:
        if field not in raw:
            continue
        v = _to_decimal(raw[field], field)
        if v < 0:
            raise ValueError(f"{field} must be non-negative")
        cleaned[field] = v

    for field in INT_FIELDS:
        if field not in raw:
            continue
        v = _to_int_optional(raw[field], field)
        if v is not None and v < 0:
            raise ValueError(f"{field} must be non-negative")
        cleaned[field] = v

    for field in BOOL_FIELDS:
        if field in raw:
            cleaned[field] = _to_bool(raw[field])

    # financing system: blank means "not chosen yet"
    system = str(raw.get("financing_system") or "").strip().upper()
    if system and system not in ("PRICE", "SAC"):
        raise ValueError(f"Invalid financing_system: {raw.get('financing_system')!r}")
    cleaned["financing_system"] = system or None

    if cleaned.get("financing_enabled") and cleaned.get("financing_term_months") == 0:
        raise ValueError("financing_term_months must be at least 1 when financing is enabled")

    for field in ("itbi_mode", "brokerage_mode"):
        if raw.get(field) not in (None, ""):
            cleaned[field] = _value_mode(raw[field], field)

    if raw.get("iptu_mode") not in (None, ""):
        key = str(raw["iptu_mode"]).strip().lower()
        if key not in _IPTU_MODE_ALIASES:
            raise ValueError(f"Invalid iptu_mode: {raw['iptu_mode']!r}")
        cleaned["iptu_mode"] = _IPTU_MODE_ALIASES[key]

    # ITBI in percent mode (the default) is stored as a value computed from the price
    if cleaned.get("itbi_mode", "PERCENT") == "PERCENT" and "itbi_percent" in cleaned:
        purchase = cleaned.get("purchase_value", Decimal(0))
        cleaned["itbi_value"] = to_money(purchase * cleaned["itbi_percent"] / 100)

    return StudyInputs(**cleaned)


def validate_line_item(raw: dict[str, Any]) -> LineItem:
    line_type = str(raw.get("line_type") or "").strip().upper()
    if line_type not in _LINE_TYPES:
        raise ValueError(f"Invalid line_type: {raw.get('line_type')!r}")

    amount = _to_decimal(raw.get("amount"), "amount")
    if amount < 0:
        raise ValueError("amount must be non-negative")

    months = _to_int_optional(raw.get("months"), "months")
    if months is not None and months < 0:
        raise ValueError("months must be non-negative")

    data: dict[str, Any] = {
        "line_type": line_type,
        "amount": amount,
        "is_recurring": _to_bool(raw.get("is_recurring", False)),
        "months": months,
        "percent_value": _to_decimal(raw.get("percent_value"), "percent_value"),
    }
    if raw.get("value_mode") not in (None, ""):
        data["value_mode"] = _value_mode(raw["value_mode"], "value_mode")
    if "status" in raw:
        data["status"] = str(raw["status"]).upper()
    elif "is_deleted" in raw:
        data["is_deleted"] = _to_bool(raw["is_deleted"])
    return LineItem(**data)
