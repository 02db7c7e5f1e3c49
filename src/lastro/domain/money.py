# src/lastro/domain/money.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import MAX_PREC, ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Any


@dataclass(frozen=True)
class MoneyContext:
    """
    Decimal settings for every money calculation.

    Passed explicitly into the engine entry points instead of mutating the
    process-wide decimal context. Use `.context` with `decimal.localcontext`.
    """
    precision: int = 20
    rounding: str = ROUND_HALF_UP
    money_places: int = 2
    percent_places: int = 4

    @property
    def context(self) -> Context:
        return Context(prec=self.precision, rounding=self.rounding)

    def to_money(self, d: Any) -> Decimal:
        return quantize_places(D(d), self.money_places, self.rounding)

    def to_percent(self, d: Any) -> Decimal:
        return quantize_places(D(d), self.percent_places, self.rounding)


DEFAULT_MONEY = MoneyContext()

ZERO = Decimal(0)


def quantize_places(value: Decimal, places: int, rounding: str = ROUND_HALF_UP) -> Decimal:
    """
    Round to a fixed number of decimal places.

    Runs in its own unbounded-precision context: the working precision limits
    significant digits of intermediate results, not how many places a large
    amount may carry.
    """
    return value.quantize(Decimal(1).scaleb(-places), context=Context(prec=MAX_PREC, rounding=rounding))


def D(v: Any) -> Decimal:
    """
    Coerce anything numeric into a Decimal.

    None and blanks become 0. Floats go through str() so 0.1 stays 0.1.
    """
    if v is None:
        return ZERO
    if isinstance(v, Decimal):
        return v
    if isinstance(v, bool):
        return Decimal(int(v))
    if isinstance(v, int):
        return Decimal(v)
    if isinstance(v, float):
        return Decimal(str(v))
    s = str(v).strip()
    if not s:
        return ZERO
    try:
        return Decimal(s)
    except InvalidOperation as err:
        raise ValueError(f"not a number: {v!r}") from err


def to_money(d: Any) -> Decimal:
    return DEFAULT_MONEY.to_money(d)


def to_percent(d: Any) -> Decimal:
    return DEFAULT_MONEY.to_percent(d)


def _group_thousands(digits: str) -> str:
    out = []
    while len(digits) > 3:
        out.insert(0, digits[-3:])
        digits = digits[:-3]
    out.insert(0, digits)
    return ".".join(out)


def _format_ptbr(value: Decimal, places: int) -> str:
    q = quantize_places(value, places)
    sign = "-" if q < 0 else ""
    int_part, _, frac = f"{q.copy_abs():f}".partition(".")
    return f"{sign}{_group_thousands(int_part)},{frac}"


def format_brl(value: Any) -> str:
    """R$ 1.234,56 without touching the process locale."""
    text = _format_ptbr(D(value), 2)
    if text.startswith("-"):
        return f"-R$ {text[1:]}"
    return f"R$ {text}"


def format_percent(value: Any) -> str:
    return _format_ptbr(D(value), 2) + "%"
