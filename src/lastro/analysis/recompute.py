# src/lastro/analysis/recompute.py
from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Any, Iterable

from lastro.analysis.financing import calc_financing
from lastro.domain.money import DEFAULT_MONEY, MoneyContext, D
from lastro.domain.study import (
    ComputedResult,
    LineItem,
    LineType,
    StudyInputs,
    UserThresholds,
    ViabilityIndicator,
)


def get_missing_fields(inputs: StudyInputs) -> list[str]:
    """
    Labels of the required business fields that are still missing.

    Financing fields are only required when financing is enabled.
    """
    missing: list[str] = []
    if D(inputs.purchase_value) <= 0:
        missing.append("Valor de compra")
    has_area = (
        D(inputs.usable_area_m2) > 0
        or D(inputs.total_area_m2) > 0
        or D(inputs.land_area_m2) > 0
    )
    if not has_area:
        missing.append("Ao menos uma área válida")
    if not inputs.months_to_sale or inputs.months_to_sale < 1:
        missing.append("Meses até a venda")
    if D(inputs.sale_value) < Decimal("0.01"):
        missing.append("Valor de venda")
    if inputs.financing_enabled:
        if not inputs.financing_system:
            missing.append("Sistema de financiamento")
        if not inputs.financing_term_months or inputs.financing_term_months < 1:
            missing.append("Prazo do financiamento")
        if D(inputs.monthly_interest_rate) <= 0:
            missing.append("Taxa de juros mensal")
    return missing


def calc_price_per_m2(inputs: StudyInputs, money: MoneyContext = DEFAULT_MONEY) -> Decimal:
    """
    Manual price per m² wins when flagged and positive; otherwise purchase value
    over the first positive area among usable, total and land.
    """
    if inputs.price_per_m2_manual and D(inputs.purchase_price_per_m2) > 0:
        return D(inputs.purchase_price_per_m2)

    pv = D(inputs.purchase_value)
    if pv <= 0:
        return money.to_money(0)

    with localcontext(money.context):
        for area in (inputs.usable_area_m2, inputs.total_area_m2, inputs.land_area_m2):
            if D(area) > 0:
                return money.to_money(pv / D(area))
    return money.to_money(0)


def sum_line_items(
    items: Iterable[LineItem],
    line_type: LineType,
    months_to_sale: int,
    money: MoneyContext = DEFAULT_MONEY,
) -> Decimal:
    """
    Sum of active items of one type. Recurring items count once per month,
    using their own month count or the study's months to sale.
    """
    total = Decimal(0)
    with localcontext(money.context):
        for item in items:
            if item.is_deleted or item.line_type != line_type:
                continue
            amount = D(item.amount)
            if item.is_recurring:
                m = item.months if item.months is not None else months_to_sale
                total += amount * (m if m > 0 else 1)
            else:
                total += amount
    return money.to_money(total)


def classify_viability(
    roi: Decimal,
    thresholds: UserThresholds,
    missing_fields: list[str],
) -> ViabilityIndicator:
    if missing_fields:
        return "UNKNOWN"
    if roi >= D(thresholds.roi_viable_threshold):
        return "VIABLE"
    if roi < D(thresholds.roi_attention_threshold):
        return "ATTENTION"
    return "UNVIABLE"


def recompute_study(
    inputs: StudyInputs,
    line_items: list[LineItem],
    thresholds: UserThresholds,
    provider_contracts_total: Any = 0,
    construction_total: Any = 0,
    bills_paid_total: Any = 0,
    *,
    money: MoneyContext = DEFAULT_MONEY,
) -> ComputedResult:
    """
    Core recompute brain: inputs + line items + thresholds -> derived totals.

    Pure and total. Missing business fields never raise; they are listed in
    `missing_fields` and force the viability to UNKNOWN.

    Profit is sale value minus disbursements and exit costs; purchase value
    only enters through invested capital (the ROI denominator).
    """
    missing = get_missing_fields(inputs)
    price_per_m2 = calc_price_per_m2(inputs, money)
    fin = calc_financing(inputs, money)
    months_to_sale = inputs.months_to_sale or 0

    with localcontext(money.context):
        # --- acquisition ---
        acq_base = (
            D(inputs.down_payment_acquisition)
            + D(inputs.itbi_value)
            + D(inputs.bank_appraisal)
            + D(inputs.registration_fee)
            + D(inputs.deed_fee)
        )
        acq_extras = sum_line_items(line_items, "ACQUISITION_COST", months_to_sale, money)
        acquisition_total = money.to_money(acq_base + acq_extras)

        # --- holding ---
        monthly_fin_payment = fin.monthly_payment if inputs.financing_enabled else Decimal(0)
        condo_monthly = D(inputs.condo_fee) if inputs.has_condo_fee else Decimal(0)
        if inputs.iptu_mode == "anual":
            iptu_monthly = D(inputs.iptu_value) / 12
        else:
            iptu_monthly = D(inputs.iptu_value)
        fixed_monthly = monthly_fin_payment + condo_monthly + iptu_monthly + D(inputs.monthly_expenses)
        holding_base = fixed_monthly * months_to_sale
        holding_extras = sum_line_items(line_items, "MONTHLY_COST", months_to_sale, money)
        holding_total = money.to_money(holding_base + holding_extras + D(provider_contracts_total))

        # --- exit ---
        if inputs.brokerage_mode == "PERCENT":
            brokerage = D(inputs.sale_value) * (D(inputs.brokerage_percent) / 100)
        else:
            brokerage = D(inputs.brokerage_value)
        payoff = fin.payoff if inputs.financing_enabled else Decimal(0)
        exit_base = brokerage + D(inputs.income_tax) + payoff
        exit_extras = sum_line_items(line_items, "EXIT_COST", months_to_sale, money)
        exit_total = money.to_money(exit_base + exit_extras)

        # --- construction ---
        construction = D(construction_total) + sum_line_items(
            line_items, "CONSTRUCTION_COST", months_to_sale, money
        )

        # --- aggregates ---
        total_disbursed = money.to_money(
            acquisition_total + holding_total + construction + D(bills_paid_total)
        )
        total_invested_capital = money.to_money(D(inputs.purchase_value) + total_disbursed)
        sale_net = money.to_money(D(inputs.sale_value) - exit_total)
        profit = money.to_money(D(inputs.sale_value) - total_disbursed - exit_total)
        if total_invested_capital > 0:
            roi = money.to_percent(profit / total_invested_capital * 100)
        else:
            roi = money.to_percent(0)

    viability = classify_viability(roi, thresholds, missing)

    return ComputedResult(
        acquisition_total=acquisition_total,
        holding_total=holding_total,
        exit_total=exit_total,
        construction_total=money.to_money(construction),
        total_disbursed=total_disbursed,
        total_invested_capital=total_invested_capital,
        sale_net=sale_net,
        profit=profit,
        roi=roi,
        viability_indicator=viability,
        missing_fields=missing,
        is_official=not missing,
        financed_amount=fin.financed_amount,
        first_installment=fin.first_installment,
        last_installment=fin.last_installment,
        total_paid_financing=fin.total_paid,
        total_interest=fin.total_interest,
        annual_interest_rate=fin.annual_rate,
        down_payment_percent=fin.down_payment_percent,
        provider_contracts_total=money.to_money(provider_contracts_total),
        monthly_financing_payment=fin.monthly_payment,
        payoff_at_sale=fin.payoff,
        purchase_price_per_m2=price_per_m2,
    )
