# src/lastro/analysis/financing.py
from __future__ import annotations

from decimal import Decimal, localcontext

from lastro.domain.money import DEFAULT_MONEY, MoneyContext, D
from lastro.domain.study import FinancingSchedule, StudyInputs


def effective_annual_rate(monthly_rate_pct: Decimal, money: MoneyContext = DEFAULT_MONEY) -> Decimal:
    """
    (1 + r)^12 - 1, in percent, for a monthly rate given in percent.
    """
    with localcontext(money.context):
        r = D(monthly_rate_pct) / 100
        return money.to_percent(((1 + r) ** 12 - 1) * 100)


def calc_financing(inputs: StudyInputs, money: MoneyContext = DEFAULT_MONEY) -> FinancingSchedule:
    """
    Financing schedule for PRICE (level installment) or SAC (constant amortization).

    Payoff at sale is the full financed principal for both systems, not the
    amortized balance at the sale month.
    """
    if not inputs.financing_enabled:
        return FinancingSchedule.zero()

    with localcontext(money.context):
        pv = D(inputs.purchase_value)
        dp = D(inputs.down_payment_value)
        financed = pv - dp
        if financed <= 0:
            return FinancingSchedule.zero()

        rate = D(inputs.monthly_interest_rate) / 100
        n = inputs.financing_term_months or 1
        dp_percent = dp / pv * 100 if pv > 0 else Decimal(0)
        annual_rate = effective_annual_rate(inputs.monthly_interest_rate, money)

        if inputs.financing_system == "PRICE":
            # PMT = PV * r / (1 - (1+r)^-n)
            if rate <= 0:
                return FinancingSchedule.zero()
            pmt = financed * rate / (1 - (1 + rate) ** -n)
            total_paid = pmt * n
            return FinancingSchedule(
                financed_amount=money.to_money(financed),
                first_installment=money.to_money(pmt),
                last_installment=money.to_money(pmt),
                total_paid=money.to_money(total_paid),
                total_interest=money.to_money(total_paid - financed),
                annual_rate=annual_rate,
                down_payment_percent=money.to_percent(dp_percent),
                monthly_payment=money.to_money(pmt),
                payoff=money.to_money(financed),
            )

        # SAC
        amort = financed / n
        first = amort + financed * rate
        # balance before the last installment is one amortization slice
        last = amort + amort * rate
        total_interest = rate * financed * (Decimal(n + 1) / 2)
        total_paid = financed + total_interest
        return FinancingSchedule(
            financed_amount=money.to_money(financed),
            first_installment=money.to_money(first),
            last_installment=money.to_money(last),
            total_paid=money.to_money(total_paid),
            total_interest=money.to_money(total_interest),
            annual_rate=annual_rate,
            down_payment_percent=money.to_percent(dp_percent),
            monthly_payment=money.to_money(first),
            payoff=money.to_money(financed),
        )
