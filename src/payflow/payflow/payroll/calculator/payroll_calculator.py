from __future__ import annotations

from decimal import Decimal

from ...common.money import round_centavos
from ...core.constants import MAX_DAILY_HOURS, TARDINESS_MINUTES_PER_DAY
from ...core.enums import CutoffHalf, ObCategory
from .factory import rule_for
from .model import CashAdvanceAllocation, CashAdvanceInput, PayrollInput, PayrollResult

ND_MULTIPLIER = Decimal("1.1")
RDOT_MULTIPLIER = Decimal("1.3")
HOLIDAY30_MULTIPLIER = Decimal("0.3")
HOLIDAY_DOUBLE_MULTIPLIER = Decimal("2")
HOLIDAY_OT_DOUBLE_MULTIPLIER = Decimal("2.6")


def _qty(value: float) -> Decimal:
    return Decimal(str(max(0.0, float(value or 0))))


def is_scheduled(advance: CashAdvanceInput, current_half: CutoffHalf) -> bool:
    """Advances starting on the first half deduct every cutoff; second-half ones only on second halves."""
    if advance.start_half == CutoffHalf.FIRST:
        return True
    return current_half == CutoffHalf.SECOND


def allocate_cash_advance(data: PayrollInput) -> tuple[CashAdvanceAllocation, ...]:
    """Split this cutoff's cash-advance deduction across the employee's advances.

    A manual override is spread over open advances in order, capped by each
    remaining balance; whatever does not fit stays on the override total.
    """
    open_advances = [a for a in data.cash_advances if a.approved and a.remaining_balance > 0]

    if data.cash_advance_override is not None:
        left = max(0, data.cash_advance_override)
        out: list[CashAdvanceAllocation] = []
        for a in open_advances:
            if left <= 0:
                break
            take = min(left, a.remaining_balance)
            out.append(CashAdvanceAllocation(a.advance_id, take))
            left -= take
        return tuple(out)

    return tuple(
        CashAdvanceAllocation(a.advance_id, min(a.per_cut_off, a.remaining_balance))
        for a in open_advances
        if a.per_cut_off > 0 and is_scheduled(a, data.current_half)
    )


def calculate_payroll(data: PayrollInput) -> PayrollResult:
    """Gross, deductions and net for one employee and one cutoff.

    Pure function of ``data``. Each line item is computed in ``Decimal`` and
    rounded half-up to the centavo once; totals are sums of rounded items and
    ``net_pay`` is never clamped.
    """
    rule = rule_for(data.category)

    daily = rule.daily_rate(data)
    basic_pay = round_centavos(rule.basic_pay(data, daily))

    ob_pay = 0
    if rule.earns_premiums:
        for item in data.ob_items:
            if item.rate is not None and item.rate > 0:
                ob_pay += item.rate
            else:
                category = item.category or ObCategory.ASSISTED
                ob_pay += rule.ob_rate(category, data.ob_override(category))

    ot_rate = daily / MAX_DAILY_HOURS
    if rule.earns_premiums:
        ot_pay = round_centavos(ot_rate * _qty(data.ot_hours))
        night_diff_pay = round_centavos(ot_rate * ND_MULTIPLIER * _qty(data.nd_hours))
        rdot_pay = round_centavos(ot_rate * RDOT_MULTIPLIER * _qty(data.rdot_hours))
        holiday30_pay = round_centavos(ot_rate * HOLIDAY30_MULTIPLIER * _qty(data.holiday30_hours))
        holiday_double_pay = round_centavos(ot_rate * HOLIDAY_DOUBLE_MULTIPLIER * _qty(data.holiday_double_hours))
        holiday_ot_double_pay = round_centavos(
            ot_rate * HOLIDAY_OT_DOUBLE_MULTIPLIER * _qty(data.holiday_ot_double_hours)
        )
    else:
        ot_pay = night_diff_pay = rdot_pay = holiday30_pay = holiday_double_pay = holiday_ot_double_pay = 0

    commission_pay = max(0, int(data.commission_total or 0))

    gross = (
        basic_pay
        + commission_pay
        + ob_pay
        + ot_pay
        + night_diff_pay
        + rdot_pay
        + holiday30_pay
        + holiday_double_pay
        + holiday_ot_double_pay
    )

    sss = pagibig = philhealth = tardiness = cash_advance = 0
    allocations: tuple[CashAdvanceAllocation, ...] = ()
    if rule.withholds_deductions:
        sss = data.statutory.sss if data.benefits.sss else 0
        pagibig = data.statutory.pagibig if data.benefits.pagibig else 0
        philhealth = data.statutory.philhealth if data.benefits.philhealth else 0

        minutes = max(0, int(data.tardiness_minutes or 0))
        if minutes:
            tardiness = round_centavos(daily / TARDINESS_MINUTES_PER_DAY * minutes)

        allocations = allocate_cash_advance(data)
        if data.cash_advance_override is not None:
            cash_advance = max(0, data.cash_advance_override)
        else:
            cash_advance = sum(a.amount for a in allocations)

    total_deductions = sss + pagibig + philhealth + cash_advance + tardiness

    return PayrollResult(
        daily_rate=round_centavos(daily),
        basic_pay=basic_pay,
        ob_pay=ob_pay,
        commission_pay=commission_pay,
        ot_rate=round_centavos(ot_rate),
        ot_pay=ot_pay,
        night_diff_pay=night_diff_pay,
        rdot_pay=rdot_pay,
        holiday30_pay=holiday30_pay,
        holiday_double_pay=holiday_double_pay,
        holiday_ot_double_pay=holiday_ot_double_pay,
        gross_earnings=gross,
        sss=sss,
        pagibig=pagibig,
        philhealth=philhealth,
        cash_advance_deduction=cash_advance,
        tardiness_deduction=tardiness,
        total_deductions=total_deductions,
        net_pay=gross - total_deductions,
        cash_advance_allocations=allocations,
    )
