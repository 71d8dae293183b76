from dataclasses import replace

import pytest

from src.payflow.payflow.core.enums import CutoffHalf, EmployeeCategory, ObCategory
from src.payflow.payflow.employees.model import Benefits, FreelancerItem, ObRate
from src.payflow.payflow.payroll.calculator.factory import rule_for
from src.payflow.payflow.payroll.calculator.model import CashAdvanceInput, ObItem, PayrollInput
from src.payflow.payflow.payroll.calculator.payroll_calculator import calculate_payroll, is_scheduled

ALL_BENEFITS = Benefits(sss=True, pagibig=True, philhealth=True)


def _core(**kwargs) -> PayrollInput:
    base = dict(category=EmployeeCategory.CORE, monthly_salary=22_000_00, fixed_worked_days=11, worked_days=10)
    base.update(kwargs)
    return PayrollInput(**base)


def test_core_daily_rate_and_basic_pay():
    result = calculate_payroll(_core())

    assert result.daily_rate == 1_000_00
    assert result.basic_pay == 10_000_00
    assert result.ot_rate == 125_00


def test_core_divisor_falls_back_to_cutoff_then_monthly_divisor():
    from_cutoff = calculate_payroll(_core(monthly_salary=20_000_00, fixed_worked_days=None, cutoff_working_days=10))
    from_monthly = calculate_payroll(_core(fixed_worked_days=None, cutoff_working_days=None))

    assert from_cutoff.daily_rate == 1_000_00
    assert from_monthly.daily_rate == 1_000_00


def test_core_without_salary_is_zero_and_flagged():
    data = _core(monthly_salary=0)

    assert calculate_payroll(data).basic_pay == 0
    assert not rule_for(data.category).has_rate_configured(data)


def test_probationary_uses_per_day_rate():
    data = PayrollInput(category=EmployeeCategory.CORE_PROBATIONARY, per_day_rate=800_00, worked_days=9.5)

    assert calculate_payroll(data).basic_pay == 7_600_00


def test_intern_default_allowance_and_flat_ob_rate():
    data = PayrollInput(
        category=EmployeeCategory.INTERN,
        worked_days=10,
        ob_items=(ObItem(ObCategory.VIDEOGRAPHER), ObItem(ObCategory.TALENT)),
    )

    result = calculate_payroll(data)

    assert result.basic_pay == 1_250_00
    assert result.ob_pay == 2 * 500_00


def test_owner_gets_fixed_cutoff_pay_and_no_tardiness():
    data = PayrollInput(category=EmployeeCategory.OWNER, worked_days=3, tardiness_minutes=45, ot_hours=4)

    result = calculate_payroll(data)

    assert result.basic_pay == 60_000_00
    assert result.daily_rate == 0
    assert result.ot_pay == 0
    assert result.tardiness_deduction == 0


def test_freelancer_is_paid_per_item_without_deductions():
    data = PayrollInput(
        category=EmployeeCategory.FREELANCER,
        freelancer_items=(FreelancerItem("Edit", 2, 1_500_00), FreelancerItem("Thumbnail", 1, 500_00)),
        ot_hours=3,
        ob_items=(ObItem(ObCategory.ASSISTED),),
        benefits=ALL_BENEFITS,
        tardiness_minutes=30,
        cash_advances=(CashAdvanceInput(1, 500_00, 1_000_00, CutoffHalf.FIRST),),
    )

    result = calculate_payroll(data)

    assert result.gross_earnings == 3_500_00
    assert result.total_deductions == 0
    assert result.net_pay == 3_500_00


def test_commission_is_added_to_gross_and_net_for_every_category():
    core = calculate_payroll(_core(commission_total=2_500_00))
    plain = calculate_payroll(_core())
    freelancer = calculate_payroll(
        PayrollInput(
            category=EmployeeCategory.FREELANCER,
            freelancer_items=(FreelancerItem("Edit", 1, 1_000_00),),
            commission_total=300_00,
        )
    )

    assert core.commission_pay == 2_500_00
    assert core.gross_earnings == plain.gross_earnings + 2_500_00
    assert core.net_pay == plain.net_pay + 2_500_00
    assert freelancer.gross_earnings == 1_300_00
    assert calculate_payroll(_core(commission_total=-100)).commission_pay == 0


@pytest.mark.parametrize(
    "item, rates, expected",
    [
        (ObItem(ObCategory.ASSISTED), (), 1_500_00),
        (ObItem(ObCategory.VIDEOGRAPHER), (), 2_500_00),
        (ObItem(ObCategory.TALENT), (), 2_000_00),
        (ObItem(None), (), 1_500_00),
        (ObItem(None), (ObRate(ObCategory.ASSISTED, 1_800_00),), 1_800_00),
        (ObItem(ObCategory.ASSISTED), (ObRate(ObCategory.ASSISTED, 1_800_00),), 1_800_00),
        (ObItem(ObCategory.ASSISTED, rate=1_200_00), (ObRate(ObCategory.ASSISTED, 1_800_00),), 1_200_00),
    ],
)
def test_ob_rates_for_salaried_staff(item, rates, expected):
    assert calculate_payroll(_core(ob_items=(item,), ob_rates=rates)).ob_pay == expected


def test_premium_lines_use_hourly_rate_multipliers():
    result = calculate_payroll(
        _core(
            ot_hours=2,
            nd_hours=1,
            rdot_hours=8,
            holiday30_hours=8,
            holiday_double_hours=8,
            holiday_ot_double_hours=1,
        )
    )

    assert result.ot_pay == 250_00
    assert result.night_diff_pay == 137_50
    assert result.rdot_pay == 1_300_00
    assert result.holiday30_pay == 300_00
    assert result.holiday_double_pay == 2_000_00
    assert result.holiday_ot_double_pay == 325_00
    assert result.holiday_pay == 2_625_00


def test_statutory_and_tardiness_deductions():
    result = calculate_payroll(_core(benefits=ALL_BENEFITS, tardiness_minutes=30))

    assert (result.sss, result.pagibig, result.philhealth) == (425_00, 100_00, 212_50)
    assert result.tardiness_deduction == 62_50
    assert result.total_deductions == 425_00 + 100_00 + 212_50 + 62_50


def test_items_round_half_up_to_the_centavo():
    result = calculate_payroll(_core(monthly_salary=25_000_00, tardiness_minutes=1))

    assert result.daily_rate == 1_136_36
    assert result.tardiness_deduction == 237


def test_net_is_gross_minus_deductions_and_never_clamped():
    data = PayrollInput(
        category=EmployeeCategory.INTERN,
        worked_days=0,
        cash_advances=(CashAdvanceInput(7, 500_00, 5_000_00, CutoffHalf.FIRST),),
        cash_advance_override=1_000_00,
    )

    result = calculate_payroll(data)

    assert result.net_pay == result.gross_earnings - result.total_deductions
    assert result.net_pay == -1_000_00


def test_cash_advance_is_capped_by_remaining_balance():
    data = _core(cash_advances=(CashAdvanceInput(1, 1_000_00, 500_00, CutoffHalf.FIRST),))

    result = calculate_payroll(data)

    assert result.cash_advance_deduction == 500_00
    assert [(a.advance_id, a.amount) for a in result.cash_advance_allocations] == [(1, 500_00)]


def test_second_half_advance_only_deducts_on_second_half():
    advance = CashAdvanceInput(1, 1_000_00, 5_000_00, CutoffHalf.SECOND)

    assert calculate_payroll(_core(cash_advances=(advance,), current_half=CutoffHalf.FIRST)).cash_advance_deduction == 0
    assert (
        calculate_payroll(_core(cash_advances=(advance,), current_half=CutoffHalf.SECOND)).cash_advance_deduction
        == 1_000_00
    )
    assert is_scheduled(replace(advance, start_half=CutoffHalf.FIRST), CutoffHalf.SECOND)


def test_unapproved_advances_are_ignored():
    advance = CashAdvanceInput(1, 1_000_00, 5_000_00, CutoffHalf.FIRST, approved=False)

    assert calculate_payroll(_core(cash_advances=(advance,))).cash_advance_deduction == 0


def test_manual_override_is_spread_over_open_advances():
    advances = (
        CashAdvanceInput(1, 100_00, 200_00, CutoffHalf.FIRST),
        CashAdvanceInput(2, 100_00, 500_00, CutoffHalf.SECOND),
    )

    result = calculate_payroll(_core(cash_advances=advances, cash_advance_override=300_00))

    assert result.cash_advance_deduction == 300_00
    assert [(a.advance_id, a.amount) for a in result.cash_advance_allocations] == [(1, 200_00), (2, 100_00)]


def test_calculation_is_pure():
    data = _core(benefits=ALL_BENEFITS, ot_hours=1.5, tardiness_minutes=7)

    assert calculate_payroll(data) == calculate_payroll(data)


def test_every_category_has_a_rule():
    for category in EmployeeCategory:
        assert rule_for(category).category == category
