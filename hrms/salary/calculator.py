"""Pure payroll arithmetic — no database access.

Every monetary line is computed in ``Decimal`` and quantized to cents with
ROUND_HALF_UP before it is summed, so stored totals always add up exactly.
Net pay is clamped at zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Sequence

from hrms.common.constants import SALARY_CONFIG_DEFAULTS, AdjustmentType, ComponentType

CENT = Decimal("0.01")
ZERO = Decimal("0")
MINUTES_PER_WORKDAY = 480


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class SalaryConfig:
    tax_rate: Decimal
    absence_deduction_per_day: Decimal
    latency_deduction_per_minute: Decimal
    overtime_rate_multiplier: Decimal
    working_days_per_month: int
    grace_period_minutes: int

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "SalaryConfig":
        """Build from stored key/value strings, falling back to the defaults."""
        merged = {**SALARY_CONFIG_DEFAULTS, **values}
        return cls(
            tax_rate=Decimal(merged["tax_rate"]),
            absence_deduction_per_day=Decimal(merged["absence_deduction_per_day"]),
            latency_deduction_per_minute=Decimal(merged["latency_deduction_per_minute"]),
            overtime_rate_multiplier=Decimal(merged["overtime_rate_multiplier"]),
            working_days_per_month=int(Decimal(merged["working_days_per_month"])),
            grace_period_minutes=int(Decimal(merged["grace_period_minutes"])),
        )


@dataclass(frozen=True)
class ComponentLine:
    component_type: ComponentType
    amount: Decimal
    is_percentage: bool = False


@dataclass(frozen=True)
class AdjustmentLine:
    adjustment_type: AdjustmentType
    amount: Decimal


@dataclass(frozen=True)
class SalaryInputs:
    base_salary: Decimal
    absent_days: int = 0
    late_minutes: Sequence[int] = field(default_factory=tuple)
    overtime_minutes: int = 0
    components: Sequence[ComponentLine] = field(default_factory=tuple)
    adjustments: Sequence[AdjustmentLine] = field(default_factory=tuple)


@dataclass(frozen=True)
class SalaryBreakdown:
    base_salary: Decimal
    total_bonuses: Decimal
    total_allowances: Decimal
    overtime_pay: Decimal
    absence_deductions: Decimal
    lateness_deductions: Decimal
    tax_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    gross_salary: Decimal
    net_salary: Decimal
    deductible_late_minutes: int


def component_amount(line: ComponentLine, base_salary: Decimal) -> Decimal:
    if line.is_percentage:
        return base_salary * line.amount / 100
    return line.amount


def calculate_salary(inputs: SalaryInputs, config: SalaryConfig) -> SalaryBreakdown:
    """Aggregate one employee-month into gross, deductions and net pay."""
    base = Decimal(inputs.base_salary)
    if config.working_days_per_month > 0:
        daily_rate = base / config.working_days_per_month
    else:
        daily_rate = ZERO
    minute_rate = daily_rate / MINUTES_PER_WORKDAY

    bonuses = allowances = other = adjustment_overtime = ZERO
    for line in inputs.components:
        amount = component_amount(line, base)
        if line.component_type == ComponentType.bonus:
            bonuses += amount
        elif line.component_type == ComponentType.allowance:
            allowances += amount
        else:
            other += amount

    for adj in inputs.adjustments:
        if adj.adjustment_type == AdjustmentType.deduction:
            other += adj.amount
        elif adj.adjustment_type == AdjustmentType.overtime:
            adjustment_overtime += adj.amount
        else:
            bonuses += adj.amount

    per_day = config.absence_deduction_per_day or daily_rate
    absence = per_day * inputs.absent_days

    deductible_late = sum(max(0, m - config.grace_period_minutes) for m in inputs.late_minutes)
    lateness = config.latency_deduction_per_minute * deductible_late

    overtime = (
        inputs.overtime_minutes * minute_rate * config.overtime_rate_multiplier
        + adjustment_overtime
    )

    base_q = money(base)
    bonuses_q = money(bonuses)
    allowances_q = money(allowances)
    overtime_q = money(overtime)
    gross = base_q + bonuses_q + allowances_q + overtime_q

    absence_q = money(absence)
    lateness_q = money(lateness)
    other_q = money(other)
    tax_q = money(gross * config.tax_rate / 100)
    total_deductions = absence_q + lateness_q + tax_q + other_q

    return SalaryBreakdown(
        base_salary=base_q,
        total_bonuses=bonuses_q,
        total_allowances=allowances_q,
        overtime_pay=overtime_q,
        absence_deductions=absence_q,
        lateness_deductions=lateness_q,
        tax_deduction=tax_q,
        other_deductions=other_q,
        total_deductions=total_deductions,
        gross_salary=gross,
        net_salary=max(ZERO.quantize(CENT), gross - total_deductions),
        deductible_late_minutes=deductible_late,
    )
