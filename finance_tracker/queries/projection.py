"""
Due-Date Projection

DESIGN DECISION: Projection is a PURE function of the stored templates.
Nothing computed here is ever persisted; the only projection-related state
on disk is the paid-marker set, keyed by the occurrence ids built here.

Rules:
- Fixed bill: occurrence i falls in month start+i, on
  min(dueDay, days in that month).
- Installment debt: occurrence i in [0, installments) falls in month
  firstDueMonth+i, same day clamping, amount totalAmount / installments.

KNOWN ARTIFACT: the installment amount is a plain float division. It is
not rounded to cents and the last installment is not adjusted, so the
occurrences do not always sum back to the total exactly.
"""

import calendar
from datetime import date
from typing import Iterable, Optional

from finance_tracker.models.finance import (
    FixedBill,
    FutureBillItem,
    InstallmentDebt,
    MonthProjection,
    OccurrenceKind,
    TransactionType,
    month_key_of,
)
from finance_tracker.validation import validate_month_key


def parse_month_key(month_key: str) -> tuple[int, int]:
    validate_month_key(month_key)
    year, month = month_key.split("-")
    return int(year), int(month)


def add_months(month_key: str, n: int) -> str:
    """Add N (possibly negative) months to a YYYY-MM key."""
    year, month = parse_month_key(month_key)
    total = year * 12 + (month - 1) + n
    return f"{total // 12:04d}-{total % 12 + 1:02d}"


def current_month_key(today: Optional[date] = None) -> str:
    return month_key_of(today or date.today())


def clamp_due_day(month_key: str, due_day: int) -> int:
    """Due day moved back to the last day of short months (31 -> 28 in Feb)."""
    year, month = parse_month_key(month_key)
    return min(due_day, calendar.monthrange(year, month)[1])


def _due_date(month_key: str, day: int) -> date:
    year, month = parse_month_key(month_key)
    return date(year, month, day)


def fixed_occurrence_id(bill_id: str, month_key: str) -> str:
    return f"{OccurrenceKind.FIXED.value}-{bill_id}-{month_key}"


def installment_occurrence_id(debt_id: str, index: int) -> str:
    return f"{OccurrenceKind.INSTALLMENT.value}-{debt_id}-{index}"


def project_fixed_bill(
    bill: FixedBill,
    horizon_months: int,
    start_month: str,
) -> list[FutureBillItem]:
    """Expand a fixed bill over `horizon_months` months from `start_month`."""
    items = []
    for i in range(max(horizon_months, 0)):
        month_key = add_months(start_month, i)
        day = clamp_due_day(month_key, bill.due_day)
        items.append(FutureBillItem(
            id=fixed_occurrence_id(bill.id, month_key),
            type=OccurrenceKind.FIXED,
            month_key=month_key,
            due_day=day,
            due_date=_due_date(month_key, day),
            name=bill.name,
            amount=bill.amount,
            category_id=bill.category_id,
            source_id=bill.id,
        ))
    return items


def project_installment_debt(debt: InstallmentDebt) -> list[FutureBillItem]:
    """Expand an installment debt into its `installments` occurrences."""
    amount = debt.installment_amount
    items = []
    for i in range(debt.installments):
        month_key = add_months(debt.first_due_month, i)
        day = clamp_due_day(month_key, debt.due_day)
        items.append(FutureBillItem(
            id=installment_occurrence_id(debt.id, i),
            type=OccurrenceKind.INSTALLMENT,
            month_key=month_key,
            due_day=day,
            due_date=_due_date(month_key, day),
            name=debt.name,
            amount=amount,
            category_id=debt.category_id,
            installment_label=f"{i + 1}/{debt.installments}",
            source_id=debt.id,
        ))
    return items


def _is_active_expense(bill: FixedBill) -> bool:
    return bill.active and bill.type != TransactionType.INCOME


def build_future_items(
    fixed_bills: Iterable[FixedBill],
    installment_debts: Iterable[InstallmentDebt],
    months_ahead: int,
    start_month: str,
) -> list[FutureBillItem]:
    """
    Every upcoming bill occurrence, sorted by month then due day.

    Active expense fixed bills are expanded over the horizon; installment
    debts are expanded in full, whatever the horizon.
    """
    items: list[FutureBillItem] = []
    for bill in fixed_bills:
        if _is_active_expense(bill):
            items.extend(project_fixed_bill(bill, months_ahead, start_month))
    for debt in installment_debts:
        items.extend(project_installment_debt(debt))
    items.sort(key=lambda item: (item.month_key, item.due_day))
    return items


def build_month_projections(
    fixed_bills: Iterable[FixedBill],
    installment_debts: Iterable[InstallmentDebt],
    months_ahead: int,
    paid_ids: Iterable[str],
    start_month: str,
) -> list[MonthProjection]:
    """
    Month-by-month expected cash flow.

    Expenses are the unpaid occurrences of each month; income is the sum
    of the active fixed income bills, the same every month.
    """
    fixed_bills = list(fixed_bills)
    paid = set(paid_ids)
    unpaid = [
        item
        for item in build_future_items(fixed_bills, installment_debts, months_ahead, start_month)
        if item.id not in paid
    ]

    by_month: dict[str, list[FutureBillItem]] = {}
    for item in unpaid:
        by_month.setdefault(item.month_key, []).append(item)

    monthly_income = sum(
        bill.amount
        for bill in fixed_bills
        if bill.active and bill.type == TransactionType.INCOME
    )

    projections = []
    for i in range(max(months_ahead, 0)):
        month_key = add_months(start_month, i)
        month_items = sorted(by_month.get(month_key, []), key=lambda item: item.due_day)
        projections.append(MonthProjection(
            month_key=month_key,
            total_expenses=sum(item.amount for item in month_items),
            total_income=monthly_income,
            items=month_items,
        ))
    return projections


def toggle_paid_marker(paid_ids: Iterable[str], item_id: str) -> list[str]:
    """
    Return the marker list with `item_id` flipped.

    Caller-side convenience: read with list, toggle, write with set_all.
    Not atomic across concurrent callers.
    """
    ids = list(paid_ids)
    if item_id in ids:
        return [existing for existing in ids if existing != item_id]
    return ids + [item_id]
