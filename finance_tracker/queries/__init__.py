"""Read-side computations over stored data."""

from finance_tracker.queries.projection import (
    add_months,
    build_future_items,
    build_month_projections,
    clamp_due_day,
    current_month_key,
    month_key_of,
    project_fixed_bill,
    project_installment_debt,
    toggle_paid_marker,
)

__all__ = [
    "add_months",
    "build_future_items",
    "build_month_projections",
    "clamp_due_day",
    "current_month_key",
    "month_key_of",
    "project_fixed_bill",
    "project_installment_debt",
    "toggle_paid_marker",
]
