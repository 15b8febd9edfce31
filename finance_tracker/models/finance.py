"""
Core Data Models for Finance Tracker

These models define the schemas for every document the data manager
persists. They are designed to:
1. Enforce the entity invariants at runtime (positive amounts, due days, ...)
2. Read and write the exact camelCase JSON layout of the data folder
3. Keep create payloads, patch payloads and stored entities distinct

DESIGN DECISION: Python attributes are snake_case, the persisted JSON is
camelCase. An alias generator maps between them, so documents written by
earlier versions of the app load unchanged.

NaN and infinity are rejected for every number: they have no standard JSON
form, and a stored NaN would make the whole record unreadable.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a money movement."""
    INCOME = "income"
    EXPENSE = "expense"


class Recurrence(str, Enum):
    """Informational recurrence flag on a transaction."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class OccurrenceKind(str, Enum):
    """Source of a projected bill occurrence."""
    FIXED = "fixed"
    INSTALLMENT = "installment"


# =============================================================================
# BASE
# =============================================================================

class DocumentModel(BaseModel):
    """Base for everything that is stored in, or read from, a JSON document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        allow_inf_nan=False,
    )

    def to_document(self) -> dict:
        """
        Convert to the JSON-ready dict written to disk.

        Unset optional fields (None) are omitted, matching the
        layout of the original documents.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def month_key_of(value: dt.date) -> str:
    """YYYY-MM key of the month a date falls in."""
    return f"{value.year:04d}-{value.month:02d}"


def _truncate_to_date(v):
    # Legacy records may carry a full ISO timestamp
    if isinstance(v, str) and len(v) > 10 and v[10] in "T ":
        return v[:10]
    return v


# =============================================================================
# SETTINGS
# =============================================================================

class Category(DocumentModel):
    """A spending/income category. Referenced by id only."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#64748b")
    icon: str = Field(default="Circle")


class Tag(DocumentModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)


class AppSettings(DocumentModel):
    """
    User-level settings singleton.

    Read and written wholesale; there is no per-field API.
    """

    theme: Theme = Field(default=Theme.SYSTEM)
    monthly_budget_limit: float = Field(
        default=3000,
        ge=0,
        description="Monthly spending limit shown on the dashboard"
    )
    categories: list[Category] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)


DEFAULT_CATEGORIES = (
    ("cat-1", "Alimentação", "#22c55e", "UtensilsCrossed"),
    ("cat-2", "Transporte", "#3b82f6", "Car"),
    ("cat-3", "Moradia", "#8b5cf6", "Home"),
    ("cat-4", "Saúde", "#ef4444", "Heart"),
    ("cat-5", "Lazer", "#eab308", "Gamepad2"),
    ("cat-6", "Outros", "#64748b", "Circle"),
)


def default_app_settings() -> AppSettings:
    """Build a fresh copy of the first-run settings."""
    return AppSettings(
        theme=Theme.SYSTEM,
        monthly_budget_limit=3000,
        categories=[
            Category(id=cat_id, name=name, color=color, icon=icon)
            for cat_id, name, color, icon in DEFAULT_CATEGORIES
        ],
        tags=[],
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionFields(DocumentModel):
    """Fields a caller supplies when recording a transaction."""

    date: dt.date = Field(
        ...,
        description="Day the money moved; decides the month document"
    )
    description: str = Field(default="", max_length=500)
    amount: float = Field(
        ...,
        gt=0,
        description="Always positive; direction comes from `type`"
    )
    type: TransactionType
    category_id: str = Field(..., min_length=1)
    tag_ids: list[str] = Field(default_factory=list)
    recurring: Optional[Recurrence] = None

    @field_validator("date", mode="before")
    @classmethod
    def strip_time_component(cls, v):
        return _truncate_to_date(v)


class TransactionCreate(TransactionFields):
    """Payload for adding a transaction (no id yet)."""


class Transaction(TransactionFields):
    """
    A recorded transaction.

    The id is generated at creation and never changes. The record lives
    in the month document matching `date`.
    """

    id: str = Field(..., min_length=1)
    created_at: Optional[dt.datetime] = None

    @property
    def month_key(self) -> str:
        return month_key_of(self.date)


class TransactionPatch(DocumentModel):
    """Partial update. Unknown keys (including `id`) are ignored."""

    date: Optional[dt.date] = None
    description: Optional[str] = Field(default=None, max_length=500)
    amount: Optional[float] = Field(default=None, gt=0)
    type: Optional[TransactionType] = None
    category_id: Optional[str] = Field(default=None, min_length=1)
    tag_ids: Optional[list[str]] = None
    recurring: Optional[Recurrence] = None

    @field_validator("date", mode="before")
    @classmethod
    def strip_time_component(cls, v):
        return _truncate_to_date(v)


class BulkTransactionPatch(DocumentModel):
    """The only fields a bulk update may touch."""

    category_id: Optional[str] = Field(default=None, min_length=1)
    tag_ids: Optional[list[str]] = None


# =============================================================================
# GOALS
# =============================================================================

class GoalDeposit(DocumentModel):
    """
    One entry of a goal's deposit log.

    `link_pending` is True only between the two writes of a linked
    deposit: the deposit is recorded but its expense transaction has not
    been back-filled yet.
    """

    date: dt.date
    amount: float
    transaction_id: Optional[str] = None
    link_pending: Optional[bool] = None

    @field_validator("date", mode="before")
    @classmethod
    def strip_time_component(cls, v):
        return _truncate_to_date(v)

    @property
    def is_link_pending(self) -> bool:
        return bool(self.link_pending) and not self.transaction_id


class GoalFields(DocumentModel):
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: float = Field(..., gt=0)
    current_amount: float = Field(default=0, ge=0)
    deadline: str = Field(
        default="",
        description="Free-form target date (YYYY-MM-DD or empty)"
    )


class GoalCreate(GoalFields):
    """Payload for adding a goal (no id, no history)."""


class Goal(GoalFields):
    """
    A savings goal.

    `current_amount` is the sum of deposits plus any direct override.
    A goal is completed only through mark-as-paid.
    """

    id: str = Field(..., min_length=1)
    deposit_history: list[GoalDeposit] = Field(default_factory=list)
    completed_at: Optional[dt.datetime] = None
    completion_transaction_id: Optional[str] = None
    completion_link_pending: Optional[bool] = None

    @field_validator("deposit_history", mode="before")
    @classmethod
    def default_history(cls, v):
        return [] if v is None else v

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


class GoalPatch(DocumentModel):
    """Partial update. `deposit_history` is append-only and not patchable."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    target_amount: Optional[float] = Field(default=None, gt=0)
    current_amount: Optional[float] = Field(default=None, ge=0)
    deadline: Optional[str] = None
    completed_at: Optional[dt.datetime] = None


class DepositResult(DocumentModel):
    """Outcome of a goal deposit or completion."""

    goal: Goal
    transaction: Optional[Transaction] = None


# =============================================================================
# RECURRING OBLIGATIONS
# =============================================================================

class FixedBillFields(DocumentModel):
    name: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., gt=0)
    type: TransactionType = Field(default=TransactionType.EXPENSE)
    category_id: str = Field(..., min_length=1)
    due_day: int = Field(..., ge=1, le=31)
    active: bool = Field(default=True)
    tag_ids: list[str] = Field(default_factory=list)


class FixedBillCreate(FixedBillFields):
    pass


class FixedBill(FixedBillFields):
    """
    A monthly recurring bill (or salary, when type is income).

    Pure template: it never creates transactions by itself.
    """

    id: str = Field(..., min_length=1)


class FixedBillPatch(DocumentModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[float] = Field(default=None, gt=0)
    type: Optional[TransactionType] = None
    category_id: Optional[str] = Field(default=None, min_length=1)
    due_day: Optional[int] = Field(default=None, ge=1, le=31)
    active: Optional[bool] = None
    tag_ids: Optional[list[str]] = None


class InstallmentDebtFields(DocumentModel):
    name: str = Field(..., min_length=1, max_length=200)
    total_amount: float = Field(..., gt=0)
    installments: int = Field(..., ge=1)
    first_due_month: str = Field(
        ...,
        pattern=MONTH_KEY_PATTERN,
        description="Month of the first installment (YYYY-MM)"
    )
    due_day: int = Field(..., ge=1, le=31)
    category_id: str = Field(..., min_length=1)
    tag_ids: list[str] = Field(default_factory=list)


class InstallmentDebtCreate(InstallmentDebtFields):
    pass


class InstallmentDebt(InstallmentDebtFields):
    """A purchase paid in N monthly installments."""

    id: str = Field(..., min_length=1)

    @property
    def installment_amount(self) -> float:
        # Plain float division; remainder cents are not redistributed
        return self.total_amount / self.installments


class InstallmentDebtPatch(DocumentModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    total_amount: Optional[float] = Field(default=None, gt=0)
    installments: Optional[int] = Field(default=None, ge=1)
    first_due_month: Optional[str] = Field(default=None, pattern=MONTH_KEY_PATTERN)
    due_day: Optional[int] = Field(default=None, ge=1, le=31)
    category_id: Optional[str] = Field(default=None, min_length=1)
    tag_ids: Optional[list[str]] = None


# =============================================================================
# PROJECTION MODELS
# =============================================================================

class FutureBillItem(DocumentModel):
    """
    One projected occurrence of a fixed bill or installment.

    The id is the key stored in the paid-marker set.
    """

    id: str
    type: OccurrenceKind
    month_key: str
    due_day: int
    due_date: dt.date
    name: str
    amount: float
    category_id: str
    installment_label: Optional[str] = None
    source_id: str


class MonthProjection(DocumentModel):
    """Expected cash flow for one month of the projection horizon."""

    month_key: str
    total_expenses: float = 0
    total_income: float = 0
    items: list[FutureBillItem] = Field(default_factory=list)

    @property
    def balance(self) -> float:
        return self.total_income - self.total_expenses


# =============================================================================
# VALIDATION & MIGRATION
# =============================================================================

class ValidationIssue(BaseModel):
    """A single invalid field found in caller input."""

    field: str = Field(..., description="Field with the issue")
    issue_type: str = Field(..., description="Type of issue (e.g. 'greater_than')")
    message: str = Field(..., description="Human-readable description")


class MigrationReport(DocumentModel):
    """What a startup migration run imported."""

    transactions_imported: int = 0
    transactions_skipped: int = 0
    goals_imported: int = 0

    @property
    def migrated(self) -> bool:
        return self.transactions_imported > 0 or self.goals_imported > 0
