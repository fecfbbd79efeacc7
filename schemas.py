from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models import PeriodType
from periods import start_of_day, to_local_naive


HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OutModel(ApiModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


def _coerce_timestamp(value):
    if isinstance(value, date) and not isinstance(value, datetime):
        return start_of_day(value)
    return value


Timestamp = Annotated[
    datetime, BeforeValidator(_coerce_timestamp), AfterValidator(to_local_naive)
]


class ExpenseSortField(str, Enum):
    date = "date"
    amount = "amount"
    name = "name"
    created_at = "createdAt"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class UserRegisterIn(ApiModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=128)


class ProfileUpdateIn(ApiModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[str] = Field(
        default=None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
    )


class PasswordChangeIn(ApiModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class AccountDeleteIn(ApiModel):
    password: str = Field(..., min_length=1)


class CategoryIn(ApiModel):
    name: str = Field(..., min_length=1, max_length=50)
    icon: Optional[str] = Field(default=None, max_length=50)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)


class CategoryUpdateIn(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    icon: Optional[str] = Field(default=None, max_length=50)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)


class ExpenseIn(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    category_id: str
    date: Optional[Timestamp] = None
    notes: Optional[str] = None


class ExpenseUpdateIn(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=12, decimal_places=2
    )
    category_id: Optional[str] = None
    date: Optional[Timestamp] = None
    notes: Optional[str] = None


class ExpenseQuery(ApiModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)
    sort_by: ExpenseSortField = ExpenseSortField.date
    order: SortOrder = SortOrder.desc
    category_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_amount: Optional[Decimal] = Field(default=None, ge=0)


class BudgetIn(ApiModel):
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    period_type: PeriodType
    start_date: date
    end_date: Optional[date] = None


class BudgetUpdateIn(ApiModel):
    amount: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=12, decimal_places=2
    )
    period_type: Optional[PeriodType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class ProfileOut(OutModel):
    id: str
    username: str
    email: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CategorySnapshotOut(OutModel):
    id: str
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None


class CategoryOut(CategorySnapshotOut):
    is_default: bool
    user_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ExpenseOut(OutModel):
    id: str
    name: str
    amount: float
    date: datetime
    notes: Optional[str] = None
    category_id: str
    category: CategorySnapshotOut
    created_at: datetime
    updated_at: datetime


class BudgetOut(OutModel):
    id: str
    amount: float
    period_type: PeriodType
    start_date: date
    end_date: date
    is_active: bool
    created_at: datetime
    updated_at: datetime


class BudgetStatusOut(OutModel):
    budget_id: str
    amount: float
    period_type: PeriodType
    start_date: date
    end_date: date
    spent: float
    remaining: float
    percentage: float
    days_remaining: int
    is_over_budget: bool


class PeriodSummaryOut(OutModel):
    date: str
    total: float
    count: int


class CategorySummaryOut(OutModel):
    category_id: str
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    total: float
    count: int
    percentage: float


class CategoryBreakdownOut(OutModel):
    category: CategorySnapshotOut
    total: float
    count: int
    percentage: float


class DashboardOut(OutModel):
    today_total: float
    week_total: float
    month_total: float
    top_categories: list[CategorySummaryOut]
    recent_expenses: list[ExpenseOut]
    budget_status: Optional[BudgetStatusOut] = None
    average_daily_spending: float


class PaginationOut(OutModel):
    total: int
    page: int
    limit: int
    total_pages: int
