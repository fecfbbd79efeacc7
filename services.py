from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from config import get_settings
from identity import hash_password, verify_password
from models import Budget, Category, Expense, PeriodType, User
from periods import (
    Period,
    add_months,
    days_in_month,
    local_now,
    month_start,
    start_of_day,
)
from schemas import (
    BudgetIn,
    BudgetUpdateIn,
    CategoryIn,
    CategoryUpdateIn,
    ExpenseIn,
    ExpenseSortField,
    ExpenseUpdateIn,
    PasswordChangeIn,
    ProfileUpdateIn,
    SortOrder,
    UserRegisterIn,
)


logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
RECENT_MAX_LIMIT = 20
DASHBOARD_TOP_CATEGORIES = 5
DASHBOARD_RECENT_EXPENSES = 5


class ServiceError(ValueError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class ForbiddenError(ServiceError):
    status_code = 403


class ConflictError(ServiceError):
    status_code = 409


class BadRequestError(ServiceError):
    status_code = 400


class UnauthorizedError(ServiceError):
    status_code = 401


def _to_decimal(value: object) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value: object) -> float:
    return float(_to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def percentage_of(part: object, whole: object) -> float:
    whole_dec = _to_decimal(whole)
    if whole_dec <= 0:
        return 0.0
    return round2(_to_decimal(part) / whole_dec * 100)


SQLSTATE_VIOLATIONS = {
    "23505": "unique",
    "23P01": "exclusion",
    "23503": "foreign_key",
}


def _violation_kind(exc: IntegrityError) -> Optional[str]:
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return SQLSTATE_VIOLATIONS.get(code)
    message = str(orig)
    if "UNIQUE constraint failed" in message:
        return "unique"
    if "FOREIGN KEY constraint failed" in message:
        return "foreign_key"
    return None


def _commit(
    session: Session, error: ServiceError, *, kinds: tuple[str, ...] = ("unique",)
) -> None:
    """Commit, translating only the expected constraint violations into ``error``.

    Any other integrity failure is rolled back and re-raised unchanged.
    """
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if _violation_kind(exc) in kinds:
            raise error from exc
        raise


def _require_user(session: Session, user_id: str) -> None:
    if session.get(User, user_id) is None:
        raise NotFoundError("User not found")


def _visible_to(user_id: str):
    return or_(
        Category.user_id == user_id,
        and_(Category.user_id.is_(None), Category.is_default.is_(True)),
    )


@dataclass(frozen=True)
class CategorySnapshot:
    id: str
    name: str
    icon: Optional[str]
    color: Optional[str]


@dataclass
class ExpenseFilters:
    category_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None

    @property
    def period(self) -> Period:
        return Period(self.start_date, self.end_date)

    def apply(self, stmt):
        if self.category_id is not None:
            stmt = stmt.where(Expense.category_id == self.category_id)
        lower = self.period.lower_bound()
        if lower is not None:
            stmt = stmt.where(Expense.date >= lower)
        upper = self.period.upper_bound()
        if upper is not None:
            stmt = stmt.where(Expense.date < upper)
        if self.min_amount is not None:
            stmt = stmt.where(Expense.amount >= self.min_amount)
        if self.max_amount is not None:
            stmt = stmt.where(Expense.amount <= self.max_amount)
        return stmt


@dataclass
class ExpensePage:
    items: list[Expense]
    total: int
    page: int
    limit: int
    total_pages: int


@dataclass(frozen=True)
class BudgetStatus:
    budget_id: str
    amount: Decimal
    period_type: PeriodType
    start_date: date
    end_date: date
    spent: Decimal
    remaining: Decimal
    percentage: float
    days_remaining: int
    is_over_budget: bool


@dataclass
class PeriodSummary:
    date: str
    total: Decimal = Decimal("0")
    count: int = 0


@dataclass
class CategorySummary:
    category_id: str
    name: str
    icon: Optional[str]
    color: Optional[str]
    total: Decimal
    count: int
    percentage: float


@dataclass
class CategoryBreakdown:
    category: CategorySnapshot
    total: Decimal
    count: int
    percentage: float


@dataclass
class Dashboard:
    today_total: Decimal
    week_total: Decimal
    month_total: Decimal
    top_categories: list[CategorySummary] = field(default_factory=list)
    recent_expenses: list[Expense] = field(default_factory=list)
    budget_status: Optional[BudgetStatus] = None
    average_daily_spending: float = 0.0


class CategoryService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def list_all(self) -> list[Category]:
        stmt = (
            select(Category)
            .where(_visible_to(self.user_id))
            .order_by(Category.is_default.desc(), Category.name.asc())
        )
        return self.session.scalars(stmt).all()

    def get(self, category_id: str) -> Category:
        category = self.session.scalar(
            select(Category).where(
                Category.id == category_id, _visible_to(self.user_id)
            )
        )
        if not category:
            raise NotFoundError("Category not found")
        return category

    def create(self, data: CategoryIn) -> Category:
        _require_user(self.session, self.user_id)
        name = data.name.strip()
        if not name:
            raise BadRequestError("Category name cannot be empty")

        existing = self.session.scalar(
            select(Category.id).where(
                Category.name == name,
                or_(Category.user_id == self.user_id, Category.user_id.is_(None)),
            )
        )
        if existing:
            raise ConflictError("Category with this name already exists")

        category = Category(
            user_id=self.user_id,
            name=name,
            icon=data.icon,
            color=data.color,
            is_default=False,
        )
        self.session.add(category)
        _commit(self.session, ConflictError("Category with this name already exists"))
        self.session.refresh(category)
        logger.info(
            f"category_created: user_id={self.user_id} category_id={category.id}"
        )
        return category

    def update(self, category_id: str, data: CategoryUpdateIn) -> Category:
        category = self.session.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        if category.is_default or category.user_id != self.user_id:
            raise ForbiddenError("You do not have permission to update this category")

        changes = data.model_dump(exclude_unset=True)
        name = changes.pop("name", None)
        if name is not None:
            name = name.strip()
            if not name:
                raise BadRequestError("Category name cannot be empty")
            clash = self.session.scalar(
                select(Category.id).where(
                    Category.user_id == self.user_id,
                    Category.name == name,
                    Category.id != category_id,
                )
            )
            if clash:
                raise ConflictError("Category with this name already exists")
            category.name = name
        for key, value in changes.items():
            setattr(category, key, value)

        _commit(self.session, ConflictError("Category with this name already exists"))
        self.session.refresh(category)
        logger.info(
            f"category_updated: user_id={self.user_id} category_id={category.id}"
        )
        return category

    def delete(self, category_id: str) -> None:
        category = self.session.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        if category.is_default:
            raise ForbiddenError("Default categories cannot be deleted")
        if category.user_id != self.user_id:
            raise ForbiddenError("You do not have permission to delete this category")

        in_use = self.session.execute(
            select(func.count(Expense.id)).where(Expense.category_id == category.id)
        ).scalar_one()
        if in_use:
            raise ConflictError("Category is used by existing expenses")

        self.session.delete(category)
        _commit(
            self.session,
            ConflictError("Category is used by existing expenses"),
            kinds=("foreign_key",),
        )
        logger.info(
            f"category_deleted: user_id={self.user_id} category_id={category_id}"
        )


class ExpenseService:
    SORT_COLUMNS = {
        ExpenseSortField.date: Expense.date,
        ExpenseSortField.amount: Expense.amount,
        ExpenseSortField.name: Expense.name,
        ExpenseSortField.created_at: Expense.created_at,
    }

    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def create(self, data: ExpenseIn, *, now: Optional[datetime] = None) -> Expense:
        _require_user(self.session, self.user_id)
        category = CategoryService(self.session, self.user_id).get(data.category_id)
        expense = Expense(
            user_id=self.user_id,
            category_id=category.id,
            name=data.name,
            amount=data.amount,
            date=data.date or now or local_now(),
            notes=data.notes,
        )
        expense.category = category
        self.session.add(expense)
        self.session.commit()
        self.session.refresh(expense)
        logger.info(
            f"expense_created: user_id={self.user_id} expense_id={expense.id} "
            f"amount={expense.amount}"
        )
        return expense

    def get(self, expense_id: str) -> Expense:
        stmt = (
            select(Expense)
            .options(joinedload(Expense.category))
            .where(Expense.id == expense_id, Expense.user_id == self.user_id)
        )
        expense = self.session.scalar(stmt)
        if not expense:
            raise NotFoundError("Expense not found")
        return expense

    def list(
        self,
        filters: Optional[ExpenseFilters] = None,
        *,
        page: int = 1,
        limit: int = 10,
        sort_by: ExpenseSortField = ExpenseSortField.date,
        order: SortOrder = SortOrder.desc,
    ) -> ExpensePage:
        filters = filters or ExpenseFilters()
        page = max(page, 1)
        limit = min(max(limit, 1), get_settings().pagination_max_limit)

        count_stmt = filters.apply(
            select(func.count(Expense.id)).where(Expense.user_id == self.user_id)
        )
        total = int(self.session.execute(count_stmt).scalar_one() or 0)

        column = self.SORT_COLUMNS[sort_by]
        ordering = column.asc() if order == SortOrder.asc else column.desc()
        stmt = filters.apply(
            select(Expense)
            .options(joinedload(Expense.category))
            .where(Expense.user_id == self.user_id)
        )
        stmt = (
            stmt.order_by(ordering, Expense.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = self.session.scalars(stmt).all()
        return ExpensePage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )

    def recent(self, limit: int = 5) -> list[Expense]:
        limit = min(max(limit, 1), RECENT_MAX_LIMIT)
        stmt = (
            select(Expense)
            .options(joinedload(Expense.category))
            .where(Expense.user_id == self.user_id)
            .order_by(Expense.date.desc(), Expense.id.desc())
            .limit(limit)
        )
        return self.session.scalars(stmt).all()

    def update(self, expense_id: str, data: ExpenseUpdateIn) -> Expense:
        expense = self.session.get(Expense, expense_id)
        if not expense:
            raise NotFoundError("Expense not found")
        if expense.user_id != self.user_id:
            raise ForbiddenError("You do not have permission to update this expense")

        changes = data.model_dump(exclude_unset=True)
        category_id = changes.pop("category_id", None)
        if category_id is not None:
            category = CategoryService(self.session, self.user_id).get(category_id)
            expense.category_id = category.id
            expense.category = category
        for key in ("name", "amount", "date"):
            value = changes.pop(key, None)
            if value is not None:
                setattr(expense, key, value)
        if "notes" in changes:
            expense.notes = changes["notes"]

        self.session.commit()
        self.session.refresh(expense)
        logger.info(f"expense_updated: user_id={self.user_id} expense_id={expense.id}")
        return expense

    def delete(self, expense_id: str) -> None:
        expense = self.session.get(Expense, expense_id)
        if not expense:
            raise NotFoundError("Expense not found")
        if expense.user_id != self.user_id:
            raise ForbiddenError("You do not have permission to delete this expense")
        self.session.delete(expense)
        self.session.commit()
        logger.info(f"expense_deleted: user_id={self.user_id} expense_id={expense_id}")

    def total_between(
        self, lower: Optional[datetime], upper: Optional[datetime] = None
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(Expense.amount), 0)).where(
            Expense.user_id == self.user_id
        )
        if lower is not None:
            stmt = stmt.where(Expense.date >= lower)
        if upper is not None:
            stmt = stmt.where(Expense.date < upper)
        return _to_decimal(self.session.execute(stmt).scalar_one())


class BudgetService:
    OVERLAP_MESSAGE = "An active budget already exists for an overlapping period"
    DATE_RANGE_MESSAGE = "End date must be after start date"

    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    @staticmethod
    def default_end_date(start: date, period_type: PeriodType) -> date:
        if period_type == PeriodType.weekly:
            end = start + timedelta(days=7)
        else:
            end = add_months(start, 1)
        return end - timedelta(days=1)

    def _find_overlapping(self, start: date, end: date) -> Optional[Budget]:
        stmt = (
            select(Budget)
            .where(
                Budget.user_id == self.user_id,
                Budget.is_active.is_(True),
                or_(
                    and_(Budget.start_date <= start, Budget.end_date >= start),
                    and_(Budget.start_date <= end, Budget.end_date >= end),
                    and_(Budget.start_date >= start, Budget.end_date <= end),
                ),
            )
            .limit(1)
        )
        return self.session.scalar(stmt)

    def create(self, data: BudgetIn) -> Budget:
        _require_user(self.session, self.user_id)
        start = data.start_date
        end = data.end_date or self.default_end_date(start, data.period_type)
        if end <= start:
            raise BadRequestError(self.DATE_RANGE_MESSAGE)

        if self._find_overlapping(start, end):
            raise BadRequestError(self.OVERLAP_MESSAGE)

        budget = Budget(
            user_id=self.user_id,
            amount=data.amount,
            period_type=data.period_type,
            start_date=start,
            end_date=end,
            is_active=True,
        )
        self.session.add(budget)
        _commit(
            self.session, BadRequestError(self.OVERLAP_MESSAGE), kinds=("exclusion",)
        )
        self.session.refresh(budget)
        logger.info(
            f"budget_created: user_id={self.user_id} budget_id={budget.id} "
            f"start={start.isoformat()} end={end.isoformat()}"
        )
        return budget

    def list_all(self, is_active: Optional[bool] = None) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(Budget.user_id == self.user_id)
            .order_by(Budget.start_date.desc())
        )
        if is_active is not None:
            stmt = stmt.where(Budget.is_active.is_(is_active))
        return self.session.scalars(stmt).all()

    def get(self, budget_id: str) -> Budget:
        budget = self.session.scalar(
            select(Budget).where(Budget.id == budget_id, Budget.user_id == self.user_id)
        )
        if not budget:
            raise NotFoundError("Budget not found")
        return budget

    def find_current(self, *, now: Optional[datetime] = None) -> Optional[BudgetStatus]:
        now = now or local_now()
        today = now.date()
        budget = self.session.scalar(
            select(Budget)
            .where(
                Budget.user_id == self.user_id,
                Budget.is_active.is_(True),
                Budget.start_date <= today,
                Budget.end_date >= today,
            )
            .order_by(Budget.start_date.desc())
            .limit(1)
        )
        if not budget:
            return None
        return self._status(budget, now)

    def get_status(
        self, budget_id: str, *, now: Optional[datetime] = None
    ) -> BudgetStatus:
        budget = self.get(budget_id)
        return self._status(budget, now or local_now())

    def _status(self, budget: Budget, now: datetime) -> BudgetStatus:
        period = Period(budget.start_date, budget.end_date)
        spent = ExpenseService(self.session, self.user_id).total_between(
            period.lower_bound(), period.upper_bound()
        )
        amount = _to_decimal(budget.amount)
        seconds_left = (start_of_day(budget.end_date) - now).total_seconds()
        return BudgetStatus(
            budget_id=budget.id,
            amount=amount,
            period_type=budget.period_type,
            start_date=budget.start_date,
            end_date=budget.end_date,
            spent=spent,
            remaining=amount - spent,
            percentage=percentage_of(spent, amount),
            days_remaining=max(0, math.ceil(seconds_left / 86400)),
            is_over_budget=spent > amount,
        )

    def update(self, budget_id: str, data: BudgetUpdateIn) -> Budget:
        budget = self.session.get(Budget, budget_id)
        if not budget:
            raise NotFoundError("Budget not found")
        if budget.user_id != self.user_id:
            raise ForbiddenError("You do not have permission to update this budget")

        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        start = changes.get("start_date", budget.start_date)
        end = changes.get("end_date", budget.end_date)
        if end <= start:
            raise BadRequestError(self.DATE_RANGE_MESSAGE)

        # overlap against other active budgets is intentionally not re-checked here
        for key, value in changes.items():
            setattr(budget, key, value)
        _commit(
            self.session, BadRequestError(self.OVERLAP_MESSAGE), kinds=("exclusion",)
        )
        self.session.refresh(budget)
        logger.info(f"budget_updated: user_id={self.user_id} budget_id={budget.id}")
        return budget

    def delete(self, budget_id: str) -> None:
        budget = self.session.get(Budget, budget_id)
        if not budget:
            raise NotFoundError("Budget not found")
        if budget.user_id != self.user_id:
            raise ForbiddenError("You do not have permission to delete this budget")
        self.session.delete(budget)
        self.session.commit()
        logger.info(f"budget_deleted: user_id={self.user_id} budget_id={budget_id}")


class StatisticsService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id
        self.expenses = ExpenseService(session, user_id)

    def _category_totals(
        self, lower: Optional[datetime], upper: Optional[datetime] = None
    ):
        total = func.sum(Expense.amount)
        stmt = (
            select(
                Category.id.label("category_id"),
                Category.name.label("name"),
                Category.icon.label("icon"),
                Category.color.label("color"),
                func.coalesce(total, 0).label("total"),
                func.count(Expense.id).label("count"),
            )
            .join(Category, Category.id == Expense.category_id)
            .where(Expense.user_id == self.user_id)
            .group_by(Category.id, Category.name, Category.icon, Category.color)
            .order_by(total.desc(), Category.name.asc())
        )
        if lower is not None:
            stmt = stmt.where(Expense.date >= lower)
        if upper is not None:
            stmt = stmt.where(Expense.date < upper)
        return self.session.execute(stmt).all()

    def _expenses_between(
        self, lower: datetime, upper: Optional[datetime] = None
    ) -> list[Expense]:
        stmt = (
            select(Expense)
            .where(Expense.user_id == self.user_id, Expense.date >= lower)
            .order_by(Expense.date.asc(), Expense.id.asc())
        )
        if upper is not None:
            stmt = stmt.where(Expense.date < upper)
        return self.session.scalars(stmt).all()

    @staticmethod
    def _bucket(expenses: list[Expense], key) -> list[PeriodSummary]:
        buckets: dict[str, PeriodSummary] = {}
        for expense in expenses:
            label = key(expense.date)
            summary = buckets.setdefault(label, PeriodSummary(date=label))
            summary.total += _to_decimal(expense.amount)
            summary.count += 1
        return sorted(buckets.values(), key=lambda s: s.date)

    def get_dashboard(self, *, now: Optional[datetime] = None) -> Dashboard:
        now = now or local_now()
        today_start = start_of_day(now.date())
        week_start = now - timedelta(days=7)
        month_begin = start_of_day(month_start(now.date()))

        today_total = self.expenses.total_between(today_start)
        week_total = self.expenses.total_between(week_start)
        month_total = self.expenses.total_between(month_begin)

        top_categories = [
            CategorySummary(
                category_id=row.category_id,
                name=row.name,
                icon=row.icon,
                color=row.color,
                total=_to_decimal(row.total),
                count=int(row.count),
                percentage=percentage_of(row.total, month_total),
            )
            for row in self._category_totals(month_begin)[:DASHBOARD_TOP_CATEGORIES]
        ]

        month_days = days_in_month(now.year, now.month)
        return Dashboard(
            today_total=today_total,
            week_total=week_total,
            month_total=month_total,
            top_categories=top_categories,
            recent_expenses=self.expenses.recent(DASHBOARD_RECENT_EXPENSES),
            budget_status=BudgetService(self.session, self.user_id).find_current(
                now=now
            ),
            average_daily_spending=round2(month_total / month_days),
        )

    def get_daily_statistics(
        self, start_date: date, end_date: date
    ) -> list[PeriodSummary]:
        if end_date < start_date:
            raise BadRequestError("Start date must be before end date")
        period = Period(start_date, end_date)
        expenses = self._expenses_between(period.lower_bound(), period.upper_bound())
        return self._bucket(expenses, lambda ts: ts.date().isoformat())

    def get_monthly_statistics(
        self, months: int = 6, *, now: Optional[datetime] = None
    ) -> list[PeriodSummary]:
        if months < 1:
            raise BadRequestError("Months must be at least 1")
        now = now or local_now()
        first_month = add_months(month_start(now.date()), -(months - 1))
        expenses = self._expenses_between(start_of_day(first_month))
        return self._bucket(expenses, lambda ts: f"{ts.year}-{ts.month:02d}")

    def get_category_statistics(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[CategoryBreakdown]:
        if start_date and end_date and end_date < start_date:
            raise BadRequestError("Start date must be before end date")
        period = Period(start_date, end_date)
        rows = self._category_totals(period.lower_bound(), period.upper_bound())
        grand_total = sum((_to_decimal(row.total) for row in rows), Decimal("0"))
        return [
            CategoryBreakdown(
                category=CategorySnapshot(
                    id=row.category_id, name=row.name, icon=row.icon, color=row.color
                ),
                total=_to_decimal(row.total),
                count=int(row.count),
                percentage=percentage_of(row.total, grand_total),
            )
            for row in rows
        ]


class UserService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _ensure_unique(
        self,
        *,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> None:
        def taken(column, value) -> bool:
            stmt = select(User.id).where(column == value)
            if exclude_id is not None:
                stmt = stmt.where(User.id != exclude_id)
            return self.session.scalar(stmt) is not None

        if username and taken(User.username, username):
            raise ConflictError("Username already exists")
        if email and taken(User.email, email.lower()):
            raise ConflictError("Email already exists")

    def register(self, data: UserRegisterIn) -> User:
        self._ensure_unique(username=data.username, email=data.email)
        user = User(
            username=data.username,
            email=data.email.lower(),
            password_hash=hash_password(data.password),
        )
        self.session.add(user)
        _commit(self.session, ConflictError("Username or email already exists"))
        self.session.refresh(user)
        logger.info(f"user_registered: user_id={user.id}")
        return user

    def get_profile(self, user_id: str) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: str, data: ProfileUpdateIn) -> User:
        user = self.get_profile(user_id)
        self._ensure_unique(username=data.username, email=data.email, exclude_id=user.id)
        if data.username:
            user.username = data.username
        if data.email:
            user.email = data.email.lower()

        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if _violation_kind(exc) != "unique":
                raise
            raise ConflictError("Username or email already exists") from exc
        except StaleDataError as exc:
            # row removed between read and write; other store errors propagate
            self.session.rollback()
            raise NotFoundError("User not found") from exc
        self.session.refresh(user)
        logger.info(f"profile_updated: user_id={user.id}")
        return user

    def change_password(self, user_id: str, data: PasswordChangeIn) -> None:
        user = self.get_profile(user_id)
        if not verify_password(data.current_password, user.password_hash):
            raise UnauthorizedError("Current password is incorrect")
        user.password_hash = hash_password(data.new_password)
        self.session.commit()
        logger.info(f"password_changed: user_id={user.id}")

    def delete_account(self, user_id: str, password: str) -> None:
        user = self.get_profile(user_id)
        if not verify_password(password, user.password_hash):
            raise UnauthorizedError("Password is incorrect")
        self.session.delete(user)
        self.session.commit()
        logger.info(f"account_deleted: user_id={user_id}")
