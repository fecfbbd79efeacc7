from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session

from database import Base, _enable_sqlite_pragmas
from models import User
from schemas import CategoryIn, ExpenseIn, ExpenseSortField, ExpenseUpdateIn, SortOrder
from seed import seed_default_categories
from services import (
    CategoryService,
    ExpenseFilters,
    ExpenseService,
    ForbiddenError,
    NotFoundError,
)


def _setup(session: Session) -> tuple[str, str]:
    alice = User(username="alice", email="alice@example.com", password_hash="x")
    bob = User(username="bob", email="bob@example.com", password_hash="x")
    session.add_all([alice, bob])
    seed_default_categories(session)
    session.commit()
    return alice.id, bob.id


def _default_category(session: Session, user_id: str, name: str = "Shopping"):
    return next(c for c in CategoryService(session, user_id).list_all() if c.name == name)


def test_date_defaults_to_now_and_explicit_dates_round_trip() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        alice, _ = _setup(session)
        shopping = _default_category(session, alice)
        service = ExpenseService(session, alice)
        now = datetime(2025, 3, 10, 18, 30)

        implicit = service.create(
            ExpenseIn(name="Socks", amount=Decimal("9.99"), category_id=shopping.id),
            now=now,
        )
        assert service.get(implicit.id).date == now

        explicit_date = datetime(2025, 1, 2, 7, 15, 0)
        explicit = service.create(
            ExpenseIn(
                name="Shoes",
                amount=Decimal("60"),
                category_id=shopping.id,
                date=explicit_date,
                notes="sale",
            ),
            now=now,
        )
        fetched = service.get(explicit.id)
        assert fetched.date == explicit_date
        assert fetched.notes == "sale"
        assert fetched.category.name == "Shopping"


def test_date_only_input_becomes_midnight() -> None:
    data = ExpenseIn(name="Lunch", amount=Decimal("5"), category_id="c", date="2025-01-15")
    assert data.date == datetime(2025, 1, 15, 0, 0)


def test_create_requires_visible_category() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        alice, bob = _setup(session)
        private = CategoryService(session, bob).create(CategoryIn(name="Bob stuff"))

        with pytest.raises(NotFoundError):
            ExpenseService(session, alice).create(
                ExpenseIn(name="Sneaky", amount=Decimal("1"), category_id=private.id)
            )
        with pytest.raises(NotFoundError):
            ExpenseService(session, alice).create(
                ExpenseIn(name="Ghost", amount=Decimal("1"), category_id="missing")
            )


def test_list_filters_sorts_and_paginates() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        alice, bob = _setup(session)
        shopping = _default_category(session, alice)
        transport = _default_category(session, alice, "Transportation")
        service = ExpenseService(session, alice)
        start = datetime(2025, 2, 1, 12, 0)
        for i in range(12):
            service.create(
                ExpenseIn(
                    name=f"Item {i:02d}",
                    amount=Decimal(10 + i),
                    category_id=shopping.id if i % 2 == 0 else transport.id,
                    date=start + timedelta(days=i),
                )
            )
        ExpenseService(session, bob).create(
            ExpenseIn(name="Not mine", amount=Decimal("1"), category_id=shopping.id)
        )

        page = service.list(page=1, limit=5)
        assert page.total == 12
        assert page.total_pages == 3
        assert [e.name for e in page.items] == [
            "Item 11",
            "Item 10",
            "Item 09",
            "Item 08",
            "Item 07",
        ]

        last = service.list(page=3, limit=5)
        assert len(last.items) == 2

        by_amount = service.list(
            limit=3, sort_by=ExpenseSortField.amount, order=SortOrder.asc
        )
        assert [e.amount for e in by_amount.items] == [10, 11, 12]

        in_range = service.list(
            ExpenseFilters(start_date=date(2025, 2, 3), end_date=date(2025, 2, 5)),
            limit=50,
        )
        assert in_range.total == 3

        filtered = service.list(
            ExpenseFilters(
                category_id=transport.id,
                min_amount=Decimal("13"),
                max_amount=Decimal("17"),
            ),
            limit=50,
        )
        assert sorted(e.amount for e in filtered.items) == [13, 15, 17]


def test_list_caps_limit_at_server_maximum() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        alice, _ = _setup(session)
        page = ExpenseService(session, alice).list(limit=5000)
        assert page.limit == 100
        assert page.total == 0
        assert page.total_pages == 0


def test_recent_orders_by_date_and_caps_limit() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        alice, _ = _setup(session)
        shopping = _default_category(session, alice)
        service = ExpenseService(session, alice)
        base = datetime(2025, 1, 1, 8, 0)
        for i in range(25):
            service.create(
                ExpenseIn(
                    name=f"E{i}",
                    amount=Decimal("1"),
                    category_id=shopping.id,
                    date=base + timedelta(hours=i),
                )
            )

        recent = service.recent()
        assert [e.name for e in recent] == ["E24", "E23", "E22", "E21", "E20"]
        assert len(service.recent(50)) == 20


def test_update_and_delete_enforce_ownership() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        alice, bob = _setup(session)
        shopping = _default_category(session, alice)
        service = ExpenseService(session, alice)
        expense = service.create(
            ExpenseIn(name="Hat", amount=Decimal("15"), category_id=shopping.id)
        )

        with pytest.raises(ForbiddenError):
            ExpenseService(session, bob).update(
                expense.id, ExpenseUpdateIn(name="Stolen")
            )
        with pytest.raises(ForbiddenError):
            ExpenseService(session, bob).delete(expense.id)
        with pytest.raises(NotFoundError):
            ExpenseService(session, bob).get(expense.id)

        private = CategoryService(session, bob).create(CategoryIn(name="Private"))
        with pytest.raises(NotFoundError):
            service.update(expense.id, ExpenseUpdateIn(category_id=private.id))

        healthcare = _default_category(session, alice, "Healthcare")
        updated = service.update(
            expense.id,
            ExpenseUpdateIn(category_id=healthcare.id, amount=Decimal("12.25")),
        )
        assert updated.category.name == "Healthcare"
        assert updated.amount == Decimal("12.25")
        assert updated.name == "Hat"

        service.delete(expense.id)
        with pytest.raises(NotFoundError):
            service.delete(expense.id)


def test_aware_input_is_stored_as_local_wall_time() -> None:
    # configured zone defaults to UTC
    data = ExpenseIn(
        name="Flight snack",
        amount=Decimal("4"),
        category_id="c",
        date="2024-01-15T10:00:00+02:00",
    )
    assert data.date == datetime(2024, 1, 15, 8, 0)
    assert data.date.tzinfo is None


def test_create_for_unknown_owner_is_not_found() -> None:
    engine = create_engine("sqlite:///:memory:")
    event.listen(engine, "connect", _enable_sqlite_pragmas)
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        alice, _ = _setup(session)
        shopping = _default_category(session, alice)

        with pytest.raises(NotFoundError, match="User not found"):
            ExpenseService(session, "ghost").create(
                ExpenseIn(name="Phantom", amount=Decimal("1"), category_id=shopping.id)
            )
        assert ExpenseService(session, alice).list().total == 0
