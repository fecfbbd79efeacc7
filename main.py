import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.orm import Session

from config import get_settings
from database import get_db, session_scope
from identity import read_identity_token
from models import User
from schemas import (
    AccountDeleteIn,
    BudgetIn,
    BudgetOut,
    BudgetStatusOut,
    BudgetUpdateIn,
    CategoryBreakdownOut,
    CategoryIn,
    CategoryOut,
    CategoryUpdateIn,
    DashboardOut,
    ExpenseIn,
    ExpenseOut,
    ExpenseQuery,
    ExpenseUpdateIn,
    PaginationOut,
    PasswordChangeIn,
    PeriodSummaryOut,
    ProfileOut,
    ProfileUpdateIn,
    UserRegisterIn,
)
from seed import seed_default_categories
from services import (
    BudgetService,
    CategoryService,
    ExpenseFilters,
    ExpenseService,
    ServiceError,
    StatisticsService,
    UserService,
)


settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Spendtrack API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
router = APIRouter(prefix=settings.api_prefix)
bearer_scheme = HTTPBearer(auto_error=False)


@app.on_event("startup")
def startup_event():
    with session_scope() as session:
        seed_default_categories(session)


@app.exception_handler(ServiceError)
def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.info(
        f"request_rejected: path={request.url.path} status={exc.status_code} "
        f"reason={exc}"
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


def current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> str:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user_id = read_identity_token(credentials.credentials)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    # signed tokens outlive deleted or deactivated accounts
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        logger.info(f"identity_rejected: reason=unknown_user user_id={user_id}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user_id


def deleted(message: str) -> dict[str, object]:
    return {"data": {"message": message}}


# users


@router.post("/users/register", status_code=201)
def register(payload: UserRegisterIn, db: Session = Depends(get_db)):
    user = UserService(db).register(payload)
    return {"data": ProfileOut.model_validate(user)}


@router.get("/users/profile")
def get_profile(
    user_id: str = Depends(current_user_id), db: Session = Depends(get_db)
):
    return {"data": ProfileOut.model_validate(UserService(db).get_profile(user_id))}


@router.put("/users/profile")
def update_profile(
    payload: ProfileUpdateIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    user = UserService(db).update_profile(user_id, payload)
    return {"data": ProfileOut.model_validate(user)}


@router.patch("/users/password")
def change_password(
    payload: PasswordChangeIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    UserService(db).change_password(user_id, payload)
    return {"data": {"message": "Password changed successfully"}}


@router.delete("/users/account")
def delete_account(
    payload: AccountDeleteIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    UserService(db).delete_account(user_id, payload.password)
    return deleted("Account deleted successfully")


# categories


@router.post("/categories", status_code=201)
def create_category(
    payload: CategoryIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    category = CategoryService(db, user_id).create(payload)
    return {"data": CategoryOut.model_validate(category)}


@router.get("/categories")
def list_categories(
    user_id: str = Depends(current_user_id), db: Session = Depends(get_db)
):
    categories = CategoryService(db, user_id).list_all()
    return {"data": [CategoryOut.model_validate(c) for c in categories]}


@router.get("/categories/{category_id}")
def get_category(
    category_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    category = CategoryService(db, user_id).get(category_id)
    return {"data": CategoryOut.model_validate(category)}


@router.put("/categories/{category_id}")
def update_category(
    category_id: str,
    payload: CategoryUpdateIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    category = CategoryService(db, user_id).update(category_id, payload)
    return {"data": CategoryOut.model_validate(category)}


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    CategoryService(db, user_id).delete(category_id)
    return deleted("Category deleted successfully")


# expenses


@router.post("/expenses", status_code=201)
def create_expense(
    payload: ExpenseIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    expense = ExpenseService(db, user_id).create(payload)
    return {"data": ExpenseOut.model_validate(expense)}


def expense_query(request: Request) -> ExpenseQuery:
    """Bind listing parameters under either camelCase or snake_case names."""
    try:
        return ExpenseQuery.model_validate(dict(request.query_params))
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


@router.get("/expenses")
def list_expenses(
    query: ExpenseQuery = Depends(expense_query),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    filters = ExpenseFilters(
        category_id=query.category_id,
        start_date=query.start_date,
        end_date=query.end_date,
        min_amount=query.min_amount,
        max_amount=query.max_amount,
    )
    page = ExpenseService(db, user_id).list(
        filters,
        page=query.page,
        limit=query.limit,
        sort_by=query.sort_by,
        order=query.order,
    )
    return {
        "data": [ExpenseOut.model_validate(e) for e in page.items],
        "pagination": PaginationOut.model_validate(page),
    }


@router.get("/expenses/recent")
def recent_expenses(
    limit: int = Query(5, ge=1),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    expenses = ExpenseService(db, user_id).recent(limit)
    return {"data": [ExpenseOut.model_validate(e) for e in expenses]}


@router.get("/expenses/{expense_id}")
def get_expense(
    expense_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    expense = ExpenseService(db, user_id).get(expense_id)
    return {"data": ExpenseOut.model_validate(expense)}


@router.put("/expenses/{expense_id}")
def update_expense(
    expense_id: str,
    payload: ExpenseUpdateIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    expense = ExpenseService(db, user_id).update(expense_id, payload)
    return {"data": ExpenseOut.model_validate(expense)}


@router.delete("/expenses/{expense_id}")
def delete_expense(
    expense_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    ExpenseService(db, user_id).delete(expense_id)
    return deleted("Expense deleted successfully")


# budgets


@router.post("/budgets", status_code=201)
def create_budget(
    payload: BudgetIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    budget = BudgetService(db, user_id).create(payload)
    return {"data": BudgetOut.model_validate(budget)}


@router.get("/budgets")
def list_budgets(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    budgets = BudgetService(db, user_id).list_all(is_active)
    return {"data": [BudgetOut.model_validate(b) for b in budgets]}


@router.get("/budgets/current")
def current_budget(
    user_id: str = Depends(current_user_id), db: Session = Depends(get_db)
):
    status = BudgetService(db, user_id).find_current()
    return {"data": BudgetStatusOut.model_validate(status) if status else None}


@router.get("/budgets/{budget_id}")
def get_budget(
    budget_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    budget = BudgetService(db, user_id).get(budget_id)
    return {"data": BudgetOut.model_validate(budget)}


@router.get("/budgets/{budget_id}/status")
def budget_status(
    budget_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    status = BudgetService(db, user_id).get_status(budget_id)
    return {"data": BudgetStatusOut.model_validate(status)}


@router.put("/budgets/{budget_id}")
def update_budget(
    budget_id: str,
    payload: BudgetUpdateIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    budget = BudgetService(db, user_id).update(budget_id, payload)
    return {"data": BudgetOut.model_validate(budget)}


@router.delete("/budgets/{budget_id}")
def delete_budget(
    budget_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    BudgetService(db, user_id).delete(budget_id)
    return deleted("Budget deleted successfully")


# statistics


@router.get("/statistics/dashboard")
def dashboard(user_id: str = Depends(current_user_id), db: Session = Depends(get_db)):
    summary = StatisticsService(db, user_id).get_dashboard()
    return {"data": DashboardOut.model_validate(summary)}


@router.get("/statistics/daily")
def daily_statistics(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    rows = StatisticsService(db, user_id).get_daily_statistics(start_date, end_date)
    return {"data": [PeriodSummaryOut.model_validate(r) for r in rows]}


@router.get("/statistics/monthly")
def monthly_statistics(
    months: int = Query(6, ge=1, le=120),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    rows = StatisticsService(db, user_id).get_monthly_statistics(months)
    return {"data": [PeriodSummaryOut.model_validate(r) for r in rows]}


@router.get("/statistics/by-category")
def category_statistics(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    rows = StatisticsService(db, user_id).get_category_statistics(start_date, end_date)
    return {"data": [CategoryBreakdownOut.model_validate(r) for r in rows]}


app.include_router(router)
