import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

import notifier
from auth import get_current_user
from database import get_db, User
from errors import invalid_body, not_found
from ledger import (
    category_totals,
    create_expense,
    delete_expense,
    expense_total,
    export_csv,
    get_expense,
    is_valid_id,
    list_expenses,
)
from membership import require_member
from schemas import CategoryTotal, ExpenseCreate, ExpenseOut, ExpenseTotal

logger = logging.getLogger(__name__)

expense_router = APIRouter()


@expense_router.get("/project/{project_id}")
async def get_expenses(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_member(db, project_id, current_user.id)
    expenses = list_expenses(db, project_id)
    return {"ok": True, "data": [ExpenseOut.model_validate(e) for e in expenses]}


@expense_router.post("/project/{project_id}")
async def add_expense(
    project_id: str,
    expense: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_member(db, project_id, current_user.id)

    db_expense = create_expense(db, project_id, expense)
    data = ExpenseOut.model_validate(db_expense)

    # not awaited: the client gets its answer regardless of the outcome
    notifier.enqueue_budget_check(project_id, notifier.EXPENSE_CREATED)
    return {"ok": True, "data": data}


@expense_router.delete("/{expense_id}")
async def remove_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = get_expense(db, expense_id)
    if not expense:
        raise not_found()
    require_member(db, expense.project_id, current_user.id)

    project_id = expense.project_id
    delete_expense(db, expense)
    logger.info("User %s deleted expense %s", current_user.id, expense_id)

    notifier.enqueue_budget_check(project_id, notifier.EXPENSE_DELETED)
    return {"ok": True}


@expense_router.get("/project/{project_id}/total")
async def get_total(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not is_valid_id(project_id):
        raise invalid_body()
    require_member(db, project_id, current_user.id)

    total = expense_total(db, project_id)
    return {"ok": True, "data": ExpenseTotal(total=total)}


@expense_router.get("/project/{project_id}/categories")
async def get_category_totals(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not is_valid_id(project_id):
        raise invalid_body()
    require_member(db, project_id, current_user.id)

    rows = category_totals(db, project_id)
    return {"ok": True, "data": [CategoryTotal(**row) for row in rows]}


@expense_router.get("/project/{project_id}/export")
async def export_expenses(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not is_valid_id(project_id):
        raise invalid_body()
    require_member(db, project_id, current_user.id)

    content = export_csv(db, project_id)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=project_{project_id}_expenses.csv"
        },
    )
