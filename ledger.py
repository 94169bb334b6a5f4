import csv
import re
from io import StringIO

from sqlalchemy import func
from sqlalchemy.orm import Session

from database import Expense, utcnow
from schemas import ExpenseCreate

DEFAULT_CATEGORY = "uncategorized"

_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def is_valid_id(value: str) -> bool:
    return bool(value) and _ID_PATTERN.match(value) is not None


def list_expenses(db: Session, project_id: str) -> list[Expense]:
    return (
        db.query(Expense)
        .filter(Expense.project_id == project_id)
        .order_by(Expense.date.desc(), Expense.id.desc())
        .all()
    )


def create_expense(db: Session, project_id: str, expense: ExpenseCreate) -> Expense:
    category = (expense.category or "").strip() or DEFAULT_CATEGORY
    db_expense = Expense(
        project_id=project_id,
        amount=expense.amount,
        category=category,
        description=expense.description or "",
        date=expense.date or utcnow(),
    )
    db.add(db_expense)
    db.commit()
    db.refresh(db_expense)
    return db_expense


def get_expense(db: Session, expense_id: str) -> Expense | None:
    return db.get(Expense, expense_id)


def delete_expense(db: Session, expense: Expense) -> None:
    db.delete(expense)
    db.commit()


def expense_total(db: Session, project_id: str) -> float:
    total = (
        db.query(func.sum(Expense.amount))
        .filter(Expense.project_id == project_id)
        .scalar()
    )
    return total or 0.0


def category_totals(db: Session, project_id: str) -> list[dict]:
    total = func.sum(Expense.amount).label("total")
    rows = (
        db.query(Expense.category, total)
        .filter(Expense.project_id == project_id)
        .group_by(Expense.category)
        .order_by(total.desc(), Expense.category)
        .all()
    )
    return [{"category": row.category, "total": row.total or 0.0} for row in rows]


def export_csv(db: Session, project_id: str) -> str:
    """
    Builds a CSV report of a project containing:
    - All expenses, newest first
    - Category-wise totals
    """
    csv_data = StringIO()
    writer = csv.writer(csv_data)

    writer.writerow(["Date", "Category", "Description", "Amount"])
    for e in list_expenses(db, project_id):
        writer.writerow([e.date.isoformat(), e.category, e.description, e.amount])

    writer.writerow([])
    writer.writerow(["Category", "Total Spending"])
    for row in category_totals(db, project_id):
        writer.writerow([row["category"], row["total"]])

    return csv_data.getvalue()
