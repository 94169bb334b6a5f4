"""Project membership checks.

Every project-scoped operation goes through ``require_member`` first. A
missing membership is reported as NOT_FOUND, never as forbidden.
"""

import logging

from sqlalchemy.orm import Session

from database import ProjectMember, User
from errors import not_found

logger = logging.getLogger(__name__)


def is_member(db: Session, project_id: str, user_id: str) -> bool:
    membership = (
        db.query(ProjectMember.id)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .first()
    )
    return membership is not None


def require_member(db: Session, project_id: str, user_id: str) -> None:
    if not is_member(db, project_id, user_id):
        raise not_found()


def add_member(db: Session, project_id: str, user_id: str) -> ProjectMember:
    """Stage a membership row; returns the existing one if already a member."""
    existing = (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .first()
    )
    if existing:
        return existing

    membership = ProjectMember(project_id=project_id, user_id=user_id)
    db.add(membership)
    db.flush()
    return membership


def list_members(db: Session, project_id: str) -> list[User]:
    return (
        db.query(User)
        .join(ProjectMember, ProjectMember.user_id == User.id)
        .filter(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.created_at)
        .all()
    )


def member_emails(db: Session, project_id: str) -> list[str]:
    emails = [user.email for user in list_members(db, project_id)]
    return [email for email in emails if email]


def remove_project_members(db: Session, project_id: str) -> int:
    return (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id)
        .delete(synchronize_session=False)
    )
