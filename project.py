import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db, Project, ProjectMember, User
from errors import not_found, server_error
from membership import add_member, list_members, remove_project_members, require_member
from schemas import MemberInvite, ProjectCreate, ProjectOut, UserOut

logger = logging.getLogger(__name__)

project_router = APIRouter()


@project_router.get("")
async def get_projects(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    projects = (
        db.query(Project)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .filter(ProjectMember.user_id == current_user.id)
        .order_by(Project.created_at.desc())
        .all()
    )
    return {"ok": True, "data": [ProjectOut.model_validate(p) for p in projects]}


@project_router.get("/{project_id}")
async def get_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_member(db, project_id, current_user.id)

    project = db.get(Project, project_id)
    if not project:
        raise not_found()
    return {"ok": True, "data": ProjectOut.model_validate(project)}


@project_router.post("")
async def create_project(
    project: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    db_project = Project(name=project.name, budget=project.budget)
    db.add(db_project)
    db.flush()

    # The creator is always a member; without that row the project is unreachable.
    try:
        add_member(db, db_project.id, current_user.id)
        db.commit()
    except SQLAlchemyError:
        logger.exception("Project member create failed, removing project %s", db_project.id)
        db.rollback()
        raise server_error()

    db.refresh(db_project)
    logger.info("User %s created project %s", current_user.id, db_project.id)
    return {"ok": True, "data": ProjectOut.model_validate(db_project)}


@project_router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_member(db, project_id, current_user.id)

    # Expenses are not cascaded.
    removed = remove_project_members(db, project_id)
    db.query(Project).filter(Project.id == project_id).delete(synchronize_session=False)
    db.commit()
    logger.info(
        "User %s deleted project %s (%d membership(s))", current_user.id, project_id, removed
    )
    return {"ok": True}


@project_router.get("/{project_id}/users")
async def get_project_users(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_member(db, project_id, current_user.id)
    members = list_members(db, project_id)
    return {"ok": True, "data": [UserOut.model_validate(u) for u in members]}


@project_router.post("/{project_id}/users")
async def invite_project_user(
    project_id: str,
    invite: MemberInvite,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_member(db, project_id, current_user.id)

    invitee = db.query(User).filter(User.email == invite.email).first()
    if not invitee:
        raise not_found()

    add_member(db, project_id, invitee.id)
    db.commit()
    logger.info("User %s added %s to project %s", current_user.id, invitee.id, project_id)
    return {"ok": True, "data": UserOut.model_validate(invitee)}
