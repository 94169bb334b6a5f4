"""Budget notifications.

After an expense is created or deleted, a job is queued on the background
scheduler to compare the project's total spend with its budget. Crossing the
budget emails every member once; the notice is repeated at most once per
re-notify window while the project stays over budget. Dropping back to or
under budget re-arms the notice.

Nothing here is visible to the request that triggered it: every failure is
logged and dropped.
"""

import html
import logging

from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.background import BackgroundScheduler
from dateutil.relativedelta import relativedelta
from sqlalchemy import or_

import mailer
from config import settings
from database import SessionLocal, Project, utcnow
from ledger import expense_total
from membership import member_emails

logger = logging.getLogger(__name__)

EXPENSE_CREATED = "created"
EXPENSE_DELETED = "deleted"

scheduler = BackgroundScheduler()


def _log_job_error(event):
    logger.error("Budget check job %s failed: %r", event.job_id, event.exception)


scheduler.add_listener(_log_job_error, EVENT_JOB_ERROR)


def start():
    if not scheduler.running:
        scheduler.start()


def shutdown():
    if scheduler.running:
        scheduler.shutdown()


def enqueue_budget_check(project_id: str, event: str) -> None:
    scheduler.add_job(
        run_budget_check,
        args=[project_id, event],
        misfire_grace_time=None,
    )


def run_budget_check(project_id: str, event: str) -> None:
    try:
        with SessionLocal() as db:
            if event == EXPENSE_CREATED:
                notify_if_over_budget(db, project_id)
            elif event == EXPENSE_DELETED:
                reset_if_under_budget(db, project_id)
            else:
                logger.warning("Unknown budget check event %r", event)
    except Exception:
        logger.exception("Budget check failed for project %s (%s)", project_id, event)


def _renotify_cutoff(now):
    return now - relativedelta(days=settings.OVER_BUDGET_RENOTIFY_DAYS)


def notify_if_over_budget(db, project_id: str) -> bool:
    """Email the members if the project is over budget. Returns True if sent."""
    project = db.get(Project, project_id)
    if project is None:
        logger.info("Project %s no longer exists, skipping budget check", project_id)
        return False
    if project.budget is None:
        return False

    total = expense_total(db, project_id)
    if total <= project.budget:
        return False

    previous = (project.notified_over_budget, project.last_over_budget_notified_at)
    now = utcnow()
    claimed = (
        db.query(Project)
        .filter(
            Project.id == project_id,
            or_(
                Project.notified_over_budget.is_(False),
                Project.last_over_budget_notified_at.is_(None),
                Project.last_over_budget_notified_at < _renotify_cutoff(now),
            ),
        )
        .update(
            {
                Project.notified_over_budget: True,
                Project.last_over_budget_notified_at: now,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    if not claimed:
        logger.debug("Project %s already notified recently", project_id)
        return False

    recipients = member_emails(db, project_id)
    if not recipients:
        logger.warning("Project %s is over budget but has no member addresses", project_id)
        _release_claim(db, project_id, now, previous)
        return False

    try:
        mailer.send_email(
            recipients,
            f"Budget exceeded for {project.name}",
            render_over_budget_email(project, total),
        )
    except Exception:
        # the next expense can try again
        _release_claim(db, project_id, now, previous)
        raise

    logger.info(
        "Project %s over budget (%.2f > %.2f), notified %d member(s)",
        project_id,
        total,
        project.budget,
        len(recipients),
    )
    return True


def _release_claim(db, project_id: str, claimed_at, previous) -> None:
    """Put back the flag and timestamp a claim replaced, unless another claim won since."""
    db.query(Project).filter(
        Project.id == project_id,
        Project.last_over_budget_notified_at == claimed_at,
    ).update(
        {
            Project.notified_over_budget: previous[0],
            Project.last_over_budget_notified_at: previous[1],
        },
        synchronize_session=False,
    )
    db.commit()


def reset_if_under_budget(db, project_id: str) -> bool:
    """Clear the over-budget flag once spend is back within budget."""
    project = db.get(Project, project_id)
    if project is None or project.budget is None:
        return False
    if not project.notified_over_budget:
        return False

    total = expense_total(db, project_id)
    if total > project.budget:
        return False

    cleared = (
        db.query(Project)
        .filter(Project.id == project_id, Project.notified_over_budget.is_(True))
        .update(
            {
                Project.notified_over_budget: False,
                Project.last_over_budget_notified_at: None,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    if cleared:
        logger.info("Project %s back within budget, notification re-armed", project_id)
    return bool(cleared)


def render_over_budget_email(project, total: float) -> str:
    name = html.escape(project.name)
    link = f"{settings.APP_URL.rstrip('/')}/project/{project.id}"
    return (
        f"<p>The project <strong>{name}</strong> has gone over its budget.</p>"
        f"<p>Total spent: {total:.2f} / budget: {project.budget:.2f}</p>"
        f'<p><a href="{link}">Open the project</a></p>'
    )
