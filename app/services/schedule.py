import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.database import commit_or_raise
from app.models.project import Project
from app.models.tasks import Comment, Task, TaskStatus
from app.utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SYSTEM_AUTHOR = "system"
# Largest delay accepted in one shift, in days or weeks
MAX_SHIFT_AMOUNT = 3650


class ShiftUnit(str, Enum):
    DAYS = "Days"
    WEEKS = "Weeks"


def shift_delta(amount: int, unit: ShiftUnit) -> timedelta:
    try:
        return timedelta(days=amount * (7 if unit == ShiftUnit.WEEKS else 1))
    except OverflowError:
        raise ValidationError("Shift amount is out of range")


def _moved_dates(tasks, delta: timedelta) -> list[tuple[date, date]]:
    """New (start, end) per task, computed before anything is mutated."""
    try:
        return [(task.start_date + delta, task.end_date + delta) for task in tasks]
    except OverflowError:
        raise ValidationError("Shifted dates fall outside the supported calendar")


def _is_done(task) -> bool:
    return task.status in (TaskStatus.DONE, TaskStatus.DONE.value)


# ── Pure planning ───────────────────────────────────────

def shift_tasks(tasks, anchor, amount: int, unit: ShiftUnit, skip_done: bool, now: datetime) -> list:
    """
    Push every task starting on/after the anchor's end date by the delay.
    The anchor itself is never moved. Mutates and returns the shifted tasks.
    """
    delta = shift_delta(amount, unit)
    if not delta:
        return []

    shifted = [
        task for task in tasks
        if task.id != anchor.id
        and task.start_date >= anchor.end_date
        and not (skip_done and _is_done(task))
    ]
    for task, (start, end) in zip(shifted, _moved_dates(shifted, delta)):
        task.start_date = start
        task.end_date = end
        task.was_shifted = True
        task.last_shift_date = now
    return shifted


def shift_comment(amount: int, unit: ShiftUnit, anchor_name: str, today: date) -> str:
    return f'Auto-shifted by {amount} {ShiftUnit(unit).value} due to delay of "{anchor_name}" on {today.isoformat()}.'


@dataclass
class RebaselinePlan:
    delta_days: int
    old_min: date | None
    shifted: list = field(default_factory=list)


def rebaseline_tasks(tasks, new_start: date, reset_statuses: bool, clear_delay_reasons: bool) -> RebaselinePlan:
    """Move the whole schedule so that its earliest start lands on new_start."""
    tasks = list(tasks)
    if not tasks:
        return RebaselinePlan(delta_days=0, old_min=None)

    old_min = min(task.start_date for task in tasks)
    delta_days = (new_start - old_min).days
    if delta_days == 0:
        return RebaselinePlan(delta_days=0, old_min=old_min)

    for task, (start, end) in zip(tasks, _moved_dates(tasks, timedelta(days=delta_days))):
        task.start_date = start
        task.end_date = end
        if reset_statuses and not _is_done(task):
            task.status = TaskStatus.ON_TRACK.value
            if clear_delay_reasons:
                task.delay_reason = None
    return RebaselinePlan(delta_days=delta_days, old_min=old_min, shifted=tasks)


def rebaseline_comment(plan: RebaselinePlan, new_start: date) -> str:
    return (
        f"Rebaseline applied: shifted {plan.delta_days} days "
        f"from {plan.old_min.isoformat()} to {new_start.isoformat()}."
    )


# ── Persistence ─────────────────────────────────────────

async def _project_tasks(db: AsyncSession, project_id: str) -> list[Task]:
    result = await db.execute(
        select(Task).filter(Task.project_id == project_id).order_by(Task.start_date, Task.id)
    )
    return list(result.scalars().all())


async def apply_shift(db: AsyncSession, anchor_id: int, amount: int, unit: ShiftUnit, skip_done: bool) -> int:
    """
    Cascade a delay of the anchor task onto its project's later tasks.
    All rows and comments commit together or not at all.
    """
    result = await db.execute(select(Task).filter(Task.id == anchor_id))
    anchor = result.scalars().first()
    if anchor is None:
        raise NotFoundError("Task not found")

    now = datetime.now(timezone.utc)
    tasks = await _project_tasks(db, anchor.project_id)
    shifted = shift_tasks(tasks, anchor, amount, unit, skip_done, now)
    if not shifted:
        logger.info("[SCHEDULE] Shift of task %s by %s %s touched no tasks", anchor.id, amount, unit.value)
        return 0

    message = shift_comment(amount, unit, anchor.name, now.date())
    for task in shifted:
        db.add(Comment(task_id=task.id, author_role=SYSTEM_AUTHOR, message=message))

    await commit_or_raise(db, "apply schedule shift")
    logger.info("[SCHEDULE] Shifted %d tasks by %s %s after task %s", len(shifted), amount, unit.value, anchor.id)
    return len(shifted)


async def apply_rebaseline(
    db: AsyncSession,
    project_id: str,
    new_start: date,
    reset_statuses: bool,
    clear_delay_reasons: bool,
) -> tuple[int, int]:
    """
    Re-anchor a whole project on a new start date.
    Returns (shifted_count, delta_days); (0, 0) when nothing moves.
    """
    result = await db.execute(select(Project).filter(Project.id == project_id))
    project = result.scalars().first()
    if project is None:
        raise NotFoundError("Project not found")

    tasks = await _project_tasks(db, project_id)
    plan = rebaseline_tasks(tasks, new_start, reset_statuses, clear_delay_reasons)
    if plan.delta_days == 0:
        return 0, 0

    try:
        project.project_current_date = project.project_current_date + timedelta(days=plan.delta_days)
    except OverflowError:
        await db.rollback()
        raise ValidationError("Shifted dates fall outside the supported calendar")
    representative = min(plan.shifted, key=lambda t: (t.start_date, t.id))
    db.add(Comment(
        task_id=representative.id,
        author_role=SYSTEM_AUTHOR,
        message=rebaseline_comment(plan, new_start),
    ))

    await commit_or_raise(db, "apply rebaseline")
    logger.info("[SCHEDULE] Rebaselined project %s by %d days (%d tasks)", project_id, plan.delta_days, len(plan.shifted))
    return len(plan.shifted), plan.delta_days
