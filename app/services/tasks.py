from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.database import commit_or_raise
from app.models.project import Project
from app.models.tasks import Comment, ProgressUpdate, Task, TaskStatus
from app.models.user import User
from app.schemas.auth import SessionIdentity
from app.schemas.task import (
    CommentCreate,
    ProgressUpdateCreate,
    Task as TaskSchema,
    TaskCreate,
    TaskUpdate,
)
from app.services import policy
from app.utils.exceptions import NotFoundError, PermissionDeniedError, ValidationError

PROGRESS_FIELDS = {"percent_done", "status", "delay_reason"}
REQUIRED_FIELDS = {"name", "owner_roles", "start_date", "end_date", "percent_done", "status"}


def enforce_task_invariants(task):
    if task.end_date < task.start_date:
        raise ValidationError("End date must be on or after start date")
    if task.status in (TaskStatus.DONE, TaskStatus.DONE.value):
        task.percent_done = 100


def author_label(session: SessionIdentity) -> str:
    return session.contractor_role or session.role


def serialize_task(task: Task, session) -> TaskSchema:
    """Task as shown to this caller; budget hidden unless they may see it."""
    data = TaskSchema.model_validate(task)
    if not policy.can_view_task_budget(session, task):
        data.budget = None
    return data


async def get_project(db: AsyncSession, project_id: str) -> Project:
    result = await db.execute(select(Project).filter(Project.id == project_id))
    project = result.scalars().first()
    if not project:
        raise NotFoundError("Project not found")
    return project


async def get_accessible_project(db: AsyncSession, project_id: str, session: SessionIdentity) -> Project:
    project = await get_project(db, project_id)
    if not policy.can_access_project(session, project.id):
        raise PermissionDeniedError("You are not signed in to this project")
    return project


async def get_task_by_id(db: AsyncSession, task_id: int, session: SessionIdentity | None = None) -> Task:
    """Load a task; with a session, also require access to the task's project."""
    result = await db.execute(select(Task).filter(Task.id == task_id))
    task = result.scalars().first()
    if not task:
        raise NotFoundError("Task not found")
    if session is not None and not policy.can_access_project(session, task.project_id):
        raise PermissionDeniedError("You are not signed in to this project")
    return task


async def get_openable_task(db: AsyncSession, task_id: int, session: SessionIdentity) -> Task:
    task = await get_task_by_id(db, task_id, session)
    if not policy.can_open_task(task, session):
        raise PermissionDeniedError("You do not have access to this task")
    return task


async def list_tasks(db: AsyncSession, project_id: str, session: SessionIdentity) -> list[Task]:
    await get_accessible_project(db, project_id, session)
    result = await db.execute(
        select(Task).filter(Task.project_id == project_id).order_by(Task.start_date, Task.id)
    )
    return list(result.scalars().all())


async def _assignee_name(db: AsyncSession, user_token: str) -> str:
    result = await db.execute(select(User).filter(User.user_token == user_token))
    user = result.scalars().first()
    if not user:
        raise ValidationError("Assigned user does not exist")
    return user.display_name


async def create_task(db: AsyncSession, project_id: str, task_data: TaskCreate, session: SessionIdentity) -> Task:
    if not policy.can_manage_tasks(session):
        raise PermissionDeniedError("Only admins and project managers can create tasks")
    await get_accessible_project(db, project_id, session)

    task = Task(
        project_id=project_id,
        created_by_token=session.user_token,
        **task_data.model_dump(),
    )
    task.status = TaskStatus(task.status).value
    if task.assigned_user_token and not task.assigned_display_name:
        task.assigned_display_name = await _assignee_name(db, task.assigned_user_token)
    enforce_task_invariants(task)

    db.add(task)
    await commit_or_raise(db, "create task")
    await db.refresh(task)
    return task


async def update_task(db: AsyncSession, task: Task, update_data: TaskUpdate, session: SessionIdentity) -> Task:
    changes = update_data.model_dump(exclude_unset=True)
    cleared = sorted(key for key in REQUIRED_FIELDS if key in changes and changes[key] is None)
    if cleared:
        raise ValidationError(f"Cannot clear required fields: {', '.join(cleared)}")

    if not policy.can_manage_tasks(session):
        if not policy.is_assignee(session, task):
            raise PermissionDeniedError("You cannot edit this task")
        forbidden = set(changes) - PROGRESS_FIELDS
        if forbidden:
            raise PermissionDeniedError(f"Only managers can change: {', '.join(sorted(forbidden))}")

    for key, value in changes.items():
        if key == "status" and value is not None:
            value = TaskStatus(value).value
        setattr(task, key, value)

    if "assigned_user_token" in changes and "assigned_display_name" not in changes:
        token = changes["assigned_user_token"]
        task.assigned_display_name = await _assignee_name(db, token) if token else None

    enforce_task_invariants(task)
    await commit_or_raise(db, "update task")
    await db.refresh(task)
    return task


async def delete_task(db: AsyncSession, task: Task, session: SessionIdentity):
    if not policy.can_delete_tasks(session):
        raise PermissionDeniedError("Only admins can delete tasks")
    await db.execute(delete(Comment).where(Comment.task_id == task.id))
    await db.execute(delete(ProgressUpdate).where(ProgressUpdate.task_id == task.id))
    await db.delete(task)
    await commit_or_raise(db, "delete task")


# ── Progress updates ────────────────────────────────────

async def add_progress_update(
    db: AsyncSession, task: Task, data: ProgressUpdateCreate, session: SessionIdentity
) -> ProgressUpdate:
    if not policy.can_update_progress(session, task):
        raise PermissionDeniedError("Only managers and the assignee can report progress")

    status = TaskStatus(data.status)
    percent = 100 if status is TaskStatus.DONE else data.percent_done

    update = ProgressUpdate(
        task_id=task.id,
        author_role=author_label(session),
        author_user_token=session.user_token,
        percent_done=percent,
        status=status.value,
        delay_reason=data.delay_reason,
        note=data.note,
        photo_path=data.photo_path,
    )
    db.add(update)

    task.percent_done = percent
    task.status = status.value
    task.delay_reason = data.delay_reason

    await commit_or_raise(db, "save progress update")
    await db.refresh(update)
    return update


async def list_progress_updates(db: AsyncSession, task_id: int) -> list[ProgressUpdate]:
    result = await db.execute(
        select(ProgressUpdate)
        .filter(ProgressUpdate.task_id == task_id)
        .order_by(ProgressUpdate.created_at.desc(), ProgressUpdate.id.desc())
    )
    return list(result.scalars().all())


# ── Comments ────────────────────────────────────────────

async def add_comment(db: AsyncSession, task: Task, data: CommentCreate, session: SessionIdentity) -> Comment:
    comment = Comment(task_id=task.id, author_role=author_label(session), message=data.message)
    db.add(comment)
    await commit_or_raise(db, "add comment")
    await db.refresh(comment)
    return comment


async def list_comments(db: AsyncSession, task_id: int) -> list[Comment]:
    result = await db.execute(
        select(Comment).filter(Comment.task_id == task_id).order_by(Comment.created_at, Comment.id)
    )
    return list(result.scalars().all())
