from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db, get_current_session, verify_client
from app.schemas.auth import SessionIdentity
from app.schemas.task import (
    Comment,
    CommentCreate,
    ProgressUpdate,
    ProgressUpdateCreate,
    ShiftRequest,
    ShiftResult,
    Task as TaskSchema,
    TaskCreate,
    TaskUpdate,
)
from app.services import policy, schedule
from app.services import tasks as task_service
from app.utils.exceptions import PermissionDeniedError

router = APIRouter(tags=["tasks"], dependencies=[Depends(verify_client)])

@router.get("/projects/{project_id}/tasks", response_model=list[TaskSchema])
async def list_tasks(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    tasks = await task_service.list_tasks(db, project_id, session)
    return [task_service.serialize_task(task, session) for task in tasks]

@router.post("/projects/{project_id}/tasks", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
async def create_task(
    project_id: str,
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    task = await task_service.create_task(db, project_id, task_data, session)
    return task_service.serialize_task(task, session)

@router.get("/tasks/{task_id}", response_model=TaskSchema)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    task = await task_service.get_openable_task(db, task_id, session)
    return task_service.serialize_task(task, session)

@router.patch("/tasks/{task_id}", response_model=TaskSchema)
async def update_task(
    task_id: int,
    update_data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    task = await task_service.get_task_by_id(db, task_id, session)
    task = await task_service.update_task(db, task, update_data, session)
    return task_service.serialize_task(task, session)

@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    task = await task_service.get_task_by_id(db, task_id, session)
    await task_service.delete_task(db, task, session)
    return None

@router.post("/tasks/{task_id}/shift", response_model=ShiftResult)
async def shift_schedule(
    task_id: int,
    payload: ShiftRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    if not policy.can_manage_tasks(session):
        raise PermissionDeniedError("Only admins and project managers can shift the schedule")
    await task_service.get_task_by_id(db, task_id, session)
    shifted = await schedule.apply_shift(db, task_id, payload.amount, payload.unit, payload.skip_done)
    return ShiftResult(shifted_count=shifted)

# ── Progress updates ────────────────────────────────────

@router.get("/tasks/{task_id}/updates", response_model=list[ProgressUpdate])
async def list_progress_updates(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    await task_service.get_openable_task(db, task_id, session)
    return await task_service.list_progress_updates(db, task_id)

@router.post("/tasks/{task_id}/updates", response_model=ProgressUpdate, status_code=status.HTTP_201_CREATED)
async def add_progress_update(
    task_id: int,
    payload: ProgressUpdateCreate,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    task = await task_service.get_task_by_id(db, task_id, session)
    return await task_service.add_progress_update(db, task, payload, session)

# ── Comments ────────────────────────────────────────────

@router.get("/tasks/{task_id}/comments", response_model=list[Comment])
async def list_comments(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    await task_service.get_openable_task(db, task_id, session)
    return await task_service.list_comments(db, task_id)

@router.post("/tasks/{task_id}/comments", response_model=Comment, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: int,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    task = await task_service.get_openable_task(db, task_id, session)
    return await task_service.add_comment(db, task, payload, session)
