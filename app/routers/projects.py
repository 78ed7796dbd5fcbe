from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db, get_current_session, verify_client
from app.schemas.auth import SessionIdentity
from app.schemas.project import FinanceSummary, Project, ProjectCreate, ProjectUpdate
from app.schemas.task import RebaselineRequest, RebaselineResult
from app.services import policy, schedule
from app.services import projects as project_service
from app.services.analysis import finance_summary, get_task_dataframe
from app.services.tasks import get_accessible_project
from app.utils.exceptions import PermissionDeniedError

router = APIRouter(prefix="/projects", tags=["projects"], dependencies=[Depends(verify_client)])

@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    return await project_service.create_project(db, data, session)

@router.get("/{project_id}", response_model=Project)
async def read_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    return await get_accessible_project(db, project_id, session)

@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    return await project_service.update_project(db, project_id, data, session)

@router.post("/{project_id}/rebaseline", response_model=RebaselineResult)
async def rebaseline(
    project_id: str,
    payload: RebaselineRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    if not policy.can_manage_tasks(session):
        raise PermissionDeniedError("Only admins and project managers can rebaseline")
    await get_accessible_project(db, project_id, session)
    shifted, delta_days = await schedule.apply_rebaseline(
        db,
        project_id,
        payload.new_baseline_start,
        payload.reset_statuses,
        payload.clear_delay_reasons,
    )
    return RebaselineResult(shifted_count=shifted, delta_days=delta_days)

@router.get("/{project_id}/summary", response_model=FinanceSummary)
async def project_summary(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionIdentity = Depends(get_current_session),
):
    if not policy.can_view_project_budget(session):
        raise PermissionDeniedError("Project financial summary unavailable for this role")
    await get_accessible_project(db, project_id, session)
    df = await get_task_dataframe(db, project_id)
    return finance_summary(df)
