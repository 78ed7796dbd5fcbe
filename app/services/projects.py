from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.database import commit_or_raise
from app.models.project import Project
from app.schemas.auth import SessionIdentity
from app.schemas.project import ProjectCreate, ProjectUpdate
from app.services import policy
from app.services.tasks import get_accessible_project
from app.utils.exceptions import ConflictError, PermissionDeniedError, ValidationError

REQUIRED_FIELDS = {
    "name", "custom_contractors", "project_start_date",
    "project_current_date", "project_duration_months", "archived",
}


async def create_project(db: AsyncSession, data: ProjectCreate, session: SessionIdentity) -> Project:
    """
    A session bound to a project can only create that project, under the same id.
    Access-code sessions may create any project; without an id one is generated.
    """
    if not policy.can_manage_tasks(session):
        raise PermissionDeniedError("Only admins and project managers can create projects")

    project_id = data.id or session.project_id
    if project_id and not policy.can_access_project(session, project_id):
        raise PermissionDeniedError("You are not signed in to this project")

    if project_id:
        result = await db.execute(select(Project).filter(Project.id == project_id))
        if result.scalars().first():
            raise ConflictError("Project already exists")

    project = Project(created_by=session.user_token, **data.model_dump(exclude={"id"}))
    if project_id:
        project.id = project_id
    db.add(project)
    await commit_or_raise(db, "create project")
    await db.refresh(project)
    return project


async def update_project(db: AsyncSession, project_id: str, data: ProjectUpdate, session: SessionIdentity) -> Project:
    if not policy.can_manage_tasks(session):
        raise PermissionDeniedError("Only admins and project managers can change project settings")

    changes = data.model_dump(exclude_unset=True)
    cleared = sorted(key for key in REQUIRED_FIELDS if key in changes and changes[key] is None)
    if cleared:
        raise ValidationError(f"Cannot clear required fields: {', '.join(cleared)}")

    project = await get_accessible_project(db, project_id, session)
    for key, value in changes.items():
        setattr(project, key, value)

    await commit_or_raise(db, "update project")
    await db.refresh(project)
    return project
