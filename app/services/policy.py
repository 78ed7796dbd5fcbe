"""
Authorization predicates.

Every function takes the caller's session (anything exposing ``role`` and
``user_token``, or None when signed out) and, where relevant, a task. They
read nothing but their arguments, so they can be evaluated anywhere.
"""

from app.utils.exceptions import ValidationError
from app.utils.roles import ELEVATED_ROLES, MANAGER_ROLES, Role, canonical_role


def session_role(session) -> Role | None:
    if session is None:
        return None
    try:
        return canonical_role(getattr(session, "role", None))
    except ValidationError:
        return None


def is_elevated(session) -> bool:
    return session_role(session) in ELEVATED_ROLES


def is_admin(session) -> bool:
    return session_role(session) is Role.ADMIN


def can_manage_tasks(session) -> bool:
    return session_role(session) in MANAGER_ROLES


def can_delete_tasks(session) -> bool:
    return session_role(session) is Role.ADMIN


def can_access_project(session, project_id) -> bool:
    """
    Password sessions are bound to the project they signed in to. Access-code
    sessions carry no project and are not restricted to one.
    """
    if session is None or not project_id:
        return False
    scope = getattr(session, "project_id", None)
    return scope is None or scope == project_id


def can_view_project_budget(session) -> bool:
    return is_elevated(session)


def is_assignee(session, task) -> bool:
    if session is None or task is None:
        return False
    assigned = getattr(task, "assigned_user_token", None)
    return assigned is not None and assigned == session.user_token


def can_view_task_budget(session, task) -> bool:
    """Elevated roles see every budget; a contractor only the work assigned to them."""
    if session is None or task is None:
        return False
    if is_elevated(session):
        return True
    if session_role(session) is Role.CONTRACTOR:
        return is_assignee(session, task)
    return False


def can_open_task(task, session) -> bool:
    """
    Whether the task's details may be shown. Contractors open tasks assigned
    to them or owned by their trade; evaluate per task, never cache.
    """
    if session is None or task is None:
        return False
    if is_elevated(session):
        return True
    if session_role(session) is not Role.CONTRACTOR:
        return False
    if is_assignee(session, task):
        return True
    trade = getattr(session, "contractor_role", None)
    return bool(trade) and trade in (getattr(task, "owner_roles", None) or [])


def can_update_progress(session, task) -> bool:
    return can_manage_tasks(session) or is_assignee(session, task)


class AccessPolicy:
    """The same predicates, evaluated against whatever a session store currently holds."""

    def __init__(self, store):
        self.store = store

    @property
    def session(self):
        return self.store.load()

    def is_elevated(self) -> bool:
        return is_elevated(self.session)

    def can_manage_tasks(self) -> bool:
        return can_manage_tasks(self.session)

    def can_delete_tasks(self) -> bool:
        return can_delete_tasks(self.session)

    def can_access_project(self, project_id) -> bool:
        return can_access_project(self.session, project_id)

    def can_view_project_budget(self) -> bool:
        return can_view_project_budget(self.session)

    def can_view_task_budget(self, task) -> bool:
        return can_view_task_budget(self.session, task)

    def can_open_task(self, task) -> bool:
        return can_open_task(task, self.session)
