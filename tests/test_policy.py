from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.schemas.auth import SessionOut
from app.services import policy
from app.services.session_store import MemorySessionStore
from app.utils.exceptions import ValidationError
from app.utils.roles import Role, canonical_role


def make_session(role, user_token="u-1", contractor_role=None):
    return SimpleNamespace(role=role, user_token=user_token, contractor_role=contractor_role)


def make_task(assigned_user_token=None, owner_roles=()):
    return SimpleNamespace(assigned_user_token=assigned_user_token, owner_roles=list(owner_roles))


@pytest.mark.parametrize("raw, expected", [
    ("admin", Role.ADMIN),
    ("ADMIN", Role.ADMIN),
    ("Project Manager", Role.PROJECT_MANAGER),
    ("project-manager", Role.PROJECT_MANAGER),
    (" developer ", Role.DEVELOPER),
    ("Contractor", Role.CONTRACTOR),
])
def test_canonical_role_accepts_spelling_variants(raw, expected):
    assert canonical_role(raw) is expected


@pytest.mark.parametrize("raw", ["owner", "", None, 3])
def test_canonical_role_rejects_unknown_roles(raw):
    with pytest.raises(ValidationError):
        canonical_role(raw)


def test_elevated_roles():
    assert policy.is_elevated(make_session("admin"))
    assert policy.is_elevated(make_session("developer"))
    assert policy.is_elevated(make_session("project_manager"))
    assert not policy.is_elevated(make_session("contractor"))
    assert not policy.is_elevated(None)


def test_task_management_permissions():
    assert policy.can_manage_tasks(make_session("admin"))
    assert policy.can_manage_tasks(make_session("project_manager"))
    assert not policy.can_manage_tasks(make_session("developer"))
    assert not policy.can_manage_tasks(make_session("contractor"))
    assert not policy.can_manage_tasks(None)

    assert policy.can_delete_tasks(make_session("admin"))
    assert not policy.can_delete_tasks(make_session("project_manager"))
    assert not policy.can_delete_tasks(None)


def test_project_budget_visible_to_elevated_only():
    assert policy.can_view_project_budget(make_session("developer"))
    assert not policy.can_view_project_budget(make_session("contractor"))
    assert not policy.can_view_project_budget(None)


def test_unknown_role_gets_nothing():
    session = make_session("superuser")
    assert not policy.is_elevated(session)
    assert not policy.can_view_task_budget(session, make_task("u-1"))
    assert not policy.can_open_task(make_task("u-1"), session)


@pytest.mark.parametrize("role", ["admin", "developer", "project_manager"])
def test_task_budget_visible_to_elevated_on_any_task(role):
    session = make_session(role)
    assert policy.can_view_task_budget(session, make_task())
    assert policy.can_view_task_budget(session, make_task("someone-else"))


def test_contractor_sees_task_budget_only_when_assigned():
    session = make_session("contractor", user_token="c-1")
    assert policy.can_view_task_budget(session, make_task("c-1"))
    assert not policy.can_view_task_budget(session, make_task("c-2"))
    assert not policy.can_view_task_budget(session, make_task(None))
    assert not policy.can_view_task_budget(None, make_task("c-1"))
    assert not policy.can_view_task_budget(session, None)


def test_can_open_task_is_decided_per_task():
    session = make_session("contractor", user_token="c-1", contractor_role="Architect")

    assert policy.can_open_task(make_task("c-1"), session)
    assert policy.can_open_task(make_task(None, owner_roles=["Architect"]), session)
    assert not policy.can_open_task(make_task("c-2", owner_roles=["Chief of Plumbing"]), session)
    assert not policy.can_open_task(make_task("c-1"), None)
    assert policy.can_open_task(make_task("c-2"), make_session("developer"))


def test_progress_updates_allowed_for_managers_and_assignee():
    task = make_task("c-1")
    assert policy.can_update_progress(make_session("project_manager"), task)
    assert policy.can_update_progress(make_session("contractor", user_token="c-1"), task)
    assert not policy.can_update_progress(make_session("contractor", user_token="c-9"), task)
    assert not policy.can_update_progress(make_session("developer"), task)


def test_access_policy_reads_the_store_on_every_check():
    now = [datetime(2026, 3, 1, tzinfo=timezone.utc)]
    store = MemorySessionStore(clock=lambda: now[0])
    access = policy.AccessPolicy(store)

    assert not access.can_manage_tasks()

    store.save(SessionOut(
        session_token="s-1",
        user_token="pm-1",
        display_name="Pat",
        role="project_manager",
        expires_at=now[0] + timedelta(days=30),
    ))
    assert access.can_manage_tasks()
    assert access.can_view_project_budget()
    assert access.can_view_task_budget(make_task("other"))

    now[0] = now[0] + timedelta(days=31)
    assert not access.can_manage_tasks()
    assert store.load() is None


def test_project_access_follows_the_session_scope():
    scoped = SimpleNamespace(role="project_manager", user_token="pm-1", project_id="ProjectX")
    code_entry = SimpleNamespace(role="project_manager", user_token="pm-2", project_id=None)

    assert policy.can_access_project(scoped, "ProjectX")
    assert not policy.can_access_project(scoped, "OtherProject")
    assert policy.can_access_project(code_entry, "ProjectX")
    assert policy.can_access_project(code_entry, "OtherProject")
    assert not policy.can_access_project(None, "ProjectX")
    assert not policy.can_access_project(scoped, None)
