import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from edugate.application.errors import PermissionDeniedError
from edugate.application.services.demo_service import (
    DEMO_PRINCIPAL_IDS,
    DisabledDemoMode,
    EnabledDemoMode,
    build_demo_mode,
    with_demo_fallback,
)
from edugate.config import Settings
from edugate.domain.roles import UserRole


class PgDenied(Exception):
    pgcode = "42501"


def _denied_query():
    raise PermissionDeniedError("no provisioned record")


def _enabled() -> EnabledDemoMode:
    return EnabledDemoMode(Settings(demo_mode_enabled=True))


def test_enabled_demo_mode_requires_flag():
    """
    Validate the enabled strategy cannot exist with the flag off.

    1. Build settings with demo mode disabled.
    2. Construct EnabledDemoMode once.
    3. Validate construction fails.
    """
    with pytest.raises(RuntimeError):
        EnabledDemoMode(Settings(demo_mode_enabled=False))


def test_build_demo_mode_follows_flag():
    """
    Validate strategy selection from settings.

    1. Build a strategy from disabled settings.
    2. Build a strategy from enabled settings.
    3. Validate the matching strategy types.
    """
    assert isinstance(build_demo_mode(Settings(demo_mode_enabled=False)), DisabledDemoMode)
    assert isinstance(build_demo_mode(Settings(demo_mode_enabled=True)), EnabledDemoMode)


def test_demo_teacher_gets_static_profile_on_denial():
    """
    Validate the demo fallback for a denied demo teacher.

    1. Run a denied query for a demo teacher under enabled demo mode.
    2. Validate the result is flagged as demo.
    3. Validate the static teacher profile is returned.
    """
    result = with_demo_fallback(
        _denied_query, role=UserRole.teacher, email="demo_teacher@x.com", demo_mode=_enabled()
    )
    assert result.is_demo is True
    assert result.data["name"] == "Demo Teacher"
    assert result.data["subjects"] == ["Mathematics", "Science"]
    assert result.data["id"] == str(DEMO_PRINCIPAL_IDS[UserRole.teacher])


def test_real_parent_gets_empty_result_on_denial():
    """
    Validate non-demo identities never get a fabricated profile.

    1. Run a denied query for a real parent under enabled demo mode.
    2. Validate the result is the empty value.
    3. Validate the result is not flagged as demo.
    """
    result = with_demo_fallback(
        _denied_query, role=UserRole.parent, email="parent@school.org", demo_mode=_enabled(), empty=[]
    )
    assert result.data == []
    assert result.is_demo is False


def test_demo_identity_gets_empty_result_when_disabled():
    """
    Validate demo emails get nothing special with demo mode off.

    1. Run a denied query for a demo email under the disabled strategy.
    2. Validate the empty value is returned without the demo flag.
    """
    result = with_demo_fallback(
        _denied_query, role=UserRole.teacher, email="demo_teacher@x.com", demo_mode=DisabledDemoMode()
    )
    assert result.data is None
    assert result.is_demo is False


def test_database_permission_denial_triggers_fallback():
    """
    Validate SQLSTATE 42501 from the driver is treated as a denial.

    1. Raise a ProgrammingError wrapping a driver error with pgcode 42501.
    2. Run it through the fallback for a demo admin.
    3. Validate the demo admin profile is returned.
    """

    def query():
        raise ProgrammingError("SELECT 1", {}, PgDenied("denied"))

    result = with_demo_fallback(query, role=UserRole.admin, email="admin@demo.com", demo_mode=_enabled())
    assert result.is_demo is True
    assert result.data["title"] == "Administrator"


def test_other_database_errors_propagate():
    """
    Validate only denials are converted.

    1. Raise an OperationalError from the query.
    2. Run it through the fallback for a demo identity.
    3. Validate the error propagates.
    """

    def query():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    with pytest.raises(OperationalError):
        with_demo_fallback(query, role=UserRole.admin, email="admin@demo.com", demo_mode=_enabled())


def test_successful_query_passes_through():
    """
    Validate the fallback never alters successful results.

    1. Run a query that returns a value for a demo identity.
    2. Validate the value and the non-demo flag.
    """
    result = with_demo_fallback(lambda: {"ok": True}, role=UserRole.admin, email="admin@demo.com", demo_mode=_enabled())
    assert result.data == {"ok": True}
    assert result.is_demo is False


def test_demo_authentication_checks_password_and_role():
    """
    Validate demo sign-in rules.

    1. Authenticate a demo teacher with the shared password.
    2. Authenticate with a wrong password and with an unknown role.
    3. Validate only the first yields a demo identity with the fixed id.
    """
    demo_mode = _enabled()
    identity = demo_mode.authenticate("demo_teacher@x.com", "password123")
    assert identity is not None
    assert identity.is_demo is True
    assert identity.id == DEMO_PRINCIPAL_IDS[UserRole.teacher]
    assert demo_mode.authenticate("demo_teacher@x.com", "wrong") is None
    assert demo_mode.authenticate("demo_janitor@x.com", "password123") is None
