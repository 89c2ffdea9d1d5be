"""Demo-mode strategy and the permission-denied fallback for demo accounts.

Demo accounts bypass the credential store and get static profiles when the row
visibility policy denies them. Both are deliberate holes in the authentication
boundary. They only exist through ``EnabledDemoMode``, which is built at startup when
``demo_mode_enabled`` is set and cannot be constructed otherwise.
"""

import hmac
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.exc import DBAPIError

from edugate.application.errors import PermissionDeniedError, is_permission_denied
from edugate.config import Settings
from edugate.domain.identity import Identity, is_demo_email, role_from_demo_email
from edugate.domain.roles import UserRole
from edugate.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEMO_PRINCIPAL_IDS: dict[UserRole, UUID] = {
    UserRole.admin: UUID("11111111-1111-1111-1111-111111111111"),
    UserRole.teacher: UUID("22222222-2222-2222-2222-222222222222"),
    UserRole.parent: UUID("12345678-1234-1234-1234-123456781234"),
    UserRole.student: UUID("87654321-4321-4321-4321-876543218765"),
    UserRole.proprietor: UUID("d3300000-0000-0000-0000-000000000005"),
    UserRole.inspector: UUID("d3300000-0000-0000-0000-000000000006"),
    UserRole.exam_officer: UUID("d3300000-0000-0000-0000-000000000007"),
    UserRole.compliance_officer: UUID("d3300000-0000-0000-0000-000000000008"),
}

DEMO_PROFILES: dict[UserRole, dict[str, Any]] = {
    UserRole.student: {
        "name": "Demo Student",
        "grade": "Grade 10",
        "class": "Class A",
        "student_id": "STU001",
        "xp": 1500,
        "level": 5,
    },
    UserRole.teacher: {
        "name": "Demo Teacher",
        "subjects": ["Mathematics", "Science"],
        "classes": ["Class 10A", "Class 10B"],
    },
    UserRole.admin: {"name": "Demo Admin", "title": "Administrator"},
    UserRole.parent: {"name": "Demo Parent", "children": []},
    UserRole.proprietor: {"name": "Demo Proprietor", "title": "Proprietor"},
    UserRole.inspector: {"name": "Demo Inspector", "title": "Inspector"},
    UserRole.exam_officer: {"name": "Demo Exam Officer", "title": "Exam Officer"},
    UserRole.compliance_officer: {"name": "Demo Compliance Officer", "title": "Compliance Officer"},
}


@dataclass(frozen=True)
class FallbackResult:
    data: Any
    is_demo: bool


class DemoMode:
    """Base strategy: no demo identity is ever recognized."""

    enabled = False

    def covers(self, email: str | None) -> bool:
        return False

    def authenticate(self, email: str, password: str) -> Identity | None:
        return None

    def identity_from_claims(self, claims: dict[str, Any]) -> Identity | None:
        return None

    def fallback_profile(self, role: UserRole, email: str | None) -> dict[str, Any] | None:
        return None


class DisabledDemoMode(DemoMode):
    """Strategy used whenever demo_mode_enabled is false."""


class EnabledDemoMode(DemoMode):
    enabled = True

    def __init__(self, app_settings: Settings):
        if not app_settings.demo_mode_enabled:
            raise RuntimeError("Demo mode requires demo_mode_enabled=true")
        self._school_id = app_settings.demo_school_id
        self._password = app_settings.demo_password

    def covers(self, email: str | None) -> bool:
        return is_demo_email(email)

    def _identity_for(self, email: str) -> Identity | None:
        try:
            role = role_from_demo_email(email)
        except ValueError:
            return None
        return Identity(
            id=DEMO_PRINCIPAL_IDS[role],
            email=email.strip().lower(),
            role=role,
            school_id=self._school_id,
            is_demo=True,
        )

    def authenticate(self, email: str, password: str) -> Identity | None:
        if not self.covers(email):
            return None
        if not hmac.compare_digest(password.encode(), self._password.encode()):
            return None
        return self._identity_for(email)

    def identity_from_claims(self, claims: dict[str, Any]) -> Identity | None:
        email = claims.get("email")
        if not claims.get("demo") or not isinstance(email, str) or not self.covers(email):
            return None
        identity = self._identity_for(email)
        if identity is None or str(identity.id) != str(claims.get("sub")):
            return None
        return identity

    def fallback_profile(self, role: UserRole, email: str | None) -> dict[str, Any] | None:
        if not self.covers(email):
            return None
        return {"id": str(DEMO_PRINCIPAL_IDS[role]), "email": email, "role": role.value, **DEMO_PROFILES[role]}


def build_demo_mode(app_settings: Settings) -> DemoMode:
    if not app_settings.demo_mode_enabled:
        return DisabledDemoMode()
    logger.warning(
        "demo_mode_enabled",
        environment=app_settings.environment,
        demo_school_id=str(app_settings.demo_school_id),
    )
    return EnabledDemoMode(app_settings)


def with_demo_fallback(
    query_fn: Callable[[], Any],
    *,
    role: UserRole,
    email: str | None,
    demo_mode: DemoMode,
    empty: Any = None,
) -> FallbackResult:
    """Run ``query_fn`` and turn a permission denial into a result.

    A denial becomes the static demo profile for demo identities under an enabled
    demo mode, and ``empty`` for everyone else. Other errors propagate.
    """
    try:
        data = query_fn()
    except (PermissionDeniedError, DBAPIError) as exc:
        if not is_permission_denied(exc):
            raise
        profile = demo_mode.fallback_profile(role, email)
        if profile is not None:
            logger.warning("demo_fallback_applied", role=role.value, email=email)
            return FallbackResult(data=profile, is_demo=True)
        logger.info("permission_denied_as_empty", role=role.value)
        return FallbackResult(data=empty, is_demo=False)
    return FallbackResult(data=data, is_demo=False)
