from dataclasses import dataclass
from uuid import UUID

from edugate.domain.roles import UserRole, normalize_role

DEMO_EMAIL_SUFFIX = "@demo.com"
DEMO_EMAIL_MARKER = "demo_"


@dataclass(frozen=True)
class Identity:
    """A verified principal. Tenant fields come from the principal record, never the request."""

    id: UUID
    email: str
    role: UserRole
    school_id: UUID
    home_branch_id: UUID | None = None
    viewing_branch_id: UUID | None = None
    is_demo: bool = False


def is_demo_email(email: str | None) -> bool:
    if not email:
        return False
    lowered = email.strip().lower()
    return lowered.endswith(DEMO_EMAIL_SUFFIX) or DEMO_EMAIL_MARKER in lowered


def role_from_demo_email(email: str) -> UserRole:
    """Parse the role from a demo email local part: demo_teacher@x -> teacher."""
    local_part = email.strip().lower().split("@")[0]
    return normalize_role(local_part.replace(DEMO_EMAIL_MARKER, ""))
