from enum import Enum


class UserRole(str, Enum):
    admin = "admin"
    teacher = "teacher"
    parent = "parent"
    student = "student"
    proprietor = "proprietor"
    inspector = "inspector"
    exam_officer = "exam_officer"
    compliance_officer = "compliance_officer"


ROLE_ALIASES: dict[str, UserRole] = {
    "administrator": UserRole.admin,
    "examofficer": UserRole.exam_officer,
    "compliance": UserRole.compliance_officer,
    "complianceofficer": UserRole.compliance_officer,
}

_COMPACT_ROLES = {role.value.replace("_", ""): role for role in UserRole}


def normalize_role(value: str | UserRole) -> UserRole:
    """Map any casing or spelling of a role tag onto the closed enumeration.

    Raises ValueError for tags outside the enumeration.
    """
    if isinstance(value, UserRole):
        return value
    compact = "".join(ch for ch in str(value).strip().lower() if ch not in " _-")
    if compact in _COMPACT_ROLES:
        return _COMPACT_ROLES[compact]
    if compact in ROLE_ALIASES:
        return ROLE_ALIASES[compact]
    raise ValueError(f"Unknown role: {value!r}")


BRANCH_SWITCHING_ROLES = frozenset({UserRole.admin, UserRole.proprietor})
