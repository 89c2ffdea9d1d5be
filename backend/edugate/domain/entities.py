from enum import Enum

from edugate.domain.roles import UserRole


class ScopedEntity(str, Enum):
    students = "students"
    teachers = "teachers"
    parents = "parents"
    classes = "classes"
    fees = "fees"
    attendance = "attendance"
    notifications = "notifications"


_STAFF_WRITERS = frozenset({UserRole.admin, UserRole.proprietor})

WRITE_ROLES: dict[ScopedEntity, frozenset[UserRole]] = {
    ScopedEntity.students: _STAFF_WRITERS,
    ScopedEntity.teachers: _STAFF_WRITERS,
    ScopedEntity.parents: _STAFF_WRITERS,
    ScopedEntity.classes: _STAFF_WRITERS,
    ScopedEntity.fees: _STAFF_WRITERS,
    ScopedEntity.attendance: _STAFF_WRITERS | {UserRole.teacher},
    ScopedEntity.notifications: _STAFF_WRITERS | {UserRole.teacher},
}

# Role-specific profile tables, keyed by the owner user_id column.
PROFILE_ENTITIES: dict[UserRole, ScopedEntity] = {
    UserRole.student: ScopedEntity.students,
    UserRole.teacher: ScopedEntity.teachers,
    UserRole.parent: ScopedEntity.parents,
}


def can_write(entity: ScopedEntity, role: UserRole) -> bool:
    return role in WRITE_ROLES[entity]


class FeeStatus(str, Enum):
    pending = "pending"
    partial = "partial"
    paid = "paid"
    overdue = "overdue"


class AttendanceStatus(str, Enum):
    present = "present"
    absent = "absent"
    late = "late"
    excused = "excused"
