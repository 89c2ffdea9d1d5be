from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from edugate.domain.entities import AttendanceStatus, FeeStatus
from edugate.interfaces.api.v1.schemas.pagination import PaginationMeta


class ScopedWrite(BaseModel):
    # school_id is never accepted from clients; extra keys are dropped.
    model_config = ConfigDict(extra="ignore")

    branch_id: UUID | None = None


class ScopedResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    school_id: UUID
    branch_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class StudentCreate(ScopedWrite):
    full_name: str = Field(min_length=1, max_length=255)
    email: str | None = None
    grade: str | None = None
    section: str | None = None
    class_id: UUID | None = None
    user_id: UUID | None = None
    status: str = "active"


class StudentUpdate(ScopedWrite):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = None
    grade: str | None = None
    section: str | None = None
    class_id: UUID | None = None
    user_id: UUID | None = None
    status: str | None = None


class StudentResponse(ScopedResponse):
    full_name: str
    email: str | None = None
    grade: str | None = None
    section: str | None = None
    class_id: UUID | None = None
    user_id: UUID | None = None
    status: str


class TeacherCreate(ScopedWrite):
    full_name: str = Field(min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    subject: str | None = None
    user_id: UUID | None = None


class TeacherUpdate(ScopedWrite):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    subject: str | None = None
    user_id: UUID | None = None


class TeacherResponse(ScopedResponse):
    full_name: str
    email: str | None = None
    phone: str | None = None
    subject: str | None = None
    user_id: UUID | None = None


class ParentCreate(ScopedWrite):
    full_name: str = Field(min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    user_id: UUID | None = None


class ParentUpdate(ScopedWrite):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    user_id: UUID | None = None


class ParentResponse(ScopedResponse):
    full_name: str
    email: str | None = None
    phone: str | None = None
    user_id: UUID | None = None


class ClassCreate(ScopedWrite):
    name: str = Field(min_length=1, max_length=100)
    grade: str | None = None
    section: str | None = None
    teacher_id: UUID | None = None


class ClassUpdate(ScopedWrite):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    grade: str | None = None
    section: str | None = None
    teacher_id: UUID | None = None


class ClassResponse(ScopedResponse):
    name: str
    grade: str | None = None
    section: str | None = None
    teacher_id: UUID | None = None


class FeeCreate(ScopedWrite):
    student_id: UUID
    title: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    due_date: date | None = None
    status: FeeStatus = FeeStatus.pending


class FeeUpdate(ScopedWrite):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    amount: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    due_date: date | None = None
    status: FeeStatus | None = None


class FeeResponse(ScopedResponse):
    student_id: UUID
    title: str
    amount: Decimal
    due_date: date | None = None
    status: FeeStatus


class AttendanceCreate(ScopedWrite):
    student_id: UUID
    class_id: UUID | None = None
    attendance_date: date
    status: AttendanceStatus


class AttendanceUpdate(ScopedWrite):
    class_id: UUID | None = None
    attendance_date: date | None = None
    status: AttendanceStatus | None = None


class AttendanceResponse(ScopedResponse):
    student_id: UUID
    class_id: UUID | None = None
    attendance_date: date
    status: AttendanceStatus
    recorded_by: UUID | None = None


class NotificationCreate(ScopedWrite):
    title: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1)
    user_id: UUID | None = None
    audience: list[str] = Field(default_factory=list)


class NotificationResponse(ScopedResponse):
    title: str
    body: str
    user_id: UUID | None = None
    audience: list[str]
    created_by: UUID | None = None


class StudentListResponse(BaseModel):
    items: list[StudentResponse]
    pagination: PaginationMeta


class TeacherListResponse(BaseModel):
    items: list[TeacherResponse]
    pagination: PaginationMeta


class ParentListResponse(BaseModel):
    items: list[ParentResponse]
    pagination: PaginationMeta


class ClassListResponse(BaseModel):
    items: list[ClassResponse]
    pagination: PaginationMeta


class FeeListResponse(BaseModel):
    items: list[FeeResponse]
    pagination: PaginationMeta


class AttendanceListResponse(BaseModel):
    items: list[AttendanceResponse]
    pagination: PaginationMeta


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    pagination: PaginationMeta
