"""tenant scoped records and notifications

Revision ID: 0002_scoped_tables
Revises: 0001_schools_branches_users
Create Date: 2026-10-05 11:30:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0002_scoped_tables"
down_revision = "0001_schools_branches_users"
branch_labels = None
depends_on = None

fee_status = sa.Enum("pending", "partial", "paid", "overdue", name="fee_status")
attendance_status = sa.Enum("present", "absent", "late", "excused", name="attendance_status")


def _tenant_columns() -> list[sa.Column]:
    return [
        sa.Column("school_id", sa.Uuid(), sa.ForeignKey("schools.id", ondelete="CASCADE"), nullable=False),
        sa.Column("branch_id", sa.Uuid(), sa.ForeignKey("branches.id", ondelete="CASCADE"), nullable=True),
    ]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def _owner_column() -> sa.Column:
    return sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


def _index_tenant_columns(table: str) -> None:
    op.create_index(f"ix_{table}_school_id", table, ["school_id"], unique=False)
    op.create_index(f"ix_{table}_branch_id", table, ["branch_id"], unique=False)


def upgrade() -> None:
    op.create_table(
        "teachers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_tenant_columns(),
        _owner_column(),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("subject", sa.String(length=100), nullable=True),
        *_timestamps(),
    )
    _index_tenant_columns("teachers")
    op.create_index("ix_teachers_user_id", "teachers", ["user_id"], unique=False)
    op.create_index("ix_teachers_full_name", "teachers", ["full_name"], unique=False)

    op.create_table(
        "classes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_tenant_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("grade", sa.String(length=50), nullable=True),
        sa.Column("section", sa.String(length=50), nullable=True),
        sa.Column("teacher_id", sa.Uuid(), sa.ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    _index_tenant_columns("classes")
    op.create_index("ix_classes_name", "classes", ["name"], unique=False)
    op.create_index("ix_classes_teacher_id", "classes", ["teacher_id"], unique=False)

    op.create_table(
        "students",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_tenant_columns(),
        _owner_column(),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("grade", sa.String(length=50), nullable=True),
        sa.Column("section", sa.String(length=50), nullable=True),
        sa.Column("class_id", sa.Uuid(), sa.ForeignKey("classes.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="active"),
        *_timestamps(),
    )
    _index_tenant_columns("students")
    op.create_index("ix_students_user_id", "students", ["user_id"], unique=False)
    op.create_index("ix_students_full_name", "students", ["full_name"], unique=False)
    op.create_index("ix_students_class_id", "students", ["class_id"], unique=False)

    op.create_table(
        "parents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_tenant_columns(),
        _owner_column(),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        *_timestamps(),
    )
    _index_tenant_columns("parents")
    op.create_index("ix_parents_user_id", "parents", ["user_id"], unique=False)
    op.create_index("ix_parents_full_name", "parents", ["full_name"], unique=False)

    op.create_table(
        "fees",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_tenant_columns(),
        sa.Column("student_id", sa.Uuid(), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("status", fee_status, nullable=False, server_default="pending"),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_fees_amount_positive"),
    )
    _index_tenant_columns("fees")
    op.create_index("ix_fees_student_id", "fees", ["student_id"], unique=False)
    op.create_index("ix_fees_title", "fees", ["title"], unique=False)

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_tenant_columns(),
        sa.Column("student_id", sa.Uuid(), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("class_id", sa.Uuid(), sa.ForeignKey("classes.id", ondelete="SET NULL"), nullable=True),
        sa.Column("attendance_date", sa.Date(), nullable=False),
        sa.Column("status", attendance_status, nullable=False),
        sa.Column("recorded_by", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    _index_tenant_columns("attendance_records")
    op.create_index("ix_attendance_records_student_id", "attendance_records", ["student_id"], unique=False)
    op.create_index("ix_attendance_records_class_id", "attendance_records", ["class_id"], unique=False)
    op.create_index(
        "ix_attendance_records_attendance_date", "attendance_records", ["attendance_date"], unique=False
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_tenant_columns(),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
        sa.Column(
            "audience",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    _index_tenant_columns("notifications")
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)


def downgrade() -> None:
    for table in ("notifications", "attendance_records", "fees", "parents", "students", "classes", "teachers"):
        op.drop_table(table)
    attendance_status.drop(op.get_bind(), checkfirst=True)
    fee_status.drop(op.get_bind(), checkfirst=True)
