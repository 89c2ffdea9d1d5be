from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, text
from sqlalchemy.orm import Session

from edugate.application.services.security_service import hash_password
from edugate.config import settings
from edugate.domain.entities import AttendanceStatus, FeeStatus
from edugate.domain.roles import UserRole
from edugate.infrastructure.db.models import (
    AttendanceRecord,
    Branch,
    Fee,
    Notification,
    Parent,
    School,
    SchoolClass,
    Student,
    Teacher,
    User,
)
from edugate.infrastructure.db.session import SessionLocal
from edugate.infrastructure.logging import configure_logging, get_logger

logger = get_logger(__name__)

ATTENDANCE_DAYS = 5
ANCHOR_DAY = date(2026, 10, 5)


def lift_row_policies(db: Session) -> None:
    if db.get_bind().dialect.name == "postgresql":
        db.execute(text("SELECT set_config('app.is_elevated', 'true', true)"))


def create_school_if_missing(db: Session, name: str, slug: str, school_id: UUID | None = None) -> School:
    school = db.execute(select(School).where(School.slug == slug)).scalar_one_or_none()
    if school is not None:
        return school

    school = School(name=name, slug=slug, is_active=True)
    if school_id is not None:
        school.id = school_id
    db.add(school)
    db.flush()
    return school


def create_branch_if_missing(db: Session, school: School, name: str, is_main: bool = False) -> Branch:
    branch = db.execute(
        select(Branch).where(Branch.school_id == school.id, Branch.name == name)
    ).scalar_one_or_none()
    if branch is not None:
        return branch
    branch = Branch(school_id=school.id, name=name, is_main=is_main)
    db.add(branch)
    db.flush()
    return branch


def create_principal_if_missing(
    db: Session,
    email: str,
    password: str,
    full_name: str,
    role: UserRole,
    school: School,
    home_branch: Branch | None = None,
) -> User:
    existing = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if existing is not None:
        return existing

    user = User(
        email=email,
        hashed_password=hash_password(password),
        full_name=full_name,
        role=role.value,
        school_id=school.id,
        home_branch_id=home_branch.id if home_branch is not None else None,
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


def create_record_if_missing(db: Session, model, lookup: dict, **values):
    query = select(model).where(*[getattr(model, key) == value for key, value in lookup.items()])
    record = db.execute(query).scalars().first()
    if record is not None:
        return record
    record = model(**lookup, **values)
    db.add(record)
    db.flush()
    return record


def seed_school(db: Session, school: School, branches: list[Branch], domain: str) -> None:
    main_branch = branches[0]
    admin = create_principal_if_missing(
        db, f"admin@{domain}", "admin1234", "School Admin", UserRole.admin, school
    )
    create_principal_if_missing(
        db, f"proprietor@{domain}", "owner1234", "School Proprietor", UserRole.proprietor, school
    )

    for index, branch in enumerate(branches, start=1):
        teacher_user = create_principal_if_missing(
            db, f"teacher{index}@{domain}", "teacher1234", f"Teacher {index}", UserRole.teacher, school, branch
        )
        student_user = create_principal_if_missing(
            db, f"student{index}@{domain}", "student1234", f"Student {index}", UserRole.student, school, branch
        )
        parent_user = create_principal_if_missing(
            db, f"parent{index}@{domain}", "parent1234", f"Parent {index}", UserRole.parent, school, branch
        )

        tenant = {"school_id": school.id, "branch_id": branch.id}
        teacher = create_record_if_missing(
            db, Teacher, {**tenant, "user_id": teacher_user.id}, full_name=teacher_user.full_name, subject="Mathematics"
        )
        school_class = create_record_if_missing(
            db, SchoolClass, {**tenant, "name": f"Grade 10 {branch.name}"}, grade="10", teacher_id=teacher.id
        )
        student = create_record_if_missing(
            db,
            Student,
            {**tenant, "user_id": student_user.id},
            full_name=student_user.full_name,
            grade="10",
            class_id=school_class.id,
        )
        create_record_if_missing(db, Parent, {**tenant, "user_id": parent_user.id}, full_name=parent_user.full_name)
        create_record_if_missing(
            db,
            Fee,
            {**tenant, "student_id": student.id, "title": "Term tuition"},
            amount=Decimal("450.00"),
            due_date=ANCHOR_DAY + timedelta(days=30),
            status=FeeStatus.pending,
        )
        for offset in range(ATTENDANCE_DAYS):
            create_record_if_missing(
                db,
                AttendanceRecord,
                {**tenant, "student_id": student.id, "attendance_date": ANCHOR_DAY - timedelta(days=offset)},
                class_id=school_class.id,
                status=AttendanceStatus.present if offset % 4 else AttendanceStatus.late,
                recorded_by=teacher_user.id,
            )

    create_record_if_missing(
        db,
        Notification,
        {"school_id": school.id, "branch_id": None, "title": "Welcome back"},
        audience=["all"],
        body="The new term starts on Monday.",
        created_by=admin.id,
    )
    create_record_if_missing(
        db,
        Notification,
        {"school_id": school.id, "branch_id": main_branch.id, "title": "Staff meeting"},
        audience=[UserRole.teacher.value, UserRole.admin.value],
        body="Staff meeting in the main hall at 3pm.",
        created_by=admin.id,
    )


def main() -> None:
    configure_logging()
    db = SessionLocal()
    try:
        lift_row_policies(db)
        demo_school = create_school_if_missing(
            db=db, name="Demo Academy", slug="demo-academy", school_id=settings.demo_school_id
        )
        demo_branches = [
            create_branch_if_missing(db, demo_school, "Main Campus", is_main=True),
            create_branch_if_missing(db, demo_school, "East Campus"),
        ]
        seed_school(db, demo_school, demo_branches, "demo-academy.test")

        other_school = create_school_if_missing(db=db, name="Riverside School", slug="riverside")
        other_branches = [create_branch_if_missing(db, other_school, "Riverside Main", is_main=True)]
        seed_school(db, other_school, other_branches, "riverside.test")

        db.commit()
        logger.info("seed_completed", schools=[str(demo_school.id), str(other_school.id)])
    finally:
        db.close()


if __name__ == "__main__":
    main()
