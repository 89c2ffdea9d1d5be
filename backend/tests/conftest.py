from fnmatch import fnmatchcase

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from edugate.application.services.demo_service import EnabledDemoMode
from edugate.config import settings
from edugate.domain.roles import UserRole
from edugate.infrastructure.db import models  # noqa: F401
from edugate.infrastructure.db.session import Base, get_db
from edugate.main import app
from tests.helpers.factories import (
    create_branch,
    create_class,
    create_notification,
    create_principal,
    create_school,
    create_student,
    create_teacher,
)


class FakeRedisClient:
    def __init__(self):
        self.store: dict[str, str] = {}

    def ping(self) -> bool:
        return True

    def get(self, key: str):
        return self.store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        return True

    def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    def scan_iter(self, match: str = "*"):
        return [key for key in list(self.store) if fnmatchcase(key, match)]


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedisClient()
    monkeypatch.setattr("edugate.infrastructure.cache.scoped_cache.get_redis_client", lambda: fake)
    monkeypatch.setattr("edugate.interfaces.api.v1.routes.ping.get_redis_client", lambda: fake)
    return fake


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(engine, fake_redis):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def demo_settings(monkeypatch):
    monkeypatch.setattr(settings, "demo_mode_enabled", True)
    return settings


@pytest.fixture
def demo_client(client, demo_settings):
    client.app.state.demo_mode = EnabledDemoMode(demo_settings)
    yield client


@pytest.fixture
def seeded(db_session):
    """Two schools; the first has two branches, the second one.

    Principals of the first school: an unrestricted admin, an admin restricted to
    branch one, a teacher and a student on branch one, a parent on branch two.
    """
    north = create_school(db_session, "North High", "north-high")
    south = create_school(db_session, "South High", "south-high")
    north_b1 = create_branch(db_session, north.id, "North Main", is_main=True)
    north_b2 = create_branch(db_session, north.id, "North Annex")
    south_b1 = create_branch(db_session, south.id, "South Main", is_main=True)

    admin = create_principal(db_session, "admin@north.test", UserRole.admin, north.id)
    branch_admin = create_principal(db_session, "branch.admin@north.test", UserRole.admin, north.id, north_b1.id)
    teacher = create_principal(db_session, "teacher@north.test", UserRole.teacher, north.id, north_b1.id)
    student_user = create_principal(db_session, "student@north.test", UserRole.student, north.id, north_b1.id)
    parent = create_principal(db_session, "parent@north.test", UserRole.parent, north.id, north_b2.id)
    south_admin = create_principal(db_session, "admin@south.test", UserRole.admin, south.id)

    teacher_row = create_teacher(db_session, north.id, "Tina Teacher", north_b1.id, user_id=teacher.id)
    class_b1 = create_class(db_session, north.id, "10A", north_b1.id)
    class_b2 = create_class(db_session, north.id, "10B", north_b2.id)
    student_b1 = create_student(db_session, north.id, "Alice Branch One", north_b1.id, user_id=student_user.id)
    student_b2 = create_student(db_session, north.id, "Bob Branch Two", north_b2.id)
    student_unassigned = create_student(db_session, north.id, "Carol Unassigned")
    student_south = create_student(db_session, south.id, "Dan South", south_b1.id)

    direct_teacher = create_notification(db_session, north.id, "For the teacher", north_b1.id, user_id=teacher.id)
    teachers_broadcast = create_notification(db_session, north.id, "All teachers", audience=[UserRole.teacher.value])
    everyone_b2 = create_notification(db_session, north.id, "Annex notice", north_b2.id, audience=["all"])
    south_broadcast = create_notification(db_session, south.id, "South notice", audience=["all"])

    return {
        "north": north,
        "south": south,
        "north_b1": north_b1,
        "north_b2": north_b2,
        "south_b1": south_b1,
        "admin": admin,
        "branch_admin": branch_admin,
        "teacher": teacher,
        "student_user": student_user,
        "parent": parent,
        "south_admin": south_admin,
        "teacher_row": teacher_row,
        "class_b1": class_b1,
        "class_b2": class_b2,
        "student_b1": student_b1,
        "student_b2": student_b2,
        "student_unassigned": student_unassigned,
        "student_south": student_south,
        "direct_teacher": direct_teacher,
        "teachers_broadcast": teachers_broadcast,
        "everyone_b2": everyone_b2,
        "south_broadcast": south_broadcast,
    }
