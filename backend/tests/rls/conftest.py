from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from testcontainers.postgres import PostgresContainer

from edugate.domain.roles import UserRole
from tests.helpers.factories import (
    create_branch,
    create_notification,
    create_principal,
    create_school,
    create_student,
)
from tests.helpers.rls import RLS_ROLE, prepare_rls_tester


@pytest.fixture(scope="session")
def postgres_url():
    try:
        container = PostgresContainer("postgres:16-alpine")
        container.start()
    except Exception as exc:
        pytest.skip(f"PostgreSQL container unavailable: {exc}")
    try:
        yield container.get_connection_url().replace("postgresql://", "postgresql+psycopg2://", 1)
    finally:
        container.stop()


def run_migrations(database_url: str) -> None:
    alembic_config = Config(str(Path(__file__).resolve().parents[2] / "alembic.ini"))
    alembic_config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(alembic_config, "head")


@pytest.fixture(scope="session")
def pg_engine(postgres_url):
    run_migrations(postgres_url)
    engine = create_engine(postgres_url, future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="session")
def pg_seeded(pg_engine):
    """Superuser-seeded rows; superusers bypass the row policies."""
    session = sessionmaker(bind=pg_engine, autoflush=False)()
    try:
        prepare_rls_tester(session)
        north = create_school(session, "North High", "north-high")
        south = create_school(session, "South High", "south-high")
        north_b1 = create_branch(session, north.id, "North Main", is_main=True)
        north_b2 = create_branch(session, north.id, "North Annex")
        south_b1 = create_branch(session, south.id, "South Main", is_main=True)

        teacher = create_principal(session, "teacher@north.test", UserRole.teacher, north.id, north_b1.id)
        parent = create_principal(session, "parent@north.test", UserRole.parent, north.id, north_b2.id)
        admin = create_principal(session, "admin@north.test", UserRole.admin, north.id)

        students = {
            "b1": create_student(session, north.id, "Alice", north_b1.id),
            "b2": create_student(session, north.id, "Bob", north_b2.id),
            "none": create_student(session, north.id, "Carol"),
            "south": create_student(session, south.id, "Dan", south_b1.id),
        }
        notifications = {
            "staff": create_notification(
                session, north.id, "Staff", audience=[UserRole.teacher.value, UserRole.admin.value]
            ),
            "direct_parent": create_notification(session, north.id, "Direct", north_b2.id, user_id=parent.id),
            "south_all": create_notification(session, south.id, "South", audience=["all"]),
        }
        yield {
            "north": north,
            "south": south,
            "north_b1": north_b1,
            "north_b2": north_b2,
            "south_b1": south_b1,
            "teacher": teacher,
            "parent": parent,
            "admin": admin,
            "students": students,
            "notifications": notifications,
        }
    finally:
        session.close()


@pytest.fixture(scope="session")
def rls_engine(pg_engine, pg_seeded):
    engine = create_engine(pg_engine.url.set(username=RLS_ROLE, password=RLS_ROLE), future=True)
    try:
        yield engine
    finally:
        engine.dispose()
