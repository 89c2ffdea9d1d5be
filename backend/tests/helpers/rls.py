from sqlalchemy import Engine, text
from sqlalchemy.orm import Session

RLS_ROLE = "rls_tester"


def prepare_rls_tester(db: Session) -> None:
    role_exists = db.execute(text("SELECT 1 FROM pg_roles WHERE rolname = :name"), {"name": RLS_ROLE}).first()
    if role_exists is not None:
        db.execute(text(f"DROP OWNED BY {RLS_ROLE}"))
    db.execute(text(f"DROP ROLE IF EXISTS {RLS_ROLE}"))
    db.execute(text(f"CREATE ROLE {RLS_ROLE} LOGIN PASSWORD '{RLS_ROLE}'"))
    db.execute(text(f"GRANT USAGE ON SCHEMA public TO {RLS_ROLE}"))
    db.execute(text(f"GRANT SELECT, INSERT, UPDATE, DELETE ON ALL TABLES IN SCHEMA public TO {RLS_ROLE}"))
    db.commit()


def scope_settings(
    school_id=None,
    branch_id=None,
    restricted: bool | None = None,
    user_id=None,
    role: str | None = None,
    elevated: bool = False,
) -> dict[str, str]:
    values = {
        "app.current_school_id": school_id,
        "app.current_branch_id": branch_id,
        "app.branch_restricted": None if restricted is None else ("true" if restricted else "false"),
        "app.current_user_id": user_id,
        "app.current_role": role,
        "app.is_elevated": "true" if elevated else None,
    }
    return {name: str(value) for name, value in values.items() if value is not None}


def _apply(connection, settings: dict[str, str]) -> None:
    connection.execute(text(f"SET LOCAL ROLE {RLS_ROLE}"))
    for name, value in settings.items():
        connection.execute(text("SELECT set_config(:name, :value, true)"), {"name": name, "value": value})


def visible_ids(engine: Engine, table: str, settings: dict[str, str]) -> set[str]:
    with engine.connect() as connection:
        try:
            _apply(connection, settings)
            return set(connection.execute(text(f"SELECT id::text FROM {table}")).scalars().all())
        finally:
            connection.rollback()


def insert_student_as(engine: Engine, settings: dict[str, str], school_id, branch_id, full_name: str) -> None:
    with engine.connect() as connection:
        try:
            _apply(connection, settings)
            connection.execute(
                text(
                    """
                    INSERT INTO students (id, school_id, branch_id, full_name, status)
                    VALUES (gen_random_uuid(), :school_id, :branch_id, :full_name, 'active')
                    """
                ),
                {
                    "school_id": str(school_id),
                    "branch_id": str(branch_id) if branch_id is not None else None,
                    "full_name": full_name,
                },
            )
        finally:
            connection.rollback()


def delete_as_owner(engine: Engine, table: str, row_id) -> None:
    """Run a DELETE as the table owner and always roll it back."""
    with engine.connect() as connection:
        try:
            connection.execute(text(f"DELETE FROM {table} WHERE id = :row_id"), {"row_id": str(row_id)})
        finally:
            connection.rollback()
