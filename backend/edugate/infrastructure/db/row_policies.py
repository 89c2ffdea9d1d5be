"""Postgres row-level-security policies for tenant-scoped tables.

The session settings written by ``scope_service.bind_scope`` are the only inputs:

- ``app.current_school_id`` / ``app.current_branch_id`` / ``app.branch_restricted``
- ``app.current_user_id`` / ``app.current_role`` (notifications only)
- ``app.is_elevated`` (audited administrative path)

Unset settings read back as NULL or '' and fail every comparison, so a session that
never bound a scope sees no rows.
"""

from dataclasses import dataclass

SCOPED_TABLES: tuple[str, ...] = (
    "students",
    "teachers",
    "parents",
    "classes",
    "fees",
    "attendance_records",
)
NOTIFICATION_TABLE = "notifications"
BRANCH_TABLE = "branches"

ELEVATED_SQL = "current_setting('app.is_elevated', true) = 'true'"

SCHOOL_MATCH_SQL = "school_id::text = current_setting('app.current_school_id', true)"

BRANCH_MATCH_SQL = """(
        current_setting('app.branch_restricted', true) = 'false'
        OR branch_id IS NULL
        OR branch_id::text = current_setting('app.current_branch_id', true)
    )"""

ADDRESSEE_SQL = """(
        user_id::text = current_setting('app.current_user_id', true)
        OR (
            user_id IS NULL
            AND (
                audience ? 'all'
                OR audience ? current_setting('app.current_role', true)
            )
        )
    )"""


@dataclass(frozen=True)
class TablePolicy:
    table: str
    predicate: str

    @property
    def name(self) -> str:
        return f"{self.table}_row_visibility"

    def create_statements(self) -> list[str]:
        return [
            f"ALTER TABLE {self.table} ENABLE ROW LEVEL SECURITY",
            f"ALTER TABLE {self.table} FORCE ROW LEVEL SECURITY",
            f"DROP POLICY IF EXISTS {self.name} ON {self.table}",
            f"""
            CREATE POLICY {self.name}
            ON {self.table}
            FOR ALL
            USING ({self.predicate})
            WITH CHECK ({self.predicate})
            """,
        ]

    def drop_statements(self) -> list[str]:
        return [
            f"DROP POLICY IF EXISTS {self.name} ON {self.table}",
            f"ALTER TABLE {self.table} NO FORCE ROW LEVEL SECURITY",
            f"ALTER TABLE {self.table} DISABLE ROW LEVEL SECURITY",
        ]


def scoped_predicate_sql() -> str:
    return f"{ELEVATED_SQL} OR ({SCHOOL_MATCH_SQL} AND {BRANCH_MATCH_SQL})"


def notification_predicate_sql() -> str:
    return f"{ELEVATED_SQL} OR ({SCHOOL_MATCH_SQL} AND {BRANCH_MATCH_SQL} AND {ADDRESSEE_SQL})"


def branch_predicate_sql() -> str:
    # Branches are visible school-wide so restricted principals can still list them.
    return f"{ELEVATED_SQL} OR school_id::text = current_setting('app.current_school_id', true)"


def all_policies() -> list[TablePolicy]:
    policies = [TablePolicy(table=table, predicate=scoped_predicate_sql()) for table in SCOPED_TABLES]
    policies.append(TablePolicy(table=NOTIFICATION_TABLE, predicate=notification_predicate_sql()))
    policies.append(TablePolicy(table=BRANCH_TABLE, predicate=branch_predicate_sql()))
    return policies
