"""row visibility policies

Revision ID: 0003_row_visibility_policies
Revises: 0002_scoped_tables
Create Date: 2026-10-06 10:00:00
"""

from alembic import op

from edugate.infrastructure.db.row_policies import all_policies


# revision identifiers, used by Alembic.
revision = "0003_row_visibility_policies"
down_revision = "0002_scoped_tables"
branch_labels = None
depends_on = None


def upgrade() -> None:
    for policy in all_policies():
        for statement in policy.create_statements():
            op.execute(statement)


def downgrade() -> None:
    for policy in reversed(all_policies()):
        for statement in policy.drop_statements():
            op.execute(statement)
