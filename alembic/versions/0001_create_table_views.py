# File: /alembic/versions/0001_create_table_views.py | Version: 1.0 | Title: Create table_views (saved table views)
"""create table_views"""

import sqlalchemy as sa

from alembic import op

revision = "0001_create_table_views"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "table_views",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("table_class", sa.String(), nullable=False),
        sa.Column("table_name", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("state_payload", sa.Text(), nullable=True),
        sa.Column("request_payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_table_views_user", "table_views", ["user_id"])
    op.create_index("ix_table_views_table", "table_views", ["table_class", "table_name"])


def downgrade():
    op.drop_index("ix_table_views_table", table_name="table_views")
    op.drop_index("ix_table_views_user", table_name="table_views")
    op.drop_table("table_views")
