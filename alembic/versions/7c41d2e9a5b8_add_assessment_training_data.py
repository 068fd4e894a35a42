"""add_assessment_training_data

Revision ID: 7c41d2e9a5b8
Revises: 3f9a1c7e2b40
Create Date: 2026-10-25 09:30:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "7c41d2e9a5b8"
down_revision: str | None = "3f9a1c7e2b40"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
	op.create_table(
		"assessment_training_data",
		sa.Column(
			"id",
			postgresql.UUID(as_uuid=True),
			server_default=sa.text("uuid_generate_v4()"),
			nullable=False,
		),
		sa.Column("title", sa.String(length=300), nullable=False),
		sa.Column("content", sa.Text(), nullable=False),
		sa.Column(
			"tags",
			postgresql.ARRAY(sa.Text()),
			server_default=sa.text("'{}'"),
			nullable=False,
		),
		sa.Column(
			"created_at",
			sa.DateTime(timezone=True),
			server_default=sa.text("now()"),
			nullable=False,
		),
		sa.Column(
			"updated_at",
			sa.DateTime(timezone=True),
			server_default=sa.text("now()"),
			nullable=False,
		),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index(
		"ix_assessment_training_data_created",
		"assessment_training_data",
		["created_at"],
	)


def downgrade() -> None:
	op.drop_index("ix_assessment_training_data_created", table_name="assessment_training_data")
	op.drop_table("assessment_training_data")
