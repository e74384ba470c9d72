"""Initial schema with jobs table

Revision ID: 001
Revises:
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JOB_STATUSES = ("pending", "running", "success", "failure")


def upgrade() -> None:
    # Status is a constrained string so the same migration runs on SQLite
    op.create_table(
        "jobs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("payload", sa.Text, nullable=False),
        sa.Column(
            "status",
            sa.Enum(*JOB_STATUSES, name="job_status", native_enum=False, create_constraint=True, length=16),
            nullable=False,
        ),
        sa.Column("worker_id", sa.String(255), nullable=True),
        sa.Column("retry_count", sa.Integer, nullable=False),
        sa.Column("max_retries", sa.Integer, nullable=False),
        sa.Column("last_error", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "max_retries >= 0 AND max_retries <= 64",
            name="ck_jobs_max_retries_range",
        ),
        sa.CheckConstraint("retry_count >= 0", name="ck_jobs_retry_count_positive"),
        sa.CheckConstraint(
            "(status = 'pending' AND worker_id IS NULL)"
            " OR (status <> 'pending' AND worker_id IS NOT NULL)",
            name="ck_jobs_worker_assigned",
        ),
        sa.CheckConstraint(
            "last_error IS NULL OR status = 'failure'",
            name="ck_jobs_last_error_on_failure",
        ),
    )

    # Index for claim candidate selection
    op.create_index("ix_jobs_claim_order", "jobs", ["status", "created_at", "id"])


def downgrade() -> None:
    op.drop_index("ix_jobs_claim_order", table_name="jobs")
    op.drop_table("jobs")
