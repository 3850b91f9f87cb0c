"""Initial schema - profiles, generated content, approval history.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- ENUM types ---
    plan_name = sa.Enum("free", "solo", "standard", "premium", name="plan_name")
    content_type = sa.Enum("article", "video", "image", "audio", "data", "social-post", name="content_type")
    content_status = sa.Enum(
        "pending", "approved", "declined", "scheduled", "publishing", "published", name="content_status"
    )
    approval_status = sa.Enum("approved", "declined", name="approval_status")

    # --- 1. profiles ---
    op.create_table(
        "profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("full_name", sa.String(100), nullable=True),
        sa.Column("plan", plan_name, nullable=False, server_default=sa.text("'free'")),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- 2. generated_content ---
    op.create_table(
        "generated_content",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("module_id", UUID(as_uuid=True), nullable=True),
        sa.Column("module_slug", sa.String(100), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("type", content_type, nullable=False),
        sa.Column("content", sa.Text, nullable=True),
        sa.Column("url", sa.String(1000), nullable=True),
        sa.Column("file_path", sa.String(1000), nullable=True),
        sa.Column("status", content_status, nullable=False, server_default=sa.text("'pending'")),
        sa.Column("metadata", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("tags", JSONB, nullable=True),
        sa.Column("is_favorite", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- 3. content_approvals ---
    op.create_table(
        "content_approvals",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "content_id", UUID(as_uuid=True),
            sa.ForeignKey("generated_content.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("status", approval_status, nullable=False),
        sa.Column("feedback", sa.Text, nullable=True),
        sa.Column("approver_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("submitter_id", UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- Indexes ---
    op.create_index("idx_content_user_status", "generated_content", ["user_id", "status"])
    op.create_index("idx_content_user_type", "generated_content", ["user_id", "type"])
    op.create_index(
        "idx_content_scheduled", "generated_content", ["scheduled_at"],
        postgresql_where=sa.text("status = 'scheduled'"),
    )
    op.create_index(
        "idx_content_favorite", "generated_content", ["user_id"],
        postgresql_where=sa.text("is_favorite = true"),
    )
    op.create_index("idx_approval_content", "content_approvals", ["content_id", "created_at"])

    # updated_at auto-update trigger
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    for table in ["profiles", "generated_content", "content_approvals"]:
        op.execute(f"""
            CREATE TRIGGER trigger_update_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade() -> None:
    tables = ["content_approvals", "generated_content", "profiles"]
    for table in tables:
        op.execute(f"DROP TRIGGER IF EXISTS trigger_update_{table}_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    for table in tables:
        op.drop_table(table)

    for enum in ["approval_status", "content_status", "content_type", "plan_name"]:
        op.execute(f"DROP TYPE IF EXISTS {enum}")
