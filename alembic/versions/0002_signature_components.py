"""signature components and descriptive signatures
Revision ID: 0002_signature_components
Revises: 0001_init
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_signature_components"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "signature_components",
        sa.Column("signature_component_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("modified_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("name", sa.String(length=300), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.add_column(
        "archive_documents",
        sa.Column("descriptive_signature_element_ids", sa.Text(), nullable=False, server_default="[]"),
    )


def downgrade():
    with op.batch_alter_table("archive_documents") as batch:
        batch.drop_column("descriptive_signature_element_ids")
    op.drop_table("signature_components")
