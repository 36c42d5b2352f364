"""init archive tables
Revision ID: 0001_init
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("modified_on", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), primary_key=True, autoincrement=True),
        *_timestamps(),
        sa.Column("login", sa.String(length=100), nullable=False, unique=True),
        sa.Column("role", sa.String(length=30), nullable=False, server_default="regular_user"),
    )

    op.create_table(
        "tags",
        sa.Column("tag_id", sa.Integer(), primary_key=True, autoincrement=True),
        *_timestamps(),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
    )

    op.create_table(
        "notes",
        sa.Column("note_id", sa.Integer(), primary_key=True, autoincrement=True),
        *_timestamps(),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("shared", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("owner_user_id", sa.Integer(), sa.ForeignKey("users.user_id"), nullable=False),
    )
    op.create_index("ix_notes_owner_user_id", "notes", ["owner_user_id"])

    op.create_table(
        "note_tags",
        sa.Column("note_id", sa.Integer(), sa.ForeignKey("notes.note_id", ondelete="CASCADE"), primary_key=True),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tags.tag_id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_index("ix_note_tags_tag_id", "note_tags", ["tag_id"])

    op.create_table(
        "archive_documents",
        sa.Column("archive_document_id", sa.Integer(), primary_key=True, autoincrement=True),
        *_timestamps(),
        sa.Column(
            "parent_unit_archive_document_id",
            sa.Integer(),
            sa.ForeignKey("archive_documents.archive_document_id"),
            nullable=True,
        ),
        sa.Column("owner_user_id", sa.Integer(), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="document"),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("creator", sa.String(length=300), nullable=True),
        sa.Column("creation_date", sa.String(length=100), nullable=True),
        sa.Column("number_of_pages", sa.Integer(), nullable=True),
        sa.Column("document_type", sa.String(length=100), nullable=True),
        sa.Column("content_description", sa.Text(), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("access_level", sa.String(length=50), nullable=True),
        sa.Column("is_digitized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_archive_documents_parent", "archive_documents", ["parent_unit_archive_document_id"])
    op.create_index("ix_archive_documents_owner_user_id", "archive_documents", ["owner_user_id"])

    op.create_table(
        "archive_document_tags",
        sa.Column(
            "archive_document_id",
            sa.Integer(),
            sa.ForeignKey("archive_documents.archive_document_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tags.tag_id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_index("ix_archive_document_tags_tag_id", "archive_document_tags", ["tag_id"])

    op.create_table(
        "signature_elements",
        sa.Column("signature_element_id", sa.Integer(), primary_key=True, autoincrement=True),
        *_timestamps(),
        sa.Column("signature_component_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("element_index", sa.String(length=50), nullable=True),
    )
    op.create_index("ix_signature_elements_component", "signature_elements", ["signature_component_id"])

    op.create_table(
        "signature_element_parents",
        sa.Column(
            "child_element_id",
            sa.Integer(),
            sa.ForeignKey("signature_elements.signature_element_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "parent_element_id",
            sa.Integer(),
            sa.ForeignKey("signature_elements.signature_element_id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index("ix_signature_element_parents_parent", "signature_element_parents", ["parent_element_id"])

    op.create_table(
        "logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("level", sa.String(length=10), nullable=False),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_id", sa.String(length=100), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", sa.Text(), nullable=True),
    )


def downgrade():
    op.drop_table("logs")
    op.drop_index("ix_signature_element_parents_parent", table_name="signature_element_parents")
    op.drop_table("signature_element_parents")
    op.drop_index("ix_signature_elements_component", table_name="signature_elements")
    op.drop_table("signature_elements")
    op.drop_index("ix_archive_document_tags_tag_id", table_name="archive_document_tags")
    op.drop_table("archive_document_tags")
    op.drop_index("ix_archive_documents_owner_user_id", table_name="archive_documents")
    op.drop_index("ix_archive_documents_parent", table_name="archive_documents")
    op.drop_table("archive_documents")
    op.drop_index("ix_note_tags_tag_id", table_name="note_tags")
    op.drop_table("note_tags")
    op.drop_index("ix_notes_owner_user_id", table_name="notes")
    op.drop_table("notes")
    op.drop_table("tags")
    op.drop_table("users")
