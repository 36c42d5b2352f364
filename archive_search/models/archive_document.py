from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from archive_search.db.session import Base
from archive_search.models.common import TimestampMixin

class ArchiveDocument(Base, TimestampMixin):
    __tablename__ = "archive_documents"
    archive_document_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_unit_archive_document_id: Mapped[int | None] = mapped_column(
        ForeignKey("archive_documents.archive_document_id"), nullable=True, index=True
    )
    owner_user_id: Mapped[int] = mapped_column(ForeignKey("users.user_id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), default="document", nullable=False)  # unit | document
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    creator: Mapped[str | None] = mapped_column(String(300), nullable=True)
    creation_date: Mapped[str | None] = mapped_column(String(100), nullable=True)
    number_of_pages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    document_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    content_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    access_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_digitized: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # JSON array of signature element id paths, stored compact: [[4,5],[6]]
    descriptive_signature_element_ids: Mapped[str] = mapped_column(
        Text, default="[]", server_default="[]", nullable=False
    )


class ArchiveDocumentTag(Base):
    __tablename__ = "archive_document_tags"
    archive_document_id: Mapped[int] = mapped_column(
        ForeignKey("archive_documents.archive_document_id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(ForeignKey("tags.tag_id", ondelete="CASCADE"), primary_key=True, index=True)
