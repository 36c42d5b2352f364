from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from archive_search.db.session import Base
from archive_search.models.common import TimestampMixin

class SignatureElement(Base, TimestampMixin):
    __tablename__ = "signature_elements"
    signature_element_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    signature_component_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    element_index: Mapped[str | None] = mapped_column(String(50), nullable=True)


class SignatureElementParent(Base):
    __tablename__ = "signature_element_parents"
    child_element_id: Mapped[int] = mapped_column(
        ForeignKey("signature_elements.signature_element_id", ondelete="CASCADE"), primary_key=True
    )
    parent_element_id: Mapped[int] = mapped_column(
        ForeignKey("signature_elements.signature_element_id", ondelete="CASCADE"), primary_key=True, index=True
    )
