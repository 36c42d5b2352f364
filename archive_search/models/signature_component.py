from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from archive_search.db.session import Base
from archive_search.models.common import TimestampMixin

class SignatureComponent(Base, TimestampMixin):
    __tablename__ = "signature_components"
    signature_component_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
