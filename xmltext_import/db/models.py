from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from xmltext_import.db.base import Base


class ContentClass(Base):
    __tablename__ = "ezcontentclass"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    version: Mapped[int] = mapped_column(Integer, primary_key=True, default=0)
    identifier: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    is_container: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (Index("ezcontentclass_identifier", "identifier", "version"),)


class ContentObjectAttribute(Base):
    __tablename__ = "ezcontentobject_attribute"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    version: Mapped[int] = mapped_column(Integer, primary_key=True, default=0)
    contentobject_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    contentclassattribute_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    language_code: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    language_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    data_type_string: Mapped[str | None] = mapped_column(String(50), default="")
    data_text: Mapped[str | None] = mapped_column(Text)
    data_int: Mapped[int | None] = mapped_column(Integer)
    sort_key_string: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    __table_args__ = (
        Index("ezcontentobject_attribute_co_id_ver_lang_code", "contentobject_id", "version", "language_code"),
    )
