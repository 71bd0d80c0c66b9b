import datetime

import sqlalchemy
from sqlalchemy.orm import Mapped as SQLAlchemyMapped, mapped_column as sqlalchemy_mapped_column, relationship
from sqlalchemy.sql import functions as sqlalchemy_functions

from interview_assistant.repository.table import Base, JSONBlob


class User(Base):  # type: ignore
    __tablename__ = "user"

    id: SQLAlchemyMapped[int] = sqlalchemy_mapped_column(primary_key=True, autoincrement="auto")
    name: SQLAlchemyMapped[str] = sqlalchemy_mapped_column(sqlalchemy.String(length=128), nullable=False)
    # Always stored lower-cased
    email: SQLAlchemyMapped[str] = sqlalchemy_mapped_column(
        sqlalchemy.String(length=254), nullable=False, unique=True, index=True
    )
    phone: SQLAlchemyMapped[str] = sqlalchemy_mapped_column(sqlalchemy.String(length=32), nullable=False)
    resume_text: SQLAlchemyMapped[str | None] = sqlalchemy_mapped_column(sqlalchemy.Text, nullable=True)
    # {text, data, fileType, uploadDate} as submitted by the upload flow
    resume_data: SQLAlchemyMapped[dict | None] = sqlalchemy_mapped_column(JSONBlob, nullable=True)
    is_active: SQLAlchemyMapped[bool] = sqlalchemy_mapped_column(
        sqlalchemy.Boolean, nullable=False, default=True, server_default=sqlalchemy.true()
    )
    created_at: SQLAlchemyMapped[datetime.datetime] = sqlalchemy_mapped_column(
        sqlalchemy.DateTime(timezone=True), nullable=False, server_default=sqlalchemy_functions.now()
    )
    updated_at: SQLAlchemyMapped[datetime.datetime | None] = sqlalchemy_mapped_column(
        sqlalchemy.DateTime(timezone=True), nullable=True
    )

    sessions = relationship("Session", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    interviews = relationship("Interview", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    __mapper_args__ = {"eager_defaults": True}
