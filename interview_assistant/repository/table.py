import typing

import sqlalchemy
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase


class DBTable(DeclarativeBase):
    metadata: sqlalchemy.MetaData = sqlalchemy.MetaData()  # type: ignore


Base: typing.Type[DeclarativeBase] = DBTable

# JSONB on PostgreSQL, plain JSON everywhere else (SQLite in tests)
JSONBlob = sqlalchemy.JSON().with_variant(JSONB(), "postgresql")
