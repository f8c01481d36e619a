"""SQLAlchemy declarative Base for the account models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base; Alembic autogenerate reads Base.metadata."""

    pass
