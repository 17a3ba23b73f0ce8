from datetime import date, datetime, time

from sqlalchemy import Date, DateTime, MetaData, Time
from sqlalchemy.orm import DeclarativeBase

# Deterministic constraint names; SQLite batch migrations need them to drop or alter.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base for every Volunteer Hub table. All timestamps are UTC."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
    type_annotation_map = {
        datetime: DateTime(timezone=True),
        date: Date(),
        time: Time(),
    }
