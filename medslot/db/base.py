# medslot/db/base.py
from __future__ import annotations

import datetime as dt
import uuid
from typing import Any

from sqlalchemy import MetaData, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Deterministic constraint names, so storage errors can be matched by name.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Wall-clock times are stored as the "HH:MM" strings the scheduling core
# works with, not as TIME columns.
HHMM = String(5)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class UUIDPKMixin:
    """UUID (v4) primary key shared by users, doctors and appointments."""

    id: Mapped[uuid.UUID] = mapped_column(default=uuid.uuid4, primary_key=True)


class TimestampMixin:
    """Server-side created/updated timestamps."""

    created_at: Mapped[dt.datetime] = mapped_column(
        nullable=False, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        nullable=False, server_default=func.now(), onupdate=func.now()
    )


class ReprMixin:
    """__repr__ for debug/logging; never prints password hashes."""

    def __repr__(self) -> str:
        cols: list[str] = []
        for k in getattr(self, "__mapper__").c.keys():
            v: Any = getattr(self, k, None)
            if k == "password_hash":
                v = "***"
            cols.append(f"{k}={v!r}")
        return f"<{self.__class__.__name__} {' '.join(cols)}>"


__all__ = ["Base", "HHMM", "UUIDPKMixin", "TimestampMixin", "ReprMixin"]
