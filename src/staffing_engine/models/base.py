"""Declarative base and shared column types for the staffing tables."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Date, DateTime, Numeric, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models.

    Money columns are ``Numeric(12, 2)`` and JSON blobs (rule configs,
    compensation overrides) map from ``dict[str, Any]``.
    """

    type_annotation_map = {
        UUID: Uuid(as_uuid=True),
        datetime: DateTime(timezone=True),
        date: Date,
        Decimal: Numeric(12, 2),
        dict[str, Any]: JSON,
    }


class TimestampMixin:
    """Server-stamped ``created_at``; duplicate assignments keep the oldest row."""

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
