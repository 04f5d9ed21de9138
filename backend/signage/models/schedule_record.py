"""
Schedule record: one persisted version of the weekly preset schedule.

Records are append-only: saving a schedule deactivates the current active
record and inserts a new one, so older versions stay queryable.
"""
from typing import Any

from sqlalchemy import JSON, Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column

from signage.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ScheduleRecord(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "schedules"

    version: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)
    # Raw JSON as stored; may predate the preset format
    data: Mapped[Any] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
