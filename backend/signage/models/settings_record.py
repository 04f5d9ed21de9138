from typing import Any

from sqlalchemy import JSON, Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column

from signage.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class SettingsRecord(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "settings"

    version: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    data: Mapped[Any] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
