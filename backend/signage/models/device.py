import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from signage.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class DeviceMode(str, enum.Enum):
    AUTO = "auto"
    OVERRIDE = "override"


class Device(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "devices"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    mode: Mapped[DeviceMode] = mapped_column(
        Enum(
            DeviceMode,
            name="device_mode",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        default=DeviceMode.AUTO,
        nullable=False,
    )
    last_seen: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    overrides: Mapped["DeviceOverride | None"] = relationship(
        "DeviceOverride",
        back_populates="device",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class DeviceOverride(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "device_overrides"

    device_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("devices.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    schedule: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    settings: Mapped[Any | None] = mapped_column(JSON, nullable=True)

    device: Mapped["Device"] = relationship("Device", back_populates="overrides")
