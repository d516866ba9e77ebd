import enum
from sqlalchemy import String, Integer, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base


class ShowingConfigKey(str, enum.Enum):
    DEFAULT = "default"


# max_slots_per_window at or above this means no cap
UNLIMITED_SLOTS = 999


class ShowingAvailability(Base):
    __tablename__ = "showing_availability"
    __table_args__ = (UniqueConstraint("day_of_week", "start_time", "end_time", name="uq_showing_window"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    day_of_week: Mapped[int] = mapped_column(Integer, index=True)  # 0=Sunday..6=Saturday
    start_time: Mapped[str] = mapped_column(String(5))  # HH:MM
    end_time: Mapped[str] = mapped_column(String(5))  # HH:MM
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class ShowingConfig(Base):
    __tablename__ = "showing_config"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    key: Mapped[str] = mapped_column(String(40), unique=True, default=ShowingConfigKey.DEFAULT.value)
    default_duration_minutes: Mapped[int] = mapped_column(Integer, default=30)
    max_slots_per_window: Mapped[int] = mapped_column(Integer, default=UNLIMITED_SLOTS)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
