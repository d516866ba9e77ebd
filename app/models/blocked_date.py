import datetime as dt
from sqlalchemy import String, DateTime, Date
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base

class BlockedDate(Base):
    __tablename__ = "blocked_dates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, unique=True, index=True)
    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=lambda: dt.datetime.now(dt.timezone.utc))
