from sqlalchemy import String, Integer, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, timezone
from app.db.session import Base


class AddOn(Base):
    __tablename__ = "add_ons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class BookingAddOn(Base):
    __tablename__ = "booking_add_ons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id", ondelete="CASCADE"), index=True)
    add_on_id: Mapped[str] = mapped_column(String(36), ForeignKey("add_ons.id"), index=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    price_at_booking: Mapped[int] = mapped_column(Integer)  # cents, frozen when the line is created
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    booking: Mapped["Booking"] = relationship(back_populates="add_ons")
    add_on: Mapped[AddOn] = relationship()
