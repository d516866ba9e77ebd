import enum
from sqlalchemy import String, Integer, DateTime, Date, Boolean, Text, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, date, timezone
from app.db.session import Base


class BookingType(str, enum.Enum):
    EVENT = "EVENT"
    SHOWING = "SHOWING"


class EventStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class ShowingStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # one confirmed event per calendar day
        Index(
            "uq_bookings_confirmed_event_per_day",
            "event_date",
            unique=True,
            sqlite_where=text("booking_type = 'EVENT' AND status = 'CONFIRMED'"),
            postgresql_where=text("booking_type = 'EVENT' AND status = 'CONFIRMED'"),
        ),
        # one live showing per start time
        Index(
            "uq_bookings_active_showing_slot",
            "start_time",
            unique=True,
            sqlite_where=text("booking_type = 'SHOWING' AND status <> 'CANCELLED'"),
            postgresql_where=text("booking_type = 'SHOWING' AND status <> 'CANCELLED'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_type: Mapped[str] = mapped_column(String(12), index=True)  # EVENT, SHOWING

    event_date: Mapped[date] = mapped_column(Date, index=True)
    # local wall-clock, no timezone
    start_time: Mapped[datetime] = mapped_column(DateTime)
    end_time: Mapped[datetime] = mapped_column(DateTime)

    status: Mapped[str] = mapped_column(String(20), default="PENDING", index=True)

    day_type: Mapped[str | None] = mapped_column(String(10), nullable=True)  # weekday, weekend
    hourly_rate_cents: Mapped[int] = mapped_column(Integer, default=0)
    event_hours: Mapped[int] = mapped_column(Integer, default=0)
    base_amount_cents: Mapped[int] = mapped_column(Integer, default=0)
    extra_setup_hours: Mapped[int] = mapped_column(Integer, default=0)
    extra_setup_cents: Mapped[int] = mapped_column(Integer, default=0)
    deposit_cents: Mapped[int] = mapped_column(Integer, default=0)
    total_cents: Mapped[int] = mapped_column(Integer, default=0)
    amount_paid_cents: Mapped[int] = mapped_column(Integer, default=0)

    payment_method: Mapped[str | None] = mapped_column(String(30), nullable=True)  # stripe, cash, check
    stripe_checkout_session_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    stripe_payment_status: Mapped[str | None] = mapped_column(String(40), nullable=True)

    contact_name: Mapped[str] = mapped_column(String(200))
    contact_email: Mapped[str] = mapped_column(String(320), index=True)
    contact_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # EVENT only
    event_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    guest_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rect_tables_requested: Mapped[int | None] = mapped_column(Integer, nullable=True)
    round_tables_requested: Mapped[int | None] = mapped_column(Integer, nullable=True)
    chairs_requested: Mapped[int | None] = mapped_column(Integer, nullable=True)
    setup_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    contract_accepted: Mapped[bool] = mapped_column(Boolean, default=False)
    contract_accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    contract_signer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contract_version: Mapped[str | None] = mapped_column(String(20), nullable=True)
    contract_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    management_token: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    management_token_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    add_ons: Mapped[list["BookingAddOn"]] = relationship(
        back_populates="booking", cascade="all, delete-orphan", order_by="BookingAddOn.created_at"
    )

    @property
    def add_ons_total_cents(self) -> int:
        return sum(line.price_at_booking * line.quantity for line in self.add_ons)

    @property
    def amount_due_cents(self) -> int:
        return self.total_cents + self.add_ons_total_cents

    @property
    def balance_cents(self) -> int:
        return max(self.amount_due_cents - (self.amount_paid_cents or 0), 0)


from app.models.addon import BookingAddOn  # noqa: E402,F401
