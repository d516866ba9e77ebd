from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.booking import Booking, BookingType, EventStatus

CURRENT_CONTRACT_VERSION = "v1.0"


def contract_title() -> str:
    return f"{settings.VENUE_NAME} Rental Agreement"


def contract_sections() -> list[tuple[str, str]]:
    venue = settings.VENUE_NAME
    deposit = settings.SECURITY_DEPOSIT
    return [
        ("Barehall Rental",
         f"{venue} provides the event space, tables, chairs, kitchen access, and restrooms. "
         "The renter is responsible for providing all food, drinks, decor, and service staff."),
        ("Security Deposit",
         f"A ${deposit} refundable security deposit is required to reserve your date. "
         "The deposit may be retained, in whole or in part, in the event of damages, rule violations, "
         "or cancellations within 30 days of the event date."),
        ("Cleanup & Condition",
         "The renter agrees to leave the hall in reasonably clean condition, remove all trash, and take all "
         "personal items at the end of the event. Additional cleaning fees may be applied if the premises "
         "are left in poor condition."),
        ("Decorations & Damage",
         "No staples, nails, screws, or damaging adhesives may be used on walls, ceilings, or fixtures. "
         "Confetti, glitter, or similar materials that are difficult to clean are not permitted. The renter "
         "is responsible for any damage caused by guests, vendors, or decorations."),
        ("Noise & Conduct",
         "The renter agrees to comply with all local noise ordinances and to ensure that guests behave "
         "respectfully toward neighbors and staff. Disorderly conduct may result in early termination of "
         "the event without refund."),
        ("Liability",
         "The renter assumes responsibility for the conduct and safety of guests and vendors. "
         f"{venue} is not liable for loss, theft, or injury except as required by law."),
        ("Cancellations",
         "Cancellations made within 30 days of the event date may result in forfeiture of part or all of "
         f"the security deposit and prepaid fees, at the sole discretion of {venue}."),
    ]


def build_contract_text() -> str:
    sections = [f"{heading}\n{body}" for heading, body in contract_sections()]
    return contract_title() + "\n\n" + "\n\n".join(sections)


def accept_contract(db: Session, booking_id: str, signer_name: str) -> Booking:
    """Record acceptance. Version and text are frozen by the first acceptance and never rewritten."""
    booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found.")
    if booking.booking_type != BookingType.EVENT.value:
        raise ValidationError("Contracts are only required for event bookings.")
    if booking.status == EventStatus.CANCELLED.value:
        raise ConflictError("A cancelled booking cannot accept the contract.")
    name = (signer_name or "").strip()
    if not name:
        raise ValidationError("Signer name is required.")

    booking.contract_accepted = True
    booking.contract_accepted_at = datetime.now(timezone.utc)
    booking.contract_signer_name = name
    if not booking.contract_version:
        booking.contract_version = CURRENT_CONTRACT_VERSION
    if not booking.contract_text:
        booking.contract_text = build_contract_text()
    db.commit()
    db.refresh(booking)
    return booking
