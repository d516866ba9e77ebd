from datetime import datetime, timezone
import logging
import smtplib
from email.message import EmailMessage
from sqlalchemy.orm import Session
import uuid
import requests

from app.core.config import settings
from app.db.session import SessionLocal
from app.models.booking import Booking, BookingType
from app.models.email_log import EmailLog
from app.services.calendar_service import format_hhmm

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5


def queue_email(db: Session, to_email: str, subject: str, body: str, booking_id: str = "", kind: str = "") -> str:
    """Queue and attempt immediate send. Body is stored so the worker can retry on failure."""
    eid = str(uuid.uuid4())
    db.add(
        EmailLog(
            id=eid,
            to_email=to_email,
            subject=subject,
            body=body,
            status="queued",
            kind=kind,
            booking_id=booking_id,
            attempts=0,
        )
    )
    db.commit()

    log = db.get(EmailLog, eid)
    try:
        send_email(to_email, subject, body)
        log.status = "sent"
        log.sent_at = datetime.now(timezone.utc)
    except Exception:
        # Worker will retry via process_email_queue
        logger.exception("Email %s to %s failed; left for retry", kind or subject, to_email)
        log.status = "failed"
    log.attempts = (log.attempts or 0) + 1
    db.commit()
    return eid


def send_email(to_email: str, subject: str, body: str):
    """Send email via SendGrid if configured, otherwise SMTP (MailHog recommended for local)."""

    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, body: str):
    from_email = settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": from_email},
        "subject": subject,
        "content": [{"type": "text/plain", "value": body}],
    }
    r = requests.post(
        "https://api.sendgrid.com/v3/mail/send",
        json=payload,
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")


def process_pending_emails(db: Session, limit: int = 50) -> dict:
    """Process up to `limit` queued or failed emails; retry send and update status. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(
            EmailLog.status.in_(["queued", "failed"]),
            EmailLog.body.isnot(None),
            EmailLog.body != "",
            EmailLog.attempts < MAX_ATTEMPTS,
        )
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        log.attempts = (log.attempts or 0) + 1
        try:
            send_email(log.to_email, log.subject, log.body)
            log.status = "sent"
            log.sent_at = datetime.now(timezone.utc)
            sent += 1
        except Exception:
            logger.warning("Retry of email %s to %s failed (attempt %s)", log.id, log.to_email, log.attempts)
            log.status = "failed"
            failed += 1
    if pending:
        db.commit()
    return {"processed": len(pending), "sent": sent, "failed": failed}


# ---------- booking notifications ----------

def _money(cents: int) -> str:
    return f"${cents / 100:,.2f}"


def manage_link(b: Booking) -> str:
    base = (settings.CLIENT_BASE_URL or "").rstrip("/")
    if not base or not b.management_token:
        return ""
    return f"{base}/manage/booking/{b.management_token}"


def _when(b: Booking) -> str:
    end = "24:00" if b.end_time.date() > b.event_date else format_hhmm(b.end_time)
    return f"{b.event_date.isoformat()} {format_hhmm(b.start_time)}-{end}"


def build_customer_email(b: Booking) -> tuple[str, str]:
    venue = settings.VENUE_NAME
    lines = [f"Hi {b.contact_name},", ""]
    if b.booking_type == BookingType.SHOWING.value:
        subject = f"{venue} showing request received"
        lines += [
            f"We received your request to tour {venue}.",
            f"Appointment: {_when(b)}",
            f"Status: {b.status}",
        ]
    else:
        subject = f"{venue} booking {b.status.lower()}"
        lines += [
            f"Event: {b.event_type or 'Event'}",
            f"When: {_when(b)}",
            f"Status: {b.status}",
            "",
            f"Hall rental: {_money(b.base_amount_cents)} ({b.event_hours}h at {_money(b.hourly_rate_cents)}/h)",
        ]
        if b.extra_setup_cents:
            lines.append(f"Extra setup: {_money(b.extra_setup_cents)} ({b.extra_setup_hours}h)")
        lines.append(f"Security deposit: {_money(b.deposit_cents)}")
        for line in b.add_ons:
            name = line.add_on.name if line.add_on else "Add-on"
            lines.append(f"{name} x{line.quantity}: {_money(line.price_at_booking * line.quantity)}")
        lines += [
            f"Total: {_money(b.amount_due_cents)}",
            f"Paid: {_money(b.amount_paid_cents or 0)}",
        ]
        if b.rect_tables_requested or b.round_tables_requested or b.chairs_requested or b.setup_notes:
            lines += ["", "Setup details:"]
            if b.rect_tables_requested:
                lines.append(f"Rectangular tables: {b.rect_tables_requested}")
            if b.round_tables_requested:
                lines.append(f"Round tables: {b.round_tables_requested}")
            if b.chairs_requested:
                lines.append(f"Chairs: {b.chairs_requested}")
            if b.setup_notes:
                lines.append(f"Notes: {b.setup_notes}")
    link = manage_link(b)
    if link:
        lines += ["", f"Manage your booking: {link}"]
    lines += ["", "Thank you,", venue]
    return subject, "\n".join(lines)


def build_admin_email(b: Booking) -> tuple[str, str]:
    subject = f"New {b.booking_type.lower()} booking: {_when(b)}"
    body = "\n".join([
        f"Type: {b.booking_type}",
        f"Status: {b.status}",
        f"When: {_when(b)}",
        f"Contact: {b.contact_name} <{b.contact_email}> {b.contact_phone or ''}".rstrip(),
        f"Event type: {b.event_type or '-'}",
        f"Guests: {b.guest_count if b.guest_count is not None else '-'}",
        f"Total: {_money(b.amount_due_cents)}",
        f"Notes: {b.notes or '-'}",
        f"Booking id: {b.id}",
    ])
    return subject, body


def notify_booking(booking_id: str, notify_admin: bool = True) -> None:
    """Send customer (and admin) emails for a booking. Runs after the response; never raises."""
    db = SessionLocal()
    try:
        b = db.get(Booking, booking_id)
        if not b:
            logger.warning("Skipping notification for missing booking %s", booking_id)
            return
        subject, body = build_customer_email(b)
        queue_email(db, b.contact_email, subject, body, booking_id=b.id, kind="customer")
        if notify_admin and settings.ADMIN_NOTIFY_EMAIL:
            subject, body = build_admin_email(b)
            queue_email(db, settings.ADMIN_NOTIFY_EMAIL, subject, body, booking_id=b.id, kind="admin_alert")
    except Exception:
        logger.exception("Booking notification for %s failed", booking_id)
    finally:
        db.close()
