"""Field checks shared by every path that writes booking contact and setup details."""
from app.core.config import settings
from app.core.errors import ValidationError

# Inventory the hall can set up
RECT_TABLES = 12
ROUND_TABLES = 6
CHAIRS = 120


def required_text(value: str | None, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{label} is required.")
    return value


def optional_text(value: str | None) -> str | None:
    return (value or "").strip() or None


def check_count(value, label: str, limit: int | None = None):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{label} must be a non-negative integer.")
    if limit is not None and value > limit:
        raise ValidationError(f"{label} cannot exceed {limit}.")
    return value


def check_setup(changes: dict) -> dict:
    limits = {
        "rect_tables_requested": ("Rectangular tables requested", RECT_TABLES),
        "round_tables_requested": ("Round tables requested", ROUND_TABLES),
        "chairs_requested": ("Chairs requested", CHAIRS),
        "guest_count": ("Guest count", settings.MAX_GUESTS),
    }
    for col, (label, limit) in limits.items():
        if col in changes:
            changes[col] = check_count(changes[col], label, limit)
    if "setup_notes" in changes:
        changes["setup_notes"] = optional_text(changes["setup_notes"])
    return changes


def check_contact(changes: dict) -> dict:
    """Contact name and email may be changed but never blanked."""
    for col in ("contact_name", "contact_email"):
        if col in changes:
            changes[col] = required_text(changes[col], col.replace("_", " ").capitalize())
    if "contact_email" in changes:
        changes["contact_email"] = changes["contact_email"].lower()
    return changes
