from pydantic import BaseModel, Field
from typing import List, Optional


class AddOnSelection(BaseModel):
    addOnId: str
    quantity: int = 1


class EventBookingCreate(BaseModel):
    eventDate: str
    startTime: str
    endTime: str  # "24:00" means midnight at the end of the event day
    extraSetupHours: int = 0
    eventType: str
    guestCount: Optional[int] = None
    contactName: str
    contactEmail: str  # plain str to allow .local and other dev domains
    contactPhone: Optional[str] = None
    notes: Optional[str] = None
    rectTablesRequested: Optional[int] = None
    roundTablesRequested: Optional[int] = None
    chairsRequested: Optional[int] = None
    setupNotes: Optional[str] = None
    addOns: List[AddOnSelection] = Field(default_factory=list)


class ShowingBookingCreate(BaseModel):
    eventDate: str
    appointmentTime: str
    contactName: str
    contactEmail: str
    contactPhone: Optional[str] = None
    notes: Optional[str] = None


class AdminBookingCreate(BaseModel):
    bookingType: str = "EVENT"
    eventDate: str
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    appointmentTime: Optional[str] = None
    extraSetupHours: int = 0
    eventType: Optional[str] = None
    guestCount: Optional[int] = None
    contactName: str
    contactEmail: str
    contactPhone: Optional[str] = None
    notes: Optional[str] = None
    adminNotes: Optional[str] = None
    paymentMethod: Optional[str] = None
    status: Optional[str] = None
    amountPaidCents: int = 0
    rectTablesRequested: Optional[int] = None
    roundTablesRequested: Optional[int] = None
    chairsRequested: Optional[int] = None
    setupNotes: Optional[str] = None
    addOns: List[AddOnSelection] = Field(default_factory=list)
    sendAdminEmail: bool = True


class EventBookingPatch(BaseModel):
    """Absent fields keep their value; explicit null clears nullable ones."""
    eventDate: Optional[str] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    extraSetupHours: Optional[int] = None
    status: Optional[str] = None
    eventType: Optional[str] = None
    guestCount: Optional[int] = None
    contactName: Optional[str] = None
    contactEmail: Optional[str] = None
    contactPhone: Optional[str] = None
    notes: Optional[str] = None
    adminNotes: Optional[str] = None
    paymentMethod: Optional[str] = None
    amountPaidCents: Optional[int] = None
    rectTablesRequested: Optional[int] = None
    roundTablesRequested: Optional[int] = None
    chairsRequested: Optional[int] = None
    setupNotes: Optional[str] = None
    addOns: Optional[List[AddOnSelection]] = None


class ShowingBookingPatch(BaseModel):
    eventDate: Optional[str] = None
    appointmentTime: Optional[str] = None
    status: Optional[str] = None
    contactName: Optional[str] = None
    contactEmail: Optional[str] = None
    contactPhone: Optional[str] = None
    notes: Optional[str] = None
    adminNotes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str


class ContractAcceptRequest(BaseModel):
    signerName: str = ""


class SetupUpdate(BaseModel):
    rectTablesRequested: Optional[int] = None
    roundTablesRequested: Optional[int] = None
    chairsRequested: Optional[int] = None
    setupNotes: Optional[str] = None


class ManageBookingPatch(BaseModel):
    contactName: Optional[str] = None
    contactEmail: Optional[str] = None
    contactPhone: Optional[str] = None
    rectTablesRequested: Optional[int] = None
    roundTablesRequested: Optional[int] = None
    chairsRequested: Optional[int] = None
    setupNotes: Optional[str] = None
    notes: Optional[str] = None
    addOns: Optional[List[AddOnSelection]] = None


# request field -> Booking column
FIELD_COLUMNS = {
    "eventType": "event_type",
    "guestCount": "guest_count",
    "contactName": "contact_name",
    "contactEmail": "contact_email",
    "contactPhone": "contact_phone",
    "notes": "notes",
    "adminNotes": "admin_notes",
    "paymentMethod": "payment_method",
    "amountPaidCents": "amount_paid_cents",
    "rectTablesRequested": "rect_tables_requested",
    "roundTablesRequested": "round_tables_requested",
    "chairsRequested": "chairs_requested",
    "setupNotes": "setup_notes",
}


def present_changes(patch: BaseModel) -> dict:
    """Column-keyed dict of the fields the client actually sent."""
    changes = {}
    for name in patch.model_fields_set:
        value = getattr(patch, name)
        if name == "addOns":
            changes["add_ons"] = None if value is None else [
                {"add_on_id": s.addOnId, "quantity": s.quantity} for s in value
            ]
        elif name in FIELD_COLUMNS:
            changes[FIELD_COLUMNS[name]] = value
    return changes
