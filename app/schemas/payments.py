from pydantic import BaseModel


class CheckoutSessionRequest(BaseModel):
    bookingId: str


class ConfirmPaymentRequest(BaseModel):
    sessionId: str = ""
