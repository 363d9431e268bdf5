"""
Payment initiation service.

Validates the purchase, prices it from the catalog and asks the provider to
push a payment prompt to the buyer's phone. The callback URL carries the
purchase details as query parameters so the later asynchronous callback is
self-describing.
"""
import logging
from typing import Optional
from urllib.parse import urlencode

from app import catalog
from app.config import settings
from app.errors import ValidationError
from app.processors.base import BaseProcessor
from app.processors.mpesa import MpesaProcessor

logger = logging.getLogger(__name__)

PROCESSOR: BaseProcessor = MpesaProcessor(settings)

DEFAULT_ACCOUNT_REFERENCE = "DefaultRef"
SENT_MESSAGE = "Payment request sent to your phone. Check your M-Pesa prompt."


class InitiationResult:
    def __init__(self, amount: int, quantity: int, callback_url: str, message: str):
        self.amount = amount
        self.quantity = quantity
        self.callback_url = callback_url
        self.message = message


def build_callback_url(
    base_url: str, ticket_type: str, quantity: int, account_reference: str, email: str
) -> str:
    query = urlencode({
        "type": ticket_type,
        "qty": quantity,
        "ref": account_reference,
        "email": email,
    })
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"


async def initiate_payment(
    phone: Optional[str],
    ticket_type: Optional[str],
    email: Optional[str],
    quantity: int = 1,
    account_reference: Optional[str] = None,
) -> InitiationResult:
    """
    Raises:
        ValidationError: unknown ticket type, missing email/phone, bad quantity
        ConfigurationError: provider settings absent (no network call made)
        UpstreamError: provider auth or request failure
    """
    entry = catalog.get_entry(ticket_type)
    if entry is None:
        raise ValidationError("Invalid ticket type")
    if not email:
        raise ValidationError("Email required")
    if not phone:
        raise ValidationError("Phone number required")
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    message = SENT_MESSAGE
    if catalog.is_bundle(entry) and quantity != 1:
        # A bundle already encodes the group size; one bundle per payment.
        logger.warning(
            "Quantity %s requested for bundle type %s; charging and issuing one bundle",
            quantity, ticket_type,
        )
        quantity = 1
        message = f"{SENT_MESSAGE} One {ticket_type} bundle admits {entry.people} people."

    account_reference = account_reference or DEFAULT_ACCOUNT_REFERENCE
    amount = catalog.amount_for(entry, quantity)
    callback_url = build_callback_url(
        settings.MPESA_CALLBACK_URL, ticket_type, quantity, account_reference, email
    )

    await PROCESSOR.stk_push(
        phone=phone,
        amount=amount,
        callback_url=callback_url,
        account_reference=account_reference,
        description=f"Payment for {ticket_type} tickets",
    )
    logger.info("STK push sent: type=%s qty=%s amount=%s ref=%s", ticket_type, quantity, amount, account_reference)

    return InitiationResult(
        amount=amount, quantity=quantity, callback_url=callback_url, message=message
    )
