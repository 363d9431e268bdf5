"""
Ticket issuer.

Turns a persisted, successful transaction into its batch of tickets.

Codes are "TKT-" plus 8 symbols drawn from A-Z0-9 with `secrets`: a space of
36^8 (about 2.8e12), so a collision at event-sized volumes is negligible but
not impossible. The unique index on ticket_code is the final guard.

Issuance is idempotent per receipt: a receipt that already has tickets is
treated as a duplicate callback and nothing new is written. The batch is
written in one database transaction, and (receipt, seat) is unique, so two
concurrent duplicate callbacks cannot both succeed.
"""
import base64
import io
import logging
import secrets
import string
from typing import List

import qrcode

from app import catalog, models
from app.errors import ValidationError
from app.store import DuplicateBatchError, TicketStore

logger = logging.getLogger(__name__)

CODE_PREFIX = "TKT-"
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8


def generate_ticket_code() -> str:
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
    return CODE_PREFIX + suffix


def qr_data_url(ticket_code: str) -> str:
    """PNG QR image of the code as a data URL, for inline display or email."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(ticket_code)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def _unique_codes(n: int) -> List[str]:
    codes: List[str] = []
    seen = set()
    while len(codes) < n:
        code = generate_ticket_code()
        if code not in seen:
            seen.add(code)
            codes.append(code)
    return codes


def issue_tickets(store: TicketStore, txn: models.Transaction) -> List[str]:
    """
    Issue and persist the tickets owed for a successful transaction.

    Returns the codes of the batch (the already stored ones for a duplicate).
    Raises:
        ValidationError: transaction has no receipt number
        PersistenceError: storage failure
    """
    if not txn.mpesa_receipt:
        raise ValidationError("Cannot issue tickets without a receipt number")

    existing = store.tickets_by_receipt(txn.mpesa_receipt)
    if existing:
        logger.warning(
            "Duplicate callback for receipt %s: %d tickets already issued, skipping",
            txn.mpesa_receipt, len(existing),
        )
        return [t.ticket_code for t in existing]

    entry = catalog.get_entry(txn.ticket_type)
    if entry is None:
        logger.warning("Unknown ticket type %r on receipt %s; issuing one ticket",
                       txn.ticket_type, txn.mpesa_receipt)
    count = catalog.tickets_owed(entry, txn.quantity)

    codes = _unique_codes(count)
    issued_at = models.utcnow()
    tickets = [
        models.Ticket(
            transaction_id=txn.id,
            ticket_code=code,
            qr_base64=qr_data_url(code),
            phone=txn.phone,
            email=txn.email,
            account_reference=txn.account_reference,
            mpesa_receipt=txn.mpesa_receipt,
            seat=seat,
            type=txn.ticket_type,
            used=False,
            timestamp=issued_at,
        )
        for seat, code in enumerate(codes, start=1)
    ]

    try:
        store.save_tickets(tickets)
    except DuplicateBatchError:
        existing = store.tickets_by_receipt(txn.mpesa_receipt)
        if not existing:
            raise
        logger.warning("Concurrent duplicate callback for receipt %s, batch discarded",
                       txn.mpesa_receipt)
        return [t.ticket_code for t in existing]

    return codes
