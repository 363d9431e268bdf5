"""
Receipt email: every ticket of a receipt, with its QR image, sent over the
configured SMTP relay.
"""
import html
import logging
import smtplib
from email.message import EmailMessage
from typing import List

from app import models
from app.config import settings
from app.errors import ConfigurationError, NotFoundError, UpstreamError
from app.store import TicketStore

logger = logging.getLogger(__name__)

SUBJECT = "Your Concert Tickets and QR Codes"

SMTP_CLASS = smtplib.SMTP_SSL


def build_receipt_html(tickets: List[models.Ticket], mpesa_receipt: str) -> str:
    parts = [
        "<h2>Your Concert Tickets</h2>",
        "<p>Thank you for your purchase! Here are your QR codes and verification codes:</p>",
        "<ul>",
    ]
    for t in tickets:
        code = html.escape(t.ticket_code)
        parts.append(
            f"<li>Code: {code} ({html.escape(t.type)})<br>"
            f'<img src="{t.qr_base64}" alt="QR for {code}" width="200"></li>'
        )
    parts.append(f"</ul><p>Receipt: {html.escape(mpesa_receipt)}.</p>")
    return "".join(parts)


def send_receipt_email(store: TicketStore, mpesa_receipt: str) -> str:
    """
    Email the tickets of a receipt to the buyer. Returns the recipient.

    Raises:
        NotFoundError: no tickets reference the receipt
        ConfigurationError: mail credentials absent
        UpstreamError: the relay refused or could not be reached
    """
    tickets = store.tickets_by_receipt(mpesa_receipt)
    if not tickets:
        raise NotFoundError("No tickets found for this receipt.")

    missing = settings.missing_mail_settings()
    if missing:
        logger.error("Mail configuration incomplete, missing: %s", ", ".join(missing))
        raise ConfigurationError("Email relay not configured on server.")

    recipient = tickets[0].email
    msg = EmailMessage()
    msg["Subject"] = SUBJECT
    msg["From"] = settings.EMAIL_USER
    msg["To"] = recipient
    msg.set_content(
        "Your tickets: " + ", ".join(t.ticket_code for t in tickets)
        + f"\nReceipt: {mpesa_receipt}."
    )
    msg.add_alternative(build_receipt_html(tickets, mpesa_receipt), subtype="html")

    try:
        with SMTP_CLASS(
            settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS
        ) as smtp:
            smtp.login(settings.EMAIL_USER, settings.EMAIL_PASS)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Email send failed for %s: %s", recipient, e)
        raise UpstreamError("Failed to send email. Check mail relay configuration and logs.") from e

    logger.info("Receipt %s emailed to %s (%d tickets)", mpesa_receipt, recipient, len(tickets))
    return recipient
