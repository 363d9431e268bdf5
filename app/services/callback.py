"""
Callback ingestor.

The provider posts the payment result to the callback URL built at
initiation. The route validates the envelope shape and acknowledges at once;
everything here after `parse_envelope` runs as a background task whose
failures are logged and never reported back to the provider.

Envelope shape:
    {"Body": {"stkCallback": {
        "MerchantRequestID": ..., "CheckoutRequestID": ...,
        "ResultCode": 0, "ResultDesc": ...,
        "CallbackMetadata": {"Item": [{"Name": "Amount", "Value": 2000}, ...]}
    }}}
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError as SchemaError

from app import models
from app.errors import TicketingError, ValidationError
from app.schemas.requests import StkCallback
from app.services.issuer import issue_tickets
from app.store import TicketStore

logger = logging.getLogger(__name__)

SUCCESS_RESULT_CODE = 0


def parse_envelope(body: Any) -> StkCallback:
    """Extract Body.stkCallback or raise ValidationError."""
    if not isinstance(body, dict):
        raise ValidationError("Invalid callback body")
    envelope = body.get("Body")
    callback = envelope.get("stkCallback") if isinstance(envelope, dict) else None
    if not isinstance(callback, dict):
        raise ValidationError("Invalid callback body")
    try:
        return StkCallback.model_validate(callback)
    except SchemaError as e:
        raise ValidationError("Invalid callback body") from e


def metadata_details(items: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
    """Flatten [{Name, Value}, ...] into {Name: Value}. Items without Value are skipped."""
    details: Dict[str, Any] = {}
    for item in items or []:
        name = item.get("Name")
        if name and "Value" in item:
            details[name] = item["Value"]
    return details


def _parse_quantity(raw: Optional[str]) -> int:
    try:
        qty = int(raw)
    except (TypeError, ValueError):
        return 1
    return qty if qty > 0 else 1


def _as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def build_transaction(callback: StkCallback, query: Mapping[str, str]) -> models.Transaction:
    txn = models.Transaction(
        merchant_request_id=callback.MerchantRequestID,
        checkout_request_id=callback.CheckoutRequestID,
        result_code=callback.ResultCode,
        result_desc=callback.ResultDesc,
        ticket_type=query.get("type") or "",
        quantity=_parse_quantity(query.get("qty")),
        account_reference=query.get("ref") or "",
        email=query.get("email") or "",
        timestamp=models.utcnow(),
    )

    if callback.ResultCode == SUCCESS_RESULT_CODE:
        items = callback.CallbackMetadata.Item if callback.CallbackMetadata else []
        details = metadata_details(items)
        txn.amount = _as_int(details.get("Amount"))
        receipt = details.get("MpesaReceiptNumber")
        txn.mpesa_receipt = str(receipt) if receipt else None
        phone = details.get("PhoneNumber")
        txn.phone = str(phone) if phone is not None else None
        date = details.get("TransactionDate")
        txn.transaction_date = str(date) if date is not None else None

    return txn


def process_callback(store: TicketStore, callback: StkCallback, query: Mapping[str, str]) -> None:
    """
    Persist the transaction and, on success, issue its tickets.

    Runs after the provider has been acknowledged; every failure ends here as
    a log record.
    """
    txn = build_transaction(callback, query)
    success = txn.result_code == SUCCESS_RESULT_CODE

    if success and not txn.mpesa_receipt:
        logger.error(
            "[INVALID] Successful callback %s carries no receipt number; nothing persisted",
            txn.checkout_request_id,
        )
        return

    try:
        store.save_transaction(txn)
    except TicketingError:
        logger.exception("Failed to save transaction for checkout %s", txn.checkout_request_id)
        return

    if not success:
        logger.info("[FAILED] M-Pesa payment failed: %s", txn.result_desc)
        return

    try:
        codes = issue_tickets(store, txn)
    except Exception:
        logger.exception("Ticket issuance failed for receipt %s", txn.mpesa_receipt)
        return

    logger.info("[SUCCESS] Receipt: %s. Tickets generated: %d.", txn.mpesa_receipt, len(codes))
