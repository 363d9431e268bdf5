import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from app.database import get_store
from app.errors import ConfigurationError, NotFoundError, PersistenceError, UpstreamError
from app.schemas.requests import ReceiptEmailRequest
from app.schemas.responses import DashboardTransaction
from app.services import mailer
from app.services.dashboard import build_dashboard
from app.store import TicketStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/send-receipt-email", response_class=PlainTextResponse)
def send_receipt_email(request: ReceiptEmailRequest, store: TicketStore = Depends(get_store)):
    """Email every ticket of a receipt, with QR images, to the buyer."""
    try:
        recipient = mailer.send_receipt_email(store, request.receipt_id)
    except NotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (ConfigurationError, UpstreamError, PersistenceError) as e:
        raise HTTPException(status_code=500, detail=str(e))
    return f"Email sent successfully to {recipient}."


@router.get("/transactions", response_model=List[DashboardTransaction])
def transactions(store: TicketStore = Depends(get_store)):
    """All transactions, each with its linked tickets and ticket count."""
    try:
        return build_dashboard(store)
    except PersistenceError:
        logger.exception("Error fetching admin data")
        raise HTTPException(status_code=500, detail="Failed to fetch dashboard data.")
