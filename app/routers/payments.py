import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from app.database import get_store
from app.errors import ConfigurationError, UpstreamError, ValidationError
from app.schemas.requests import InitiatePaymentRequest
from app.schemas.responses import CallbackAck
from app.services import payments as payments_service
from app.services.callback import parse_envelope, process_callback
from app.store import TicketStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/initiate", response_class=PlainTextResponse)
async def initiate(request: InitiatePaymentRequest):
    """
    Send an STK push prompt to the buyer's phone.

    - 400 on unknown ticket type, missing email or phone
    - 500 when M-Pesa settings are missing (no network call is made)
    - 500 when the provider rejects the request or times out
    """
    try:
        result = await payments_service.initiate_payment(
            phone=request.phone,
            ticket_type=request.ticket_type,
            email=request.email,
            quantity=request.quantity,
            account_reference=request.account_reference,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (ConfigurationError, UpstreamError) as e:
        raise HTTPException(status_code=500, detail=str(e))

    return result.message


@router.post("/callback", response_model=CallbackAck)
async def callback(
    request: Request,
    background_tasks: BackgroundTasks,
    store: TicketStore = Depends(get_store),
):
    """
    Payment result from the provider.

    Acknowledged immediately; the transaction and its tickets are written
    after the response is sent. The acknowledgment says nothing about
    issuance, only that the message was received.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid callback body")

    try:
        stk_callback = parse_envelope(body)
    except ValidationError as e:
        logger.warning("Rejected malformed callback: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(process_callback, store, stk_callback, dict(request.query_params))
    return CallbackAck()
