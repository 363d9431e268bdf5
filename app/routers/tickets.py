from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from app.database import get_store
from app.errors import PersistenceError
from app.schemas.requests import VerifyTicketRequest
from app.services.redemption import verify_ticket
from app.store import TicketStore

router = APIRouter()


@router.post("/verify", response_class=PlainTextResponse)
def verify(request: VerifyTicketRequest, store: TicketStore = Depends(get_store)):
    """
    Gate check. Marks the ticket used on its first successful scan.

    Responds with one of:
    - "Invalid ticket code."
    - "Ticket already used."
    - "Ticket <code> verified and marked used. Welcome!"
    """
    try:
        result = verify_ticket(store, request.ticket_code)
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Verification failed due to server error.")
    return result.message
