"""
Redemption gate: unused → used, exactly once per ticket.

The final flip is a conditional update, so when two gates scan the same code
at the same moment only one of them reports the ticket as verified.
"""
import enum
import logging

from app.errors import ConflictError, NotFoundError
from app.store import TicketStore

logger = logging.getLogger(__name__)


class RedemptionOutcome(str, enum.Enum):
    VERIFIED = "verified"
    ALREADY_USED = "already_used"
    INVALID = "invalid"


INVALID_MESSAGE = "Invalid ticket code."
ALREADY_USED_MESSAGE = "Ticket already used."


class RedemptionResult:
    def __init__(self, outcome: RedemptionOutcome, ticket_code: str):
        self.outcome = outcome
        self.ticket_code = ticket_code

    @property
    def message(self) -> str:
        if self.outcome == RedemptionOutcome.VERIFIED:
            return f"Ticket {self.ticket_code} verified and marked used. Welcome!"
        if self.outcome == RedemptionOutcome.ALREADY_USED:
            return ALREADY_USED_MESSAGE
        return INVALID_MESSAGE


def redeem(store: TicketStore, ticket_code: str) -> None:
    """
    Mark a ticket used.

    Raises:
        NotFoundError: no ticket has this code
        ConflictError: the ticket was already used, possibly by a concurrent scan
        PersistenceError: storage unavailable
    """
    ticket = store.find_ticket(ticket_code)
    if ticket is None:
        raise NotFoundError(INVALID_MESSAGE)
    if ticket.used:
        raise ConflictError(ALREADY_USED_MESSAGE)
    if not store.mark_used_if_unused(ticket_code):
        # another gate won between lookup and update
        raise ConflictError(ALREADY_USED_MESSAGE)


def verify_ticket(store: TicketStore, ticket_code: str) -> RedemptionResult:
    code = (ticket_code or "").strip()
    if not code:
        return RedemptionResult(RedemptionOutcome.INVALID, code)

    try:
        redeem(store, code)
    except NotFoundError:
        logger.info("Gate scan rejected, unknown code %s", code)
        return RedemptionResult(RedemptionOutcome.INVALID, code)
    except ConflictError:
        logger.info("Gate scan rejected, %s already used", code)
        return RedemptionResult(RedemptionOutcome.ALREADY_USED, code)

    logger.info("Ticket %s verified", code)
    return RedemptionResult(RedemptionOutcome.VERIFIED, code)
