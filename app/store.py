"""
Storage handle for transactions and tickets.

Every component receives a TicketStore instead of reaching for a module-level
database. Each call opens its own short-lived session, so the handle is safe
to share across concurrent request handlers and background tasks.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app import models
from app.errors import PersistenceError

logger = logging.getLogger(__name__)


class DuplicateBatchError(PersistenceError):
    """A ticket batch collided with tickets already stored for the receipt."""


class TicketStore:
    def __init__(self, session_factory):
        self._session_factory = session_factory

    @property
    def ready(self) -> bool:
        return self._session_factory is not None

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if not self.ready:
            raise PersistenceError("Storage is not configured")
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(str(e)) from e
        finally:
            session.close()

    def save_transaction(self, txn: models.Transaction) -> int:
        with self._session() as db:
            db.add(txn)
            db.commit()
            db.refresh(txn)
            db.expunge(txn)
            return txn.id

    def save_tickets(self, tickets: List[models.Ticket]) -> None:
        """Persist a whole batch in one database transaction, or none of it."""
        if not self.ready:
            raise PersistenceError("Storage is not configured")
        db = self._session_factory()
        try:
            db.add_all(tickets)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateBatchError(str(e)) from e
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(str(e)) from e
        finally:
            db.close()

    def tickets_by_receipt(self, mpesa_receipt: str) -> List[models.Ticket]:
        with self._session() as db:
            tickets = db.query(models.Ticket).filter(
                models.Ticket.mpesa_receipt == mpesa_receipt
            ).order_by(models.Ticket.seat).all()
            db.expunge_all()
            return tickets

    def find_ticket(self, ticket_code: str) -> Optional[models.Ticket]:
        with self._session() as db:
            ticket = db.query(models.Ticket).filter(
                models.Ticket.ticket_code == ticket_code
            ).first()
            if ticket is not None:
                db.expunge(ticket)
            return ticket

    def mark_used_if_unused(self, ticket_code: str) -> bool:
        """
        Atomically flip used from False to True.

        Returns True only for the caller whose update matched the row; a
        concurrent caller sees zero rows updated and gets False.
        """
        with self._session() as db:
            updated = db.query(models.Ticket).filter(
                models.Ticket.ticket_code == ticket_code,
                models.Ticket.used.is_(False),
            ).update(
                {"used": True, "used_at": models.utcnow()},
                synchronize_session=False,
            )
            db.commit()
            return updated == 1

    def all_transactions(self) -> List[models.Transaction]:
        with self._session() as db:
            rows = db.query(models.Transaction).order_by(models.Transaction.id).all()
            db.expunge_all()
            return rows

    def all_tickets(self) -> List[models.Ticket]:
        with self._session() as db:
            rows = db.query(models.Ticket).order_by(models.Ticket.id).all()
            db.expunge_all()
            return rows
