from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint

from app.database import Base


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    merchant_request_id = Column(String, nullable=True)
    checkout_request_id = Column(String, nullable=True, index=True)
    result_code = Column(Integer, nullable=False)
    result_desc = Column(String, nullable=True)
    ticket_type = Column(String, nullable=False, default="")
    quantity = Column(Integer, nullable=False, default=1)
    account_reference = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, default="")
    amount = Column(Integer, nullable=True)
    mpesa_receipt = Column(String, nullable=True, index=True)  # join key to tickets
    phone = Column(String, nullable=True)
    transaction_date = Column(String, nullable=True)  # provider format YYYYMMDDHHMMSS
    timestamp = Column(DateTime, nullable=False, default=utcnow)


class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        UniqueConstraint("mpesa_receipt", "seat", name="uq_ticket_receipt_seat"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(Integer, nullable=False, index=True)
    ticket_code = Column(String, nullable=False, unique=True, index=True)
    qr_base64 = Column(Text, nullable=False)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=False, default="")
    account_reference = Column(String, nullable=False, default="")
    mpesa_receipt = Column(String, nullable=False, index=True)
    seat = Column(Integer, nullable=False)  # 1..n within one receipt
    type = Column(String, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime, nullable=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow)
