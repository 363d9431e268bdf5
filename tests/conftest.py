"""
Shared pytest fixtures for all test modules.

Uses an in-memory SQLite database (StaticPool) so every test
function gets a clean, isolated database — no disk I/O, no state leakage.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from typing import Any, Dict, Optional

from app.config import Settings
from app.database import Base, get_store, use_immediate_transactions
from app.store import TicketStore
from app import models


# ---------------------------------------------------------------------------
# In-memory database engine shared across all fixtures in a test session.
# StaticPool forces all SQLAlchemy connections to reuse the same underlying
# sqlite3 connection, which is required for in-memory SQLite.
# ---------------------------------------------------------------------------
TEST_ENGINE = use_immediate_transactions(create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
))
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=TEST_ENGINE)


@pytest.fixture(autouse=True)
def reset_db():
    """Drop and recreate all tables before each test for full isolation."""
    Base.metadata.drop_all(bind=TEST_ENGINE)
    Base.metadata.create_all(bind=TEST_ENGINE)
    yield
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture
def store(reset_db):
    """Storage handle backed by the in-memory test database."""
    return TicketStore(TestingSession)


@pytest.fixture
def client(store):
    """
    FastAPI TestClient with the real store dependency overridden to use
    the in-memory test database. The TestClient is NOT used as a context
    manager so the lifespan hook (which touches the on-disk DB) is skipped.
    """
    from app.main import app

    def override_get_store():
        yield store

    app.dependency_overrides[get_store] = override_get_store
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers — not fixtures — so any test file can import and call them directly.
# ---------------------------------------------------------------------------
def make_txn(
    store: TicketStore,
    mpesa_receipt: Optional[str] = "R1",
    ticket_type: str = "VIP",
    quantity: int = 1,
    result_code: int = 0,
    email: str = "a@b.com",
    phone: Optional[str] = "254700000001",
) -> models.Transaction:
    txn = models.Transaction(
        merchant_request_id="mr-1",
        checkout_request_id="ws_CO_1",
        result_code=result_code,
        result_desc="ok" if result_code == 0 else "Request cancelled by user",
        ticket_type=ticket_type,
        quantity=quantity,
        account_reference="Concert1",
        email=email,
        amount=2000 if result_code == 0 else None,
        mpesa_receipt=mpesa_receipt,
        phone=phone,
        transaction_date="20240101120000",
    )
    store.save_transaction(txn)
    return txn


def make_ticket(
    store: TicketStore,
    ticket_code: str = "TKT-ABCD1234",
    mpesa_receipt: str = "R1",
    seat: int = 1,
    used: bool = False,
    ticket_type: str = "VIP",
    email: str = "a@b.com",
) -> str:
    ticket = models.Ticket(
        transaction_id=1,
        ticket_code=ticket_code,
        qr_base64="data:image/png;base64,AAAA",
        phone="254700000001",
        email=email,
        account_reference="Concert1",
        mpesa_receipt=mpesa_receipt,
        seat=seat,
        type=ticket_type,
        used=used,
    )
    store.save_tickets([ticket])
    return ticket_code


def stk_envelope(
    result_code: int = 0,
    receipt: Optional[str] = "R1",
    amount: int = 2000,
    phone: int = 254700000001,
    transaction_date: int = 20240101120000,
    result_desc: Optional[str] = None,
) -> Dict[str, Any]:
    """Callback body shaped like the one Daraja posts."""
    callback: Dict[str, Any] = {
        "MerchantRequestID": "29115-34620561-1",
        "CheckoutRequestID": "ws_CO_191220191020363925",
        "ResultCode": result_code,
        "ResultDesc": result_desc or (
            "The service request is processed successfully." if result_code == 0
            else "Request cancelled by user"
        ),
    }
    if result_code == 0:
        items = [
            {"Name": "Amount", "Value": amount},
            {"Name": "MpesaReceiptNumber", "Value": receipt},
            {"Name": "Balance"},
            {"Name": "TransactionDate", "Value": transaction_date},
            {"Name": "PhoneNumber", "Value": phone},
        ]
        if receipt is None:
            items = [i for i in items if i["Name"] != "MpesaReceiptNumber"]
        callback["CallbackMetadata"] = {"Item": items}
    return {"Body": {"stkCallback": callback}}


CALLBACK_BASE = "https://tickets.example.com/api/payments/callback"


def mpesa_settings(**overrides) -> Settings:
    """Complete M-Pesa settings, independent of the environment."""
    values = dict(
        MPESA_CONSUMER_KEY="key",
        MPESA_CONSUMER_SECRET="secret",
        MPESA_API_BASE_URL="https://sandbox.safaricom.co.ke",
        MPESA_SHORTCODE="174379",
        MPESA_PASSKEY="passkey",
        MPESA_CALLBACK_URL=CALLBACK_BASE,
        MPESA_TIMEOUT_SECONDS=2.0,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)
