"""
Unit tests for app/services/redemption.py.

Covers the unused → used transition, repeat scans, unknown codes and
concurrent scans of the same code against a file-backed SQLite database.
"""
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.database import Base, use_immediate_transactions
from app.errors import PersistenceError
from app.services.redemption import RedemptionOutcome, verify_ticket
from app.store import TicketStore
from tests.conftest import make_ticket


class TestVerifyTicket:
    def test_first_scan_verifies(self, store):
        code = make_ticket(store)
        result = verify_ticket(store, code)

        assert result.outcome == RedemptionOutcome.VERIFIED
        assert result.message == f"Ticket {code} verified and marked used. Welcome!"
        ticket = store.find_ticket(code)
        assert ticket.used is True
        assert ticket.used_at is not None

    def test_second_scan_reports_already_used(self, store):
        code = make_ticket(store)
        verify_ticket(store, code)

        for _ in range(3):
            result = verify_ticket(store, code)
            assert result.outcome == RedemptionOutcome.ALREADY_USED
            assert result.message == "Ticket already used."

    def test_already_used_ticket_is_not_touched(self, store):
        code = make_ticket(store, used=True)
        assert verify_ticket(store, code).outcome == RedemptionOutcome.ALREADY_USED
        assert store.find_ticket(code).used_at is None

    def test_unknown_code_is_invalid_and_mutates_nothing(self, store):
        code = make_ticket(store)
        result = verify_ticket(store, "TKT-NOPE0000")

        assert result.outcome == RedemptionOutcome.INVALID
        assert result.message == "Invalid ticket code."
        assert store.find_ticket(code).used is False
        assert store.find_ticket("TKT-NOPE0000") is None

    @pytest.mark.parametrize("code", ["", "   ", None])
    def test_blank_code_is_invalid(self, store, code):
        assert verify_ticket(store, code).outcome == RedemptionOutcome.INVALID

    def test_code_is_trimmed(self, store):
        code = make_ticket(store)
        assert verify_ticket(store, f"  {code} ").outcome == RedemptionOutcome.VERIFIED

    def test_lost_race_reports_already_used(self, store, monkeypatch):
        code = make_ticket(store)
        monkeypatch.setattr(store, "mark_used_if_unused", lambda c: False)
        assert verify_ticket(store, code).outcome == RedemptionOutcome.ALREADY_USED

    def test_storage_unavailable_raises(self):
        with pytest.raises(PersistenceError):
            verify_ticket(TicketStore(None), "TKT-ABCD1234")


class TestConcurrentScans:
    GATES = 8

    @pytest.fixture
    def file_store(self, tmp_path):
        engine = use_immediate_transactions(create_engine(
            f"sqlite:///{tmp_path / 'gate.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        ))
        Base.metadata.create_all(bind=engine)
        yield TicketStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))
        engine.dispose()

    def test_only_one_gate_wins(self, file_store):
        code = make_ticket(file_store)
        barrier = threading.Barrier(self.GATES)

        def scan(_):
            barrier.wait()
            return verify_ticket(file_store, code).outcome

        with ThreadPoolExecutor(max_workers=self.GATES) as pool:
            outcomes = list(pool.map(scan, range(self.GATES)))

        assert outcomes.count(RedemptionOutcome.VERIFIED) == 1
        assert outcomes.count(RedemptionOutcome.ALREADY_USED) == self.GATES - 1
        assert file_store.find_ticket(code).used is True

    def test_conditional_update_only_succeeds_once(self, file_store):
        code = make_ticket(file_store)
        barrier = threading.Barrier(self.GATES)

        def flip(_):
            barrier.wait()
            return file_store.mark_used_if_unused(code)

        with ThreadPoolExecutor(max_workers=self.GATES) as pool:
            wins = list(pool.map(flip, range(self.GATES)))

        assert wins.count(True) == 1
