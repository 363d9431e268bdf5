"""
Pure unit tests for app/catalog.py.

Covers pricing (per ticket vs flat bundle) and the number of tickets a
payment buys, including the unknown-type fallback.
"""
import pytest

from app import catalog
from app.catalog import CATALOG, CatalogEntry, amount_for, get_entry, is_bundle, tickets_owed

SINGLE_TYPES = [name for name, entry in CATALOG.items() if entry.people == 1]
BUNDLE_TYPES = [name for name, entry in CATALOG.items() if entry.people > 1]


class TestLookup:
    def test_known_type(self):
        assert get_entry("VIP") == CatalogEntry(price=2000, people=1)

    def test_unknown_type(self):
        assert get_entry("Backstage") is None

    def test_empty_type(self):
        assert get_entry("") is None
        assert get_entry(None) is None

    def test_bundle_detection(self):
        assert is_bundle(CATALOG["Family4"])
        assert not is_bundle(CATALOG["Regular"])


class TestAmount:
    def test_single_type_scales_with_quantity(self):
        assert amount_for(CATALOG["VIP"], 3) == 6000

    def test_bundle_is_flat(self):
        assert amount_for(CATALOG["Family4"], 3) == 20000

    def test_children_price(self):
        assert amount_for(CATALOG["Children"], 2) == 600


class TestTicketsOwed:
    @pytest.mark.parametrize("ticket_type", SINGLE_TYPES)
    def test_single_types_issue_quantity(self, ticket_type):
        assert tickets_owed(CATALOG[ticket_type], 5) == 5

    @pytest.mark.parametrize("ticket_type", BUNDLE_TYPES)
    def test_bundles_issue_people_regardless_of_quantity(self, ticket_type):
        entry = CATALOG[ticket_type]
        assert tickets_owed(entry, 1) == entry.people
        assert tickets_owed(entry, 3) == entry.people

    def test_unknown_type_falls_back_to_one(self):
        assert tickets_owed(None, 7) == 1

    def test_corp12_bundle_size(self):
        assert catalog.tickets_owed(catalog.get_entry("Corp12"), 1) == 12
