"""
Static ticket catalog.

Maps a ticket type to its unit price (KES) and the number of people one unit
admits. Single types (people == 1) are priced per ticket; bundle types
(people > 1) are a flat fee for the whole group.
"""
from typing import Dict, NamedTuple, Optional


class CatalogEntry(NamedTuple):
    price: int
    people: int


CATALOG: Dict[str, CatalogEntry] = {
    "Regular": CatalogEntry(price=1000, people=1),
    "Children": CatalogEntry(price=300, people=1),
    "VIP": CatalogEntry(price=2000, people=1),
    "VVIP": CatalogEntry(price=3000, people=1),
    "Executive": CatalogEntry(price=5000, people=1),
    "Family4": CatalogEntry(price=20000, people=4),
    "Family6": CatalogEntry(price=25000, people=6),
    "Corp6": CatalogEntry(price=50000, people=6),
    "Corp8": CatalogEntry(price=60000, people=8),
    "Corp12": CatalogEntry(price=100000, people=12),
}


def get_entry(ticket_type: Optional[str]) -> Optional[CatalogEntry]:
    if not ticket_type:
        return None
    return CATALOG.get(ticket_type)


def is_bundle(entry: CatalogEntry) -> bool:
    return entry.people > 1


def amount_for(entry: CatalogEntry, quantity: int) -> int:
    """Amount to charge: per ticket for single types, flat for bundles."""
    if is_bundle(entry):
        return entry.price
    return entry.price * quantity


def tickets_owed(entry: Optional[CatalogEntry], quantity: int) -> int:
    """
    Number of tickets a successful payment buys.

    Unknown types fall back to a single ticket instead of failing the batch.
    """
    if entry is None:
        return 1
    if is_bundle(entry):
        return entry.people
    return max(quantity, 1)
