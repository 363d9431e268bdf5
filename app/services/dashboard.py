from collections import defaultdict
from typing import Any, Dict, List

from app.store import TicketStore


def build_dashboard(store: TicketStore) -> List[Dict[str, Any]]:
    """
    Every transaction with the tickets sharing its receipt number.

    Transactions without a receipt (declined payments) link no tickets.
    """
    transactions = store.all_transactions()
    tickets_by_receipt = defaultdict(list)
    for ticket in store.all_tickets():
        tickets_by_receipt[ticket.mpesa_receipt].append(
            {"code": ticket.ticket_code, "used": ticket.used, "type": ticket.type}
        )

    rows = []
    for txn in transactions:
        linked = tickets_by_receipt.get(txn.mpesa_receipt, []) if txn.mpesa_receipt else []
        rows.append({
            "id": txn.id,
            "merchantRequestID": txn.merchant_request_id,
            "checkoutRequestID": txn.checkout_request_id,
            "resultCode": txn.result_code,
            "resultDesc": txn.result_desc,
            "ticketType": txn.ticket_type,
            "quantity": txn.quantity,
            "accountReference": txn.account_reference,
            "email": txn.email,
            "amount": txn.amount,
            "mpesaReceipt": txn.mpesa_receipt,
            "phone": txn.phone,
            "transactionDate": txn.transaction_date,
            "timestamp": txn.timestamp,
            "linkedTickets": linked,
            "ticketCount": len(linked),
        })
    return rows
