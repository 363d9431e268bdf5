from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional


class CallbackAck(BaseModel):
    ResultCode: int = 0
    ResultDesc: str = "Accepted"


class LinkedTicket(BaseModel):
    code: str
    used: bool
    type: str


class DashboardTransaction(BaseModel):
    id: int
    merchantRequestID: Optional[str]
    checkoutRequestID: Optional[str]
    resultCode: int
    resultDesc: Optional[str]
    ticketType: str
    quantity: int
    accountReference: str
    email: str
    amount: Optional[int]
    mpesaReceipt: Optional[str]
    phone: Optional[str]
    transactionDate: Optional[str]
    timestamp: datetime
    linkedTickets: List[LinkedTicket]
    ticketCount: int


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
