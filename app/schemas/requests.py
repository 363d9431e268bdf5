from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional


class InitiatePaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    phone: Optional[str] = None
    ticket_type: Optional[str] = Field(default=None, alias="ticketType")
    quantity: int = 1
    account_reference: Optional[str] = Field(default=None, alias="accountReference")
    email: Optional[str] = None

    @field_validator("phone", "email", "ticket_type", "account_reference")
    @classmethod
    def strip_blank(cls, v):
        if v is None:
            return None
        v = v.strip()
        return v or None


class CallbackItems(BaseModel):
    Item: List[Dict[str, Any]] = []


class StkCallback(BaseModel):
    MerchantRequestID: Optional[str] = None
    CheckoutRequestID: Optional[str] = None
    ResultCode: int
    ResultDesc: Optional[str] = None
    CallbackMetadata: Optional[CallbackItems] = None


class VerifyTicketRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ticket_code: str = Field(default="", alias="ticketCode")


class ReceiptEmailRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    receipt_id: str = Field(validation_alias=AliasChoices("receiptId", "mpesaReceipt", "receipt_id"))

    @field_validator("receipt_id")
    @classmethod
    def validate_receipt(cls, v):
        if not v.strip():
            raise ValueError("receiptId cannot be empty")
        return v.strip()
