# app/schemas/payment.py
"""
Pydantic schema for the payment gateway callback.
Field names follow the gateway's payload.
"""
from typing import Optional, Union

from pydantic import BaseModel


class PaymentCallbackIn(BaseModel):
    merchantCode: str
    amount: Union[str, int]  # Signed as the literal string the gateway sent
    merchantOrderId: str  # Our order id
    resultCode: str  # "00" means paid
    signature: str
    productDetail: Optional[str] = None
    additionalParam: Optional[str] = None
    paymentCode: Optional[str] = None
    merchantUserId: Optional[str] = None
    reference: Optional[str] = None
