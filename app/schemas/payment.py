from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.schemas.pagseguro import CardData, Customer


class CreatePixPaymentRequest(BaseModel):
    """PIX: QR kod ödeme sonrası webhook ile plan aktive edilir."""
    plan_id: str
    customer: Customer


class CreateBoletoPaymentRequest(BaseModel):
    plan_id: str
    customer: Customer


class CreateCardPaymentRequest(BaseModel):
    plan_id: str
    customer: Customer
    card: CardData
    installments: int = Field(default=1, ge=1, le=18)


class TransactionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    plan_id: str
    plan_name: str
    amount: Decimal
    payment_method: str
    status: str
    pagseguro_code: str
    pagseguro_status: int
    created_at: datetime
    paid_at: datetime | None = None
    expires_at: datetime | None = None
    payment_url: str | None = None
    qr_code: str | None = None
    qr_code_text: str | None = None
    installments: int | None = None
    card_last_digits: str | None = None
    card_brand: str | None = None
    boleto_url: str | None = None


class SubscriptionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    plan_id: str
    plan_name: str
    status: str
    start_date: datetime
    end_date: datetime
    renewal_date: datetime | None = None
    auto_renew: bool
    payment_method: str
    last_payment_id: int | None = None
    created_at: datetime
