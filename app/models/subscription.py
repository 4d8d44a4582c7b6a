from datetime import datetime

from sqlalchemy import DateTime

from sqlmodel import Field, SQLModel

from app.core.clock import utcnow


class Subscription(SQLModel, table=True):
    """Hesap başına tek yetkili abonelik; her aktivasyon aynı satırı günceller, silinmez."""

    id: int | None = Field(default=None, primary_key=True)
    account_id: int = Field(unique=True, index=True)
    plan_id: str
    plan_name: str
    status: str = Field(default="active", index=True)  # active | pending | cancelled | expired | suspended
    start_date: datetime = Field(sa_type=DateTime)
    end_date: datetime = Field(sa_type=DateTime, index=True)
    renewal_date: datetime | None = Field(default=None, sa_type=DateTime)  # end_date - 1 gün
    auto_renew: bool = True
    payment_method: str  # "PIX" | "CREDITCARD" | "BOLETO"
    last_payment_id: int | None = None  # Son aktive eden PaymentTransaction.id
    created_at: datetime = Field(sa_type=DateTime, default_factory=utcnow)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utcnow)
