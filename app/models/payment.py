from datetime import datetime

from decimal import Decimal

from sqlalchemy import DateTime

from sqlmodel import Field, SQLModel

from app.core.clock import utcnow


class PaymentTransaction(SQLModel, table=True):
    """
    Ödeme denemesi başına bir kayıt. Gateway onayından sonra pending olarak yazılır,
    sonrasında sadece webhook mutabakatı tarafından güncellenir.
    """

    id: int | None = Field(default=None, primary_key=True)
    account_id: int = Field(index=True)
    plan_id: str
    plan_name: str
    amount: Decimal = Field(max_digits=10, decimal_places=2)  # BRL ana birim (49.90); centavo dönüşümü sadece gateway sınırında
    payment_method: str  # "PIX" | "CREDITCARD" | "BOLETO"
    status: str = Field(default="pending", index=True)  # pending | paid | failed | cancelled | refunded
    # Gateway'in verdiği kod: tekil, bir kez atanır
    pagseguro_code: str = Field(unique=True, index=True)
    pagseguro_status: int = 1  # Son görülen PagSeguro durum kodu (1..7)
    reference: str = Field(index=True)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utcnow)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utcnow)
    paid_at: datetime | None = Field(default=None, sa_type=DateTime)
    expires_at: datetime | None = Field(default=None, sa_type=DateTime)
    payment_url: str | None = None
    # PIX
    qr_code: str | None = None
    qr_code_text: str | None = None
    # Kart
    installments: int | None = None
    card_last_digits: str | None = Field(default=None, max_length=4)
    card_brand: str | None = None
    # Boleto
    boleto_url: str | None = None
