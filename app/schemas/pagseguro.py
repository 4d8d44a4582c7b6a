"""PagSeguro istek/yanıt tipleri. Düz anahtar-değer (form) kodlaması sadece app/services/pagseguro.py içinde yapılır."""
from decimal import Decimal
from typing import ClassVar, Literal

from pydantic import BaseModel, EmailStr, Field

PaymentMethod = Literal["PIX", "CREDITCARD", "BOLETO"]


class Phone(BaseModel):
    area_code: str = Field(min_length=2, max_length=2)
    number: str = Field(min_length=8, max_length=9)


class Address(BaseModel):
    street: str
    number: str
    complement: str | None = None
    district: str
    city: str
    state: str = Field(min_length=2, max_length=2)
    country: str = "BRA"
    postal_code: str


class Customer(BaseModel):
    name: str
    email: EmailStr
    cpf: str | None = None
    cnpj: str | None = None
    phone: Phone | None = None
    address: Address | None = None


class CardHolder(BaseModel):
    name: str
    birth_date: str  # dd/MM/yyyy
    cpf: str


class CardData(BaseModel):
    """Kart numarası hiç bu servise gelmez: tarayıcıda üretilen token + gösterim için son 4 hane."""
    token: str
    brand: str
    last_digits: str | None = Field(default=None, max_length=4)
    holder: CardHolder


class PaymentItem(BaseModel):
    id: str
    description: str = Field(max_length=100)
    amount: Decimal = Field(gt=0, decimal_places=2)  # BRL ana birim
    quantity: int = Field(default=1, ge=1)
    weight: int | None = None  # gram


class CheckoutRequest(BaseModel):
    wire_method: ClassVar[str] = ""

    reference: str = Field(max_length=200)
    customer: Customer
    items: list[PaymentItem]
    notification_url: str | None = None
    extra_amount: Decimal | None = None

    def total(self) -> Decimal:
        total = sum((i.amount * i.quantity for i in self.items), Decimal("0"))
        return total + (self.extra_amount or Decimal("0"))


class PixPaymentRequest(CheckoutRequest):
    wire_method: ClassVar[str] = "pix"


class BoletoPaymentRequest(CheckoutRequest):
    wire_method: ClassVar[str] = "boleto"


class CardPaymentRequest(CheckoutRequest):
    wire_method: ClassVar[str] = "creditcard"

    card: CardData
    installments: int = Field(default=1, ge=1, le=18)


class GatewayError(BaseModel):
    code: str
    message: str


class GatewayResult(BaseModel):
    """Tüm oluşturma çağrılarının tek tip sonucu; iş reddi success=False + error ile döner (exception değil)."""

    success: bool
    code: str | None = None
    transaction_id: str | None = None
    payment_url: str | None = None
    qr_code: str | None = None
    qr_code_text: str | None = None
    boleto_url: str | None = None
    status: str | None = None
    error: GatewayError | None = None

    @classmethod
    def failure(cls, code: str, message: str) -> "GatewayResult":
        return cls(success=False, error=GatewayError(code=code, message=message))


class GatewayTransaction(BaseModel):
    """Mutabakat anında çekilen yetkili durum; olduğu gibi saklanmaz, PaymentTransaction alanlarına yansıtılır."""

    code: str
    reference: str | None = None
    status: int
    status_text: str
    payment_method_type: int | None = None
    payment_method_code: int | None = None
    gross_amount: Decimal | None = None
    discount_amount: Decimal | None = None
    fee_amount: Decimal | None = None
    net_amount: Decimal | None = None
    extra_amount: Decimal | None = None
    installment_count: int | None = None
    item_count: int | None = None
    date: str | None = None
    last_event_date: str | None = None
    payment_link: str | None = None
    qr_code: str | None = None
    qr_code_text: str | None = None
