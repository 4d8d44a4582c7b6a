from decimal import Decimal

from sqlmodel import Field, SQLModel


class Plan(SQLModel, table=True):
    """Abonelik planı. Bu servis için salt okunur; fiyatlar BRL ana birimde (49.90)."""

    id: str = Field(primary_key=True, max_length=64)
    name: str
    description: str = ""
    duration_days: int
    price_pix: Decimal = Field(max_digits=10, decimal_places=2)   # PIX ve boleto fiyatı
    price_card: Decimal = Field(max_digits=10, decimal_places=2)
    user_type: str = "driver"  # "driver" | "company"
    is_active: bool = True
