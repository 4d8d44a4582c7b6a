from datetime import datetime

from sqlalchemy import DateTime

from sqlmodel import Field, SQLModel

from app.core.clock import utcnow


class Account(SQLModel, table=True):
    """Hesabın bu servisin ihtiyaç duyduğu dar görünümü (profil/doküman alanları burada yok)."""

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    name: str = ""
    user_type: str = "driver"  # "driver" | "company"
    active_plan_id: str | None = None    # Ödeme onayında atanır
    active_plan_name: str | None = None
    is_blocked: bool = False
    created_at: datetime | None = Field(sa_type=DateTime, default_factory=utcnow)
