from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from app.core.clock import utcnow


class Notification(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    account_id: int = Field(index=True)
    type: str = Field(index=True)  # payment_created, payment_status_updated, plan_activated, ...
    title: str
    message: str
    data: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    is_read: bool = False
    created_at: datetime = Field(sa_type=DateTime, default_factory=utcnow)
    read_at: datetime | None = Field(default=None, sa_type=DateTime)
