"""Tarih alanları naive UTC olarak saklanır ve aynen geri okunur."""
from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Session, select

from app.core.database import engine
from app.models import Account, Notification, PaymentTransaction, Subscription
from app.services import payment as payment_service
from app.services.webhook import process_pagseguro_webhook


def test_datetime_columns_are_plain_naive_datetime():
    tables = (Account, Notification, PaymentTransaction, Subscription)
    columns = [c for model in tables for c in model.__table__.columns if c.name.endswith(("_at", "_date"))]
    assert columns
    for column in columns:
        assert type(column.type) is DateTime, column.name
        assert column.type.timezone is False, column.name


def test_payment_timestamps_round_trip(db, gateway, plan, account, customer):
    payment_service.create_pix_payment(db, gateway, account.id, plan.id, customer)
    gateway.notify("N1", "ABC123", 3)
    paid = process_pagseguro_webhook(db, gateway, "N1")
    created_at, paid_at = paid.created_at, paid.paid_at

    with Session(engine) as fresh:
        tx = fresh.exec(select(PaymentTransaction).where(PaymentTransaction.pagseguro_code == "ABC123")).one()
        assert isinstance(tx.created_at, datetime)
        assert tx.created_at.tzinfo is None
        assert tx.paid_at.tzinfo is None
        assert tx.created_at == created_at
        assert tx.paid_at == paid_at
        assert tx.paid_at >= tx.created_at
        sub = fresh.exec(select(Subscription)).one()
        assert sub.end_date.tzinfo is None
        assert sub.end_date > sub.start_date
