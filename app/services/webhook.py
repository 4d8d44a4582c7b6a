"""
PagSeguro bildirim mutabakatı. Tüm webhook yolları process_pagseguro_webhook'tan geçer.

Bildirim sadece işaretçidir: gövdedeki hiçbir alana güvenilmez, durum her seferinde gateway'den
çekilir. Teslimat en az bir kez ve sırasız; aynı bildirim tekrar gelince aktivasyon ve bildirim
tekrar üretilmez. Bunu koşullu UPDATE sağlar: sadece durumu gerçekten değiştiren çağrı yan etki üretir.
"""
import logging

from sqlalchemy import update
from sqlmodel import Session, select

from app.core.clock import utcnow
from app.core.database import store_errors
from app.models import PaymentTransaction
from app.services.notifications import create_notification
from app.services.pagseguro import PagSeguroClient
from app.services.status import allowed_prior_statuses, can_transition, domain_status_for
from app.services.subscription import activate_plan, suspend_for_refund

logger = logging.getLogger(__name__)


def _transition(db: Session, transaction_id: int, target: str, external_status: int) -> bool:
    """Sadece izinli önceki durumdaysa günceller (commit etmez). Satır değiştiyse True."""
    now = utcnow()
    values = {"status": target, "pagseguro_status": external_status, "updated_at": now}
    if target == "paid":
        values["paid_at"] = now
    stmt = (
        update(PaymentTransaction)
        .where(
            PaymentTransaction.id == transaction_id,
            PaymentTransaction.status.in_(allowed_prior_statuses(target)),
        )
        .values(**values)
    )
    return db.connection().execute(stmt).rowcount == 1


def _record_external_status(db: Session, transaction_id: int, external_status: int) -> None:
    stmt = (
        update(PaymentTransaction)
        .where(PaymentTransaction.id == transaction_id)
        .values(pagseguro_status=external_status, updated_at=utcnow())
    )
    db.connection().execute(stmt)


def process_pagseguro_webhook(
    db: Session,
    gateway: PagSeguroClient,
    notification_code: str,
) -> PaymentTransaction | None:
    """
    1) gateway'den yetkili detayı çek, 2) yerel işlemi koda göre bul (yoksa logla, dön),
    3) sayısal durumu iç duruma eşle, 4) kaydet, 5) yeni paid ise planı aktive et ve bildir.
    Gateway ağ hataları yukarı fırlatılır; PagSeguro kendi politikasıyla tekrar dener.
    """
    details = gateway.process_webhook(notification_code)

    stmt = select(PaymentTransaction).where(PaymentTransaction.pagseguro_code == details.code)
    with store_errors("buscar transação"):
        transaction = db.exec(stmt).first()
    if transaction is None:
        logger.warning("Webhook for unknown transaction: code=%s status=%s", details.code, details.status)
        return None

    if details.gross_amount is not None and details.gross_amount != transaction.amount:
        logger.warning(
            "Webhook amount mismatch: transaction_id=%s expected=%s got=%s",
            transaction.id,
            transaction.amount,
            details.gross_amount,
        )

    transaction_id = transaction.id
    target = domain_status_for(details.status)
    with store_errors("atualizar transação"):
        changed = target is not None and _transition(db, transaction_id, target, details.status)
        if not changed:
            _record_external_status(db, transaction_id, details.status)
            db.commit()
            db.refresh(transaction)
            if target is not None and target != transaction.status and not can_transition(transaction.status, target):
                logger.warning(
                    "Webhook transition rejected: transaction_id=%s %s -> %s (pagseguro_status=%s)",
                    transaction_id,
                    transaction.status,
                    target,
                    details.status,
                )
            else:
                logger.info(
                    "Webhook without state change: transaction_id=%s status=%s pagseguro_status=%s",
                    transaction_id,
                    transaction.status,
                    details.status,
                )
            return transaction

    logger.info("Transaction %s -> %s (pagseguro_status=%s)", transaction_id, target, details.status)
    if target == "paid":
        # Durum güncellemesi aktivasyonla aynı commit'te: aktivasyon düşerse durum pending kalır, tekrar denenir
        activate_plan(
            db,
            transaction.account_id,
            transaction.plan_id,
            transaction.plan_name,
            transaction_id,
            payment_method=transaction.payment_method,
        )
    else:
        with store_errors("atualizar transação"):
            db.commit()
        if target == "refunded":
            suspend_for_refund(db, transaction_id)

    db.refresh(transaction)
    create_notification(
        db,
        transaction.account_id,
        "payment_status_updated",
        {
            "status": transaction.status,
            "plan_name": transaction.plan_name,
            "amount": transaction.amount,
            "transaction_id": transaction_id,
        },
    )
    return transaction
