"""Abonelik yaşam döngüsü: aktivasyon/yenileme, iptal, aktif abonelik, süresi dolanların kapatılması."""
import logging
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.core.clock import utcnow
from app.core.database import store_errors
from app.core.errors import NotFound, PermissionDenied
from app.models import Account, Plan, Subscription
from app.services.notifications import create_notification
from app.services.validation import require_fields

logger = logging.getLogger(__name__)

# Yenileme tetikleyicisi bitişten bu kadar önce
RENEWAL_GRACE = timedelta(days=1)
# Süre dolumunda expired yapılabilecek durumlar
EXPIRABLE_STATUSES = ("active", "cancelled")


def subscription_window(start: datetime, duration_days: int) -> tuple[datetime, datetime, datetime]:
    """(start, end, renewal): end = start + süre, renewal = end - 1 gün."""
    end = start + timedelta(days=duration_days)
    return start, end, end - RENEWAL_GRACE


def _find_by_account(db: Session, account_id: int) -> Subscription | None:
    stmt = select(Subscription).where(Subscription.account_id == account_id)
    return db.exec(stmt).first()


def _assign_plan_to_account(db: Session, account_id: int, plan_id: str | None, plan_name: str | None) -> None:
    account = db.get(Account, account_id)
    if not account:
        logger.warning("Plan assignment skipped, account not found: account_id=%s", account_id)
        return
    account.active_plan_id = plan_id
    account.active_plan_name = plan_name
    db.add(account)


def activate_plan(
    db: Session,
    account_id: int,
    plan_id: str,
    plan_name: str,
    transaction_id: int,
    payment_method: str = "PIX",
    now: datetime | None = None,
) -> Subscription:
    """
    Onaylanmış ödeme sonrası planı etkinleştirir. Hesabın aboneliği varsa yerinde güncellenir,
    yoksa oluşturulur; hesap başına tek satır (account_id unique).
    """
    require_fields({"account_id": account_id, "plan_id": plan_id, "transaction_id": transaction_id})
    with store_errors("buscar plano"):
        plan = db.get(Plan, plan_id)
    if not plan:
        raise NotFound("Plano não encontrado")
    start, end, renewal = subscription_window(now or utcnow(), plan.duration_days)
    values = {
        "plan_id": plan_id,
        "plan_name": plan_name,
        "status": "active",
        "start_date": start,
        "end_date": end,
        "renewal_date": renewal,
        "auto_renew": True,
        "payment_method": payment_method,
        "last_payment_id": transaction_id,
        "updated_at": utcnow(),
    }
    # Çağıranın açık işlemi (ör. webhook'taki koşullu durum güncellemesi) aynı commit ile yazılır
    with store_errors("ativar plano"):
        subscription = _find_by_account(db, account_id)
        if subscription is None:
            try:
                with db.begin_nested():
                    subscription = Subscription(account_id=account_id, **values)
                    db.add(subscription)
            except IntegrityError:
                # Aynı hesap için eşzamanlı ilk aktivasyon: kazananın satırını güncelle
                subscription = _find_by_account(db, account_id)
                if subscription is None:
                    raise
                subscription.sqlmodel_update(values)
                db.add(subscription)
        else:
            subscription.sqlmodel_update(values)
            db.add(subscription)
        _assign_plan_to_account(db, account_id, plan_id, plan_name)
        db.commit()
        db.refresh(subscription)
    logger.info(
        "Plan activated: account_id=%s plan=%s subscription_id=%s end=%s",
        account_id,
        plan_id,
        subscription.id,
        end.isoformat(),
    )
    create_notification(
        db,
        account_id,
        "plan_activated",
        {"plan_name": plan_name, "end_date": end.strftime("%d/%m/%Y")},
    )
    return subscription


def cancel_subscription(db: Session, account_id: int, subscription_id: int) -> Subscription:
    require_fields({"account_id": account_id, "subscription_id": subscription_id})
    with store_errors("buscar assinatura"):
        subscription = db.get(Subscription, subscription_id)
    if not subscription:
        raise NotFound("Assinatura não encontrada")
    if subscription.account_id != account_id:
        raise PermissionDenied("Usuário não autorizado")
    subscription.status = "cancelled"
    subscription.auto_renew = False
    subscription.updated_at = utcnow()
    with store_errors("cancelar assinatura"):
        db.add(subscription)
        db.commit()
        db.refresh(subscription)
    logger.info("Subscription cancelled: account_id=%s subscription_id=%s", account_id, subscription_id)
    create_notification(db, account_id, "subscription_cancelled", {"plan_name": subscription.plan_name})
    return subscription


def get_active_subscription(db: Session, account_id: int) -> Subscription | None:
    """Hesabın en son oluşturulan aboneliği (geçerlilik penceresine bakılmaz)."""
    require_fields({"account_id": account_id})
    stmt = (
        select(Subscription)
        .where(Subscription.account_id == account_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
    )
    with store_errors("buscar assinatura ativa"):
        return db.exec(stmt).first()


def suspend_for_refund(db: Session, transaction_id: int) -> Subscription | None:
    """İade edilen ödeme aboneliği son aktive eden ödemeyse abonelik askıya alınır."""
    stmt = select(Subscription).where(
        Subscription.last_payment_id == transaction_id,
        Subscription.status == "active",
    )
    with store_errors("suspender assinatura"):
        subscription = db.exec(stmt).first()
        if subscription is None:
            return None
        subscription.status = "suspended"
        subscription.auto_renew = False
        subscription.updated_at = utcnow()
        db.add(subscription)
        _assign_plan_to_account(db, subscription.account_id, None, None)
        db.commit()
        db.refresh(subscription)
    logger.info("Subscription suspended after refund: subscription_id=%s transaction_id=%s", subscription.id, transaction_id)
    return subscription


def _lapsed_candidates(db: Session, now: datetime) -> list[tuple[int, int, str]]:
    stmt = select(Subscription.id, Subscription.account_id, Subscription.plan_name).where(
        Subscription.status.in_(EXPIRABLE_STATUSES),
        Subscription.end_date <= now,
    )
    return list(db.exec(stmt).all())


def _expire_if_lapsed(db: Session, subscription_id: int, now: datetime) -> bool:
    """Koşullu UPDATE (commit etmez): arada yenilenen satır end_date koşulunu sağlamaz, dokunulmaz."""
    stmt = (
        update(Subscription)
        .where(
            Subscription.id == subscription_id,
            Subscription.status.in_(EXPIRABLE_STATUSES),
            Subscription.end_date <= now,
        )
        .values(status="expired", auto_renew=False, updated_at=now)
    )
    return db.connection().execute(stmt).rowcount == 1


def expire_lapsed_subscriptions(db: Session, now: datetime | None = None) -> int:
    """
    Penceresi dolmuş active/cancelled abonelikleri expired yapar, hesabın planını kaldırır.
    Otomatik tahsilat yok: yenileme yeni bir ödemeyle aynı satırın tekrar aktive edilmesidir.
    """
    now = now or utcnow()
    expired: list[tuple[int, str]] = []
    with store_errors("expirar assinaturas"):
        for subscription_id, account_id, plan_name in _lapsed_candidates(db, now):
            if not _expire_if_lapsed(db, subscription_id, now):
                logger.info("Subscription %s renewed during expiry sweep, skipped", subscription_id)
                continue
            _assign_plan_to_account(db, account_id, None, None)
            expired.append((account_id, plan_name))
        db.commit()
    for account_id, plan_name in expired:
        create_notification(db, account_id, "subscription_expired", {"plan_name": plan_name})
    if expired:
        logger.info("Expired %s lapsed subscription(s)", len(expired))
    return len(expired)
