"""Destek/operasyon uçları (X-Admin-Secret): işlem listesi, gateway'de iptal, süresi dolan abonelikler."""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from app.api.deps import get_gateway, require_admin
from app.core.database import get_db
from app.models import PaymentTransaction
from app.schemas import TransactionResponse
from app.services.pagseguro import PagSeguroClient
from app.services.subscription import expire_lapsed_subscriptions

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

_STATUS_FILTERS = ("pending", "paid", "failed", "cancelled", "refunded")


@router.get("/payments", response_model=list[TransactionResponse])
def payments_list(
    status_filter: str | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    stmt = select(PaymentTransaction).order_by(PaymentTransaction.id.desc()).limit(200)
    if status_filter in _STATUS_FILTERS:
        stmt = stmt.where(PaymentTransaction.status == status_filter)
    return list(db.exec(stmt).all())


@router.post("/payments/{code}/cancel")
def payment_cancel(code: str, gateway: PagSeguroClient = Depends(get_gateway)):
    """Gateway'de iptal ister; yerel durum PagSeguro'nun bildirimi (7) ile güncellenir."""
    return {"ok": gateway.cancel_transaction(code)}


@router.post("/subscriptions/expire")
def subscriptions_expire(db: Session = Depends(get_db)):
    return {"expired": expire_lapsed_subscriptions(db)}
