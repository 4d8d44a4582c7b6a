"""
Plan ödemesi oluşturma (PIX, kart, boleto).

Sıra önemli: önce gateway, sonra kayıt. Gateway reddederse veya ağ hatası olursa yerelde hiçbir
PaymentTransaction oluşmaz; gateway'in hiç vermediği bir koda bağlı kayıt olamaz.
"""
import logging
import time
from datetime import timedelta
from decimal import Decimal

from sqlmodel import Session, select

from app.core.clock import utcnow
from app.core.config import notification_url
from app.core.database import store_errors
from app.core.errors import NotFound, PermissionDenied, ValidationError
from app.models import Account, PaymentTransaction, Plan
from app.schemas.pagseguro import (
    BoletoPaymentRequest,
    CardData,
    CardPaymentRequest,
    Customer,
    GatewayResult,
    PaymentItem,
    PixPaymentRequest,
)
from app.services.notifications import create_notification
from app.services.pagseguro import PagSeguroClient
from app.services.status import PAGSEGURO_PENDING
from app.services.validation import require_fields

logger = logging.getLogger(__name__)

PIX_EXPIRY = timedelta(hours=24)
BOLETO_EXPIRY = timedelta(days=3)
MAX_INSTALLMENTS = 18


def _load_plan(db: Session, plan_id: str) -> Plan:
    with store_errors("buscar plano"):
        plan = db.get(Plan, plan_id)
    if not plan or not plan.is_active:
        raise NotFound("Plano não encontrado")
    return plan


def _load_account(db: Session, account_id: int) -> Account:
    with store_errors("buscar usuário"):
        account = db.get(Account, account_id)
    if not account:
        raise NotFound("Usuário não encontrado")
    return account


def build_reference(plan_id: str, account_id: int) -> str:
    """Tekil sipariş referansı: plan + hesap + monoton zaman bileşeni (ns)."""
    return f"PLAN_{plan_id}_{account_id}_{time.time_ns()}"


def _plan_item(plan: Plan, amount: Decimal) -> PaymentItem:
    return PaymentItem(
        id=plan.id,
        description=f"Assinatura {plan.name} - {plan.duration_days} dias"[:100],
        amount=amount,
        quantity=1,
    )


def _persist_pending(
    db: Session,
    *,
    account_id: int,
    plan: Plan,
    amount: Decimal,
    payment_method: str,
    reference: str,
    result: GatewayResult,
    **extra,
) -> PaymentTransaction:
    now = utcnow()
    transaction = PaymentTransaction(
        account_id=account_id,
        plan_id=plan.id,
        plan_name=plan.name,
        amount=amount,
        payment_method=payment_method,
        status="pending",
        pagseguro_code=result.code,
        pagseguro_status=PAGSEGURO_PENDING,
        reference=reference,
        created_at=now,
        updated_at=now,
        payment_url=result.payment_url,
        **extra,
    )
    with store_errors("salvar transação de pagamento"):
        db.add(transaction)
        db.commit()
        db.refresh(transaction)
    logger.info(
        "Payment created: transaction_id=%s account_id=%s plan=%s method=%s code=%s",
        transaction.id,
        account_id,
        plan.id,
        payment_method,
        result.code,
    )
    create_notification(
        db,
        account_id,
        "payment_created",
        {
            "plan_name": plan.name,
            "amount": amount,
            "payment_method": payment_method,
            "transaction_id": transaction.id,
        },
    )
    return transaction


def _acknowledged(result: GatewayResult) -> bool:
    return bool(result.success and result.code)


def create_pix_payment(
    db: Session,
    gateway: PagSeguroClient,
    account_id: int,
    plan_id: str,
    customer: Customer,
) -> GatewayResult:
    require_fields({"account_id": account_id, "plan_id": plan_id, "customer": customer})
    plan = _load_plan(db, plan_id)
    _load_account(db, account_id)
    reference = build_reference(plan.id, account_id)
    request = PixPaymentRequest(
        reference=reference,
        customer=customer,
        items=[_plan_item(plan, plan.price_pix)],
        notification_url=notification_url(),
    )
    result = gateway.create_pix_payment(request)
    if not _acknowledged(result):
        return result
    transaction = _persist_pending(
        db,
        account_id=account_id,
        plan=plan,
        amount=plan.price_pix,
        payment_method="PIX",
        reference=reference,
        result=result,
        expires_at=utcnow() + PIX_EXPIRY,
        qr_code=result.qr_code,
        qr_code_text=result.qr_code_text,
    )
    return result.model_copy(update={"transaction_id": str(transaction.id)})


def create_credit_card_payment(
    db: Session,
    gateway: PagSeguroClient,
    account_id: int,
    plan_id: str,
    customer: Customer,
    card: CardData | None,
    installments: int = 1,
) -> GatewayResult:
    require_fields({"account_id": account_id, "plan_id": plan_id, "customer": customer, "card": card})
    if not 1 <= installments <= MAX_INSTALLMENTS:
        raise ValidationError(f"Número de parcelas deve estar entre 1 e {MAX_INSTALLMENTS}.")
    plan = _load_plan(db, plan_id)
    _load_account(db, account_id)
    reference = build_reference(plan.id, account_id)
    request = CardPaymentRequest(
        reference=reference,
        customer=customer,
        items=[_plan_item(plan, plan.price_card)],
        notification_url=notification_url(),
        card=card,
        installments=installments,
    )
    result = gateway.create_credit_card_payment(request)
    if not _acknowledged(result):
        return result
    transaction = _persist_pending(
        db,
        account_id=account_id,
        plan=plan,
        amount=plan.price_card,
        payment_method="CREDITCARD",
        reference=reference,
        result=result,
        installments=installments,
        card_last_digits=card.last_digits,
        card_brand=card.brand,
    )
    return result.model_copy(update={"transaction_id": str(transaction.id)})


def create_boleto_payment(
    db: Session,
    gateway: PagSeguroClient,
    account_id: int,
    plan_id: str,
    customer: Customer,
) -> GatewayResult:
    require_fields({"account_id": account_id, "plan_id": plan_id, "customer": customer})
    plan = _load_plan(db, plan_id)
    _load_account(db, account_id)
    reference = build_reference(plan.id, account_id)
    # Boleto PIX fiyatıyla
    request = BoletoPaymentRequest(
        reference=reference,
        customer=customer,
        items=[_plan_item(plan, plan.price_pix)],
        notification_url=notification_url(),
    )
    result = gateway.create_boleto_payment(request)
    if not _acknowledged(result):
        return result
    transaction = _persist_pending(
        db,
        account_id=account_id,
        plan=plan,
        amount=plan.price_pix,
        payment_method="BOLETO",
        reference=reference,
        result=result,
        expires_at=utcnow() + BOLETO_EXPIRY,
        boleto_url=result.boleto_url,
    )
    return result.model_copy(update={"transaction_id": str(transaction.id)})


def list_account_transactions(db: Session, account_id: int) -> list[PaymentTransaction]:
    require_fields({"account_id": account_id})
    stmt = (
        select(PaymentTransaction)
        .where(PaymentTransaction.account_id == account_id)
        .order_by(PaymentTransaction.created_at.desc(), PaymentTransaction.id.desc())
    )
    with store_errors("buscar transações de pagamento"):
        return list(db.exec(stmt).all())


def refresh_pix_payload(
    db: Session,
    gateway: PagSeguroClient,
    account_id: int,
    transaction_id: int,
) -> PaymentTransaction:
    """
    Bekleyen PIX işleminin QR kodunu gateway'den yeniden çeker. Oluşturmadaki ikinci çağrı
    düşmüşse (kayıt QR'sız) istemci buradan tamamlar. Durum alanlarına dokunulmaz; onlar webhook'un.
    """
    require_fields({"account_id": account_id, "transaction_id": transaction_id})
    with store_errors("buscar transação de pagamento"):
        transaction = db.get(PaymentTransaction, transaction_id)
    if not transaction:
        raise NotFound("Transação não encontrada")
    if transaction.account_id != account_id:
        raise PermissionDenied("Usuário não autorizado")
    if transaction.payment_method != "PIX" or transaction.status != "pending":
        raise ValidationError("Apenas pagamentos PIX pendentes podem ter o QR Code atualizado.")
    details = gateway.get_transaction_details(transaction.pagseguro_code)
    if details.qr_code or details.qr_code_text:
        transaction.qr_code = details.qr_code or transaction.qr_code
        transaction.qr_code_text = details.qr_code_text or transaction.qr_code_text
        transaction.updated_at = utcnow()
        with store_errors("atualizar QR Code"):
            db.add(transaction)
            db.commit()
            db.refresh(transaction)
        logger.info("PIX payload refreshed: transaction_id=%s", transaction_id)
    else:
        logger.warning("PIX payload still unavailable: transaction_id=%s code=%s", transaction_id, transaction.pagseguro_code)
    return transaction
