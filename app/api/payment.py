"""Hesap tarafı ödeme uçları: PIX / kart / boleto oluşturma, işlem listesi, abonelik."""
from fastapi import APIRouter, Depends, Request, Response
from sqlmodel import Session

from app.api.deps import get_current_account, get_gateway
from app.core.database import get_db
from app.core.rate_limit import DEFAULT_LIMIT, PAYMENT_LIMIT, account_or_ip, limiter
from app.models import Account
from app.schemas import (
    CreateBoletoPaymentRequest,
    CreateCardPaymentRequest,
    CreatePixPaymentRequest,
    GatewayResult,
    SubscriptionResponse,
    TransactionResponse,
)
from app.services import payment as payment_service
from app.services import subscription as subscription_service
from app.services.pagseguro import PagSeguroClient

router = APIRouter(prefix="/payment", tags=["payment"])


def _respond(result: GatewayResult, response: Response) -> GatewayResult:
    # Gateway reddi de aynı biçimde döner; istemci mesajı error.message'tan gösterir
    if not result.success:
        response.status_code = 400
    return result


@router.post("/pix", response_model=GatewayResult)
@limiter.limit(PAYMENT_LIMIT, key_func=account_or_ip)
def create_pix(
    request: Request,
    response: Response,
    body: CreatePixPaymentRequest,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    gateway: PagSeguroClient = Depends(get_gateway),
):
    result = payment_service.create_pix_payment(db, gateway, account.id, body.plan_id, body.customer)
    return _respond(result, response)


@router.post("/card", response_model=GatewayResult)
@limiter.limit(PAYMENT_LIMIT, key_func=account_or_ip)
def create_card(
    request: Request,
    response: Response,
    body: CreateCardPaymentRequest,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    gateway: PagSeguroClient = Depends(get_gateway),
):
    result = payment_service.create_credit_card_payment(
        db, gateway, account.id, body.plan_id, body.customer, body.card, body.installments
    )
    return _respond(result, response)


@router.post("/boleto", response_model=GatewayResult)
@limiter.limit(PAYMENT_LIMIT, key_func=account_or_ip)
def create_boleto(
    request: Request,
    response: Response,
    body: CreateBoletoPaymentRequest,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    gateway: PagSeguroClient = Depends(get_gateway),
):
    result = payment_service.create_boleto_payment(db, gateway, account.id, body.plan_id, body.customer)
    return _respond(result, response)


@router.get("/transactions", response_model=list[TransactionResponse])
@limiter.limit(DEFAULT_LIMIT)
def list_transactions(
    request: Request,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    return payment_service.list_account_transactions(db, account.id)


@router.get("/subscription", response_model=SubscriptionResponse | None)
@limiter.limit(DEFAULT_LIMIT)
def get_subscription(
    request: Request,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    return subscription_service.get_active_subscription(db, account.id)


@router.post("/subscription/{subscription_id}/cancel", response_model=SubscriptionResponse)
@limiter.limit(DEFAULT_LIMIT)
def cancel_subscription(
    request: Request,
    subscription_id: int,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    return subscription_service.cancel_subscription(db, account.id, subscription_id)


@router.post("/transactions/{transaction_id}/pix", response_model=TransactionResponse)
@limiter.limit(PAYMENT_LIMIT, key_func=account_or_ip)
def refresh_pix(
    request: Request,
    transaction_id: int,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    gateway: PagSeguroClient = Depends(get_gateway),
):
    """QR kodu oluşturma sırasında alınamadıysa yeniden çeker."""
    return payment_service.refresh_pix_payload(db, gateway, account.id, transaction_id)
