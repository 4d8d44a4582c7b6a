"""Hesap bildirimleri: tip başına şablon (pt-BR, son kullanıcı Brezilya'da), veri alanları şablona işlenir."""
import logging
from decimal import Decimal
from typing import Any

from sqlmodel import Session

from app.core.database import store_errors
from app.models import Notification
from app.services.money import format_brl

logger = logging.getLogger(__name__)

PAYMENT_METHOD_LABELS = {
    "PIX": "PIX",
    "CREDITCARD": "cartão de crédito",
    "BOLETO": "boleto",
}

STATUS_LABELS = {
    "pending": "aguardando pagamento",
    "paid": "pago",
    "failed": "não aprovado",
    "cancelled": "cancelado",
    "refunded": "estornado",
}

NOTIFICATION_TEMPLATES: dict[str, tuple[str, str]] = {
    "payment_created": (
        "Pagamento gerado",
        "Seu pagamento de {amount} via {payment_method} para o plano {plan_name} foi gerado.",
    ),
    "payment_status_updated": (
        "Status do pagamento atualizado",
        "O pagamento do plano {plan_name} ({amount}) está {status}.",
    ),
    "plan_activated": (
        "Plano ativado! 💎",
        "Seu plano {plan_name} está ativo até {end_date}.",
    ),
    "subscription_cancelled": (
        "Assinatura cancelada",
        "Sua assinatura do plano {plan_name} foi cancelada e não será renovada.",
    ),
    "subscription_expired": (
        "Assinatura expirada",
        "Sua assinatura do plano {plan_name} expirou. Renove para continuar usando os recursos.",
    ),
}


def _render_value(key: str, value: Any) -> Any:
    if isinstance(value, Decimal):
        return format_brl(value)
    if key == "payment_method":
        return PAYMENT_METHOD_LABELS.get(value, value)
    if key == "status":
        return STATUS_LABELS.get(value, value)
    return value


def _json_safe(data: dict[str, Any]) -> dict[str, Any]:
    return {k: (str(v) if isinstance(v, Decimal) else v) for k, v in data.items()}


def create_notification(db: Session, account_id: int, type: str, data: dict[str, Any] | None = None) -> Notification:
    """Şablondan bildirim oluşturur ve commit eder. Bilinmeyen tip ValueError."""
    if type not in NOTIFICATION_TEMPLATES:
        raise ValueError(f"Bilinmeyen bildirim tipi: {type}")
    data = data or {}
    title, template = NOTIFICATION_TEMPLATES[type]
    fields = {k: _render_value(k, v) for k, v in data.items()}
    try:
        message = template.format(**fields)
    except KeyError as e:
        logger.warning("Notification template %s missing field %s", type, e)
        message = template.split("{", 1)[0].strip()
    notification = Notification(
        account_id=account_id,
        type=type,
        title=title,
        message=message,
        data=_json_safe(data),
    )
    with store_errors("criar notificação"):
        db.add(notification)
        db.commit()
        db.refresh(notification)
    return notification
