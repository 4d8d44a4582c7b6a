"""PagSeguro bildirim URL'si. Gövde sadece notificationCode taşır; durum her zaman gateway'den çekilir."""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlmodel import Session

from app.api.deps import get_gateway
from app.core.clock import utcnow
from app.core.database import get_db
from app.core.errors import BillingError
from app.services.pagseguro import PagSeguroClient
from app.services.webhook import process_pagseguro_webhook

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/pagseguro")
async def pagseguro_webhook(
    request: Request,
    db: Session = Depends(get_db),
    gateway: PagSeguroClient = Depends(get_gateway),
):
    """PagSeguro notificationCode'u form gövdesinde (bazen query'de) gönderir."""
    form = await request.form()
    notification_code = (form.get("notificationCode") or request.query_params.get("notificationCode") or "").strip()
    notification_type = form.get("notificationType") or request.query_params.get("notificationType") or ""
    log.info("PagSeguro webhook received: type=%s code=%s", notification_type, notification_code[:64])
    if not notification_code:
        return JSONResponse(status_code=400, content={"error": "notificationCode não fornecido"})
    try:
        await run_in_threadpool(process_pagseguro_webhook, db, gateway, notification_code)
    except BillingError:
        # 5xx döner; PagSeguro kendi tekrar politikasıyla yeniden gönderir, işlem idempotent
        log.exception("PagSeguro webhook failed: code=%s", notification_code[:64])
        raise
    return {"success": True}


@router.get("/pagseguro")
def pagseguro_webhook_check():
    """Bağlantı testi."""
    return {"message": "Webhook PagSeguro funcionando", "timestamp": utcnow().isoformat()}
