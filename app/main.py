import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from app.api.admin import router as admin_router
from app.api.payment import router as payment_router
from app.api.webhooks import router as webhooks_router
from app.core.config import is_pagseguro_configured, settings
from app.core.database import engine, init_db
from app.core.errors import (
    BillingError,
    GatewayTransportError,
    NotFound,
    PermissionDenied,
    RecordStoreError,
    ValidationError,
)
from app.core.rate_limit import limiter
from app.logging import setup_logging

setup_logging(level=settings.log_level)
log = logging.getLogger("frete")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info(
        "PagSeguro configured: %s (environment=%s)",
        "yes" if is_pagseguro_configured() else "NO (.env: PAGSEGURO_EMAIL / PAGSEGURO_TOKEN)",
        settings.pagseguro_environment,
    )
    yield


app = FastAPI(
    title="Frete Billing API",
    description="Pagamentos PagSeguro (PIX, cartão, boleto) e assinaturas de planos",
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": detail, "status_code": status_code}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    log.warning("Rate limit exceeded: path=%s detail=%s", request.url.path, exc.detail)
    return _error_response(request, 429, "Muitas requisições. Aguarde um minuto e tente novamente.")


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)

# Alan hatası kullanıcıya gösterilebilir; gateway/DB hataları genel mesajla
_BILLING_STATUS = {
    ValidationError: 400,
    PermissionDenied: 403,
    NotFound: 404,
    GatewayTransportError: 502,
}


@app.exception_handler(BillingError)
def billing_exception_handler(request: Request, exc: BillingError) -> JSONResponse:
    status_code = next((code for cls, code in _BILLING_STATUS.items() if isinstance(exc, cls)), 500)
    if isinstance(exc, GatewayTransportError):
        log.error("Gateway transport error: path=%s %s", request.url.path, exc.message)
        return _error_response(request, status_code, "Falha de comunicação com o PagSeguro. Tente novamente.")
    if isinstance(exc, RecordStoreError) or status_code == 500:
        log.error("Record store error: path=%s context=%s", request.url.path, exc.message, exc_info=exc)
        return _error_response(request, 500, "Erro inesperado no servidor.")
    return _error_response(request, status_code, exc.message)


def _jsonable_errors(errs: list) -> list:
    # ctx içinde exception nesneleri olabilir
    return [{k: v for k, v in e.items() if k in ("loc", "msg", "type")} for e in errs]


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.info("Request validation error (422): path=%s detail=%s", request.url.path, errs)
    first = errs[0] if errs else {}
    loc = ".".join(str(p) for p in (first.get("loc") or []) if p != "body")
    user_msg = f"{loc}: {first.get('msg')}" if loc else (first.get("msg") or "Requisição inválida.")
    rid = getattr(request.state, "request_id", None)
    body = {"error": user_msg, "status_code": 422, "detail": _jsonable_errors(errs)}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=422, content=body)


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Erro inesperado no servidor."})


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(payment_router)
app.include_router(webhooks_router)
app.include_router(admin_router)


@app.get("/health")
def health():
    db_status = "ok"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        log.warning("Health DB check failed: %s", e)
        db_status = "error"
    return {
        "status": "ok",
        "pagseguro_configured": is_pagseguro_configured(),
        "pagseguro_environment": settings.pagseguro_environment,
        "database": db_status,
    }
