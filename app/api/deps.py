import hmac

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from app.core.config import is_pagseguro_configured, settings
from app.core.database import get_db
from app.core.security import decode_access_token
from app.models import Account
from app.services.pagseguro import PagSeguroClient, PagSeguroCredentials

security = HTTPBearer(auto_error=False)


def get_current_account_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> int:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="É necessário fazer login.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido ou expirado.",
        )
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido ou expirado.")


def get_current_account(
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
) -> Account:
    account = db.get(Account, account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")
    if account.is_blocked:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sua conta está bloqueada. Entre em contato com o suporte.",
        )
    return account


def get_gateway() -> PagSeguroClient:
    """Ayarlardan açıkça kurulan istemci; testlerde app.dependency_overrides ile sahtesi verilir."""
    if not is_pagseguro_configured():
        raise HTTPException(status_code=503, detail="Pagamentos indisponíveis no momento. Verifique a configuração do PagSeguro.")
    return PagSeguroClient(
        PagSeguroCredentials(email=settings.pagseguro_email, token=settings.pagseguro_token),
        environment=settings.pagseguro_environment,
        timeout=settings.pagseguro_timeout_seconds,
    )


def _constant_time_compare(provided: str | None, expected: str | None) -> bool:
    return hmac.compare_digest((provided or "").encode("utf-8"), (expected or "").encode("utf-8"))


def require_admin(x_admin_secret: str | None = Header(None, alias="X-Admin-Secret")) -> None:
    expected = (settings.admin_secret or "").strip()
    if not expected:
        raise HTTPException(status_code=503, detail="Admin não configurado (ADMIN_SECRET ausente).")
    if not _constant_time_compare(x_admin_secret, expected):
        raise HTTPException(status_code=403, detail="Não autorizado.")
