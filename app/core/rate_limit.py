"""
Rate limiting (SlowAPI). Genel uçlar istemci IP'sine, ödeme oluşturma uçları ise oturumdaki hesaba
göre sayılır; aynı NAT arkasındaki farklı hesaplar birbirinin kotasını tüketmez.
"""
from fastapi import Request
from slowapi import Limiter

from .config import settings
from .security import decode_access_token

DEFAULT_LIMIT = f"{settings.rate_limit_per_minute}/minute"
PAYMENT_LIMIT = f"{settings.rate_limit_payment_per_minute}/minute"


def client_ip(request: Request) -> str:
    """Proxy arkasında gerçek istemci IP (X-Forwarded-For ilk değer)."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


def account_or_ip(request: Request) -> str:
    auth = request.headers.get("authorization") or ""
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token:
        payload = decode_access_token(token.strip())
        if payload and payload.get("sub"):
            return f"account:{payload['sub']}"
    return f"ip:{client_ip(request)}"


limiter = Limiter(key_func=client_ip)
