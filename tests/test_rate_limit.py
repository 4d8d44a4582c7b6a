"""Rate limit anahtarları: ödeme uçları hesaba, diğerleri IP'ye göre."""
from starlette.requests import Request

from app.core.rate_limit import account_or_ip, client_ip
from app.core.security import create_access_token


def _request(headers: dict, host: str = "10.0.0.5") -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/payment/pix",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": (host, 50000),
    }
    return Request(scope)


def test_client_ip_prefers_forwarded_for():
    assert client_ip(_request({"X-Forwarded-For": "200.1.2.3, 10.0.0.1"})) == "200.1.2.3"
    assert client_ip(_request({})) == "10.0.0.5"


def test_payment_key_uses_account_from_token():
    token = create_access_token({"sub": "42"})
    assert account_or_ip(_request({"Authorization": f"Bearer {token}"})) == "account:42"


def test_payment_key_falls_back_to_ip():
    assert account_or_ip(_request({})) == "ip:10.0.0.5"
    assert account_or_ip(_request({"Authorization": "Bearer not-a-jwt"})) == "ip:10.0.0.5"
