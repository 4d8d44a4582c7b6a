"""HTTP yüzeyi: ödeme, webhook ve admin uçları."""
from sqlmodel import select

from app.core.security import create_access_token
from app.models import PaymentTransaction, Subscription
from app.schemas.pagseguro import GatewayResult
from app.services import subscription as subscription_service

ADMIN = {"X-Admin-Secret": "admin-test-secret"}


def _customer_json():
    return {
        "name": "Carlos Motorista",
        "email": "motorista@frete.com.br",
        "cpf": "12345678909",
        "phone": {"area_code": "11", "number": "987654321"},
    }


def _card_json():
    return {
        "token": "tok_4f1c2e",
        "brand": "visa",
        "last_digits": "1111",
        "holder": {"name": "Carlos Motorista", "birth_date": "15/03/1985", "cpf": "12345678909"},
    }


def test_create_pix(client, plan, auth_headers, db):
    r = client.post("/payment/pix", json={"plan_id": plan.id, "customer": _customer_json()}, headers=auth_headers)
    assert r.status_code == 200, r.text
    j = r.json()
    assert j["success"] is True
    assert j["code"] == "ABC123"
    assert j["qr_code_text"]
    assert j["transaction_id"]
    assert r.headers.get("X-Request-ID")


def test_create_pix_requires_login(client, plan):
    r = client.post("/payment/pix", json={"plan_id": plan.id, "customer": _customer_json()})
    assert r.status_code == 401
    assert r.json()["status_code"] == 401


def test_blocked_account_forbidden(client, plan, account, auth_headers, db):
    account.is_blocked = True
    db.add(account)
    db.commit()
    r = client.post("/payment/pix", json={"plan_id": plan.id, "customer": _customer_json()}, headers=auth_headers)
    assert r.status_code == 403


def test_create_card(client, plan, auth_headers):
    body = {"plan_id": plan.id, "customer": _customer_json(), "card": _card_json(), "installments": 2}
    r = client.post("/payment/card", json=body, headers=auth_headers)
    assert r.status_code == 200, r.text
    assert r.json()["success"] is True


def test_card_installments_validated(client, plan, auth_headers):
    body = {"plan_id": plan.id, "customer": _customer_json(), "card": _card_json(), "installments": 0}
    r = client.post("/payment/card", json=body, headers=auth_headers)
    assert r.status_code == 422
    assert "installments" in r.json()["error"]


def test_create_boleto(client, plan, auth_headers):
    r = client.post("/payment/boleto", json={"plan_id": plan.id, "customer": _customer_json()}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["boleto_url"]


def test_gateway_rejection_returns_400(client, gateway, plan, auth_headers, db):
    gateway.checkout_result = GatewayResult.failure("CARD_DECLINED", "Cartão recusado")
    r = client.post("/payment/pix", json={"plan_id": plan.id, "customer": _customer_json()}, headers=auth_headers)
    assert r.status_code == 400
    j = r.json()
    assert j["success"] is False
    assert j["error"]["message"] == "Cartão recusado"
    assert db.exec(select(PaymentTransaction)).all() == []


def test_gateway_unavailable_returns_502(client, gateway, plan, auth_headers):
    gateway.transport_error = True
    r = client.post("/payment/pix", json={"plan_id": plan.id, "customer": _customer_json()}, headers=auth_headers)
    assert r.status_code == 502
    assert "PagSeguro" in r.json()["error"]


def test_unknown_plan_returns_404(client, auth_headers):
    r = client.post("/payment/pix", json={"plan_id": "ghost", "customer": _customer_json()}, headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Plano não encontrado"


def test_webhook_flow_activates_plan(client, gateway, plan, account, auth_headers, db):
    client.post("/payment/pix", json={"plan_id": plan.id, "customer": _customer_json()}, headers=auth_headers)
    gateway.notify("NOTIF-1", "ABC123", 3)

    r = client.post("/api/webhooks/pagseguro", data={"notificationCode": "NOTIF-1", "notificationType": "transaction"})
    assert r.status_code == 200
    assert r.json() == {"success": True}

    txs = client.get("/payment/transactions", headers=auth_headers).json()
    assert [t["status"] for t in txs] == ["paid"]
    sub = client.get("/payment/subscription", headers=auth_headers).json()
    assert sub["status"] == "active"
    assert sub["plan_id"] == plan.id


def test_webhook_code_in_query(client, gateway, plan, auth_headers):
    client.post("/payment/pix", json={"plan_id": plan.id, "customer": _customer_json()}, headers=auth_headers)
    gateway.notify("NOTIF-2", "ABC123", 7)
    r = client.post("/api/webhooks/pagseguro?notificationCode=NOTIF-2")
    assert r.status_code == 200
    txs = client.get("/payment/transactions", headers=auth_headers).json()
    assert txs[0]["status"] == "cancelled"


def test_webhook_without_code(client):
    r = client.post("/api/webhooks/pagseguro", data={})
    assert r.status_code == 400


def test_webhook_gateway_failure_is_5xx(client, gateway):
    gateway.transport_error = True
    r = client.post("/api/webhooks/pagseguro", data={"notificationCode": "NOTIF-1"})
    assert r.status_code == 502


def test_webhook_check(client):
    r = client.get("/api/webhooks/pagseguro")
    assert r.status_code == 200
    assert "timestamp" in r.json()


def test_subscription_empty(client, auth_headers):
    r = client.get("/payment/subscription", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() is None


def test_cancel_subscription_endpoint(client, plan, account, other_account, auth_headers, db):
    sub = subscription_service.activate_plan(db, account.id, plan.id, plan.name, 1)
    other_headers = {"Authorization": f"Bearer {create_access_token({'sub': str(other_account.id)})}"}

    r = client.post(f"/payment/subscription/{sub.id}/cancel", headers=other_headers)
    assert r.status_code == 403
    assert r.json()["error"] == "Usuário não autorizado"

    r = client.post(f"/payment/subscription/{sub.id}/cancel", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"


def test_admin_requires_secret(client):
    assert client.post("/admin/subscriptions/expire").status_code == 403
    assert client.post("/admin/subscriptions/expire", headers={"X-Admin-Secret": "wrong"}).status_code == 403


def test_admin_expire_sweep(client, db):
    r = client.post("/admin/subscriptions/expire", headers=ADMIN)
    assert r.status_code == 200
    assert r.json() == {"expired": 0}
    assert db.exec(select(Subscription)).all() == []


def test_admin_payments_and_cancel(client, gateway, plan, auth_headers):
    client.post("/payment/pix", json={"plan_id": plan.id, "customer": _customer_json()}, headers=auth_headers)
    r = client.get("/admin/payments", params={"status": "pending"}, headers=ADMIN)
    assert r.status_code == 200
    assert [t["pagseguro_code"] for t in r.json()] == ["ABC123"]
    assert client.get("/admin/payments", params={"status": "paid"}, headers=ADMIN).json() == []

    r = client.post("/admin/payments/ABC123/cancel", headers=ADMIN)
    assert r.json() == {"ok": True}
    assert gateway.cancelled == ["ABC123"]


def test_refresh_pix_endpoint(client, gateway, plan, auth_headers):
    real_qr = gateway.qr_code
    gateway.qr_code = None
    created = client.post("/payment/pix", json={"plan_id": plan.id, "customer": _customer_json()}, headers=auth_headers)
    tx_id = created.json()["transaction_id"]
    assert created.json()["qr_code"] is None

    gateway.qr_code = real_qr
    r = client.post(f"/payment/transactions/{tx_id}/pix", headers=auth_headers)
    assert r.status_code == 200, r.text
    assert r.json()["qr_code"] == real_qr
    assert r.json()["status"] == "pending"
