"""Pytest fixtures: in-memory SQLite, sahte PagSeguro gateway'i, örnek plan/hesap, test client."""
import os
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

# Test ortamında in-memory SQLite (app import edilmeden önce set edilmeli)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PAGSEGURO_EMAIL", "vendas@frete.com.br")
os.environ.setdefault("PAGSEGURO_TOKEN", "test-token")
os.environ.setdefault("ADMIN_SECRET", "admin-test-secret")
# Rate limit yüksek olsun ki tüm testler geçebilsin
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "1000")
os.environ.setdefault("RATE_LIMIT_PAYMENT_PER_MINUTE", "1000")

from sqlmodel import Session, SQLModel

from app.api.deps import get_gateway
from app.core.database import engine, init_db
from app.core.errors import GatewayTransportError
from app.core.security import create_access_token
from app.main import app
from app.models import Account, Plan
from app.schemas.pagseguro import CardData, CardHolder, Customer, GatewayResult, GatewayTransaction, Phone
from app.services.status import status_text


class FakeGateway:
    """PagSeguroClient yerine: checkout sonucu ve bildirim -> (kod, durum) eşlemesi testten ayarlanır."""

    def __init__(self):
        self.checkout_result = GatewayResult(
            success=True,
            code="ABC123",
            transaction_id="ABC123",
            payment_url="https://sandbox.pagseguro.uol.com.br/checkout/payment.html?code=ABC123",
            status="pending",
        )
        self.qr_code = "data:image/png;base64,iVBORw0KGgo="
        self.qr_code_text = "00020126580014br.gov.bcb.pix"
        self.notifications: dict[str, tuple[str, int]] = {}
        self.gross_amount: Decimal | None = None
        self.transport_error = False
        self.requests = []
        self.cancelled = []

    def notify(self, notification_code: str, transaction_code: str, status: int) -> None:
        self.notifications[notification_code] = (transaction_code, status)

    def _result(self, **extra) -> GatewayResult:
        if self.transport_error:
            raise GatewayTransportError("PagSeguro indisponível: HTTP 503", status_code=503)
        result = self.checkout_result.model_copy()
        if result.success:
            result = result.model_copy(update=extra)
        return result

    def create_pix_payment(self, request):
        self.requests.append(request)
        return self._result(qr_code=self.qr_code, qr_code_text=self.qr_code_text)

    def create_credit_card_payment(self, request):
        self.requests.append(request)
        return self._result()

    def create_boleto_payment(self, request):
        self.requests.append(request)
        return self._result(boleto_url=self.checkout_result.payment_url)

    def process_webhook(self, notification_code):
        if self.transport_error:
            raise GatewayTransportError("Erro de conexão com PagSeguro: timed out")
        code, status = self.notifications[notification_code]
        return GatewayTransaction(code=code, status=status, status_text=status_text(status), gross_amount=self.gross_amount)

    def get_transaction_details(self, transaction_code):
        if self.transport_error:
            raise GatewayTransportError("Erro de conexão com PagSeguro: timed out")
        return GatewayTransaction(
            code=transaction_code,
            status=1,
            status_text=status_text(1),
            qr_code=self.qr_code,
            qr_code_text=self.qr_code_text,
        )

    def cancel_transaction(self, transaction_code):
        self.cancelled.append(transaction_code)
        return True


@pytest.fixture
def db():
    """Her test temiz tablolarla başlar."""
    SQLModel.metadata.drop_all(engine)
    init_db()
    with Session(engine) as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def plan(db):
    p = Plan(
        id="driver_monthly",
        name="Motorista Mensal",
        description="Acesso a todas as cargas",
        duration_days=30,
        price_pix=Decimal("49.90"),
        price_card=Decimal("54.90"),
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


@pytest.fixture
def account(db):
    a = Account(email="motorista@frete.com.br", name="Carlos Motorista")
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


@pytest.fixture
def other_account(db):
    a = Account(email="empresa@frete.com.br", name="Transportes Silva", user_type="company")
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


@pytest.fixture
def customer():
    return Customer(
        name="Carlos Motorista",
        email="motorista@frete.com.br",
        cpf="12345678909",
        phone=Phone(area_code="11", number="987654321"),
    )


@pytest.fixture
def card():
    return CardData(
        token="tok_4f1c2e",
        brand="visa",
        last_digits="1111",
        holder=CardHolder(name="Carlos Motorista", birth_date="15/03/1985", cpf="12345678909"),
    )


@pytest.fixture
def client(db, gateway):
    """TestClient; lifespan ile tablolar hazır, gateway sahtesiyle değiştirilmiş."""
    app.dependency_overrides[get_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(account):
    """Örnek hesabın Bearer token'ı."""
    token = create_access_token({"sub": str(account.id)})
    return {"Authorization": f"Bearer {token}"}
