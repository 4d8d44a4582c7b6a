"""
PagSeguro istemcisi: PIX, kredi kartı, boleto oluşturma; işlem detayı, bildirim (webhook) çözümü, iptal.

- Açıkça kurulur ve enjekte edilir (get_gateway); testlerde sahte gateway veya sahte opener verilir.
- Tutarlar sadece burada centavoya çevrilir (app/services/money.py).
- İş reddi (kart reddedildi vb.) GatewayResult(success=False) olarak döner; timeout, bozuk yanıt
  ve 5xx GatewayTransportError olarak fırlatılır.
"""
import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, NamedTuple
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request as UrlRequest
from urllib.request import urlopen

from app.core.errors import GatewayTransportError
from app.schemas.pagseguro import (
    BoletoPaymentRequest,
    CardPaymentRequest,
    CheckoutRequest,
    GatewayError,
    GatewayResult,
    GatewayTransaction,
    PixPaymentRequest,
)
from app.services.money import installment_value, to_minor_units
from app.services.status import status_text
from app.services.validation import require_fields

logger = logging.getLogger(__name__)

PAGSEGURO_URLS = {
    "sandbox": {
        "api": "https://ws.sandbox.pagseguro.uol.com.br",
        "payment": "https://sandbox.pagseguro.uol.com.br",
    },
    "production": {
        "api": "https://ws.pagseguro.uol.com.br",
        "payment": "https://pagseguro.uol.com.br",
    },
}
DEFAULT_CURRENCY = "BRL"
REQUEST_TIMEOUT = 30.0


class PagSeguroCredentials(NamedTuple):
    email: str
    token: str


class PagSeguroClient:
    def __init__(
        self,
        credentials: PagSeguroCredentials,
        environment: str = "sandbox",
        timeout: float = REQUEST_TIMEOUT,
        opener: Callable = urlopen,
    ):
        if environment not in PAGSEGURO_URLS:
            raise ValueError(f"Bilinmeyen PagSeguro ortamı: {environment}")
        self.credentials = credentials
        self.environment = environment
        self.timeout = timeout
        self._opener = opener

    @property
    def api_url(self) -> str:
        return PAGSEGURO_URLS[self.environment]["api"]

    def payment_url(self, code: str) -> str:
        return f"{PAGSEGURO_URLS[self.environment]['payment']}/checkout/payment.html?code={quote(code)}"

    # ---------- Oluşturma ----------

    def create_pix_payment(self, request: PixPaymentRequest) -> GatewayResult:
        result = self._checkout(request, self._checkout_form(request))
        if not result.success or not result.code:
            return result
        # Oluşturma yanıtı QR içermez; detaydan çekilir. Kod zaten verildiği için burada hata başarısızlık sayılmaz.
        try:
            details = self.get_transaction_details(result.code)
        except GatewayTransportError as e:
            logger.warning("PagSeguro PIX payload fetch failed: code=%s error=%s", result.code, e)
            return result
        result.qr_code = details.qr_code
        result.qr_code_text = details.qr_code_text
        return result

    def create_credit_card_payment(self, request: CardPaymentRequest) -> GatewayResult:
        card = request.card
        require_fields(
            {
                "card.token": card.token,
                "card.holder.name": card.holder.name,
                "card.holder.cpf": card.holder.cpf,
                "card.holder.birth_date": card.holder.birth_date,
            }
        )
        form = self._checkout_form(request)
        phone = request.customer.phone
        total_minor = to_minor_units(request.total())
        form.update(
            {
                "creditCardToken": card.token,
                "creditCardHolderName": card.holder.name,
                "creditCardHolderCPF": card.holder.cpf,
                "creditCardHolderBirthDate": card.holder.birth_date,
                "creditCardHolderAreaCode": phone.area_code if phone else None,
                "creditCardHolderPhone": phone.number if phone else None,
                "creditCardInstallmentQuantity": request.installments,
                "creditCardInstallmentValue": installment_value(total_minor, request.installments),
            }
        )
        return self._checkout(request, form)

    def create_boleto_payment(self, request: BoletoPaymentRequest) -> GatewayResult:
        result = self._checkout(request, self._checkout_form(request))
        if result.success:
            result.boleto_url = result.payment_url
        return result

    # ---------- Sorgu / webhook / iptal ----------

    def get_transaction_details(self, transaction_code: str) -> GatewayTransaction:
        require_fields({"transaction_code": transaction_code})
        status, body = self._request("GET", f"/v3/transactions/{quote(transaction_code)}", query=self._auth())
        if status >= 400:
            raise GatewayTransportError(f"Falha ao obter detalhes da transação: HTTP {status}", status_code=status)
        return _parse_transaction(body)

    def process_webhook(self, notification_code: str) -> GatewayTransaction:
        """Bildirim sadece işaretçidir: koddan işlemi bulup yetkili detayı yeniden çeker."""
        require_fields({"notification_code": notification_code})
        status, body = self._request(
            "GET", f"/v3/transactions/notifications/{quote(notification_code)}", query=self._auth()
        )
        if status >= 400:
            raise GatewayTransportError(f"Falha ao processar webhook: HTTP {status}", status_code=status)
        transaction = body.get("transaction")
        if not isinstance(transaction, dict) or not transaction.get("code"):
            raise GatewayTransportError("Formato de notificação inválido")
        return self.get_transaction_details(str(transaction["code"]))

    def cancel_transaction(self, transaction_code: str) -> bool:
        require_fields({"transaction_code": transaction_code})
        status, body = self._request("PUT", f"/v3/transactions/{quote(transaction_code)}/cancel", form=self._auth())
        if status >= 400:
            err = _error_from_body(status, body)
            logger.warning("PagSeguro cancel rejected: code=%s error=%s %s", transaction_code, err.code, err.message)
            return False
        return status == 200

    # ---------- Wire ----------

    def _auth(self) -> dict:
        return {"email": self.credentials.email, "token": self.credentials.token}

    def _checkout(self, request: CheckoutRequest, form: dict) -> GatewayResult:
        status, body = self._request("POST", "/v2/checkout", form=form)
        if status >= 400 or body.get("error") or body.get("errors"):
            err = _error_from_body(status, body)
            logger.warning(
                "PagSeguro checkout rejected: reference=%s method=%s error=%s %s",
                request.reference,
                request.wire_method,
                err.code,
                err.message,
            )
            return GatewayResult.failure(err.code, err.message)
        code = body.get("code")
        if not code:
            raise GatewayTransportError("Resposta do PagSeguro sem código de transação")
        code = str(code)
        return GatewayResult(
            success=True,
            code=code,
            transaction_id=code,
            payment_url=self.payment_url(code),
            status="pending",
        )

    def _checkout_form(self, request: CheckoutRequest) -> dict:
        """Tipli isteği PagSeguro'nun düz anahtar-değer sözleşmesine çevirir."""
        c = request.customer
        require_fields(
            {
                "reference": request.reference,
                "customer.name": c.name,
                "customer.email": c.email,
                "items": request.items,
            }
        )
        phone = c.phone
        addr = c.address
        form = {
            "email": self.credentials.email,
            "token": self.credentials.token,
            "paymentMode": "default",
            "paymentMethod": request.wire_method,
            "receiverEmail": self.credentials.email,
            "currency": DEFAULT_CURRENCY,
            "reference": request.reference,
            "senderName": c.name,
            "senderEmail": str(c.email),
            "senderCPF": c.cpf,
            "senderCNPJ": c.cnpj,
            "senderAreaCode": phone.area_code if phone else None,
            "senderPhone": phone.number if phone else None,
            "senderAddressStreet": addr.street if addr else None,
            "senderAddressNumber": addr.number if addr else None,
            "senderAddressComplement": addr.complement if addr else None,
            "senderAddressDistrict": addr.district if addr else None,
            "senderAddressCity": addr.city if addr else None,
            "senderAddressState": addr.state if addr else None,
            "senderAddressCountry": addr.country if addr else None,
            "senderAddressPostalCode": addr.postal_code if addr else None,
            "notificationURL": request.notification_url,
            "extraAmount": to_minor_units(request.extra_amount) if request.extra_amount is not None else None,
        }
        for index, item in enumerate(request.items, start=1):
            prefix = f"item{index}"
            form[f"{prefix}Id"] = item.id
            form[f"{prefix}Description"] = item.description
            form[f"{prefix}Amount"] = to_minor_units(item.amount)
            form[f"{prefix}Quantity"] = item.quantity
            if item.weight:
                form[f"{prefix}Weight"] = item.weight
        form["itemCount"] = len(request.items)
        return form

    def _request(self, method: str, path: str, *, query: dict | None = None, form: dict | None = None) -> tuple[int, dict]:
        """
        Tek ağ noktası. (HTTP durum, JSON gövde) döner; 4xx gövdesi iş hatası olarak çağırana bırakılır.
        Timeout/bağlantı hatası, 5xx ve 2xx'te JSON olmayan gövde GatewayTransportError.
        """
        url = f"{self.api_url}{path}"
        if query:
            url += "?" + urlencode(query)
        data = None
        if form is not None:
            data = urlencode({k: str(v) for k, v in form.items() if v is not None}).encode()
        req = UrlRequest(
            url,
            data=data,
            method=method,
            headers={
                "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
                "Accept": "application/json",
            },
        )
        try:
            with self._opener(req, timeout=self.timeout) as resp:
                status = getattr(resp, "status", 200)
                raw = resp.read()
        except HTTPError as e:
            status = e.code
            logger.info("PagSeguro %s %s -> %s", method, path, status)
            if status >= 500:
                raise GatewayTransportError(f"PagSeguro indisponível: HTTP {status}", status_code=status) from e
            return status, _parse_json(e.read() or b"", strict=False)
        except (URLError, TimeoutError, OSError) as e:
            logger.error("PagSeguro %s %s failed: %s", method, path, e)
            raise GatewayTransportError(f"Erro de conexão com PagSeguro: {str(e)[:120]}") from e
        logger.info("PagSeguro %s %s -> %s", method, path, status)
        return status, _parse_json(raw, strict=True)


def _parse_json(raw: bytes, strict: bool) -> dict:
    try:
        body = json.loads(raw.decode("utf-8")) if raw else {}
    except (UnicodeDecodeError, ValueError) as e:
        if strict:
            raise GatewayTransportError("Resposta inválida do PagSeguro (JSON esperado)") from e
        return {}
    if not isinstance(body, dict):
        if strict:
            raise GatewayTransportError("Resposta inválida do PagSeguro (objeto esperado)")
        return {}
    return body


def _error_from_body(status: int, body: dict) -> GatewayError:
    """{error:{code,message}} veya PagSeguro'nun {errors:[{code,message}]} / {errors:{code: message}} biçimleri."""
    error = body.get("error")
    if isinstance(error, dict):
        return GatewayError(
            code=str(error.get("code") or "UNKNOWN_ERROR"),
            message=str(error.get("message") or "Erro desconhecido"),
        )
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        first = errors[0]
        return GatewayError(
            code=str(first.get("code") or "UNKNOWN_ERROR"),
            message=str(first.get("message") or "Erro desconhecido"),
        )
    if isinstance(errors, dict) and errors:
        code, message = next(iter(errors.items()))
        return GatewayError(code=str(code), message=str(message))
    if isinstance(error, str) and error:
        return GatewayError(code=f"HTTP_{status}", message=error)
    return GatewayError(code=f"HTTP_{status}", message="Erro desconhecido")


def _decimal_or_none(value) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _int_or_none(value) -> int | None:
    try:
        return int(value) if value is not None and value != "" else None
    except (TypeError, ValueError):
        return None


def _parse_transaction(body: dict) -> GatewayTransaction:
    """Detay yanıtını normalize eder; PIX dışındaki işlemlerde qrCode alanları yoktur."""
    code = body.get("code")
    status = _int_or_none(body.get("status"))
    if not code or status is None:
        raise GatewayTransportError("Resposta de transação inválida do PagSeguro")
    method = body.get("paymentMethod") if isinstance(body.get("paymentMethod"), dict) else {}
    return GatewayTransaction(
        code=str(code),
        reference=body.get("reference"),
        status=status,
        status_text=status_text(status),
        payment_method_type=_int_or_none(method.get("type")),
        payment_method_code=_int_or_none(method.get("code")),
        gross_amount=_decimal_or_none(body.get("grossAmount")),
        discount_amount=_decimal_or_none(body.get("discountAmount")),
        fee_amount=_decimal_or_none(body.get("feeAmount")),
        net_amount=_decimal_or_none(body.get("netAmount")),
        extra_amount=_decimal_or_none(body.get("extraAmount")),
        installment_count=_int_or_none(body.get("installmentCount")),
        item_count=_int_or_none(body.get("itemCount")),
        date=body.get("date"),
        last_event_date=body.get("lastEventDate"),
        payment_link=body.get("paymentLink"),
        qr_code=body.get("qrCode"),
        qr_code_text=body.get("qrCodeText"),
    )
