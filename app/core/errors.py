"""Ödeme / abonelik hata sınıfları. Gateway'in iş reddi (kart reddedildi vb.) burada değil: veri olarak döner."""


class BillingError(Exception):
    """Uygulama hatalarının tabanı."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(BillingError):
    """Zorunlu alan eksik/geçersiz; hiçbir ağ çağrısından önce fırlatılır."""


class NotFound(BillingError):
    """Plan, hesap, işlem veya abonelik bulunamadı."""


class PermissionDenied(BillingError):
    """Abonelik isteyen hesaba ait değil."""


class GatewayTransportError(BillingError):
    """Timeout, bozuk yanıt veya 5xx: altyapı sorunu, kullanıcı girdisi değil."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class RecordStoreError(BillingError):
    """Beklenmeyen veritabanı hatası; işlem bağlamıyla sarılıp yeniden fırlatılır."""

    def __init__(self, context: str):
        self.context = context
        super().__init__(f"Falha em {context}")
