from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env proje kökünde: app/core/config.py -> app/core -> app -> kök
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"

PAGSEGURO_ENVIRONMENTS = ("sandbox", "production")


class Settings(BaseSettings):
    secret_key: str = "change-me-in-production"
    database_url: str = "sqlite:///./frete_billing.db"
    # Her DB bağlantısı için üst sınır (SQLite busy timeout, PostgreSQL connect + statement timeout)
    database_timeout_seconds: int = 10
    # CORS: virgülle ayrılmış origin listesi
    cors_origins: str = "*"
    # IP başına dakikada max istek (rate limit)
    rate_limit_per_minute: int = 60
    # Ödeme oluşturma endpoint'leri için ayrı limit (testte yüksek tutulabilir)
    rate_limit_payment_per_minute: int = 10
    # PagSeguro: önce ödeme oluşturulur, bildirim (notificationCode) ile durum çekilir
    pagseguro_email: str = ""
    pagseguro_token: str = ""
    pagseguro_environment: str = "sandbox"   # sandbox | production
    pagseguro_timeout_seconds: float = 30.0
    # Uygulamanın dış adresi; notificationURL = app_url + /api/webhooks/pagseguro
    app_url: str = "http://127.0.0.1:8000"
    admin_secret: str = ""             # /admin/* için X-Admin-Secret
    environment: str = "development"
    log_level: str = "INFO"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("pagseguro_email", "pagseguro_token", mode="before")
    @classmethod
    def strip_credentials(cls, v: str | None) -> str:
        """Boşluk/yanlış kopya kaynaklı hataları azaltır."""
        return (v or "").strip()

    @field_validator("pagseguro_environment", mode="before")
    @classmethod
    def normalize_environment(cls, v: str | None) -> str:
        env = (v or "sandbox").strip().lower()
        if env not in PAGSEGURO_ENVIRONMENTS:
            raise ValueError("PAGSEGURO_ENVIRONMENT sandbox veya production olmalı.")
        return env

    @field_validator("app_url", mode="before")
    @classmethod
    def strip_app_url(cls, v: str | None) -> str:
        return (v or "").strip().rstrip("/")


settings = Settings()


def is_pagseguro_configured() -> bool:
    """PagSeguro e-posta ve token tanımlı mı?"""
    return bool(settings.pagseguro_email and settings.pagseguro_token)


def notification_url() -> str:
    """PagSeguro'nun bildirim POST'u yapacağı adres."""
    return f"{settings.app_url}/api/webhooks/pagseguro"
