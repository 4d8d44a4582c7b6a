import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import settings
from .errors import RecordStoreError

log = logging.getLogger(__name__)


def _normalized_database_url(raw_url: str) -> str:
    """
    DATABASE_URL normalizasyonu:
    - postgres:// veya postgresql:// ise psycopg3 dialekti ile çalışacak şekilde dönüştür.
    - Diğer tüm durumlarda olduğu gibi bırak (SQLite vs.).
    """
    if not raw_url:
        return "sqlite:///./frete_billing.db"
    raw_url = raw_url.strip()
    if raw_url.startswith("postgres://"):
        return "postgresql+psycopg://" + raw_url[len("postgres://") :]
    if raw_url.startswith("postgresql://") and "+psycopg" not in raw_url.split("://", 1)[0]:
        return "postgresql+psycopg://" + raw_url[len("postgresql://") :]
    return raw_url


def _connect_args(url: str, timeout: int) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": timeout}
    if url.startswith("postgresql"):
        return {"connect_timeout": timeout, "options": f"-c statement_timeout={timeout * 1000}"}
    return {}


DATABASE_URL = _normalized_database_url(settings.database_url)

# In-memory SQLite: tek bağlantı kullan ki init_db tabloları tüm isteklerde görünsün (testler için)
_use_static_pool = DATABASE_URL.startswith("sqlite") and ":memory:" in DATABASE_URL
engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args(DATABASE_URL, settings.database_timeout_seconds),
    poolclass=StaticPool if _use_static_pool else None,
)


def get_db():
    with Session(engine) as session:
        yield session


def init_db():
    # Tablo modelleri metadata'ya kaydolsun
    import app.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


@contextmanager
def store_errors(context: str):
    """
    Kayıt deposu hatalarını işlem bağlamıyla sarar: SQLAlchemyError -> RecordStoreError.
    Dış katmanda genel bir 500 mesajına çevrilir; asıl hata __cause__ içinde kalır.
    """
    try:
        yield
    except SQLAlchemyError as e:
        log.error("Record store failure during %s: %s", context, e)
        raise RecordStoreError(context) from e
