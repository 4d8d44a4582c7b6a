from .config import settings
from .database import get_db, init_db, store_errors

__all__ = ["settings", "get_db", "init_db", "store_errors"]
