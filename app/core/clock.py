from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC 'şimdi'. Model tarih alanları açıkça sa_type=DateTime (timezone'sız) ile tanımlı; tümü naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
