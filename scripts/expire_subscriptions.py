#!/usr/bin/env python3
"""Süresi dolan abonelikleri expired yapar (cron). Paket kurulu ortamda: python3 scripts/expire_subscriptions.py"""
import logging

from sqlmodel import Session

from app.core.config import settings
from app.core.database import engine, init_db
from app.core.errors import RecordStoreError
from app.logging import setup_logging
from app.services.subscription import expire_lapsed_subscriptions


def main() -> int:
    setup_logging(level=settings.log_level)
    log = logging.getLogger("frete")
    init_db()
    with Session(engine) as db:
        try:
            count = expire_lapsed_subscriptions(db)
        except RecordStoreError as e:
            log.error("Subscription expiry sweep failed: %s", e.message)
            return 1
    log.info("Subscription expiry sweep done: expired=%s", count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
