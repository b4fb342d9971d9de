"""
Periodic sweep cancelling PENDING orders whose payment never completed
"""
import sys
import time

import structlog

from storefront.config import settings
from storefront.database import SessionLocal
from storefront.logging_config import configure_logging
from storefront.services.order_service import OrderService

logger = structlog.get_logger(__name__)


def sweep_once(ttl_minutes: int = settings.PENDING_ORDER_TTL_MINUTES) -> list:
    """Run one sweep in its own session and return the cancelled order ids"""
    db = SessionLocal()
    try:
        return OrderService(db).cancel_stale_pending_orders(ttl_minutes)
    finally:
        db.close()


def start_sweeper(interval_seconds: int = settings.SWEEP_INTERVAL_SECONDS):
    """
    Start the sweep loop
    
    Sweeps every interval_seconds until interrupted. A failed sweep is
    logged and retried on the next tick.
    """
    configure_logging()
    logger.info(
        "sweeper_started",
        interval_seconds=interval_seconds,
        ttl_minutes=settings.PENDING_ORDER_TTL_MINUTES,
    )
    
    try:
        while True:
            try:
                sweep_once()
            except Exception:
                logger.exception("sweep_failed")
            time.sleep(interval_seconds)
    except KeyboardInterrupt:
        logger.info("sweeper_stopped")
        sys.exit(0)


if __name__ == "__main__":
    start_sweeper()
