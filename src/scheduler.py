"""Monthly invoice scheduler.

Fires at 02:00 America/New_York on the 1st of every month (cron
``0 2 1 * *``) and asks the API to draft the previous month's invoices. A
failed trigger is logged and retried at the next occurrence.

Environment:
    BACKEND_URL            base URL of the warehouse API (default http://localhost:8000)
    INTERNAL_SERVICE_KEY   shared key sent in the ``x-service-key`` header
    INVOICE_CRON_TIMEOUT   request timeout in seconds (default 300)

Usage:
    python src/scheduler.py          # Run until interrupted
    python src/scheduler.py --once   # Trigger one generation now and exit
"""

import argparse
import os
import sys
import time
from datetime import UTC, datetime

import requests
import structlog
from warehouse.billing.period import REFERENCE_TIMEZONE
from warehouse.utils.logging import configure_logging

logger = structlog.get_logger(__name__)

CRON_SCHEDULE = "0 2 1 * *"
RUN_DAY = 1
RUN_HOUR = 2
DEFAULT_BACKEND_URL = "http://localhost:8000"
DEFAULT_TIMEOUT_SECONDS = 300
GENERATION_PATH = "/invoices/generate-monthly-auto"


def next_run(after: datetime, timezone=REFERENCE_TIMEZONE) -> datetime:
    """Next scheduled moment strictly after ``after``, in the scheduler's timezone."""
    local = after.astimezone(timezone)
    candidate = datetime(local.year, local.month, RUN_DAY, RUN_HOUR, tzinfo=timezone)
    if candidate <= local:
        year, month = (local.year + 1, 1) if local.month == 12 else (local.year, local.month + 1)
        candidate = datetime(year, month, RUN_DAY, RUN_HOUR, tzinfo=timezone)
    return candidate


def trigger_monthly_generation(
    base_url: str,
    service_key: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    session: requests.Session | None = None,
) -> dict | None:
    """POST the generation trigger. Returns the batch result, or None when the call failed."""
    session = session or requests.Session()
    url = base_url.rstrip("/") + GENERATION_PATH
    logger.info("Triggering monthly invoice generation", url=url)
    try:
        response = session.post(url, headers={"x-service-key": service_key}, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.error("Monthly invoice trigger failed", url=url, error=str(exc))
        return None

    result = response.json()
    logger.info("Monthly invoice trigger completed", **result.get("summary", {}))
    return result


class MonthlyScheduler:
    def __init__(self, base_url, service_key, timeout=DEFAULT_TIMEOUT_SECONDS, session=None, clock=None, sleep=None):
        self.base_url = base_url
        self.service_key = service_key
        self.timeout = timeout
        self._session = session or requests.Session()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._sleep = sleep or time.sleep

    def trigger(self) -> dict | None:
        return trigger_monthly_generation(self.base_url, self.service_key, self.timeout, self._session)

    def run(self, iterations: int | None = None) -> None:
        """Wait for each scheduled moment and fire; ``iterations`` bounds the loop."""
        fired = 0
        while iterations is None or fired < iterations:
            now = self._clock()
            scheduled = next_run(now)
            wait = (scheduled - now).total_seconds()
            logger.info("Next monthly invoice run scheduled", at=scheduled.isoformat(), wait_seconds=round(wait))
            self._sleep(max(0.0, wait))
            self.trigger()
            fired += 1


def main():
    parser = argparse.ArgumentParser(description="Warehouse monthly invoice scheduler")
    parser.add_argument("--once", action="store_true", help="Trigger one generation immediately and exit")
    args = parser.parse_args()

    configure_logging()

    service_key = os.environ.get("INTERNAL_SERVICE_KEY")
    if not service_key:
        logger.error("INTERNAL_SERVICE_KEY is not set")
        sys.exit(1)

    scheduler = MonthlyScheduler(
        base_url=os.environ.get("BACKEND_URL", DEFAULT_BACKEND_URL),
        service_key=service_key,
        timeout=float(os.environ.get("INVOICE_CRON_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)),
    )

    if args.once:
        sys.exit(0 if scheduler.trigger() is not None else 1)

    logger.info("Monthly invoice scheduler started", schedule=CRON_SCHEDULE, timezone=str(REFERENCE_TIMEZONE))
    try:
        scheduler.run()
    except KeyboardInterrupt:
        logger.info("Monthly invoice scheduler stopped")


if __name__ == "__main__":
    main()
