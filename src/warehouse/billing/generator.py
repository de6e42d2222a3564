"""Monthly invoice batch run.

Runs over every active client one after another; clients are never processed
concurrently, so two workers cannot race to bill the same client and month.
A failure for one client is recorded in its result and the run moves on to
the next client.
"""

import time
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy.exc import IntegrityError

from warehouse.billing.generation import SKIPPED_DUPLICATE, GenerateMonthlyInvoice
from warehouse.billing.period import REFERENCE_TIMEZONE, BillingPeriod
from warehouse.clients import ClientDirectory, ClientInfo
from warehouse.shared.errors import DuplicateValueError, WarehouseError, translate_integrity_error

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class MonthlyInvoiceGenerator:
    def __init__(
        self,
        domain,
        client_directory: ClientDirectory,
        clock=_utc_now,
        timezone: ZoneInfo = REFERENCE_TIMEZONE,
    ):
        self._domain = domain
        self._clients = client_directory
        self._clock = clock
        self._timezone = timezone

    def billing_period(self, month: int | None = None, year: int | None = None) -> BillingPeriod:
        if month is not None and year is not None:
            return BillingPeriod(month=month, year=year)
        return BillingPeriod.previous_month(self._clock(), self._timezone)

    def run(self, month: int | None = None, year: int | None = None, issue: bool = False) -> dict:
        """Generate invoices for every active client.

        Scheduled runs bill the previous month and leave invoices in draft;
        manual runs may name the month and issue invoices straight away.
        """
        started = time.monotonic()
        period = self.billing_period(month, year)
        clients = self._clients.active_clients()

        logger.info(
            "Monthly invoice generation started",
            month=period.month,
            year=period.year,
            clients=len(clients),
            issue=issue,
        )

        results = [self._generate_for(client, period, issue) for client in clients]

        summary = {
            "totalClients": len(clients),
            "successful": sum(1 for r in results if r["status"] == "success"),
            "skipped": sum(1 for r in results if r["status"] == "skipped"),
            "errors": sum(1 for r in results if r["status"] == "error"),
            "duration": round(time.monotonic() - started, 3),
        }
        logger.info("Monthly invoice generation finished", month=period.month, year=period.year, **summary)

        return {
            "billingPeriod": period.to_dict(),
            "summary": summary,
            "successful": summary["successful"],
            "skipped": summary["skipped"],
            "errors": summary["errors"],
            "results": results,
        }

    def _generate_for(self, client: ClientInfo, period: BillingPeriod, issue: bool) -> dict:
        started = time.monotonic()
        result = {"clientId": client.client_id, "clientName": client.name}
        command = GenerateMonthlyInvoice(
            client_id=client.client_id,
            month=period.month,
            year=period.year,
            issue=issue,
        )

        try:
            result.update(self._domain.process(command, asynchronous=False))
        except IntegrityError as exc:
            error = translate_integrity_error(exc)
            if isinstance(error, DuplicateValueError):
                result.update(status="skipped", reason=SKIPPED_DUPLICATE)
            else:
                result.update(status="error", error=error.message, code=error.code)
        except WarehouseError as exc:
            result.update(status="error", error=exc.message, code=exc.code)
        except Exception as exc:
            result.update(status="error", error=str(exc))

        if result["status"] == "error":
            logger.error(
                "Monthly invoice generation failed for client",
                client_id=client.client_id,
                month=period.month,
                year=period.year,
                error=result["error"],
            )

        result["duration"] = round(time.monotonic() - started, 3)
        return result
