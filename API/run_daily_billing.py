"""
Daily billing job — run once per calendar day (cron, systemd timer, k8s CronJob).

Usage:
    run-daily-billing                       # today in BILLING_TIMEZONE
    run-daily-billing --date 2026-03-01     # a specific day (safe to rerun)
    run-daily-billing --merchant 4 --merchant 9

Exit status: 0 all merchants billed, 1 some merchants failed or the run
was interrupted (rerun the same date to finish), 2 the run could not start.
"""
import argparse
import signal
import sys
import threading
from contextlib import contextmanager
from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger

from core.config import settings
from database import DatabaseConnection
from services.billing_run import BillingRunError, BillingRunReport, DailyBillingService


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="run-daily-billing",
        description="Create one pending daily service fee per merchant.",
    )
    parser.add_argument(
        "--date", type=date.fromisoformat, default=None,
        help="Billing day YYYY-MM-DD (default: today in the billing timezone)",
    )
    parser.add_argument(
        "--timezone", default=None,
        help=f"IANA timezone for 'today' (default: {settings.billing_timezone})",
    )
    parser.add_argument(
        "--merchant", type=int, action="append", default=[], dest="merchant_ids",
        help="Only bill this merchant id (repeatable)",
    )
    parser.add_argument(
        "--database-url", default=None,
        help="Override DATABASE_URL",
    )
    return parser.parse_args(argv)


@contextmanager
def cancel_on_signals(cancel_event: threading.Event):
    """SIGINT/SIGTERM stop the run after the current merchant."""
    def _handler(signum, frame):
        logger.warning(f"Received signal {signum}, finishing current merchant...")
        cancel_event.set()

    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = {sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def print_summary(report: BillingRunReport):
    symbol = settings.currency_symbol
    print(f"Billing date: {report.billing_date.isoformat()}")
    print(f"✅ Created {report.created_count} daily billing records")
    print(f"↩️  Already billed: {report.already_billed_count}")
    if report.has_failures:
        print(f"❌ Failed: {report.failed_count}")
        for outcome in report.failures:
            print(f"   merchant {outcome.merchant_id}: {outcome.error}")
    if report.cancelled:
        print(f"⏹ Interrupted, {report.remaining} merchants not processed")
    print(f"💰 Total daily charges: {symbol}{report.total_amount}")


def main(argv=None) -> int:
    args = parse_args(argv)

    tz = args.timezone or settings.billing_timezone
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        logger.error(f"Unknown timezone: {tz}")
        return 2

    cancel_event = threading.Event()
    try:
        with cancel_on_signals(cancel_event), DatabaseConnection(args.database_url) as conn:
            with conn.get_session() as session:
                report = DailyBillingService(session).run_daily_billing(
                    args.date,
                    merchant_ids=args.merchant_ids or None,
                    cancel_event=cancel_event,
                    tz=tz,
                )
    except BillingRunError as e:
        print(f"❌ Error creating daily billing records: {e}")
        return 2

    print_summary(report)
    if report.has_failures or report.cancelled:
        return 1
    return 0


def cli():
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    sys.exit(main())


if __name__ == "__main__":
    cli()
