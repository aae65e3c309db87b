"""
Recurring Expense Job

Runs at application start (or from cron) to:
1. Refresh exchange rates (at most one fetch per day unless forced)
2. Materialize due recurring expenses for every user, or one user

Usage:
    python -m pennywise.jobs [--date YYYY-MM-DD] [--user-id ID] [--skip-rates] [--force-rates]

Options:
    --date: Processing date (default: today)
    --user-id: Process only this user (default: every user with due expenses)
    --skip-rates: Don't touch exchange rates
    --force-rates: Fetch rates even if they were fetched today
"""

import asyncio
import logging
from argparse import ArgumentParser
from datetime import date, datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from pennywise.database import SessionLocal, init_db
from pennywise.logging_config import setup_logging
from pennywise.services import recurring_service
from pennywise.services.exchange_rate_service import ExchangeRateService, build_rate_service

logger = logging.getLogger(__name__)


def run_due_expenses(db: Session, as_of: date, user_id: Optional[str] = None) -> Dict[str, int]:
    """
    Process due recurring expenses for one user or every user that has some.

    Returns {user_id: expenses created}.
    """
    user_ids = [user_id] if user_id else recurring_service.get_users_with_due_expenses(db, as_of)
    logger.info(f"Processing recurring expenses for {len(user_ids)} user(s) as of {as_of}")

    results = {}
    for uid in user_ids:
        results[uid] = recurring_service.process_due_expenses(db, uid, as_of)

    total = sum(results.values())
    logger.info(f"Created {total} expense(s)")
    return results


async def run_job(
    as_of: date,
    rate_service: Optional[ExchangeRateService],
    user_id: Optional[str] = None,
    force_rates: bool = False,
) -> Dict[str, int]:
    if rate_service is not None:
        await rate_service.refresh_rates(force=force_rates)
        logger.info(f"Exchange rates: {rate_service.tier.value} ({len(rate_service.rates)} currencies)")

    db = SessionLocal()
    try:
        return run_due_expenses(db, as_of, user_id)
    finally:
        db.close()


def main(argv=None):
    parser = ArgumentParser(description="Process due recurring expenses and refresh exchange rates")
    parser.add_argument("--date", type=lambda s: datetime.strptime(s, "%Y-%m-%d").date(),
                        default=None, help="Processing date (YYYY-MM-DD)")
    parser.add_argument("--user-id", default=None, help="Process only this user")
    parser.add_argument("--skip-rates", action="store_true", help="Don't refresh exchange rates")
    parser.add_argument("--force-rates", action="store_true", help="Refresh rates even if fetched today")
    args = parser.parse_args(argv)

    setup_logging()
    init_db()

    rate_service = None
    if not args.skip_rates:
        rate_service = build_rate_service()

    asyncio.run(run_job(
        as_of=args.date or date.today(),
        rate_service=rate_service,
        user_id=args.user_id,
        force_rates=args.force_rates,
    ))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
