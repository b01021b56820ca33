# license_server/services/trial_sweeper.py
"""
Periodic trial-expiry sweep.

Validation already expires elapsed trials lazily; this sweep catches trials
nobody validated against. Run it from cron or a scheduler:

    python -m license_server.services.trial_sweeper [--dry-run]
"""
import argparse
import asyncio
import logging

from license_server.core.clock import utc_now
from license_server.core.db import close_db, init_db
from license_server.models import Subscription, SubscriptionStatus
from license_server.services.license_registry import expire_elapsed_trials

logger = logging.getLogger(__name__)


async def count_elapsed_trials() -> int:
    return await Subscription.filter(
        is_trial_mode=True,
        trial_ends_at__lte=utc_now(),
        status__in=[SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING],
    ).count()


async def run_sweep(dry_run: bool = False) -> int:
    """Expire elapsed trials (or only count them with dry_run). Returns the count."""
    if dry_run:
        pending = await count_elapsed_trials()
        logger.info("[sweeper] Dry run: %d trial subscription(s) would expire", pending)
        return pending

    expired = await expire_elapsed_trials()
    logger.info("[sweeper] Expired %d trial subscription(s)", expired)
    return expired


async def _main(dry_run: bool) -> int:
    await init_db()
    try:
        return await run_sweep(dry_run=dry_run)
    finally:
        await close_db()


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Expire trial subscriptions whose window has closed")
    parser.add_argument("--dry-run", action="store_true", help="Only report how many trials would expire")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    asyncio.run(_main(args.dry_run))


if __name__ == "__main__":
    main()
