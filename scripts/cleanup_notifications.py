"""Delete old notifications and retire push subscriptions that stopped being used."""

from __future__ import annotations

import argparse
import logging

from church_app.application.use_cases.notifications import NotificationStore, PushDeliveryService
from church_app.config import get_settings
from church_app.infrastructure.database import initialize_database

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the cleanup job."""

    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Remove expired notification data from the database.",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=settings.notification_retention_days,
        help="Delete notifications created more than this many days ago "
        f"(default: {settings.notification_retention_days})",
    )
    parser.add_argument(
        "--stale-days",
        type=int,
        default=settings.subscription_stale_days,
        help="Deactivate push subscriptions unused for this many days "
        f"(default: {settings.subscription_stale_days})",
    )
    return parser.parse_args()


def main() -> None:
    """Run the retention job with the provided command line arguments."""

    logging.basicConfig(level=logging.INFO)
    args = parse_args()
    if args.days <= 0 or args.stale_days <= 0:
        raise SystemExit("--days and --stale-days must be positive.")

    initialize_database()

    deleted = NotificationStore().delete_older_than(args.days)
    deactivated = PushDeliveryService().deactivate_stale_subscriptions(args.stale_days)

    print(f"Deleted {deleted} notifications older than {args.days} days.")
    print(f"Deactivated {deactivated} push subscriptions unused for {args.stale_days} days.")


if __name__ == "__main__":
    main()
