"""Script to restore friend-list mutuality after interrupted writes"""

import argparse
import logging

from models.common import get_db
from services.reconcile import reconcile_all
from utils import setup_logs

logger = logging.getLogger("soundalchemy.reconcile.script")


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report what would be repaired",
    )
    args = parser.parse_args()

    with get_db() as session:
        report = reconcile_all(session, dry_run=args.dry_run)

    prefix = "Would repair" if args.dry_run else "Repaired"
    for owner, friend in report.completed:
        logger.info(f"{prefix}: add {friend} to friends of {owner}")
    for request_id in report.stale_requests:
        logger.info(f"{prefix}: delete stale request {request_id}")
    logger.info(f"{prefix} {report.total} inconsistencies")


if __name__ == "__main__":  # pragma: no cover
    setup_logs()
    main()
