"""Mutuality sweep: the periodic counterpart of repair-on-read"""

import asyncio
import logging

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from models.common import get_db
from models.connection import ConnectionState
from services.slack import slack
from services.store import ConnectionRequestStore, FriendListStore, NotificationSink
from utils.logs import ratelimited_log, time_it

logger = logging.getLogger("soundalchemy.reconcile")


class ReconcileReport(BaseModel):
    completed: list[tuple[str, str]] = []  # (owner, friend) entries added
    stale_requests: list[str] = []
    dry_run: bool = False

    @property
    def total(self) -> int:
        return len(self.completed) + len(self.stale_requests)


@time_it
def reconcile_all(session: Session, *, dry_run: bool = False, feed=None) -> ReconcileReport:
    """Complete every asymmetric friend list and drop requests between friends"""
    friends = FriendListStore(session)
    requests = ConnectionRequestStore(session)
    notifications = NotificationSink(session)

    # the mirror of every one-sided entry is what is missing
    missing = [(friend, owner) for owner, friend in friends.asymmetric_entries()]
    stale = requests.pending_between_friends()
    report = ReconcileReport(
        completed=missing,
        stale_requests=[r.id for r in stale],
        dry_run=dry_run,
    )
    if dry_run or not report.total:
        return report

    for owner, friend in missing:
        friends.add(owner, friend)
    pairs = set(missing)
    for request in stale:
        notifications.discard_for_request(request.id)
        pairs.add((request.from_id, request.to_id))
        requests.delete(request)
    session.commit()

    message = (
        f"Reconciled friend lists: {len(missing)} missing entries completed, "
        f"{len(stale)} stale requests removed"
    )
    logger.warning(message)
    ratelimited_log(60 * 60)(slack.send_message, f"⚠️ {message}")
    if feed is not None:
        for a, b in pairs:
            feed.publish(a, b, ConnectionState.friends)
    return report


async def reconcile_job(feed=None) -> ReconcileReport | None:
    try:
        with get_db() as session:
            return reconcile_all(session, feed=feed)
    except SQLAlchemyError as e:
        logger.error(f"Reconciliation failed, will retry next round: {e}")
        return None


async def reconcile_periodically(interval: float, feed=None):
    logger.debug(f"Reconciling friend lists every {interval} seconds")
    while True:
        await asyncio.sleep(interval)
        await reconcile_job(feed=feed)
