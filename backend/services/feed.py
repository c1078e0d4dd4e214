"""In-process change feed for connection states.

The lifecycle manager publishes every committed transition; subscribers get
an initial snapshot followed by each transition touching their account (or
pair). With a polling interval a subscription also re-resolves its state from
a fresh session, so writes made by other processes are picked up too.
"""

import asyncio
import logging
from collections import deque
from typing import Callable, ContextManager

from pydantic import BaseModel
from sqlmodel import Session

import settings
from models.common import get_db
from models.connection import ConnectionState
from services.resolver import ConnectionStateResolver

logger = logging.getLogger("soundalchemy.feed")


class ConnectionEvent(BaseModel):
    """A pair state seen by `account_id`.

    An account with no relations at all gets a single initial event with
    `other_id=None` and state none, so the snapshot is never empty.
    """

    account_id: str
    other_id: str | None
    state: ConnectionState
    initial: bool = False


class Subscription:
    """An async stream of ConnectionEvent, ended by `cancel()`"""

    def __init__(
        self,
        feed: "ChangeFeed",
        account_id: str,
        other_id: str | None = None,
        poll_interval: float | None = None,
    ):
        self.feed = feed
        self.account_id = account_id
        self.other_id = other_id
        self.poll_interval = poll_interval
        self.cancelled = False
        self._events: deque[ConnectionEvent] = deque()
        self._wakeup = asyncio.Event()
        # last state queued per other account, to diff polled snapshots
        self.known: dict[str, ConnectionState] = {}

    def matches(self, event: ConnectionEvent) -> bool:
        if event.account_id != self.account_id:
            return False
        return self.other_id is None or event.other_id == self.other_id

    def push(self, event: ConnectionEvent):
        if self.cancelled:
            return
        self._events.append(event)
        if event.other_id is not None:
            self.known[event.other_id] = event.state
        self._wakeup.set()

    def cancel(self):
        if self.cancelled:
            return
        self.cancelled = True
        self._events.clear()
        self.feed.discard(self)
        self._wakeup.set()
        logger.debug(f"Subscription of {self.account_id} cancelled")

    def __aiter__(self):
        return self

    async def __anext__(self) -> ConnectionEvent:
        while not self.cancelled:
            if self._events:
                return self._events.popleft()
            self._wakeup.clear()
            if not self.poll_interval:
                await self._wakeup.wait()
                continue
            try:
                await asyncio.wait_for(self._wakeup.wait(), self.poll_interval)
            except asyncio.TimeoutError:
                self.feed.poll(self)
        raise StopAsyncIteration

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.cancel()


class ChangeFeed:
    def __init__(
        self,
        session_factory: Callable[[], ContextManager[Session]] | None = None,
        poll_interval: float | None = None,
    ):
        self.session_factory = session_factory or get_db
        self.poll_interval = poll_interval or None
        self._subscriptions: set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self, session: Session, account_id: str, other_id: str | None = None
    ) -> Subscription:
        """Open a subscription on an account, or on one of its pairs.

        The current state is resolved now and queued as the initial events.
        """
        subscription = Subscription(
            self, account_id, other_id, poll_interval=self.poll_interval
        )
        current = self._current(session, subscription)
        for other, state in current.items():
            subscription.push(
                ConnectionEvent(
                    account_id=account_id, other_id=other, state=state, initial=True
                )
            )
        if not current:
            subscription.push(
                ConnectionEvent(
                    account_id=account_id,
                    other_id=None,
                    state=ConnectionState.none,
                    initial=True,
                )
            )
        self._subscriptions.add(subscription)
        return subscription

    def discard(self, subscription: Subscription):
        self._subscriptions.discard(subscription)

    def close(self):
        """End every open subscription, their consumers stop iterating"""
        for subscription in list(self._subscriptions):
            subscription.cancel()

    def publish(self, account_id: str, other_id: str, state: ConnectionState):
        """Fan out a transition of the pair, `state` as seen by `account_id`"""
        events = [
            ConnectionEvent(account_id=account_id, other_id=other_id, state=state),
            ConnectionEvent(
                account_id=other_id, other_id=account_id, state=state.mirrored()
            ),
        ]
        for subscription in list(self._subscriptions):
            for event in events:
                if subscription.matches(event):
                    subscription.push(event)

    def poll(self, subscription: Subscription):
        """Queue whatever changed since the subscription last heard"""
        with self.session_factory() as session:
            current = self._current(session, subscription)
        for other_id, state in current.items():
            if subscription.known.get(other_id) != state:
                subscription.push(
                    ConnectionEvent(
                        account_id=subscription.account_id,
                        other_id=other_id,
                        state=state,
                    )
                )
        if subscription.other_id is None:
            gone = [
                other_id
                for other_id, state in subscription.known.items()
                if other_id not in current and state != ConnectionState.none
            ]
            for other_id in gone:
                subscription.push(
                    ConnectionEvent(
                        account_id=subscription.account_id,
                        other_id=other_id,
                        state=ConnectionState.none,
                    )
                )

    def _current(
        self, session: Session, subscription: Subscription
    ) -> dict[str, ConnectionState]:
        resolver = ConnectionStateResolver(session, feed=self)
        if subscription.other_id is not None:
            return {
                subscription.other_id: resolver.resolve(
                    subscription.account_id, subscription.other_id
                )
            }
        return resolver.relations(subscription.account_id)


change_feed = ChangeFeed(poll_interval=settings.CHANGE_FEED_POLL_SECONDS)
