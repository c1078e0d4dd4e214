"""Friend request lifecycle: send, accept, decline, cancel and unfriend.

This is the only writer of the friend lists. `accept` and `unfriend` touch
both accounts' lists plus the request; with ATOMIC_FRIEND_WRITES they commit
as one transaction, otherwise each write is committed on its own and an
interruption surfaces as PartialFailure, left for the resolver to repair.
"""

import logging
from typing import Callable

from pydantic import BaseModel
from sqlmodel import Session

import settings
from models.account import Account
from models.connection import ConnectionRequest, ConnectionState, RequestStatus
from models.notification import NotificationType
from services.errors import (
    Conflict,
    InvalidSelfReference,
    NotFound,
    NotFriends,
    PartialFailure,
    Unauthorized,
)
from services.feed import ChangeFeed, change_feed
from services.notifications import Inbox, NotificationDispatcher
from services.resolver import ConnectionStateResolver
from services.store import ConnectionRequestStore, FriendListStore, NotificationSink

logger = logging.getLogger("soundalchemy.connections")


class SendOutcome(BaseModel):
    created: bool
    request_id: str | None = None
    state: ConnectionState


class RequestLifecycleManager:
    def __init__(
        self,
        session: Session,
        *,
        feed: ChangeFeed | None = None,
        atomic: bool | None = None,
    ):
        self.session = session
        self.feed = feed if feed is not None else change_feed
        self.atomic = settings.ATOMIC_FRIEND_WRITES if atomic is None else atomic
        self.requests = ConnectionRequestStore(session)
        self.friends = FriendListStore(session)
        self.notifications = NotificationSink(session)
        self.dispatcher = NotificationDispatcher(session)
        self.resolver = ConnectionStateResolver(
            session,
            friends=self.friends,
            requests=self.requests,
            notifications=self.notifications,
            feed=self.feed,
        )

    # Reads

    def resolve(self, account_id: str, other_id: str) -> ConnectionState:
        return self.resolver.resolve(account_id, other_id)

    def list_friends(self, account_id: str) -> set[str]:
        self._require_account(account_id)
        return {
            other_id
            for other_id, state in self.resolver.relations(account_id).items()
            if state == ConnectionState.friends
        }

    def list_pending(self, account_id: str) -> dict[str, list[ConnectionRequest]]:
        self._require_account(account_id)
        return {
            "incoming": self.requests.incoming(account_id),
            "outgoing": self.requests.outgoing(account_id),
        }

    # Transitions

    def send(self, from_id: str, to_id: str) -> SendOutcome:
        """Make sure a request from `from_id` to `to_id` exists.

        A no-op when the pair already has a live request, in either
        direction, or is already friends.
        """
        if from_id == to_id:
            raise InvalidSelfReference("Cannot send a friend request to yourself.")
        self._require_account(from_id)
        self._require_account(to_id)

        state, pending = self.resolver.inspect(from_id, to_id)
        if state != ConnectionState.none:
            logger.debug(f"Request {from_id} -> {to_id} is a no-op: {state.value}")
            return SendOutcome(
                created=False,
                request_id=pending.id if pending else None,
                state=state,
            )

        try:
            request = self.requests.insert_pending(from_id, to_id)
            self.session.commit()
        except Conflict:
            # lost the race against a concurrent send for the same pair
            self.session.rollback()
            state, pending = self.resolver.inspect(from_id, to_id)
            logger.info(f"Concurrent request {from_id} -> {to_id}, resolved as {state.value}")
            return SendOutcome(
                created=False,
                request_id=pending.id if pending else None,
                state=state,
            )

        request_id = request.id
        logger.info(f"Friend request {request_id}: {from_id} -> {to_id}")
        self.dispatcher.notify(
            to_id, NotificationType.friend_request, from_id, request_id=request_id
        )
        self.feed.publish(from_id, to_id, ConnectionState.pending_outgoing)
        return SendOutcome(
            created=True, request_id=request_id, state=ConnectionState.pending_outgoing
        )

    def accept(self, request_id: str, acting_id: str) -> ConnectionState:
        request = self._require_request(request_id)
        if acting_id != request.to_id:
            raise Unauthorized("Only the recipient can accept this request.")
        from_id, to_id = request.from_id, request.to_id

        self._apply(
            "accept",
            (from_id, to_id),
            [
                lambda: self.friends.add(from_id, to_id),
                lambda: self.friends.add(to_id, from_id),
                lambda: self._drop_request(request),
            ],
        )
        logger.info(f"Friend request {request_id} accepted: {from_id} <-> {to_id}")
        if settings.NOTIFY_ON_ACCEPT:
            self.dispatcher.notify(from_id, NotificationType.friend_accepted, to_id)
        self.feed.publish(from_id, to_id, ConnectionState.friends)
        return ConnectionState.friends

    def decline(self, request_id: str, acting_id: str) -> ConnectionState:
        request = self._require_request(request_id)
        if acting_id != request.to_id:
            raise Unauthorized("Only the recipient can decline this request.")
        from_id, to_id = request.from_id, request.to_id

        self._apply("decline", (from_id, to_id), [lambda: self._drop_request(request)])
        logger.info(f"Friend request {request_id} declined by {to_id}")
        if settings.NOTIFY_ON_DECLINE:
            self.dispatcher.notify(from_id, NotificationType.friend_declined, to_id)
        self.feed.publish(from_id, to_id, ConnectionState.none)
        return ConnectionState.none

    def cancel(self, request_id: str, acting_id: str) -> ConnectionState:
        request = self._require_request(request_id)
        if acting_id != request.from_id:
            raise Unauthorized("Only the sender can cancel this request.")
        from_id, to_id = request.from_id, request.to_id

        self._apply("cancel", (from_id, to_id), [lambda: self._drop_request(request)])
        logger.info(f"Friend request {request_id} cancelled by {from_id}")
        self.feed.publish(from_id, to_id, ConnectionState.none)
        return ConnectionState.none

    def unfriend(self, account_id: str, other_id: str, acting_id: str) -> ConnectionState:
        if acting_id not in (account_id, other_id):
            raise Unauthorized("Only one of the two friends can end the friendship.")
        if account_id == other_id:
            raise InvalidSelfReference("Cannot unfriend yourself.")

        # resolving first completes a half-written friendship, so both
        # removals below always have something to remove
        if self.resolver.resolve(account_id, other_id) != ConnectionState.friends:
            raise NotFriends("No existing friendship to end.")

        self._apply(
            "unfriend",
            (account_id, other_id),
            [
                lambda: self.friends.remove(account_id, other_id),
                lambda: self.friends.remove(other_id, account_id),
                lambda: self._drop_requests_between(account_id, other_id),
            ],
        )
        logger.info(f"{acting_id} ended the friendship {account_id} <-> {other_id}")
        self.feed.publish(account_id, other_id, ConnectionState.none)
        return ConnectionState.none

    def mark_notification_read(self, account_id: str, notification_id: str):
        Inbox(self.session, account_id).mark_read(notification_id)

    def repair_pair(self, account_id: str, other_id: str) -> list[str]:
        """Targeted repair after a PartialFailure, re-checks before writing"""
        return self.resolver.repair(account_id, other_id)

    # Helpers

    def _require_account(self, account_id: str) -> Account:
        account = self.session.get(Account, account_id)
        if account is None:
            raise NotFound(f"Account {account_id} not found.")
        return account

    def _require_request(self, request_id: str) -> ConnectionRequest:
        request = self.requests.get(request_id)
        if request is None or request.status != RequestStatus.pending:
            raise NotFound("Friend request not found.")
        return request

    def _drop_request(self, request: ConnectionRequest):
        self.notifications.discard_for_request(request.id)
        self.requests.delete(request)

    def _drop_requests_between(self, a: str, b: str):
        for request in self.requests.between(a, b):
            self._drop_request(request)

    def _apply(
        self,
        operation: str,
        account_ids: tuple[str, str],
        steps: list[Callable[[], object]],
    ):
        if self.atomic:
            try:
                for step in steps:
                    step()
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
            return

        for done, step in enumerate(steps):
            try:
                step()
                self.session.commit()
            except Exception as e:
                self.session.rollback()
                if done == 0:
                    raise
                logger.error(
                    f"{operation} {account_ids[0]} <-> {account_ids[1]} stopped after {done} of {len(steps)} writes: {e}"
                )
                raise PartialFailure(operation, account_ids) from e
