"""Effective relationship between two accounts, with repair-on-read.

Friend lists are authoritative for the terminal state: when either side lists
the other, the pair is friends. A missing mirror entry is completed and any
request left behind is deleted, so reads converge the store back to mutuality.
"""

import logging

from sqlmodel import Session

from models.connection import ConnectionRequest, ConnectionState
from services.errors import InvalidSelfReference
from services.store import ConnectionRequestStore, FriendListStore, NotificationSink

logger = logging.getLogger("soundalchemy.resolver")


class ConnectionStateResolver:
    def __init__(
        self,
        session: Session,
        *,
        friends: FriendListStore | None = None,
        requests: ConnectionRequestStore | None = None,
        notifications: NotificationSink | None = None,
        feed=None,
    ):
        self.session = session
        self.friends = friends or FriendListStore(session)
        self.requests = requests or ConnectionRequestStore(session)
        self.notifications = notifications or NotificationSink(session)
        self.feed = feed

    def resolve(self, account_id: str, other_id: str) -> ConnectionState:
        state, _ = self.inspect(account_id, other_id)
        return state

    def inspect(
        self, account_id: str, other_id: str
    ) -> tuple[ConnectionState, ConnectionRequest | None]:
        """The state seen by `account_id` and the live request, if any"""
        if account_id == other_id:
            raise InvalidSelfReference("An account has no relationship with itself.")

        if self.friends.contains(account_id, other_id) or self.friends.contains(
            other_id, account_id
        ):
            self.repair(account_id, other_id)
            return ConnectionState.friends, None

        pending = self.requests.find_pending(account_id, other_id)
        if pending is None:
            return ConnectionState.none, None
        if pending.from_id == account_id:
            return ConnectionState.pending_outgoing, pending
        return ConnectionState.pending_incoming, pending

    def repair(self, a: str, b: str) -> list[str]:
        """Bring the pair back to a consistent state, returns what was fixed.

        Idempotent: a consistent pair is left untouched. Asymmetric lists are
        always completed towards friendship.
        """
        a_lists_b = self.friends.contains(a, b)
        b_lists_a = self.friends.contains(b, a)
        if not (a_lists_b or b_lists_a):
            return []

        fixes = []
        if not a_lists_b:
            self.friends.add(a, b)
            fixes.append(f"added {b} to friends of {a}")
        if not b_lists_a:
            self.friends.add(b, a)
            fixes.append(f"added {a} to friends of {b}")

        stale = self.requests.find_pending(a, b)
        if stale is not None:
            self.notifications.discard_for_request(stale.id)
            self.requests.delete(stale)
            fixes.append(f"deleted stale request {stale.id}")

        if not fixes:
            return fixes

        self.session.commit()
        logger.warning(f"Repaired connection {a} <-> {b}: {'; '.join(fixes)}")
        if self.feed is not None:
            self.feed.publish(a, b, ConnectionState.friends)
        return fixes

    def relations(self, account_id: str) -> dict[str, ConnectionState]:
        """Every account related to `account_id` with its current state"""
        result: dict[str, ConnectionState] = {}
        listed = self.friends.friends_of(account_id)
        listing = self.friends.listed_by(account_id)
        for other_id in listed | listing:
            if other_id not in listed or other_id not in listing:
                self.repair(account_id, other_id)
            result[other_id] = ConnectionState.friends

        requests = self.requests.outgoing(account_id) + self.requests.incoming(
            account_id
        )
        for request in requests:
            other_id = request.other_party(account_id)
            if other_id in result:
                # friends already, the request is a leftover
                self.repair(account_id, other_id)
            elif request.from_id == account_id:
                result[other_id] = ConnectionState.pending_outgoing
            else:
                result[other_id] = ConnectionState.pending_incoming
        return result
