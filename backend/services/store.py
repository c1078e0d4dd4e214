"""Persistence for connection requests, friend lists and notification inboxes.

Stores add, delete and flush, they never commit: the lifecycle manager owns
the transaction boundaries.
"""

import logging

from sqlalchemy import and_, or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased
from sqlmodel import Session, select

from models.connection import (
    ConnectionRequest,
    FriendListEntry,
    RequestStatus,
    canonical_pair,
)
from models.notification import Notification, NotificationType
from services.errors import Conflict

logger = logging.getLogger("soundalchemy.store")


class ConnectionRequestStore:
    def __init__(self, session: Session):
        self.session = session

    def get(self, request_id: str) -> ConnectionRequest | None:
        return self.session.get(ConnectionRequest, request_id)

    def find_pending(self, a: str, b: str) -> ConnectionRequest | None:
        """The live request for the unordered pair {a, b}, whoever sent it"""
        low, high = canonical_pair(a, b)
        return self.session.exec(
            select(ConnectionRequest).where(
                ConnectionRequest.user_low_id == low,
                ConnectionRequest.user_high_id == high,
                ConnectionRequest.status == RequestStatus.pending,
            )
        ).first()

    def insert_pending(self, from_id: str, to_id: str) -> ConnectionRequest:
        request = ConnectionRequest.between(from_id, to_id)
        self.session.add(request)
        try:
            self.session.flush()
        except IntegrityError as e:
            raise Conflict(
                f"A request between {from_id} and {to_id} is already live"
            ) from e
        return request

    def delete(self, request: ConnectionRequest):
        self.session.delete(request)
        self.session.flush()

    def between(self, a: str, b: str) -> list[ConnectionRequest]:
        low, high = canonical_pair(a, b)
        return list(
            self.session.exec(
                select(ConnectionRequest).where(
                    ConnectionRequest.user_low_id == low,
                    ConnectionRequest.user_high_id == high,
                )
            ).all()
        )

    def incoming(self, account_id: str) -> list[ConnectionRequest]:
        return list(
            self.session.exec(
                select(ConnectionRequest)
                .where(
                    ConnectionRequest.to_id == account_id,
                    ConnectionRequest.status == RequestStatus.pending,
                )
                .order_by(ConnectionRequest.created_at.desc())
            ).all()
        )

    def outgoing(self, account_id: str) -> list[ConnectionRequest]:
        return list(
            self.session.exec(
                select(ConnectionRequest)
                .where(
                    ConnectionRequest.from_id == account_id,
                    ConnectionRequest.status == RequestStatus.pending,
                )
                .order_by(ConnectionRequest.created_at.desc())
            ).all()
        )

    def pending_between_friends(self) -> list[ConnectionRequest]:
        """Live requests whose accounts already list each other (on either side)"""
        return list(
            self.session.exec(
                select(ConnectionRequest)
                .join(
                    FriendListEntry,
                    or_(
                        and_(
                            FriendListEntry.owner_id == ConnectionRequest.from_id,
                            FriendListEntry.friend_id == ConnectionRequest.to_id,
                        ),
                        and_(
                            FriendListEntry.owner_id == ConnectionRequest.to_id,
                            FriendListEntry.friend_id == ConnectionRequest.from_id,
                        ),
                    ),
                )
                .where(ConnectionRequest.status == RequestStatus.pending)
                .distinct()
            ).all()
        )


class FriendListStore:
    """The per-account friend sets, one row per direction"""

    def __init__(self, session: Session):
        self.session = session

    def _entry(self, owner_id: str, friend_id: str) -> FriendListEntry | None:
        return self.session.get(
            FriendListEntry, {"owner_id": owner_id, "friend_id": friend_id}
        )

    def contains(self, owner_id: str, friend_id: str) -> bool:
        return self._entry(owner_id, friend_id) is not None

    def friends_of(self, owner_id: str) -> set[str]:
        return set(
            self.session.exec(
                select(FriendListEntry.friend_id).where(
                    FriendListEntry.owner_id == owner_id
                )
            ).all()
        )

    def listed_by(self, friend_id: str) -> set[str]:
        """Accounts having `friend_id` in their own list"""
        return set(
            self.session.exec(
                select(FriendListEntry.owner_id).where(
                    FriendListEntry.friend_id == friend_id
                )
            ).all()
        )

    def add(self, owner_id: str, friend_id: str) -> bool:
        if self.contains(owner_id, friend_id):
            return False
        self.session.add(FriendListEntry(owner_id=owner_id, friend_id=friend_id))
        self.session.flush()
        return True

    def remove(self, owner_id: str, friend_id: str) -> bool:
        entry = self._entry(owner_id, friend_id)
        if entry is None:
            return False
        self.session.delete(entry)
        self.session.flush()
        return True

    def asymmetric_entries(self) -> list[tuple[str, str]]:
        """(owner, friend) entries whose mirror entry is missing"""
        mirror = aliased(FriendListEntry)
        rows = self.session.exec(
            select(FriendListEntry.owner_id, FriendListEntry.friend_id)
            .outerjoin(
                mirror,
                and_(
                    mirror.owner_id == FriendListEntry.friend_id,
                    mirror.friend_id == FriendListEntry.owner_id,
                ),
            )
            .where(mirror.owner_id.is_(None))
        ).all()
        return [(owner_id, friend_id) for owner_id, friend_id in rows]


class NotificationSink:
    """Per-account inbox"""

    def __init__(self, session: Session):
        self.session = session

    def append(
        self,
        owner_id: str,
        type: NotificationType,
        from_id: str,
        request_id: str | None = None,
    ) -> Notification:
        notification = Notification(
            owner_id=owner_id, type=type, from_id=from_id, request_id=request_id
        )
        self.session.add(notification)
        self.session.flush()
        return notification

    def get(self, owner_id: str, notification_id: str) -> Notification | None:
        notification = self.session.get(Notification, notification_id)
        if notification is None or notification.owner_id != owner_id:
            return None
        return notification

    def inbox(self, owner_id: str, unread_only: bool = False) -> list[Notification]:
        query = select(Notification).where(Notification.owner_id == owner_id)
        if unread_only:
            query = query.where(Notification.read == False)  # noqa: E712
        return list(
            self.session.exec(query.order_by(Notification.created_at.desc())).all()
        )

    def unread_count(self, owner_id: str) -> int:
        return self.session.exec(
            select(func.count())
            .select_from(Notification)
            .where(Notification.owner_id == owner_id, Notification.read == False)  # noqa: E712
        ).one()

    def mark_read(self, notification: Notification):
        notification.read = True
        self.session.add(notification)
        self.session.flush()

    def delete(self, notification: Notification):
        self.session.delete(notification)
        self.session.flush()

    def discard_for_request(self, request_id: str) -> int:
        """Drop the request notifications once the request is resolved"""
        notifications = self.session.exec(
            select(Notification).where(
                Notification.request_id == request_id,
                Notification.type == NotificationType.friend_request,
            )
        ).all()
        for notification in notifications:
            self.session.delete(notification)
        self.session.flush()
        return len(notifications)
