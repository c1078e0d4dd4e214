"""Notification fan-out and the recipient's inbox.

A notification is always written after the state it talks about has been
committed. Its failure is logged and never propagated: the recipient still
sees a pending request through the resolver, a lost request could not be
recovered the same way.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from models.account import Account
from models.notification import Notification, NotificationType
from services.cache import cache
from services.email import send_friend_accepted_email, send_friend_request_email
from services.errors import NotFound
from services.store import NotificationSink

logger = logging.getLogger("soundalchemy.notifications")


class NotificationDispatcher:
    def __init__(self, session: Session, sink: NotificationSink | None = None):
        self.session = session
        self.sink = sink or NotificationSink(session)

    def notify(
        self,
        to_id: str,
        type: NotificationType,
        from_id: str,
        *,
        request_id: str | None = None,
    ) -> Notification | None:
        try:
            notification = self.sink.append(to_id, type, from_id, request_id)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Could not deliver {type.value} from {from_id} to {to_id}")
            return None

        logger.debug(f"Notified {to_id}: {type.value} from {from_id}")
        self._email(to_id, type, from_id)
        return notification

    def _email(self, to_id: str, type: NotificationType, from_id: str):
        recipient = self.session.get(Account, to_id)
        sender = self.session.get(Account, from_id)
        if recipient is None or sender is None:
            return
        if type == NotificationType.friend_request:
            send_friend_request_email(requester=sender, recipient=recipient)
        elif type == NotificationType.friend_accepted:
            send_friend_accepted_email(acceptor=sender, original_requester=recipient)


class Inbox:
    """Operations the owner performs on their own notifications"""

    def __init__(self, session: Session, account_id: str):
        self.session = session
        self.account_id = account_id
        self.sink = NotificationSink(session)

    def entries(self, unread_only: bool = False) -> list[dict]:
        notifications = self.sink.inbox(self.account_id, unread_only=unread_only)
        senders = cache.get_accounts((n.from_id for n in notifications), self.session)
        return [
            {
                "id": n.id,
                "type": n.type.value,
                "read": n.read,
                "request_id": n.request_id,
                "created_at": n.created_at.isoformat(),
                "from": senders.get(n.from_id, {"id": n.from_id}),
            }
            for n in notifications
        ]

    def unread_count(self) -> int:
        return self.sink.unread_count(self.account_id)

    def _get(self, notification_id: str) -> Notification:
        notification = self.sink.get(self.account_id, notification_id)
        if notification is None:
            raise NotFound("Notification not found.")
        return notification

    def mark_read(self, notification_id: str):
        self.sink.mark_read(self._get(notification_id))
        self.session.commit()

    def mark_all_read(self) -> int:
        unread = self.sink.inbox(self.account_id, unread_only=True)
        for notification in unread:
            self.sink.mark_read(notification)
        self.session.commit()
        return len(unread)

    def delete(self, notification_id: str):
        self.sink.delete(self._get(notification_id))
        self.session.commit()

    def clear(self) -> int:
        notifications = self.sink.inbox(self.account_id)
        for notification in notifications:
            self.sink.delete(notification)
        self.session.commit()
        return len(notifications)
