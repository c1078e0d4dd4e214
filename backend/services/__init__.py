from .errors import (
    Conflict,
    FriendshipError,
    InvalidSelfReference,
    NotFound,
    NotFriends,
    PartialFailure,
    Unauthorized,
)
from .feed import ChangeFeed, ConnectionEvent, Subscription, change_feed
from .friendship import RequestLifecycleManager, SendOutcome
from .notifications import Inbox, NotificationDispatcher
from .resolver import ConnectionStateResolver

__all__ = [
    "ChangeFeed",
    "Conflict",
    "ConnectionEvent",
    "ConnectionStateResolver",
    "FriendshipError",
    "Inbox",
    "InvalidSelfReference",
    "NotFound",
    "NotFriends",
    "NotificationDispatcher",
    "PartialFailure",
    "RequestLifecycleManager",
    "SendOutcome",
    "Subscription",
    "Unauthorized",
    "change_feed",
]
