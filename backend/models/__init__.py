"""Models package for the SoundAlchemy connections backend"""

from .common import get_session, CamelModel
from .types import UtcAwareDateTime
from .account import Account
from .connection import (
    ConnectionRequest,
    ConnectionState,
    FriendListEntry,
    RequestStatus,
    canonical_pair,
)
from .notification import Notification, NotificationType

__all__ = [
    "Account",
    "CamelModel",
    "ConnectionRequest",
    "ConnectionState",
    "FriendListEntry",
    "Notification",
    "NotificationType",
    "RequestStatus",
    "UtcAwareDateTime",
    "canonical_pair",
    "get_session",
]
