import datetime
import uuid
from enum import Enum

from sqlalchemy import UniqueConstraint, CheckConstraint, Column
from sqlmodel import SQLModel, Field

from models.types import UtcAwareDateTime, utc_now


def new_id() -> str:
    return uuid.uuid4().hex


def canonical_pair(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a < b else (b, a)


class RequestStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    cancelled = "cancelled"


class ConnectionState(str, Enum):
    """Effective relationship between two accounts, from the first one's perspective"""

    none = "none"
    pending_outgoing = "pending_outgoing"
    pending_incoming = "pending_incoming"
    friends = "friends"

    def mirrored(self) -> "ConnectionState":
        """The same relationship seen from the other account"""
        if self is ConnectionState.pending_outgoing:
            return ConnectionState.pending_incoming
        if self is ConnectionState.pending_incoming:
            return ConnectionState.pending_outgoing
        return self


class ConnectionRequest(SQLModel, table=True):
    """A live friend request.

    Only pending requests are stored: accept, decline and cancel delete the row.
    The canonical pair is unique, so a second live request for the same two
    accounts (in either direction) is rejected by the database.
    """

    __tablename__ = "connection_requests"
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_request_pair"),
        CheckConstraint("user_low_id < user_high_id", name="ck_request_order"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    from_id: str = Field(foreign_key="accounts.id", index=True)
    to_id: str = Field(foreign_key="accounts.id", index=True)

    # Canonical pair (always low < high)
    user_low_id: str = Field(foreign_key="accounts.id")
    user_high_id: str = Field(foreign_key="accounts.id")

    status: RequestStatus = Field(default=RequestStatus.pending)
    created_at: datetime.datetime = Field(
        default_factory=utc_now,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )

    @classmethod
    def between(cls, from_id: str, to_id: str) -> "ConnectionRequest":
        low, high = canonical_pair(from_id, to_id)
        return cls(from_id=from_id, to_id=to_id, user_low_id=low, user_high_id=high)

    def other_party(self, account_id: str) -> str:
        return self.to_id if account_id == self.from_id else self.from_id


class FriendListEntry(SQLModel, table=True):
    """One side of a friendship: `friend_id` is in the friend list of `owner_id`.

    A friendship is two entries, one per direction.
    """

    __tablename__ = "friend_list_entries"

    owner_id: str = Field(foreign_key="accounts.id", primary_key=True)
    friend_id: str = Field(foreign_key="accounts.id", primary_key=True, index=True)
    added_at: datetime.datetime = Field(
        default_factory=utc_now,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
