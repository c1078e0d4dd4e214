import datetime
from enum import Enum

from sqlalchemy import Column
from sqlmodel import SQLModel, Field

from models.connection import new_id
from models.types import UtcAwareDateTime, utc_now


class NotificationType(str, Enum):
    friend_request = "friend_request"
    friend_accepted = "friend_accepted"
    friend_declined = "friend_declined"


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: str = Field(default_factory=new_id, primary_key=True)
    owner_id: str = Field(foreign_key="accounts.id", index=True)
    type: NotificationType
    from_id: str = Field(foreign_key="accounts.id")
    # The request that produced it, no FK: requests are deleted once resolved
    request_id: str | None = Field(default=None, index=True)
    read: bool = Field(default=False)
    created_at: datetime.datetime = Field(
        default_factory=utc_now,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
