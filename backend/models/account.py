"""Account model: the profile side is owned elsewhere, connections only need identity"""

import datetime

from sqlmodel import SQLModel, Field, Column, Session, select

from .common import CamelModel
from .types import UtcAwareDateTime, utc_now


class Account(SQLModel, CamelModel, table=True):
    __tablename__ = "accounts"

    id: str = Field(primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    username: str | None = Field(default=None, index=True, unique=True, nullable=True)
    picture: str | None = None
    join_date: datetime.datetime = Field(
        default_factory=utc_now,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )

    def public_info(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "picture": self.picture,
        }

    def __str__(self):
        return self.username or self.email


def get_account_by_identifier(session: Session, ident: str) -> Account | None:
    # Try by username first (non-null only), then by id
    account = session.exec(select(Account).where(Account.username == ident)).first()
    if account:
        return account
    return session.get(Account, ident)
