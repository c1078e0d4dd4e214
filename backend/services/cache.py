# this file manages a cache of the public account info shown next to requests
from functools import partial
from typing import Iterable

from expiringdict import ExpiringDict
from sqlmodel import Session, select

import settings
from models.account import Account

new_cache = partial(
    ExpiringDict,
    max_len=10_000,
    max_age_seconds=10 * 60,  # 10 minutes cache
    items={},
)


class AccountCache:
    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.account_cache = new_cache()

    def get_accounts(self, account_ids: Iterable[str], db: Session) -> dict[str, dict]:
        account_ids = list(dict.fromkeys(account_ids))
        found: dict[str, dict] = {}
        if self.enabled:
            found = {
                aid: self.account_cache[aid]
                for aid in account_ids
                if aid in self.account_cache
            }
        missing_ids = [aid for aid in account_ids if aid not in found]
        if missing_ids:
            missing = db.exec(select(Account).where(Account.id.in_(missing_ids))).all()
            for account in missing:
                found[account.id] = account.public_info()
                if self.enabled:
                    self.account_cache[account.id] = found[account.id]
        return found


cache = AccountCache(enabled=settings.CACHE_ENABLED)
