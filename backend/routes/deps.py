from fastapi import Depends, Request, HTTPException
from sqlmodel import Session

from models.account import Account, get_account_by_identifier
from models.common import get_session
from services.errors import (
    Conflict,
    FriendshipError,
    InvalidSelfReference,
    NotFound,
    PartialFailure,
    Unauthorized,
)
from services.feed import ChangeFeed, change_feed
from services.friendship import RequestLifecycleManager

RETRY_MESSAGE = "Could not update friendship status, please retry"


def get_current_user_id(request: Request) -> str | None:
    return request.session.get("user_id")


def get_current_user(
    request: Request, session: Session = Depends(get_session)
) -> Account | None:
    user_id = get_current_user_id(request)
    if not user_id:
        return None
    return session.get(Account, user_id)


def current_user(user: Account = Depends(get_current_user)) -> Account:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def get_feed() -> ChangeFeed:
    return change_feed


def get_manager(
    session: Session = Depends(get_session), feed: ChangeFeed = Depends(get_feed)
) -> RequestLifecycleManager:
    return RequestLifecycleManager(session, feed=feed)


def get_account_or_404(session: Session, identifier: str) -> Account:
    account = get_account_by_identifier(session, identifier)
    if not account:
        raise HTTPException(status_code=404, detail="User not found")
    return account


def http_error(e: FriendshipError) -> HTTPException:
    """Map a service error to the response the UI shows"""
    if isinstance(e, PartialFailure):
        # never leak which half was written
        return HTTPException(status_code=503, detail=RETRY_MESSAGE)
    if isinstance(e, InvalidSelfReference):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, Unauthorized):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, Conflict):
        return HTTPException(status_code=409, detail=RETRY_MESSAGE)
    return HTTPException(status_code=400, detail=RETRY_MESSAGE)
