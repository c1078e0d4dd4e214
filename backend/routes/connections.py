from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from sqlmodel import Session

from models.account import Account
from models.common import get_session
from models.connection import ConnectionRequest
from routes.deps import (
    current_user,
    get_account_or_404,
    get_feed,
    get_manager,
    http_error,
)
from services.cache import cache
from services.errors import FriendshipError
from services.feed import ChangeFeed
from services.friendship import RequestLifecycleManager
from services.retry import call_with_retry

router = APIRouter(prefix="/connections")


@router.get("/status/{identifier}")
async def connection_status(
    identifier: str,
    session: Session = Depends(get_session),
    user: Account = Depends(current_user),
    manager: RequestLifecycleManager = Depends(get_manager),
):
    """Return the relationship status between the current user and the target user.
    Possible statuses: none, self, friends, pending_outgoing, pending_incoming
    """
    target = get_account_or_404(session, identifier)
    if user.id == target.id:
        return {"status": "self", "request_id": None}

    state, pending = manager.resolver.inspect(user.id, target.id)
    return {"status": state.value, "request_id": pending.id if pending else None}


@router.post("/request/{identifier}")
async def send_request(
    identifier: str,
    session: Session = Depends(get_session),
    user: Account = Depends(current_user),
    manager: RequestLifecycleManager = Depends(get_manager),
):
    recipient = get_account_or_404(session, identifier)
    try:
        outcome = call_with_retry(session, manager.send, user.id, recipient.id)
    except FriendshipError as e:
        raise http_error(e)

    return {
        "created": outcome.created,
        "request_id": outcome.request_id,
        "status": outcome.state.value,
    }


@router.post("/accept/{request_id}")
async def accept_request(
    request_id: str,
    session: Session = Depends(get_session),
    user: Account = Depends(current_user),
    manager: RequestLifecycleManager = Depends(get_manager),
):
    try:
        state = call_with_retry(session, manager.accept, request_id, user.id)
    except FriendshipError as e:
        raise http_error(e)
    return {"status": state.value}


@router.post("/decline/{request_id}")
async def decline_request(
    request_id: str,
    session: Session = Depends(get_session),
    user: Account = Depends(current_user),
    manager: RequestLifecycleManager = Depends(get_manager),
):
    try:
        state = call_with_retry(session, manager.decline, request_id, user.id)
    except FriendshipError as e:
        raise http_error(e)
    return {"status": state.value}


@router.post("/cancel/{request_id}")
async def cancel_request(
    request_id: str,
    session: Session = Depends(get_session),
    user: Account = Depends(current_user),
    manager: RequestLifecycleManager = Depends(get_manager),
):
    try:
        state = call_with_retry(session, manager.cancel, request_id, user.id)
    except FriendshipError as e:
        raise http_error(e)
    return {"status": state.value}


@router.delete("/friends/{identifier}")
async def unfriend(
    identifier: str,
    session: Session = Depends(get_session),
    user: Account = Depends(current_user),
    manager: RequestLifecycleManager = Depends(get_manager),
):
    other = get_account_or_404(session, identifier)
    try:
        call_with_retry(session, manager.unfriend, user.id, other.id, user.id)
    except FriendshipError as e:
        raise http_error(e)
    return {"message": "Unfriended"}


@router.get("/friends")
async def list_friends(
    session: Session = Depends(get_session),
    user: Account = Depends(current_user),
    manager: RequestLifecycleManager = Depends(get_manager),
):
    friend_ids = manager.list_friends(user.id)
    accounts = cache.get_accounts(sorted(friend_ids), session)
    friends = [accounts[fid] for fid in sorted(friend_ids) if fid in accounts]
    friends.sort(key=lambda f: (f["name"] or "").lower())
    return {"friends": friends}


def _request_payload(request: ConnectionRequest, other: dict | None) -> dict:
    return {
        "request_id": request.id,
        "user": other,
        "created_at": request.created_at.isoformat(),
    }


@router.get("/pending")
async def pending_requests(
    session: Session = Depends(get_session),
    user: Account = Depends(current_user),
    manager: RequestLifecycleManager = Depends(get_manager),
):
    pending = manager.list_pending(user.id)
    others = cache.get_accounts(
        [r.other_party(user.id) for r in pending["incoming"] + pending["outgoing"]],
        session,
    )
    return {
        direction: [
            _request_payload(r, others.get(r.other_party(user.id)))
            for r in requests
        ]
        for direction, requests in pending.items()
    }


@router.get("/feed")
async def connection_feed(
    request: Request,
    with_: str | None = Query(default=None, alias="with"),
    session: Session = Depends(get_session),
    user: Account = Depends(current_user),
    feed: ChangeFeed = Depends(get_feed),
):
    """Server-sent events with the connection states of the current user.

    With `?with=<identifier>` only the pair with that musician is followed.
    """
    other_id = None
    if with_:
        other = get_account_or_404(session, with_)
        if other.id == user.id:
            raise HTTPException(status_code=400, detail="Cannot follow yourself")
        other_id = other.id
    subscription = feed.subscribe(session, user.id, other_id)

    async def events():
        async with subscription:
            async for event in subscription:
                if await request.is_disconnected():
                    break
                yield f"event: connection\ndata: {event.model_dump_json()}\n\n"

    return StreamingResponse(events(), media_type="text/event-stream")
