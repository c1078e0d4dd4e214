from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from models.account import Account
from models.common import get_session
from routes.deps import current_user
from services.errors import NotFound
from services.notifications import Inbox

router = APIRouter(prefix="/notifications")


def get_inbox(
    session: Session = Depends(get_session), user: Account = Depends(current_user)
) -> Inbox:
    return Inbox(session, user.id)


@router.get("")
async def list_notifications(unread: bool = False, inbox: Inbox = Depends(get_inbox)):
    return {"notifications": inbox.entries(unread_only=unread)}


@router.get("/unread-count")
async def unread_count(inbox: Inbox = Depends(get_inbox)):
    return {"unread": inbox.unread_count()}


@router.post("/read-all")
async def mark_all_read(inbox: Inbox = Depends(get_inbox)):
    return {"updated": inbox.mark_all_read()}


@router.post("/{notification_id}/read")
async def mark_read(notification_id: str, inbox: Inbox = Depends(get_inbox)):
    try:
        inbox.mark_read(notification_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Marked as read"}


@router.delete("/{notification_id}")
async def delete_notification(notification_id: str, inbox: Inbox = Depends(get_inbox)):
    try:
        inbox.delete(notification_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Deleted"}


@router.delete("")
async def clear_notifications(inbox: Inbox = Depends(get_inbox)):
    return {"deleted": inbox.clear()}
