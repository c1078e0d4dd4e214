import tomllib

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from models.account import Account
from models.common import get_session
from routes.deps import current_user, get_account_or_404, get_current_user
from settings import PROJECT_PATH

router = APIRouter()


def get_version() -> str:
    with open(PROJECT_PATH / "pyproject.toml", "rb") as f:
        return tomllib.load(f)["project"]["version"]


@router.get("/")
async def index():
    return {"version": get_version(), "status": "ok"}


@router.get("/account/me")
async def get_current_account_info(user: Account | None = Depends(get_current_user)):
    if not user:
        return {"account": None}

    return {
        "account": {
            **user.public_info(),
            "email": user.email,
            "join_date": user.join_date.isoformat(),
        }
    }


@router.get("/account/{identifier}")
async def get_account_info(
    identifier: str,
    session: Session = Depends(get_session),
    _: Account = Depends(current_user),
):
    """Public card of a musician, by username or id"""
    return {"account": get_account_or_404(session, identifier).public_info()}


@router.post("/logout")
async def logout(request: Request):
    request.session.clear()
    return {"message": "Logged out successfully"}
