from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from shopledger.api.errors import http_error
from shopledger.api.security import TOKEN_COOKIE, optional_actor
from shopledger.config import settings
from shopledger.db import get_db
from shopledger.models.user import User
from shopledger.schemas.ledger_schema import UserOut
from shopledger.services.auth_service import Actor, AuthException, authenticate, issue_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/login", summary="Exchange credentials for a session token")
def login(payload: LoginIn, response: Response, db: Session = Depends(get_db)):
    try:
        user = authenticate(db, payload.email, payload.password)
    except AuthException as e:
        raise http_error(e)
    token = issue_token(user.id, user.role)
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
        max_age=settings.TOKEN_TTL_MINUTES * 60,
        path="/",
    )
    return {
        "success": True,
        "user": UserOut.model_validate(user).model_dump(mode="json"),
        "token": token,
    }


@router.get("/me", summary="Who is the current token for")
def me(actor: Optional[Actor] = Depends(optional_actor), db: Session = Depends(get_db)):
    if actor is None:
        return {"authenticated": False}
    user = db.query(User).filter(User.id == actor.user_id).first()
    if user is None or not user.is_active:
        return {"authenticated": False}
    return {"authenticated": True, "user": UserOut.model_validate(user).model_dump(mode="json")}


@router.post("/logout", summary="Clear the session cookie")
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE, path="/")
    return {"success": True}
