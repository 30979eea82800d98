import logging
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from fastapi import APIRouter, Depends, Request, Response
from jose import JWTError, jwt

from contest_tracker.config import Settings
from contest_tracker.deps import get_settings, get_user_repo
from contest_tracker.models import UserLogin, UserRead, UserRegister
from contest_tracker.repositories.users import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def create_access_token(user: UserRead, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode = {"id": str(user.id), "name": user.name, "email": user.email, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_user_id(token: Optional[str], settings: Settings) -> Optional[int]:
    """Verify signature and expiry and return the embedded user id, or None."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if "exp" not in payload:
        return None
    try:
        return int(payload.get("id"))
    except (TypeError, ValueError):
        return None


def resolve_user_id(cookies: Mapping[str, str], settings: Settings) -> Optional[int]:
    # the primary cookie wins when both are present
    token = cookies.get(settings.auth_cookie_name) or cookies.get(settings.legacy_auth_cookie_name)
    return decode_user_id(token, settings)


def get_current_user_id(request: Request, settings: Settings = Depends(get_settings)) -> Optional[int]:
    return resolve_user_id(request.cookies, settings)


def set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    response.delete_cookie(key=settings.auth_cookie_name, path="/")
    response.delete_cookie(key=settings.legacy_auth_cookie_name, path="/")


@router.post("/register", status_code=201)
def register(
    body: UserRegister,
    response: Response,
    users: UserRepository = Depends(get_user_repo),
    settings: Settings = Depends(get_settings),
):
    user = users.register(body.name, body.email, body.password)
    token = create_access_token(user, settings)
    set_auth_cookie(response, token, settings)
    return {"token": token, "user": user}


@router.post("/login")
def login(
    body: UserLogin,
    response: Response,
    users: UserRepository = Depends(get_user_repo),
    settings: Settings = Depends(get_settings),
):
    user = users.authenticate(body.email, body.password)
    token = create_access_token(user, settings)
    set_auth_cookie(response, token, settings)
    logger.info("user %s logged in", user.id)
    return {"token": token, "user": user}


@router.post("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    clear_auth_cookies(response, settings)
    return {"success": True}
