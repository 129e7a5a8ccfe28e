import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from barbershop.database import get_db
from barbershop.errors import AccountDisabled, Forbidden, Unauthenticated
from barbershop.login_guard import LoginGuard
from barbershop.models import ROLE_ADMIN, User
from barbershop.security import TokenError, decode_access_token
from barbershop.settings import Settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

LEGACY_TOKEN_HEADER = "x-access-token"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_login_guard(request: Request) -> LoginGuard:
    return request.app.state.login_guard


def client_ip(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_access_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if credentials is not None and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    legacy = request.headers.get(LEGACY_TOKEN_HEADER)
    if legacy:
        return legacy
    raise Unauthenticated()


def get_current_user(
    token: str = Depends(get_access_token),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> User:
    try:
        payload = decode_access_token(settings, token)
    except TokenError as exc:
        logger.info("Rejected access token: %s", exc)
        raise Unauthenticated("Invalid token") from None

    user = db.get(User, payload["user_id"])
    if user is None:
        raise Unauthenticated("Invalid token")
    if not user.is_active:
        raise AccountDisabled()
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != ROLE_ADMIN:
        raise Forbidden("Administrator access required")
    return user
