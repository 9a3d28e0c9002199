from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from core.config import settings
from core.store import Store
from core.utils import utcnow
from dependencies.store import get_store
from models.session import AuthenticatedSession, Session, UnauthenticatedSession
from services.permission_service import build_session


# ============================================================
# SESSION TOKEN (signed JWT carried in a cookie)
# ============================================================
def create_session_token(user_id: str, ttl_minutes: Optional[int] = None) -> str:
    now = utcnow()
    expires = now + timedelta(minutes=ttl_minutes or settings.SESSION_TTL_MINUTES)
    payload = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
    }
    return jwt.encode(payload, settings.SESSION_SECRET, algorithm=settings.SESSION_ALGORITHM)


def decode_session_token(token: Optional[str]) -> Optional[str]:
    """User id from a valid token, None for missing/invalid/expired tokens."""
    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.SESSION_SECRET,
            algorithms=[settings.SESSION_ALGORITHM],
        )
    except JWTError:
        return None

    user_id = payload.get("sub")
    return user_id if isinstance(user_id, str) and user_id else None


def _token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token

    # Non-browser clients may send the same token as a Bearer header
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


# ============================================================
# SESSION RESOLUTION (fresh user + permissions per request)
# ============================================================
def get_session(request: Request, store: Store = Depends(get_store)) -> Session:
    user_id = decode_session_token(_token_from_request(request))
    if user_id is None:
        return UnauthenticatedSession()
    return build_session(store, user_id)


def get_current_session(session: Session = Depends(get_session)) -> AuthenticatedSession:
    if not isinstance(session, AuthenticatedSession):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    return session


def get_administrator_id(session: AuthenticatedSession = Depends(get_current_session)) -> str:
    """Administrator profile id of the caller; 400 when the profile is missing."""
    if not session.administrator_id:
        raise HTTPException(
            status_code=400,
            detail={
                "success": False,
                "error": "Administrator profile is not configured",
                "code": "ADMIN_PROFILE_INVALID",
            },
        )
    return session.administrator_id
