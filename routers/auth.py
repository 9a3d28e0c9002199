from fastapi import APIRouter, Depends, Request, Response

from core.config import settings
from core.errors import unwrap
from core.logging_config import logger
from core.rate_limiter import get_rate_limit_identifier, require_rate_limit
from core.store import Store
from dependencies.auth import create_session_token, get_session
from dependencies.store import get_store
from models.session import Session
from models.organization import OrganizationRegister
from models.user import LoginRequest, UserRegister
from services.auth_service import authenticate, register_organization, register_user
from services.permission_service import build_session


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


def _set_session_cookie(response: Response, user_id: str):
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(user_id),
        max_age=settings.SESSION_TTL_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


# ============================================================
# REGISTER (owner accounts, or an organization with its administrator)
# ============================================================
@router.post("/register", status_code=201, summary="Register an owner account")
def register(payload: UserRegister, response: Response, store: Store = Depends(get_store)):
    user = unwrap(register_user(store, payload))
    _set_session_cookie(response, user.id)
    return {"success": True, "data": user}


@router.post("/register/organization", status_code=201, summary="Register an organization and its administrator")
def register_org(payload: OrganizationRegister, response: Response, store: Store = Depends(get_store)):
    registration = unwrap(register_organization(store, payload))
    _set_session_cookie(response, registration.user.id)
    return {"success": True, "data": registration}


# ============================================================
# LOGIN (sets the session cookie)
# ============================================================
@router.post("/login", summary="Authenticate user")
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    store: Store = Depends(get_store),
):
    email = payload.email.strip().lower()

    require_rate_limit(
        get_rate_limit_identifier(request, "login", email),
        settings.RATE_LIMIT_LOGIN_MAX,
        settings.RATE_LIMIT_LOGIN_WINDOW_SECONDS,
    )

    result = authenticate(store, email, payload.password)
    if not result.success:
        logger.warning(f"Login attempt failed for {email}")
    user_id = unwrap(result)

    _set_session_cookie(response, user_id)
    return {"success": True, "data": build_session(store, user_id)}


# ============================================================
# LOGOUT
# ============================================================
@router.post("/logout", summary="Clear the session cookie")
def logout(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return {"success": True, "data": None}


# ============================================================
# CURRENT SESSION
# ============================================================
@router.get("/me", summary="Current session with permissions")
def read_me(session: Session = Depends(get_session)):
    """
    Always answers 200 with the tagged session; clients branch on
    `authenticated`.
    """
    return {"success": True, "data": session}
