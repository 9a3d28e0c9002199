from typing import Iterable, Literal, Optional, Tuple

from fastapi import Depends, HTTPException, status

from core.logging_config import logger
from models.session import AuthenticatedSession, Session


GuardState = Literal["loading", "denied", "granted"]


# -----------------------------------------------------
# Parsing
# -----------------------------------------------------
def parse_permission(value) -> Optional[Tuple[str, str]]:
    """
    Split "RESOURCE:ACTION" into its two parts.

    Anything else (missing separator, extra parts, empty halves, non-string)
    returns None and logs a warning; it never raises.
    """
    if not isinstance(value, str):
        logger.warning(f"Malformed permission (not a string): {value!r}")
        return None

    parts = value.split(":")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        logger.warning(f"Malformed permission string: {value!r}")
        return None

    return parts[0], parts[1]


# -----------------------------------------------------
# Permission evaluation
# -----------------------------------------------------
def has_permission(permissions: Iterable[str], required: str) -> bool:
    if parse_permission(required) is None:
        return False
    return required in set(permissions or [])


def has_any_permission(permissions: Iterable[str], any_of: Iterable[str]) -> bool:
    granted = set(permissions or [])
    return any(has_permission(granted, p) for p in any_of)


def has_all_permissions(permissions: Iterable[str], all_of: Iterable[str]) -> bool:
    granted = set(permissions or [])
    return all(has_permission(granted, p) for p in all_of)


def _requirement(values: Optional[Iterable[str]]) -> Optional[list]:
    # An empty list counts as "not specified"
    if values is None:
        return None
    values = list(values)
    return values or None


def evaluate_permissions(
    permissions: Iterable[str],
    any_of: Optional[Iterable[str]] = None,
    all_of: Optional[Iterable[str]] = None,
) -> bool:
    """
    (any_of absent or one member held) AND (all_of absent or every member held).
    With neither set supplied access is granted.
    """
    any_of = _requirement(any_of)
    all_of = _requirement(all_of)

    any_ok = any_of is None or has_any_permission(permissions, any_of)
    all_ok = all_of is None or has_all_permissions(permissions, all_of)
    return any_ok and all_ok


def evaluate_access(
    session: Session,
    any_of: Optional[Iterable[str]] = None,
    all_of: Optional[Iterable[str]] = None,
) -> bool:
    """Boolean access for a session. Unauthenticated (or loading) is always False."""
    if not isinstance(session, AuthenticatedSession):
        return False
    return evaluate_permissions(session.permissions, any_of, all_of)


def guard_state(
    session: Session,
    any_of: Optional[Iterable[str]] = None,
    all_of: Optional[Iterable[str]] = None,
) -> GuardState:
    """Rendering state for a guarded view; "granted" exactly when evaluate_access is True."""
    if evaluate_access(session, any_of, all_of):
        return "granted"
    if getattr(session, "loading", False):
        return "loading"
    return "denied"


# -----------------------------------------------------
# FastAPI dependency wrapper
# -----------------------------------------------------
def requires_permissions(
    any_of: Optional[Iterable[str]] = None,
    all_of: Optional[Iterable[str]] = None,
    redirect_to: Optional[str] = None,
):
    """
    Usage:
        @router.post("", dependencies=[Depends(requires_permissions(all_of=["BUILDINGS:CREATE"]))])

    When `redirect_to` is set a denied request is answered with a 303 to that
    location instead of 401/403.
    """
    from dependencies.auth import get_session

    any_of = list(any_of) if any_of is not None else None
    all_of = list(all_of) if all_of is not None else None

    def dependency(session: Session = Depends(get_session)) -> AuthenticatedSession:
        if evaluate_access(session, any_of, all_of):
            return session

        if redirect_to:
            raise HTTPException(
                status_code=status.HTTP_303_SEE_OTHER,
                detail="Redirecting",
                headers={"Location": redirect_to},
            )

        if not isinstance(session, AuthenticatedSession):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
            )

        required = " OR ".join(any_of or []) or ""
        if all_of:
            required = " AND ".join(filter(None, [required and f"({required})", *all_of]))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient permissions: {required} required",
        )

    return dependency


def requires_permission(permission: str):
    """Single-permission shorthand."""
    return requires_permissions(all_of=[permission])
