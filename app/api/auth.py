"""
Authentication Dependencies

Bearer token authentication standing in for the external identity provider.
Each demo token resolves to a user with one role and, for students and tutors,
the profile id that user acts as.
"""
import logging
from typing import Callable, Dict, NamedTuple, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.domain.errors import NotFoundError
from app.domain.lifecycle import user_id_for
from app.domain.records import Role
from app.services.backends import MarketplaceBackend, get_backend
from app.services.seed_data import DEMO_ADMIN_USER_ID, DEMO_STUDENT_ID, DEMO_TUTOR_ID

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


class CurrentUser(NamedTuple):
    user_id: str
    role: Role
    # Student or tutor id this user acts as; None for admins
    profile_id: Optional[str] = None


# Demo tokens (in production, decode the provider's JWT)
DEMO_TOKENS: Dict[str, CurrentUser] = {
    "demo_student_token": CurrentUser(user_id_for(DEMO_STUDENT_ID), Role.STUDENT, DEMO_STUDENT_ID),
    "demo_tutor_token": CurrentUser(user_id_for(DEMO_TUTOR_ID), Role.TUTOR, DEMO_TUTOR_ID),
    "demo_admin_token": CurrentUser(DEMO_ADMIN_USER_ID, Role.ADMIN),
    "demo_token_12345": CurrentUser(DEMO_ADMIN_USER_ID, Role.ADMIN),
}


def _auth_error(status_code: int, code: str, message: str, details: str) -> HTTPException:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "code": code,
                "message": message,
                "details": details
            }
        },
        headers=headers
    )


def resolve_token(token: str) -> CurrentUser:
    """
    Resolve a bearer token to its user.

    Raises:
        HTTPException: 401 AUTH_002 if the token is unknown
    """
    user = DEMO_TOKENS.get(token)
    if user is None:
        logger.warning(f"Invalid token attempt: {token[:10]}...")
        raise _auth_error(
            status.HTTP_401_UNAUTHORIZED,
            "AUTH_002",
            "Invalid or expired token",
            "The provided token is not valid"
        )
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    backend: MarketplaceBackend = Depends(get_backend),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated user.

    When the backend stores accounts, role and profile come from the stored
    user record rather than the token.

    Raises:
        HTTPException: 401 AUTH_001 if the Authorization header is missing,
            401 AUTH_003 if the account is not registered
    """
    if credentials is None:
        raise _auth_error(
            status.HTTP_401_UNAUTHORIZED,
            "AUTH_001",
            "Authorization header missing",
            "Please provide a valid bearer token"
        )
    user = resolve_token(credentials.credentials)

    try:
        stored = await backend.resolve_user(user.user_id)
    except NotFoundError:
        logger.warning(f"No stored account for {user.user_id}")
        raise _auth_error(
            status.HTTP_401_UNAUTHORIZED,
            "AUTH_003",
            "User not registered",
            f"No account found for '{user.user_id}'"
        )

    if stored is None:
        return user
    return CurrentUser(stored.id, stored.role, stored.profile_id)


def require_roles(*roles: Role) -> Callable:
    """
    Build a dependency that admits only the given roles.

    Usage:
        @router.post("/approve")
        async def approve(user: CurrentUser = Depends(require_roles(Role.ADMIN))):
            ...
    """
    allowed = frozenset(roles)

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            logger.warning(f"User {user.user_id} with role {user.role.value} denied")
            raise _auth_error(
                status.HTTP_403_FORBIDDEN,
                "AUTH_004",
                "Insufficient role",
                f"Requires one of: {', '.join(sorted(r.value for r in allowed))}"
            )
        return user

    return dependency


def ensure_acts_as(user: CurrentUser, profile_id: str) -> None:
    """
    Admins act on any profile; students and tutors only on their own.

    Raises:
        HTTPException: 403 AUTH_004 for another user's profile
    """
    if user.role == Role.ADMIN or user.profile_id == profile_id:
        return
    logger.warning(f"User {user.user_id} tried to act as {profile_id}")
    raise _auth_error(
        status.HTTP_403_FORBIDDEN,
        "AUTH_004",
        "Insufficient role",
        f"Not allowed to act on '{profile_id}'"
    )
