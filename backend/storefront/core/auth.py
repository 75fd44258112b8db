"""
Authentication and authorization for the Storefront API

- Token issuance/verification (HS256 JWT via python-jose)
- Password hashing (bcrypt via passlib)
- FastAPI dependencies: ``authenticate`` and ``authorize(roles)``

Usage:
    @router.get("/me")
    def me(user: User = Depends(authenticate)):
        ...

    @router.get("/users")
    def list_users(user: User = Depends(authorize(["admin"]))):
        ...
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from storefront.core.dependencies import get_settings, get_user_repository
from storefront.core.config import Settings
from storefront.core.errors import AuthError, ForbiddenError, ServerError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = timedelta(days=1)

# Security scheme for bearer tokens; missing header is handled by authenticate
security = HTTPBearer(auto_error=False)


# =============================================================================
# Tokens
# =============================================================================

@dataclass
class TokenVerification:
    """Outcome of verify_token: claims on success, an error string otherwise"""
    claims: Optional[dict] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


def issue_token(user_id, settings: Settings, claims: dict = None, ttl: timedelta = None) -> str:
    """
    Sign a token for a user

    Args:
        user_id: id of the user the token stands for
        settings: application settings (secret and algorithm)
        claims: extra claims to embed (username, email, ...)
        ttl: lifetime, defaults to JWT_EXPIRES_MINUTES (one day)

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    lifetime = ttl or timedelta(minutes=settings.JWT_EXPIRES_MINUTES) or DEFAULT_TOKEN_TTL
    payload = dict(claims or {})
    payload.update({
        "id": str(user_id),
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + lifetime).timestamp()),
    })
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, settings: Settings) -> TokenVerification:
    """Decode and validate a token. Never raises."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        return TokenVerification(error="Token has expired")
    except JWTError as e:
        return TokenVerification(error=f"Invalid token: {e}")

    if not (claims.get("id") or claims.get("sub")):
        return TokenVerification(error="Invalid token payload: missing user id")
    return TokenVerification(claims=claims)


# =============================================================================
# Passwords
# =============================================================================

class PasswordHasher:
    """One-way adaptive hashing of user passwords"""

    def __init__(self, rounds: int = 10):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """True when the candidate matches; a wrong password is just False"""
        if not password_hash:
            return False
        try:
            return self._context.verify(password, password_hash)
        except (ValueError, TypeError) as e:
            logger.error(f"Stored password hash could not be verified: {e}")
            raise ServerError("Could not verify credentials")


# =============================================================================
# Dependencies
# =============================================================================

def role_allowed(role: Optional[str], allowed_roles: Iterable[str]) -> bool:
    """Case-insensitive role membership check"""
    if not role:
        return False
    return role.upper() in {allowed.upper() for allowed in allowed_roles}


def authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
    users=Depends(get_user_repository),
):
    """
    Dependency that resolves the bearer token into the full user record
    (password excluded) and attaches it to ``request.state.user``.
    """
    if not credentials or not credentials.credentials:
        raise AuthError("Authentication required")

    verification = verify_token(credentials.credentials, settings)
    if not verification.ok:
        raise AuthError(verification.error)

    try:
        user_id = UUID(str(verification.claims.get("id") or verification.claims.get("sub")))
    except ValueError:
        raise AuthError("Invalid token payload: malformed user id")

    user = users.find_by_id(user_id)
    if not user:
        raise AuthError("Unauthorised")

    request.state.user = user
    return user


def authorize(allowed_roles: Iterable[str]):
    """
    Dependency factory for role-based access control.

    Runs after ``authenticate`` and compares the attached user's role
    case-insensitively against the allowed set.

    Usage:
        @router.post("/register")
        def register(user: User = Depends(authorize(["STORE_ADMIN", "STORE_WORKER"]))):
            ...
    """
    allowed = list(allowed_roles)

    def role_checker(request: Request, user=Depends(authenticate)):
        current = getattr(request.state, "user", None) or user
        if not role_allowed(getattr(current, "role", None), allowed):
            raise ForbiddenError(f"Access denied. Required role: {', '.join(allowed)}")
        return current

    return role_checker
