from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Optional
import logging
import secrets

from fastapi import Depends
from fastapi.security import APIKeyHeader
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq

import config
from database import Database, get_db
from errors import Forbidden, TokenExpired, TokenInvalid, Unauthorized, ValidationError
from models import Role

logger = logging.getLogger(__name__)

# The token travels as the raw Authorization header value
token_header = APIKeyHeader(name="Authorization", auto_error=False)


@dataclass
class TokenClaims:
    user_id: int
    username: str
    role: Role
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# -------------------------------
# Passwords
# -------------------------------
def _derive(password: str, salt: bytes) -> bytes:
    return pbkdf2_hmac("sha256", password, salt, config.PBKDF2_ROUNDS, config.PBKDF2_KEY_LENGTH)


def hash_password(password: str) -> tuple[bytes, bytes]:
    """Hash a password with a fresh random salt; returns (salt, hash)."""
    if not password:
        raise ValidationError("Password is required")
    salt = secrets.token_bytes(config.SALT_SIZE)
    return salt, _derive(password, salt)


def verify_password(password: str, salt: bytes, password_hash: bytes) -> bool:
    """Check a password against a stored salt and hash in constant time."""
    if not password:
        raise ValidationError("Password is required")
    return consteq(_derive(password, salt), password_hash)


# -------------------------------
# Tokens
# -------------------------------
def create_access_token(claims: TokenClaims, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT access token for the given identity."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    now = datetime.now(UTC)
    to_encode = {
        "userId": claims.user_id,
        "username": claims.username,
        "role": Role(claims.role).value,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    """Verify signature and expiry of a token and return its claims.

    Only the configured algorithm is accepted, so a token signed with any
    other algorithm fails even when the key matches.
    """
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpired("Token has expired")
    except JWTError as e:
        raise TokenInvalid(str(e))
    try:
        return TokenClaims(
            user_id=int(payload["userId"]),
            username=str(payload["username"]),
            role=Role(payload["role"]),
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise TokenInvalid(f"Malformed token claims: {e}")


# -------------------------------
# Guards
# -------------------------------
async def get_current_user(
    authorization: Optional[str] = Depends(token_header),
    store: Database = Depends(get_db),
) -> TokenClaims:
    """Resolve the bearer token on the current request to a known user.

    A token that verifies but names a user the store does not hold (for
    example one issued before the in-memory store was wiped) is rejected.
    """
    if not authorization:
        raise Unauthorized("Authentication token required")
    token = authorization.strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    try:
        claims = decode_access_token(token)
    except TokenExpired:
        raise Unauthorized("Token has expired", expired=True)
    except TokenInvalid as e:
        logger.info(f"Rejected token: {e}")
        raise Unauthorized("Invalid authentication token")
    user = store.get_user(claims.user_id)
    if user is None or user["username"] != claims.username:
        logger.info(f"Rejected token for unknown user {claims.user_id}")
        raise Unauthorized("User not found")
    claims.role = Role(user["role"])
    return claims


async def get_current_admin(current_user: TokenClaims = Depends(get_current_user)) -> TokenClaims:
    """Require the authenticated user to hold the admin role."""
    if not current_user.is_admin:
        logger.info(f"User {current_user.user_id} denied admin access")
        raise Forbidden("Admin privileges required")
    return current_user
