import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from taskhub.core.config import settings
from taskhub.core.errors import Unauthenticated
from taskhub.schemas.user import Principal

logger = logging.getLogger(__name__)

ALGORITHM = settings.ALGORITHM

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)

def create_session_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """Mint the bearer token carrying the principal claims for ``user``."""
    return create_access_token(
        data={"sub": user.id, "name": user.name, "email": user.email},
        expires_delta=expires_delta,
    )

def validate(token: Optional[str]) -> Principal:
    """
    Resolve a bearer token to its Principal.

    Absent, malformed, badly signed and expired tokens all raise
    ``Unauthenticated``; jose checks ``exp`` against the current time.
    """
    if not token:
        raise Unauthenticated("Not authenticated")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info("Rejected session token: %s", e)
        raise Unauthenticated("Token is not valid")

    user_id = payload.get("sub")
    if not user_id or payload.get("exp") is None:
        logger.info("Rejected session token: missing sub/exp claim")
        raise Unauthenticated("Token is not valid")

    return Principal(
        id=str(user_id),
        name=payload.get("name") or "",
        email=payload.get("email") or "",
    )
