from datetime import datetime, timedelta, timezone
from typing import Any, cast
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from edugate.config import settings
from edugate.infrastructure.db.models import User

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return cast(str, pwd_context.hash(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return cast(bool, pwd_context.verify(plain_password, hashed_password))


def create_access_token(
    subject: UUID | str,
    expires_minutes: int | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    lifetime = expires_minutes if expires_minutes is not None else settings.jwt_access_token_expire_minutes
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=lifetime)
    payload: dict[str, Any] = {**(extra_claims or {}), "sub": str(subject), "exp": expires_at}
    return cast(str, jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm))


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Return the verified claims, or None when the token is unusable."""
    try:
        payload = cast(dict[str, Any], jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]))
    except JWTError:
        return None
    subject = payload.get("sub")
    if not subject:
        return None
    try:
        UUID(str(subject))
    except ValueError:
        return None
    return payload


def authenticate_principal(db: Session, email: str, password: str) -> User | None:
    user = db.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()
    if user is None:
        return None
    if not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
