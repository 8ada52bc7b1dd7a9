from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from jose import JWTError, jwt
from app.core.config import settings
from app.schemas.auth import Principal, TokenData
from app.services.exceptions import AuthenticationError


def create_access_token(data: dict, expires_delta: int = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_delta or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def create_principal_token(user_id: str, business_id: str, branch_scope: Optional[Iterable[str]] = None, expires_delta: int = None):
    """Issue a token carrying the claims ``decode_access_token`` expects."""
    return create_access_token(
        {"sub": user_id, "business_id": business_id, "branch_scope": list(branch_scope or [])},
        expires_delta=expires_delta,
    )


def decode_access_token(token: str, correlation_id: Optional[str] = None) -> Principal:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise AuthenticationError(f"Invalid token: {e}", correlation_id=correlation_id)

    data = TokenData(**{k: payload.get(k) for k in ("sub", "business_id") if payload.get(k)},
                     branch_scope=payload.get("branch_scope") or [])
    if not data.sub or not data.business_id:
        raise AuthenticationError("Token is missing subject or business", correlation_id=correlation_id)
    return Principal(user_id=data.sub, business_id=data.business_id, branch_scope=data.branch_scope)
