from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.api.dependencies.services import get_correlation_id
from app.core.security import decode_access_token
from app.schemas.auth import Principal
from app.services.exceptions import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_principal(
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
	correlation_id: Optional[str] = Depends(get_correlation_id),
) -> Principal:
	"""Resolve the bearer token into the calling principal."""
	credentials_exception = HTTPException(
		status_code=status.HTTP_401_UNAUTHORIZED,
		detail="Could not validate credentials",
		headers={"WWW-Authenticate": "Bearer"},
	)
	if credentials is None or not credentials.credentials:
		raise credentials_exception
	try:
		return decode_access_token(credentials.credentials, correlation_id=correlation_id)
	except AuthenticationError:
		raise credentials_exception
