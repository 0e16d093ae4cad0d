"""Shared-password authentication for the captcha service."""

import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

security = HTTPBearer(auto_error=False)


def password_matches(request: Request, candidate: str | None) -> bool:
    """Constant-time comparison against the configured APP_PASSWORD."""
    expected = request.app.state.settings.app_password
    if not candidate or not expected:
        return False
    return secrets.compare_digest(candidate.encode(), expected.encode())


def require_password(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> None:
    """Expect `Authorization: Bearer <password>`."""
    candidate = credentials.credentials if credentials else None
    if not password_matches(request, candidate):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized. A valid password is required in the Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )
