"""
Bearer JWT authentication for the API.

Tokens are issued by the account service; this module only verifies them
and exposes the caller as a FastAPI dependency.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


class ApiAuth:
    """Signs and verifies API access tokens."""

    def __init__(self, jwt_secret: str, jwt_expiration_hours: int = 24):
        """
        Args:
            jwt_secret: Secret for JWT signing
            jwt_expiration_hours: JWT token expiration in hours
        """
        self.jwt_secret = jwt_secret
        self.jwt_expiration_hours = jwt_expiration_hours

    def create_jwt(self, user_id: int, email: Optional[str] = None) -> str:
        """Create a token for a user."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + timedelta(hours=self.jwt_expiration_hours),
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=JWT_ALGORITHM)

    def verify_jwt(self, token: str) -> dict:
        """Verify and decode a token.

        Raises:
            HTTPException: If token is invalid or expired
        """
        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            if "expired" in str(e).lower():
                raise HTTPException(
                    status_code=401,
                    detail={"code": "TOKEN_EXPIRED", "message": "Token has expired"},
                )
            raise HTTPException(
                status_code=401,
                detail={"code": "INVALID_TOKEN", "message": "Invalid token"},
            )

        try:
            payload["user_id"] = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise HTTPException(
                status_code=401,
                detail={"code": "INVALID_TOKEN", "message": "Invalid token"},
            )
        return payload


security = HTTPBearer(auto_error=False)

_auth_instance: Optional[ApiAuth] = None


def set_auth_instance(auth: ApiAuth):
    global _auth_instance
    _auth_instance = auth


def get_auth() -> ApiAuth:
    if _auth_instance is None:
        raise RuntimeError("Auth not initialized")
    return _auth_instance


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """FastAPI dependency returning the verified token payload.

    The payload carries the numeric ``user_id`` and the ``email`` claim.
    """
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "UNAUTHORIZED", "message": "Not authenticated"},
        )
    return get_auth().verify_jwt(credentials.credentials)
