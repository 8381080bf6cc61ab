from fastapi import HTTPException, status
from config import JWT_SECRET_KEY, JWT_ALGORITHM
from dataclasses import dataclass, field
from typing import Optional
import jwt
import logging
import uuid

logger = logging.getLogger(__name__)


@dataclass
class TokenUser:
    id: uuid.UUID
    email: Optional[str]
    role: Optional[str]
    payload: dict = field(default_factory=dict)


class AuthHelpers:
    """Helper functions for authentication operations"""

    def verify_token(self, token: str) -> TokenUser:
        """
        Verify JWT token locally
        Tokens are issued by the external identity provider; only the signature,
        expiry and the `sub` claim are checked here
        """
        if not JWT_SECRET_KEY:
            logger.error("JWT_SECRET_KEY is not configured")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Authentication not configured"
            )

        try:
            payload = jwt.decode(
                token,
                JWT_SECRET_KEY,
                algorithms=[JWT_ALGORITHM],
                options={
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_signature": True,
                    "verify_aud": False
                }
            )
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token expired")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token expired"
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token"
            )

        subject = payload.get("sub")
        if not subject:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: missing user ID"
            )

        try:
            user_id = uuid.UUID(str(subject))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: malformed user ID"
            )

        user_metadata = payload.get("user_metadata") or {}
        return TokenUser(
            id=user_id,
            email=payload.get("email"),
            role=user_metadata.get("role"),
            payload=payload
        )


auth_helpers = AuthHelpers()
