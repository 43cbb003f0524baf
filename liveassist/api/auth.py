"""JWT authentication for the HTTP API.

Bearer tokens are decoded with PyJWT. With jwt_secret set, HS256 signatures
are verified; with jwt_verify disabled (development), only expiry is checked.
"""

from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel

from liveassist.config import get_settings

# =============================================================================
# Token Models
# =============================================================================


class TokenPayload(BaseModel):
    """Validated JWT token payload."""

    sub: str  # Subject (user ID)
    email: str | None = None
    preferred_username: str | None = None
    exp: int | None = None
    iat: int | None = None


# =============================================================================
# Token Validation
# =============================================================================


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> TokenPayload:
    """Decode and validate a JWT token.

    Raises:
        HTTPException: 401 if the token is invalid, expired or cannot be verified
    """
    settings = get_settings()

    # Remove "Bearer " prefix if present
    if token.startswith("Bearer "):
        token = token[7:]

    try:
        if not settings.jwt_verify:
            # Development mode: skip signature verification
            payload = jwt.decode(
                token,
                options={"verify_signature": False, "verify_exp": True, "verify_aud": False},
                algorithms=["HS256", "RS256"],
            )
        elif settings.jwt_secret is not None:
            payload = jwt.decode(
                token,
                settings.jwt_secret.get_secret_value(),
                algorithms=["HS256"],
                audience=settings.jwt_audience,
                options={"verify_aud": settings.jwt_audience is not None},
            )
        else:
            raise _unauthorized("Token verification is not configured")

        return TokenPayload(**payload)

    except jwt.ExpiredSignatureError as e:
        raise _unauthorized("Token has expired") from e
    except jwt.InvalidAudienceError as e:
        raise _unauthorized("Invalid token audience") from e
    except jwt.PyJWTError as e:
        raise _unauthorized(f"Invalid token: {e}") from e


# =============================================================================
# FastAPI Dependencies
# =============================================================================


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> TokenPayload:
    """Extract and validate JWT token from Authorization header."""
    if not authorization:
        raise _unauthorized("Authorization header required")

    return decode_token(authorization)


# Alias for clearer intent in route definitions
RequireAuth = Annotated[TokenPayload, Depends(get_current_user)]
