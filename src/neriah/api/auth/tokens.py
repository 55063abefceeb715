"""Session JWT validation."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

import jwt

from neriah.api.auth.exceptions import InvalidTokenError


@dataclass(frozen=True)
class AuthUser:
    """The authenticated caller.

    Attributes:
        id: User ID (the token's ``sub`` claim).
        email: Email claim, if present.
    """

    id: UUID
    email: str | None = None


class JWTValidator:
    """Validates HS256 session tokens issued by the auth provider."""

    ALGORITHMS = ["HS256"]

    def __init__(self, secret: str, audience: str | None = "authenticated") -> None:
        """Initialize validator.

        Args:
            secret: Shared signing secret.
            audience: Required ``aud`` claim, or None to skip the check.
        """
        self.secret = secret
        self.audience = audience

    def validate(self, token: str) -> AuthUser:
        """Decode and verify a token.

        Args:
            token: Encoded JWT.

        Returns:
            The user the token was issued to.

        Raises:
            InvalidTokenError: If verification fails or ``sub`` is not a UUID.
        """
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=self.ALGORITHMS,
                audience=self.audience,
                options={"require": ["sub", "exp"], "verify_aud": self.audience is not None},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        try:
            user_id = UUID(str(claims["sub"]))
        except ValueError as e:
            raise InvalidTokenError("Token subject is not a user ID") from e

        email = claims.get("email")
        return AuthUser(id=user_id, email=str(email) if email else None)
