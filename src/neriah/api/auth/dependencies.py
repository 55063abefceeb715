"""FastAPI dependencies for user and scheduler authentication."""

from __future__ import annotations

import hmac
from typing import Annotated

from fastapi import Depends, Request

from neriah.api.auth.exceptions import AuthenticationError
from neriah.api.auth.tokens import AuthUser, JWTValidator
from neriah.api.config import APIConfig, get_api_config


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def _config(request: Request) -> APIConfig:
    config = getattr(request.app.state, "config", None)
    return config if isinstance(config, APIConfig) else get_api_config()


def get_jwt_validator(request: Request) -> JWTValidator:
    """Build the JWT validator from app configuration.

    Raises:
        AuthenticationError: If no JWT secret is configured.
    """
    config = _config(request)
    if not config.jwt_secret:
        raise AuthenticationError("Authentication is not configured")
    return JWTValidator(config.jwt_secret, audience=config.jwt_audience or None)


async def get_current_user(
    request: Request,
    validator: Annotated[JWTValidator, Depends(get_jwt_validator)],
) -> AuthUser:
    """Resolve the authenticated user from the bearer token.

    Raises:
        AuthenticationError: If the header is missing.
        InvalidTokenError: If the token fails validation.
    """
    token = _extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise AuthenticationError("Missing bearer token")
    return validator.validate(token)


async def verify_cron_secret(request: Request) -> None:
    """Require the scheduler's shared secret as a bearer token.

    Raises:
        AuthenticationError: If the secret is unset or does not match.
    """
    secret = _config(request).cron_secret
    if not secret:
        raise AuthenticationError("Cron secret is not configured")
    token = _extract_bearer_token(request.headers.get("Authorization"))
    if token is None or not hmac.compare_digest(token.encode(), secret.encode()):
        raise AuthenticationError("Invalid cron secret")


CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
CronAuth = Depends(verify_cron_secret)
