# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT access token handling using python-jose.

Tokens are issued by the LMS authentication service. This service only
validates them to learn who is calling and with which platform role;
create_access_token exists for tooling and tests.

Example:
    >>> from lms_enrollment.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token(user_id="user-123", role="teacher")
    >>> jwt_manager.decode_token(token).role
    'teacher'
"""

import logging
import secrets
from datetime import timedelta

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError

from lms_enrollment.core.config.settings import JWTSettings
from lms_enrollment.domains.enrollment.lifecycle import ActorRole
from lms_enrollment.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT access token claims.

    Attributes:
        sub: Subject (user ID).
        role: Platform role of the user.
        username: Display username, if the issuer includes it.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID.
    """

    sub: str
    role: ActorRole
    username: str | None = None
    exp: int
    iat: int
    jti: str | None = None


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT access token validation and creation.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    def create_access_token(
        self,
        user_id: str,
        role: ActorRole | str,
        username: str | None = None,
        expires_in: timedelta | None = None,
    ) -> str:
        """Create a signed access token.

        Args:
            user_id: User identifier.
            role: Platform role (admin, teacher, student).
            username: Optional display username.
            expires_in: Lifetime, defaults to the configured expiry.

        Returns:
            JWT access token string.
        """
        now = utc_now()
        exp = now + (expires_in or timedelta(minutes=self._settings.access_token_expire_minutes))

        payload = {
            "sub": str(user_id),
            "role": ActorRole(role).value,
            "username": username,
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate an access token.

        Args:
            token: JWT token string.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or carries an unknown role.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JoseJWTError as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        # Issuers differ in role casing ("ADMIN" vs "admin").
        if isinstance(payload.get("role"), str):
            payload["role"] = payload["role"].lower()

        try:
            return TokenPayload.model_validate(payload)
        except ValidationError as e:
            logger.warning("Token claims rejected: %s", str(e))
            raise InvalidTokenError("Invalid token claims")
