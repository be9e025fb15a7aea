# =============================================================================
# File: messaging_core/security/jwt_auth.py - JWT Authentication
# =============================================================================
# Responsibilities:
# - JWT creation and validation (HS256, python-jose)
# - HTTP Bearer dependency returning the caller's user id
# - Path guard for /users/{user_id}/... routes: the token subject must be
#   the user in the path
# =============================================================================

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from messaging_core.common.exceptions.exceptions import ForbiddenError
from messaging_core.config.jwt_config import JwtConfig, get_jwt_config

log = logging.getLogger("messaging_core.security.jwt_auth")


class JwtTokenManager:
    """
    Issues and validates access tokens.

    - create_access_token(): signs {sub, iat, exp, jti} plus extra claims
    - decode_token_payload(): returns the claims, or None when invalid
    """

    def __init__(self, config: Optional[JwtConfig] = None):
        self.config = config or get_jwt_config()

    def create_access_token(
            self,
            subject: str,
            expires_delta: Optional[timedelta] = None,
            additional_claims: Optional[Dict[str, Any]] = None,
    ) -> str:
        if not subject:
            log.error("Cannot create JWT: no subject provided.")
            raise ValueError("Subject ('sub') claim is required.")

        now_utc = datetime.now(timezone.utc)
        expire_utc = now_utc + (expires_delta or timedelta(minutes=self.config.access_token_expire_minutes))

        claims: Dict[str, Any] = {
            "sub": subject,
            "exp": expire_utc,
            "iat": now_utc,
            "jti": secrets.token_urlsafe(16),
        }
        if self.config.audience:
            claims["aud"] = self.config.audience
        if additional_claims:
            claims.update(additional_claims)

        return jwt.encode(claims, self.config.get_secret_key(), algorithm=self.config.algorithm)

    def decode_token_payload(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Decode and validate a JWT string.
        Returns the payload dict if valid, else None.
        """
        if not token:
            return None
        try:
            return jwt.decode(
                token,
                self.config.get_secret_key(),
                algorithms=[self.config.algorithm],
                audience=self.config.audience,
                options={"verify_aud": self.config.audience is not None},
            )
        except JWTError as exc:
            preview = token[:20] + "..." if len(token) > 20 else token
            log.info(f"JWT decode error ({type(exc).__name__}): {exc}. Token preview: {preview}")
            return None

    def get_subject_from_token(self, token: str) -> Optional[str]:
        payload = self.decode_token_payload(token)
        sub = payload.get("sub") if payload else None
        return sub if isinstance(sub, str) and sub else None


def get_token_manager() -> JwtTokenManager:
    return JwtTokenManager()


# =============================================================================
# HTTP Bearer Authentication Dependency
# =============================================================================
security_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
        token_manager: JwtTokenManager = Depends(get_token_manager),
) -> str:
    """
    FastAPI dependency for HTTP endpoints.
    - Expects 'Authorization: Bearer <token>'.
    - Returns the token subject (user id) or raises HTTPException(401).
    """
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth scheme")

    user_id = token_manager.get_subject_from_token(credentials.credentials)
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return user_id


async def get_path_user(user_id: str, current_user_id: str = Depends(get_current_user)) -> str:
    """Resolve {user_id} from the path, rejecting tokens issued to anyone else."""
    if user_id != current_user_id:
        log.warning(f"Token for {current_user_id} used on /users/{user_id}")
        raise ForbiddenError("Forbidden")
    return user_id
