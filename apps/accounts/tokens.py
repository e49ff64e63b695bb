"""
JWT issuance and verification for access/refresh token pairs
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict

import jwt
from django.conf import settings

from apps.core.constants import ERROR_MESSAGES
from apps.core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

ACCESS = 'access'
REFRESH = 'refresh'


def build_payload(user) -> Dict:
    """
    Claims shared by access and refresh tokens.
    """
    return {
        "sub": str(user.pk),
        "email": user.email,
        "username": user.username,
        "roles": user.role_names,
    }


def _encode(payload: Dict, token_type: str, lifetime: timedelta) -> str:
    now = datetime.now(tz=timezone.utc)
    claims = {
        **payload,
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def issue_access_token(user) -> str:
    return _encode(build_payload(user), ACCESS, timedelta(days=settings.JWT_ACCESS_TOKEN_DAYS))


def issue_refresh_token(user) -> str:
    return _encode(build_payload(user), REFRESH, timedelta(days=settings.JWT_REFRESH_TOKEN_DAYS))


def issue_token_pair(user) -> Dict[str, str]:
    return {
        "access_token": issue_access_token(user),
        "refresh_token": issue_refresh_token(user),
    }


def decode_token(token: str, expected_type: str = ACCESS) -> Dict:
    """
    Verify signature, expiry and token type. Raises UnauthorizedError.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError(ERROR_MESSAGES['TOKEN_INVALID_OR_EXPIRED'], code="TOKEN_EXPIRED")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected JWT: {e}")
        raise UnauthorizedError(ERROR_MESSAGES['TOKEN_INVALID'], code="TOKEN_INVALID")

    if payload.get("type") != expected_type:
        raise UnauthorizedError(ERROR_MESSAGES['TOKEN_INVALID'], code="TOKEN_INVALID")

    return payload
