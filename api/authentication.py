"""
Bearer JWT authentication for DRF
"""
import logging

from rest_framework import authentication, exceptions

from apps.accounts.models import SiteUser
from apps.accounts.tokens import ACCESS, decode_token
from apps.core.constants import ERROR_MESSAGES
from apps.core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class JWTAuthentication(authentication.BaseAuthentication):
    """
    Reads `Authorization: Bearer <access token>`.

    On success request.user is the SiteUser and request.auth is the
    decoded claim set (sub, email, username, roles, type).
    """
    keyword = 'Bearer'

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].lower() != self.keyword.lower().encode():
            return None

        if len(header) != 2:
            raise exceptions.AuthenticationFailed(ERROR_MESSAGES['TOKEN_INVALID'])

        try:
            token = header[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed(ERROR_MESSAGES['TOKEN_INVALID'])

        try:
            payload = decode_token(token, expected_type=ACCESS)
        except UnauthorizedError as e:
            raise exceptions.AuthenticationFailed(e.message, code=e.code)

        user = SiteUser.objects.filter(pk=payload.get('sub')).first()
        if user is None:
            raise exceptions.AuthenticationFailed(ERROR_MESSAGES['TOKEN_INVALID'])
        if not user.is_active:
            raise exceptions.AuthenticationFailed(ERROR_MESSAGES['ACCOUNT_DISABLED'])

        return user, payload

    def authenticate_header(self, request):
        return self.keyword
