"""
Role-based permissions
"""
from rest_framework.permissions import BasePermission

from apps.core.constants import ERROR_MESSAGES, ROLE_ADMIN


class IsAdminRole(BasePermission):
    """
    Grants access when the access token carries the admin role.
    """
    message = ERROR_MESSAGES['UNAUTHORIZED']

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        claims = request.auth if isinstance(request.auth, dict) else {}
        return ROLE_ADMIN in claims.get('roles', [])
