"""
Custom Exception Handler for API
"""
import logging

from django.db import IntegrityError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

from apps.core.constants import ERROR_MESSAGES
from apps.core.exceptions import ShopException

logger = logging.getLogger(__name__)


def _error(message, details, status_code):
    return Response(
        {
            "success": False,
            "message": message,
            "details": details,
            "status_code": status_code,
        },
        status=status_code,
    )


def custom_exception_handler(exc, context):
    """
    Custom exception handler that provides consistent error responses.
    """
    if isinstance(exc, ShopException):
        set_rollback()
        details = {"code": exc.code}
        for attr in ('sku', 'available', 'discount_code'):
            value = getattr(exc, attr, None)
            if value is not None:
                details[attr] = value
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}")
        return _error(exc.message, details, exc.status_code)

    if isinstance(exc, IntegrityError):
        set_rollback()
        logger.warning(f"Integrity error: {exc}")
        return _error("Resource conflicts with existing data", {"code": "CONFLICT"}, status.HTTP_409_CONFLICT)

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, exceptions.ValidationError):
            message = ERROR_MESSAGES['INVALID_INPUT']
        else:
            message = str(getattr(exc, 'detail', exc))
        details = response.data if isinstance(response.data, dict) else {"detail": response.data}
        response.data = {
            "success": False,
            "message": message,
            "details": details,
            "status_code": response.status_code,
        }
        return response

    # Handle unexpected exceptions
    logger.exception(f"Unhandled exception: {exc}")
    return _error(
        ERROR_MESSAGES['INTERNAL_ERROR'],
        {"exception": exc.__class__.__name__},
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
