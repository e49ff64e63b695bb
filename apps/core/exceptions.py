"""
Domain exceptions for the NetTech Shop backend

Services raise these; api.exceptions maps them to HTTP responses.
"""


class ShopException(Exception):
    """Base exception for all shop errors"""
    status_code = 500
    default_code = "SHOP_ERROR"

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(self.message)


class BadRequestError(ShopException):
    """Request is well-formed but violates a business rule"""
    status_code = 400
    default_code = "BAD_REQUEST"


class UnauthorizedError(ShopException):
    """Missing, invalid or expired credentials"""
    status_code = 401
    default_code = "UNAUTHORIZED"


class ForbiddenError(ShopException):
    """Authenticated but not allowed to touch the resource"""
    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(ShopException):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(ShopException):
    """Uniqueness violation (email, username, slug, SKU, code...)"""
    status_code = 409
    default_code = "CONFLICT"


class InsufficientStockError(BadRequestError):
    """Exception raised when a product item cannot cover the requested quantity"""
    def __init__(self, message: str, sku: str = None, available: int = None):
        self.sku = sku
        self.available = available
        super().__init__(message=message, code="INSUFFICIENT_STOCK")


class DiscountError(BadRequestError):
    """Exception raised when a discount code cannot be redeemed"""
    def __init__(self, message: str, discount_code: str = None):
        self.discount_code = discount_code
        super().__init__(message=message, code="DISCOUNT_INVALID")
