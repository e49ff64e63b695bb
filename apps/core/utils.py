"""
Utility functions for the NetTech Shop backend
"""
import math
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

from .constants import PAGINATION

logger = logging.getLogger(__name__)

MONEY_QUANT = Decimal('0.01')


def to_money(value: Any) -> Decimal:
    """
    Coerce a number to a two-decimal Decimal, rounding half up.
    """
    if value is None:
        return Decimal('0.00')
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def normalize_pagination(page: Any = None, limit: Any = None) -> Tuple[int, int]:
    """
    Clamp page/limit query values into the allowed range.
    """
    try:
        page = int(page) if page not in (None, '') else PAGINATION['DEFAULT_PAGE']
    except (TypeError, ValueError):
        page = PAGINATION['DEFAULT_PAGE']
    try:
        limit = int(limit) if limit not in (None, '') else PAGINATION['DEFAULT_LIMIT']
    except (TypeError, ValueError):
        limit = PAGINATION['DEFAULT_LIMIT']

    page = max(page, 1)
    limit = min(max(limit, 1), PAGINATION['MAX_LIMIT'])
    return page, limit


def paginate(queryset, page: Any = None, limit: Any = None) -> Tuple[List, Dict]:
    """
    Slice a queryset and build the pagination block.

    Returns (items, meta) where meta is
    {"total", "page", "limit", "total_pages"}.
    """
    page, limit = normalize_pagination(page, limit)
    total = queryset.count()
    offset = (page - 1) * limit
    items = list(queryset[offset:offset + limit])

    meta = {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
    return items, meta


def paginated_payload(data: List, meta: Dict) -> Dict:
    return {"data": data, "pagination": meta}


def format_response(data: Any = None, message: str = "Success", success: bool = True) -> Dict:
    """
    Wrap a payload in the standard response envelope.
    """
    return {
        "success": success,
        "message": message,
        "data": data,
    }


def mask_account_number(account_number: Optional[str]) -> Optional[str]:
    """
    Keep only the last four characters of a card/account number.
    """
    if not account_number:
        return account_number
    tail = account_number[-4:]
    return f"****{tail}"


def parse_bool(value: Any) -> Optional[bool]:
    """Parse a query-string boolean; None when absent."""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        return value
    return str(value).lower() in ('1', 'true', 'yes')
