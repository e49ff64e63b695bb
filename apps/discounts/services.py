"""
Discount Service - promotional code management and redemption rules

This module provides:
- calculate_discount(): the amount a code takes off an order subtotal
- DiscountService.check_redeemable(): validity window, caps, minimum amount
- Admin CRUD, statistics and per-user usage history
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from django.db.models import Count, F
from django.utils import timezone

from apps.core.exceptions import BadRequestError, ConflictError, DiscountError, NotFoundError
from apps.core.utils import paginate, to_money
from .models import Discount, DiscountUsage

logger = logging.getLogger(__name__)


def calculate_discount(discount: Discount, order_amount: Decimal) -> Decimal:
    """
    Percentage codes take value% of the amount, fixed codes take the value.
    The result is capped by max_discount_amount and by the amount itself.
    """
    order_amount = Decimal(order_amount)
    value = Decimal(discount.discount_value)

    if discount.discount_type == Discount.TYPE_PERCENTAGE:
        amount = order_amount * value / Decimal('100')
    else:
        amount = value

    if discount.max_discount_amount is not None and amount > discount.max_discount_amount:
        amount = Decimal(discount.max_discount_amount)

    if amount > order_amount:
        amount = order_amount

    return to_money(amount)


class DiscountService:
    """
    Discount codes: admin management and customer-side validation.
    """

    STATUS_FILTERS = ('active', 'expired', 'inactive')

    def check_redeemable(
        self,
        code: str,
        user,
        order_amount: Decimal,
        now: Optional[datetime] = None,
    ) -> Discount:
        """
        Return the discount for `code` if it can be applied to an order of
        `order_amount` by `user`; raise DiscountError otherwise.
        """
        now = now or timezone.now()
        normalized = (code or '').strip().upper()

        discount = Discount.objects.filter(code=normalized).first()
        if not discount or not discount.is_active:
            raise DiscountError('Invalid discount code', discount_code=normalized)

        if discount.starts_at > now or discount.ends_at < now:
            raise DiscountError('Discount code has expired', discount_code=normalized)

        if discount.max_uses is not None and discount.used_count >= discount.max_uses:
            raise DiscountError('Discount code usage limit reached', discount_code=normalized)

        if discount.max_uses_per_user is not None and user is not None:
            user_usage = DiscountUsage.objects.filter(discount=discount, user=user).count()
            if user_usage >= discount.max_uses_per_user:
                raise DiscountError(
                    'You have reached the usage limit for this discount code',
                    discount_code=normalized,
                )

        if discount.min_order_amount is not None and Decimal(order_amount) < discount.min_order_amount:
            raise DiscountError(
                f"Minimum order amount for this discount is {discount.min_order_amount}",
                discount_code=normalized,
            )

        return discount

    def redeem(self, discount: Discount, user, order, amount: Decimal) -> DiscountUsage:
        """
        Count one use of the code and record it against the order.
        Must run inside the caller's transaction.
        """
        Discount.objects.filter(pk=discount.pk).update(used_count=F('used_count') + 1)
        return DiscountUsage.objects.create(
            discount=discount,
            user=user,
            order=order,
            discount_amount=amount,
        )

    def validate(self, user, code: str, order_amount: Decimal) -> Dict[str, Any]:
        """
        Preview what a code would take off an order (no side effects).
        """
        discount = self.check_redeemable(code, user, order_amount)
        amount = calculate_discount(discount, order_amount)
        return {
            "valid": True,
            "discount": {
                "id": discount.pk,
                "code": discount.code,
                "type": discount.discount_type,
                "discount_amount": amount,
                "final_amount": max(to_money(order_amount) - amount, Decimal('0.00')),
            },
        }

    # Admin operations

    def create(self, data: Dict[str, Any]) -> Discount:
        code = data['code'].strip().upper()
        if Discount.objects.filter(code=code).exists():
            raise ConflictError('Discount code already exists')

        if data['ends_at'] <= data['starts_at']:
            raise BadRequestError('End date must be after start date')

        self._check_value(data.get('discount_type', Discount.TYPE_PERCENTAGE), data['discount_value'])

        fields = {**data, 'code': code}
        discount = Discount.objects.create(**fields)
        logger.info(f"Created discount {discount.code}")
        return discount

    def list(self, page: Any = None, limit: Any = None, status: Optional[str] = None) -> Tuple[List, Dict]:
        queryset = Discount.objects.annotate(usage_count=Count('usages')).order_by('-created_at')
        now = timezone.now()

        if status == 'active':
            queryset = queryset.filter(is_active=True, ends_at__gte=now)
        elif status == 'expired':
            queryset = queryset.filter(ends_at__lt=now)
        elif status == 'inactive':
            queryset = queryset.filter(is_active=False)

        return paginate(queryset, page, limit)

    def get(self, discount_id: int) -> Discount:
        discount = Discount.objects.annotate(usage_count=Count('usages')).filter(pk=discount_id).first()
        if not discount:
            raise NotFoundError('Discount code not found')
        discount.recent_usages = list(
            discount.usages.select_related('user', 'order').order_by('-used_at')[:10]
        )
        return discount

    def update(self, discount_id: int, data: Dict[str, Any]) -> Discount:
        discount = Discount.objects.filter(pk=discount_id).first()
        if not discount:
            raise NotFoundError('Discount code not found')

        code = data.get('code')
        if code:
            code = code.strip().upper()
            if code != discount.code and Discount.objects.filter(code=code).exists():
                raise ConflictError('Discount code already exists')
            data = {**data, 'code': code}

        starts_at = data.get('starts_at', discount.starts_at)
        ends_at = data.get('ends_at', discount.ends_at)
        if ends_at <= starts_at:
            raise BadRequestError('End date must be after start date')

        if 'discount_value' in data or 'discount_type' in data:
            self._check_value(
                data.get('discount_type', discount.discount_type),
                data.get('discount_value', discount.discount_value),
            )

        for field, value in data.items():
            setattr(discount, field, value)
        discount.save()
        return discount

    def delete(self, discount_id: int) -> None:
        discount = Discount.objects.filter(pk=discount_id).first()
        if not discount:
            raise NotFoundError('Discount code not found')

        if discount.usages.exists():
            raise BadRequestError(
                'Cannot delete discount code with usage history. Consider deactivating instead.'
            )
        discount.delete()
        logger.info(f"Deleted discount {discount_id}")

    def statistics(self) -> Dict[str, Any]:
        now = timezone.now()
        top_used = (
            Discount.objects
            .order_by('-used_count')
            .values('code', 'description', 'used_count', 'discount_type', 'discount_value')[:5]
        )
        return {
            "total_codes": Discount.objects.count(),
            "active_codes": Discount.objects.filter(is_active=True, ends_at__gte=now).count(),
            "expired_codes": Discount.objects.filter(ends_at__lt=now).count(),
            "total_usage": DiscountUsage.objects.count(),
            "top_used": list(top_used),
        }

    def usage_history(self, user):
        return (
            DiscountUsage.objects
            .filter(user=user)
            .select_related('discount', 'order')
            .order_by('-used_at')
        )

    def _check_value(self, discount_type: str, value: Decimal) -> None:
        if value is None or Decimal(value) <= 0:
            raise BadRequestError('Discount value must be positive')
        if discount_type == Discount.TYPE_PERCENTAGE and Decimal(value) > 100:
            raise BadRequestError('Percentage discount cannot exceed 100')
