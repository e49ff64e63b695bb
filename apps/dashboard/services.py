"""
Dashboard Service - admin aggregates and moderation

This module provides:
- stats(): headline counts, revenue, recent orders, top sellers, growth
- revenue_report(): revenue over a date range with a daily series
- User and review moderation helpers
- Low stock and orders-by-status reports
- Top customers and per-category performance
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from django.conf import settings
from django.db.models import Avg, Count, Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from apps.accounts.models import SiteUser
from apps.catalog.models import Product, ProductItem
from apps.core.constants import ERROR_MESSAGES
from apps.core.exceptions import BadRequestError, NotFoundError
from apps.core.utils import paginate, to_money
from apps.orders.models import OrderItem, OrderStatus, ShopOrder
from apps.reviews.models import ProductReview

logger = logging.getLogger(__name__)


class DashboardService:
    """
    Read-mostly admin views over orders, users, reviews and stock.
    """

    OPEN_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING)
    # Orders that never turned into a sale
    VOID_STATUSES = (OrderStatus.CANCELLED, OrderStatus.RETURNED)

    PERIODS = {
        'week': timedelta(days=7),
        'month': timedelta(days=30),
        'year': timedelta(days=365),
    }

    def stats(self) -> Dict[str, Any]:
        fulfilled = ShopOrder.objects.filter(status__code__in=OrderStatus.FULFILLED)
        total_revenue = fulfilled.aggregate(total=Sum('total_amount'))['total']

        recent_orders = list(
            ShopOrder.objects
            .select_related('user', 'status', 'shipping_address')
            .order_by('-ordered_at')[:10]
        )

        top_selling = (
            OrderItem.objects
            .filter(product_item__isnull=False)
            .exclude(order__status__code__in=self.VOID_STATUSES)
            .values(
                'product_item__product_id',
                'product_item__product__name',
                'product_item__product__slug',
                'product_item__product__brand',
            )
            .annotate(total_sold=Sum('quantity'))
            .order_by('-total_sold')[:10]
        )
        top_products = [
            {
                "product": {
                    "id": row['product_item__product_id'],
                    "name": row['product_item__product__name'],
                    "slug": row['product_item__product__slug'],
                    "brand": row['product_item__product__brand'],
                },
                "total_sold": row['total_sold'] or 0,
            }
            for row in top_selling
        ]

        # Activity since the same day last month
        since = timezone.now() - timedelta(days=30)
        last_month = ShopOrder.objects.filter(ordered_at__gte=since)
        last_month_revenue = last_month.filter(status__code__in=OrderStatus.FULFILLED).aggregate(
            total=Sum('total_amount')
        )['total']

        return {
            "total_users": SiteUser.objects.filter(is_active=True).count(),
            "total_products": Product.objects.filter(is_active=True).count(),
            "total_orders": ShopOrder.objects.count(),
            "pending_orders": ShopOrder.objects.filter(status__code__in=self.OPEN_STATUSES).count(),
            "total_revenue": to_money(total_revenue),
            "recent_orders": recent_orders,
            "top_products": top_products,
            "growth": {
                "orders": last_month.count(),
                "revenue": to_money(last_month_revenue),
            },
        }

    def revenue_report(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
        orders = ShopOrder.objects.filter(status__code__in=OrderStatus.FULFILLED)
        if start:
            orders = orders.filter(ordered_at__gte=start)
        if end:
            orders = orders.filter(ordered_at__lte=end)

        summary = orders.aggregate(total=Sum('total_amount'), average=Avg('total_amount'), count=Count('id'))
        daily = (
            orders
            .annotate(date=TruncDate('ordered_at'))
            .values('date')
            .annotate(revenue=Sum('total_amount'), orders=Count('id'))
            .order_by('-date')
        )

        return {
            "total_revenue": to_money(summary['total']),
            "average_order_value": to_money(summary['average']),
            "total_orders": summary['count'],
            "daily_revenue": [
                {"date": row['date'], "revenue": to_money(row['revenue']), "orders": row['orders']}
                for row in daily
            ],
        }

    def users(self, page: Any = None, limit: Any = None, search: Optional[str] = None) -> Tuple[List, Dict]:
        queryset = SiteUser.objects.prefetch_related('roles').order_by('-created_at')
        if search:
            queryset = queryset.filter(
                Q(username__icontains=search) | Q(email__icontains=search) | Q(phone__icontains=search)
            )
        return paginate(queryset, page, limit)

    def toggle_user_status(self, user_id: int, admin) -> SiteUser:
        if user_id == admin.pk:
            raise BadRequestError('Cannot deactivate your own account')

        user = SiteUser.objects.filter(pk=user_id).first()
        if not user:
            raise NotFoundError(ERROR_MESSAGES['USER_NOT_FOUND'])

        user.is_active = not user.is_active
        user.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"User {user.pk} set active={user.is_active} by admin {admin.pk}")
        return user

    def reviews(self, page: Any = None, limit: Any = None, is_approved: Optional[bool] = None) -> Tuple[List, Dict]:
        queryset = ProductReview.objects.select_related('user', 'product').order_by('-created_at')
        if is_approved is not None:
            queryset = queryset.filter(is_approved=is_approved)
        return paginate(queryset, page, limit)

    def set_review_approval(self, review_id: int, is_approved: bool) -> ProductReview:
        review = ProductReview.objects.select_related('user', 'product').filter(pk=review_id).first()
        if not review:
            raise NotFoundError(ERROR_MESSAGES['REVIEW_NOT_FOUND'])
        review.is_approved = is_approved
        review.save(update_fields=['is_approved', 'updated_at'])
        return review

    def low_stock(self, threshold: Optional[int] = None) -> List[ProductItem]:
        if threshold is None:
            threshold = settings.SHOP_CONFIG['low_stock_threshold']
        return list(
            ProductItem.objects
            .filter(is_active=True, product__is_active=True, qty_in_stock__lte=threshold)
            .select_related('product')
            .order_by('qty_in_stock', 'sku')
        )

    def orders_by_status(self) -> List[Dict[str, Any]]:
        rows = (
            OrderStatus.objects
            .annotate(count=Count('orders'), revenue=Sum('orders__total_amount'))
            .order_by('display_order')
        )
        return [
            {
                "code": row.code,
                "name": row.name,
                "count": row.count,
                "revenue": to_money(row.revenue or Decimal('0')),
            }
            for row in rows
        ]

    def top_customers(self, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Customers ranked by total spent, ignoring cancelled and returned orders.
        """
        rows = (
            ShopOrder.objects
            .exclude(status__code__in=self.VOID_STATUSES)
            .values('user_id', 'user__username', 'user__email')
            .annotate(total_orders=Count('id'), total_spent=Sum('total_amount'))
            .order_by('-total_spent', 'user_id')[:limit]
        )
        return [
            {
                "id": row['user_id'],
                "username": row['user__username'],
                "email": row['user__email'],
                "total_orders": row['total_orders'],
                "total_spent": to_money(row['total_spent']),
            }
            for row in rows
        ]

    def category_performance(self, period: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Orders, units and line revenue per category since the start of the period.
        """
        rows = (
            OrderItem.objects
            .filter(product_item__isnull=False, order__ordered_at__gte=self.period_start(period))
            .exclude(order__status__code__in=self.VOID_STATUSES)
            .values('product_item__product__category_id', 'product_item__product__category__name')
            .annotate(orders=Count('order', distinct=True), items_sold=Sum('quantity'), revenue=Sum('subtotal'))
            .order_by('-revenue')
        )
        return [
            {
                "id": row['product_item__product__category_id'],
                "name": row['product_item__product__category__name'],
                "orders": row['orders'],
                "items_sold": row['items_sold'] or 0,
                "revenue": to_money(row['revenue']),
            }
            for row in rows
        ]

    def period_start(self, period: Optional[str] = None) -> datetime:
        """
        today | week | month | year; anything else falls back to month.
        """
        now = timezone.now()
        if period == 'today':
            return timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)
        return now - self.PERIODS.get(period, self.PERIODS['month'])
