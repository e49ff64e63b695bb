"""
Order Service - checkout transaction and order lifecycle

This module provides:
- OrderService.place_order(): turns the cart into an order in one transaction
- Listing / detail for customers and admins
- Status transitions with audit history and stock restore on cancel
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import Count, F, Prefetch, Q, Sum
from django.utils import timezone

from apps.accounts.models import PaymentMethod, UserAddress
from apps.cart.models import CartItem, ShoppingCart
from apps.catalog.models import ProductItem
from apps.core.exceptions import BadRequestError, ForbiddenError, InsufficientStockError, NotFoundError
from apps.core.utils import paginate, to_money
from apps.discounts.services import DiscountService, calculate_discount
from .models import OrderItem, OrderStatus, OrderStatusHistory, ShippingMethod, ShopOrder

logger = logging.getLogger(__name__)


class OrderService:
    """
    Order placement and fulfilment.

    Placement reads stock and discount counters, then writes them with F()
    expressions. The reads are not locked, so two concurrent checkouts can
    both pass the stock check for the last unit.
    """

    # Customers may cancel only before the order ships
    CANCELLABLE = (OrderStatus.PENDING, OrderStatus.PROCESSING)
    TERMINAL = (OrderStatus.CANCELLED, OrderStatus.RETURNED)

    def __init__(self):
        self.discounts = DiscountService()

    def place_order(
        self,
        user,
        shipping_address_id: int,
        billing_address_id: int,
        payment_method_id: int,
        shipping_method_id: int,
        discount_code: Optional[str] = None,
        customer_note: Optional[str] = None,
    ) -> ShopOrder:
        """
        Convert the user's cart into an order.

        Everything runs inside one database transaction: any error leaves
        stock, discount counters and the cart untouched.
        """
        with transaction.atomic():
            # 1. Cart
            cart = ShoppingCart.objects.filter(user=user).first()
            lines = []
            if cart:
                lines = list(
                    CartItem.objects
                    .filter(cart=cart)
                    .select_related('product_item__product')
                    .order_by('created_at')
                )
            if not lines:
                raise BadRequestError('Cart is empty')

            # 2. References owned by the user
            self._check_address(user, shipping_address_id)
            self._check_address(user, billing_address_id)
            payment_method = PaymentMethod.objects.filter(pk=payment_method_id, user=user).first()
            if not payment_method:
                raise BadRequestError('Invalid payment method')
            shipping_method = ShippingMethod.objects.filter(pk=shipping_method_id, is_active=True).first()
            if not shipping_method:
                raise BadRequestError('Invalid shipping method')

            # 3. Stock, availability and subtotal
            subtotal = Decimal('0')
            total_weight = Decimal('0')
            for line in lines:
                product_item = line.product_item
                product = product_item.product
                if not product_item.is_available:
                    raise BadRequestError(f"Product {product.name} is no longer available")
                if product_item.qty_in_stock < line.quantity:
                    raise InsufficientStockError(
                        f"Insufficient stock for {product.name}. Available: {product_item.qty_in_stock}",
                        sku=product_item.sku,
                        available=product_item.qty_in_stock,
                    )

                subtotal += product_item.price * line.quantity
                total_weight += (product_item.weight_kg or Decimal('0')) * line.quantity
            subtotal = to_money(subtotal)

            # 4. Discount
            discount = None
            discount_amount = Decimal('0.00')
            if discount_code:
                discount = self.discounts.check_redeemable(discount_code, user, subtotal)
                discount_amount = calculate_discount(discount, subtotal)

            # 5-6. Shipping fee and total
            shipping_fee = to_money(shipping_method.calculate_fee(total_weight))
            total_amount = to_money(subtotal - discount_amount + shipping_fee)

            # 7-8. Order header and lines
            pending = OrderStatus.objects.filter(code=OrderStatus.PENDING).first()
            if not pending:
                raise BadRequestError('Order status not configured')

            order = ShopOrder.objects.create(
                order_number=self.generate_order_number(),
                user=user,
                shipping_address_id=shipping_address_id,
                billing_address_id=billing_address_id,
                payment_method=payment_method,
                shipping_method=shipping_method,
                discount=discount,
                status=pending,
                subtotal=subtotal,
                discount_amount=discount_amount,
                shipping_fee=shipping_fee,
                total_amount=total_amount,
                customer_note=customer_note,
                ordered_at=timezone.now(),
            )

            OrderItem.objects.bulk_create([
                OrderItem(
                    order=order,
                    product_item=line.product_item,
                    product_name=line.product_item.product.name,
                    sku=line.product_item.sku,
                    unit_price=line.product_item.price,
                    quantity=line.quantity,
                    subtotal=to_money(line.product_item.price * line.quantity),
                )
                for line in lines
            ])

            # 9. Stock
            for line in lines:
                ProductItem.objects.filter(pk=line.product_item_id).update(
                    qty_in_stock=F('qty_in_stock') - line.quantity
                )

            # 10. Discount usage
            if discount:
                self.discounts.redeem(discount, user, order, discount_amount)

            # 11. History
            OrderStatusHistory.objects.create(
                order=order,
                status=pending,
                note='Order created',
                created_by=user,
            )

            # 12. Empty the cart
            CartItem.objects.filter(cart=cart).delete()

        logger.info(
            f"Order {order.order_number} placed by user {user.pk}: "
            f"subtotal={subtotal} discount={discount_amount} shipping={shipping_fee} total={total_amount}"
        )
        return order

    def generate_order_number(self) -> str:
        """
        ORD-YYYYMMDD-NNNN where NNNN is today's order count plus one.

        Not collision-safe under concurrency; the unique constraint on
        order_number rejects a duplicate.
        """
        today = timezone.localdate()
        count = ShopOrder.objects.filter(ordered_at__date=today).count()
        prefix = settings.SHOP_CONFIG['order_number_prefix']
        return f"{prefix}-{today:%Y%m%d}-{count + 1:04d}"

    def list_for_user(
        self,
        user,
        page: Any = None,
        limit: Any = None,
        status: Optional[str] = None,
        order_number: Optional[str] = None,
    ) -> Tuple[List[ShopOrder], Dict]:
        queryset = self._filter(self._list_queryset().filter(user=user), status, order_number)
        return paginate(queryset, page, limit)

    def list_all(
        self,
        page: Any = None,
        limit: Any = None,
        status: Optional[str] = None,
        order_number: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[ShopOrder], Dict]:
        queryset = self._filter(self._list_queryset(), status, order_number)
        if search:
            queryset = queryset.filter(Q(user__username__icontains=search) | Q(user__email__icontains=search))
        return paginate(queryset, page, limit)

    def get(self, order_id: int, user, is_admin: bool = False) -> ShopOrder:
        order = self._detail_queryset().filter(pk=order_id).first()
        if not order:
            raise NotFoundError('Order not found')
        if not is_admin and order.user_id != user.pk:
            raise ForbiddenError('You can only view your own orders')
        return order

    def get_by_number(self, order_number: str, user, is_admin: bool = False) -> ShopOrder:
        order = self._detail_queryset().filter(order_number=order_number).first()
        if not order:
            raise NotFoundError('Order not found')
        if not is_admin and order.user_id != user.pk:
            raise ForbiddenError('You can only view your own orders')
        return order

    def update_status(
        self,
        order_id: int,
        status_code: str,
        admin,
        note: Optional[str] = None,
        tracking_number: Optional[str] = None,
        admin_note: Optional[str] = None,
    ) -> ShopOrder:
        """
        Move an order to another status (admin). Always appends a history row.
        """
        new_status = OrderStatus.objects.filter(code=status_code).first()
        if not new_status:
            raise BadRequestError('Invalid status')

        with transaction.atomic():
            order = ShopOrder.objects.select_related('status').filter(pk=order_id).first()
            if not order:
                raise NotFoundError('Order not found')

            previous = order.status
            self._check_transition(previous, new_status)

            if new_status.code == OrderStatus.CANCELLED and previous.code != OrderStatus.CANCELLED:
                self._restore_stock(order)

            now = timezone.now()
            order.status = new_status
            if new_status.code == OrderStatus.SHIPPED and not order.shipped_at:
                order.shipped_at = now
            if new_status.code == OrderStatus.DELIVERED and not order.delivered_at:
                order.delivered_at = now
            if tracking_number is not None:
                order.tracking_number = tracking_number
            if admin_note is not None:
                order.admin_note = admin_note
            order.save()

            OrderStatusHistory.objects.create(
                order=order,
                status=new_status,
                note=note or f"Status changed to {new_status.name}",
                created_by=admin,
            )

        logger.info(f"Order {order.order_number}: {previous.code} -> {new_status.code} by user {admin.pk}")
        return self.get(order.pk, admin, is_admin=True)

    def cancel(self, order_id: int, user, reason: Optional[str] = None) -> ShopOrder:
        """
        Customer cancellation, allowed while the order is pending or processing.
        """
        with transaction.atomic():
            order = ShopOrder.objects.select_related('status').filter(pk=order_id).first()
            if not order:
                raise NotFoundError('Order not found')
            if order.user_id != user.pk:
                raise ForbiddenError('You can only cancel your own orders')
            if order.status.code not in self.CANCELLABLE:
                logger.warning(f"Rejected cancel of order {order.order_number} in status {order.status.code}")
                raise BadRequestError(f"Order cannot be cancelled in status {order.status.name}")

            cancelled = OrderStatus.objects.filter(code=OrderStatus.CANCELLED).first()
            if not cancelled:
                raise BadRequestError('Order status not configured')

            self._restore_stock(order)
            order.status = cancelled
            order.save(update_fields=['status', 'updated_at'])

            OrderStatusHistory.objects.create(
                order=order,
                status=cancelled,
                note=reason or 'Cancelled by customer',
                created_by=user,
            )

        logger.info(f"Order {order.order_number} cancelled by user {user.pk}")
        return self.get(order.pk, user)

    def statistics(self) -> Dict[str, Any]:
        today = timezone.localdate()
        by_status = (
            OrderStatus.objects
            .annotate(count=Count('orders'))
            .order_by('display_order')
            .values('code', 'name', 'count')
        )
        revenue = ShopOrder.objects.filter(status__code__in=OrderStatus.FULFILLED).aggregate(
            total=Sum('total_amount')
        )['total']
        return {
            "total_orders": ShopOrder.objects.count(),
            "today_orders": ShopOrder.objects.filter(ordered_at__date=today).count(),
            "total_revenue": to_money(revenue),
            "by_status": list(by_status),
        }

    def list_shipping_methods(self):
        return ShippingMethod.objects.filter(is_active=True).order_by('base_price')

    def _check_address(self, user, address_id: int) -> None:
        if not UserAddress.objects.filter(user=user, address_id=address_id).exists():
            raise BadRequestError('Invalid address')

    def _check_transition(self, current: OrderStatus, new: OrderStatus) -> None:
        if current.code in self.TERMINAL:
            raise BadRequestError(f"Cannot change status of a {current.name.lower()} order")

        if new.code == current.code:
            return

        if current.code in OrderStatus.FULFILLED:
            if new.code not in (OrderStatus.COMPLETED, OrderStatus.RETURNED):
                raise BadRequestError(f"Cannot move order from {current.code} to {new.code}")
            return

        if new.code == OrderStatus.CANCELLED:
            return
        if new.code == OrderStatus.RETURNED or new.display_order < current.display_order:
            raise BadRequestError(f"Cannot move order from {current.code} to {new.code}")

    def _restore_stock(self, order: ShopOrder) -> None:
        for item in order.items.all():
            if item.product_item_id:
                ProductItem.objects.filter(pk=item.product_item_id).update(
                    qty_in_stock=F('qty_in_stock') + item.quantity
                )
        logger.info(f"Restored stock for order {order.order_number}")

    def _filter(self, queryset, status: Optional[str], order_number: Optional[str]):
        if status:
            queryset = queryset.filter(status__code=status)
        if order_number:
            queryset = queryset.filter(order_number__icontains=order_number)
        return queryset

    def _list_queryset(self):
        return (
            ShopOrder.objects
            .select_related('status', 'user', 'shipping_address')
            .prefetch_related('items')
            .order_by('-ordered_at', '-pk')
        )

    def _detail_queryset(self):
        return (
            ShopOrder.objects
            .select_related(
                'user',
                'status',
                'shipping_address',
                'billing_address',
                'payment_method__payment_type',
                'shipping_method',
                'discount',
            )
            .prefetch_related(
                'items',
                Prefetch(
                    'status_history',
                    queryset=OrderStatusHistory.objects.select_related('status', 'created_by'),
                ),
            )
        )
