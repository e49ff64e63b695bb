"""
Orders Models - Checkout & Fulfilment
Tables: shipping_methods, order_statuses, shop_orders, order_items,
        order_status_history
"""
from decimal import Decimal

from django.conf import settings
from django.db import models

from apps.core.models import BaseModel, TimestampedModel


class ShippingMethod(TimestampedModel):
    """
    Delivery option. Fee = base_price + price_per_kg * total weight.
    """
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=30, unique=True)
    base_price = models.DecimalField(max_digits=14, decimal_places=2)
    price_per_kg = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True)
    estimated_days = models.PositiveSmallIntegerField(default=3)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'shipping_methods'
        verbose_name = 'Shipping Method'
        verbose_name_plural = 'Shipping Methods'
        ordering = ['base_price']

    def __str__(self):
        return f"{self.name} ({self.code})"

    def calculate_fee(self, total_weight_kg: Decimal) -> Decimal:
        fee = Decimal(self.base_price)
        if self.price_per_kg:
            fee += Decimal(self.price_per_kg) * Decimal(total_weight_kg)
        return fee


class OrderStatus(models.Model):
    """
    Lookup of order lifecycle states, ordered by display_order.
    """
    PENDING = 'pending'
    PROCESSING = 'processing'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    RETURNED = 'returned'

    DEFAULTS = [
        (PENDING, 'Pending', 1),
        (PROCESSING, 'Processing', 2),
        (SHIPPED, 'Shipped', 3),
        (DELIVERED, 'Delivered', 4),
        (COMPLETED, 'Completed', 5),
        (CANCELLED, 'Cancelled', 6),
        (RETURNED, 'Returned', 7),
    ]

    # Orders in these states count as purchased (revenue, review gating)
    FULFILLED = (DELIVERED, COMPLETED)

    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=50)
    display_order = models.PositiveSmallIntegerField(default=0)

    class Meta:
        db_table = 'order_statuses'
        verbose_name = 'Order Status'
        verbose_name_plural = 'Order Statuses'
        ordering = ['display_order']

    def __str__(self):
        return self.name

    @classmethod
    def ensure_defaults(cls):
        """Create the standard statuses if missing."""
        for code, name, display_order in cls.DEFAULTS:
            cls.objects.get_or_create(code=code, defaults={'name': name, 'display_order': display_order})


class ShopOrder(BaseModel):
    """
    Immutable snapshot of a cart at checkout. `status` mirrors the latest
    OrderStatusHistory entry and is kept in sync by OrderService.
    """
    order_number = models.CharField(max_length=30, unique=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='orders')
    shipping_address = models.ForeignKey('accounts.Address', on_delete=models.PROTECT, related_name='shipping_orders')
    billing_address = models.ForeignKey('accounts.Address', on_delete=models.PROTECT, related_name='billing_orders')
    payment_method = models.ForeignKey('accounts.PaymentMethod', on_delete=models.PROTECT, related_name='orders')
    shipping_method = models.ForeignKey(ShippingMethod, on_delete=models.PROTECT, related_name='orders')
    discount = models.ForeignKey(
        'discounts.Discount',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )
    status = models.ForeignKey(OrderStatus, on_delete=models.PROTECT, related_name='orders')

    subtotal = models.DecimalField(max_digits=14, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    shipping_fee = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2)

    customer_note = models.TextField(blank=True, null=True)
    admin_note = models.TextField(blank=True, null=True)
    tracking_number = models.CharField(max_length=100, blank=True, null=True)

    ordered_at = models.DateTimeField()
    shipped_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'shop_orders'
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'
        ordering = ['-created_at']

    def __str__(self):
        return f"Order {self.order_number} - {self.status.name}"


class OrderItem(models.Model):
    """
    Order line. Name, SKU and unit price are copied at checkout so later
    catalog edits do not rewrite history.
    """
    order = models.ForeignKey(ShopOrder, on_delete=models.CASCADE, related_name='items')
    product_item = models.ForeignKey(
        'catalog.ProductItem',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )
    product_name = models.CharField(max_length=300)
    sku = models.CharField(max_length=100)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    quantity = models.PositiveIntegerField()
    subtotal = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        db_table = 'order_items'
        verbose_name = 'Order Item'
        verbose_name_plural = 'Order Items'
        ordering = ['pk']

    def __str__(self):
        return f"{self.quantity} x {self.sku}"


class OrderStatusHistory(models.Model):
    """
    Append-only audit trail of status transitions.
    """
    order = models.ForeignKey(ShopOrder, on_delete=models.CASCADE, related_name='status_history')
    status = models.ForeignKey(OrderStatus, on_delete=models.PROTECT, related_name='history_entries')
    note = models.CharField(max_length=500, blank=True, null=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_status_changes'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_status_history'
        verbose_name = 'Order Status History'
        verbose_name_plural = 'Order Status History'
        ordering = ['-created_at', '-pk']

    def __str__(self):
        return f"{self.order_id} -> {self.status.code}"
