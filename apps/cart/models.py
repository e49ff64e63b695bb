"""
Cart Models - per-user shopping cart
Tables: shopping_carts, cart_items
"""
from django.conf import settings
from django.db import models
from apps.core.models import TimestampedModel


class ShoppingCart(TimestampedModel):
    """
    One cart per user, created lazily on first access.
    """
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='cart')

    class Meta:
        db_table = 'shopping_carts'
        verbose_name = 'Shopping Cart'
        verbose_name_plural = 'Shopping Carts'

    def __str__(self):
        return f"Cart of user {self.user_id}"


class CartItem(TimestampedModel):
    """
    A cart line. Quantity is checked against stock on every write,
    not enforced by the database.
    """
    cart = models.ForeignKey(ShoppingCart, on_delete=models.CASCADE, related_name='items')
    product_item = models.ForeignKey('catalog.ProductItem', on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = 'cart_items'
        verbose_name = 'Cart Item'
        verbose_name_plural = 'Cart Items'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['cart', 'product_item'], name='uniq_cart_product_item'),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product_item_id}"

    @property
    def line_total(self):
        return self.product_item.price * self.quantity
