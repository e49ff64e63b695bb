"""
Cart Service - add/update/remove lines with stock checks

Each operation is an independent read-check-write; no transaction spans
several cart calls.
"""
import logging
from decimal import Decimal

from django.db.models import Prefetch

from apps.catalog.models import ProductItem
from apps.core.exceptions import (
    BadRequestError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
)
from .models import CartItem, ShoppingCart

logger = logging.getLogger(__name__)


class CartService:
    """
    Per-user singleton cart.
    """

    def get_cart(self, user) -> ShoppingCart:
        """
        Return the user's cart (created on first access) with
        line items, item_count and subtotal attached.
        """
        self.get_or_create_cart(user)
        cart = (
            ShoppingCart.objects
            .prefetch_related(
                Prefetch(
                    'items',
                    queryset=CartItem.objects.select_related('product_item__product').order_by('created_at'),
                )
            )
            .get(user=user)
        )
        lines = list(cart.items.all())
        cart.item_count = len(lines)
        cart.subtotal = sum((line.line_total for line in lines), Decimal('0'))
        return cart

    def get_or_create_cart(self, user) -> ShoppingCart:
        cart, created = ShoppingCart.objects.get_or_create(user=user)
        if created:
            logger.debug(f"Created cart {cart.pk} for user {user.pk}")
        return cart

    def add_item(self, user, product_item_id: int, quantity: int) -> CartItem:
        """
        Add a product item; an existing line for the same item is merged
        by summing quantities.
        """
        if quantity < 1:
            raise BadRequestError('Quantity must be at least 1')

        product_item = ProductItem.objects.select_related('product').filter(pk=product_item_id).first()
        if not product_item or not product_item.is_available:
            raise BadRequestError('Product is not available')

        if product_item.qty_in_stock < quantity:
            raise InsufficientStockError(
                f"Insufficient stock. Available: {product_item.qty_in_stock}, Requested: {quantity}",
                sku=product_item.sku,
                available=product_item.qty_in_stock,
            )

        cart = self.get_or_create_cart(user)
        existing = CartItem.objects.filter(cart=cart, product_item=product_item).first()

        if existing:
            new_quantity = existing.quantity + quantity
            if new_quantity > product_item.qty_in_stock:
                # Stock may have dropped below what is already in the cart
                remaining = max(0, product_item.qty_in_stock - existing.quantity)
                raise InsufficientStockError(
                    f"Cannot add {quantity} more. Maximum available: {remaining}",
                    sku=product_item.sku,
                    available=product_item.qty_in_stock,
                )
            existing.quantity = new_quantity
            existing.save(update_fields=['quantity', 'updated_at'])
            return existing

        return CartItem.objects.create(cart=cart, product_item=product_item, quantity=quantity)

    def update_item(self, user, item_id: int, quantity: int) -> CartItem:
        if quantity < 1:
            raise BadRequestError('Quantity must be at least 1')

        cart_item = self._get_owned_item(user, item_id)
        product_item = cart_item.product_item

        if product_item.qty_in_stock < quantity:
            raise InsufficientStockError(
                f"Insufficient stock. Available: {product_item.qty_in_stock}",
                sku=product_item.sku,
                available=product_item.qty_in_stock,
            )

        if not product_item.is_available:
            raise BadRequestError('Product is no longer available')

        cart_item.quantity = quantity
        cart_item.save(update_fields=['quantity', 'updated_at'])
        return cart_item

    def remove_item(self, user, item_id: int) -> None:
        cart_item = self._get_owned_item(user, item_id)
        cart_item.delete()

    def clear(self, user) -> int:
        cart = ShoppingCart.objects.filter(user=user).first()
        if not cart:
            raise NotFoundError('Cart not found')

        deleted, _ = cart.items.all().delete()
        return deleted

    def _get_owned_item(self, user, item_id: int) -> CartItem:
        cart_item = (
            CartItem.objects
            .select_related('cart', 'product_item__product')
            .filter(pk=item_id)
            .first()
        )
        if not cart_item:
            raise NotFoundError('Cart item not found')
        if cart_item.cart.user_id != user.pk:
            raise ForbiddenError('You can only modify your own cart')
        return cart_item
