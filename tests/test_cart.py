"""
Cart mutations and stock checks
"""
from decimal import Decimal

import pytest

from apps.cart.models import CartItem, ShoppingCart
from apps.cart.services import CartService
from apps.catalog.models import ProductItem
from apps.core.exceptions import BadRequestError, ForbiddenError, InsufficientStockError, NotFoundError

pytestmark = pytest.mark.django_db


def test_get_cart_creates_lazily(customer):
    assert not ShoppingCart.objects.filter(user=customer).exists()

    cart = CartService().get_cart(customer)

    assert cart.item_count == 0
    assert cart.subtotal == Decimal('0')
    assert ShoppingCart.objects.filter(user=customer).count() == 1


def test_add_merges_existing_line(customer, router_item):
    service = CartService()
    service.add_item(customer, router_item.pk, 2)
    line = service.add_item(customer, router_item.pk, 3)

    assert line.quantity == 5
    assert CartItem.objects.filter(cart__user=customer).count() == 1

    cart = service.get_cart(customer)
    assert cart.item_count == 1
    assert cart.subtotal == Decimal('14950000.00')


def test_add_over_stock(customer, switch_item):
    with pytest.raises(InsufficientStockError, match='Insufficient stock. Available: 2, Requested: 3'):
        CartService().add_item(customer, switch_item.pk, 3)


def test_merge_over_stock(customer, switch_item):
    service = CartService()
    service.add_item(customer, switch_item.pk, 2)

    with pytest.raises(InsufficientStockError, match='Cannot add 1 more. Maximum available: 0'):
        service.add_item(customer, switch_item.pk, 1)


def test_merge_after_stock_dropped_below_cart(customer, switch_item):
    service = CartService()
    service.add_item(customer, switch_item.pk, 2)
    ProductItem.objects.filter(pk=switch_item.pk).update(qty_in_stock=1)

    with pytest.raises(InsufficientStockError, match='Cannot add 1 more. Maximum available: 0$') as excinfo:
        service.add_item(customer, switch_item.pk, 1)
    assert excinfo.value.available == 1
    assert CartItem.objects.get(cart__user=customer).quantity == 2


def test_add_inactive_item(customer, router_item):
    router_item.is_active = False
    router_item.save()

    with pytest.raises(BadRequestError, match='Product is not available'):
        CartService().add_item(customer, router_item.pk, 1)


def test_add_item_of_deactivated_product(customer, router_item):
    router_item.product.is_active = False
    router_item.product.save()

    with pytest.raises(BadRequestError, match='Product is not available'):
        CartService().add_item(customer, router_item.pk, 1)


def test_update_after_product_deactivated(customer, router_item):
    service = CartService()
    line = service.add_item(customer, router_item.pk, 1)
    router_item.product.is_active = False
    router_item.product.save()

    with pytest.raises(BadRequestError, match='Product is no longer available'):
        service.update_item(customer, line.pk, 2)


def test_add_unknown_item(customer):
    with pytest.raises(BadRequestError, match='Product is not available'):
        CartService().add_item(customer, 12345, 1)


def test_update_item_checks_stock(customer, switch_item):
    service = CartService()
    line = service.add_item(customer, switch_item.pk, 1)

    assert service.update_item(customer, line.pk, 2).quantity == 2
    with pytest.raises(InsufficientStockError, match='Insufficient stock. Available: 2'):
        service.update_item(customer, line.pk, 5)


def test_update_foreign_line(customer, other_customer, router_item):
    line = CartService().add_item(customer, router_item.pk, 1)

    with pytest.raises(ForbiddenError, match='You can only modify your own cart'):
        CartService().update_item(other_customer, line.pk, 2)
    with pytest.raises(ForbiddenError):
        CartService().remove_item(other_customer, line.pk)


def test_update_missing_line(customer):
    with pytest.raises(NotFoundError, match='Cart item not found'):
        CartService().update_item(customer, 999, 1)


def test_remove_and_clear(customer, router_item, switch_item):
    service = CartService()
    line = service.add_item(customer, router_item.pk, 1)
    service.add_item(customer, switch_item.pk, 1)

    service.remove_item(customer, line.pk)
    assert service.get_cart(customer).item_count == 1

    assert service.clear(customer) == 1
    assert service.get_cart(customer).item_count == 0


def test_clear_without_cart(customer):
    with pytest.raises(NotFoundError, match='Cart not found'):
        CartService().clear(customer)
