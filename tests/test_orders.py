"""
Checkout transaction and order lifecycle
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.cart.models import CartItem
from apps.cart.services import CartService
from apps.catalog.models import ProductItem
from apps.core.exceptions import (
    BadRequestError,
    DiscountError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
)
from apps.discounts.models import Discount, DiscountUsage
from apps.orders.models import OrderStatusHistory, ShopOrder
from apps.orders.services import OrderService

pytestmark = pytest.mark.django_db


def assert_nothing_placed(customer, router_item, discount, used_count, cart_lines=1):
    router_item.refresh_from_db()
    discount.refresh_from_db()
    assert router_item.qty_in_stock == 10
    assert CartItem.objects.filter(cart__user=customer).count() == cart_lines
    assert ShopOrder.objects.count() == 0
    assert discount.used_count == used_count
    assert not DiscountUsage.objects.exists()


@pytest.fixture
def place(customer, address, payment_method, standard_shipping, statuses):
    """Place an order for the customer with their default references."""
    def _place(**overrides):
        kwargs = {
            'shipping_address_id': address.pk,
            'billing_address_id': address.pk,
            'payment_method_id': payment_method.pk,
            'shipping_method_id': standard_shipping.pk,
        }
        kwargs.update(overrides)
        return OrderService().place_order(customer, **kwargs)
    return _place


class TestPlaceOrder:

    def test_single_router_totals(self, customer, router_item, place):
        CartService().add_item(customer, router_item.pk, 1)

        order = place()

        assert order.subtotal == Decimal('2990000.00')
        assert order.discount_amount == Decimal('0.00')
        assert order.shipping_fee == Decimal('32500.00')
        assert order.total_amount == Decimal('3022500.00')
        assert order.status.code == 'pending'

    def test_creates_snapshot_lines_and_history(self, customer, router_item, switch_item, place):
        CartService().add_item(customer, router_item.pk, 2)
        CartService().add_item(customer, switch_item.pk, 1)

        order = place(customer_note='Call before delivery')

        lines = {line.sku: line for line in order.items.all()}
        assert set(lines) == {'TPL-AX55', 'CBS250-8T'}
        assert lines['TPL-AX55'].product_name == 'TP-Link Archer AX55'
        assert lines['TPL-AX55'].unit_price == Decimal('2990000.00')
        assert lines['TPL-AX55'].subtotal == Decimal('5980000.00')
        assert order.subtotal == Decimal('10480000.00')
        # 30,000 + 5,000 * (0.5 * 2 + 1.5)
        assert order.shipping_fee == Decimal('42500.00')
        assert order.customer_note == 'Call before delivery'

        history = OrderStatusHistory.objects.get(order=order)
        assert history.status.code == 'pending'
        assert history.note == 'Order created'
        assert history.created_by == customer

    def test_decrements_stock_and_empties_cart(self, customer, router_item, place):
        CartService().add_item(customer, router_item.pk, 3)

        place()

        router_item.refresh_from_db()
        assert router_item.qty_in_stock == 7
        assert not CartItem.objects.filter(cart__user=customer).exists()

    def test_order_number_format(self, customer, router_item, place):
        CartService().add_item(customer, router_item.pk, 1)
        first = place()
        CartService().add_item(customer, router_item.pk, 1)
        second = place()

        today = timezone.localdate().strftime('%Y%m%d')
        assert first.order_number == f"ORD-{today}-0001"
        assert second.order_number == f"ORD-{today}-0002"

    def test_empty_cart_rejected(self, place):
        with pytest.raises(BadRequestError, match='Cart is empty'):
            place()

    def test_foreign_address_rejected(self, customer, other_customer, router_item, place):
        CartService().add_item(customer, router_item.pk, 1)
        foreign = other_customer.user_addresses.get().address

        with pytest.raises(BadRequestError, match='Invalid address'):
            place(shipping_address_id=foreign.pk)

    def test_foreign_payment_method_rejected(self, customer, other_customer, router_item, place):
        CartService().add_item(customer, router_item.pk, 1)

        with pytest.raises(BadRequestError, match='Invalid payment method'):
            place(payment_method_id=other_customer.payment_methods.get().pk)

    def test_inactive_shipping_method_rejected(self, customer, router_item, standard_shipping, place):
        CartService().add_item(customer, router_item.pk, 1)
        standard_shipping.is_active = False
        standard_shipping.save()

        with pytest.raises(BadRequestError, match='Invalid shipping method'):
            place()

    def test_insufficient_stock_rolls_back(self, customer, router_item, switch_item, place):
        CartService().add_item(customer, router_item.pk, 1)
        CartService().add_item(customer, switch_item.pk, 2)
        # Stock drops after the item was carted
        ProductItem.objects.filter(pk=switch_item.pk).update(qty_in_stock=1)

        with pytest.raises(BadRequestError, match=r'Insufficient stock for Cisco CBS250\. Available: 1'):
            place()

        router_item.refresh_from_db()
        assert router_item.qty_in_stock == 10
        assert ShopOrder.objects.count() == 0
        assert CartItem.objects.filter(cart__user=customer).count() == 2

    def test_deactivated_product_rejected(self, customer, router_item, place):
        CartService().add_item(customer, router_item.pk, 1)
        router_item.product.is_active = False
        router_item.product.save()

        with pytest.raises(BadRequestError, match='Product TP-Link Archer AX55 is no longer available'):
            place()

    def test_missing_pending_status(self, customer, router_item, place, statuses):
        CartService().add_item(customer, router_item.pk, 1)
        statuses['pending'].delete()

        with pytest.raises(BadRequestError, match='Order status not configured'):
            place()


class TestPlaceOrderWithDiscount:

    def test_percentage_discount_applied_and_recorded(self, customer, router_item, place, discount_factory):
        discount = discount_factory(code='save10')
        CartService().add_item(customer, router_item.pk, 1)

        order = place(discount_code='Save10')

        assert order.discount == discount
        assert order.discount_amount == Decimal('299000.00')
        assert order.total_amount == Decimal('2990000') - Decimal('299000') + Decimal('32500')

        discount.refresh_from_db()
        assert discount.used_count == 1
        usage = DiscountUsage.objects.get(discount=discount)
        assert usage.order == order
        assert usage.discount_amount == Decimal('299000.00')

    def test_percentage_discount_capped(self, customer, router_item, place, discount_factory):
        discount_factory(max_discount_amount=Decimal('100000'))
        CartService().add_item(customer, router_item.pk, 1)

        order = place(discount_code='SAVE10')

        assert order.discount_amount == Decimal('100000.00')

    def test_fixed_discount_capped_by_subtotal(self, customer, router_item, place, discount_factory):
        discount_factory(
            code='BIGFIXED',
            discount_type=Discount.TYPE_FIXED_AMOUNT,
            discount_value=Decimal('5000000'),
        )
        CartService().add_item(customer, router_item.pk, 1)

        order = place(discount_code='BIGFIXED')

        assert order.discount_amount == Decimal('2990000.00')
        assert order.total_amount == Decimal('32500.00')

    def test_unknown_code_rolls_back(self, customer, router_item, place):
        CartService().add_item(customer, router_item.pk, 1)

        with pytest.raises(DiscountError, match='Invalid discount code'):
            place(discount_code='NOPE')

        router_item.refresh_from_db()
        assert router_item.qty_in_stock == 10
        assert ShopOrder.objects.count() == 0

    def test_expired_code_leaves_nothing_behind(self, customer, router_item, place, discount_factory):
        now = timezone.now()
        discount = discount_factory(starts_at=now - timedelta(days=10), ends_at=now - timedelta(days=1))
        CartService().add_item(customer, router_item.pk, 1)

        with pytest.raises(DiscountError, match='Discount code has expired'):
            place(discount_code='SAVE10')

        assert_nothing_placed(customer, router_item, discount, used_count=0)

    def test_exhausted_code_leaves_nothing_behind(self, customer, router_item, place, discount_factory):
        discount = discount_factory(max_uses=1, used_count=1)
        CartService().add_item(customer, router_item.pk, 1)

        with pytest.raises(DiscountError, match='Discount code usage limit reached'):
            place(discount_code='SAVE10')

        assert_nothing_placed(customer, router_item, discount, used_count=1)

    def test_stock_failure_keeps_discount_unused(self, customer, router_item, switch_item, place, discount_factory):
        discount = discount_factory()
        CartService().add_item(customer, router_item.pk, 1)
        CartService().add_item(customer, switch_item.pk, 2)
        ProductItem.objects.filter(pk=switch_item.pk).update(qty_in_stock=1)

        with pytest.raises(InsufficientStockError) as excinfo:
            place(discount_code='SAVE10')

        assert excinfo.value.sku == 'CBS250-8T'
        assert excinfo.value.available == 1
        assert_nothing_placed(customer, router_item, discount, used_count=0, cart_lines=2)
        switch_item.refresh_from_db()
        assert switch_item.qty_in_stock == 1

    def test_per_user_cap(self, customer, router_item, place, discount_factory):
        discount_factory(max_uses_per_user=1)
        CartService().add_item(customer, router_item.pk, 1)
        place(discount_code='SAVE10')
        CartService().add_item(customer, router_item.pk, 1)

        with pytest.raises(DiscountError, match='You have reached the usage limit for this discount code'):
            place(discount_code='SAVE10')

    def test_minimum_amount(self, customer, router_item, place, discount_factory):
        discount_factory(min_order_amount=Decimal('5000000'))
        CartService().add_item(customer, router_item.pk, 1)

        with pytest.raises(DiscountError, match='Minimum order amount for this discount is 5000000'):
            place(discount_code='SAVE10')


class TestOrderLifecycle:

    @pytest.fixture
    def order(self, customer, router_item, place):
        CartService().add_item(customer, router_item.pk, 2)
        return place()

    def test_forward_transitions_stamp_dates(self, order, admin_user):
        service = OrderService()
        service.update_status(order.pk, 'processing', admin_user)
        service.update_status(order.pk, 'shipped', admin_user, tracking_number='VN123456')
        updated = service.update_status(order.pk, 'delivered', admin_user)

        assert updated.status.code == 'delivered'
        assert updated.tracking_number == 'VN123456'
        assert updated.shipped_at is not None
        assert updated.delivered_at is not None
        assert OrderStatusHistory.objects.filter(order=order).count() == 4

    def test_backwards_transition_rejected(self, order, admin_user):
        service = OrderService()
        service.update_status(order.pk, 'shipped', admin_user)

        with pytest.raises(BadRequestError):
            service.update_status(order.pk, 'processing', admin_user)

    def test_cancelled_is_terminal(self, order, admin_user):
        service = OrderService()
        service.update_status(order.pk, 'cancelled', admin_user)

        with pytest.raises(BadRequestError):
            service.update_status(order.pk, 'processing', admin_user)

    def test_same_status_update_is_recorded(self, order, admin_user):
        service = OrderService()
        delivered = service.update_status(order.pk, 'delivered', admin_user)
        stamped = delivered.delivered_at

        again = service.update_status(order.pk, 'delivered', admin_user, note='Customer confirmed receipt')

        assert again.status.code == 'delivered'
        assert again.delivered_at == stamped
        assert OrderStatusHistory.objects.filter(order=order, status__code='delivered').count() == 2

    def test_same_terminal_status_rejected(self, order, admin_user):
        service = OrderService()
        service.update_status(order.pk, 'cancelled', admin_user)

        with pytest.raises(BadRequestError):
            service.update_status(order.pk, 'cancelled', admin_user)

    def test_delivered_cannot_be_cancelled(self, order, admin_user):
        service = OrderService()
        service.update_status(order.pk, 'delivered', admin_user)

        with pytest.raises(BadRequestError):
            service.update_status(order.pk, 'cancelled', admin_user)
        assert service.update_status(order.pk, 'returned', admin_user).status.code == 'returned'

    def test_admin_cancel_restores_stock(self, order, admin_user, router_item):
        router_item.refresh_from_db()
        assert router_item.qty_in_stock == 8

        OrderService().update_status(order.pk, 'cancelled', admin_user, note='Out of stock at warehouse')

        router_item.refresh_from_db()
        assert router_item.qty_in_stock == 10
        latest = OrderStatusHistory.objects.filter(order=order).first()
        assert latest.status.code == 'cancelled'
        assert latest.note == 'Out of stock at warehouse'

    def test_unknown_status(self, order, admin_user):
        with pytest.raises(BadRequestError, match='Invalid status'):
            OrderService().update_status(order.pk, 'lost', admin_user)

    def test_customer_cancel_while_pending(self, order, customer, router_item):
        cancelled = OrderService().cancel(order.pk, customer, 'Changed my mind')

        assert cancelled.status.code == 'cancelled'
        router_item.refresh_from_db()
        assert router_item.qty_in_stock == 10

    def test_customer_cannot_cancel_shipped(self, order, customer, admin_user):
        OrderService().update_status(order.pk, 'shipped', admin_user)

        with pytest.raises(BadRequestError):
            OrderService().cancel(order.pk, customer)

    def test_customer_cannot_cancel_foreign_order(self, order, other_customer):
        with pytest.raises(ForbiddenError):
            OrderService().cancel(order.pk, other_customer)


class TestOrderQueries:

    def test_owner_and_admin_can_view(self, customer, other_customer, admin_user, router_item, place):
        CartService().add_item(customer, router_item.pk, 1)
        order = place()
        service = OrderService()

        assert service.get(order.pk, customer).pk == order.pk
        assert service.get(order.pk, admin_user, is_admin=True).pk == order.pk
        assert service.get_by_number(order.order_number, customer).pk == order.pk

        with pytest.raises(ForbiddenError, match='You can only view your own orders'):
            service.get(order.pk, other_customer)

    def test_missing_order(self, customer):
        with pytest.raises(NotFoundError):
            OrderService().get(999, customer)

    def test_list_for_user_filters(self, customer, admin_user, router_item, place):
        service = OrderService()
        for _ in range(3):
            CartService().add_item(customer, router_item.pk, 1)
            place()
        first = ShopOrder.objects.order_by('pk').first()
        service.update_status(first.pk, 'processing', admin_user)

        items, meta = service.list_for_user(customer, page=1, limit=2)
        assert len(items) == 2
        assert meta == {"total": 3, "page": 1, "limit": 2, "total_pages": 2}

        items, meta = service.list_for_user(customer, status='processing')
        assert [order.pk for order in items] == [first.pk]

    def test_list_all_search(self, customer, router_item, place):
        CartService().add_item(customer, router_item.pk, 1)
        place()

        items, meta = OrderService().list_all(search='an@example')
        assert meta['total'] == 1
        items, meta = OrderService().list_all(search='nobody')
        assert meta['total'] == 0

    def test_statistics(self, customer, admin_user, router_item, place):
        CartService().add_item(customer, router_item.pk, 1)
        order = place()
        OrderService().update_status(order.pk, 'delivered', admin_user)

        stats = OrderService().statistics()

        assert stats['total_orders'] == 1
        assert stats['today_orders'] == 1
        assert stats['total_revenue'] == Decimal('3022500.00')
        counts = {row['code']: row['count'] for row in stats['by_status']}
        assert counts['delivered'] == 1
        assert counts['pending'] == 0
