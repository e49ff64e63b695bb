"""
Admin dashboard aggregates
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.cart.services import CartService
from apps.core.exceptions import BadRequestError, NotFoundError
from apps.dashboard.services import DashboardService
from apps.orders.services import OrderService
from apps.reviews.models import ProductReview

pytestmark = pytest.mark.django_db


@pytest.fixture
def orders(customer, admin_user, address, payment_method, standard_shipping, statuses, router_item, switch_item):
    """One delivered order (2 routers) and one pending order (1 switch)."""
    service = OrderService()
    refs = {
        'shipping_address_id': address.pk,
        'billing_address_id': address.pk,
        'payment_method_id': payment_method.pk,
        'shipping_method_id': standard_shipping.pk,
    }

    CartService().add_item(customer, router_item.pk, 2)
    delivered = service.place_order(customer, **refs)
    service.update_status(delivered.pk, 'delivered', admin_user)

    CartService().add_item(customer, switch_item.pk, 1)
    pending = service.place_order(customer, **refs)

    delivered.refresh_from_db()
    return delivered, pending


def test_stats(orders, customer, admin_user):
    delivered, pending = orders

    stats = DashboardService().stats()

    assert stats['total_users'] == 2
    assert stats['total_products'] == 2
    assert stats['total_orders'] == 2
    assert stats['pending_orders'] == 1
    assert stats['total_revenue'] == delivered.total_amount
    assert [o.pk for o in stats['recent_orders']] == [pending.pk, delivered.pk]
    assert stats['top_products'][0]['product']['name'] == 'TP-Link Archer AX55'
    assert stats['top_products'][0]['total_sold'] == 2
    assert stats['growth']['orders'] == 2


def test_revenue_report_range(orders):
    delivered, _ = orders
    now = timezone.now()

    report = DashboardService().revenue_report(now - timedelta(days=1), now + timedelta(days=1))

    assert report['total_orders'] == 1
    assert report['total_revenue'] == delivered.total_amount
    assert report['average_order_value'] == delivered.total_amount
    assert len(report['daily_revenue']) == 1

    empty = DashboardService().revenue_report(now + timedelta(days=1))
    assert empty['total_orders'] == 0
    assert empty['total_revenue'] == Decimal('0.00')


def test_orders_by_status(orders):
    rows = {row['code']: row for row in DashboardService().orders_by_status()}

    assert rows['delivered']['count'] == 1
    assert rows['pending']['count'] == 1
    assert rows['cancelled']['count'] == 0
    assert rows['cancelled']['revenue'] == Decimal('0.00')


def test_low_stock(router_item, switch_item):
    items = DashboardService().low_stock(threshold=5)
    assert [item.sku for item in items] == ['CBS250-8T']

    # Default threshold is inclusive
    items = DashboardService().low_stock()
    assert [item.sku for item in items] == ['CBS250-8T', 'TPL-AX55']


def test_toggle_user_status(customer, admin_user):
    service = DashboardService()

    assert service.toggle_user_status(customer.pk, admin_user).is_active is False
    assert service.toggle_user_status(customer.pk, admin_user).is_active is True


def test_toggle_own_account(admin_user):
    with pytest.raises(BadRequestError, match='Cannot deactivate your own account'):
        DashboardService().toggle_user_status(admin_user.pk, admin_user)


def test_toggle_unknown_user(admin_user):
    with pytest.raises(NotFoundError):
        DashboardService().toggle_user_status(999, admin_user)


def test_users_search(customer, other_customer):
    users, meta = DashboardService().users(search='binh')

    assert meta['total'] == 1
    assert users[0].pk == other_customer.pk


def test_review_moderation(customer, router):
    review = ProductReview.objects.create(user=customer, product=router, rating=4)
    service = DashboardService()

    pending, _ = service.reviews(is_approved=False)
    assert [r.pk for r in pending] == [review.pk]

    service.set_review_approval(review.pk, True)
    approved, _ = service.reviews(is_approved=True)
    assert [r.pk for r in approved] == [review.pk]


def place_for(user, shipping_method):
    address = user.user_addresses.get().address
    return OrderService().place_order(
        user,
        shipping_address_id=address.pk,
        billing_address_id=address.pk,
        payment_method_id=user.payment_methods.get().pk,
        shipping_method_id=shipping_method.pk,
    )


def test_top_products_ignore_cancelled_orders(orders, customer, standard_shipping, switch_item):
    CartService().add_item(customer, switch_item.pk, 1)
    cancelled = place_for(customer, standard_shipping)
    OrderService().cancel(cancelled.pk, customer, 'Ordered by mistake')

    top = {row['product']['name']: row['total_sold'] for row in DashboardService().stats()['top_products']}

    assert top == {'TP-Link Archer AX55': 2, 'Cisco CBS250': 1}


def test_top_customers(orders, customer, other_customer, admin_user, standard_shipping, router_item):
    delivered, pending = orders
    CartService().add_item(other_customer, router_item.pk, 1)
    dropped = place_for(other_customer, standard_shipping)
    OrderService().update_status(dropped.pk, 'cancelled', admin_user)

    rows = DashboardService().top_customers()

    assert len(rows) == 1
    assert rows[0]['id'] == customer.pk
    assert rows[0]['email'] == customer.email
    assert rows[0]['total_orders'] == 2
    assert rows[0]['total_spent'] == delivered.total_amount + pending.total_amount


def test_category_performance(orders, category):
    rows = DashboardService().category_performance('today')

    assert rows == [{
        'id': category.pk,
        'name': 'Router',
        'orders': 2,
        'items_sold': 3,
        'revenue': Decimal('10480000.00'),
    }]


def test_period_start():
    service = DashboardService()
    now = timezone.now()

    assert now - service.period_start('week') >= timedelta(days=7)
    assert now - service.period_start('bogus') >= timedelta(days=30)
    assert service.period_start('today') <= now


def test_top_customers_endpoint(admin_client, orders):
    response = admin_client.get('/api/v1/admin/top-customers/', {'limit': 5})

    assert response.status_code == 200
    assert response.json()['data'][0]['total_orders'] == 2
    assert admin_client.get('/api/v1/admin/top-customers/', {'limit': 'x'}).status_code == 400
