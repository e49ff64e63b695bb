"""
Shared fixtures: reference data, a customer with an address and a payment
method, an admin, a small catalog and authenticated API clients.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from apps.accounts.models import Address, PaymentMethod, PaymentType, SiteUser, UserAddress
from apps.accounts.tokens import issue_access_token
from apps.catalog.models import Product, ProductCategory, ProductItem
from apps.core.constants import ROLE_ADMIN
from apps.discounts.models import Discount
from apps.orders.models import OrderStatus, ShippingMethod

PASSWORD = 'secret123'


@pytest.fixture
def statuses(db):
    OrderStatus.ensure_defaults()
    return {status.code: status for status in OrderStatus.objects.all()}


@pytest.fixture
def standard_shipping(db):
    return ShippingMethod.objects.create(
        name='Standard Delivery',
        code='STANDARD',
        base_price=Decimal('30000'),
        price_per_kg=Decimal('5000'),
        estimated_days=4,
    )


@pytest.fixture
def payment_type(db):
    return PaymentType.objects.create(name='Cash on Delivery', code='COD')


def make_user(email, username, payment_type=None, role='user'):
    user = SiteUser.objects.create_user(email=email, username=username, password=PASSWORD, role=role)
    address = Address.objects.create(street_address='12 Nguyen Hue', city='Ho Chi Minh', region='District 1')
    UserAddress.objects.create(user=user, address=address, is_default=True)
    if payment_type is not None:
        PaymentMethod.objects.create(user=user, payment_type=payment_type, is_default=True)
    return user


@pytest.fixture
def customer(db, payment_type):
    return make_user('an@example.com', 'an', payment_type)


@pytest.fixture
def other_customer(db, payment_type):
    return make_user('binh@example.com', 'binh', payment_type)


@pytest.fixture
def admin_user(db):
    return SiteUser.objects.create_user(
        email='admin@example.com', username='admin', password=PASSWORD, role=ROLE_ADMIN
    )


@pytest.fixture
def address(customer):
    return customer.user_addresses.get().address


@pytest.fixture
def payment_method(customer):
    return customer.payment_methods.get()


@pytest.fixture
def category(db):
    return ProductCategory.objects.create(name='Router', slug='router')


@pytest.fixture
def router(category):
    return Product.objects.create(
        category=category,
        name='TP-Link Archer AX55',
        slug='tp-link-archer-ax55',
        brand='TP-Link',
        model='AX55',
    )


@pytest.fixture
def router_item(router):
    return ProductItem.objects.create(
        product=router,
        sku='TPL-AX55',
        price=Decimal('2990000'),
        qty_in_stock=10,
        weight_kg=Decimal('0.5'),
        warranty_months=24,
    )


@pytest.fixture
def switch_item(category):
    product = Product.objects.create(
        category=category,
        name='Cisco CBS250',
        slug='cisco-cbs250',
        brand='Cisco',
    )
    return ProductItem.objects.create(
        product=product,
        sku='CBS250-8T',
        price=Decimal('4500000'),
        qty_in_stock=2,
        weight_kg=Decimal('1.5'),
    )


@pytest.fixture
def discount_factory(db):
    def factory(**overrides):
        now = timezone.now()
        fields = {
            'code': 'SAVE10',
            'discount_type': Discount.TYPE_PERCENTAGE,
            'discount_value': Decimal('10'),
            'starts_at': now - timedelta(days=1),
            'ends_at': now + timedelta(days=30),
        }
        fields.update(overrides)
        return Discount.objects.create(**fields)
    return factory


def auth_client(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_access_token(user)}")
    return client


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def customer_client(customer):
    return auth_client(customer)


@pytest.fixture
def admin_client(admin_user):
    return auth_client(admin_user)
