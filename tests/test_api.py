"""
HTTP surface: envelopes, authentication, permissions and a checkout over the API
"""
from unittest import mock

import pytest

from apps.accounts.tokens import issue_refresh_token
from apps.core.constants import ERROR_MESSAGES

from .conftest import PASSWORD, auth_client

pytestmark = pytest.mark.django_db


class TestEnvelope:

    def test_health(self, api_client):
        response = api_client.get('/api/v1/health/')

        assert response.status_code == 200
        body = response.json()
        assert body['success'] is True
        assert body['data']['status'] == 'healthy'
        assert body['data']['database'] == 'healthy'

    def test_paginated_list(self, api_client, router_item, switch_item):
        response = api_client.get('/api/v1/products/', {'limit': 1})

        body = response.json()
        assert response.status_code == 200
        assert body['success'] is True
        assert len(body['data']['data']) == 1
        assert body['data']['pagination'] == {'total': 2, 'page': 1, 'limit': 1, 'total_pages': 2}

    def test_not_found_envelope(self, api_client, db):
        response = api_client.get('/api/v1/products/999/')

        assert response.status_code == 404
        body = response.json()
        assert body['success'] is False
        assert body['status_code'] == 404
        assert body['details']['code'] == 'NOT_FOUND'

    def test_validation_envelope(self, api_client, db):
        response = api_client.post('/api/v1/auth/register/', {'email': 'not-an-email', 'username': 'x'})

        assert response.status_code == 400
        body = response.json()
        assert body['message'] == ERROR_MESSAGES['INVALID_INPUT']
        assert set(body['details']) >= {'email', 'username', 'password'}


class TestAuthentication:

    def test_register_and_login(self, api_client, db):
        response = api_client.post(
            '/api/v1/auth/register/',
            {'email': 'chi@example.com', 'username': 'chi', 'password': PASSWORD},
        )
        assert response.status_code == 201
        assert response.json()['data']['roles'] == ['user']

        response = api_client.post('/api/v1/auth/login/', {'email': 'chi@example.com', 'password': PASSWORD})
        assert response.status_code == 200
        assert response.json()['data']['access_token']

    def test_register_conflict(self, api_client, customer):
        response = api_client.post(
            '/api/v1/auth/register/',
            {'email': 'an@example.com', 'username': 'another', 'password': PASSWORD},
        )

        assert response.status_code == 409
        assert response.json()['message'] == ERROR_MESSAGES['EMAIL_ALREADY_EXISTS']

    def test_missing_token(self, api_client, db):
        response = api_client.get('/api/v1/cart/')

        assert response.status_code == 401
        assert response.json()['success'] is False

    def test_garbage_token(self, api_client, db):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer nonsense')

        assert api_client.get('/api/v1/cart/').status_code == 401

    def test_refresh_token_not_accepted_as_access(self, api_client, customer):
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_refresh_token(customer)}")

        assert api_client.get('/api/v1/users/me/').status_code == 401

    def test_deactivated_user_rejected(self, customer, customer_client):
        customer.is_active = False
        customer.save()

        assert customer_client.get('/api/v1/users/me/').status_code == 401

    def test_refresh_endpoint(self, api_client, customer):
        response = api_client.post('/api/v1/auth/refresh/', {'refresh_token': issue_refresh_token(customer)})

        assert response.status_code == 200
        assert 'refresh_token' not in response.json()['data']

    def test_customer_cannot_use_admin_login(self, api_client, customer):
        response = api_client.post('/api/v1/auth/admin/login/', {'email': 'an@example.com', 'password': PASSWORD})
        assert response.status_code == 403

    @mock.patch('apps.accounts.services.id_token.verify_oauth2_token')
    def test_google_login(self, verify, api_client, db):
        verify.return_value = {'email': 'dung@gmail.com'}

        response = api_client.post('/api/v1/auth/google/', {'credential': 'token'})

        assert response.status_code == 200
        assert response.json()['data']['email'] == 'dung@gmail.com'


class TestPermissions:

    def test_customer_blocked_from_admin_endpoints(self, customer_client):
        assert customer_client.get('/api/v1/admin/dashboard/').status_code == 403
        assert customer_client.get('/api/v1/orders/admin/all/').status_code == 403
        assert customer_client.post('/api/v1/discounts/', {}).status_code == 403

    def test_catalog_reads_are_public_writes_are_not(self, api_client, customer_client, category):
        payload = {'category_id': category.pk, 'name': 'Ubiquiti U6 Lite', 'slug': 'u6-lite'}

        assert api_client.get('/api/v1/categories/').status_code == 200
        assert api_client.post('/api/v1/products/', payload).status_code == 401
        assert customer_client.post('/api/v1/products/', payload).status_code == 403

    def test_admin_creates_product(self, admin_client, category):
        response = admin_client.post(
            '/api/v1/products/',
            {'category_id': category.pk, 'name': 'Ubiquiti U6 Lite', 'slug': 'u6-lite', 'brand': 'Ubiquiti'},
        )

        assert response.status_code == 201
        assert response.json()['data']['slug'] == 'u6-lite'

    def test_admin_dashboard(self, admin_client, statuses):
        response = admin_client.get('/api/v1/admin/dashboard/')

        assert response.status_code == 200
        assert response.json()['data']['total_orders'] == 0


class TestCheckoutFlow:

    def test_place_and_cancel_order(self, customer_client, admin_client, address, payment_method,
                                    standard_shipping, statuses, router_item, discount_factory):
        discount_factory()

        response = customer_client.post('/api/v1/cart/items/', {'product_item_id': router_item.pk, 'quantity': 2})
        assert response.status_code == 201

        response = customer_client.post('/api/v1/discounts/validate/', {'code': 'SAVE10', 'order_amount': '5980000'})
        assert response.json()['data']['valid'] is True

        response = customer_client.post('/api/v1/orders/', {
            'shipping_address_id': address.pk,
            'billing_address_id': address.pk,
            'payment_method_id': payment_method.pk,
            'shipping_method_id': standard_shipping.pk,
            'discount_code': 'SAVE10',
        })
        assert response.status_code == 201
        order = response.json()['data']
        assert order['subtotal'] == '5980000.00'
        assert order['discount_amount'] == '598000.00'
        assert order['shipping_fee'] == '35000.00'
        assert order['total_amount'] == '5417000.00'
        assert order['discount_code'] == 'SAVE10'
        assert order['status']['code'] == 'pending'
        assert order['payment_method']['account_number'] is None

        cart = customer_client.get('/api/v1/cart/').json()['data']
        assert cart['item_count'] == 0

        response = customer_client.get(f"/api/v1/orders/number/{order['order_number']}/")
        assert response.json()['data']['id'] == order['id']

        response = customer_client.patch(f"/api/v1/orders/{order['id']}/cancel/", {'reason': 'Changed my mind'})
        assert response.status_code == 200
        assert response.json()['data']['status']['code'] == 'cancelled'

        response = admin_client.patch(f"/api/v1/orders/{order['id']}/status/", {'status': 'processing'})
        assert response.status_code == 400

    def test_insufficient_stock_details(self, customer_client, address, payment_method,
                                        standard_shipping, statuses, switch_item):
        customer_client.post('/api/v1/cart/items/', {'product_item_id': switch_item.pk, 'quantity': 2})
        switch_item.qty_in_stock = 1
        switch_item.save()

        response = customer_client.post('/api/v1/orders/', {
            'shipping_address_id': address.pk,
            'billing_address_id': address.pk,
            'payment_method_id': payment_method.pk,
            'shipping_method_id': standard_shipping.pk,
        })

        assert response.status_code == 400
        details = response.json()['details']
        assert details['code'] == 'INSUFFICIENT_STOCK'
        assert details['sku'] == 'CBS250-8T'
        assert details['available'] == 1

    def test_other_customer_cannot_view_order(self, customer, other_customer, address, payment_method,
                                              standard_shipping, statuses, router_item):
        customer_client = auth_client(customer)
        customer_client.post('/api/v1/cart/items/', {'product_item_id': router_item.pk, 'quantity': 1})
        order_id = customer_client.post('/api/v1/orders/', {
            'shipping_address_id': address.pk,
            'billing_address_id': address.pk,
            'payment_method_id': payment_method.pk,
            'shipping_method_id': standard_shipping.pk,
        }).json()['data']['id']

        response = auth_client(other_customer).get(f"/api/v1/orders/{order_id}/")

        assert response.status_code == 403
