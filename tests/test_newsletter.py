"""
Newsletter subscriptions
"""
import pytest

from apps.core.constants import ERROR_MESSAGES, SUCCESS_MESSAGES
from apps.core.exceptions import ConflictError, NotFoundError
from apps.newsletter.models import NewsletterSubscriber
from apps.newsletter.services import NewsletterService

pytestmark = pytest.mark.django_db


class TestNewsletterService:

    def test_subscribe_normalises_email(self):
        subscriber = NewsletterService().subscribe('  Lan@Example.COM ')

        assert subscriber.email == 'lan@example.com'
        assert subscriber.status == NewsletterSubscriber.STATUS_ACTIVE

    def test_duplicate_subscription(self):
        service = NewsletterService()
        service.subscribe('lan@example.com')

        with pytest.raises(ConflictError, match=ERROR_MESSAGES['ALREADY_SUBSCRIBED']):
            service.subscribe('LAN@example.com')

    def test_unsubscribe_then_resubscribe(self):
        service = NewsletterService()
        service.subscribe('lan@example.com')

        left = service.unsubscribe('lan@example.com')
        assert left.status == NewsletterSubscriber.STATUS_UNSUBSCRIBED
        assert left.unsubscribed_at is not None

        with pytest.raises(ConflictError, match=ERROR_MESSAGES['ALREADY_UNSUBSCRIBED']):
            service.unsubscribe('lan@example.com')

        back = service.subscribe('lan@example.com')
        assert back.pk == left.pk
        assert back.status == NewsletterSubscriber.STATUS_ACTIVE
        assert back.unsubscribed_at is None
        assert NewsletterSubscriber.objects.count() == 1

    def test_unsubscribe_unknown_email(self):
        with pytest.raises(NotFoundError, match=ERROR_MESSAGES['SUBSCRIBER_EMAIL_NOT_FOUND']):
            NewsletterService().unsubscribe('nobody@example.com')

    def test_list_and_stats(self):
        service = NewsletterService()
        service.subscribe('lan@example.com')
        service.subscribe('minh@example.com')
        service.unsubscribe('minh@example.com')

        active, meta = service.list(status='active')
        everyone, _ = service.list(status='all')

        assert [s.email for s in active] == ['lan@example.com']
        assert meta['total'] == 1
        assert len(everyone) == 2
        assert service.stats() == {'total': 2, 'active': 1, 'unsubscribed': 1}

    def test_delete(self):
        service = NewsletterService()
        subscriber = service.subscribe('lan@example.com')

        service.delete(subscriber.pk)

        assert not NewsletterSubscriber.objects.exists()
        with pytest.raises(NotFoundError, match=ERROR_MESSAGES['SUBSCRIBER_NOT_FOUND']):
            service.delete(subscriber.pk)


class TestNewsletterApi:

    def test_subscribe_and_unsubscribe(self, api_client):
        response = api_client.post('/api/v1/newsletter/subscribe/', {'email': 'lan@example.com'})
        assert response.status_code == 201
        assert response.json()['message'] == SUCCESS_MESSAGES['SUBSCRIBED_SUCCESS']

        response = api_client.post('/api/v1/newsletter/subscribe/', {'email': 'lan@example.com'})
        assert response.status_code == 409

        response = api_client.post('/api/v1/newsletter/unsubscribe/', {'email': 'lan@example.com'})
        assert response.status_code == 200
        assert response.json()['data']['status'] == 'unsubscribed'

    def test_invalid_email(self, api_client):
        response = api_client.post('/api/v1/newsletter/subscribe/', {'email': 'not-an-email'})

        assert response.status_code == 400
        assert 'email' in response.json()['details']

    def test_admin_endpoints(self, api_client, customer_client, admin_client):
        subscriber = NewsletterService().subscribe('lan@example.com')

        assert api_client.get('/api/v1/newsletter/').status_code == 401
        assert customer_client.get('/api/v1/newsletter/stats/').status_code == 403

        response = admin_client.get('/api/v1/newsletter/', {'status': 'active'})
        assert response.json()['data']['pagination']['total'] == 1
        assert admin_client.get('/api/v1/newsletter/stats/').json()['data']['active'] == 1

        assert admin_client.delete(f"/api/v1/newsletter/{subscriber.pk}/").status_code == 200
        assert admin_client.delete(f"/api/v1/newsletter/{subscriber.pk}/").status_code == 404
