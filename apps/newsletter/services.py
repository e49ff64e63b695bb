"""
Newsletter Service - subscriptions and the admin subscriber list
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from django.db.models import Count
from django.utils import timezone

from apps.core.constants import ERROR_MESSAGES
from apps.core.exceptions import ConflictError, NotFoundError
from apps.core.utils import paginate
from .models import NewsletterSubscriber

logger = logging.getLogger(__name__)


class NewsletterService:

    def subscribe(self, email: str) -> NewsletterSubscriber:
        """
        Add an address, or reactivate one that unsubscribed earlier.
        """
        email = email.strip().lower()
        subscriber = NewsletterSubscriber.objects.filter(email=email).first()

        if subscriber is None:
            subscriber = NewsletterSubscriber.objects.create(email=email)
            logger.info(f"New newsletter subscriber {subscriber.pk}")
            return subscriber

        if subscriber.status == NewsletterSubscriber.STATUS_ACTIVE:
            raise ConflictError(ERROR_MESSAGES['ALREADY_SUBSCRIBED'])

        subscriber.status = NewsletterSubscriber.STATUS_ACTIVE
        subscriber.subscribed_at = timezone.now()
        subscriber.unsubscribed_at = None
        subscriber.save()
        logger.info(f"Newsletter subscriber {subscriber.pk} re-subscribed")
        return subscriber

    def unsubscribe(self, email: str) -> NewsletterSubscriber:
        subscriber = NewsletterSubscriber.objects.filter(email=email.strip().lower()).first()
        if not subscriber:
            raise NotFoundError(ERROR_MESSAGES['SUBSCRIBER_EMAIL_NOT_FOUND'])
        if subscriber.status == NewsletterSubscriber.STATUS_UNSUBSCRIBED:
            raise ConflictError(ERROR_MESSAGES['ALREADY_UNSUBSCRIBED'])

        subscriber.status = NewsletterSubscriber.STATUS_UNSUBSCRIBED
        subscriber.unsubscribed_at = timezone.now()
        subscriber.save()
        return subscriber

    def list(self, page: Any = None, limit: Any = None, status: Optional[str] = None) -> Tuple[List, Dict]:
        queryset = NewsletterSubscriber.objects.order_by('-subscribed_at', '-pk')
        # 'all' is what the admin filter sends for no filter
        if status and status != 'all':
            queryset = queryset.filter(status=status)
        return paginate(queryset, page, limit)

    def delete(self, subscriber_id: int) -> None:
        subscriber = NewsletterSubscriber.objects.filter(pk=subscriber_id).first()
        if not subscriber:
            raise NotFoundError(ERROR_MESSAGES['SUBSCRIBER_NOT_FOUND'])
        subscriber.delete()

    def stats(self) -> Dict[str, int]:
        counts = dict(NewsletterSubscriber.objects.values_list('status').annotate(count=Count('id')).order_by())
        return {
            "total": sum(counts.values()),
            "active": counts.get(NewsletterSubscriber.STATUS_ACTIVE, 0),
            "unsubscribed": counts.get(NewsletterSubscriber.STATUS_UNSUBSCRIBED, 0),
        }
