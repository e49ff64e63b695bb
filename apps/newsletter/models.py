"""
Newsletter Models - Mailing List
Tables: newsletter_subscribers
"""
from django.db import models
from django.utils import timezone

from apps.core.models import TimestampedModel


class NewsletterSubscriber(TimestampedModel):
    """
    One row per e-mail address. Unsubscribing keeps the row so the address
    can re-subscribe later.
    """
    STATUS_ACTIVE = 'active'
    STATUS_UNSUBSCRIBED = 'unsubscribed'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_UNSUBSCRIBED, 'Unsubscribed'),
    ]

    email = models.EmailField(max_length=320, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    subscribed_at = models.DateTimeField(default=timezone.now)
    unsubscribed_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'newsletter_subscribers'
        verbose_name = 'Newsletter Subscriber'
        verbose_name_plural = 'Newsletter Subscribers'
        ordering = ['-subscribed_at']

    def __str__(self):
        return f"{self.email} ({self.status})"
