"""
Contacts Models - Storefront Contact Form
Tables: contacts
"""
from django.db import models
from apps.core.models import BaseModel


class Contact(BaseModel):
    """
    A message left through the public contact form, triaged by admins.
    """
    STATUS_NEW = 'new'
    STATUS_READ = 'read'
    STATUS_REPLIED = 'replied'
    STATUS_RESOLVED = 'resolved'
    STATUS_SPAM = 'spam'
    STATUS_CHOICES = [
        (STATUS_NEW, 'New'),
        (STATUS_READ, 'Read'),
        (STATUS_REPLIED, 'Replied'),
        (STATUS_RESOLVED, 'Resolved'),
        (STATUS_SPAM, 'Spam'),
    ]

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=320, blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    subject = models.CharField(max_length=200, blank=True, null=True)
    message = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_NEW, db_index=True)
    is_read = models.BooleanField(default=False)
    admin_note = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'contacts'
        verbose_name = 'Contact'
        verbose_name_plural = 'Contacts'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.last_name} {self.first_name}: {self.subject or 'no subject'}"
