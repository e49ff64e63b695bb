"""
Abstract base models for NetTech Shop applications
"""
from django.db import models


class TimestampedModel(models.Model):
    """
    Abstract model with creation and modification timestamps.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class BaseModel(TimestampedModel):
    """
    Abstract base model ordered newest first.
    """

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return str(self.pk)
