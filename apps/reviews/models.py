"""
Reviews Models - Product Feedback
Tables: product_reviews
"""
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.core.models import BaseModel


class ProductReview(BaseModel):
    """
    One review per (user, product). Hidden from the storefront until an
    admin approves it.
    """
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews')
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    title = models.CharField(max_length=200, blank=True, null=True)
    comment = models.TextField(blank=True, null=True)
    is_approved = models.BooleanField(default=False)
    admin_reply = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'product_reviews'
        verbose_name = 'Product Review'
        verbose_name_plural = 'Product Reviews'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'product'], name='uniq_review_user_product'),
        ]

    def __str__(self):
        return f"{self.rating}/5 on product {self.product_id} by user {self.user_id}"
