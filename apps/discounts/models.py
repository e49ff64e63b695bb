"""
Discount Models - Promotional Codes
Tables: discounts, discount_usage
"""
from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.models import BaseModel


class Discount(BaseModel):
    """
    Promotional code with a percentage or fixed value, a usage cap and a
    validity window. Limits are enforced in application code at redemption.
    """
    TYPE_PERCENTAGE = 'percentage'
    TYPE_FIXED_AMOUNT = 'fixed_amount'
    TYPE_CHOICES = [
        (TYPE_PERCENTAGE, 'Percentage'),
        (TYPE_FIXED_AMOUNT, 'Fixed Amount'),
    ]

    code = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255, blank=True, null=True)
    discount_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_PERCENTAGE)
    discount_value = models.DecimalField(max_digits=14, decimal_places=2)
    min_order_amount = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True)
    max_discount_amount = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True)
    max_uses = models.PositiveIntegerField(blank=True, null=True)
    max_uses_per_user = models.PositiveIntegerField(blank=True, null=True)
    used_count = models.PositiveIntegerField(default=0)
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'discounts'
        verbose_name = 'Discount'
        verbose_name_plural = 'Discounts'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.code} ({self.discount_type} {self.discount_value})"

    def save(self, *args, **kwargs):
        # Codes are matched case-insensitively by storing them upper-case
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_expired(self) -> bool:
        return self.ends_at < timezone.now()


class DiscountUsage(models.Model):
    """
    One row per order that redeemed a code.
    """
    discount = models.ForeignKey(Discount, on_delete=models.PROTECT, related_name='usages')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='discount_usages')
    order = models.ForeignKey('orders.ShopOrder', on_delete=models.CASCADE, related_name='discount_usages')
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2)
    used_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'discount_usage'
        verbose_name = 'Discount Usage'
        verbose_name_plural = 'Discount Usage'
        ordering = ['-used_at']

    def __str__(self):
        return f"{self.discount.code} on order {self.order_id}"
