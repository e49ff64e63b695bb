"""
Accounts Models - Users, Roles, Addresses, Payment Methods
Tables: site_users, roles, user_roles, addresses, user_addresses,
        payment_types, payment_methods
"""
from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.db import models

from apps.core.constants import ROLE_ADMIN, ROLE_USER
from apps.core.models import BaseModel, TimestampedModel


class Role(TimestampedModel):
    """
    Named role attached to users ('admin', 'user').
    """
    name = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255, blank=True, null=True)

    class Meta:
        db_table = 'roles'
        verbose_name = 'Role'
        verbose_name_plural = 'Roles'

    def __str__(self):
        return self.name


class SiteUserManager(BaseUserManager):
    """
    Manager creating users with hashed passwords and a default role.
    """

    def create_user(self, email, username, password=None, role=ROLE_USER, **extra_fields):
        if not email:
            raise ValueError('Users must have an email address')
        user = self.model(email=self.normalize_email(email), username=username, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        if role:
            role_obj, _ = Role.objects.get_or_create(name=role)
            UserRole.objects.get_or_create(user=user, role=role_obj)
        return user

    def create_superuser(self, email, username, password=None, **extra_fields):
        return self.create_user(email, username, password=password, role=ROLE_ADMIN, **extra_fields)


class SiteUser(AbstractBaseUser, TimestampedModel):
    """
    Customer or administrator account.
    Deactivation is soft (is_active=False); accounts are never deleted.
    """
    email = models.EmailField(unique=True)
    username = models.CharField(max_length=150, unique=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    is_email_verified = models.BooleanField(default=False)
    roles = models.ManyToManyField(Role, through='UserRole', related_name='users')

    objects = SiteUserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        db_table = 'site_users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.username} ({self.email})"

    @property
    def role_names(self):
        return [role.name for role in self.roles.all()]

    def has_role(self, name: str) -> bool:
        return self.roles.filter(name=name).exists()

    @property
    def is_admin(self) -> bool:
        return self.has_role(ROLE_ADMIN)


class UserRole(TimestampedModel):
    user = models.ForeignKey(SiteUser, on_delete=models.CASCADE, related_name='user_roles')
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name='user_roles')

    class Meta:
        db_table = 'user_roles'
        constraints = [
            models.UniqueConstraint(fields=['user', 'role'], name='uniq_user_role'),
        ]

    def __str__(self):
        return f"{self.user_id} -> {self.role.name}"


class Address(TimestampedModel):
    """
    Postal address. Shared rows are linked to users through UserAddress.
    """
    street_address = models.CharField(max_length=500)
    ward = models.CharField(max_length=100, blank=True, null=True)
    city = models.CharField(max_length=100)
    region = models.CharField(max_length=100, blank=True, null=True, help_text="District / province")
    postal_code = models.CharField(max_length=20, blank=True, null=True)
    country = models.CharField(max_length=100, default='Vietnam')

    class Meta:
        db_table = 'addresses'
        verbose_name = 'Address'
        verbose_name_plural = 'Addresses'

    def __str__(self):
        return f"{self.street_address}, {self.city}"


class UserAddress(TimestampedModel):
    ADDRESS_TYPE_CHOICES = [
        ('shipping', 'Shipping'),
        ('billing', 'Billing'),
    ]

    user = models.ForeignKey(SiteUser, on_delete=models.CASCADE, related_name='user_addresses')
    address = models.ForeignKey(Address, on_delete=models.CASCADE, related_name='user_links')
    address_type = models.CharField(max_length=20, choices=ADDRESS_TYPE_CHOICES, default='shipping')
    is_default = models.BooleanField(default=False)

    class Meta:
        db_table = 'user_addresses'
        constraints = [
            models.UniqueConstraint(fields=['user', 'address'], name='uniq_user_address'),
        ]
        ordering = ['-is_default', '-created_at']

    def __str__(self):
        return f"{self.user_id} @ {self.address_id}"


class PaymentType(TimestampedModel):
    """
    Payment kinds offered by the shop (COD, bank transfer, cards, wallets).
    """
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=30, unique=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'payment_types'
        verbose_name = 'Payment Type'
        verbose_name_plural = 'Payment Types'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.code})"


class PaymentMethod(BaseModel):
    """
    A payment option saved by a user; orders reference it.
    """
    user = models.ForeignKey(SiteUser, on_delete=models.CASCADE, related_name='payment_methods')
    payment_type = models.ForeignKey(PaymentType, on_delete=models.PROTECT, related_name='payment_methods')
    provider = models.CharField(max_length=100, blank=True, null=True)
    account_number = models.CharField(max_length=50, blank=True, null=True)
    expiry_date = models.DateField(blank=True, null=True)
    is_default = models.BooleanField(default=False)

    class Meta:
        db_table = 'payment_methods'
        verbose_name = 'Payment Method'
        verbose_name_plural = 'Payment Methods'
        ordering = ['-is_default', '-created_at']

    def __str__(self):
        return f"{self.payment_type.code} ****{(self.account_number or 'XXXX')[-4:]}"

    def save(self, *args, **kwargs):
        # Ensure only one default per user
        if self.is_default:
            PaymentMethod.objects.filter(user=self.user, is_default=True).exclude(pk=self.pk).update(is_default=False)
        super().save(*args, **kwargs)
