"""
Accounts Services - Authentication, Profile, Addresses, Payment Methods

This module handles:
- Registration, login (customer and admin), token refresh, Google sign-in
- Password changes
- Profile reads/updates with uniqueness checks
- Address book and saved payment methods
"""
import logging
import secrets
from typing import Dict, Any, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from apps.core.constants import ERROR_MESSAGES, ROLE_ADMIN, ROLE_USER
from apps.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from . import tokens
from .models import Address, PaymentMethod, PaymentType, SiteUser, UserAddress

logger = logging.getLogger(__name__)


class AuthService:
    """
    Account authentication and JWT issuance.
    """

    def register(self, email: str, username: str, password: str, phone: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a customer account and return it with a fresh token pair.
        """
        existing = SiteUser.objects.filter(Q(email__iexact=email) | Q(username=username)).first()
        if existing:
            if existing.email.lower() == email.lower():
                raise ConflictError(ERROR_MESSAGES['EMAIL_ALREADY_EXISTS'])
            raise ConflictError(ERROR_MESSAGES['USERNAME_ALREADY_EXISTS'])

        user = SiteUser.objects.create_user(
            email=email,
            username=username,
            password=password,
            phone=phone,
            is_email_verified=False,
            role=ROLE_USER,
        )
        logger.info(f"Registered user {user.pk} ({user.email})")
        return self._auth_result(user)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self._authenticate(email, password)
        logger.info(f"User {user.pk} logged in")
        return self._auth_result(user)

    def admin_login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Same as login, but only accounts holding the admin role may pass.
        """
        user = self._authenticate(email, password)
        if not user.has_role(ROLE_ADMIN):
            logger.warning(f"Non-admin user {user.pk} attempted admin login")
            raise ForbiddenError(ERROR_MESSAGES['UNAUTHORIZED'])
        logger.info(f"Admin {user.pk} logged in")
        return self._auth_result(user)

    def refresh(self, refresh_token: str) -> Dict[str, str]:
        """
        Exchange a valid refresh token for a new access token.
        """
        try:
            payload = tokens.decode_token(refresh_token, expected_type=tokens.REFRESH)
        except UnauthorizedError:
            raise UnauthorizedError(ERROR_MESSAGES['TOKEN_INVALID_OR_EXPIRED'])

        user = SiteUser.objects.filter(pk=payload.get("sub")).first()
        if not user or not user.is_active:
            raise UnauthorizedError(ERROR_MESSAGES['TOKEN_INVALID'])

        return {"access_token": tokens.issue_access_token(user)}

    def change_password(self, user: SiteUser, old_password: str, new_password: str) -> None:
        if not user.check_password(old_password):
            raise UnauthorizedError(ERROR_MESSAGES['INCORRECT_CURRENT_PASSWORD'])

        user.set_password(new_password)
        user.save(update_fields=['password', 'updated_at'])
        logger.info(f"User {user.pk} changed password")

    def google_login(self, credential: str) -> Dict[str, Any]:
        """
        Verify a Google ID token and sign the matching user in,
        creating a verified account on first use.
        """
        try:
            payload = id_token.verify_oauth2_token(
                credential,
                google_requests.Request(),
                settings.GOOGLE_CLIENT_ID,
            )
        except ValueError as e:
            logger.warning(f"Google token verification failed: {e}")
            raise UnauthorizedError(ERROR_MESSAGES['GOOGLE_AUTH_FAILED'])

        email = payload.get("email")
        if not email:
            raise UnauthorizedError(ERROR_MESSAGES['GOOGLE_TOKEN_INVALID'])

        user = SiteUser.objects.filter(email__iexact=email).first()
        if user is None:
            username = f"{email.split('@')[0]}_{secrets.token_hex(3)}"
            user = SiteUser.objects.create_user(
                email=email,
                username=username,
                password=None,
                is_email_verified=True,
                role=ROLE_USER,
            )
            logger.info(f"Created user {user.pk} from Google sign-in")

        if not user.is_active:
            raise UnauthorizedError(ERROR_MESSAGES['ACCOUNT_DISABLED'])

        return self._auth_result(user)

    def _authenticate(self, email: str, password: str) -> SiteUser:
        user = SiteUser.objects.filter(email__iexact=email).first()
        if not user:
            raise NotFoundError(ERROR_MESSAGES['EMAIL_NOT_FOUND'])
        if not user.is_active:
            raise UnauthorizedError(ERROR_MESSAGES['ACCOUNT_DISABLED'])
        if not user.check_password(password):
            raise UnauthorizedError(ERROR_MESSAGES['INCORRECT_PASSWORD'])
        return user

    def _auth_result(self, user: SiteUser) -> Dict[str, Any]:
        return {
            "id": user.pk,
            "email": user.email,
            "username": user.username,
            "roles": user.role_names,
            **tokens.issue_token_pair(user),
        }


class ProfileService:
    """
    Profile of the signed-in user.
    """

    def get_profile(self, user: SiteUser) -> SiteUser:
        return SiteUser.objects.prefetch_related('roles').get(pk=user.pk)

    def update_profile(self, user: SiteUser, data: Dict[str, Any]) -> SiteUser:
        email = data.get('email')
        username = data.get('username')

        if email or username:
            lookup = Q()
            if email:
                lookup |= Q(email__iexact=email)
            if username:
                lookup |= Q(username=username)
            existing = SiteUser.objects.filter(lookup).exclude(pk=user.pk).first()
            if existing:
                if email and existing.email.lower() == email.lower():
                    raise ConflictError(ERROR_MESSAGES['EMAIL_ALREADY_EXISTS'])
                raise ConflictError(ERROR_MESSAGES['USERNAME_ALREADY_EXISTS'])

        for field in ('email', 'username', 'phone'):
            if field in data:
                setattr(user, field, data[field])
        user.save()
        return user


class AddressService:
    """
    Address book of the signed-in user.
    """

    def list(self, user: SiteUser):
        return UserAddress.objects.filter(user=user).select_related('address').order_by('-is_default', '-created_at')

    @transaction.atomic
    def create(self, user: SiteUser, data: Dict[str, Any]) -> UserAddress:
        is_default = bool(data.get('is_default'))
        if is_default:
            UserAddress.objects.filter(user=user, is_default=True).update(is_default=False)
        elif not UserAddress.objects.filter(user=user).exists():
            # First address becomes the default
            is_default = True

        address = Address.objects.create(**self._address_fields(data))
        link = UserAddress.objects.create(
            user=user,
            address=address,
            address_type=data.get('address_type') or 'shipping',
            is_default=is_default,
        )
        return link

    @transaction.atomic
    def update(self, user: SiteUser, address_id: int, data: Dict[str, Any]) -> UserAddress:
        link = self._get_link(user, address_id)

        if data.get('is_default'):
            UserAddress.objects.filter(user=user, is_default=True).exclude(pk=link.pk).update(is_default=False)

        for field, value in self._address_fields(data, partial=True).items():
            setattr(link.address, field, value)
        link.address.save()

        if 'is_default' in data:
            link.is_default = bool(data['is_default'])
        if data.get('address_type'):
            link.address_type = data['address_type']
        link.save()
        return link

    @transaction.atomic
    def set_default(self, user: SiteUser, address_id: int) -> UserAddress:
        link = self._get_link(user, address_id)
        UserAddress.objects.filter(user=user, is_default=True).exclude(pk=link.pk).update(is_default=False)
        link.is_default = True
        link.save(update_fields=['is_default', 'updated_at'])
        return link

    @transaction.atomic
    def delete(self, user: SiteUser, address_id: int) -> None:
        """
        Unlink the address; the row itself is removed once nobody links it.
        Addresses referenced by orders are kept.
        """
        link = self._get_link(user, address_id)
        address = link.address
        link.delete()

        still_linked = UserAddress.objects.filter(address=address).exists()
        used_by_orders = address.shipping_orders.exists() or address.billing_orders.exists()
        if not still_linked and not used_by_orders:
            address.delete()

    def _get_link(self, user: SiteUser, address_id: int) -> UserAddress:
        link = UserAddress.objects.filter(user=user, address_id=address_id).select_related('address').first()
        if not link:
            raise NotFoundError('Address not found')
        return link

    def _address_fields(self, data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
        fields = {}
        if 'address_line1' in data or not partial:
            line1 = data.get('address_line1', '')
            line2 = data.get('address_line2')
            fields['street_address'] = f"{line1}, {line2}" if line2 else line1
        mapping = {
            'city': 'city',
            'district': 'region',
            'ward': 'ward',
            'postal_code': 'postal_code',
        }
        for source, target in mapping.items():
            if source in data or not partial:
                fields[target] = data.get(source)
        if 'country' in data or not partial:
            fields['country'] = data.get('country') or settings.SHOP_CONFIG['default_country']
        return fields


class PaymentMethodService:
    """
    Saved payment methods of the signed-in user.
    """

    def list_types(self):
        return PaymentType.objects.filter(is_active=True)

    def list(self, user: SiteUser):
        return PaymentMethod.objects.filter(user=user).select_related('payment_type')

    def create(self, user: SiteUser, data: Dict[str, Any]) -> PaymentMethod:
        payment_type = PaymentType.objects.filter(pk=data['payment_type_id'], is_active=True).first()
        if not payment_type:
            raise NotFoundError('Payment type not found')

        is_default = data.get('is_default') or not PaymentMethod.objects.filter(user=user).exists()
        if is_default:
            PaymentMethod.objects.filter(user=user, is_default=True).update(is_default=False)
        return PaymentMethod.objects.create(
            user=user,
            payment_type=payment_type,
            provider=data.get('provider'),
            account_number=data.get('account_number'),
            expiry_date=data.get('expiry_date'),
            is_default=is_default,
        )

    def delete(self, user: SiteUser, payment_method_id: int) -> None:
        method = PaymentMethod.objects.filter(pk=payment_method_id, user=user).first()
        if not method:
            raise NotFoundError('Payment method not found')
        if method.orders.exists():
            raise ConflictError('Payment method is referenced by existing orders')
        method.delete()
