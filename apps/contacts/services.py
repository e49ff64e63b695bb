"""
Contact Service - public contact form and the admin inbox
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from django.db.models import Count, Q

from apps.core.constants import ERROR_MESSAGES
from apps.core.exceptions import NotFoundError
from apps.core.utils import paginate
from .models import Contact

logger = logging.getLogger(__name__)


class ContactService:
    """
    Visitors submit messages; admins read, annotate and resolve them.
    """

    SORT_FIELDS = ('created_at', 'updated_at', 'status')

    def create(self, data: Dict[str, Any]) -> Contact:
        contact = Contact.objects.create(
            first_name=data['first_name'],
            last_name=data['last_name'],
            email=data.get('email') or None,
            phone=data.get('phone') or None,
            subject=data.get('subject') or None,
            message=data['message'],
        )
        logger.info(f"Contact {contact.pk} received")
        return contact

    def list(
        self,
        page: Any = None,
        limit: Any = None,
        status: Optional[str] = None,
        is_read: Optional[bool] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Tuple[List[Contact], Dict]:
        queryset = Contact.objects.all()
        if status:
            queryset = queryset.filter(status=status)
        if is_read is not None:
            queryset = queryset.filter(is_read=is_read)
        if search:
            queryset = queryset.filter(
                Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(email__icontains=search)
                | Q(phone__icontains=search)
                | Q(subject__icontains=search)
                | Q(message__icontains=search)
            )

        field = sort_by if sort_by in self.SORT_FIELDS else 'created_at'
        prefix = '' if (sort_order or 'desc').lower() == 'asc' else '-'
        return paginate(queryset.order_by(f"{prefix}{field}", '-pk'), page, limit)

    def get(self, contact_id: int) -> Contact:
        contact = Contact.objects.filter(pk=contact_id).first()
        if not contact:
            raise NotFoundError(ERROR_MESSAGES['CONTACT_NOT_FOUND'])
        return contact

    def update(self, contact_id: int, data: Dict[str, Any]) -> Contact:
        contact = self.get(contact_id)
        if data.get('status'):
            contact.status = data['status']
        if 'admin_note' in data:
            contact.admin_note = data['admin_note']
        if data.get('is_read') is not None:
            contact.is_read = data['is_read']
        contact.save()
        return contact

    def mark_as_read(self, contact_id: int) -> Contact:
        contact = self.get(contact_id)
        contact.is_read = True
        contact.status = Contact.STATUS_READ
        contact.save(update_fields=['is_read', 'status', 'updated_at'])
        return contact

    def delete(self, contact_id: int) -> None:
        self.get(contact_id).delete()
        logger.info(f"Deleted contact {contact_id}")

    def unread_count(self) -> Dict[str, int]:
        return {"unread_count": Contact.objects.filter(is_read=False).count()}

    def stats(self) -> Dict[str, Any]:
        counts = dict(Contact.objects.values_list('status').annotate(count=Count('id')).order_by())
        return {
            "total": sum(counts.values()),
            "by_status": {code: counts.get(code, 0) for code, _ in Contact.STATUS_CHOICES},
        }
