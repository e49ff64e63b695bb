"""
Review Service - purchase-gated product reviews with admin moderation
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from django.db.models import Avg, Count

from apps.catalog.models import Product
from apps.core.constants import ERROR_MESSAGES
from apps.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from apps.core.utils import paginate
from apps.orders.models import OrderItem, OrderStatus
from .models import ProductReview

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Customers review products they received; admins approve, reject or reply.
    """

    def create(self, user, product_id: int, rating: int, title: Optional[str] = None,
               comment: Optional[str] = None) -> ProductReview:
        product = Product.objects.filter(pk=product_id).first()
        if not product:
            raise NotFoundError(ERROR_MESSAGES['PRODUCT_NOT_FOUND'])

        if ProductReview.objects.filter(user=user, product=product).exists():
            raise ConflictError(ERROR_MESSAGES['ALREADY_REVIEWED'])

        if not self.has_purchased(user, product.pk):
            logger.warning(f"User {user.pk} tried to review product {product.pk} without a fulfilled order")
            raise BadRequestError(ERROR_MESSAGES['REVIEW_REQUIRES_PURCHASE'])

        self._check_rating(rating)
        review = ProductReview.objects.create(
            user=user,
            product=product,
            rating=rating,
            title=title,
            comment=comment,
            is_approved=False,
        )
        logger.info(f"Review {review.pk} created for product {product.pk}")
        return review

    def has_purchased(self, user, product_id: int) -> bool:
        """True if the user has a delivered or completed order containing the product."""
        return OrderItem.objects.filter(
            order__user=user,
            order__status__code__in=OrderStatus.FULFILLED,
            product_item__product_id=product_id,
        ).exists()

    def list_for_product(self, product_id: int, page: Any = None, limit: Any = None) -> Tuple[List, Dict]:
        if not Product.objects.filter(pk=product_id).exists():
            raise NotFoundError(ERROR_MESSAGES['PRODUCT_NOT_FOUND'])
        queryset = (
            ProductReview.objects
            .filter(product_id=product_id, is_approved=True)
            .select_related('user', 'product')
            .order_by('-created_at')
        )
        return paginate(queryset, page, limit)

    def list_mine(self, user, page: Any = None, limit: Any = None) -> Tuple[List, Dict]:
        queryset = ProductReview.objects.filter(user=user).select_related('user', 'product').order_by('-created_at')
        return paginate(queryset, page, limit)

    def update(self, review_id: int, user, data: Dict[str, Any]) -> ProductReview:
        """
        Owner edit. An edited review goes back into the moderation queue.
        """
        review = self._get(review_id)
        if review.user_id != user.pk:
            raise ForbiddenError('You can only edit your own reviews')

        if 'rating' in data:
            self._check_rating(data['rating'])
        for field in ('rating', 'title', 'comment'):
            if field in data:
                setattr(review, field, data[field])
        review.is_approved = False
        review.save()
        return review

    def delete(self, review_id: int, user, is_admin: bool = False) -> None:
        review = self._get(review_id)
        if not is_admin and review.user_id != user.pk:
            raise ForbiddenError('You can only delete your own reviews')
        review.delete()
        logger.info(f"Review {review_id} deleted by user {user.pk}")

    def approve(self, review_id: int) -> ProductReview:
        review = self._get(review_id)
        review.is_approved = True
        review.save(update_fields=['is_approved', 'updated_at'])
        logger.info(f"Review {review_id} approved")
        return review

    def reject(self, review_id: int) -> None:
        """Rejected reviews are removed."""
        review = self._get(review_id)
        review.delete()
        logger.info(f"Review {review_id} rejected")

    def reply(self, review_id: int, reply: str) -> ProductReview:
        review = self._get(review_id)
        review.admin_reply = reply
        review.save(update_fields=['admin_reply', 'updated_at'])
        return review

    def product_stats(self, product_id: int) -> Dict[str, Any]:
        approved = ProductReview.objects.filter(product_id=product_id, is_approved=True)
        summary = approved.aggregate(average=Avg('rating'), total=Count('id'))

        distribution = {rating: 0 for rating in range(1, 6)}
        for row in approved.values('rating').annotate(count=Count('id')):
            distribution[row['rating']] = row['count']

        return {
            "product_id": product_id,
            "average_rating": round(float(summary['average'] or 0), 2),
            "total_reviews": summary['total'],
            "distribution": distribution,
        }

    def _get(self, review_id: int) -> ProductReview:
        review = ProductReview.objects.select_related('user', 'product').filter(pk=review_id).first()
        if not review:
            raise NotFoundError(ERROR_MESSAGES['REVIEW_NOT_FOUND'])
        return review

    def _check_rating(self, rating: int) -> None:
        if rating is None or not 1 <= int(rating) <= 5:
            raise BadRequestError('Rating must be between 1 and 5')
