"""
API Views for the NetTech Shop backend

This module provides REST API endpoints for:
- Auth & profile: register, login, tokens, Google sign-in, addresses, payment methods
- Catalog: products, product items, categories, brands
- Cart and checkout / orders
- Discount codes and product reviews
- Contact form inbox and newsletter subscriptions
- Admin dashboard
- Health Check: system health and status
"""
import logging
from datetime import datetime, time

from django.db import connection
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.services import AddressService, AuthService, PaymentMethodService, ProfileService
from apps.cart.services import CartService
from apps.catalog.services import BrandService, CategoryService, ProductService
from apps.contacts.services import ContactService
from apps.core.constants import ROLE_ADMIN, SUCCESS_MESSAGES
from apps.core.exceptions import BadRequestError
from apps.core.utils import format_response, paginated_payload, parse_bool
from apps.dashboard.services import DashboardService
from apps.discounts.services import DiscountService
from apps.newsletter.services import NewsletterService
from apps.orders.services import OrderService
from apps.reviews.services import ReviewService

from .permissions import IsAdminRole
from .serializers import (
    AddressRequestSerializer,
    AddressSerializer,
    AuthResultSerializer,
    BrandSerializer,
    CartItemAddSerializer,
    CartItemSerializer,
    CartItemUpdateSerializer,
    CartSerializer,
    CategoryReorderSerializer,
    CategorySerializer,
    CategoryTreeSerializer,
    CategoryWriteSerializer,
    ChangePasswordRequestSerializer,
    ContactCreateSerializer,
    ContactSerializer,
    ContactUpdateSerializer,
    DiscountDetailSerializer,
    DiscountSerializer,
    DiscountUsageSerializer,
    DiscountValidateSerializer,
    DiscountWriteSerializer,
    GoogleLoginRequestSerializer,
    HealthCheckSerializer,
    LoginRequestSerializer,
    LowStockItemSerializer,
    NewsletterEmailSerializer,
    NewsletterSubscriberSerializer,
    OrderCancelSerializer,
    OrderDetailSerializer,
    OrderListSerializer,
    OrderStatusUpdateSerializer,
    PaymentMethodRequestSerializer,
    PaymentMethodSerializer,
    PaymentTypeSerializer,
    PlaceOrderSerializer,
    ProductDetailSerializer,
    ProductItemSerializer,
    ProductItemWriteSerializer,
    ProductListSerializer,
    ProductWriteSerializer,
    ProfileUpdateSerializer,
    RefreshRequestSerializer,
    RegisterRequestSerializer,
    ReviewApprovalSerializer,
    ReviewCreateSerializer,
    ReviewReplySerializer,
    ReviewSerializer,
    ReviewUpdateSerializer,
    ShippingMethodSerializer,
    StockUpdateSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)

USER = [IsAuthenticated]
ADMIN = [IsAuthenticated, IsAdminRole]

PAGE_PARAMETERS = [
    OpenApiParameter('page', int, description="Page number (1-based)"),
    OpenApiParameter('limit', int, description="Page size (max 100)"),
]


def ok(data=None, message="Success", status_code=status.HTTP_200_OK):
    return Response(format_response(data, message), status=status_code)


def paginated(items, meta, serializer_class, message="Success"):
    return ok(paginated_payload(serializer_class(items, many=True).data, meta), message)


def validated(serializer_class, data, partial=False):
    serializer = serializer_class(data=data, partial=partial)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def is_admin(request) -> bool:
    claims = request.auth if isinstance(request.auth, dict) else {}
    return ROLE_ADMIN in claims.get('roles', [])


class MethodPermissionMixin:
    """
    Per-method permission classes, e.g. public GET with admin-only POST.
    """
    method_permissions = {}

    def get_permissions(self):
        classes = self.method_permissions.get(self.request.method, self.permission_classes)
        return [permission() for permission in classes]


# =============================================================================
# Auth
# =============================================================================

class RegisterView(APIView):
    """
    Create a customer account and return a token pair.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        request=RegisterRequestSerializer,
        responses={201: AuthResultSerializer},
        description="Register a new customer account",
        examples=[
            OpenApiExample(
                "Register",
                value={"email": "an.nguyen@example.com", "username": "annguyen", "password": "secret123"},
                request_only=True,
            ),
        ],
    )
    def post(self, request):
        data = validated(RegisterRequestSerializer, request.data)
        result = AuthService().register(**data)
        return ok(result, SUCCESS_MESSAGES['REGISTER_SUCCESS'], status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(request=LoginRequestSerializer, responses={200: AuthResultSerializer})
    def post(self, request):
        data = validated(LoginRequestSerializer, request.data)
        result = AuthService().login(data['email'], data['password'])
        return ok(result, SUCCESS_MESSAGES['LOGIN_SUCCESS'])


class AdminLoginView(APIView):
    """
    Login for the admin console; rejects accounts without the admin role.
    """
    permission_classes = [AllowAny]

    @extend_schema(request=LoginRequestSerializer, responses={200: AuthResultSerializer})
    def post(self, request):
        data = validated(LoginRequestSerializer, request.data)
        result = AuthService().admin_login(data['email'], data['password'])
        return ok(result, SUCCESS_MESSAGES['LOGIN_SUCCESS'])


class RefreshTokenView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(request=RefreshRequestSerializer, description="Exchange a refresh token for a new access token")
    def post(self, request):
        data = validated(RefreshRequestSerializer, request.data)
        result = AuthService().refresh(data['refresh_token'])
        return ok(result, SUCCESS_MESSAGES['TOKEN_REFRESHED'])


class GoogleLoginView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(request=GoogleLoginRequestSerializer, responses={200: AuthResultSerializer})
    def post(self, request):
        data = validated(GoogleLoginRequestSerializer, request.data)
        result = AuthService().google_login(data['credential'])
        return ok(result, SUCCESS_MESSAGES['LOGIN_SUCCESS'])


class ChangePasswordView(APIView):
    permission_classes = USER

    @extend_schema(request=ChangePasswordRequestSerializer)
    def post(self, request):
        data = validated(ChangePasswordRequestSerializer, request.data)
        AuthService().change_password(request.user, data['old_password'], data['new_password'])
        return ok(None, SUCCESS_MESSAGES['PASSWORD_CHANGED_SUCCESS'])


# =============================================================================
# Profile, addresses, payment methods
# =============================================================================

class ProfileView(APIView):
    permission_classes = USER

    @extend_schema(responses={200: UserSerializer})
    def get(self, request):
        user = ProfileService().get_profile(request.user)
        return ok(UserSerializer(user).data, SUCCESS_MESSAGES['FETCHED_SUCCESS'])

    @extend_schema(request=ProfileUpdateSerializer, responses={200: UserSerializer})
    def patch(self, request):
        data = validated(ProfileUpdateSerializer, request.data, partial=True)
        user = ProfileService().update_profile(request.user, data)
        return ok(UserSerializer(user).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])


class AddressListView(APIView):
    permission_classes = USER

    @extend_schema(responses={200: AddressSerializer(many=True)})
    def get(self, request):
        links = AddressService().list(request.user)
        return ok(AddressSerializer(links, many=True).data)

    @extend_schema(request=AddressRequestSerializer, responses={201: AddressSerializer})
    def post(self, request):
        data = validated(AddressRequestSerializer, request.data)
        link = AddressService().create(request.user, data)
        return ok(AddressSerializer(link).data, SUCCESS_MESSAGES['CREATED_SUCCESS'], status.HTTP_201_CREATED)


class AddressDetailView(APIView):
    permission_classes = USER

    @extend_schema(request=AddressRequestSerializer, responses={200: AddressSerializer})
    def put(self, request, address_id):
        data = validated(AddressRequestSerializer, request.data, partial=True)
        link = AddressService().update(request.user, address_id, data)
        return ok(AddressSerializer(link).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])

    def delete(self, request, address_id):
        AddressService().delete(request.user, address_id)
        return ok(None, SUCCESS_MESSAGES['DELETED_SUCCESS'])


class AddressDefaultView(APIView):
    permission_classes = USER

    @extend_schema(request=None, responses={200: AddressSerializer})
    def post(self, request, address_id):
        link = AddressService().set_default(request.user, address_id)
        return ok(AddressSerializer(link).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])


class PaymentTypeListView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(responses={200: PaymentTypeSerializer(many=True)})
    def get(self, request):
        return ok(PaymentTypeSerializer(PaymentMethodService().list_types(), many=True).data)


class PaymentMethodListView(APIView):
    permission_classes = USER

    @extend_schema(responses={200: PaymentMethodSerializer(many=True)})
    def get(self, request):
        methods = PaymentMethodService().list(request.user)
        return ok(PaymentMethodSerializer(methods, many=True).data)

    @extend_schema(request=PaymentMethodRequestSerializer, responses={201: PaymentMethodSerializer})
    def post(self, request):
        data = validated(PaymentMethodRequestSerializer, request.data)
        method = PaymentMethodService().create(request.user, data)
        return ok(PaymentMethodSerializer(method).data, SUCCESS_MESSAGES['CREATED_SUCCESS'], status.HTTP_201_CREATED)


class PaymentMethodDetailView(APIView):
    permission_classes = USER

    def delete(self, request, payment_method_id):
        PaymentMethodService().delete(request.user, payment_method_id)
        return ok(None, SUCCESS_MESSAGES['DELETED_SUCCESS'])


class MyReviewsView(APIView):
    permission_classes = USER

    @extend_schema(parameters=PAGE_PARAMETERS, responses={200: ReviewSerializer(many=True)})
    def get(self, request):
        items, meta = ReviewService().list_mine(
            request.user, request.query_params.get('page'), request.query_params.get('limit')
        )
        return paginated(items, meta, ReviewSerializer)


# =============================================================================
# Catalog
# =============================================================================

class ProductListView(MethodPermissionMixin, APIView):
    """
    Public product listing; product creation is admin-only.
    """
    permission_classes = [AllowAny]
    method_permissions = {'POST': ADMIN}

    @extend_schema(
        parameters=PAGE_PARAMETERS + [
            OpenApiParameter('search', str, description="Matches name or description"),
            OpenApiParameter('category_id', int),
            OpenApiParameter('brand', str, description="Brand contains"),
            OpenApiParameter('is_active', bool),
            OpenApiParameter('sort_by', str, enum=['created_at', 'updated_at', 'name']),
            OpenApiParameter('sort_order', str, enum=['asc', 'desc']),
        ],
        responses={200: ProductListSerializer(many=True)},
    )
    def get(self, request):
        items, meta = ProductService().list(request.query_params.dict())
        return paginated(items, meta, ProductListSerializer)

    @extend_schema(request=ProductWriteSerializer, responses={201: ProductDetailSerializer})
    def post(self, request):
        data = validated(ProductWriteSerializer, request.data)
        service = ProductService()
        product = service.create(data)
        return ok(
            ProductDetailSerializer(service.get(product.pk)).data,
            SUCCESS_MESSAGES['CREATED_SUCCESS'],
            status.HTTP_201_CREATED,
        )


class ProductDetailView(MethodPermissionMixin, APIView):
    permission_classes = [AllowAny]
    method_permissions = {'PATCH': ADMIN, 'DELETE': ADMIN}

    @extend_schema(responses={200: ProductDetailSerializer})
    def get(self, request, product_id):
        return ok(ProductDetailSerializer(ProductService().get(product_id)).data)

    @extend_schema(request=ProductWriteSerializer, responses={200: ProductDetailSerializer})
    def patch(self, request, product_id):
        data = validated(ProductWriteSerializer, request.data, partial=True)
        service = ProductService()
        service.update(product_id, data)
        return ok(ProductDetailSerializer(service.get(product_id)).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])

    def delete(self, request, product_id):
        ProductService().deactivate(product_id)
        return ok(None, SUCCESS_MESSAGES['DELETED_SUCCESS'])


class ProductBySlugView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(responses={200: ProductDetailSerializer})
    def get(self, request, slug):
        return ok(ProductDetailSerializer(ProductService().get_by_slug(slug)).data)


class ProductItemCreateView(APIView):
    permission_classes = ADMIN

    @extend_schema(request=ProductItemWriteSerializer, responses={201: ProductItemSerializer})
    def post(self, request):
        data = validated(ProductItemWriteSerializer, request.data)
        item = ProductService().create_item(data)
        return ok(ProductItemSerializer(item).data, SUCCESS_MESSAGES['CREATED_SUCCESS'], status.HTTP_201_CREATED)


class ProductItemDetailView(APIView):
    permission_classes = ADMIN

    @extend_schema(request=ProductItemWriteSerializer, responses={200: ProductItemSerializer})
    def patch(self, request, item_id):
        data = validated(ProductItemWriteSerializer, request.data, partial=True)
        data.pop('product_id', None)
        item = ProductService().update_item(item_id, data)
        return ok(ProductItemSerializer(item).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])


class ProductItemStockView(APIView):
    permission_classes = ADMIN

    @extend_schema(request=StockUpdateSerializer, responses={200: ProductItemSerializer})
    def patch(self, request, item_id):
        data = validated(StockUpdateSerializer, request.data)
        item = ProductService().update_stock(item_id, data['qty_in_stock'])
        return ok(ProductItemSerializer(item).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])


class CategoryListView(MethodPermissionMixin, APIView):
    permission_classes = [AllowAny]
    method_permissions = {'POST': ADMIN}

    @extend_schema(responses={200: CategorySerializer(many=True)})
    def get(self, request):
        return ok(CategorySerializer(CategoryService().list(), many=True).data)

    @extend_schema(request=CategoryWriteSerializer, responses={201: CategorySerializer})
    def post(self, request):
        data = validated(CategoryWriteSerializer, request.data)
        category = CategoryService().create(data)
        return ok(CategorySerializer(category).data, SUCCESS_MESSAGES['CREATED_SUCCESS'], status.HTTP_201_CREATED)


class CategoryTreeView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(responses={200: CategoryTreeSerializer(many=True)})
    def get(self, request):
        return ok(CategoryTreeSerializer(CategoryService().tree(), many=True).data)


class CategoryDetailView(MethodPermissionMixin, APIView):
    permission_classes = [AllowAny]
    method_permissions = {'PATCH': ADMIN, 'DELETE': ADMIN}

    @extend_schema(responses={200: CategorySerializer})
    def get(self, request, category_id):
        category = CategoryService().get(category_id)
        data = CategorySerializer(category).data
        data['products'] = ProductListSerializer(category.active_products, many=True).data
        return ok(data)

    @extend_schema(request=CategoryWriteSerializer, responses={200: CategorySerializer})
    def patch(self, request, category_id):
        data = validated(CategoryWriteSerializer, request.data, partial=True)
        category = CategoryService().update(category_id, data)
        return ok(CategorySerializer(category).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])

    def delete(self, request, category_id):
        CategoryService().delete(category_id)
        return ok(None, SUCCESS_MESSAGES['DELETED_SUCCESS'])


class CategoryReorderView(APIView):
    permission_classes = ADMIN

    @extend_schema(request=CategoryReorderSerializer)
    def post(self, request):
        data = validated(CategoryReorderSerializer, request.data)
        updated = CategoryService().reorder(data['orders'])
        return ok({"updated": updated}, SUCCESS_MESSAGES['UPDATED_SUCCESS'])


class BrandListView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(responses={200: BrandSerializer(many=True)})
    def get(self, request):
        return ok(BrandService().list())


class BrandDetailView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, brand_name):
        brand = BrandService().get(brand_name)
        brand['products'] = ProductListSerializer(brand['products'], many=True).data
        return ok(brand)


# =============================================================================
# Cart
# =============================================================================

class CartView(APIView):
    permission_classes = USER

    @extend_schema(responses={200: CartSerializer})
    def get(self, request):
        return ok(CartSerializer(CartService().get_cart(request.user)).data)

    def delete(self, request):
        removed = CartService().clear(request.user)
        return ok({"removed": removed}, "Cart cleared")


class CartItemListView(APIView):
    permission_classes = USER

    @extend_schema(request=CartItemAddSerializer, responses={201: CartItemSerializer})
    def post(self, request):
        data = validated(CartItemAddSerializer, request.data)
        item = CartService().add_item(request.user, data['product_item_id'], data['quantity'])
        return ok(CartItemSerializer(item).data, "Item added to cart", status.HTTP_201_CREATED)


class CartItemDetailView(APIView):
    permission_classes = USER

    @extend_schema(request=CartItemUpdateSerializer, responses={200: CartItemSerializer})
    def patch(self, request, item_id):
        data = validated(CartItemUpdateSerializer, request.data)
        item = CartService().update_item(request.user, item_id, data['quantity'])
        return ok(CartItemSerializer(item).data, "Cart item updated")

    def delete(self, request, item_id):
        CartService().remove_item(request.user, item_id)
        return ok(None, "Item removed from cart")


# =============================================================================
# Orders
# =============================================================================

class ShippingMethodListView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(responses={200: ShippingMethodSerializer(many=True)})
    def get(self, request):
        return ok(ShippingMethodSerializer(OrderService().list_shipping_methods(), many=True).data)


class OrderListView(APIView):
    """
    Place an order from the cart, or list the caller's orders.
    """
    permission_classes = USER

    @extend_schema(
        request=PlaceOrderSerializer,
        responses={201: OrderDetailSerializer},
        description="Convert the current cart into an order",
        examples=[
            OpenApiExample(
                "Place order",
                value={
                    "shipping_address_id": 1,
                    "billing_address_id": 1,
                    "payment_method_id": 1,
                    "shipping_method_id": 1,
                    "discount_code": "SUMMER10",
                },
                request_only=True,
            ),
        ],
    )
    def post(self, request):
        data = validated(PlaceOrderSerializer, request.data)
        service = OrderService()
        order = service.place_order(
            request.user,
            shipping_address_id=data['shipping_address_id'],
            billing_address_id=data['billing_address_id'],
            payment_method_id=data['payment_method_id'],
            shipping_method_id=data['shipping_method_id'],
            discount_code=data.get('discount_code') or None,
            customer_note=data.get('customer_note') or None,
        )
        order = service.get(order.pk, request.user)
        return ok(OrderDetailSerializer(order).data, "Order placed successfully", status.HTTP_201_CREATED)

    @extend_schema(
        parameters=PAGE_PARAMETERS + [
            OpenApiParameter('status', str, description="Status code, e.g. pending"),
            OpenApiParameter('order_number', str),
        ],
        responses={200: OrderListSerializer(many=True)},
    )
    def get(self, request):
        params = request.query_params
        items, meta = OrderService().list_for_user(
            request.user,
            page=params.get('page'),
            limit=params.get('limit'),
            status=params.get('status'),
            order_number=params.get('order_number'),
        )
        return paginated(items, meta, OrderListSerializer)


class OrderDetailView(APIView):
    permission_classes = USER

    @extend_schema(responses={200: OrderDetailSerializer})
    def get(self, request, order_id):
        order = OrderService().get(order_id, request.user, is_admin=is_admin(request))
        return ok(OrderDetailSerializer(order).data)


class OrderByNumberView(APIView):
    permission_classes = USER

    @extend_schema(responses={200: OrderDetailSerializer})
    def get(self, request, order_number):
        order = OrderService().get_by_number(order_number, request.user, is_admin=is_admin(request))
        return ok(OrderDetailSerializer(order).data)


class OrderCancelView(APIView):
    permission_classes = USER

    @extend_schema(request=OrderCancelSerializer, responses={200: OrderDetailSerializer})
    def patch(self, request, order_id):
        data = validated(OrderCancelSerializer, request.data)
        order = OrderService().cancel(order_id, request.user, data.get('reason'))
        return ok(OrderDetailSerializer(order).data, "Order cancelled")


class AdminOrderListView(APIView):
    permission_classes = ADMIN

    @extend_schema(
        parameters=PAGE_PARAMETERS + [
            OpenApiParameter('status', str),
            OpenApiParameter('order_number', str),
            OpenApiParameter('search', str, description="Username or email contains"),
        ],
        responses={200: OrderListSerializer(many=True)},
    )
    def get(self, request):
        params = request.query_params
        items, meta = OrderService().list_all(
            page=params.get('page'),
            limit=params.get('limit'),
            status=params.get('status'),
            order_number=params.get('order_number'),
            search=params.get('search'),
        )
        return paginated(items, meta, OrderListSerializer)


class OrderStatisticsView(APIView):
    permission_classes = ADMIN

    def get(self, request):
        return ok(OrderService().statistics())


class OrderStatusView(APIView):
    """
    Admin status transition; also mounted under admin/orders/<id>/status.
    """
    permission_classes = ADMIN

    @extend_schema(request=OrderStatusUpdateSerializer, responses={200: OrderDetailSerializer})
    def patch(self, request, order_id):
        data = validated(OrderStatusUpdateSerializer, request.data)
        order = OrderService().update_status(
            order_id,
            data['status'],
            request.user,
            note=data.get('note'),
            tracking_number=data.get('tracking_number'),
            admin_note=data.get('admin_note'),
        )
        return ok(OrderDetailSerializer(order).data, "Order status updated")


# =============================================================================
# Discounts
# =============================================================================

class DiscountValidateView(APIView):
    permission_classes = USER

    @extend_schema(request=DiscountValidateSerializer)
    def post(self, request):
        data = validated(DiscountValidateSerializer, request.data)
        result = DiscountService().validate(request.user, data['code'], data['order_amount'])
        return ok(result, "Discount code is valid")


class MyDiscountUsageView(APIView):
    permission_classes = USER

    @extend_schema(responses={200: DiscountUsageSerializer(many=True)})
    def get(self, request):
        usages = DiscountService().usage_history(request.user)
        return ok(DiscountUsageSerializer(usages, many=True).data)


class DiscountListView(APIView):
    permission_classes = ADMIN

    @extend_schema(
        parameters=PAGE_PARAMETERS + [
            OpenApiParameter('status', str, enum=list(DiscountService.STATUS_FILTERS)),
        ],
        responses={200: DiscountSerializer(many=True)},
    )
    def get(self, request):
        params = request.query_params
        items, meta = DiscountService().list(params.get('page'), params.get('limit'), params.get('status'))
        return paginated(items, meta, DiscountSerializer)

    @extend_schema(request=DiscountWriteSerializer, responses={201: DiscountSerializer})
    def post(self, request):
        data = validated(DiscountWriteSerializer, request.data)
        discount = DiscountService().create(data)
        return ok(DiscountSerializer(discount).data, SUCCESS_MESSAGES['CREATED_SUCCESS'], status.HTTP_201_CREATED)


class DiscountStatisticsView(APIView):
    permission_classes = ADMIN

    def get(self, request):
        return ok(DiscountService().statistics())


class DiscountDetailView(APIView):
    permission_classes = ADMIN

    @extend_schema(responses={200: DiscountDetailSerializer})
    def get(self, request, discount_id):
        return ok(DiscountDetailSerializer(DiscountService().get(discount_id)).data)

    @extend_schema(request=DiscountWriteSerializer, responses={200: DiscountSerializer})
    def patch(self, request, discount_id):
        data = validated(DiscountWriteSerializer, request.data, partial=True)
        discount = DiscountService().update(discount_id, data)
        return ok(DiscountSerializer(discount).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])

    def delete(self, request, discount_id):
        DiscountService().delete(discount_id)
        return ok(None, SUCCESS_MESSAGES['DELETED_SUCCESS'])


# =============================================================================
# Reviews
# =============================================================================

class ReviewListView(MethodPermissionMixin, APIView):
    """
    GET lists approved reviews of a product; POST creates a review.
    """
    permission_classes = [AllowAny]
    method_permissions = {'POST': USER}

    @extend_schema(
        parameters=PAGE_PARAMETERS + [OpenApiParameter('product_id', int, required=True)],
        responses={200: ReviewSerializer(many=True)},
    )
    def get(self, request):
        product_id = request.query_params.get('product_id')
        if not product_id or not product_id.isdigit():
            raise BadRequestError('product_id query parameter is required')
        items, meta = ReviewService().list_for_product(
            int(product_id), request.query_params.get('page'), request.query_params.get('limit')
        )
        return paginated(items, meta, ReviewSerializer)

    @extend_schema(request=ReviewCreateSerializer, responses={201: ReviewSerializer})
    def post(self, request):
        data = validated(ReviewCreateSerializer, request.data)
        review = ReviewService().create(request.user, **data)
        return ok(ReviewSerializer(review).data, "Review submitted for approval", status.HTTP_201_CREATED)


class ReviewStatsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, product_id):
        return ok(ReviewService().product_stats(product_id))


class ReviewDetailView(APIView):
    permission_classes = USER

    @extend_schema(request=ReviewUpdateSerializer, responses={200: ReviewSerializer})
    def patch(self, request, review_id):
        data = validated(ReviewUpdateSerializer, request.data, partial=True)
        review = ReviewService().update(review_id, request.user, data)
        return ok(ReviewSerializer(review).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])

    def delete(self, request, review_id):
        ReviewService().delete(review_id, request.user, is_admin=is_admin(request))
        return ok(None, SUCCESS_MESSAGES['DELETED_SUCCESS'])


class ReviewApproveView(APIView):
    permission_classes = ADMIN

    @extend_schema(request=None, responses={200: ReviewSerializer})
    def post(self, request, review_id):
        return ok(ReviewSerializer(ReviewService().approve(review_id)).data, "Review approved")


class ReviewRejectView(APIView):
    permission_classes = ADMIN

    @extend_schema(request=None)
    def post(self, request, review_id):
        ReviewService().reject(review_id)
        return ok(None, "Review rejected")


class ReviewReplyView(APIView):
    permission_classes = ADMIN

    @extend_schema(request=ReviewReplySerializer, responses={200: ReviewSerializer})
    def post(self, request, review_id):
        data = validated(ReviewReplySerializer, request.data)
        review = ReviewService().reply(review_id, data['reply'])
        return ok(ReviewSerializer(review).data, "Reply saved")


# =============================================================================
# Admin dashboard
# =============================================================================

def _parse_bound(value, end_of_day=False):
    """
    Accept an ISO date or datetime query value; dates cover the whole day.
    """
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            raise BadRequestError(f"Invalid date: {value}")
        parsed = datetime.combine(day, time.max if end_of_day else time.min)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


class DashboardStatsView(APIView):
    permission_classes = ADMIN

    def get(self, request):
        stats = DashboardService().stats()
        stats['recent_orders'] = OrderListSerializer(stats['recent_orders'], many=True).data
        return ok(stats)


class RevenueReportView(APIView):
    permission_classes = ADMIN

    @extend_schema(parameters=[
        OpenApiParameter('start_date', str, description="ISO date or datetime"),
        OpenApiParameter('end_date', str, description="ISO date or datetime"),
    ])
    def get(self, request):
        start = _parse_bound(request.query_params.get('start_date'))
        end = _parse_bound(request.query_params.get('end_date'), end_of_day=True)
        return ok(DashboardService().revenue_report(start, end))


class AdminUserListView(APIView):
    permission_classes = ADMIN

    @extend_schema(
        parameters=PAGE_PARAMETERS + [OpenApiParameter('search', str)],
        responses={200: UserSerializer(many=True)},
    )
    def get(self, request):
        params = request.query_params
        items, meta = DashboardService().users(params.get('page'), params.get('limit'), params.get('search'))
        return paginated(items, meta, UserSerializer)


class UserToggleStatusView(APIView):
    permission_classes = ADMIN

    @extend_schema(request=None, responses={200: UserSerializer})
    def patch(self, request, user_id):
        user = DashboardService().toggle_user_status(user_id, request.user)
        return ok(UserSerializer(user).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])


class AdminReviewListView(APIView):
    permission_classes = ADMIN

    @extend_schema(
        parameters=PAGE_PARAMETERS + [OpenApiParameter('is_approved', bool)],
        responses={200: ReviewSerializer(many=True)},
    )
    def get(self, request):
        params = request.query_params
        items, meta = DashboardService().reviews(
            params.get('page'), params.get('limit'), parse_bool(params.get('is_approved'))
        )
        return paginated(items, meta, ReviewSerializer)


class ReviewApprovalView(APIView):
    permission_classes = ADMIN

    @extend_schema(request=ReviewApprovalSerializer, responses={200: ReviewSerializer})
    def patch(self, request, review_id):
        data = validated(ReviewApprovalSerializer, request.data)
        review = DashboardService().set_review_approval(review_id, data['is_approved'])
        return ok(ReviewSerializer(review).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])


class LowStockView(APIView):
    permission_classes = ADMIN

    @extend_schema(
        parameters=[OpenApiParameter('threshold', int)],
        responses={200: LowStockItemSerializer(many=True)},
    )
    def get(self, request):
        threshold = request.query_params.get('threshold')
        if threshold is not None and not threshold.isdigit():
            raise BadRequestError('threshold must be a non-negative integer')
        items = DashboardService().low_stock(int(threshold) if threshold is not None else None)
        return ok(LowStockItemSerializer(items, many=True).data)


class OrdersByStatusView(APIView):
    permission_classes = ADMIN

    def get(self, request):
        return ok(DashboardService().orders_by_status())


class TopCustomersView(APIView):
    permission_classes = ADMIN

    @extend_schema(parameters=[OpenApiParameter('limit', int)])
    def get(self, request):
        limit = request.query_params.get('limit', '10')
        if not limit.isdigit() or int(limit) < 1:
            raise BadRequestError('limit must be a positive integer')
        return ok(DashboardService().top_customers(min(int(limit), 100)))


class CategoryPerformanceView(APIView):
    permission_classes = ADMIN

    @extend_schema(parameters=[OpenApiParameter('period', str, enum=['today', 'week', 'month', 'year'])])
    def get(self, request):
        return ok(DashboardService().category_performance(request.query_params.get('period')))


# =============================================================================
# Contacts & Newsletter
# =============================================================================

class ContactListView(MethodPermissionMixin, APIView):
    """
    POST is the public contact form; GET is the admin inbox.
    """
    permission_classes = ADMIN
    method_permissions = {'POST': [AllowAny]}

    @extend_schema(
        parameters=PAGE_PARAMETERS + [
            OpenApiParameter('status', str, enum=['new', 'read', 'replied', 'resolved', 'spam']),
            OpenApiParameter('is_read', bool),
            OpenApiParameter('search', str),
            OpenApiParameter('sort_by', str, enum=['created_at', 'updated_at', 'status']),
            OpenApiParameter('sort_order', str, enum=['asc', 'desc']),
        ],
        responses={200: ContactSerializer(many=True)},
    )
    def get(self, request):
        params = request.query_params
        items, meta = ContactService().list(
            params.get('page'),
            params.get('limit'),
            status=params.get('status'),
            is_read=parse_bool(params.get('is_read')),
            search=params.get('search'),
            sort_by=params.get('sort_by'),
            sort_order=params.get('sort_order'),
        )
        return paginated(items, meta, ContactSerializer)

    @extend_schema(
        request=ContactCreateSerializer,
        examples=[
            OpenApiExample(
                'Contact form',
                value={
                    'first_name': 'Lan',
                    'last_name': 'Nguyen',
                    'email': 'lan@example.com',
                    'subject': 'Bulk order',
                    'message': 'Do you offer pricing for 20 access points?',
                },
                request_only=True,
            )
        ],
    )
    def post(self, request):
        data = validated(ContactCreateSerializer, request.data)
        contact = ContactService().create(data)
        return ok({"contact_id": contact.pk}, SUCCESS_MESSAGES['CONTACT_RECEIVED'], status.HTTP_201_CREATED)


class ContactUnreadCountView(APIView):
    permission_classes = ADMIN

    def get(self, request):
        return ok(ContactService().unread_count())


class ContactStatsView(APIView):
    permission_classes = ADMIN

    def get(self, request):
        return ok(ContactService().stats())


class ContactDetailView(APIView):
    permission_classes = ADMIN

    @extend_schema(responses={200: ContactSerializer})
    def get(self, request, contact_id):
        return ok(ContactSerializer(ContactService().get(contact_id)).data)

    @extend_schema(request=ContactUpdateSerializer, responses={200: ContactSerializer})
    def patch(self, request, contact_id):
        data = validated(ContactUpdateSerializer, request.data)
        contact = ContactService().update(contact_id, data)
        return ok(ContactSerializer(contact).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])

    def delete(self, request, contact_id):
        ContactService().delete(contact_id)
        return ok(None, SUCCESS_MESSAGES['DELETED_SUCCESS'])


class ContactReadView(APIView):
    permission_classes = ADMIN

    @extend_schema(request=None, responses={200: ContactSerializer})
    def patch(self, request, contact_id):
        contact = ContactService().mark_as_read(contact_id)
        return ok(ContactSerializer(contact).data, SUCCESS_MESSAGES['UPDATED_SUCCESS'])


class NewsletterSubscribeView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(request=NewsletterEmailSerializer, responses={201: NewsletterSubscriberSerializer})
    def post(self, request):
        data = validated(NewsletterEmailSerializer, request.data)
        subscriber = NewsletterService().subscribe(data['email'])
        return ok(
            NewsletterSubscriberSerializer(subscriber).data,
            SUCCESS_MESSAGES['SUBSCRIBED_SUCCESS'],
            status.HTTP_201_CREATED,
        )


class NewsletterUnsubscribeView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(request=NewsletterEmailSerializer, responses={200: NewsletterSubscriberSerializer})
    def post(self, request):
        data = validated(NewsletterEmailSerializer, request.data)
        subscriber = NewsletterService().unsubscribe(data['email'])
        return ok(NewsletterSubscriberSerializer(subscriber).data, SUCCESS_MESSAGES['UNSUBSCRIBED_SUCCESS'])


class NewsletterSubscriberListView(APIView):
    permission_classes = ADMIN

    @extend_schema(
        parameters=PAGE_PARAMETERS + [OpenApiParameter('status', str, enum=['all', 'active', 'unsubscribed'])],
        responses={200: NewsletterSubscriberSerializer(many=True)},
    )
    def get(self, request):
        params = request.query_params
        items, meta = NewsletterService().list(params.get('page'), params.get('limit'), params.get('status'))
        return paginated(items, meta, NewsletterSubscriberSerializer)


class NewsletterStatsView(APIView):
    permission_classes = ADMIN

    def get(self, request):
        return ok(NewsletterService().stats())


class NewsletterSubscriberDetailView(APIView):
    permission_classes = ADMIN

    def delete(self, request, subscriber_id):
        NewsletterService().delete(subscriber_id)
        return ok(None, SUCCESS_MESSAGES['DELETED_SUCCESS'])


# =============================================================================
# Health
# =============================================================================

class HealthCheckView(APIView):
    """
    System health check endpoint.

    Returns the status of the API and database connectivity.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        responses={200: HealthCheckSerializer},
        description="Check system health status"
    )
    def get(self, request):
        """
        Check system health.
        """
        db_status = "healthy"
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except Exception as e:
            logger.error(f"Health check database query failed: {e}")
            db_status = f"unhealthy: {str(e)}"

        response_data = {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": "1.0.0",
            "database": db_status,
            "timestamp": timezone.now().isoformat(),
        }

        return ok(response_data)
