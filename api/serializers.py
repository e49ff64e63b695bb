"""
API Serializers for Request/Response handling
"""
from rest_framework import serializers

from apps.accounts.models import PaymentMethod, PaymentType, SiteUser, UserAddress
from apps.cart.models import CartItem, ShoppingCart
from apps.catalog.models import Product, ProductCategory, ProductItem
from apps.contacts.models import Contact
from apps.core.utils import mask_account_number
from apps.discounts.models import Discount, DiscountUsage
from apps.newsletter.models import NewsletterSubscriber
from apps.orders.models import (
    OrderItem,
    OrderStatus,
    OrderStatusHistory,
    ShippingMethod,
    ShopOrder,
)
from apps.reviews.models import ProductReview


# =============================================================================
# Auth & Profile
# =============================================================================

class RegisterRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    username = serializers.CharField(min_length=3, max_length=50)
    password = serializers.CharField(min_length=6, max_length=128, write_only=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)


class LoginRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class RefreshRequestSerializer(serializers.Serializer):
    refresh_token = serializers.CharField()


class GoogleLoginRequestSerializer(serializers.Serializer):
    credential = serializers.CharField(help_text="Google ID token from the sign-in widget")


class ChangePasswordRequestSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(min_length=6, max_length=128, write_only=True)


class AuthResultSerializer(serializers.Serializer):
    """
    Response of register/login/google: the user summary plus a token pair.
    """
    id = serializers.IntegerField()
    email = serializers.EmailField()
    username = serializers.CharField()
    roles = serializers.ListField(child=serializers.CharField())
    access_token = serializers.CharField()
    refresh_token = serializers.CharField()


class UserSerializer(serializers.ModelSerializer):
    roles = serializers.SerializerMethodField()

    class Meta:
        model = SiteUser
        fields = [
            'id', 'email', 'username', 'phone', 'is_active',
            'is_email_verified', 'roles', 'created_at', 'updated_at',
        ]

    def get_roles(self, obj):
        return obj.role_names


class ProfileUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False)
    username = serializers.CharField(min_length=3, max_length=50, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)


class AddressRequestSerializer(serializers.Serializer):
    address_line1 = serializers.CharField(max_length=300)
    address_line2 = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)
    city = serializers.CharField(max_length=100)
    district = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    ward = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)
    address_type = serializers.ChoiceField(choices=['shipping', 'billing'], required=False)
    is_default = serializers.BooleanField(required=False)


class AddressSerializer(serializers.ModelSerializer):
    """
    A user's address link, flattened. `id` is the address id used in URLs.
    """
    id = serializers.IntegerField(source='address.id', read_only=True)
    street_address = serializers.CharField(source='address.street_address', read_only=True)
    ward = serializers.CharField(source='address.ward', read_only=True)
    city = serializers.CharField(source='address.city', read_only=True)
    region = serializers.CharField(source='address.region', read_only=True)
    postal_code = serializers.CharField(source='address.postal_code', read_only=True)
    country = serializers.CharField(source='address.country', read_only=True)

    class Meta:
        model = UserAddress
        fields = [
            'id', 'address_type', 'is_default', 'street_address', 'ward',
            'city', 'region', 'postal_code', 'country',
        ]


class PaymentTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentType
        fields = ['id', 'name', 'code', 'is_active']


class PaymentMethodRequestSerializer(serializers.Serializer):
    payment_type_id = serializers.IntegerField()
    provider = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    account_number = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    expiry_date = serializers.DateField(required=False, allow_null=True)
    is_default = serializers.BooleanField(required=False)


class PaymentMethodSerializer(serializers.ModelSerializer):
    payment_type = PaymentTypeSerializer(read_only=True)
    account_number = serializers.SerializerMethodField()

    class Meta:
        model = PaymentMethod
        fields = ['id', 'payment_type', 'provider', 'account_number', 'expiry_date', 'is_default', 'created_at']

    def get_account_number(self, obj):
        return mask_account_number(obj.account_number)


# =============================================================================
# Catalog
# =============================================================================

class CategorySummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductCategory
        fields = ['id', 'name', 'slug']


class CategorySerializer(serializers.ModelSerializer):
    parent = CategorySummarySerializer(read_only=True)
    children = CategorySummarySerializer(many=True, read_only=True)
    product_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = ProductCategory
        fields = [
            'id', 'name', 'slug', 'description', 'display_order', 'is_active',
            'parent', 'children', 'product_count', 'created_at', 'updated_at',
        ]


class CategoryTreeSerializer(serializers.ModelSerializer):
    children = serializers.SerializerMethodField()
    product_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = ProductCategory
        fields = ['id', 'name', 'slug', 'display_order', 'is_active', 'product_count', 'children']

    def get_children(self, obj):
        return CategoryTreeSerializer(obj.children.all(), many=True).data


class CategoryWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    slug = serializers.SlugField(max_length=220)
    parent_id = serializers.IntegerField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    display_order = serializers.IntegerField(min_value=0, required=False)
    is_active = serializers.BooleanField(required=False)


class CategoryOrderEntrySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    display_order = serializers.IntegerField(min_value=0)


class CategoryReorderSerializer(serializers.Serializer):
    orders = CategoryOrderEntrySerializer(many=True, allow_empty=False)


class ProductItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductItem
        fields = [
            'id', 'product_id', 'sku', 'price', 'qty_in_stock', 'weight_kg',
            'warranty_months', 'is_active', 'created_at', 'updated_at',
        ]


class ProductItemWriteSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    sku = serializers.CharField(max_length=100)
    price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    qty_in_stock = serializers.IntegerField(min_value=0, required=False)
    weight_kg = serializers.DecimalField(max_digits=8, decimal_places=3, min_value=0, required=False, allow_null=True)
    warranty_months = serializers.IntegerField(min_value=0, required=False)
    is_active = serializers.BooleanField(required=False)


class StockUpdateSerializer(serializers.Serializer):
    qty_in_stock = serializers.IntegerField(min_value=0)


class ProductListSerializer(serializers.ModelSerializer):
    category = CategorySummarySerializer(read_only=True)
    min_price = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True, allow_null=True)
    total_stock = serializers.IntegerField(read_only=True, allow_null=True)
    review_count = serializers.IntegerField(read_only=True, default=0)
    items = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'brand', 'model', 'description', 'is_active',
            'category', 'min_price', 'total_stock', 'review_count', 'items',
            'created_at', 'updated_at',
        ]

    def get_items(self, obj):
        items = getattr(obj, 'active_items', None)
        if items is None:
            items = obj.items.filter(is_active=True)
        return ProductItemSerializer(items, many=True).data


class ReviewSerializer(serializers.ModelSerializer):
    user = serializers.SerializerMethodField()
    product = serializers.SerializerMethodField()

    class Meta:
        model = ProductReview
        fields = [
            'id', 'user', 'product', 'rating', 'title', 'comment',
            'is_approved', 'admin_reply', 'created_at', 'updated_at',
        ]

    def get_user(self, obj):
        return {"id": obj.user_id, "username": obj.user.username}

    def get_product(self, obj):
        return {"id": obj.product_id, "name": obj.product.name, "slug": obj.product.slug}


class ProductDetailSerializer(ProductListSerializer):
    average_rating = serializers.FloatField(read_only=True, default=0)
    reviews = serializers.SerializerMethodField()

    class Meta(ProductListSerializer.Meta):
        fields = ProductListSerializer.Meta.fields + ['average_rating', 'reviews']

    def get_reviews(self, obj):
        return ReviewSerializer(getattr(obj, 'approved_reviews', []), many=True).data


class ProductWriteSerializer(serializers.Serializer):
    category_id = serializers.IntegerField()
    name = serializers.CharField(max_length=300)
    slug = serializers.SlugField(max_length=350)
    brand = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    model = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_active = serializers.BooleanField(required=False)


class BrandSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    product_count = serializers.IntegerField()


# =============================================================================
# Cart
# =============================================================================

class CartItemSerializer(serializers.ModelSerializer):
    product_item = ProductItemSerializer(read_only=True)
    product = serializers.SerializerMethodField()
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = ['id', 'quantity', 'product_item', 'product', 'line_total', 'created_at']

    def get_product(self, obj):
        product = obj.product_item.product
        return {"id": product.pk, "name": product.name, "slug": product.slug, "brand": product.brand}


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)
    item_count = serializers.IntegerField(read_only=True)
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = ShoppingCart
        fields = ['id', 'items', 'item_count', 'subtotal', 'updated_at']


class CartItemAddSerializer(serializers.Serializer):
    product_item_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class CartItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


# =============================================================================
# Orders
# =============================================================================

class ShippingMethodSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShippingMethod
        fields = ['id', 'name', 'code', 'base_price', 'price_per_kg', 'estimated_days', 'is_active']


class OrderStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatus
        fields = ['id', 'code', 'name', 'display_order']


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ['id', 'product_item_id', 'product_name', 'sku', 'unit_price', 'quantity', 'subtotal']


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    status = OrderStatusSerializer(read_only=True)
    created_by = serializers.SerializerMethodField()

    class Meta:
        model = OrderStatusHistory
        fields = ['id', 'status', 'note', 'created_by', 'created_at']

    def get_created_by(self, obj):
        if obj.created_by is None:
            return None
        return {"id": obj.created_by_id, "username": obj.created_by.username}


class OrderAddressSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    street_address = serializers.CharField()
    ward = serializers.CharField(allow_null=True)
    city = serializers.CharField()
    region = serializers.CharField(allow_null=True)
    postal_code = serializers.CharField(allow_null=True)
    country = serializers.CharField()


class OrderListSerializer(serializers.ModelSerializer):
    status = OrderStatusSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    user = serializers.SerializerMethodField()

    class Meta:
        model = ShopOrder
        fields = [
            'id', 'order_number', 'user', 'status', 'subtotal', 'discount_amount',
            'shipping_fee', 'total_amount', 'tracking_number', 'items',
            'ordered_at', 'shipped_at', 'delivered_at',
        ]

    def get_user(self, obj):
        return {"id": obj.user_id, "username": obj.user.username, "email": obj.user.email}


class OrderDetailSerializer(OrderListSerializer):
    shipping_address = OrderAddressSerializer(read_only=True)
    billing_address = OrderAddressSerializer(read_only=True)
    payment_method = PaymentMethodSerializer(read_only=True)
    shipping_method = ShippingMethodSerializer(read_only=True)
    discount_code = serializers.CharField(source='discount.code', read_only=True, default=None)
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + [
            'shipping_address', 'billing_address', 'payment_method', 'shipping_method',
            'discount_code', 'customer_note', 'admin_note', 'status_history',
        ]


class PlaceOrderSerializer(serializers.Serializer):
    shipping_address_id = serializers.IntegerField()
    billing_address_id = serializers.IntegerField()
    payment_method_id = serializers.IntegerField()
    shipping_method_id = serializers.IntegerField()
    discount_code = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    customer_note = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[code for code, _, _ in OrderStatus.DEFAULTS])
    note = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_null=True)
    admin_note = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class OrderCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)


# =============================================================================
# Discounts
# =============================================================================

class DiscountSerializer(serializers.ModelSerializer):
    usage_count = serializers.IntegerField(read_only=True, default=0)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = Discount
        fields = [
            'id', 'code', 'description', 'discount_type', 'discount_value',
            'min_order_amount', 'max_discount_amount', 'max_uses',
            'max_uses_per_user', 'used_count', 'usage_count', 'starts_at',
            'ends_at', 'is_active', 'is_expired', 'created_at', 'updated_at',
        ]


class DiscountUsageSerializer(serializers.ModelSerializer):
    code = serializers.CharField(source='discount.code', read_only=True)
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    user = serializers.SerializerMethodField()

    class Meta:
        model = DiscountUsage
        fields = ['id', 'code', 'order_number', 'user', 'discount_amount', 'used_at']

    def get_user(self, obj):
        return {"id": obj.user_id, "username": obj.user.username}


class DiscountDetailSerializer(DiscountSerializer):
    recent_usages = DiscountUsageSerializer(many=True, read_only=True)

    class Meta(DiscountSerializer.Meta):
        fields = DiscountSerializer.Meta.fields + ['recent_usages']


class DiscountWriteSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    discount_type = serializers.ChoiceField(choices=[choice for choice, _ in Discount.TYPE_CHOICES])
    discount_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    min_order_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    max_discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    max_uses = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    max_uses_per_user = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    is_active = serializers.BooleanField(required=False)


class DiscountValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    order_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


# =============================================================================
# Reviews
# =============================================================================

class ReviewCreateSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    title = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReviewUpdateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    title = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReviewReplySerializer(serializers.Serializer):
    reply = serializers.CharField()


class ReviewApprovalSerializer(serializers.Serializer):
    is_approved = serializers.BooleanField()


# =============================================================================
# Contacts & Newsletter
# =============================================================================

class ContactCreateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    email = serializers.EmailField(max_length=320, required=False, allow_blank=True, allow_null=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    subject = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True)
    message = serializers.CharField(min_length=10)


class ContactUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[code for code, _ in Contact.STATUS_CHOICES], required=False)
    admin_note = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_read = serializers.BooleanField(required=False)


class ContactSerializer(serializers.ModelSerializer):
    class Meta:
        model = Contact
        fields = [
            'id', 'first_name', 'last_name', 'email', 'phone', 'subject', 'message',
            'status', 'is_read', 'admin_note', 'created_at', 'updated_at',
        ]


class NewsletterEmailSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=320)


class NewsletterSubscriberSerializer(serializers.ModelSerializer):
    class Meta:
        model = NewsletterSubscriber
        fields = ['id', 'email', 'status', 'subscribed_at', 'unsubscribed_at']


# =============================================================================
# Dashboard & Health
# =============================================================================

class LowStockItemSerializer(serializers.ModelSerializer):
    product = serializers.SerializerMethodField()

    class Meta:
        model = ProductItem
        fields = ['id', 'sku', 'price', 'qty_in_stock', 'product']

    def get_product(self, obj):
        return {"id": obj.product_id, "name": obj.product.name, "slug": obj.product.slug}


class HealthCheckSerializer(serializers.Serializer):
    """
    Response serializer for health check endpoint.
    """
    status = serializers.CharField()
    version = serializers.CharField()
    database = serializers.CharField()
    timestamp = serializers.DateTimeField()
