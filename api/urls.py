"""
API URL Configuration
"""
from django.urls import path

from . import views

app_name = 'api'

urlpatterns = [
    # Auth
    path('auth/register/', views.RegisterView.as_view(), name='auth-register'),
    path('auth/login/', views.LoginView.as_view(), name='auth-login'),
    path('auth/admin/login/', views.AdminLoginView.as_view(), name='auth-admin-login'),
    path('auth/refresh/', views.RefreshTokenView.as_view(), name='auth-refresh'),
    path('auth/google/', views.GoogleLoginView.as_view(), name='auth-google'),
    path('auth/change-password/', views.ChangePasswordView.as_view(), name='auth-change-password'),

    # Current user
    path('users/me/', views.ProfileView.as_view(), name='profile'),
    path('users/me/addresses/', views.AddressListView.as_view(), name='address-list'),
    path('users/me/addresses/<int:address_id>/', views.AddressDetailView.as_view(), name='address-detail'),
    path('users/me/addresses/<int:address_id>/default/', views.AddressDefaultView.as_view(), name='address-default'),
    path('users/me/payment-methods/', views.PaymentMethodListView.as_view(), name='payment-method-list'),
    path(
        'users/me/payment-methods/<int:payment_method_id>/',
        views.PaymentMethodDetailView.as_view(),
        name='payment-method-detail',
    ),
    path('users/me/reviews/', views.MyReviewsView.as_view(), name='my-reviews'),
    path('payment-types/', views.PaymentTypeListView.as_view(), name='payment-type-list'),

    # Catalog
    path('products/', views.ProductListView.as_view(), name='product-list'),
    path('products/items/', views.ProductItemCreateView.as_view(), name='product-item-create'),
    path('products/items/<int:item_id>/', views.ProductItemDetailView.as_view(), name='product-item-detail'),
    path('products/items/<int:item_id>/stock/', views.ProductItemStockView.as_view(), name='product-item-stock'),
    path('products/slug/<slug:slug>/', views.ProductBySlugView.as_view(), name='product-by-slug'),
    path('products/<int:product_id>/', views.ProductDetailView.as_view(), name='product-detail'),
    path('categories/', views.CategoryListView.as_view(), name='category-list'),
    path('categories/tree/', views.CategoryTreeView.as_view(), name='category-tree'),
    path('categories/reorder/', views.CategoryReorderView.as_view(), name='category-reorder'),
    path('categories/<int:category_id>/', views.CategoryDetailView.as_view(), name='category-detail'),
    path('brands/', views.BrandListView.as_view(), name='brand-list'),
    path('brands/<str:brand_name>/', views.BrandDetailView.as_view(), name='brand-detail'),

    # Cart
    path('cart/', views.CartView.as_view(), name='cart'),
    path('cart/items/', views.CartItemListView.as_view(), name='cart-item-list'),
    path('cart/items/<int:item_id>/', views.CartItemDetailView.as_view(), name='cart-item-detail'),

    # Orders
    path('shipping-methods/', views.ShippingMethodListView.as_view(), name='shipping-method-list'),
    path('orders/', views.OrderListView.as_view(), name='order-list'),
    path('orders/admin/all/', views.AdminOrderListView.as_view(), name='order-admin-list'),
    path('orders/admin/statistics/', views.OrderStatisticsView.as_view(), name='order-statistics'),
    path('orders/number/<str:order_number>/', views.OrderByNumberView.as_view(), name='order-by-number'),
    path('orders/<int:order_id>/', views.OrderDetailView.as_view(), name='order-detail'),
    path('orders/<int:order_id>/cancel/', views.OrderCancelView.as_view(), name='order-cancel'),
    path('orders/<int:order_id>/status/', views.OrderStatusView.as_view(), name='order-status'),

    # Discounts
    path('discounts/', views.DiscountListView.as_view(), name='discount-list'),
    path('discounts/validate/', views.DiscountValidateView.as_view(), name='discount-validate'),
    path('discounts/my-usage/', views.MyDiscountUsageView.as_view(), name='discount-my-usage'),
    path('discounts/statistics/', views.DiscountStatisticsView.as_view(), name='discount-statistics'),
    path('discounts/<int:discount_id>/', views.DiscountDetailView.as_view(), name='discount-detail'),

    # Reviews
    path('reviews/', views.ReviewListView.as_view(), name='review-list'),
    path('reviews/products/<int:product_id>/stats/', views.ReviewStatsView.as_view(), name='review-stats'),
    path('reviews/<int:review_id>/', views.ReviewDetailView.as_view(), name='review-detail'),
    path('reviews/<int:review_id>/approve/', views.ReviewApproveView.as_view(), name='review-approve'),
    path('reviews/<int:review_id>/reject/', views.ReviewRejectView.as_view(), name='review-reject'),
    path('reviews/<int:review_id>/reply/', views.ReviewReplyView.as_view(), name='review-reply'),

    # Admin dashboard
    path('admin/dashboard/', views.DashboardStatsView.as_view(), name='admin-dashboard'),
    path('admin/revenue/', views.RevenueReportView.as_view(), name='admin-revenue'),
    path('admin/users/', views.AdminUserListView.as_view(), name='admin-users'),
    path('admin/users/<int:user_id>/toggle-status/', views.UserToggleStatusView.as_view(), name='admin-user-toggle'),
    path('admin/reviews/', views.AdminReviewListView.as_view(), name='admin-reviews'),
    path('admin/reviews/<int:review_id>/approval/', views.ReviewApprovalView.as_view(), name='admin-review-approval'),
    path('admin/low-stock/', views.LowStockView.as_view(), name='admin-low-stock'),
    path('admin/orders-by-status/', views.OrdersByStatusView.as_view(), name='admin-orders-by-status'),
    path('admin/orders/<int:order_id>/status/', views.OrderStatusView.as_view(), name='admin-order-status'),
    path('admin/top-customers/', views.TopCustomersView.as_view(), name='admin-top-customers'),
    path(
        'admin/category-performance/',
        views.CategoryPerformanceView.as_view(),
        name='admin-category-performance',
    ),

    # Contacts
    path('contacts/', views.ContactListView.as_view(), name='contact-list'),
    path('contacts/unread-count/', views.ContactUnreadCountView.as_view(), name='contact-unread-count'),
    path('contacts/stats/', views.ContactStatsView.as_view(), name='contact-stats'),
    path('contacts/<int:contact_id>/', views.ContactDetailView.as_view(), name='contact-detail'),
    path('contacts/<int:contact_id>/read/', views.ContactReadView.as_view(), name='contact-read'),

    # Newsletter
    path('newsletter/', views.NewsletterSubscriberListView.as_view(), name='newsletter-list'),
    path('newsletter/subscribe/', views.NewsletterSubscribeView.as_view(), name='newsletter-subscribe'),
    path('newsletter/unsubscribe/', views.NewsletterUnsubscribeView.as_view(), name='newsletter-unsubscribe'),
    path('newsletter/stats/', views.NewsletterStatsView.as_view(), name='newsletter-stats'),
    path(
        'newsletter/<int:subscriber_id>/',
        views.NewsletterSubscriberDetailView.as_view(),
        name='newsletter-detail',
    ),

    # Health check
    path('health/', views.HealthCheckView.as_view(), name='health'),
]
