"""
Seed Data Generator for the NetTech Shop backend

This script creates the reference data the shop needs to run (roles, order
statuses, payment types, shipping methods) plus a demo catalog, customers,
discount codes, orders and reviews.
"""
import os
import sys
import random
from datetime import timedelta
from decimal import Decimal

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Setup Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

import django
django.setup()

from django.utils import timezone
from django.utils.text import slugify
from faker import Faker

from apps.accounts.models import PaymentType, Role, SiteUser
from apps.accounts.services import AddressService, PaymentMethodService
from apps.cart.services import CartService
from apps.catalog.models import Product, ProductCategory, ProductItem
from apps.contacts.models import Contact
from apps.contacts.services import ContactService
from apps.core.constants import ROLE_ADMIN, ROLE_USER
from apps.core.exceptions import ShopException
from apps.discounts.models import Discount
from apps.newsletter.models import NewsletterSubscriber
from apps.newsletter.services import NewsletterService
from apps.orders.models import OrderStatus, ShippingMethod, ShopOrder
from apps.orders.services import OrderService
from apps.reviews.services import ReviewService

fake = Faker('vi_VN')

PAYMENT_TYPES = [
    ('Cash on Delivery', 'COD'),
    ('Bank Transfer', 'BANK_TRANSFER'),
    ('Credit Card', 'CREDIT_CARD'),
    ('MoMo Wallet', 'MOMO'),
    ('ZaloPay', 'ZALOPAY'),
]

SHIPPING_METHODS = [
    # name, code, base price, price per kg, estimated days
    ('Standard Delivery', 'STANDARD', Decimal('30000'), Decimal('5000'), 4),
    ('Express Delivery', 'EXPRESS', Decimal('60000'), Decimal('10000'), 2),
    ('Same Day Delivery', 'SAME_DAY', Decimal('100000'), Decimal('15000'), 0),
]

CATEGORY_TREE = {
    'Router': ['WiFi 6 Router', 'Mesh WiFi System', '4G/5G Router'],
    'Switch': ['Unmanaged Switch', 'Managed Switch', 'PoE Switch'],
    'Access Point': ['Indoor Access Point', 'Outdoor Access Point'],
    'Network Accessories': ['Network Cable', 'Network Adapter'],
}

PRODUCT_TEMPLATES = [
    # category, brand, model prefix, price range (VND), weight kg
    ('WiFi 6 Router', 'TP-Link', 'Archer AX', (1_200_000, 4_500_000), Decimal('0.5')),
    ('WiFi 6 Router', 'ASUS', 'RT-AX', (2_000_000, 9_000_000), Decimal('0.8')),
    ('Mesh WiFi System', 'TP-Link', 'Deco X', (2_500_000, 8_000_000), Decimal('1.2')),
    ('Mesh WiFi System', 'Ubiquiti', 'AmpliFi', (4_000_000, 9_500_000), Decimal('1.0')),
    ('4G/5G Router', 'Huawei', 'B', (1_500_000, 6_000_000), Decimal('0.4')),
    ('Unmanaged Switch', 'TP-Link', 'TL-SG', (250_000, 1_500_000), Decimal('0.3')),
    ('Managed Switch', 'Cisco', 'CBS', (5_000_000, 25_000_000), Decimal('2.5')),
    ('PoE Switch', 'Ubiquiti', 'USW', (3_000_000, 12_000_000), Decimal('1.8')),
    ('Indoor Access Point', 'Ubiquiti', 'U6', (2_800_000, 6_500_000), Decimal('0.6')),
    ('Outdoor Access Point', 'Ruijie', 'RG-AP', (3_500_000, 8_500_000), Decimal('1.1')),
    ('Network Cable', 'AMP', 'Cat6', (150_000, 2_500_000), Decimal('0.2')),
    ('Network Adapter', 'TP-Link', 'Archer TX', (350_000, 1_200_000), Decimal('0.1')),
]


def round_price(value):
    """Round to the nearest 10,000 VND."""
    return Decimal(int(round(value / 10_000)) * 10_000)


def seed_reference_data():
    """Create roles, order statuses, payment types and shipping methods."""
    print("Seeding reference data...")

    for name, description in [(ROLE_ADMIN, 'Shop administrator'), (ROLE_USER, 'Customer')]:
        Role.objects.get_or_create(name=name, defaults={'description': description})

    OrderStatus.ensure_defaults()

    for name, code in PAYMENT_TYPES:
        PaymentType.objects.get_or_create(code=code, defaults={'name': name})

    for name, code, base_price, per_kg, days in SHIPPING_METHODS:
        ShippingMethod.objects.get_or_create(
            code=code,
            defaults={
                'name': name,
                'base_price': base_price,
                'price_per_kg': per_kg,
                'estimated_days': days,
            },
        )

    print("Reference data ready")


def generate_categories():
    """Generate the two-level category tree."""
    print("Generating categories...")
    categories = {}

    for order, (parent_name, children) in enumerate(CATEGORY_TREE.items(), start=1):
        parent = ProductCategory.objects.create(
            name=parent_name,
            slug=slugify(parent_name),
            display_order=order,
        )
        categories[parent_name] = parent
        for child_order, child_name in enumerate(children, start=1):
            categories[child_name] = ProductCategory.objects.create(
                name=child_name,
                slug=slugify(child_name),
                parent=parent,
                display_order=child_order,
            )

    print(f"Created {len(categories)} categories")
    return categories


def generate_products(categories, per_template=3):
    """Generate products with one to three SKUs each."""
    print("Generating products...")
    items = []

    for category_name, brand, model_prefix, (low, high), weight in PRODUCT_TEMPLATES:
        for _ in range(per_template):
            model = f"{model_prefix}{random.randint(10, 99)}"
            name = f"{brand} {model}"
            product = Product.objects.create(
                category=categories[category_name],
                name=name,
                slug=f"{slugify(name)}-{fake.unique.random_int(1000, 9999)}",
                brand=brand,
                model=model,
                description=fake.paragraph(nb_sentences=3),
            )

            for variant in random.sample(['STD', 'PRO', 'KIT'], random.randint(1, 3)):
                items.append(ProductItem.objects.create(
                    product=product,
                    sku=f"{slugify(brand).upper()}-{model}-{variant}",
                    price=round_price(random.uniform(low, high)),
                    qty_in_stock=random.randint(0, 80),
                    weight_kg=weight,
                    warranty_months=random.choice([12, 24, 36]),
                ))

    print(f"Created {len(items)} product items")
    return items


def generate_users(count=20):
    """Generate an admin account and customers with an address and a payment method."""
    print(f"Generating {count} customers...")

    admin = SiteUser.objects.create_superuser(
        email='admin@nettech.vn',
        username='admin',
        password='Admin@123',
    )

    payment_types = list(PaymentType.objects.filter(code__in=['COD', 'BANK_TRANSFER', 'CREDIT_CARD']))
    customers = []
    for _ in range(count):
        user = SiteUser.objects.create_user(
            email=fake.unique.email(),
            username=fake.unique.user_name()[:50],
            password='User@123',
            phone=fake.phone_number()[:20],
        )
        AddressService().create(user, {
            'address_line1': fake.street_address(),
            'city': fake.city(),
            'district': fake.city(),
            'ward': fake.street_name(),
        })
        PaymentMethodService().create(user, {
            'payment_type_id': random.choice(payment_types).pk,
            'provider': random.choice(['Vietcombank', 'Techcombank', 'VISA', None]),
            'account_number': fake.bban(),
        })
        customers.append(user)

    print(f"Created admin and {len(customers)} customers")
    return admin, customers


def generate_discounts():
    """Generate a few discount codes."""
    print("Generating discounts...")
    now = timezone.now()
    discounts = [
        Discount.objects.create(
            code='WELCOME10',
            description='10% off your first order',
            discount_type=Discount.TYPE_PERCENTAGE,
            discount_value=Decimal('10'),
            max_discount_amount=Decimal('200000'),
            max_uses_per_user=1,
            starts_at=now - timedelta(days=30),
            ends_at=now + timedelta(days=180),
        ),
        Discount.objects.create(
            code='FREESHIP50K',
            description='50,000 VND off orders above 1,000,000 VND',
            discount_type=Discount.TYPE_FIXED_AMOUNT,
            discount_value=Decimal('50000'),
            min_order_amount=Decimal('1000000'),
            max_uses=500,
            starts_at=now - timedelta(days=7),
            ends_at=now + timedelta(days=60),
        ),
    ]
    print(f"Created {len(discounts)} discounts")
    return discounts


def generate_orders(admin, customers, items, count=40):
    """Place orders through the checkout flow and move some along the lifecycle."""
    print(f"Generating {count} orders...")
    orders = []
    shipping_methods = list(ShippingMethod.objects.all())
    order_service = OrderService()

    progressions = [
        [],
        [OrderStatus.PROCESSING],
        [OrderStatus.PROCESSING, OrderStatus.SHIPPED],
        [OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED],
        [OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.COMPLETED],
        [OrderStatus.CANCELLED],
    ]

    for _ in range(count):
        user = random.choice(customers)
        in_stock = [item for item in items if item.qty_in_stock > 0]
        if not in_stock:
            break

        for item in random.sample(in_stock, min(len(in_stock), random.randint(1, 3))):
            item.refresh_from_db()
            if item.qty_in_stock > 0:
                CartService().add_item(user, item.pk, 1)

        address = user.user_addresses.first().address
        try:
            order = order_service.place_order(
                user,
                shipping_address_id=address.pk,
                billing_address_id=address.pk,
                payment_method_id=user.payment_methods.first().pk,
                shipping_method_id=random.choice(shipping_methods).pk,
                discount_code=random.choice([None, None, 'FREESHIP50K']),
            )
        except ShopException as e:
            print(f"  skipped order for {user.username}: {e.message}")
            CartService().clear(user)
            continue

        for status_code in random.choice(progressions):
            order_service.update_status(order.pk, status_code, admin)
        orders.append(order)

    print(f"Created {len(orders)} orders")
    return orders


def generate_reviews(admin):
    """Customers review products from their delivered or completed orders."""
    print("Generating reviews...")
    review_service = ReviewService()
    reviews = []

    fulfilled = ShopOrder.objects.filter(status__code__in=OrderStatus.FULFILLED).prefetch_related('items__product_item')
    for order in fulfilled:
        for line in order.items.all():
            if line.product_item is None:
                continue
            try:
                review = review_service.create(
                    order.user,
                    line.product_item.product_id,
                    rating=random.choices([1, 2, 3, 4, 5], weights=[5, 5, 15, 35, 40])[0],
                    title=fake.sentence(nb_words=5),
                    comment=fake.paragraph(nb_sentences=2),
                )
            except ShopException:
                continue
            if random.random() > 0.3:
                review_service.approve(review.pk)
            reviews.append(review)

    print(f"Created {len(reviews)} reviews")
    return reviews


def generate_inbox(contacts=15, subscribers=30):
    """Generate contact form messages and newsletter subscribers."""
    print("Generating contacts and newsletter subscribers...")

    contact_service = ContactService()
    for _ in range(contacts):
        contact = contact_service.create({
            'first_name': fake.first_name(),
            'last_name': fake.last_name(),
            'email': fake.email(),
            'phone': fake.phone_number()[:20],
            'subject': fake.sentence(nb_words=5)[:200],
            'message': fake.paragraph(nb_sentences=3),
        })
        status = random.choice([code for code, _ in Contact.STATUS_CHOICES])
        if status != Contact.STATUS_NEW:
            contact_service.update(contact.pk, {'status': status, 'is_read': True})

    newsletter = NewsletterService()
    emails = {fake.unique.email() for _ in range(subscribers)}
    for email in emails:
        newsletter.subscribe(email)
        if random.random() < 0.2:
            newsletter.unsubscribe(email)

    print(f"Created {contacts} contacts and {len(emails)} subscribers")
    return contacts, len(emails)


def clear_all_data():
    """Clear all existing demo data (reference tables are kept)."""
    print("Clearing existing data...")

    ShopOrder.objects.all().delete()
    Contact.objects.all().delete()
    NewsletterSubscriber.objects.all().delete()
    Discount.objects.all().delete()
    ProductItem.objects.all().delete()
    Product.objects.all().delete()
    ProductCategory.objects.filter(parent__isnull=False).delete()
    ProductCategory.objects.all().delete()
    SiteUser.objects.all().delete()

    print("All data cleared")


def main():
    """Main function to seed all data."""
    print("\n" + "=" * 60)
    print("NetTech Shop Seed Data Generator")
    print("=" * 60 + "\n")

    clear_all_data()
    seed_reference_data()

    categories = generate_categories()
    items = generate_products(categories)
    admin, customers = generate_users(20)
    discounts = generate_discounts()
    orders = generate_orders(admin, customers, items, 40)
    reviews = generate_reviews(admin)
    contacts, subscribers = generate_inbox()

    print("\n" + "=" * 60)
    print("Seeding Complete!")
    print("=" * 60)
    print("\nSummary:")
    print(f"  - Categories: {len(categories)}")
    print(f"  - Product items: {len(items)}")
    print(f"  - Customers: {len(customers)}")
    print(f"  - Discounts: {len(discounts)}")
    print(f"  - Orders: {len(orders)}")
    print(f"  - Reviews: {len(reviews)}")
    print(f"  - Contacts: {contacts}")
    print(f"  - Newsletter subscribers: {subscribers}")
    print(f"\nAdmin login: admin@nettech.vn / Admin@123")
    print()


if __name__ == '__main__':
    main()
