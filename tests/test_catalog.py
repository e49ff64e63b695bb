"""
Products, items, categories and brands
"""
from decimal import Decimal

import pytest

from apps.catalog.models import Product, ProductCategory, ProductItem
from apps.catalog.services import BrandService, CategoryService, ProductService
from apps.core.exceptions import BadRequestError, ConflictError, NotFoundError
from apps.reviews.models import ProductReview

pytestmark = pytest.mark.django_db


class TestProductList:

    def test_default_sort_newest_first(self, router_item, switch_item):
        products, meta = ProductService().list({})

        assert [p.name for p in products] == ['Cisco CBS250', 'TP-Link Archer AX55']
        assert meta == {'total': 2, 'page': 1, 'limit': 20, 'total_pages': 1}

    def test_sort_by_name(self, router_item, switch_item):
        products, _ = ProductService().list({'sort_by': 'name', 'sort_order': 'desc'})

        assert [p.name for p in products] == ['TP-Link Archer AX55', 'Cisco CBS250']

    def test_price_is_not_a_sort_key(self, category, router_item, switch_item):
        cheap = Product.objects.create(category=category, name='Tenda AC5', slug='tenda-ac5', brand='Tenda')
        ProductItem.objects.create(product=cheap, sku='TND-AC5', price=Decimal('390000'), qty_in_stock=5)

        products, _ = ProductService().list({'sort_by': 'price', 'sort_order': 'asc'})

        # Oldest first, not cheapest first
        assert [p.name for p in products] == ['TP-Link Archer AX55', 'Cisco CBS250', 'Tenda AC5']

    def test_unknown_sort_falls_back(self, router_item, switch_item):
        products, _ = ProductService().list({'sort_by': 'qty; DROP TABLE products'})
        assert len(products) == 2

    def test_filters(self, router_item, switch_item):
        service = ProductService()

        by_brand, _ = service.list({'brand': 'cisco'})
        by_search, _ = service.list({'search': 'archer'})

        assert [p.sku for p in by_brand[0].active_items] == ['CBS250-8T']
        assert [p.name for p in by_search] == ['TP-Link Archer AX55']

    def test_is_active_filter(self, router, switch_item):
        ProductService().deactivate(router.pk)

        active, _ = ProductService().list({'is_active': 'true'})
        inactive, _ = ProductService().list({'is_active': 'false'})

        assert [p.pk for p in active] == [switch_item.product_id]
        assert [p.pk for p in inactive] == [router.pk]

    def test_pagination(self, category):
        for index in range(5):
            Product.objects.create(category=category, name=f"AP {index}", slug=f"ap-{index}")

        products, meta = ProductService().list({'page': '2', 'limit': '2'})

        assert len(products) == 2
        assert meta['total'] == 5
        assert meta['total_pages'] == 3

    def test_total_stock_counts_active_items(self, router, router_item):
        ProductItem.objects.create(product=router, sku='TPL-AX55-V2', price=Decimal('3100000'), qty_in_stock=4)
        ProductItem.objects.create(
            product=router, sku='TPL-AX55-OLD', price=Decimal('2500000'), qty_in_stock=9, is_active=False
        )

        products, _ = ProductService().list({})

        assert products[0].total_stock == 14


class TestProductDetail:

    def test_get_with_rating(self, customer, other_customer, router, router_item):
        ProductReview.objects.create(user=customer, product=router, rating=5, is_approved=True)
        ProductReview.objects.create(user=other_customer, product=router, rating=2, is_approved=False)

        product = ProductService().get(router.pk)

        assert product.average_rating == 5.0
        assert product.review_count == 1
        assert [r.rating for r in product.approved_reviews] == [5]

    def test_get_by_slug(self, router):
        assert ProductService().get_by_slug('tp-link-archer-ax55').pk == router.pk

        with pytest.raises(NotFoundError):
            ProductService().get_by_slug('missing')


class TestProductAdmin:

    def test_create_duplicate_slug(self, router, category):
        with pytest.raises(ConflictError):
            ProductService().create({'category_id': category.pk, 'name': 'Copy', 'slug': router.slug})

    def test_create_unknown_category(self, db):
        with pytest.raises(BadRequestError):
            ProductService().create({'category_id': 42, 'name': 'Orphan', 'slug': 'orphan'})

    def test_update_keeps_own_slug(self, router):
        product = ProductService().update(router.pk, {'slug': router.slug, 'name': 'Archer AX55 Pro'})
        assert product.name == 'Archer AX55 Pro'

    def test_deactivate_is_soft(self, router):
        ProductService().deactivate(router.pk)

        router.refresh_from_db()
        assert router.is_active is False

    def test_item_sku_conflict(self, router, router_item, switch_item):
        with pytest.raises(ConflictError):
            ProductService().create_item({'product_id': router.pk, 'sku': 'CBS250-8T', 'price': Decimal('1')})
        with pytest.raises(ConflictError):
            ProductService().update_item(router_item.pk, {'sku': 'CBS250-8T'})

    def test_update_stock(self, router_item):
        assert ProductService().update_stock(router_item.pk, 3).qty_in_stock == 3

        with pytest.raises(BadRequestError):
            ProductService().update_stock(router_item.pk, -1)


class TestCategories:

    def test_tree(self, category):
        wifi = ProductCategory.objects.create(name='WiFi 6', slug='wifi-6', parent=category)
        ProductCategory.objects.create(name='Mesh', slug='mesh', parent=wifi)

        roots = list(CategoryService().tree())

        assert [c.slug for c in roots] == ['router']
        assert [c.slug for c in roots[0].children.all()] == ['wifi-6']
        assert [c.slug for c in roots[0].children.all()[0].children.all()] == ['mesh']

    def test_self_parent_rejected(self, category):
        with pytest.raises(BadRequestError, match='Category cannot be its own parent'):
            CategoryService().update(category.pk, {'parent_id': category.pk})

    def test_cycle_rejected(self, category):
        child = ProductCategory.objects.create(name='WiFi 6', slug='wifi-6', parent=category)

        with pytest.raises(BadRequestError, match='Circular category reference detected'):
            CategoryService().update(category.pk, {'parent_id': child.pk})

    def test_delete_refuses_with_products(self, router):
        with pytest.raises(BadRequestError, match='Cannot delete category with products'):
            CategoryService().delete(router.category_id)

    def test_delete_refuses_with_children(self, category):
        ProductCategory.objects.create(name='WiFi 6', slug='wifi-6', parent=category)

        with pytest.raises(BadRequestError, match='Cannot delete category with sub-categories'):
            CategoryService().delete(category.pk)

    def test_delete_empty(self, category):
        CategoryService().delete(category.pk)
        assert not ProductCategory.objects.filter(pk=category.pk).exists()

    def test_reorder(self, category):
        switch = ProductCategory.objects.create(name='Switch', slug='switch')

        CategoryService().reorder([{'id': category.pk, 'display_order': 2}, {'id': switch.pk, 'display_order': 1}])

        assert [c.slug for c in CategoryService().list()] == ['switch', 'router']

    def test_reorder_unknown_id(self, category):
        with pytest.raises(BadRequestError):
            CategoryService().reorder([{'id': 999, 'display_order': 1}])


class TestBrands:

    def test_list_counts_active_products(self, router, switch_item):
        Product.objects.create(category=router.category, name='Old Cisco', slug='old-cisco', brand='Cisco', is_active=False)

        brands = BrandService().list()

        assert brands == [
            {'id': 1, 'name': 'Cisco', 'product_count': 1},
            {'id': 2, 'name': 'TP-Link', 'product_count': 1},
        ]

    def test_get_unknown_brand(self, db):
        with pytest.raises(NotFoundError):
            BrandService().get('Nobody')
