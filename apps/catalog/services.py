"""
Catalog Services - Products, Categories, Brands

Paginated reads with whitelisted sorting, slug/SKU uniqueness checks,
soft deletion of products.
"""
import logging
from typing import Dict, List, Any, Optional, Tuple

from django.db import transaction
from django.db.models import Avg, Count, Min, OuterRef, Prefetch, Q, Subquery, Sum

from apps.core.exceptions import BadRequestError, ConflictError, NotFoundError
from apps.core.utils import paginate, parse_bool
from .models import Product, ProductCategory, ProductItem

logger = logging.getLogger(__name__)


class ProductService:
    """
    Product and product item (SKU) management.
    """

    # Sort keys accepted from clients, mapped to ORM fields
    SORT_FIELDS = {
        'created_at': 'created_at',
        'updated_at': 'updated_at',
        'name': 'name',
    }

    def base_queryset(self):
        stock = (
            ProductItem.objects
            .filter(product=OuterRef('pk'), is_active=True)
            .values('product')
            .annotate(total=Sum('qty_in_stock'))
            .values('total')
        )
        return (
            Product.objects
            .select_related('category')
            .annotate(
                min_price=Min('items__price', filter=Q(items__is_active=True)),
                total_stock=Subquery(stock),
                review_count=Count('reviews', filter=Q(reviews__is_approved=True), distinct=True),
            )
        )

    def list(self, params: Dict[str, Any]) -> Tuple[List[Product], Dict]:
        """
        Paginated product listing with filters:
        search, category_id, brand, is_active, sort_by, sort_order.
        """
        queryset = self.base_queryset()

        is_active = parse_bool(params.get('is_active'))
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)

        category_id = params.get('category_id')
        if category_id:
            queryset = queryset.filter(category_id=category_id)

        brand = params.get('brand')
        if brand:
            queryset = queryset.filter(brand__icontains=brand)

        search = params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(description__icontains=search))

        queryset = queryset.order_by(self._build_order_by(params.get('sort_by'), params.get('sort_order')), '-pk')
        queryset = queryset.prefetch_related(
            Prefetch('items', queryset=ProductItem.objects.filter(is_active=True).order_by('price'), to_attr='active_items')
        )
        return paginate(queryset, params.get('page'), params.get('limit'))

    def get(self, product_id: int) -> Product:
        product = self._detail_queryset().filter(pk=product_id).first()
        if not product:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return self._with_rating(product)

    def get_by_slug(self, slug: str) -> Product:
        product = self._detail_queryset().filter(slug=slug).first()
        if not product:
            raise NotFoundError(f"Product with slug '{slug}' not found")
        return self._with_rating(product)

    def create(self, data: Dict[str, Any]) -> Product:
        if Product.objects.filter(slug=data['slug']).exists():
            raise ConflictError(f"Product with slug '{data['slug']}' already exists")

        category = self._get_category(data['category_id'])
        fields = {k: v for k, v in data.items() if k != 'category_id'}
        product = Product.objects.create(category=category, **fields)
        logger.info(f"Created product {product.pk} ({product.slug})")
        return product

    def update(self, product_id: int, data: Dict[str, Any]) -> Product:
        product = Product.objects.filter(pk=product_id).first()
        if not product:
            raise NotFoundError(f"Product with ID {product_id} not found")

        slug = data.get('slug')
        if slug and slug != product.slug and Product.objects.filter(slug=slug).exists():
            raise ConflictError(f"Product with slug '{slug}' already exists")

        if data.get('category_id'):
            product.category = self._get_category(data['category_id'])

        for field, value in data.items():
            if field != 'category_id':
                setattr(product, field, value)
        product.save()
        return product

    def deactivate(self, product_id: int) -> Product:
        """
        Soft delete: the row stays so historical orders keep their links.
        """
        product = Product.objects.filter(pk=product_id).first()
        if not product:
            raise NotFoundError(f"Product with ID {product_id} not found")

        product.is_active = False
        product.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"Deactivated product {product.pk}")
        return product

    def create_item(self, data: Dict[str, Any]) -> ProductItem:
        product = Product.objects.filter(pk=data['product_id']).first()
        if not product:
            raise BadRequestError(f"Product with ID {data['product_id']} not found")

        if ProductItem.objects.filter(sku=data['sku']).exists():
            raise ConflictError(f"SKU '{data['sku']}' already exists")

        fields = {k: v for k, v in data.items() if k != 'product_id'}
        return ProductItem.objects.create(product=product, **fields)

    def update_item(self, item_id: int, data: Dict[str, Any]) -> ProductItem:
        item = self._get_item(item_id)

        sku = data.get('sku')
        if sku and sku != item.sku and ProductItem.objects.filter(sku=sku).exists():
            raise ConflictError(f"SKU '{sku}' already exists")

        for field, value in data.items():
            if field != 'product_id':
                setattr(item, field, value)
        item.save()
        return item

    def update_stock(self, item_id: int, quantity: int) -> ProductItem:
        if quantity < 0:
            raise BadRequestError("Stock quantity cannot be negative")
        item = self._get_item(item_id)
        item.qty_in_stock = quantity
        item.save(update_fields=['qty_in_stock', 'updated_at'])
        logger.info(f"Stock for {item.sku} set to {quantity}")
        return item

    def _detail_queryset(self):
        from apps.reviews.models import ProductReview

        return self.base_queryset().prefetch_related(
            Prefetch('items', queryset=ProductItem.objects.filter(is_active=True).order_by('price'), to_attr='active_items'),
            Prefetch(
                'reviews',
                queryset=ProductReview.objects.filter(is_approved=True).select_related('user').order_by('-created_at'),
                to_attr='approved_reviews',
            ),
        )

    def _with_rating(self, product: Product) -> Product:
        product.approved_reviews = product.approved_reviews[:10]
        product.average_rating = self.calculate_average_rating(product.pk)
        return product

    def calculate_average_rating(self, product_id: int) -> float:
        from apps.reviews.models import ProductReview

        result = ProductReview.objects.filter(product_id=product_id, is_approved=True).aggregate(avg=Avg('rating'))
        return round(float(result['avg'] or 0), 2)

    def _build_order_by(self, sort_by: Optional[str], sort_order: Optional[str]) -> str:
        field = self.SORT_FIELDS.get(sort_by or 'created_at', 'created_at')
        prefix = '' if (sort_order or 'desc').lower() == 'asc' else '-'
        return f"{prefix}{field}"

    def _get_category(self, category_id: int) -> ProductCategory:
        category = ProductCategory.objects.filter(pk=category_id).first()
        if not category:
            raise BadRequestError(f"Category with ID {category_id} not found")
        return category

    def _get_item(self, item_id: int) -> ProductItem:
        item = ProductItem.objects.select_related('product').filter(pk=item_id).first()
        if not item:
            raise NotFoundError(f"Product item with ID {item_id} not found")
        return item


class CategoryService:
    """
    Category hierarchy management.
    """

    def list(self):
        return (
            ProductCategory.objects
            .select_related('parent')
            .prefetch_related('children')
            .annotate(product_count=Count('products', distinct=True))
            .order_by('display_order', 'name')
        )

    def tree(self):
        """
        Root categories with two levels of children.
        """
        grandchildren = ProductCategory.objects.annotate(product_count=Count('products')).order_by('display_order', 'name')
        children = (
            ProductCategory.objects
            .annotate(product_count=Count('products'))
            .prefetch_related(Prefetch('children', queryset=grandchildren))
            .order_by('display_order', 'name')
        )
        return (
            ProductCategory.objects
            .filter(parent__isnull=True)
            .annotate(product_count=Count('products'))
            .prefetch_related(Prefetch('children', queryset=children))
            .order_by('display_order', 'name')
        )

    def get(self, category_id: int) -> ProductCategory:
        category = self.list().filter(pk=category_id).first()
        if not category:
            raise NotFoundError(f"Category with ID {category_id} not found")

        category.active_products = list(
            ProductService().base_queryset()
            .filter(category=category, is_active=True)
            .order_by('-created_at')[:20]
        )
        return category

    def create(self, data: Dict[str, Any]) -> ProductCategory:
        if ProductCategory.objects.filter(slug=data['slug']).exists():
            raise ConflictError(f"Category with slug '{data['slug']}' already exists")

        parent = None
        if data.get('parent_id'):
            parent = ProductCategory.objects.filter(pk=data['parent_id']).first()
            if not parent:
                raise BadRequestError(f"Parent category with ID {data['parent_id']} not found")

        fields = {k: v for k, v in data.items() if k != 'parent_id'}
        return ProductCategory.objects.create(parent=parent, **fields)

    def update(self, category_id: int, data: Dict[str, Any]) -> ProductCategory:
        category = ProductCategory.objects.filter(pk=category_id).first()
        if not category:
            raise NotFoundError(f"Category with ID {category_id} not found")

        slug = data.get('slug')
        if slug and slug != category.slug and ProductCategory.objects.filter(slug=slug).exists():
            raise ConflictError(f"Category with slug '{slug}' already exists")

        if 'parent_id' in data:
            parent_id = data['parent_id']
            if parent_id:
                if parent_id == category.pk:
                    raise BadRequestError('Category cannot be its own parent')
                parent = ProductCategory.objects.filter(pk=parent_id).first()
                if not parent:
                    raise BadRequestError(f"Parent category with ID {parent_id} not found")
                self._check_circular_reference(category, parent)
                category.parent = parent
            else:
                category.parent = None

        for field, value in data.items():
            if field != 'parent_id':
                setattr(category, field, value)
        category.save()
        return category

    def delete(self, category_id: int) -> None:
        category = ProductCategory.objects.filter(pk=category_id).first()
        if not category:
            raise NotFoundError(f"Category with ID {category_id} not found")

        if category.products.exists():
            raise BadRequestError('Cannot delete category with products. Please reassign products first.')
        if category.children.exists():
            raise BadRequestError('Cannot delete category with sub-categories. Please delete or reassign them first.')

        category.delete()
        logger.info(f"Deleted category {category_id}")

    @transaction.atomic
    def reorder(self, orders: List[Dict[str, int]]) -> int:
        ids = [entry['id'] for entry in orders]
        found = set(ProductCategory.objects.filter(pk__in=ids).values_list('pk', flat=True))
        missing = [pk for pk in ids if pk not in found]
        if missing:
            raise BadRequestError(f"Categories not found: {missing}")

        for entry in orders:
            ProductCategory.objects.filter(pk=entry['id']).update(display_order=entry['display_order'])
        return len(orders)

    def _check_circular_reference(self, category: ProductCategory, new_parent: ProductCategory) -> None:
        ancestor = new_parent
        while ancestor is not None:
            if ancestor.pk == category.pk:
                raise BadRequestError('Circular category reference detected')
            ancestor = ancestor.parent


class BrandService:
    """
    Brands are derived from the distinct brand values of active products.
    """

    def list(self) -> List[Dict[str, Any]]:
        rows = (
            Product.objects
            .filter(is_active=True, brand__isnull=False)
            .exclude(brand='')
            .values('brand')
            .annotate(product_count=Count('id'))
            .order_by('brand')
        )
        return [
            {"id": index + 1, "name": row['brand'], "product_count": row['product_count']}
            for index, row in enumerate(rows)
        ]

    def get(self, brand_name: str) -> Dict[str, Any]:
        products = list(
            ProductService().base_queryset()
            .filter(brand=brand_name, is_active=True)
            .order_by('name')
        )
        if not products:
            raise NotFoundError(f"Brand '{brand_name}' not found")

        return {
            "name": brand_name,
            "product_count": len(products),
            "products": products,
        }
