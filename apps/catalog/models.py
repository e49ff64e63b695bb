"""
Catalog Models - Network Equipment Storefront
Tables: product_categories, products, product_items
"""
from django.db import models
from apps.core.models import BaseModel


class ProductCategory(BaseModel):
    """
    Category in a (shallow) hierarchy: Router > WiFi 6 Router, ...
    """
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True)
    parent = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='children'
    )
    description = models.TextField(blank=True, null=True)
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'product_categories'
        verbose_name = 'Product Category'
        verbose_name_plural = 'Product Categories'
        ordering = ['display_order', 'name']

    def __str__(self):
        return self.name


class Product(BaseModel):
    """
    The sellable concept. Price and stock live on its ProductItems.
    Deactivation is soft so existing orders keep their references.
    """
    category = models.ForeignKey(ProductCategory, on_delete=models.PROTECT, related_name='products')
    name = models.CharField(max_length=300)
    slug = models.SlugField(max_length=350, unique=True)
    brand = models.CharField(max_length=100, blank=True, null=True, db_index=True)
    model = models.CharField(max_length=100, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'products'
        verbose_name = 'Product'
        verbose_name_plural = 'Products'

    def __str__(self):
        return self.name


class ProductItem(BaseModel):
    """
    Purchasable SKU/variant of a product.
    """
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='items')
    sku = models.CharField(max_length=100, unique=True)
    price = models.DecimalField(max_digits=14, decimal_places=2, help_text="Unit price in VND")
    qty_in_stock = models.PositiveIntegerField(default=0)
    weight_kg = models.DecimalField(max_digits=8, decimal_places=3, blank=True, null=True)
    warranty_months = models.PositiveSmallIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'product_items'
        verbose_name = 'Product Item'
        verbose_name_plural = 'Product Items'
        ordering = ['price']

    def __str__(self):
        return f"{self.sku} ({self.price})"

    @property
    def is_available(self) -> bool:
        return self.is_active and self.product.is_active
