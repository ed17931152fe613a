from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from vendors.models import Vendor
import uuid


class Season(models.IntegerChoices):
    WINTER = 1, "Winter"
    SPRING = 2, "Spring"
    SUMMER = 3, "Summer"
    AUTUMN = 4, "Autumn"
    ALL_YEAR = 5, "All year"


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vendor = models.ForeignKey(Vendor, on_delete=models.CASCADE, related_name="products")
    code = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255, blank=True)
    buying_price = models.DecimalField(max_digits=12, decimal_places=2)
    selling_price = models.DecimalField(max_digits=12, decimal_places=2)
    discount_limit = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)  # percent
    is_active = models.BooleanField(default=True)
    season = models.PositiveSmallIntegerField(choices=Season.choices, default=Season.ALL_YEAR)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.strip()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.code} - {self.description}" if self.description else self.code

    @property
    def total_stock(self):
        return sum(variant.stock for variant in self.variants.all())


class ProductVariant(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, related_name="variants", on_delete=models.CASCADE)
    color = models.CharField(max_length=30, blank=True)
    size = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(18)])
    stock = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["color", "size"]
        constraints = [
            models.UniqueConstraint(fields=["product", "color", "size"], name="catalog_variant_unique_color_size"),
        ]

    def __str__(self):
        return f"{self.product.code} / {self.color or '-'} / {self.size}"
