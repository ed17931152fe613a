import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Max, ProtectedError, Q

from core.exceptions import ConflictError, DuplicateError
from inventory.services import StockManager
from .models import Product, ProductVariant

logger = logging.getLogger(__name__)

DISCOUNT_TOLERANCE = Decimal("0.0001")


class ProductService:

    @staticmethod
    def code_exists(code, exclude_id=None) -> bool:
        normalized = (code or "").strip()
        if not normalized:
            return False
        queryset = Product.objects.filter(code=normalized)
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset.exists()

    @staticmethod
    def max_discount_percent(buying_price, selling_price) -> Decimal:
        """Largest discount (percent of the selling price) that still covers the buying price."""
        buying_price = Decimal(buying_price)
        selling_price = Decimal(selling_price)
        if selling_price <= 0:
            return Decimal("0")
        return max(Decimal("0"), (selling_price - buying_price) / selling_price * 100)

    @staticmethod
    def validate_pricing(buying_price, selling_price, discount_limit=None):
        if Decimal(selling_price) < Decimal(buying_price):
            raise ValueError("Selling price cannot be lower than buying price.")
        if discount_limit is not None and Decimal(selling_price) > 0:
            allowed = ProductService.max_discount_percent(buying_price, selling_price)
            if Decimal(discount_limit) - allowed > DISCOUNT_TOLERANCE:
                raise ValueError(f"Discount exceeds maximum allowed ({allowed.quantize(Decimal('0.01'))}%).")

    @staticmethod
    @transaction.atomic
    def create_product(variants=None, **data) -> Product:
        data["code"] = data["code"].strip()
        if ProductService.code_exists(data["code"]):
            raise DuplicateError("Product code already exists.")
        ProductService.validate_pricing(data["buying_price"], data["selling_price"], data.get("discount_limit"))

        product = Product.objects.create(**data)
        opening = []
        for variant_data in variants or []:
            variant_data = dict(variant_data)
            variant_data.pop("id", None)
            stock = variant_data.pop("stock", 0) or 0
            variant = ProductVariant.objects.create(product=product, stock=0, **variant_data)
            opening.append((variant.id, stock, "Opening stock"))
        StockManager.apply(opening)
        logger.info("Product created code=%s variants=%s", product.code, len(opening))
        return product

    @staticmethod
    @transaction.atomic
    def update_product(product: Product, variants=None, **data) -> Product:
        if "code" in data:
            data["code"] = data["code"].strip()
            if ProductService.code_exists(data["code"], exclude_id=product.pk):
                raise DuplicateError("Product code already exists.")
        ProductService.validate_pricing(
            data.get("buying_price", product.buying_price),
            data.get("selling_price", product.selling_price),
            data.get("discount_limit", product.discount_limit),
        )
        for field, value in data.items():
            setattr(product, field, value)
        product.save()

        if variants is not None:
            ProductService._merge_variants(product, variants)
        return product

    @staticmethod
    def _merge_variants(product: Product, variants):
        # Variants missing from the payload are kept: sales and purchase
        # history reference them.
        existing = {variant.id: variant for variant in product.variants.all()}
        by_key = {(variant.color, variant.size): variant for variant in existing.values()}
        changes = []
        for variant_data in variants:
            variant_data = dict(variant_data)
            variant_id = variant_data.pop("id", None)
            stock = variant_data.pop("stock", None)
            if variant_id:
                variant = existing.get(variant_id)
                if variant is None:
                    raise ValueError(f"Variant {variant_id} does not belong to product {product.code}.")
            else:
                variant = by_key.get((variant_data.get("color", ""), variant_data.get("size")))
            if variant is None:
                variant = ProductVariant.objects.create(product=product, stock=0, **variant_data)
                by_key[(variant.color, variant.size)] = variant
                if stock:
                    changes.append((variant.id, stock, "Opening stock"))
                continue
            key = (variant_data.get("color", variant.color), variant_data.get("size", variant.size))
            clash = by_key.get(key)
            if clash is not None and clash.id != variant.id:
                raise DuplicateError(
                    f"Variant {key[0] or '-'} / {key[1]} already exists for product {product.code}.",
                    field="variants",
                )
            by_key.pop((variant.color, variant.size), None)
            by_key[key] = variant
            for field, value in variant_data.items():
                setattr(variant, field, value)
            variant.save(update_fields=list(variant_data.keys()) + ["updated_at"])
            if stock is not None and stock != variant.stock:
                changes.append((variant.id, stock - variant.stock, "Product edit"))
        StockManager.apply(changes)

    @staticmethod
    def delete_product(product: Product):
        try:
            with transaction.atomic():
                product.delete()
        except ProtectedError:
            raise ConflictError("Product has invoice history and cannot be deleted. Deactivate it instead.")
        logger.info("Product deleted code=%s", product.code)

    @staticmethod
    def set_active(product: Product, is_active: bool) -> Product:
        product.is_active = is_active
        product.save(update_fields=["is_active", "updated_at"])
        return product

    @staticmethod
    def set_season_active(season: int, is_active: bool) -> int:
        updated = Product.objects.filter(season=season).exclude(is_active=is_active).update(is_active=is_active)
        logger.info("Season %s toggled is_active=%s for %s products", season, is_active, updated)
        return updated

    @staticmethod
    def update_prices(product: Product, buying_price, selling_price, discount_limit=None) -> Product:
        ProductService.validate_pricing(buying_price, selling_price, discount_limit)
        product.buying_price = buying_price
        product.selling_price = selling_price
        product.discount_limit = discount_limit
        product.save(update_fields=["buying_price", "selling_price", "discount_limit", "updated_at"])
        return product

    @staticmethod
    def last_sold_dates(product_ids):
        rows = (
            Product.objects.filter(id__in=set(product_ids))
            .annotate(last_sold_at=Max("variants__sales_items__invoice__sale_date"))
            .values_list("id", "last_sold_at")
        )
        return {product_id: last_sold_at for product_id, last_sold_at in rows}

    @staticmethod
    def get_or_create_variant(product: Product, color: str, size: int) -> ProductVariant:
        variant, created = ProductVariant.objects.get_or_create(
            product=product,
            color=(color or "").strip(),
            size=size,
            defaults={"stock": 0},
        )
        if created:
            logger.info("Variant created product=%s color=%s size=%s", product.code, variant.color, size)
        return variant

    @staticmethod
    def search(query, active_only=True, limit=20):
        queryset = Product.objects.select_related("vendor").prefetch_related("variants")
        if active_only:
            queryset = queryset.filter(is_active=True)
        query = (query or "").strip()
        if query:
            queryset = queryset.filter(Q(code__icontains=query) | Q(description__icontains=query))
        return queryset.order_by("code")[:limit]
