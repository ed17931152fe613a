import logging
import uuid
from collections import OrderedDict

from django.db import transaction

from core.exceptions import InsufficientStockError, NotFoundError
from catalog.models import ProductVariant
from .models import StockMovement

logger = logging.getLogger(__name__)


def _variant_key(value):
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class StockManager:
    """
    Applies signed stock changes to product variants.

    ``changes`` is an iterable of ``(variant_id, quantity, reason)`` tuples,
    positive quantities add stock and negative ones remove it. All affected
    variants are locked, the changes are summed per variant and checked
    against the current stock before anything is written, so a batch either
    lands completely or not at all. Reverting an invoice and applying its
    replacement can therefore be passed as one batch.
    """

    @staticmethod
    @transaction.atomic
    def apply(changes):
        changes = [
            (_variant_key(variant_id), int(qty), reason)
            for variant_id, qty, reason in changes
            if int(qty) != 0
        ]
        if not changes:
            return {}

        delta_by_variant = OrderedDict()
        for variant_id, qty, _ in changes:
            delta_by_variant[variant_id] = delta_by_variant.get(variant_id, 0) + qty

        locked_variants = {
            variant.id: variant
            for variant in ProductVariant.objects.select_for_update()
            .select_related("product")
            .filter(id__in=delta_by_variant.keys())
        }

        for variant_id, delta in delta_by_variant.items():
            variant = locked_variants.get(variant_id)
            if variant is None:
                raise NotFoundError(f"Product variant {variant_id} not found")
            if variant.stock + delta < 0:
                logger.warning(
                    "Rejected stock change variant=%s stock=%s delta=%s", variant.id, variant.stock, delta
                )
                raise InsufficientStockError(variant, variant.stock, -delta)

        running = {variant_id: variant.stock for variant_id, variant in locked_variants.items()}
        movements = []
        for variant_id, qty, reason in changes:
            running[variant_id] += qty
            movements.append(
                StockMovement(
                    variant=locked_variants[variant_id],
                    quantity=qty,
                    stock_after=running[variant_id],
                    reason=reason,
                )
            )

        for variant_id, delta in delta_by_variant.items():
            variant = locked_variants[variant_id]
            variant.stock += delta
            variant.save(update_fields=["stock", "updated_at"])
            logger.info("Stock updated variant=%s delta=%+d stock=%s", variant.id, delta, variant.stock)

        StockMovement.objects.bulk_create(movements)
        return {variant_id: locked_variants[variant_id].stock for variant_id in delta_by_variant}


class InventoryService:

    @staticmethod
    def adjust_stock(variant: ProductVariant, qty: int, reason="Manual Adjustment") -> int:
        # Positive qty = stock_in, Negative qty = stock_out
        new_levels = StockManager.apply([(variant.id, qty, reason)])
        if variant.id in new_levels:
            variant.stock = new_levels[variant.id]
        return variant.stock

    @staticmethod
    def set_stock(variant: ProductVariant, stock: int, reason="Stock Count") -> int:
        if stock < 0:
            raise ValueError("Stock cannot be negative")
        variant.refresh_from_db(fields=["stock"])
        return InventoryService.adjust_stock(variant, stock - variant.stock, reason=reason)

    @staticmethod
    def low_stock(threshold: int):
        return (
            ProductVariant.objects.filter(stock__lte=threshold, product__is_active=True)
            .select_related("product__vendor")
            .order_by("stock", "product__code")
        )
