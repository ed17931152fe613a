import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum
from django.utils import timezone

from catalog.models import Product
from core.exceptions import ConflictError
from inventory.services import StockManager
from sales.models import SalesItem
from vendors.models import Vendor
from .models import PurchaseInvoice, PurchaseItem, PurchaseReturnInvoice, PurchaseReturnItem

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class PurchaseService:

    @staticmethod
    def invoices(vendor_id=None):
        queryset = PurchaseInvoice.objects.select_related("vendor").prefetch_related("items__variant__product")
        if vendor_id:
            queryset = queryset.filter(vendor_id=vendor_id)
        return queryset

    @staticmethod
    def _check_items(vendor, items):
        if not items:
            raise ValueError("Invoice must contain at least one item.")
        for item in items:
            variant = item["variant"]
            if variant.product.vendor_id != vendor.id:
                raise ValueError(f"{variant} does not belong to vendor {vendor.name}.")
            if item["quantity"] <= 0:
                raise ValueError("Quantity must be greater than zero.")

    @staticmethod
    def _sync_buying_prices(items):
        # The last line of a product wins when it appears more than once.
        prices = {}
        for item in items:
            prices[item["variant"].product_id] = item["buying_price"]
        for product in Product.objects.filter(id__in=prices.keys()):
            price = prices[product.id]
            if product.buying_price != price:
                logger.info("Buying price synced product=%s %s -> %s", product.code, product.buying_price, price)
                product.buying_price = price
                product.save(update_fields=["buying_price", "updated_at"])

    @staticmethod
    def _create_items(invoice, items):
        PurchaseItem.objects.bulk_create(
            PurchaseItem(
                invoice=invoice,
                variant=item["variant"],
                quantity=item["quantity"],
                buying_price=item["buying_price"],
            )
            for item in items
        )

    @staticmethod
    def _total(items):
        return sum((item["buying_price"] * item["quantity"] for item in items), ZERO)

    @staticmethod
    @transaction.atomic
    def create_invoice(vendor: Vendor, items, purchase_date=None, notes="") -> PurchaseInvoice:
        """
        items: list of dicts like
        [{"variant": ProductVariant, "quantity": 3, "buying_price": Decimal("120.00")}]
        """
        PurchaseService._check_items(vendor, items)
        invoice = PurchaseInvoice.objects.create(
            vendor=vendor,
            purchase_date=purchase_date or timezone.now(),
            total_amount=PurchaseService._total(items),
            notes=notes or "",
        )
        PurchaseService._create_items(invoice, items)
        StockManager.apply(
            [(item["variant"].id, item["quantity"], f"Purchase #{invoice.pk}") for item in items]
        )
        PurchaseService._sync_buying_prices(items)
        logger.info("Purchase invoice created id=%s vendor=%s total=%s", invoice.pk, vendor.name, invoice.total_amount)
        return invoice

    @staticmethod
    @transaction.atomic
    def update_invoice(invoice: PurchaseInvoice, vendor: Vendor, items, purchase_date=None, notes=None) -> PurchaseInvoice:
        invoice = PurchaseInvoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.returns.exists():
            raise ConflictError("Invoice has purchase returns and cannot be edited. Delete the returns first.")
        PurchaseService._check_items(vendor, items)

        old_items = list(invoice.items.all())
        changes = [(item.variant_id, -item.quantity, f"Purchase #{invoice.pk} edited") for item in old_items]
        changes += [(item["variant"].id, item["quantity"], f"Purchase #{invoice.pk} edited") for item in items]
        StockManager.apply(changes)

        invoice.items.all().delete()
        PurchaseService._create_items(invoice, items)
        invoice.vendor = vendor
        if purchase_date is not None:
            invoice.purchase_date = purchase_date
        if notes is not None:
            invoice.notes = notes
        invoice.total_amount = PurchaseService._total(items)
        invoice.save()
        PurchaseService._sync_buying_prices(items)
        logger.info("Purchase invoice updated id=%s total=%s", invoice.pk, invoice.total_amount)
        return invoice

    @staticmethod
    @transaction.atomic
    def delete_invoice(invoice: PurchaseInvoice):
        invoice = PurchaseInvoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.returns.exists():
            raise ConflictError("Invoice has purchase returns. Delete the returns first.")
        StockManager.apply(
            [(item.variant_id, -item.quantity, f"Purchase #{invoice.pk} deleted") for item in invoice.items.all()]
        )
        invoice_id = invoice.pk
        invoice.delete()
        logger.info("Purchase invoice deleted id=%s", invoice_id)

    @staticmethod
    def returnable_quantities(invoice: PurchaseInvoice):
        """Purchased minus already returned quantity per variant id."""
        remaining = defaultdict(int)
        for item in invoice.items.all():
            remaining[item.variant_id] += item.quantity
        returned = (
            PurchaseReturnItem.objects.filter(return_invoice__purchase_invoice=invoice)
            .values("variant_id")
            .annotate(quantity=Sum("quantity"))
        )
        for row in returned:
            remaining[row["variant_id"]] -= row["quantity"]
        return dict(remaining)

    @staticmethod
    @transaction.atomic
    def create_return(purchase_invoice: PurchaseInvoice, items, reason="", return_date=None) -> PurchaseReturnInvoice:
        """
        items: list of dicts like
        [{"variant": ProductVariant, "quantity": 1, "refund_price": Decimal("120.00") or None}]
        """
        if not items:
            raise ValueError("Return must contain at least one item.")
        # Lock the invoice so two returns against it cannot both pass the limit check.
        purchase_invoice = PurchaseInvoice.objects.select_for_update().get(pk=purchase_invoice.pk)
        remaining = PurchaseService.returnable_quantities(purchase_invoice)
        purchase_prices = {item.variant_id: item.buying_price for item in purchase_invoice.items.all()}

        requested = defaultdict(int)
        for item in items:
            requested[item["variant"].id] += item["quantity"]
        for item in items:
            variant = item["variant"]
            if variant.id not in remaining:
                raise ValueError(f"{variant} is not part of purchase #{purchase_invoice.pk}.")
            if requested[variant.id] > remaining[variant.id]:
                raise ValueError(
                    f"Cannot return {requested[variant.id]} of {variant}: only {remaining[variant.id]} left to return."
                )
            if item.get("refund_price") is None:
                item["refund_price"] = purchase_prices[variant.id]

        return_invoice = PurchaseReturnInvoice.objects.create(
            purchase_invoice=purchase_invoice,
            vendor_id=purchase_invoice.vendor_id,
            return_date=return_date or timezone.now(),
            total_refund=sum((item["refund_price"] * item["quantity"] for item in items), ZERO),
            reason=reason or "",
        )
        PurchaseReturnItem.objects.bulk_create(
            PurchaseReturnItem(
                return_invoice=return_invoice,
                variant=item["variant"],
                quantity=item["quantity"],
                refund_price=item["refund_price"],
            )
            for item in items
        )
        StockManager.apply(
            [(item["variant"].id, -item["quantity"], f"Purchase return #{return_invoice.pk}") for item in items]
        )
        logger.info(
            "Purchase return created id=%s purchase=%s refund=%s",
            return_invoice.pk,
            purchase_invoice.pk,
            return_invoice.total_refund,
        )
        return return_invoice

    @staticmethod
    @transaction.atomic
    def delete_return(return_invoice: PurchaseReturnInvoice):
        StockManager.apply(
            [
                (item.variant_id, item.quantity, f"Purchase return #{return_invoice.pk} deleted")
                for item in return_invoice.items.all()
            ]
        )
        return_id = return_invoice.pk
        return_invoice.delete()
        logger.info("Purchase return deleted id=%s", return_id)

    @staticmethod
    def products_by_vendor(vendor: Vendor, active_only=False):
        queryset = Product.objects.filter(vendor=vendor).prefetch_related("variants")
        if active_only:
            queryset = queryset.filter(is_active=True)
        return queryset.order_by("code")

    @staticmethod
    def vendor_stats():
        purchases = {
            row["vendor_id"]: row
            for row in PurchaseInvoice.objects.order_by().values("vendor_id").annotate(
                total_purchased=Sum("total_amount"), invoice_count=Count("id")
            )
        }
        returns = {
            row["vendor_id"]: row["total_returned"]
            for row in PurchaseReturnInvoice.objects.order_by().values("vendor_id").annotate(total_returned=Sum("total_refund"))
        }
        sold_value = ExpressionWrapper(
            (F("selling_price") - F("discount_value")) * F("quantity"),
            output_field=DecimalField(max_digits=14, decimal_places=2),
        )
        sales = {
            row["variant__product__vendor_id"]: row
            for row in SalesItem.objects.filter(quantity__gt=0)
            .order_by()
            .values("variant__product__vendor_id")
            .annotate(sold_count=Sum("quantity"), sold_value=Sum(sold_value))
        }

        stats = []
        for vendor in Vendor.objects.order_by("name"):
            purchased = purchases.get(vendor.id, {})
            sold = sales.get(vendor.id, {})
            stats.append(
                {
                    "vendor_id": str(vendor.id),
                    "vendor_name": vendor.name,
                    "total_purchased": purchased.get("total_purchased") or ZERO,
                    "total_returned": returns.get(vendor.id) or ZERO,
                    "invoice_count": purchased.get("invoice_count", 0),
                    "products_sold_count": sold.get("sold_count") or 0,
                    "products_sold_value": sold.get("sold_value") or ZERO,
                }
            )
        return stats
