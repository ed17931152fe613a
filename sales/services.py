import logging
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from catalog.services import DISCOUNT_TOLERANCE, ProductService
from core.exceptions import ConflictError
from inventory.services import StockManager
from .models import ReturnInvoice, ReturnItem, SalesInvoice, SalesItem

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class SalesService:

    @staticmethod
    def allowed_discount_percent(product) -> Decimal:
        """The product's discount limit, never more than its margin allows."""
        margin = ProductService.max_discount_percent(product.buying_price, product.selling_price)
        if product.discount_limit is None:
            return margin
        return min(Decimal(product.discount_limit), margin)

    @staticmethod
    def invoices():
        return SalesInvoice.objects.select_related("seller").prefetch_related("items__variant__product")

    @staticmethod
    @transaction.atomic
    def create_sale(seller, items, customer_name="", payment_method=SalesInvoice.PaymentMethod.CASH, sale_date=None):
        """
        items: list of dicts like
        [{"variant": ProductVariant, "quantity": 2, "discount_percent": Decimal("5")}]
        """
        if not items:
            raise ValueError("Sale must contain at least one item.")

        lines = []
        for item in items:
            variant = item["variant"]
            product = variant.product
            if not product.is_active:
                raise ValueError(f"Product {product.code} is not active.")
            if item["quantity"] <= 0:
                raise ValueError("Quantity must be greater than zero.")
            percent = Decimal(item.get("discount_percent") or 0)
            allowed = SalesService.allowed_discount_percent(product)
            if percent < 0 or percent - allowed > DISCOUNT_TOLERANCE:
                raise ValueError(
                    f"Discount for {product.code} exceeds maximum allowed ({allowed.quantize(CENT)}%)."
                )
            lines.append(
                SalesItem(
                    variant=variant,
                    quantity=item["quantity"],
                    selling_price=product.selling_price,
                    discount_value=_money(product.selling_price * percent / 100),
                )
            )

        invoice = SalesInvoice.objects.create(
            seller=seller,
            sale_date=sale_date or timezone.now(),
            customer_name=(customer_name or "").strip(),
            payment_method=payment_method,
            total_amount=sum((line.total for line in lines), ZERO),
        )
        for line in lines:
            line.invoice = invoice
        SalesItem.objects.bulk_create(lines)
        StockManager.apply([(line.variant.id, -line.quantity, f"Sale #{invoice.pk}") for line in lines])
        logger.info(
            "Sale created id=%s seller=%s items=%s total=%s",
            invoice.pk,
            getattr(seller, "username", None),
            len(lines),
            invoice.total_amount,
        )
        return invoice

    @staticmethod
    @transaction.atomic
    def delete_sale(invoice: SalesInvoice):
        invoice = SalesInvoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.returns.exists():
            raise ConflictError("Sale has returns and cannot be deleted. Delete the returns first.")
        StockManager.apply(
            [(item.variant_id, item.quantity, f"Sale #{invoice.pk} deleted") for item in invoice.items.all()]
        )
        invoice_id = invoice.pk
        invoice.delete()
        logger.info("Sale deleted id=%s", invoice_id)

    @staticmethod
    def search(query="", date_from=None, date_to=None, limit=None):
        queryset = SalesService.invoices()
        query = (query or "").strip()
        if query:
            condition = Q(items__variant__product__code__icontains=query) | Q(
                items__variant__product__description__icontains=query
            )
            number = query.lstrip("#")
            # Invoice ids fit in a bigint.
            if number.isdigit() and len(number) <= 18:
                condition |= Q(pk=int(number))
            queryset = queryset.filter(condition).distinct()
        if date_from:
            queryset = queryset.filter(sale_date__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(sale_date__date__lte=date_to)
        return queryset.order_by("-sale_date", "-id")[: limit or settings.SALES_SEARCH_LIMIT]

    @staticmethod
    @transaction.atomic
    def process_return(sales_invoice: SalesInvoice, items, processed_by=None, notes="") -> ReturnInvoice:
        """
        items: list of dicts like [{"sales_item_id": 12, "quantity": 1}]
        """
        if not items:
            raise ValueError("Return must contain at least one item.")
        invoice = SalesInvoice.objects.select_for_update().get(pk=sales_invoice.pk)
        sales_items = {item.id: item for item in invoice.items.select_related("variant__product")}

        requested = defaultdict(int)
        for item in items:
            if item["quantity"] <= 0:
                raise ValueError("Quantity must be greater than zero.")
            requested[item["sales_item_id"]] += item["quantity"]
        for sales_item_id, quantity in requested.items():
            sales_item = sales_items.get(sales_item_id)
            if sales_item is None:
                raise ValueError(f"Sales item {sales_item_id} is not part of sale #{invoice.pk}.")
            if quantity > sales_item.quantity:
                raise ValueError(
                    f"Return quantity exceeds sold quantity for {sales_item.variant}: "
                    f"sold {sales_item.quantity}, returning {quantity}."
                )

        return_invoice = ReturnInvoice.objects.create(
            sales_invoice=invoice,
            processed_by=processed_by,
            return_date=timezone.now(),
            notes=notes or "",
        )
        return_items = []
        for sales_item_id, quantity in requested.items():
            sales_item = sales_items[sales_item_id]
            return_items.append(
                ReturnItem(
                    return_invoice=return_invoice,
                    sales_item=sales_item,
                    variant_id=sales_item.variant_id,
                    quantity=quantity,
                    refund_amount=sales_item.unit_price * quantity,
                )
            )
            sales_item.quantity -= quantity
            sales_item.save(update_fields=["quantity"])
        ReturnItem.objects.bulk_create(return_items)

        StockManager.apply(
            [(item.variant_id, item.quantity, f"Return #{return_invoice.pk}") for item in return_items]
        )

        return_invoice.total_refund = sum((item.refund_amount for item in return_items), ZERO)
        return_invoice.save(update_fields=["total_refund"])
        invoice.total_amount -= return_invoice.total_refund
        invoice.is_returned = all(item.quantity == 0 for item in sales_items.values())
        invoice.save(update_fields=["total_amount", "is_returned", "updated_at"])
        logger.info(
            "Return processed id=%s sale=%s refund=%s", return_invoice.pk, invoice.pk, return_invoice.total_refund
        )
        return return_invoice

    @staticmethod
    @transaction.atomic
    def delete_return(return_invoice: ReturnInvoice):
        invoice = SalesInvoice.objects.select_for_update().get(pk=return_invoice.sales_invoice_id)
        return_items = list(return_invoice.items.select_related("sales_item"))
        StockManager.apply(
            [(item.variant_id, -item.quantity, f"Return #{return_invoice.pk} deleted") for item in return_items]
        )
        for item in return_items:
            sales_item = item.sales_item
            sales_item.quantity += item.quantity
            sales_item.save(update_fields=["quantity"])
        invoice.total_amount += return_invoice.total_refund
        invoice.is_returned = False
        invoice.save(update_fields=["total_amount", "is_returned", "updated_at"])
        return_id = return_invoice.pk
        return_invoice.delete()
        logger.info("Return deleted id=%s sale=%s", return_id, invoice.pk)
