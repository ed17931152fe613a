from datetime import datetime, time, timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import Avg, Count, DecimalField, ExpressionWrapper, F, Sum
from django.db.models.functions import Coalesce, TruncDate, TruncMonth
from django.utils import timezone

from catalog.models import Product, ProductVariant
from inventory.services import InventoryService
from purchases.models import PurchaseInvoice
from sales.models import ReturnInvoice, SalesInvoice, SalesItem

ZERO = Decimal("0.00")
MONEY = DecimalField(max_digits=14, decimal_places=2)

DEFAULT_DAYS = 30


def _start_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.min))


def _end_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.max))


def date_range(date_from=None, date_to=None, days=DEFAULT_DAYS):
    """Resolve an inclusive (start, end) datetime window; defaults to the last ``days`` days."""
    today = timezone.localdate()
    date_to = date_to or today
    date_from = date_from or (date_to - timedelta(days=days))
    if date_from > date_to:
        raise ValueError("date_from must be before date_to.")
    return _start_of_day(date_from), _end_of_day(date_to)


def _sum(queryset, field):
    return queryset.aggregate(total=Sum(field))["total"] or ZERO


def _net_line_total():
    return ExpressionWrapper((F("selling_price") - F("discount_value")) * F("quantity"), output_field=MONEY)


class AnalyticsService:

    @staticmethod
    def dashboard_summary():
        today = timezone.localdate()
        month_start = today.replace(day=1)
        today_sales = SalesInvoice.objects.filter(sale_date__gte=_start_of_day(today))
        return {
            "today_sales": _sum(today_sales, "total_amount"),
            "today_invoice_count": today_sales.count(),
            "month_sales": _sum(SalesInvoice.objects.filter(sale_date__gte=_start_of_day(month_start)), "total_amount"),
            "today_returns": _sum(ReturnInvoice.objects.filter(return_date__gte=_start_of_day(today)), "total_refund"),
            "low_stock_items": InventoryService.low_stock(settings.LOW_STOCK_THRESHOLD).count(),
            "active_products": Product.objects.filter(is_active=True).count(),
        }

    @staticmethod
    def _over_time(queryset, date_field, amount_field, start, end, period="day"):
        trunc = TruncMonth if period == "month" else TruncDate
        rows = (
            queryset.filter(**{f"{date_field}__range": (start, end)})
            .annotate(bucket=trunc(date_field))
            .values("bucket")
            .annotate(total=Sum(amount_field), count=Count("id"))
            .order_by("bucket")
        )
        date_format = "%Y-%m" if period == "month" else "%Y-%m-%d"
        return [
            {"date": row["bucket"].strftime(date_format), "total": row["total"] or ZERO, "count": row["count"]}
            for row in rows
        ]

    @staticmethod
    def sales_over_time(start, end, period="day"):
        return AnalyticsService._over_time(SalesInvoice.objects.all(), "sale_date", "total_amount", start, end, period)

    @staticmethod
    def purchases_over_time(start, end, period="day"):
        return AnalyticsService._over_time(
            PurchaseInvoice.objects.all(), "purchase_date", "total_amount", start, end, period
        )

    @staticmethod
    def returns_over_time(start, end, period="day"):
        return AnalyticsService._over_time(ReturnInvoice.objects.all(), "return_date", "total_refund", start, end, period)

    @staticmethod
    def top_products(start, end, limit=10):
        rows = (
            SalesItem.objects.filter(invoice__sale_date__range=(start, end), quantity__gt=0)
            .values("variant__product_id", "variant__product__code", "variant__product__description")
            .annotate(total_quantity=Sum("quantity"), revenue=Sum(_net_line_total()))
            .order_by("-total_quantity", "variant__product__code")[:limit]
        )
        return [
            {
                "product_id": str(row["variant__product_id"]),
                "code": row["variant__product__code"],
                "description": row["variant__product__description"],
                "quantity": row["total_quantity"],
                "revenue": row["revenue"] or ZERO,
            }
            for row in rows
        ]

    @staticmethod
    def cashier_performance(start, end):
        invoices = SalesInvoice.objects.filter(sale_date__range=(start, end))
        discounts = {
            row["invoice__seller__username"]: row["total_discount"]
            for row in SalesItem.objects.filter(invoice__in=invoices)
            .values("invoice__seller__username")
            .annotate(
                total_discount=Sum(ExpressionWrapper(F("discount_value") * F("quantity"), output_field=MONEY))
            )
            .order_by()
        }
        rows = (
            invoices.values("seller__username")
            .annotate(total_sales=Sum("total_amount"), invoice_count=Count("id"), average_invoice=Avg("total_amount"))
            .order_by("-total_sales")
        )
        return [
            {
                "cashier": row["seller__username"],
                "total_sales": row["total_sales"] or ZERO,
                "invoice_count": row["invoice_count"],
                "average_invoice": Decimal(row["average_invoice"] or 0).quantize(Decimal("0.01")),
                "total_discount": discounts.get(row["seller__username"]) or ZERO,
            }
            for row in rows
        ]

    @staticmethod
    def payment_methods(start, end):
        labels = dict(SalesInvoice.PaymentMethod.choices)
        rows = (
            SalesInvoice.objects.filter(sale_date__range=(start, end))
            .values("payment_method")
            .annotate(total=Sum("total_amount"), count=Count("id"))
            .order_by("payment_method")
        )
        return [
            {
                "method": row["payment_method"],
                "label": labels.get(row["payment_method"], row["payment_method"]),
                "total": row["total"] or ZERO,
                "count": row["count"],
            }
            for row in rows
        ]

    @staticmethod
    def stock_levels(limit=20):
        rows = (
            Product.objects.filter(is_active=True)
            .annotate(stock=Coalesce(Sum("variants__stock"), 0))
            .order_by("stock", "code")
            .values("id", "code", "description", "stock")[:limit]
        )
        return [
            {"product_id": str(row["id"]), "code": row["code"], "description": row["description"], "stock": row["stock"]}
            for row in rows
        ]

    @staticmethod
    def sales_report(start, end):
        invoices = (
            SalesInvoice.objects.filter(sale_date__range=(start, end))
            .select_related("seller")
            .order_by("-sale_date", "-id")
        )
        data = [
            {
                "id": invoice.pk,
                "sale_date": invoice.sale_date,
                "cashier": invoice.seller.username if invoice.seller else None,
                "customer_name": invoice.customer_name,
                "payment_method": invoice.payment_method,
                "total_amount": invoice.total_amount,
                "is_returned": invoice.is_returned,
            }
            for invoice in invoices
        ]
        return {
            "report_type": "Sales Report",
            "period": _period(start, end),
            "data": data,
            "total": sum((row["total_amount"] for row in data), ZERO),
        }

    @staticmethod
    def inventory_report():
        variants = ProductVariant.objects.select_related("product__vendor").order_by("product__code", "color", "size")
        data = [
            {
                "product_code": variant.product.code,
                "description": variant.product.description,
                "vendor": variant.product.vendor.name,
                "color": variant.color,
                "size": variant.size,
                "stock": variant.stock,
                "buying_price": variant.product.buying_price,
                "selling_price": variant.product.selling_price,
                "value": variant.product.buying_price * variant.stock,
            }
            for variant in variants
        ]
        return {
            "report_type": "Inventory Report",
            "generated_at": timezone.localtime().strftime("%Y-%m-%d %H:%M"),
            "data": data,
            "total_stock": sum(row["stock"] for row in data),
            "total_value": sum((row["value"] for row in data), ZERO),
        }

    @staticmethod
    def returns_report(start, end):
        returns = (
            ReturnInvoice.objects.filter(return_date__range=(start, end))
            .select_related("sales_invoice", "processed_by")
            .annotate(item_count=Count("items"))
            .order_by("-return_date", "-id")
        )
        data = [
            {
                "id": ret.pk,
                "return_date": ret.return_date,
                "original_invoice": ret.sales_invoice_id,
                "customer_name": ret.sales_invoice.customer_name,
                "processed_by": ret.processed_by.username if ret.processed_by else None,
                "total_refund": ret.total_refund,
                "item_count": ret.item_count,
            }
            for ret in returns
        ]
        return {
            "report_type": "Returns Report",
            "period": _period(start, end),
            "data": data,
            "total_refund": sum((row["total_refund"] for row in data), ZERO),
        }

    @staticmethod
    def cashier_report(start, end):
        return {
            "report_type": "Cashier Performance Report",
            "period": _period(start, end),
            "data": AnalyticsService.cashier_performance(start, end),
        }


def _period(start, end):
    return f"{timezone.localtime(start):%Y-%m-%d} to {timezone.localtime(end):%Y-%m-%d}"
