from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APITestCase

from account.models import User
from analytics.services import AnalyticsService, date_range
from catalog.models import Product, ProductVariant
from purchases.services import PurchaseService
from sales.models import SalesInvoice
from sales.services import SalesService
from vendors.models import Vendor


class AnalyticsServiceTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="Pass123!", role=User.Role.ADMIN)
        self.cashier = User.objects.create_user(username="cashier", password="Pass123!")
        self.vendor = Vendor.objects.create(name="Nile Shoes", code_prefix="NS")
        self.boot = Product.objects.create(
            vendor=self.vendor, code="NS-100", description="Boot",
            buying_price=Decimal("100.00"), selling_price=Decimal("200.00"),
        )
        self.sandal = Product.objects.create(
            vendor=self.vendor, code="NS-200", description="Sandal",
            buying_price=Decimal("50.00"), selling_price=Decimal("80.00"),
        )
        self.boot_variant = ProductVariant.objects.create(product=self.boot, color="Black", size=5, stock=20)
        self.sandal_variant = ProductVariant.objects.create(product=self.sandal, color="Tan", size=3, stock=3)
        self.start, self.end = date_range()

    def test_date_range_defaults_to_last_thirty_days(self):
        start, end = date_range()
        self.assertEqual((end - start).days, 30)
        with self.assertRaises(ValueError):
            date_range(timezone.localdate(), timezone.localdate() - timedelta(days=1))

    @override_settings(LOW_STOCK_THRESHOLD=5)
    def test_dashboard_summary(self):
        invoice = SalesService.create_sale(self.cashier, [{"variant": self.boot_variant, "quantity": 2}])
        SalesService.process_return(invoice, [{"sales_item_id": invoice.items.get().id, "quantity": 1}])

        summary = AnalyticsService.dashboard_summary()
        self.assertEqual(summary["today_sales"], Decimal("200.00"))
        self.assertEqual(summary["today_invoice_count"], 1)
        self.assertEqual(summary["today_returns"], Decimal("200.00"))
        self.assertEqual(summary["low_stock_items"], 1)

    def test_top_products_uses_net_revenue(self):
        SalesService.create_sale(
            self.cashier,
            [
                {"variant": self.boot_variant, "quantity": 1, "discount_percent": Decimal("10")},
                {"variant": self.sandal_variant, "quantity": 3},
            ],
        )
        rows = AnalyticsService.top_products(self.start, self.end)
        self.assertEqual([row["code"] for row in rows], ["NS-200", "NS-100"])
        self.assertEqual(rows[0]["revenue"], Decimal("240.00"))
        self.assertEqual(rows[1]["revenue"], Decimal("180.00"))

    def test_sales_over_time_groups_by_day(self):
        SalesService.create_sale(self.cashier, [{"variant": self.boot_variant, "quantity": 1}])
        SalesService.create_sale(self.cashier, [{"variant": self.boot_variant, "quantity": 1}])
        SalesService.create_sale(
            self.cashier, [{"variant": self.boot_variant, "quantity": 1}], sale_date=timezone.now() - timedelta(days=3)
        )

        rows = AnalyticsService.sales_over_time(self.start, self.end)
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[-1]["count"], 2)
        self.assertEqual(rows[-1]["total"], Decimal("400.00"))

    def test_purchases_over_time(self):
        PurchaseService.create_invoice(
            self.vendor, [{"variant": self.sandal_variant, "quantity": 2, "buying_price": Decimal("50.00")}]
        )
        rows = AnalyticsService.purchases_over_time(self.start, self.end, period="month")
        self.assertEqual(rows[0]["total"], Decimal("100.00"))
        self.assertEqual(rows[0]["date"], timezone.localdate().strftime("%Y-%m"))

    def test_cashier_and_payment_breakdown(self):
        SalesService.create_sale(
            self.cashier, [{"variant": self.boot_variant, "quantity": 2, "discount_percent": Decimal("5")}]
        )
        SalesService.create_sale(
            self.admin,
            [{"variant": self.sandal_variant, "quantity": 1}],
            payment_method=SalesInvoice.PaymentMethod.TRANSACTION,
        )

        cashiers = {row["cashier"]: row for row in AnalyticsService.cashier_performance(self.start, self.end)}
        self.assertEqual(cashiers["cashier"]["total_sales"], Decimal("380.00"))
        self.assertEqual(cashiers["cashier"]["total_discount"], Decimal("20.00"))
        self.assertEqual(cashiers["admin"]["invoice_count"], 1)

        methods = {row["method"]: row for row in AnalyticsService.payment_methods(self.start, self.end)}
        self.assertEqual(methods["CASH"]["count"], 1)
        self.assertEqual(methods["TRANSACTION"]["total"], Decimal("80.00"))

    def test_stock_levels_lists_lowest_first(self):
        rows = AnalyticsService.stock_levels()
        self.assertEqual([row["code"] for row in rows], ["NS-200", "NS-100"])
        self.assertEqual(rows[0]["stock"], 3)

    def test_inventory_report_values_stock_at_cost(self):
        report = AnalyticsService.inventory_report()
        self.assertEqual(report["total_stock"], 23)
        self.assertEqual(report["total_value"], Decimal("2150.00"))


class AnalyticsAPITests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="Pass123!", role=User.Role.ADMIN)
        self.cashier = User.objects.create_user(username="cashier", password="Pass123!")
        vendor = Vendor.objects.create(name="Nile Shoes", code_prefix="NS")
        product = Product.objects.create(
            vendor=vendor, code="NS-100", buying_price=Decimal("100.00"), selling_price=Decimal("200.00")
        )
        self.variant = ProductVariant.objects.create(product=product, color="Black", size=5, stock=5)
        self.client.force_authenticate(self.admin)

    def test_endpoints_respond(self):
        for url in [
            "/analytics/dashboard/",
            "/analytics/sales-over-time/",
            "/analytics/purchases-over-time/",
            "/analytics/returns-over-time/",
            "/analytics/top-products/",
            "/analytics/cashier-performance/",
            "/analytics/payment-methods/",
            "/analytics/stock-levels/",
            "/analytics/reports/inventory/",
            "/analytics/reports/returns/",
            "/analytics/reports/cashiers/",
        ]:
            response = self.client.get(url)
            self.assertEqual(response.status_code, 200, url)

    def test_sales_report_totals(self):
        SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 2}])
        today = timezone.localdate().isoformat()

        response = self.client.get("/analytics/reports/sales/", {"date_from": today, "date_to": today})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["report_type"], "Sales Report")
        self.assertEqual(len(response.data["data"]), 1)
        self.assertEqual(response.data["data"][0]["cashier"], "cashier")
        self.assertEqual(response.data["total"], Decimal("400.00"))

    def test_invalid_window_is_rejected(self):
        response = self.client.get("/analytics/sales-over-time/", {"date_from": "2030-01-02", "date_to": "2030-01-01"})
        self.assertEqual(response.status_code, 400)
        response = self.client.get("/analytics/sales-over-time/", {"period": "week"})
        self.assertEqual(response.status_code, 400)

    def test_cashier_is_forbidden(self):
        self.client.force_authenticate(self.cashier)
        self.assertEqual(self.client.get("/analytics/dashboard/").status_code, 403)
