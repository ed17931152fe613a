from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APITestCase

from account.models import User
from catalog.models import Product, ProductVariant
from catalog.services import ProductService
from core.exceptions import ConflictError, InsufficientStockError
from inventory.services import InventoryService
from purchases.models import PurchaseInvoice
from purchases.services import PurchaseService
from sales.models import ReturnInvoice, SalesInvoice
from sales.services import SalesService
from vendors.models import Vendor


class SalesFixtureMixin:
    def setUp(self):
        self.cashier = User.objects.create_user(username="cashier", password="Pass123!")
        self.admin = User.objects.create_user(username="admin", password="Pass123!", role=User.Role.ADMIN)
        vendor = Vendor.objects.create(name="Nile Shoes", code_prefix="NS")
        self.product = Product.objects.create(
            vendor=vendor,
            code="NS-100",
            description="Leather boot",
            buying_price=Decimal("100.00"),
            selling_price=Decimal("200.00"),
            discount_limit=Decimal("10.00"),
        )
        self.variant = ProductVariant.objects.create(product=self.product, color="Black", size=5, stock=10)
        self.other = ProductVariant.objects.create(product=self.product, color="Brown", size=6, stock=2)

    def _stock(self, variant):
        variant.refresh_from_db()
        return variant.stock


class SalesServiceTests(SalesFixtureMixin, TestCase):
    def test_sale_decrements_stock_and_computes_totals(self):
        invoice = SalesService.create_sale(
            self.cashier,
            [
                {"variant": self.variant, "quantity": 3, "discount_percent": Decimal("10")},
                {"variant": self.other, "quantity": 1},
            ],
            customer_name=" Mona ",
        )

        self.assertEqual(self._stock(self.variant), 7)
        self.assertEqual(self._stock(self.other), 1)
        self.assertEqual(invoice.customer_name, "Mona")
        # 3 * (200 - 20) + 200
        self.assertEqual(invoice.total_amount, Decimal("740.00"))
        line = invoice.items.get(variant=self.variant)
        self.assertEqual(line.discount_value, Decimal("20.00"))

    def test_discount_above_limit_is_rejected(self):
        with self.assertRaisesMessage(ValueError, "exceeds maximum allowed (10.00%)"):
            SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 1, "discount_percent": Decimal("15")}])
        self.assertFalse(SalesInvoice.objects.exists())

    def test_discount_without_limit_is_capped_by_margin(self):
        self.product.discount_limit = None
        self.product.save()
        self.assertEqual(SalesService.allowed_discount_percent(self.product), Decimal("50"))

    def test_inactive_product_cannot_be_sold(self):
        ProductService.set_active(self.product, False)
        self.variant.refresh_from_db()
        with self.assertRaises(ValueError):
            SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 1}])

    def test_insufficient_stock_rejects_whole_sale(self):
        with self.assertRaises(InsufficientStockError):
            SalesService.create_sale(
                self.cashier,
                [{"variant": self.variant, "quantity": 1}, {"variant": self.other, "quantity": 3}],
            )
        self.assertEqual(self._stock(self.variant), 10)
        self.assertFalse(SalesInvoice.objects.exists())

    def test_create_then_delete_leaves_stock_unchanged(self):
        invoice = SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 4}])
        SalesService.delete_sale(invoice)
        self.assertEqual(self._stock(self.variant), 10)

    def test_return_restores_stock_and_reduces_invoice(self):
        invoice = SalesService.create_sale(
            self.cashier, [{"variant": self.variant, "quantity": 2, "discount_percent": Decimal("5")}]
        )
        line = invoice.items.get()

        ret = SalesService.process_return(invoice, [{"sales_item_id": line.id, "quantity": 1}], processed_by=self.admin)

        self.assertEqual(ret.total_refund, Decimal("190.00"))
        self.assertEqual(self._stock(self.variant), 9)
        invoice.refresh_from_db()
        line.refresh_from_db()
        self.assertEqual(line.quantity, 1)
        self.assertEqual(invoice.total_amount, Decimal("190.00"))
        self.assertFalse(invoice.is_returned)

        SalesService.process_return(invoice, [{"sales_item_id": line.id, "quantity": 1}])
        invoice.refresh_from_db()
        self.assertTrue(invoice.is_returned)
        self.assertEqual(invoice.total_amount, Decimal("0.00"))

    def test_return_cannot_exceed_sold_quantity(self):
        invoice = SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 2}])
        line = invoice.items.get()
        with self.assertRaises(ValueError):
            SalesService.process_return(invoice, [{"sales_item_id": line.id, "quantity": 3}])
        self.assertFalse(ReturnInvoice.objects.exists())

    def test_sale_with_returns_cannot_be_deleted(self):
        invoice = SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 2}])
        SalesService.process_return(invoice, [{"sales_item_id": invoice.items.get().id, "quantity": 1}])
        with self.assertRaises(ConflictError):
            SalesService.delete_sale(invoice)

    def test_delete_return_reverses_everything(self):
        invoice = SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 2}])
        line = invoice.items.get()
        ret = SalesService.process_return(invoice, [{"sales_item_id": line.id, "quantity": 2}])

        SalesService.delete_return(ret)

        self.assertEqual(self._stock(self.variant), 8)
        invoice.refresh_from_db()
        line.refresh_from_db()
        self.assertEqual(line.quantity, 2)
        self.assertEqual(invoice.total_amount, Decimal("400.00"))
        self.assertFalse(invoice.is_returned)

    def test_delete_return_conflicts_when_stock_is_gone(self):
        invoice = SalesService.create_sale(self.cashier, [{"variant": self.other, "quantity": 2}])
        ret = SalesService.process_return(invoice, [{"sales_item_id": invoice.items.get().id, "quantity": 2}])
        InventoryService.adjust_stock(self.other, -1)

        with self.assertRaises(InsufficientStockError):
            SalesService.delete_return(ret)
        self.assertTrue(ReturnInvoice.objects.filter(pk=ret.pk).exists())

    def test_search(self):
        first = SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 1}])
        old = SalesService.create_sale(
            self.cashier, [{"variant": self.variant, "quantity": 1}], sale_date=timezone.now() - timedelta(days=10)
        )

        self.assertEqual(list(SalesService.search(f"#{first.pk}")), [first])
        self.assertEqual(list(SalesService.search("boot")), [first, old])
        since = (timezone.now() - timedelta(days=2)).date()
        self.assertEqual(list(SalesService.search(date_from=since)), [first])

    def test_search_ignores_numbers_too_long_for_an_invoice_id(self):
        SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 1}])
        self.assertEqual(list(SalesService.search("1" * 25)), [])

    @override_settings(SALES_SEARCH_LIMIT=1)
    def test_search_is_limited(self):
        SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 1}])
        SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 1}])
        self.assertEqual(len(SalesService.search()), 1)

    def test_last_sold_dates(self):
        invoice = SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 1}])
        dates = ProductService.last_sold_dates([self.product.id])
        self.assertEqual(dates[self.product.id], invoice.sale_date)

    def test_product_with_sales_cannot_be_deleted(self):
        SalesService.create_sale(self.cashier, [{"variant": self.variant, "quantity": 1}])
        with self.assertRaises(ConflictError):
            ProductService.delete_product(self.product)

    def test_mixed_document_sequence_keeps_stock_consistent(self):
        vendor = self.product.vendor
        purchase = PurchaseService.create_invoice(
            vendor,
            [
                {"variant": self.variant, "quantity": 5, "buying_price": Decimal("100.00")},
                {"variant": self.other, "quantity": 3, "buying_price": Decimal("100.00")},
            ],
        )
        sale = SalesService.create_sale(
            self.cashier, [{"variant": self.variant, "quantity": 4}, {"variant": self.other, "quantity": 2}]
        )
        line = sale.items.get(variant=self.variant)
        ret = SalesService.process_return(sale, [{"sales_item_id": line.id, "quantity": 1}])
        self.assertEqual((self._stock(self.variant), self._stock(self.other)), (12, 3))

        PurchaseService.update_invoice(
            purchase,
            vendor,
            [
                {"variant": self.variant, "quantity": 2, "buying_price": Decimal("100.00")},
                {"variant": self.other, "quantity": 3, "buying_price": Decimal("100.00")},
            ],
        )
        SalesService.delete_return(ret)
        second = SalesService.create_sale(self.cashier, [{"variant": self.other, "quantity": 2}])
        self.assertEqual((self._stock(self.variant), self._stock(self.other)), (8, 1))

        with self.assertRaises(InsufficientStockError):
            PurchaseService.delete_invoice(purchase)
        self.assertEqual((self._stock(self.variant), self._stock(self.other)), (8, 1))
        self.assertTrue(PurchaseInvoice.objects.filter(pk=purchase.pk).exists())

        SalesService.delete_sale(second)
        PurchaseService.delete_invoice(purchase)

        # Only the first sale is left: 10 - 4 and 2 - 2.
        self.assertEqual((self._stock(self.variant), self._stock(self.other)), (6, 0))
        sale.refresh_from_db()
        self.assertEqual(sale.total_amount, Decimal("1200.00"))
        self.assertFalse(sale.is_returned)


class SalesAPITests(SalesFixtureMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.client.force_authenticate(self.cashier)

    def _sell(self, quantity=2, discount="0"):
        return self.client.post(
            "/sales/invoices/",
            {
                "customer_name": "Mona",
                "payment_method": "TRANSACTION",
                "items": [{"variant_id": str(self.variant.id), "quantity": quantity, "discount_percent": discount}],
            },
            format="json",
        )

    def test_cashier_creates_sale(self):
        response = self._sell(discount="10")
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["seller"], "cashier")
        self.assertEqual(response.data["total_amount"], "360.00")
        self.assertEqual(response.data["payment_method_display"], "Transaction")

    def test_sale_over_stock_conflicts(self):
        response = self._sell(quantity=11)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(self._stock(self.variant), 10)

    def test_discount_over_limit_is_bad_request(self):
        self.assertEqual(self._sell(discount="20").status_code, 400)

    def test_only_admin_deletes_sales(self):
        invoice_id = self._sell().data["id"]
        self.assertEqual(self.client.delete(f"/sales/invoices/{invoice_id}/").status_code, 403)

        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.delete(f"/sales/invoices/{invoice_id}/").status_code, 204)
        self.assertEqual(self._stock(self.variant), 10)

    def test_return_flow(self):
        sale = self._sell().data
        response = self.client.post(
            "/sales/returns/",
            {"sales_invoice_id": sale["id"], "notes": "Wrong size", "items": [{"sales_item_id": sale["items"][0]["id"], "quantity": 1}]},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["processed_by"], "cashier")

        response = self.client.get(f"/sales/invoices/{sale['id']}/")
        self.assertEqual(response.data["total_amount"], "200.00")
        self.assertEqual(len(response.data["returns"]), 1)

    def test_search_endpoint(self):
        self._sell()
        response = self.client.get("/sales/invoices/", {"q": "NS-100"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)

        response = self.client.get("/sales/invoices/", {"date_from": "2030-01-02", "date_to": "2030-01-01"})
        self.assertEqual(response.status_code, 400)
