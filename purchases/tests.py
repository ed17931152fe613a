from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APITestCase

from account.models import User
from catalog.models import Product, ProductVariant
from core.exceptions import ConflictError, InsufficientStockError
from inventory.services import InventoryService
from purchases.models import PurchaseInvoice, PurchaseReturnInvoice
from purchases.services import PurchaseService
from sales.services import SalesService
from vendors.models import Vendor


class PurchaseServiceTests(TestCase):
    def setUp(self):
        self.vendor = Vendor.objects.create(name="Nile Shoes", code_prefix="NS")
        self.product = Product.objects.create(
            vendor=self.vendor, code="NS-100", buying_price=Decimal("100.00"), selling_price=Decimal("150.00")
        )
        self.black = ProductVariant.objects.create(product=self.product, color="Black", size=5)
        self.brown = ProductVariant.objects.create(product=self.product, color="Brown", size=6)

    def _invoice(self, black=5, brown=3, price="110.00"):
        return PurchaseService.create_invoice(
            self.vendor,
            [
                {"variant": self.black, "quantity": black, "buying_price": Decimal(price)},
                {"variant": self.brown, "quantity": brown, "buying_price": Decimal(price)},
            ],
        )

    def _stock(self):
        self.black.refresh_from_db()
        self.brown.refresh_from_db()
        return self.black.stock, self.brown.stock

    def test_create_invoice_adds_stock_and_syncs_buying_price(self):
        invoice = self._invoice()

        self.assertEqual(self._stock(), (5, 3))
        self.assertEqual(invoice.total_amount, Decimal("880.00"))
        self.product.refresh_from_db()
        self.assertEqual(self.product.buying_price, Decimal("110.00"))

    def test_variant_of_other_vendor_is_rejected(self):
        other = Vendor.objects.create(name="Delta Bags", code_prefix="DB")
        with self.assertRaises(ValueError):
            PurchaseService.create_invoice(other, [{"variant": self.black, "quantity": 1, "buying_price": Decimal("1")}])
        self.assertFalse(PurchaseInvoice.objects.exists())

    def test_update_reverses_old_items_then_applies_new(self):
        invoice = self._invoice(black=5, brown=3)
        InventoryService.adjust_stock(self.black, -4)

        # Only 1 black left; replacing 5 with 4 is a net change of -1.
        PurchaseService.update_invoice(
            invoice, self.vendor, [{"variant": self.black, "quantity": 4, "buying_price": Decimal("110.00")}]
        )

        self.assertEqual(self._stock(), (0, 0))
        invoice.refresh_from_db()
        self.assertEqual(invoice.items.count(), 1)
        self.assertEqual(invoice.total_amount, Decimal("440.00"))

    def test_update_that_would_go_negative_changes_nothing(self):
        invoice = self._invoice(black=5, brown=3)
        InventoryService.adjust_stock(self.black, -4)

        with self.assertRaises(InsufficientStockError):
            PurchaseService.update_invoice(
                invoice, self.vendor, [{"variant": self.brown, "quantity": 3, "buying_price": Decimal("110.00")}]
            )
        self.assertEqual(self._stock(), (1, 3))
        self.assertEqual(invoice.items.count(), 2)

    def test_delete_restores_previous_stock(self):
        InventoryService.adjust_stock(self.black, 2)
        invoice = self._invoice()

        PurchaseService.delete_invoice(invoice)
        self.assertEqual(self._stock(), (2, 0))
        self.assertFalse(PurchaseInvoice.objects.exists())

    def test_delete_is_rejected_when_stock_was_sold(self):
        invoice = self._invoice(black=5, brown=3)
        InventoryService.adjust_stock(self.brown, -1)

        with self.assertRaises(InsufficientStockError):
            PurchaseService.delete_invoice(invoice)
        self.assertEqual(self._stock(), (5, 2))
        self.assertTrue(PurchaseInvoice.objects.filter(pk=invoice.pk).exists())

    def test_return_is_limited_to_remaining_purchased_quantity(self):
        invoice = self._invoice(black=5, brown=3)

        ret = PurchaseService.create_return(invoice, [{"variant": self.black, "quantity": 2}])
        self.assertEqual(ret.total_refund, Decimal("220.00"))
        self.assertEqual(self._stock(), (3, 3))
        self.assertEqual(PurchaseService.returnable_quantities(invoice)[self.black.id], 3)

        with self.assertRaises(ValueError):
            PurchaseService.create_return(invoice, [{"variant": self.black, "quantity": 4}])

    def test_return_needs_stock_on_hand(self):
        invoice = self._invoice(black=5, brown=3)
        InventoryService.adjust_stock(self.black, -5)

        with self.assertRaises(InsufficientStockError):
            PurchaseService.create_return(invoice, [{"variant": self.black, "quantity": 1}])
        self.assertFalse(PurchaseReturnInvoice.objects.exists())

    def test_delete_return_restores_stock(self):
        invoice = self._invoice(black=5, brown=3)
        ret = PurchaseService.create_return(invoice, [{"variant": self.brown, "quantity": 3}])

        PurchaseService.delete_return(ret)
        self.assertEqual(self._stock(), (5, 3))

    def test_invoice_with_returns_cannot_be_edited(self):
        invoice = self._invoice(black=5, brown=3)
        stale = PurchaseInvoice.objects.get(pk=invoice.pk)
        PurchaseService.create_return(invoice, [{"variant": self.brown, "quantity": 1}])

        with self.assertRaises(ConflictError):
            PurchaseService.update_invoice(
                stale, self.vendor, [{"variant": self.black, "quantity": 1, "buying_price": Decimal("110.00")}]
            )
        self.assertEqual(self._stock(), (5, 2))
        self.assertEqual(invoice.items.count(), 2)

    def test_invoice_with_returns_cannot_be_deleted(self):
        invoice = self._invoice()
        PurchaseService.create_return(invoice, [{"variant": self.brown, "quantity": 1}])
        with self.assertRaises(ConflictError):
            PurchaseService.delete_invoice(invoice)

    def test_vendor_stats(self):
        cashier = User.objects.create_user(username="cashier", password="Pass123!")
        invoice = self._invoice(black=5, brown=3, price="100.00")
        PurchaseService.create_return(invoice, [{"variant": self.brown, "quantity": 1}])
        SalesService.create_sale(cashier, [{"variant": self.black, "quantity": 2, "discount_percent": Decimal("10")}])

        stats = {row["vendor_name"]: row for row in PurchaseService.vendor_stats()}
        row = stats["Nile Shoes"]
        self.assertEqual(row["total_purchased"], Decimal("800.00"))
        self.assertEqual(row["total_returned"], Decimal("100.00"))
        self.assertEqual(row["invoice_count"], 1)
        self.assertEqual(row["products_sold_count"], 2)
        self.assertEqual(row["products_sold_value"], Decimal("270.00"))


class PurchaseAPITests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="Pass123!", role=User.Role.ADMIN)
        self.cashier = User.objects.create_user(username="cashier", password="Pass123!")
        self.vendor = Vendor.objects.create(name="Nile Shoes", code_prefix="NS")
        product = Product.objects.create(vendor=self.vendor, code="NS-100", buying_price="100.00", selling_price="150.00")
        self.variant = ProductVariant.objects.create(product=product, color="Black", size=5)
        self.client.force_authenticate(self.admin)

    def _create(self, quantity=4):
        return self.client.post(
            "/purchases/invoices/",
            {
                "vendor_id": str(self.vendor.id),
                "items": [{"variant_id": str(self.variant.id), "quantity": quantity, "buying_price": "100.00"}],
            },
            format="json",
        )

    def test_create_and_retrieve_invoice(self):
        response = self._create()
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["total_amount"], "400.00")
        self.assertEqual(response.data["items"][0]["product_code"], "NS-100")

        response = self.client.get(f"/purchases/invoices/{response.data['id']}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["vendor_name"], "Nile Shoes")

    def test_empty_invoice_is_rejected(self):
        response = self.client.post(
            "/purchases/invoices/", {"vendor_id": str(self.vendor.id), "items": []}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_delete_conflict_returns_409(self):
        invoice_id = self._create().data["id"]
        InventoryService.adjust_stock(self.variant, -1)

        response = self.client.delete(f"/purchases/invoices/{invoice_id}/")
        self.assertEqual(response.status_code, 409)
        self.assertIn("Insufficient stock", response.data["detail"])

    def test_update_invoice(self):
        invoice_id = self._create().data["id"]
        response = self.client.put(
            f"/purchases/invoices/{invoice_id}/",
            {
                "vendor_id": str(self.vendor.id),
                "items": [{"variant_id": str(self.variant.id), "quantity": 6, "buying_price": "90.00"}],
            },
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.stock, 6)

    def test_purchase_return_flow(self):
        invoice_id = self._create().data["id"]
        response = self.client.post(
            "/purchases/returns/",
            {"purchase_invoice_id": invoice_id, "reason": "Damaged", "items": [{"variant_id": str(self.variant.id), "quantity": 1}]},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["total_refund"], "100.00")

        response = self.client.get(f"/purchases/invoices/{invoice_id}/returnable/")
        self.assertEqual(response.data["items"][0]["returnable_quantity"], 3)

        response = self.client.post(
            "/purchases/returns/",
            {"purchase_invoice_id": invoice_id, "items": [{"variant_id": str(self.variant.id), "quantity": 4}]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_vendor_products_and_stats(self):
        self._create()
        response = self.client.get(f"/purchases/vendors/{self.vendor.id}/products/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]["variants"][0]["stock"], 4)

        response = self.client.get("/purchases/vendors/stats/")
        self.assertEqual(response.data[0]["invoice_count"], 1)

    def test_vendor_with_invoices_cannot_be_deleted(self):
        self._create()
        response = self.client.delete(f"/vendors/{self.vendor.id}/")
        self.assertEqual(response.status_code, 409)

    def test_cashier_is_forbidden(self):
        self.client.force_authenticate(self.cashier)
        self.assertEqual(self._create().status_code, 403)
