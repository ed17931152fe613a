from django.test import TestCase, override_settings
from rest_framework.test import APITestCase

from account.models import User
from catalog.models import Product, ProductVariant
from core.exceptions import InsufficientStockError, NotFoundError
from inventory.models import StockMovement
from inventory.services import InventoryService, StockManager
from vendors.models import Vendor


def make_variant(code="NS-100", stock=0, size=5, color="Black", vendor=None):
    vendor = vendor or Vendor.objects.create(name=f"Vendor {code}", code_prefix="V")
    product = Product.objects.create(
        vendor=vendor,
        code=code,
        description="Leather boot",
        buying_price="100.00",
        selling_price="150.00",
    )
    return ProductVariant.objects.create(product=product, color=color, size=size, stock=stock)


class StockManagerTests(TestCase):
    def setUp(self):
        self.variant = make_variant(stock=5)
        self.other = ProductVariant.objects.create(product=self.variant.product, color="Brown", size=6, stock=1)

    def test_apply_updates_stock_and_records_movements(self):
        levels = StockManager.apply([(self.variant.id, 3, "Purchase"), (self.other.id, -1, "Sale")])

        self.assertEqual(levels, {self.variant.id: 8, self.other.id: 0})
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.stock, 8)
        movement = StockMovement.objects.get(variant=self.variant)
        self.assertEqual(movement.quantity, 3)
        self.assertEqual(movement.stock_after, 8)

    def test_batch_is_rejected_as_a_whole(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            StockManager.apply([(self.variant.id, -2, "Sale"), (self.other.id, -2, "Sale")])

        self.assertEqual(ctx.exception.available, 1)
        self.assertEqual(ctx.exception.requested, 2)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.stock, 5)
        self.assertFalse(StockMovement.objects.exists())

    def test_changes_are_netted_per_variant(self):
        # Reversing an old line and applying a larger replacement only needs the net stock.
        StockManager.apply([(self.other.id, 1, "Reverse"), (self.other.id, -2, "Apply")])
        self.other.refresh_from_db()
        self.assertEqual(self.other.stock, 0)
        self.assertEqual(
            list(StockMovement.objects.filter(variant=self.other).order_by("id").values_list("stock_after", flat=True)),
            [2, 0],
        )

    def test_zero_quantities_are_ignored(self):
        self.assertEqual(StockManager.apply([(self.variant.id, 0, "Noop")]), {})
        self.assertFalse(StockMovement.objects.exists())

    def test_unknown_variant_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            StockManager.apply([("00000000-0000-0000-0000-000000000000", 1, "Purchase")])


class InventoryServiceTests(TestCase):
    def setUp(self):
        self.variant = make_variant(stock=4)

    def test_adjust_stock(self):
        self.assertEqual(InventoryService.adjust_stock(self.variant, -3), 1)
        self.assertEqual(StockMovement.objects.get().reason, "Manual Adjustment")

    def test_adjust_stock_cannot_go_negative(self):
        with self.assertRaises(InsufficientStockError):
            InventoryService.adjust_stock(self.variant, -5)

    def test_set_stock_records_difference(self):
        InventoryService.set_stock(self.variant, 10)
        movement = StockMovement.objects.get()
        self.assertEqual(movement.quantity, 6)
        self.assertEqual(movement.reason, "Stock Count")

    def test_low_stock_skips_inactive_products(self):
        inactive = make_variant(code="NS-200", stock=0)
        Product.objects.filter(pk=inactive.product_id).update(is_active=False)

        self.assertEqual(list(InventoryService.low_stock(5)), [self.variant])


class InventoryAPITests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="Pass123!", role=User.Role.ADMIN)
        self.cashier = User.objects.create_user(username="cashier", password="Pass123!")
        self.variant = make_variant(stock=2)

    def test_admin_adjusts_stock(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            f"/inventory/variants/{self.variant.id}/adjust/", {"quantity": 5, "reason": "Found in store"}, format="json"
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["stock"], 7)

        response = self.client.get(f"/inventory/variants/{self.variant.id}/movements/")
        self.assertEqual(response.data["movements"][0]["reason"], "Found in store")

    def test_adjust_below_zero_conflicts(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(f"/inventory/variants/{self.variant.id}/adjust/", {"quantity": -3}, format="json")
        self.assertEqual(response.status_code, 409)

    def test_adjust_requires_exactly_one_mode(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            f"/inventory/variants/{self.variant.id}/adjust/", {"quantity": 1, "stock": 3}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_cashier_cannot_adjust(self):
        self.client.force_authenticate(self.cashier)
        response = self.client.post(f"/inventory/variants/{self.variant.id}/adjust/", {"quantity": 1}, format="json")
        self.assertEqual(response.status_code, 403)

    @override_settings(LOW_STOCK_THRESHOLD=3)
    def test_low_stock_alerts_use_configured_threshold(self):
        self.client.force_authenticate(self.cashier)
        response = self.client.get("/inventory/alerts/low-stock/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["alerts"][0]["threshold"], 3)

        response = self.client.get("/inventory/alerts/low-stock/", {"threshold": 1})
        self.assertEqual(response.data["count"], 0)
