from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APITestCase

from account.models import User
from catalog.models import Product, ProductVariant, Season
from catalog.services import ProductService
from core.exceptions import DuplicateError
from inventory.models import StockMovement
from vendors.models import Vendor


class ProductServiceTests(TestCase):
    def setUp(self):
        self.vendor = Vendor.objects.create(name="Nile Shoes", code_prefix="NS")

    def _create(self, code="NS-100", variants=None, **extra):
        data = {
            "vendor": self.vendor,
            "code": code,
            "description": "Leather boot",
            "buying_price": Decimal("200.00"),
            "selling_price": Decimal("300.00"),
        }
        data.update(extra)
        return ProductService.create_product(variants=variants, **data)

    def test_create_product_records_opening_stock(self):
        product = self._create(variants=[{"color": "Black", "size": 5, "stock": 5}, {"color": "Brown", "size": 6}])

        self.assertEqual(product.variants.count(), 2)
        self.assertEqual(product.total_stock, 5)
        movement = StockMovement.objects.get()
        self.assertEqual(movement.quantity, 5)
        self.assertEqual(movement.reason, "Opening stock")

    def test_code_is_stripped_and_unique(self):
        self._create(code="  NS-100  ")
        self.assertTrue(ProductService.code_exists("NS-100"))
        with self.assertRaises(DuplicateError):
            self._create(code="NS-100")

    def test_selling_price_below_buying_price_is_rejected(self):
        with self.assertRaisesMessage(ValueError, "Selling price cannot be lower than buying price."):
            self._create(selling_price=Decimal("150.00"))

    def test_discount_limit_cannot_eat_into_cost(self):
        self.assertEqual(ProductService.max_discount_percent("200", "250"), Decimal("20"))
        with self.assertRaisesMessage(ValueError, "Discount exceeds maximum allowed (20.00%)."):
            self._create(selling_price=Decimal("250.00"), discount_limit=Decimal("25"))

    def test_update_merges_variants_without_deleting(self):
        product = self._create(variants=[{"color": "Black", "size": 5, "stock": 5}, {"color": "Black", "size": 6, "stock": 2}])
        black_5 = product.variants.get(size=5)

        ProductService.update_product(
            product,
            variants=[{"id": black_5.id, "color": "Black", "size": 5, "stock": 3}, {"color": "Red", "size": 4, "stock": 4}],
        )

        self.assertEqual(product.variants.count(), 3)
        black_5.refresh_from_db()
        self.assertEqual(black_5.stock, 3)
        self.assertEqual(product.variants.get(color="Red").stock, 4)
        self.assertTrue(StockMovement.objects.filter(variant=black_5, quantity=-2, reason="Product edit").exists())

    def test_update_rejects_variant_moved_onto_sibling(self):
        product = self._create(variants=[{"color": "Black", "size": 5}, {"color": "Black", "size": 6}])
        black_5 = product.variants.get(size=5)

        with self.assertRaises(DuplicateError):
            ProductService.update_product(product, variants=[{"id": black_5.id, "color": "Black", "size": 6}])
        black_5.refresh_from_db()
        self.assertEqual(black_5.size, 5)

    def test_season_toggle_counts_changed_products(self):
        self._create(code="W-1", season=Season.WINTER)
        self._create(code="W-2", season=Season.WINTER, is_active=False)
        self._create(code="S-1", season=Season.SUMMER)

        self.assertEqual(ProductService.set_season_active(Season.WINTER, False), 1)
        self.assertFalse(Product.objects.filter(season=Season.WINTER, is_active=True).exists())
        self.assertTrue(Product.objects.get(code="S-1").is_active)

    def test_get_or_create_variant_reuses_existing(self):
        product = self._create()
        first = ProductService.get_or_create_variant(product, " White ", 3)
        second = ProductService.get_or_create_variant(product, "White", 3)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(first.stock, 0)

    def test_search_matches_code_and_description(self):
        self._create(code="NS-100", description="Leather boot")
        self._create(code="NS-200", description="Canvas sneaker", is_active=False)

        self.assertEqual([p.code for p in ProductService.search("boot")], ["NS-100"])
        self.assertEqual(list(ProductService.search("sneaker")), [])
        self.assertEqual([p.code for p in ProductService.search("sneaker", active_only=False)], ["NS-200"])


class ProductAPITests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="Pass123!", role=User.Role.ADMIN)
        self.cashier = User.objects.create_user(username="cashier", password="Pass123!")
        self.vendor = Vendor.objects.create(name="Nile Shoes", code_prefix="NS")
        self.client.force_authenticate(self.admin)

    def _payload(self, **extra):
        payload = {
            "vendor_id": str(self.vendor.id),
            "code": "NS-100",
            "description": "Leather boot",
            "buying_price": "200.00",
            "selling_price": "300.00",
            "discount_limit": "10.00",
            "season": Season.WINTER,
            "variants": [{"color": "Black", "size": 5, "stock": 6}],
        }
        payload.update(extra)
        return payload

    def test_admin_creates_product_with_variants(self):
        response = self.client.post("/catalog/products/", self._payload(), format="json")

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["total_stock"], 6)
        self.assertEqual(response.data["vendor"]["name"], "Nile Shoes")
        self.assertEqual(response.data["season_name"], "Winter")

    def test_duplicate_variant_in_payload_is_rejected(self):
        payload = self._payload(variants=[{"color": "Black", "size": 5}, {"color": "Black", "size": 5}])
        response = self.client.post("/catalog/products/", payload, format="json")
        self.assertEqual(response.status_code, 400)

    def test_invalid_size_is_rejected(self):
        response = self.client.post("/catalog/products/", self._payload(variants=[{"color": "Black", "size": 19}]), format="json")
        self.assertEqual(response.status_code, 400)

    def test_cashier_can_read_but_not_write(self):
        self.client.post("/catalog/products/", self._payload(), format="json")
        self.client.force_authenticate(self.cashier)

        self.assertEqual(self.client.get("/catalog/products/").status_code, 200)
        response = self.client.post("/catalog/products/", self._payload(code="NS-200"), format="json")
        self.assertEqual(response.status_code, 403)

    def test_list_filters(self):
        self.client.post("/catalog/products/", self._payload(), format="json")
        self.client.post("/catalog/products/", self._payload(code="NS-200", season=Season.SUMMER), format="json")

        response = self.client.get("/catalog/products/", {"season": Season.SUMMER})
        self.assertEqual([row["code"] for row in response.data], ["NS-200"])
        response = self.client.get("/catalog/products/", {"search": "100"})
        self.assertEqual([row["code"] for row in response.data], ["NS-100"])

    def test_check_code(self):
        product_id = self.client.post("/catalog/products/", self._payload(), format="json").data["id"]

        response = self.client.get("/catalog/products/check-code/", {"code": "NS-100"})
        self.assertTrue(response.data["exists"])
        response = self.client.get("/catalog/products/check-code/", {"code": "NS-100", "exclude_id": product_id})
        self.assertFalse(response.data["exists"])

    def test_by_code_hides_inactive_products(self):
        self.client.post("/catalog/products/", self._payload(is_active=False), format="json")
        self.client.force_authenticate(self.cashier)
        response = self.client.get("/catalog/products/by-code/NS-100/")
        self.assertEqual(response.status_code, 404)

    def test_update_prices_validates_discount(self):
        product_id = self.client.post("/catalog/products/", self._payload(), format="json").data["id"]

        response = self.client.put(
            f"/catalog/products/{product_id}/prices/",
            {"buying_price": "200.00", "selling_price": "220.00", "discount_limit": "15"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        response = self.client.put(
            f"/catalog/products/{product_id}/prices/",
            {"buying_price": "200.00", "selling_price": "250.00", "discount_limit": "15"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["selling_price"], "250.00")

    def test_toggle_active(self):
        product_id = self.client.post("/catalog/products/", self._payload(), format="json").data["id"]
        response = self.client.post(f"/catalog/products/{product_id}/toggle-active/", {}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["is_active"])

    def test_season_toggle_returns_count(self):
        self.client.post("/catalog/products/", self._payload(), format="json")
        response = self.client.post(
            "/catalog/products/season-toggle/", {"season": Season.WINTER, "is_active": False}, format="json"
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["count"], 1)

    def test_add_variant_endpoint(self):
        product_id = self.client.post("/catalog/products/", self._payload(), format="json").data["id"]
        response = self.client.post(
            f"/catalog/products/{product_id}/variants/", {"color": "Blue", "size": 7}, format="json"
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(ProductVariant.objects.filter(product_id=product_id).count(), 2)

    def test_delete_product_without_history(self):
        product_id = self.client.post("/catalog/products/", self._payload(), format="json").data["id"]
        response = self.client.delete(f"/catalog/products/{product_id}/")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Product.objects.exists())

    def test_partial_update_changes_variant_stock(self):
        product = self.client.post("/catalog/products/", self._payload(), format="json").data
        variant_id = product["variants"][0]["id"]

        response = self.client.patch(
            f"/catalog/products/{product['id']}/", {"variants": [{"id": variant_id, "stock": 9}]}, format="json"
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["total_stock"], 9)
        self.assertTrue(
            StockMovement.objects.filter(variant_id=variant_id, quantity=3, reason="Product edit").exists()
        )

    def test_partial_update_needs_size_for_new_variant(self):
        product_id = self.client.post("/catalog/products/", self._payload(), format="json").data["id"]
        response = self.client.patch(
            f"/catalog/products/{product_id}/", {"variants": [{"color": "Red", "stock": 1}]}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_variant_cannot_take_a_siblings_color_and_size(self):
        payload = self._payload(variants=[{"color": "Black", "size": 5}, {"color": "Brown", "size": 5}])
        product = self.client.post("/catalog/products/", payload, format="json").data
        black = next(v for v in product["variants"] if v["color"] == "Black")

        response = self.client.patch(
            f"/catalog/products/{product['id']}/",
            {"variants": [{"id": black["id"], "color": "Brown", "size": 5}]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("variants", response.data)
        self.assertEqual(ProductVariant.objects.get(pk=black["id"]).color, "Black")
