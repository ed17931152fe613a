from django.test import TestCase
from rest_framework.test import APITestCase

from account.models import User
from catalog.models import Product
from core.exceptions import DuplicateError
from vendors.models import Vendor
from vendors.services import VendorService


class VendorServiceTests(TestCase):
    def test_name_is_unique_case_insensitive(self):
        VendorService.create_vendor(name=" Nile Shoes ", code_prefix="NS")

        self.assertTrue(VendorService.name_exists("nile shoes"))
        with self.assertRaises(DuplicateError):
            VendorService.create_vendor(name="NILE SHOES", code_prefix="N2")

    def test_update_may_keep_own_name(self):
        vendor = VendorService.create_vendor(name="Nile Shoes", code_prefix="NS")
        VendorService.update_vendor(vendor, name="Nile Shoes", address="Cairo")
        vendor.refresh_from_db()
        self.assertEqual(vendor.address, "Cairo")

    def test_delete_cascades_products(self):
        vendor = VendorService.create_vendor(name="Nile Shoes", code_prefix="NS")
        Product.objects.create(vendor=vendor, code="NS-1", buying_price="10.00", selling_price="12.00")

        VendorService.delete_vendor(vendor)
        self.assertFalse(Product.objects.exists())


class VendorAPITests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="Pass123!", role=User.Role.ADMIN)
        self.cashier = User.objects.create_user(username="cashier", password="Pass123!")
        self.client.force_authenticate(self.admin)

    def test_create_and_list_vendor(self):
        response = self.client.post("/vendors/", {"name": "Nile Shoes", "code_prefix": "ns"}, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["code_prefix"], "NS")

        response = self.client.get("/vendors/")
        self.assertEqual(response.data[0]["products_count"], 0)

    def test_duplicate_name_is_rejected(self):
        Vendor.objects.create(name="Nile Shoes", code_prefix="NS")
        response = self.client.post("/vendors/", {"name": "nile shoes", "code_prefix": "N2"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("name", response.data)

    def test_check_name(self):
        vendor = Vendor.objects.create(name="Nile Shoes", code_prefix="NS")

        response = self.client.get("/vendors/check-name/", {"name": "NILE shoes"})
        self.assertTrue(response.data["exists"])
        response = self.client.get("/vendors/check-name/", {"name": "Nile Shoes", "exclude_id": str(vendor.id)})
        self.assertFalse(response.data["exists"])
        response = self.client.get("/vendors/check-name/", {"name": "Nile Shoes", "exclude_id": "abc"})
        self.assertEqual(response.status_code, 400)

    def test_search(self):
        Vendor.objects.create(name="Nile Shoes", code_prefix="NS")
        Vendor.objects.create(name="Delta Bags", code_prefix="DB")
        response = self.client.get("/vendors/", {"search": "delta"})
        self.assertEqual([row["name"] for row in response.data], ["Delta Bags"])

    def test_cashier_is_forbidden(self):
        self.client.force_authenticate(self.cashier)
        self.assertEqual(self.client.get("/vendors/").status_code, 403)
