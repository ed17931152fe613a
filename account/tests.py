from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APITestCase

from account.models import User


class UserModelTests(TestCase):
    def test_create_user_hashes_password(self):
        user = User.objects.create_user(username="mona", password="Pass123!")

        self.assertNotEqual(user.password, "Pass123!")
        self.assertTrue(user.check_password("Pass123!"))
        self.assertEqual(user.role, User.Role.CASHIER)

    def test_create_user_requires_username(self):
        with self.assertRaisesMessage(ValueError, "Users must have a username"):
            User.objects.create_user(username="", password="Pass123!")

    def test_create_superuser_is_admin(self):
        user = User.objects.create_superuser(username="root", password="Pass123!")
        self.assertTrue(user.is_admin)
        self.assertTrue(user.is_staff)

    def test_default_users_command_is_idempotent(self):
        call_command("create_default_users", stdout=StringIO())
        call_command("create_default_users", stdout=StringIO())

        self.assertEqual(User.objects.count(), 2)
        self.assertEqual(User.objects.get(username="admin").role, User.Role.ADMIN)
        self.assertTrue(User.objects.get(username="cashier").check_password("cashier123"))


class UserAPITests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="Pass123!", role=User.Role.ADMIN)
        self.cashier = User.objects.create_user(username="cashier", password="Pass123!")

    def test_login_returns_token_pair(self):
        response = self.client.post(
            "/auth/login/",
            {"username": "cashier", "password": "Pass123!"},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)

    def test_me_returns_current_user(self):
        self.client.force_authenticate(self.cashier)
        response = self.client.get("/auth/me/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["username"], "cashier")
        self.assertNotIn("password", response.data)

    def test_admin_can_create_user(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            "/auth/users/",
            {"username": "new-cashier", "password": "secret1", "role": "CASHIER"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertTrue(User.objects.get(username="new-cashier").check_password("secret1"))

    def test_duplicate_username_is_rejected(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            "/auth/users/",
            {"username": "CASHIER", "password": "secret1"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("username", response.data)

    def test_short_password_is_rejected(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post("/auth/users/", {"username": "x1", "password": "123"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("password", response.data)

    def test_cashier_cannot_manage_users(self):
        self.client.force_authenticate(self.cashier)
        response = self.client.get("/auth/users/")
        self.assertEqual(response.status_code, 403)

    def test_admin_can_reset_password_on_update(self):
        self.client.force_authenticate(self.admin)
        response = self.client.patch(
            f"/auth/users/{self.cashier.id}/",
            {"password": "newpass1", "is_active": False},
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.cashier.refresh_from_db()
        self.assertTrue(self.cashier.check_password("newpass1"))
        self.assertFalse(self.cashier.is_active)

    def test_admin_cannot_delete_self(self):
        self.client.force_authenticate(self.admin)
        response = self.client.delete(f"/auth/users/{self.admin.id}/")
        self.assertEqual(response.status_code, 400)
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())

    def test_change_password_requires_current_password(self):
        self.client.force_authenticate(self.cashier)
        bad = self.client.post(
            "/auth/me/password/",
            {"current_password": "wrong", "new_password": "another1"},
            format="json",
        )
        self.assertEqual(bad.status_code, 400)
        good = self.client.post(
            "/auth/me/password/",
            {"current_password": "Pass123!", "new_password": "another1"},
            format="json",
        )
        self.assertEqual(good.status_code, 200, good.data)
        self.cashier.refresh_from_db()
        self.assertTrue(self.cashier.check_password("another1"))
