# users/tests/test_auth.py

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

User = get_user_model()


class AuthApiTests(TestCase):
    """
    GUARANTEES:
    - Storefront sign-ups are always customers
    - Login is case-insensitive on email and returns a JWT pair
    - /me/ exposes effective capabilities
    """

    def setUp(self):
        self.client = APIClient()

    def test_register_creates_customer_even_if_role_sent(self):
        res = self.client.post(
            "/api/auth/register/",
            {
                "email": "new@example.com",
                "password": "Str0ng-Passw0rd!",
                "first_name": "Nimal",
                "role": "admin",
            },
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["role"], "customer")
        self.assertEqual(User.objects.get(email="new@example.com").role, "customer")

    def test_login_returns_tokens(self):
        User.objects.create_user(email="buyer@example.com", password="Str0ng-Passw0rd!")

        res = self.client.post(
            "/api/auth/login/",
            {"email": "BUYER@example.com", "password": "Str0ng-Passw0rd!"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertIn("access", res.data)
        self.assertIn("refresh", res.data)
        self.assertEqual(res.data["user"]["email"], "buyer@example.com")

    def test_login_with_bad_password(self):
        User.objects.create_user(email="buyer@example.com", password="Str0ng-Passw0rd!")

        res = self.client.post(
            "/api/auth/login/",
            {"email": "buyer@example.com", "password": "wrong"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(res.data["error"]["code"], "INVALID_CREDENTIALS")

    def test_jwt_access_token_authenticates(self):
        User.objects.create_user(email="buyer@example.com", password="Str0ng-Passw0rd!")

        res = self.client.post(
            "/api/auth/jwt/create/",
            {"email": "buyer@example.com", "password": "Str0ng-Passw0rd!"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {res.data['access']}")
        res = self.client.get("/api/auth/me/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["email"], "buyer@example.com")

    def test_me_lists_capabilities(self):
        employee = User.objects.create_user(
            email="staff@example.com", password="pass", role="employee"
        )
        self.client.force_authenticate(employee)

        res = self.client.get("/api/auth/me/")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIn("pickup.redeem", res.data["capabilities"])
        self.assertNotIn("orders.refund", res.data["capabilities"])


class UserManagerTests(TestCase):
    def test_staff_roles_get_is_staff(self):
        employee = User.objects.create_user(email="e@example.com", password="pass", role="employee")
        customer = User.objects.create_user(email="c@example.com", password="pass")

        self.assertTrue(employee.is_staff)
        self.assertFalse(customer.is_staff)
        self.assertEqual(customer.role, "customer")

    def test_email_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email="", password="pass")


class SeedUsersCommandTests(TestCase):
    def test_seed_users_is_idempotent(self):
        call_command("seed_users", verbosity=0)
        call_command("seed_users", verbosity=0)

        self.assertEqual(User.objects.count(), 3)
        self.assertEqual(
            set(User.objects.values_list("role", flat=True)),
            {"admin", "employee", "customer"},
        )
