from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken

from apps.accounts.models import UserRole

User = get_user_model()


class UserModelTestCase(TestCase):
    """Test cases for User model"""

    def setUp(self):
        self.user_data = {
            "email": "test@example.com",
            "password": "testpass123",
            "first_name": "Test",
            "last_name": "User",
        }

    def test_create_user(self):
        """Test creating a regular user"""
        user = User.objects.create_user(**self.user_data)
        self.assertEqual(user.email, self.user_data["email"])
        self.assertTrue(user.check_password(self.user_data["password"]))
        self.assertEqual(user.role, UserRole.STAFF)
        self.assertFalse(user.is_administrator)

    def test_create_superuser(self):
        """Test creating a superuser"""
        superuser = User.objects.create_superuser(
            email="admin@example.com",
            password="adminpass123",
        )
        self.assertTrue(superuser.is_staff)
        self.assertTrue(superuser.is_superuser)
        self.assertTrue(superuser.is_administrator)

    def test_administrator_roles(self):
        """ADMIN and ADMINISTRATOR roles both count as administrators"""
        admin = User.objects.create_user(email="a@example.com", role=UserRole.ADMIN)
        administrator = User.objects.create_user(email="b@example.com", role=UserRole.ADMINISTRATOR)
        manager = User.objects.create_user(email="c@example.com", role=UserRole.MANAGER)
        self.assertTrue(admin.is_administrator)
        self.assertTrue(administrator.is_administrator)
        self.assertFalse(manager.is_administrator)

    def test_display_name_falls_back_to_email(self):
        """Display name uses the full name, or the email when no name is set"""
        named = User.objects.create_user(**self.user_data)
        anonymous = User.objects.create_user(email="noname@example.com")
        self.assertEqual(named.display_name, "Test User")
        self.assertEqual(anonymous.display_name, "noname@example.com")

    def test_display_name_cache_cleared_on_save(self):
        user = User.objects.create_user(**self.user_data)
        self.assertEqual(user.display_name, "Test User")
        user.first_name = "Renamed"
        user.save()
        self.assertEqual(user.display_name, "Renamed User")


class AuthenticationTestCase(TestCase):
    """Test cases for header-trust and JWT authentication"""

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            email="test@example.com",
            password="testpass123",
            first_name="Test",
            last_name="User",
        )

    def test_unauthenticated_request_rejected(self):
        response = self.client.get("/api/auth/me/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_header_trust_identity(self):
        response = self.client.get("/api/auth/me/", HTTP_X_USER_ID=str(self.user.id))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["email"], "test@example.com")

    def test_header_trust_unknown_user(self):
        response = self.client.get("/api/auth/me/", HTTP_X_USER_ID="999999")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_header_trust_malformed_id(self):
        response = self.client.get("/api/auth/me/", HTTP_X_USER_ID="not-a-number")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_header_trust_inactive_user(self):
        self.user.is_active = False
        self.user.save()
        response = self.client.get("/api/auth/me/", HTTP_X_USER_ID=str(self.user.id))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_bearer_token(self):
        token = AccessToken.for_user(self.user)
        response = self.client.get("/api/auth/me/", HTTP_AUTHORIZATION=f"Bearer {token}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["id"], self.user.id)

    def test_token_obtain(self):
        response = self.client.post(
            "/api/auth/token/",
            {"email": "test@example.com", "password": "testpass123"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
