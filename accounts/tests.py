from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import User


class RegisterLoginTests(APITestCase):
    def setUp(self):
        self.register_url = reverse("accounts:register")
        self.login_url = reverse("accounts:login")
        self.me_url = reverse("accounts:me")

    def test_register_returns_tokens(self):
        response = self.client.post(
            self.register_url,
            {"email": "sender@example.com", "password": "S3cure-pass-123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn("access", response.data)
        self.assertEqual(response.data["user"]["username"], "sender")
        self.assertEqual(response.data["user"]["role"], "user")
        self.assertTrue(User.objects.filter(email="sender@example.com").exists())

    def test_register_rejects_duplicate_email(self):
        User.objects.create_user(email="dup@example.com", username="dup", password="pass1234")

        response = self.client.post(
            self.register_url,
            {"email": "dup@example.com", "password": "S3cure-pass-123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_then_me_with_bearer_token(self):
        User.objects.create_user(email="login@example.com", username="login", password="pass1234")

        response = self.client.post(
            self.login_url, {"email": "login@example.com", "password": "pass1234"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        me = self.client.get(self.me_url)
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["email"], "login@example.com")

    def test_login_invalid_credentials(self):
        User.objects.create_user(email="bad@example.com", username="bad", password="pass1234")

        response = self.client.post(
            self.login_url, {"email": "bad@example.com", "password": "nope"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_role_reported(self):
        admin = User.objects.create_user(
            email="admin@example.com", username="admin", password="pass1234", is_staff=True
        )
        self.client.force_authenticate(admin)

        response = self.client.get(self.me_url)

        self.assertEqual(response.data["role"], "admin")
