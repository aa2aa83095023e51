from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from currency.models import ExchangeRate


class CurrencyAPITests(APITestCase):
    def setUp(self):
        ExchangeRate.objects.create(code="FEE", rate=Decimal("0.02"))
        ExchangeRate.objects.create(code="KES", rate=Decimal("129"))
        ExchangeRate.objects.create(code="BTCUSD", rate=Decimal("60000"))
        self.admin = get_user_model().objects.create_user(
            email="admin@example.com",
            username="admin",
            password="pass1234",
            is_staff=True,
        )
        self.user = get_user_model().objects.create_user(
            email="user@example.com",
            username="user",
            password="pass1234",
        )

    def test_list_exchange_rates_is_public(self):
        response = self.client.get(reverse("exchangerate-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Cache-Control"], "no-store")
        self.assertEqual({row["code"] for row in response.data}, {"FEE", "KES", "BTCUSD"})

    def test_convert_crypto(self):
        response = self.client.get(
            reverse("convert-currency"),
            {"direction": "crypto", "amount": "0.001", "currency": "KES"},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["amount_usd"], "60.00")
        self.assertEqual(response.data["recipient_amount"], "7585.20")
        self.assertEqual(response.data["fee_total"], "154.80")

    def test_convert_with_missing_rate(self):
        response = self.client.get(
            reverse("convert-currency"),
            {"direction": "usd", "amount": "10", "currency": "UGX"},
        )

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data["error"], "rate_unavailable")

    def test_convert_rejects_bad_amount(self):
        response = self.client.get(
            reverse("convert-currency"),
            {"direction": "usd", "amount": "-3", "currency": "KES"},
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "invalid_amount")

    def test_convert_rejects_oversized_amount(self):
        response = self.client.get(
            reverse("convert-currency"),
            {"direction": "usd", "amount": "1e27", "currency": "KES"},
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "invalid_amount")

    def test_set_rate_requires_admin(self):
        url = reverse("set-exchange-rate")

        self.client.force_authenticate(user=self.user)
        response = self.client.post(url, {"code": "KES", "rate": "130"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.post(url, {"code": "KES", "rate": "130"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(ExchangeRate.objects.get(code="KES").rate, Decimal("130"))

        response = self.client.post(url, {"code": "ugx", "rate": "3700"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["code"], "UGX")

    def test_set_rate_rejects_non_positive(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(reverse("set-exchange-rate"), {"code": "KES", "rate": "0"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_supported_currencies(self):
        with self.settings(SUPPORTED_CURRENCIES=["KES", "UGX"]):
            response = self.client.get(reverse("supported-currencies"))

        self.assertEqual(response.data, {"currencies": ["KES", "UGX"]})
