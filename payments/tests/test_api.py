from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from currency.models import ExchangeRate
from payments.models import Transaction, TransactionStatus

MSISDN = "254712345678"


class TransactionAPITests(APITestCase):
    def setUp(self):
        for code, rate in (("FEE", "0.02"), ("KES", "129"), ("UGX", "3700"), ("BTCUSD", "60000")):
            ExchangeRate.objects.create(code=code, rate=Decimal(rate))
        self.override = self.settings(SUPPORTED_CURRENCIES=["KES", "UGX"], GUEST_TX_LIMIT_USD="100")
        self.override.enable()
        self.addCleanup(self.override.disable)

        User = get_user_model()
        self.user = User.objects.create_user(email="sender@example.com", username="sender", password="pass1234")
        self.admin = User.objects.create_user(
            email="ops@example.com", username="ops", password="pass1234", is_staff=True
        )

    def _payload(self, **overrides):
        base = {"recipient_msisdn": MSISDN, "amount_crypto": "0.001", "currency": "KES"}
        base.update(overrides)
        return base

    def _guest_transaction(self, **overrides):
        response = self.client.post(reverse("guest-transaction"), self._payload(**overrides), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return response.data

    def test_user_create_and_list(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.post(reverse("transaction-list"), self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], TransactionStatus.PENDING)
        self.assertEqual(response.data["recipient_amount"], "7585.20")
        self.assertEqual(response.data["sender_email"], "sender@example.com")

        listing = self.client.get(reverse("transaction-list"))
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in listing.data], [response.data["id"]])

    def test_user_endpoints_require_authentication(self):
        response = self.client.post(reverse("transaction-list"), self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_user_preview_accepts_client_field_name(self):
        self.client.force_authenticate(user=self.user)
        payload = {"recipient_msisdn": MSISDN, "amount_crypto_btc": 0.001, "currency": "KES"}

        response = self.client.post(reverse("transaction-preview"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["amount_usd"], "60.00")
        self.assertFalse(Transaction.objects.exists())

    def test_validation_errors(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.post(reverse("transaction-list"), self._payload(recipient_msisdn="25471"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "validation_error")

        response = self.client.post(reverse("transaction-list"), self._payload(currency="EUR"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(
            reverse("transaction-list"), {"recipient_msisdn": MSISDN, "currency": "KES"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_rate_is_unprocessable(self):
        ExchangeRate.objects.filter(code="FEE").delete()

        response = self.client.post(reverse("guest-transaction"), self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data["error"], "rate_unavailable")
        self.assertFalse(Transaction.objects.exists())

    def test_guest_create_returns_label_and_key(self):
        data = self._guest_transaction()

        self.assertEqual(data["sender"], "guest-00001")
        self.assertIsNotNone(data["guest_key"])
        txn = Transaction.objects.get(pk=data["id"])
        self.assertEqual(txn.client_ip, "127.0.0.1")

    def test_guest_client_ip_from_forwarded_header(self):
        response = self.client.post(
            reverse("guest-transaction"),
            self._payload(),
            format="json",
            HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1",
        )

        self.assertEqual(Transaction.objects.get(pk=response.data["id"]).client_ip, "203.0.113.7")

    def test_guest_over_limit_is_forbidden(self):
        response = self.client.post(reverse("guest-preview"), self._payload(amount_crypto="0.002"), format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"], "limit_exceeded")

    def test_guest_preview_rejects_oversized_amount(self):
        response = self.client.post(reverse("guest-preview"), self._payload(amount_crypto="1e21"), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "validation_error")

    def test_guest_complete_and_status(self):
        data = self._guest_transaction()
        body = {"tx_id": data["id"], "guest_key": str(data["guest_key"])}

        response = self.client.post(reverse("guest-complete"), body, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["user_marked_complete"])

        response = self.client.get(reverse("guest-status"), body)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], TransactionStatus.PENDING)

    def test_guest_status_with_wrong_key(self):
        data = self._guest_transaction()

        response = self.client.get(
            reverse("guest-status"),
            {"tx_id": data["id"], "guest_key": "00000000-0000-0000-0000-000000000000"},
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "not_found")

    def test_admin_settlement(self):
        data = self._guest_transaction()
        self.client.force_authenticate(user=self.admin)

        response = self.client.put(reverse("admin-mark-paid", args=[data["id"]]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], TransactionStatus.PAID)
        self.assertEqual(response.data["email"], "guest-00001")

        response = self.client.post(reverse("admin-archive", args=[data["id"]]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"], "invalid_transition")

        response = self.client.put(reverse("admin-mark-paid", args=[999999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_listing_and_summary(self):
        self._guest_transaction()
        self.client.force_authenticate(user=self.user)
        self.client.post(reverse("transaction-list"), self._payload(currency="UGX"), format="json")

        response = self.client.get(reverse("admin-transactions"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse("admin-transactions"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({row["email"] for row in response.data}, {"guest-00001", "sender@example.com"})

        response = self.client.get(reverse("admin-summary"))
        self.assertEqual(response.data["total"], 2)
        self.assertEqual(response.data["by_status"]["pending"]["count"], 2)

    def test_deposit_address(self):
        with self.settings(BITCOIN_DEPOSIT_ADDRESS="bc1qexampleaddress"):
            response = self.client.get(reverse("deposit-address"))
        self.assertEqual(response.data, {"address": "bc1qexampleaddress"})

        with self.settings(BITCOIN_DEPOSIT_ADDRESS=""):
            response = self.client.get(reverse("deposit-address"))
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
