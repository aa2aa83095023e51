from decimal import Decimal

from django.db import connection
from django.test import TestCase, skipUnlessDBFeature
from django.test.utils import CaptureQueriesContext

from payments.exceptions import LimitExceeded
from payments.models import ActorKind, GuestSequence, Transaction
from payments.services import DatabaseGuestSequence, check_limit, issue_guest_identity
from payments.services.guests import format_guest_label


class FixedSequence:
    def __init__(self, start):
        self.value = start

    def next_value(self):
        self.value += 1
        return self.value


class GuestPolicyTests(TestCase):
    def test_label_format(self):
        self.assertEqual(format_guest_label(1), "guest-00001")
        self.assertEqual(format_guest_label(123456), "guest-123456")
        self.assertEqual(format_guest_label(7, prefix="walkin"), "walkin-00007")

    def test_check_limit(self):
        check_limit(Decimal("100.00"), Decimal("100"))

        with self.assertRaises(LimitExceeded) as ctx:
            check_limit(Decimal("100.01"), Decimal("100"))

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertIn("Please login", str(ctx.exception))

    def test_check_limit_reads_settings(self):
        with self.settings(GUEST_TX_LIMIT_USD="50"):
            check_limit("50")
            with self.assertRaises(LimitExceeded):
                check_limit("50.01")

    def test_database_sequence_counts_up(self):
        sequence = DatabaseGuestSequence()

        self.assertEqual([sequence.next_value() for _ in range(3)], [1, 2, 3])
        self.assertEqual(GuestSequence.objects.get(name="guest").value, 3)

    def test_new_sequence_resumes_after_existing_labels(self):
        Transaction.objects.create(
            actor_kind=ActorKind.GUEST,
            guest_identifier="guest-00041",
            recipient_msisdn="254712345678",
            amount_usd=Decimal("1.00"),
            amount_crypto=Decimal("0.00002"),
            fee_total=Decimal("2.58"),
            recipient_amount=Decimal("126.42"),
            currency="KES",
        )

        identity = issue_guest_identity()

        self.assertEqual(identity.number, 42)
        self.assertEqual(identity.label, "guest-00042")

    def test_injected_sequence(self):
        identity = issue_guest_identity(FixedSequence(9))

        self.assertEqual(identity.label, "guest-00010")


class GuestSequenceLockingTests(TestCase):
    def _counter_queries(self, queries):
        return [q["sql"] for q in queries if "payments_guestsequence" in q["sql"]]

    def test_increment_happens_in_the_database(self):
        GuestSequence.objects.create(name="guest", value=5)
        sequence = DatabaseGuestSequence()

        with CaptureQueriesContext(connection) as ctx:
            self.assertEqual(sequence.next_value(), 6)

        updates = [sql for sql in self._counter_queries(ctx.captured_queries) if sql.startswith("UPDATE")]
        self.assertEqual(len(updates), 1)
        self.assertIn('"value" + 1', updates[0])

    def test_next_value_reads_the_stored_counter(self):
        sequence = DatabaseGuestSequence()
        self.assertEqual(sequence.next_value(), 1)

        # another issuer advanced the counter in the meantime
        GuestSequence.objects.filter(name="guest").update(value=10)

        self.assertEqual(sequence.next_value(), 11)
        self.assertEqual(issue_guest_identity().label, "guest-00012")

    @skipUnlessDBFeature("has_select_for_update")
    def test_counter_row_is_locked(self):
        GuestSequence.objects.create(name="guest", value=0)

        with CaptureQueriesContext(connection) as ctx:
            DatabaseGuestSequence().next_value()

        selects = [sql for sql in self._counter_queries(ctx.captured_queries) if sql.startswith("SELECT")]
        self.assertTrue(selects)
        self.assertIn("FOR UPDATE", selects[0])
