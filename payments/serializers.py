# payments/serializers.py

from rest_framework import serializers
from .models import Transaction


class TransactionRequestSerializer(serializers.Serializer):
    """Raw create/preview payload; business validation happens in the ledger."""

    recipient_msisdn = serializers.CharField(allow_blank=True)
    amount_crypto = serializers.CharField(required=False)
    # field name used by the web client
    amount_crypto_btc = serializers.CharField(required=False, write_only=True)
    currency = serializers.CharField(required=False, default="KES")

    def validate(self, attrs):
        amount = attrs.pop("amount_crypto_btc", None)
        if attrs.get("amount_crypto") in (None, ""):
            if amount in (None, ""):
                raise serializers.ValidationError({"amount_crypto": "This field is required."})
            attrs["amount_crypto"] = amount
        return attrs


class GuestActionSerializer(serializers.Serializer):
    tx_id = serializers.IntegerField(min_value=1)
    guest_key = serializers.UUIDField()


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = (
            "id",
            "recipient_msisdn",
            "amount_usd",
            "amount_crypto",
            "fee_total",
            "recipient_amount",
            "currency",
            "status",
            "created_at",
            "paid_at",
        )
        read_only_fields = fields


class GuestTransactionSerializer(TransactionSerializer):
    sender = serializers.CharField(source="guest_identifier", read_only=True)

    class Meta(TransactionSerializer.Meta):
        fields = TransactionSerializer.Meta.fields + ("sender", "guest_key")
        read_only_fields = fields


class AdminTransactionSerializer(serializers.ModelSerializer):
    email = serializers.CharField(source="sender_label", read_only=True)
    msisdn = serializers.CharField(source="recipient_msisdn", read_only=True)
    amount_recipient = serializers.DecimalField(source="recipient_amount", max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Transaction
        fields = (
            "id",
            "email",
            "actor_kind",
            "msisdn",
            "amount_recipient",
            "amount_usd",
            "amount_crypto",
            "fee_total",
            "currency",
            "status",
            "user_marked_complete",
            "user_completed_at",
            "created_at",
            "paid_at",
            "archived_at",
        )
        read_only_fields = fields
