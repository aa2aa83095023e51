# currency/serializers.py

import re

from rest_framework import serializers
from .models import ExchangeRate

RATE_CODE_RE = re.compile(r"^[A-Z0-9:_-]{3,32}$")


class ExchangeRateSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExchangeRate
        fields = ("id", "code", "base_currency", "rate", "updated_at")
        read_only_fields = ("id", "updated_at")


class RateUpsertSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32)
    rate = serializers.DecimalField(max_digits=20, decimal_places=8)
    base_currency = serializers.CharField(max_length=10, required=False, default="USD")

    def validate_code(self, value):
        value = value.strip().upper()
        if not RATE_CODE_RE.match(value):
            raise serializers.ValidationError("Invalid rate code format.")
        return value

    def validate_base_currency(self, value):
        value = (value or "USD").strip().upper()
        if not RATE_CODE_RE.match(value):
            raise serializers.ValidationError("Invalid base currency format.")
        return value

    def validate_rate(self, value):
        if value <= 0:
            raise serializers.ValidationError("Rate must be > 0.")
        return value


class ConvertQuerySerializer(serializers.Serializer):
    direction = serializers.ChoiceField(choices=("usd", "local_net", "crypto"), default="crypto")
    amount = serializers.CharField()
    currency = serializers.CharField(max_length=10, default="KES")
