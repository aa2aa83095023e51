from decimal import Decimal

from django.core.management.base import BaseCommand

from currency.models import ExchangeRate

DEFAULT_RATES = [
    {"code": "FEE", "rate": Decimal("0.02")},
    {"code": "BTCUSD", "rate": Decimal("60000")},
    {"code": "KES", "rate": Decimal("129.0")},
    {"code": "UGX", "rate": Decimal("3700.0")},
    {"code": "TZS", "rate": Decimal("2600.0")},
]


class Command(BaseCommand):
    help = "Seed default exchange rates (existing codes are left untouched)."

    def handle(self, *args, **kwargs):
        created = 0
        for entry in DEFAULT_RATES:
            if ExchangeRate.objects.filter(code=entry["code"]).exists():
                continue
            ExchangeRate.objects.create(code=entry["code"], rate=entry["rate"])
            created += 1
        self.stdout.write(self.style.SUCCESS(f"{created} exchange rates created."))
