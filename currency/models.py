# currency/models.py

from django.db import models


class ExchangeRate(models.Model):
    """
    One stored rate. ``code`` is a currency (units per 1 USD) or a pseudo-code:
    FEE is the platform fee fraction, BTCUSD the USD price of one BTC.
    Several rows may exist per code; readers use the most recently updated one.
    """

    code = models.CharField(max_length=32, db_index=True)  # ex: 'KES', 'FEE', 'BTCUSD'
    base_currency = models.CharField(max_length=10, default="USD")
    rate = models.DecimalField(max_digits=20, decimal_places=8)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("code", "-updated_at", "-id")
        indexes = [
            models.Index(fields=["code", "-updated_at"]),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(rate__gt=0), name="exchange_rate_positive"),
        ]

    def __str__(self):
        return f"{self.code} = {self.rate} (base {self.base_currency})"
