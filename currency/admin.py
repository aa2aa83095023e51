# currency/admin.py

from django.contrib import admin
from .models import ExchangeRate


@admin.register(ExchangeRate)
class ExchangeRateAdmin(admin.ModelAdmin):
    list_display = ("code", "rate", "base_currency", "updated_at")
    list_filter = ("base_currency",)
    search_fields = ("code",)
    ordering = ("code", "-updated_at")
