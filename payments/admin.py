# payments/admin.py

from django.contrib import admin
from .models import GuestSequence, Transaction, TransactionEvent


class TransactionEventInline(admin.TabularInline):
    model = TransactionEvent
    extra = 0
    readonly_fields = ("event_type", "payload", "created_at")
    can_delete = False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "sender_label", "recipient_msisdn", "recipient_amount", "currency", "amount_usd", "status", "created_at")
    list_filter = ("currency", "status", "actor_kind", "user_marked_complete")
    search_fields = ("user__email", "guest_identifier", "recipient_msisdn")
    ordering = ("-created_at",)
    readonly_fields = (
        "user",
        "actor_kind",
        "guest_identifier",
        "guest_key",
        "recipient_msisdn",
        "amount_usd",
        "amount_crypto",
        "fee_total",
        "recipient_amount",
        "currency",
        "status",
        "client_ip",
        "created_at",
        "paid_at",
        "archived_at",
        "user_marked_complete",
        "user_completed_at",
    )
    inlines = [TransactionEventInline]


@admin.register(GuestSequence)
class GuestSequenceAdmin(admin.ModelAdmin):
    list_display = ("name", "value", "updated_at")
    readonly_fields = ("value", "updated_at")
