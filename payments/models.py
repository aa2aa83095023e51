# payments/models.py

from django.conf import settings
from django.db import models


class TransactionStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    ARCHIVED = "archived", "Archived"
    # creation-time outcome only, never stored
    FAILED = "failed", "Failed"


class ActorKind(models.TextChoices):
    USER = "user", "Registered user"
    GUEST = "guest", "Guest"


TERMINAL_STATUSES = frozenset({TransactionStatus.PAID, TransactionStatus.ARCHIVED})

ALLOWED_TRANSITIONS = {
    TransactionStatus.PENDING: frozenset({TransactionStatus.PAID, TransactionStatus.ARCHIVED}),
    TransactionStatus.PAID: frozenset(),
    TransactionStatus.ARCHIVED: frozenset(),
}


class Transaction(models.Model):
    MONETARY_FIELDS = ("amount_usd", "amount_crypto", "fee_total", "recipient_amount", "currency")

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="remittances",
    )
    actor_kind = models.CharField(max_length=10, choices=ActorKind.choices, default=ActorKind.USER)
    guest_identifier = models.CharField(max_length=32, unique=True, null=True, blank=True)
    guest_key = models.UUIDField(unique=True, null=True, blank=True, editable=False)
    recipient_msisdn = models.CharField(max_length=12)
    amount_usd = models.DecimalField(max_digits=14, decimal_places=2)
    amount_crypto = models.DecimalField(max_digits=18, decimal_places=8)
    fee_total = models.DecimalField(max_digits=14, decimal_places=2)
    recipient_amount = models.DecimalField(max_digits=14, decimal_places=2)
    currency = models.CharField(max_length=10)
    status = models.CharField(
        max_length=20, choices=TransactionStatus.choices, default=TransactionStatus.PENDING, db_index=True
    )
    client_ip = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    archived_at = models.DateTimeField(null=True, blank=True)
    user_marked_complete = models.BooleanField(default=False)
    user_completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("-created_at", "-id")
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(status=TransactionStatus.FAILED),
                name="transaction_failed_not_persisted",
            ),
            models.CheckConstraint(condition=models.Q(amount_crypto__gt=0), name="transaction_crypto_positive"),
        ]

    def __str__(self):
        sender = self.user.email if self.user_id else (self.guest_identifier or "guest")
        return f"#{self.pk} {sender} -> {self.recipient_msisdn} {self.recipient_amount} {self.currency} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def sender_label(self) -> str:
        if self.user_id:
            return self.user.email
        return self.guest_identifier or "guest"

    def can_transition_to(self, target: str) -> bool:
        return target in ALLOWED_TRANSITIONS.get(self.status, frozenset())

    def save(self, *args, **kwargs):
        update_fields = kwargs.get("update_fields")
        touches_money = update_fields is None or bool(set(update_fields) & set(self.MONETARY_FIELDS))
        if not self._state.adding and self.pk and touches_money:
            stored = type(self).objects.filter(pk=self.pk).values(*self.MONETARY_FIELDS).first()
            if stored and any(stored[field] != getattr(self, field) for field in self.MONETARY_FIELDS):
                raise ValueError("Monetary fields of a transaction cannot change after creation.")
        super().save(*args, **kwargs)


class TransactionEvent(models.Model):
    transaction = models.ForeignKey(Transaction, on_delete=models.CASCADE, related_name="events")
    event_type = models.CharField(max_length=64, db_index=True)
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("created_at", "id")

    def __str__(self):
        return f"{self.event_type} for transaction {self.transaction_id}"


class GuestSequence(models.Model):
    name = models.CharField(max_length=32, unique=True)
    value = models.PositiveBigIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name}={self.value}"
