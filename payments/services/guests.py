from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F

from payments.exceptions import LimitExceeded
from payments.models import GuestSequence, Transaction

logger = logging.getLogger(__name__)

LABEL_WIDTH = 5


@dataclass(frozen=True)
class GuestIdentity:
    number: int
    label: str


def format_guest_label(number: int, prefix: Optional[str] = None) -> str:
    prefix = prefix or settings.GUEST_LABEL_PREFIX
    return f"{prefix}-{number:0{LABEL_WIDTH}d}"


def default_guest_limit() -> Decimal:
    return Decimal(str(settings.GUEST_TX_LIMIT_USD))


def check_limit(amount_usd, limit_usd=None) -> None:
    """Reject guest amounts strictly above the configured USD ceiling."""
    limit = default_guest_limit() if limit_usd is None else Decimal(str(limit_usd))
    amount = Decimal(str(amount_usd))
    if amount > limit:
        raise LimitExceeded(amount, limit)


def _highest_issued(prefix: str) -> int:
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    labels = Transaction.objects.filter(guest_identifier__startswith=f"{prefix}-").values_list(
        "guest_identifier", flat=True
    )
    numbers = [int(match.group(1)) for match in map(pattern.match, labels) if match]
    return max(numbers, default=0)


class DatabaseGuestSequence:
    """
    Counter row incremented under a row lock, so two concurrent guests can
    never draw the same number. A fresh counter starts after the highest
    label already stored on transactions.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or settings.GUEST_LABEL_PREFIX

    def next_value(self) -> int:
        with transaction.atomic():
            counter, created = GuestSequence.objects.select_for_update().get_or_create(
                name=self.name,
                defaults={"value": _highest_issued(self.name)},
            )
            GuestSequence.objects.filter(pk=counter.pk).update(value=F("value") + 1)
            counter.refresh_from_db(fields=["value"])
        if created:
            logger.info("Guest sequence %s initialised", self.name)
        return counter.value


def issue_guest_identity(sequence=None, *, prefix: Optional[str] = None) -> GuestIdentity:
    sequence = sequence or DatabaseGuestSequence(prefix)
    number = sequence.next_value()
    return GuestIdentity(number=number, label=format_guest_label(number, prefix))
