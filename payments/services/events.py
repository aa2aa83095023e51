from __future__ import annotations

from typing import Any, Optional

from payments.models import Transaction, TransactionEvent


class EventRecorder:
    """Facade around the TransactionEvent model."""

    def record(
        self,
        event_type: str,
        *,
        transaction: Transaction,
        payload: Optional[dict[str, Any]] = None,
    ) -> TransactionEvent:
        entry = TransactionEvent(
            transaction=transaction,
            event_type=event_type,
            payload=payload or {},
        )
        entry.save()
        return entry
