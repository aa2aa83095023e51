from .events import EventRecorder
from .guests import DatabaseGuestSequence, GuestIdentity, check_limit, issue_guest_identity
from .ledger import Quote, TransactionLedger, TransactionRequest

__all__ = [
    "DatabaseGuestSequence",
    "EventRecorder",
    "GuestIdentity",
    "Quote",
    "TransactionLedger",
    "TransactionRequest",
    "check_limit",
    "issue_guest_identity",
]
