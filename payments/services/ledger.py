from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from currency.conversion import ConversionResult, from_crypto, to2
from currency.exceptions import ConversionError, InvalidAmount
from currency.rates import DatabaseRateSource, RateSource
from payments.exceptions import InvalidTransition, LedgerError, NotFound, ValidationError
from payments.models import ActorKind, Transaction, TransactionStatus
from payments.services.events import EventRecorder
from payments.services.guests import check_limit, default_guest_limit, issue_guest_identity

logger = logging.getLogger(__name__)

MSISDN_LENGTH = 12
CURRENCY_RE = re.compile(r"^[A-Z]{3,10}$")
CRYPTO_QUANTUM = Decimal("0.00000001")
MAX_CRYPTO = Decimal("1E10")
MAX_FIAT = Decimal("1E12")


def normalise_msisdn(raw) -> str:
    digits = re.sub(r"\D", "", str(raw or ""))
    if len(digits) != MSISDN_LENGTH:
        raise ValidationError("recipient_msisdn must be exactly 12 digits", field="recipient_msisdn")
    return digits


def normalise_amount_crypto(raw) -> Decimal:
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("amount_crypto must be a positive number", field="amount_crypto")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("amount_crypto must be a positive number", field="amount_crypto")
    if amount >= MAX_CRYPTO:
        raise ValidationError("amount_crypto is too large", field="amount_crypto")
    amount = amount.quantize(CRYPTO_QUANTUM, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise ValidationError("amount_crypto must be a positive number", field="amount_crypto")
    return amount


@dataclass(frozen=True)
class TransactionRequest:
    actor_kind: str
    recipient_msisdn: str
    amount_crypto: Decimal
    currency: str


@dataclass(frozen=True)
class Quote:
    request: TransactionRequest
    conversion: ConversionResult

    def as_dict(self) -> dict:
        return {
            "recipient_msisdn": self.request.recipient_msisdn,
            "amount_crypto": str(self.request.amount_crypto),
            **self.conversion.as_dict(),
        }


class TransactionLedger:
    """
    Creates remittance transactions from a crypto amount and drives them
    through pending -> paid | archived. Validation, conversion and the guest
    ceiling all run before anything is written; a failure leaves no row.
    """

    def __init__(
        self,
        *,
        rate_source: Optional[RateSource] = None,
        guest_sequence=None,
        supported_currencies: Optional[Iterable[str]] = None,
        guest_limit_usd=None,
        crypto_code: Optional[str] = None,
        event_recorder: Optional[EventRecorder] = None,
        now=None,
    ):
        self.rates = rate_source or DatabaseRateSource()
        self.guest_sequence = guest_sequence
        currencies = supported_currencies if supported_currencies is not None else settings.SUPPORTED_CURRENCIES
        self.supported_currencies = frozenset(code.strip().upper() for code in currencies)
        self.guest_limit_usd = Decimal(str(guest_limit_usd)) if guest_limit_usd is not None else default_guest_limit()
        self.crypto_code = crypto_code or settings.CRYPTO_PRICE_CODE
        self.events = event_recorder or EventRecorder()
        self._now = now or timezone.now

    # ------------------------------------------------------------------
    # creation
    # ------------------------------------------------------------------

    def validate(self, *, actor_kind: str, recipient_msisdn, amount_crypto, currency) -> TransactionRequest:
        if actor_kind not in ActorKind.values:
            raise ValidationError(f"actor_kind must be one of: {', '.join(ActorKind.values)}", field="actor_kind")

        msisdn = normalise_msisdn(recipient_msisdn)

        code = str(currency or "").strip().upper()
        if not CURRENCY_RE.match(code) or code not in self.supported_currencies:
            allowed = ", ".join(sorted(self.supported_currencies))
            raise ValidationError(f"currency must be one of: {allowed}", field="currency")

        return TransactionRequest(
            actor_kind=actor_kind,
            recipient_msisdn=msisdn,
            amount_crypto=normalise_amount_crypto(amount_crypto),
            currency=code,
        )

    def _convert(self, request: TransactionRequest) -> ConversionResult:
        try:
            result = from_crypto(request.amount_crypto, request.currency, self.rates, crypto_code=self.crypto_code)
        except InvalidAmount as exc:
            raise ValidationError(str(exc), field="amount_crypto") from exc
        if max(result.amount_usd, result.recipient_amount, result.fee_total) >= MAX_FIAT:
            raise ValidationError("amount_crypto is too large", field="amount_crypto")
        return result

    def quote(self, *, actor_kind: str, recipient_msisdn, amount_crypto, currency) -> Quote:
        request = self.validate(
            actor_kind=actor_kind,
            recipient_msisdn=recipient_msisdn,
            amount_crypto=amount_crypto,
            currency=currency,
        )
        conversion = self._convert(request)
        if request.actor_kind == ActorKind.GUEST:
            check_limit(conversion.amount_usd, self.guest_limit_usd)
        return Quote(request=request, conversion=conversion)

    def create(
        self,
        *,
        actor_kind: str,
        recipient_msisdn,
        amount_crypto,
        currency,
        user=None,
        client_ip: Optional[str] = None,
    ) -> Transaction:
        try:
            if actor_kind == ActorKind.USER and user is None:
                raise ValidationError("A registered user is required", field="user")
            quote = self.quote(
                actor_kind=actor_kind,
                recipient_msisdn=recipient_msisdn,
                amount_crypto=amount_crypto,
                currency=currency,
            )
        except (LedgerError, ConversionError) as exc:
            logger.info("Transaction request %s (%s): %s", TransactionStatus.FAILED, actor_kind, exc)
            raise

        request, conversion = quote.request, quote.conversion
        is_guest = request.actor_kind == ActorKind.GUEST

        with transaction.atomic():
            guest_identifier = guest_key = None
            if is_guest:
                identity = issue_guest_identity(self.guest_sequence)
                guest_identifier, guest_key = identity.label, uuid.uuid4()

            txn = Transaction.objects.create(
                user=None if is_guest else user,
                actor_kind=request.actor_kind,
                guest_identifier=guest_identifier,
                guest_key=guest_key,
                recipient_msisdn=request.recipient_msisdn,
                amount_usd=conversion.amount_usd,
                amount_crypto=request.amount_crypto,
                fee_total=conversion.fee_total,
                recipient_amount=conversion.recipient_amount,
                currency=request.currency,
                status=TransactionStatus.PENDING,
                client_ip=client_ip,
            )
            self.events.record(
                "transaction.created",
                transaction=txn,
                payload={"actor_kind": request.actor_kind, **conversion.as_dict()},
            )

        logger.info(
            "Transaction %s created for %s: %s BTC -> %s %s",
            txn.id,
            guest_identifier or f"user {txn.user_id}",
            txn.amount_crypto,
            txn.recipient_amount,
            txn.currency,
        )
        return txn

    # ------------------------------------------------------------------
    # transitions
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_id(transaction_id) -> int:
        try:
            return int(str(transaction_id).strip())
        except (TypeError, ValueError):
            raise NotFound()

    def _locked(self, transaction_id) -> Transaction:
        try:
            return Transaction.objects.select_for_update().get(pk=self._coerce_id(transaction_id))
        except Transaction.DoesNotExist:
            raise NotFound()

    def _ensure_transition(self, txn: Transaction, target: str) -> None:
        if not txn.can_transition_to(target):
            logger.warning("Rejected transition of transaction %s from %s to %s", txn.id, txn.status, target)
            raise InvalidTransition(txn.id, txn.status, target)

    def mark_paid(self, transaction_id) -> Transaction:
        with transaction.atomic():
            txn = self._locked(transaction_id)
            if txn.status == TransactionStatus.PAID:
                return txn
            self._ensure_transition(txn, TransactionStatus.PAID)

            txn.status = TransactionStatus.PAID
            if txn.paid_at is None:
                txn.paid_at = self._now()
            txn.save(update_fields=["status", "paid_at"])
            self.events.record(
                "transaction.paid",
                transaction=txn,
                payload={"paid_at": txn.paid_at.isoformat()},
            )

        logger.info("Transaction %s marked paid", txn.id)
        return txn

    def archive(self, transaction_id) -> Transaction:
        with transaction.atomic():
            txn = self._locked(transaction_id)
            if txn.status == TransactionStatus.ARCHIVED:
                return txn
            self._ensure_transition(txn, TransactionStatus.ARCHIVED)

            txn.status = TransactionStatus.ARCHIVED
            txn.archived_at = self._now()
            txn.save(update_fields=["status", "archived_at"])
            self.events.record(
                "transaction.archived",
                transaction=txn,
                payload={"archived_at": txn.archived_at.isoformat()},
            )

        logger.info("Transaction %s archived", txn.id)
        return txn

    # ------------------------------------------------------------------
    # guest callbacks
    # ------------------------------------------------------------------

    def _guest_queryset(self, transaction_id, guest_key):
        try:
            key = guest_key if isinstance(guest_key, uuid.UUID) else uuid.UUID(str(guest_key))
        except (TypeError, ValueError, AttributeError):
            raise NotFound("Transaction not found or guest_key mismatch")
        return Transaction.objects.filter(pk=self._coerce_id(transaction_id), guest_key=key)

    def guest_mark_complete(self, transaction_id, guest_key) -> Transaction:
        with transaction.atomic():
            txn = self._guest_queryset(transaction_id, guest_key).select_for_update().first()
            if txn is None:
                raise NotFound("Transaction not found or guest_key mismatch")
            if txn.user_marked_complete and txn.user_completed_at is not None:
                return txn

            txn.user_marked_complete = True
            txn.user_completed_at = txn.user_completed_at or self._now()
            txn.save(update_fields=["user_marked_complete", "user_completed_at"])
            self.events.record("transaction.guest_completed", transaction=txn)

        logger.info("Transaction %s marked complete by %s", txn.id, txn.guest_identifier)
        return txn

    def get_status(self, transaction_id, guest_key) -> dict:
        row = (
            self._guest_queryset(transaction_id, guest_key)
            .values("id", "status", "user_marked_complete", "user_completed_at", "paid_at", "created_at")
            .first()
        )
        if row is None:
            raise NotFound("Transaction not found or guest_key mismatch")
        return row

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def list_for_user(self, user):
        return Transaction.objects.filter(user=user).order_by("-created_at", "-id")

    def list_all(self, limit: Optional[int] = None):
        limit = limit or settings.ADMIN_TRANSACTIONS_LIMIT
        return Transaction.objects.select_related("user").order_by("-created_at", "-id")[:limit]

    def summary(self) -> dict:
        rows = Transaction.objects.order_by().values("status").annotate(
            count=Count("id"),
            amount_usd=Sum("amount_usd"),
            fee_total=Sum("fee_total"),
        )
        by_status = {
            status: {"count": 0, "amount_usd": "0.00", "fee_total": "0.00"}
            for status in (TransactionStatus.PENDING.value, TransactionStatus.PAID.value, TransactionStatus.ARCHIVED.value)
        }
        total = 0
        for row in rows:
            by_status[row["status"]] = {
                "count": row["count"],
                "amount_usd": str(to2(row["amount_usd"] or Decimal("0"))),
                "fee_total": str(to2(row["fee_total"] or Decimal("0"))),
            }
            total += row["count"]
        return {"total": total, "by_status": by_status}
