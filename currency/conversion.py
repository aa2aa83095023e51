"""
Crypto / USD / local currency conversion with the platform fee.

The fee is a single fraction taken off the gross local amount whatever the
entry point, so ``from_usd`` and ``from_local_net`` are inverses for the same
currency and fee. Rounding to cents (half away from zero) happens only on the
returned figures; intermediate values keep full Decimal precision.

Every function reads all the rates it needs from one snapshot before doing
any arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from currency.exceptions import (
    ComputationInvalid,
    DegenerateFee,
    InvalidAmount,
    RateUnavailable,
    UnknownDirection,
)
from currency.rates import RateSnapshot, RateSource

USD = "USD"
FEE_CODE = "FEE"
DEFAULT_CRYPTO_CODE = "BTCUSD"

CENT = Decimal("0.01")
ONE = Decimal("1")
MAX_AMOUNT = Decimal("1E15")

Rates = Union[RateSource, RateSnapshot]

__all__ = [
    "ConversionResult",
    "ComputationInvalid",
    "DegenerateFee",
    "InvalidAmount",
    "RateUnavailable",
    "UnknownDirection",
    "convert",
    "from_crypto",
    "from_local_net",
    "from_usd",
    "to2",
]


def to2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ConversionResult:
    amount_usd: Decimal
    recipient_amount: Decimal
    fee_total: Decimal
    currency: str
    # unrounded local figures; net_local + fee_local == gross_local
    gross_local: Decimal
    net_local: Decimal
    fee_local: Decimal

    def as_dict(self) -> dict:
        return {
            "amount_usd": str(self.amount_usd),
            "recipient_amount": str(self.recipient_amount),
            "fee_total": str(self.fee_total),
            "currency": self.currency,
        }


def _positive_amount(value, name: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmount(f"{name} must be a positive number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"{name} must be a positive number")
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"{name} must be a positive number")
    if amount >= MAX_AMOUNT:
        raise InvalidAmount(f"{name} is too large")
    return amount


def _snapshot(rates: Rates, codes) -> RateSnapshot:
    if isinstance(rates, RateSnapshot):
        return rates
    return rates.snapshot(codes)


def _local_codes(currency: str) -> list[str]:
    return [FEE_CODE] if currency == USD else [FEE_CODE, currency]


def _usd_to_local(snapshot: RateSnapshot, currency: str) -> Decimal:
    if currency == USD:
        return ONE
    return snapshot.get(currency)


def _finish(currency: str, amount_usd: Decimal, gross: Decimal, recipient: Decimal, fee_total: Decimal) -> ConversionResult:
    if not recipient.is_finite() or not amount_usd.is_finite():
        raise ComputationInvalid(f"Computed amounts for {currency} are not finite")
    try:
        result = ConversionResult(
            amount_usd=to2(amount_usd),
            recipient_amount=to2(recipient),
            fee_total=to2(fee_total),
            currency=currency,
            gross_local=gross,
            net_local=recipient,
            fee_local=fee_total,
        )
    except InvalidOperation as exc:
        raise ComputationInvalid(f"Computed amounts for {currency} are out of range") from exc
    if result.recipient_amount <= 0:
        raise ComputationInvalid(f"Computed recipient amount for {currency} is not positive")
    return result


def _gross_split(currency: str, usd: Decimal, snapshot: RateSnapshot) -> ConversionResult:
    usd2cur = _usd_to_local(snapshot, currency)
    fee_pct = snapshot.get(FEE_CODE)

    gross = usd * usd2cur
    recipient = gross * (ONE - fee_pct)
    fee_total = gross - recipient
    return _finish(currency, usd, gross, recipient, fee_total)


def from_usd(amount_usd, currency: str, rates: Rates) -> ConversionResult:
    usd = _positive_amount(amount_usd, "amount_usd")
    currency = str(currency).strip().upper()
    snapshot = _snapshot(rates, _local_codes(currency))
    return _gross_split(currency, usd, snapshot)


def from_local_net(net_local, currency: str, rates: Rates) -> ConversionResult:
    net = _positive_amount(net_local, "recipient_amount")
    currency = str(currency).strip().upper()
    snapshot = _snapshot(rates, _local_codes(currency))

    usd2cur = _usd_to_local(snapshot, currency)
    fee_pct = snapshot.get(FEE_CODE)
    if fee_pct >= ONE:
        raise DegenerateFee(f"Fee fraction {fee_pct} leaves nothing for the recipient")

    gross = net / (ONE - fee_pct)
    usd = gross / usd2cur
    fee_total = gross - net
    return _finish(currency, usd, gross, net, fee_total)


def from_crypto(amount_crypto, currency: str, rates: Rates, *, crypto_code: str = DEFAULT_CRYPTO_CODE) -> ConversionResult:
    crypto = _positive_amount(amount_crypto, "amount_crypto")
    currency = str(currency).strip().upper()
    crypto_code = crypto_code.upper()
    snapshot = _snapshot(rates, [crypto_code, *_local_codes(currency)])

    crypto_usd = snapshot.get(crypto_code)
    return _gross_split(currency, crypto * crypto_usd, snapshot)


DIRECTIONS = {
    "usd": from_usd,
    "local_net": from_local_net,
    "crypto": from_crypto,
}


def convert(direction: str, amount, currency: str, rates: Rates, *, crypto_code: str = DEFAULT_CRYPTO_CODE) -> ConversionResult:
    direction = str(direction or "").strip().lower()
    if direction not in DIRECTIONS:
        raise UnknownDirection(f"direction must be one of: {', '.join(DIRECTIONS)}")
    if direction == "crypto":
        return from_crypto(amount, currency, rates, crypto_code=crypto_code)
    return DIRECTIONS[direction](amount, currency, rates)
