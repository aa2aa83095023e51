from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from currency.exceptions import RateUnavailable

logger = logging.getLogger(__name__)


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


class RateSnapshot:
    """Immutable set of rates read in one go, so every figure of a conversion
    comes from the same point in time."""

    def __init__(self, rates: Mapping[str, object]):
        self._rates = MappingProxyType({code.upper(): _to_decimal(value) for code, value in rates.items()})

    def __contains__(self, code: str) -> bool:
        return code.upper() in self._rates

    def as_dict(self) -> dict[str, Optional[Decimal]]:
        return dict(self._rates)

    def get(self, code: str) -> Decimal:
        code = code.upper()
        value = self._rates.get(code)
        if value is None:
            raise RateUnavailable(code, "missing")
        if not value.is_finite():
            raise RateUnavailable(code, "non-finite")
        if value <= 0:
            raise RateUnavailable(code, "not positive")
        return value


class RateSource:
    """Read side of the rate store. Subclasses implement ``snapshot``."""

    def snapshot(self, codes: Iterable[str]) -> RateSnapshot:
        raise NotImplementedError

    def get_rate(self, code: str) -> Decimal:
        return self.snapshot([code]).get(code)


class StaticRateSource(RateSource):
    """In-memory rates, used by previews of hypothetical rates and by tests."""

    def __init__(self, rates: Mapping[str, object]):
        self._rates = {code.upper(): value for code, value in rates.items()}

    def snapshot(self, codes: Iterable[str]) -> RateSnapshot:
        wanted = {code.upper() for code in codes}
        return RateSnapshot({code: value for code, value in self._rates.items() if code in wanted})


class DatabaseRateSource(RateSource):
    """Reads the latest ExchangeRate row per code with a single query."""

    def snapshot(self, codes: Iterable[str]) -> RateSnapshot:
        from currency.models import ExchangeRate

        wanted = sorted({code.upper() for code in codes})
        rows = (
            ExchangeRate.objects.filter(code__in=wanted)
            .order_by("code", "-updated_at", "-id")
            .values_list("code", "rate")
        )
        latest: dict[str, Decimal] = {}
        for code, rate in rows:
            latest.setdefault(code, rate)

        missing = set(wanted) - set(latest)
        if missing:
            logger.warning("No exchange rate stored for %s", ", ".join(sorted(missing)))
        return RateSnapshot(latest)


def upsert_rate(code: str, rate, *, base_currency: str = "USD"):
    """Update the latest row for ``code`` or insert the first one."""
    from django.db import transaction

    from currency.models import ExchangeRate

    code = code.upper()
    with transaction.atomic():
        row = (
            ExchangeRate.objects.select_for_update()
            .filter(code=code)
            .order_by("-updated_at", "-id")
            .first()
        )
        if row is None:
            row = ExchangeRate.objects.create(code=code, rate=rate, base_currency=base_currency)
            created = True
        else:
            row.rate = rate
            row.base_currency = base_currency
            row.save(update_fields=["rate", "base_currency", "updated_at"])
            created = False

    logger.info("Exchange rate %s set to %s (created=%s)", code, rate, created)
    return row, created
