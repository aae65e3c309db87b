"""
Exchange rate service.

Keeps one table of rates relative to a fixed base currency and converts
between any two currencies by pivoting through the base. Rates come from
the external source at most once per calendar day; when the source fails
the service falls back to the cached snapshot, then to a built-in table,
so conversion always returns a number.
"""

import asyncio
import enum
import json
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Union

from pennywise.config import settings
from pennywise.errors import TransientSourceError
from pennywise.services.rate_cache import JsonFileCache, KeyValueCache
from pennywise.services.rate_client import ExchangeRateClient

logger = logging.getLogger(__name__)

Amount = Union[float, int, Decimal]

RATES_KEY = "exchange_rates"
PREVIOUS_RATES_KEY = "previous_exchange_rates"

# Approximate USD-based rates used when neither the source nor the cache is available
FALLBACK_RATES = {
    "USD": 1.0,
    "INR": 83.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 149.0,
    "AUD": 1.53,
    "CAD": 1.36,
    "CHF": 0.88,
    "CNY": 7.24,
    "SGD": 1.34,
    "AED": 3.67,
}


class RateSource(Protocol):
    async def fetch_latest(self, base_currency: str) -> Dict[str, float]:
        ...


class RateTier(str, enum.Enum):
    """Where the current rates came from."""
    empty = "empty"
    fallback = "fallback"
    cache = "cache"
    live = "live"


class ExchangeRateService:

    def __init__(
        self,
        source: RateSource,
        cache: KeyValueCache,
        base_currency: Optional[str] = None,
        max_age_hours: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.base_currency = (base_currency or settings.base_currency).upper()
        self.max_age = timedelta(
            hours=max_age_hours if max_age_hours is not None else settings.rate_max_age_hours
        )
        self._source = source
        self._cache = cache
        self._clock = clock or datetime.now
        self._lock = asyncio.Lock()

        self._rates: Dict[str, float] = {}
        self._previous_rates: Dict[str, float] = {}
        self._last_fetched_at: Optional[datetime] = None
        self.tier = RateTier.empty

    @property
    def rates(self) -> Dict[str, float]:
        return dict(self._rates)

    @property
    def previous_rates(self) -> Dict[str, float]:
        return dict(self._previous_rates)

    @property
    def last_fetched_at(self) -> Optional[datetime]:
        return self._last_fetched_at

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        """True when there is no fetch timestamp or it is older than max_age."""
        if self._last_fetched_at is None:
            return True
        now = now or self._clock()
        return now - self._last_fetched_at > self.max_age

    def _fetched_today(self, now: datetime) -> bool:
        return (
            bool(self._rates)
            and self._last_fetched_at is not None
            and self._last_fetched_at.date() == now.date()
            and not self.is_stale(now)
        )

    def _with_base(self, rates: Mapping[str, float]) -> Dict[str, float]:
        result = {str(code).upper(): float(rate) for code, rate in rates.items()}
        result[self.base_currency] = 1.0
        return result

    # -- refresh --------------------------------------------------------------

    async def refresh_rates(self, force: bool = False) -> bool:
        """
        Fetch today's rates unless they were already fetched today.

        Returns True if new rates were fetched. Source failures are logged
        and never raised.
        """
        async with self._lock:
            if not self._rates:
                self.load_cached_rates()

            now = self._clock()
            if not force and self._fetched_today(now):
                logger.debug(f"Exchange rates already fetched at {self._last_fetched_at}")
                return False

            try:
                fetched = self._with_base(await self._source.fetch_latest(self.base_currency))
            except TransientSourceError as e:
                self._ensure_rates()
                logger.warning(f"Exchange rate refresh failed, using {self.tier.value} rates: {e}")
                return False
            except Exception:
                self._ensure_rates()
                logger.exception(f"Unexpected exchange rate source error, using {self.tier.value} rates")
                return False

            # Built-in approximations are not a meaningful "previous day"
            if self._rates and self.tier != RateTier.fallback:
                self._previous_rates = dict(self._rates)

            self._rates = fetched
            self._last_fetched_at = now
            self.tier = RateTier.live
            self._save_cache()

            logger.info(f"Fetched {len(self._rates)} exchange rates for base {self.base_currency}")
            return True

    def _ensure_rates(self) -> None:
        if self._rates:
            return
        if self.load_cached_rates():
            return
        self._load_fallback_rates()

    def _load_fallback_rates(self) -> None:
        pivot = FALLBACK_RATES.get(self.base_currency, 1.0)
        self._rates = self._with_base(
            {code: rate / pivot for code, rate in FALLBACK_RATES.items()}
        )
        self.tier = RateTier.fallback
        logger.warning("Using built-in fallback exchange rates")

    # -- cache ----------------------------------------------------------------

    def load_cached_rates(self) -> bool:
        """
        Load the cached snapshot regardless of its age.

        Returns True if usable rates were loaded.
        """
        try:
            raw = self._cache.get(RATES_KEY)
            if raw is None:
                return False

            cached = json.loads(raw)
            if str(cached.get("base", "")).upper() != self.base_currency:
                logger.info(f"Ignoring cached rates for base {cached.get('base')}")
                return False

            rates = self._with_base(cached["rates"])
            fetched_at = datetime.fromisoformat(cached["fetched_at"]) if cached.get("fetched_at") else None

            raw_previous = self._cache.get(PREVIOUS_RATES_KEY)
            previous = json.loads(raw_previous) if raw_previous else {}
            previous = {str(code).upper(): float(rate) for code, rate in previous.items()}
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable exchange rate cache: {e}")
            return False

        self._rates = rates
        self._previous_rates = previous
        self._last_fetched_at = fetched_at
        self.tier = RateTier.cache
        return True

    def _save_cache(self) -> None:
        # The cache is advisory: a failed write leaves the in-memory rates in place
        try:
            self._cache.set(RATES_KEY, json.dumps({
                "base": self.base_currency,
                "rates": self._rates,
                "fetched_at": self._last_fetched_at.isoformat() if self._last_fetched_at else None,
            }))
            self._cache.set(PREVIOUS_RATES_KEY, json.dumps(self._previous_rates))
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to cache exchange rates: {e}")

    # -- conversion -----------------------------------------------------------

    def get_rate(self, currency: str) -> float:
        """Units of currency per one unit of base. Unknown codes count as 1.0."""
        code = (currency or "").upper()
        if code == self.base_currency:
            return 1.0
        return self._rates.get(code, 1.0)

    def convert_to_base(self, amount: Amount, currency: str) -> float:
        rate = self.get_rate(currency)
        if rate == 0:
            return float(amount)
        return float(amount) / rate

    def convert_from_base(self, amount: Amount, currency: str) -> float:
        return float(amount) * self.get_rate(currency)

    def convert(self, amount: Amount, from_currency: str, to_currency: str) -> float:
        """Convert between any two currencies through the base currency."""
        if (from_currency or "").upper() == (to_currency or "").upper():
            return float(amount)
        return self.convert_from_base(self.convert_to_base(amount, from_currency), to_currency)

    def rate_change(self, currency: str) -> Optional[float]:
        """Percent change of a rate since the previous snapshot, or None."""
        code = (currency or "").upper()
        if code not in self._rates or code not in self._previous_rates:
            return None

        previous = self._previous_rates[code]
        if previous == 0:
            return None
        return ((self._rates[code] - previous) / previous) * 100

    def convert_expenses(
        self,
        expenses: Iterable[Mapping[str, Any]],
        target_currency: str
    ) -> List[Dict[str, Any]]:
        """Annotate expense rows with their amount in target_currency."""
        target = target_currency.upper()
        result = []
        for expense in expenses:
            amount = expense["amount"]
            currency = expense.get("currency") or settings.default_currency
            result.append({
                **expense,
                "original_amount": amount,
                "original_currency": currency,
                "converted_amount": round(self.convert(amount, currency, target), 2),
                "display_currency": target,
            })
        return result

    def snapshot(self) -> Dict[str, Any]:
        return {
            "base_currency": self.base_currency,
            "rates": self.rates,
            "previous_rates": self.previous_rates,
            "fetched_at": self._last_fetched_at,
            "is_stale": self.is_stale(),
            "source": self.tier.value,
        }


def build_rate_service() -> ExchangeRateService:
    """Exchange rate service wired to the configured source and cache file."""
    return ExchangeRateService(
        source=ExchangeRateClient(),
        cache=JsonFileCache(settings.rate_cache_path),
    )
