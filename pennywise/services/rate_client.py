"""
Exchange rate source client.

Fetches the latest base -> all currencies rates over HTTP. Every failure
mode (timeout, transport error, bad status, malformed payload) surfaces as
TransientSourceError so callers only handle one exception.
"""

import logging
import math
from typing import Dict, Optional

import httpx

from pennywise.config import settings
from pennywise.errors import TransientSourceError

logger = logging.getLogger(__name__)


class ExchangeRateClient:

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.exchange_rate_url
        self.timeout = timeout if timeout is not None else settings.exchange_rate_timeout
        self._transport = transport

    async def fetch_latest(self, base_currency: str) -> Dict[str, float]:
        """Return today's rates for base_currency as {code: rate}."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.base_url, params={"base": base_currency})
        except httpx.HTTPError as e:
            raise TransientSourceError(f"Exchange rate request failed: {e}") from e

        if response.status_code != 200:
            raise TransientSourceError(f"Exchange rate source returned {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise TransientSourceError("Exchange rate response is not JSON") from e

        return parse_rates_payload(data)


def parse_rates_payload(data) -> Dict[str, float]:
    """Validate a source payload and return its rates."""
    if not isinstance(data, dict) or data.get("success") is not True:
        raise TransientSourceError("Exchange rate source reported failure")

    raw_rates = data.get("rates")
    if not isinstance(raw_rates, dict) or not raw_rates:
        raise TransientSourceError("Exchange rate payload has no rates")

    rates = {}
    for code, value in raw_rates.items():
        # bool is an int subclass but never a rate
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TransientSourceError(f"Invalid rate for {code}: {value!r}")
        try:
            rate = float(value)
        except OverflowError:
            raise TransientSourceError(f"Rate for {code} is out of range")
        if not math.isfinite(rate) or rate <= 0:
            raise TransientSourceError(f"Rate for {code} must be positive: {value!r}")
        rates[str(code).upper()] = rate

    logger.debug(f"Parsed {len(rates)} exchange rates")
    return rates
