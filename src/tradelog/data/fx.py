"""
USD/JPY quote service with last-known-rate fallback.
"""
from typing import Optional

import httpx
from loguru import logger

from ..config import DEFAULT_FX_RATE, FX_ENDPOINT
from ..errors import FxRateError


class FxRateService:
    """
    Holds the current USD/JPY rate and refreshes it from a public endpoint.

    A failed refresh keeps the last known (or manually entered) rate, so
    callers can always read `rate`.
    """

    def __init__(
        self,
        initial_rate: float = DEFAULT_FX_RATE,
        endpoint: str = FX_ENDPOINT,
        currency: str = "JPY",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self.endpoint = endpoint
        self.currency = currency
        self.timeout = timeout
        self._client = client
        self._rate = initial_rate

    def __repr__(self) -> str:
        return f"FxRateService({self.currency}={self._rate:.2f})"

    @property
    def rate(self) -> float:
        return self._rate

    def set_rate(self, rate: float) -> bool:
        """Manual override; non-positive values are ignored."""
        if rate is None or rate <= 0:
            logger.warning(f"Ignoring invalid FX rate: {rate}")
            return False
        self._rate = float(rate)
        return True

    def fetch(self) -> float:
        """
        Fetch the latest quote without changing the held rate.

        Raises:
            FxRateError: On transport errors, bad status, or a malformed or missing rate
        """
        try:
            if self._client is not None:
                response = self._client.get(self.endpoint, timeout=self.timeout)
            else:
                response = httpx.get(self.endpoint, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise FxRateError(f"FX quote request failed: {e}") from e

        rates = data.get("rates") if isinstance(data, dict) else None
        rate = rates.get(self.currency) if isinstance(rates, dict) else None
        if isinstance(rate, bool) or not isinstance(rate, (int, float)) or rate <= 0:
            raise FxRateError(f"No {self.currency} rate in FX response")
        return float(rate)

    def refresh(self) -> bool:
        """
        Update the held rate from the endpoint.

        Returns: True if a new quote was applied, False if the last known
            rate was kept
        """
        try:
            rate = self.fetch()
        except FxRateError as e:
            logger.warning(f"{e}; keeping rate {self._rate:.2f}")
            return False
        self._rate = rate
        logger.debug(f"FX rate refreshed: {self.currency}={rate:.2f}")
        return True
