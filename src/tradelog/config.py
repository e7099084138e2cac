"""
Ledger settings.
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional


NISA_ANNUAL_LIMIT = 2_400_000  # JPY
DEFAULT_FX_RATE = 153.0        # USD/JPY used until a quote is fetched
FX_ENDPOINT = "https://open.er-api.com/v6/latest/USD"


@dataclass(frozen=True)
class LedgerSettings:
    """Tunable constants for the ledger and its boundary adapters."""
    quota_limit: int = NISA_ANNUAL_LIMIT
    default_fx_rate: float = DEFAULT_FX_RATE
    fx_endpoint: str = FX_ENDPOINT
    fx_timeout: float = 10.0
    home_currency: str = "JPY"
    foreign_currency: str = "USD"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LedgerSettings":
        """
        Build settings, overriding defaults with TRADELOG_* variables.

        Args:
            environ: Mapping to read from, defaults to os.environ
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            quota_limit=int(env.get("TRADELOG_QUOTA_LIMIT", defaults.quota_limit)),
            default_fx_rate=float(env.get("TRADELOG_FX_RATE", defaults.default_fx_rate)),
            fx_endpoint=env.get("TRADELOG_FX_ENDPOINT", defaults.fx_endpoint),
            fx_timeout=float(env.get("TRADELOG_FX_TIMEOUT", defaults.fx_timeout)),
        )
