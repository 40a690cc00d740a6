"""
Wallet asset models for the Binance exporter.

Amounts are kept exactly as the exchange sends them (decimal strings) and
only converted on demand.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List


# Python field name -> wire key
_WIRE_KEYS = {
    "asset": "asset",
    "free": "free",
    "locked": "locked",
    "freeze": "freeze",
    "withdrawing": "withdrawing",
    "ipoable": "ipoable",
    "btc_valuation": "btcValuation",
}

AMOUNT_FIELDS = ("free", "locked", "freeze", "withdrawing", "ipoable", "btc_valuation")


@dataclass(frozen=True)
class Asset:
    """Balance of a single asset in a wallet."""
    asset: str
    free: str = "0"
    locked: str = "0"
    freeze: str = "0"
    withdrawing: str = "0"
    ipoable: str = "0"
    btc_valuation: str = "0"

    @classmethod
    def from_dict(cls, data: Any) -> "Asset":
        """
        Build an Asset from one element of the wallet response.

        Raises:
            ValueError: If the element is not an object or has no asset symbol
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

        symbol = data.get("asset")
        if not isinstance(symbol, str) or not symbol:
            raise ValueError(f"Invalid asset symbol: {symbol!r}")

        values = {"asset": symbol}
        for name in AMOUNT_FIELDS:
            raw = data.get(_WIRE_KEYS[name])
            if raw is None:
                continue
            if not isinstance(raw, str):
                raise ValueError(f"Amount {_WIRE_KEYS[name]} of {symbol} must be a string, got {raw!r}")
            values[name] = raw

        return cls(**values)

    def amount(self, name: str) -> Decimal:
        """Return one amount field as a Decimal."""
        if name not in AMOUNT_FIELDS:
            raise KeyError(name)
        return Decimal(getattr(self, name))


def parse_assets(data: Any) -> List[Asset]:
    """
    Decode a wallet response body into a list of assets.

    Raises:
        ValueError: If the body is not an array or any element is invalid
    """
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array, got {type(data).__name__}")
    return [Asset.from_dict(item) for item in data]
