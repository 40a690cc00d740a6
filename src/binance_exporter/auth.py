"""
Authentication and signing utilities for the Binance API.

Binance security types:

    NONE         Endpoint can be accessed freely.
    TRADE        Endpoint requires a valid API-Key and signature.
    MARGIN       Endpoint requires a valid API-Key and signature.
    USER_DATA    Endpoint requires a valid API-Key and signature.
    USER_STREAM  Endpoint requires a valid API-Key.
    MARKET_DATA  Endpoint requires a valid API-Key.

TRADE, MARGIN and USER_DATA endpoints are SIGNED endpoints.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple
import hashlib
import hmac
import logging

from .constants import API_KEY_HEADER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiCredentials:
    """Container for API credentials"""
    api_key: str
    api_secret: str = field(repr=False)


def sign(secret: str, payload: str) -> str:
    """
    Generate HMAC-SHA256 signature of a payload.

    Args:
        secret: Key used for the HMAC
        payload: Canonical string to sign (query string without signature)

    Returns:
        Lowercase hex-encoded HMAC-SHA256 digest
    """
    return hmac.new(
        secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256
    ).hexdigest()


class BinanceSigner:
    """
    Handles request signing for Binance API authentication.

    Holds no mutable state, so one instance can be shared between
    concurrent requests.
    """

    def __init__(self, credentials: ApiCredentials):
        """
        Initialize the signer with API credentials.

        Args:
            credentials: API credentials containing key and secret
        """
        self.credentials = credentials

    def sign(self, payload: str) -> str:
        """Sign a payload with the API secret."""
        return sign(self.credentials.api_secret, payload)

    def sign_path(self, path: str, timestamp_ms: int) -> Tuple[str, str, str]:
        """
        Append a timestamp to the query of a path and sign it.

        Args:
            path: Request path, optionally with a query string
            timestamp_ms: Milliseconds since epoch

        Returns:
            Tuple of (root path, signed payload, signature)
        """
        root, sep, query = path.partition("?")
        if sep:
            payload = f"{query}&timestamp={timestamp_ms}"
        else:
            payload = f"timestamp={timestamp_ms}"

        signature = self.sign(payload)
        logger.debug(f"Generated HMAC sha256 signature {signature} for payload {payload}")
        return root, payload, signature

    def get_auth_headers(self) -> Dict[str, str]:
        """
        Get authentication headers for API requests.

        Returns:
            Dictionary containing required authentication headers
        """
        return {
            API_KEY_HEADER: self.credentials.api_key
        }
