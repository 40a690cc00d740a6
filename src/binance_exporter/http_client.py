"""
HTTP client for the Binance API.

Builds authenticated requests (unsigned GET, signed POST) and executes them
with a fixed deadline. Follows pure core/impure edges principle: building a
request never touches the network, sending one never touches credentials.
"""

import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, Optional

import aiohttp
from aiohttp import ClientResponse, ClientSession
from yarl import URL

from .auth import BinanceSigner
from .constants import DEFAULT_BASE_URL, ERROR_STATUS_CODE, REQUEST_TIMEOUT, SUCCESS_STATUS_CODE
from .errors import DecodeError, HttpClientError, RequestBuildError
from .monitoring import PerformanceMonitor

logger = logging.getLogger(__name__)


def now_millis() -> int:
    """Milliseconds since epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class PreparedRequest:
    """A fully built request, ready to be sent."""
    method: str
    path: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: aiohttp.ClientTimeout = field(
        default_factory=lambda: aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)
    )


class RequestBuilder:
    """Assembles authenticated requests against a single base URL."""

    def __init__(
        self,
        signer: BinanceSigner,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        clock: Callable[[], int] = now_millis,
    ):
        """
        Initialize the builder.

        Args:
            signer: Signer holding the API credentials
            base_url: Exchange host, without trailing slash
            timeout: Total deadline for every request in seconds
            clock: Returns the current time in milliseconds, read on every
                signed request
        """
        self._signer = signer
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._clock = clock

    @property
    def base_url(self) -> str:
        return self._base_url

    def build_get(self, path: str) -> PreparedRequest:
        """Build an unsigned GET request carrying only the API key header."""
        self._validate_path(path)
        return PreparedRequest(
            method="GET",
            path=path.partition("?")[0],
            url=f"{self._base_url}/{path}",
            headers=self._signer.get_auth_headers(),
            timeout=aiohttp.ClientTimeout(total=self._timeout),
        )

    def build_post(self, path: str) -> PreparedRequest:
        """
        Build a signed POST request.

        The existing query of ``path`` (if any) gets a fresh timestamp
        appended, the result is signed and the signature appended last.
        """
        self._validate_path(path)
        root, payload, signature = self._signer.sign_path(path, self._clock())
        return PreparedRequest(
            method="POST",
            path=root,
            url=f"{self._base_url}/{root}?{payload}&signature={signature}",
            headers=self._signer.get_auth_headers(),
            timeout=aiohttp.ClientTimeout(total=self._timeout),
        )

    @staticmethod
    def _validate_path(path: str) -> None:
        if not isinstance(path, str) or not path:
            raise RequestBuildError("Request path cannot be empty")
        if path.startswith("/"):
            raise RequestBuildError(f"Request path must be relative: {path!r}")
        if any(ch.isspace() for ch in path):
            raise RequestBuildError(f"Request path contains whitespace: {path!r}")
        if not path.partition("?")[0]:
            raise RequestBuildError(f"Request path has no root before the query: {path!r}")


class HttpClient:
    """Executes prepared requests and decodes JSON responses."""

    def __init__(self, monitor: Optional[PerformanceMonitor] = None):
        """Initialize HTTP client with an optional performance monitor."""
        self._monitor = monitor

    @asynccontextmanager
    async def send(
        self,
        session: ClientSession,
        request: PreparedRequest,
    ) -> AsyncIterator[ClientResponse]:
        """
        Send a request and yield the response.

        The connection and the deadline are released when the block exits,
        whichever way it exits. Transport errors and timeouts are raised as
        HttpClientError.
        """
        logger.debug(f"Making {request.method} request to {request.url}")
        status_code = ERROR_STATUS_CODE

        try:
            async with session.request(
                request.method,
                URL(request.url, encoded=True),
                headers=request.headers,
                timeout=request.timeout,
            ) as response:
                status_code = response.status
                logger.debug(f"Got response from {request.path} with status code {status_code}")
                yield response
        except asyncio.TimeoutError as e:
            raise HttpClientError(
                f"Request to {request.path} timed out after {request.timeout.total}s"
            ) from e
        except aiohttp.ClientError as e:
            raise HttpClientError(f"Request to {request.path} failed: {e}") from e
        finally:
            if self._monitor is not None:
                self._monitor.record_request(request.path, request.method, status_code)

    async def request_json(self, session: ClientSession, request: PreparedRequest) -> Any:
        """
        Send a request and decode its JSON body.

        Raises:
            HttpClientError: On transport error or a non-200 status
            DecodeError: If the body is not valid JSON
        """
        async with self.send(session, request) as response:
            if response.status != SUCCESS_STATUS_CODE:
                response_text = await response.text(errors="replace")
                raise HttpClientError(
                    f"HTTP {response.status} from {request.path}: {response_text[:200]}",
                    status_code=response.status,
                    response_data=response_text,
                )

            body = await response.read()
            try:
                return json.loads(body)
            except ValueError as e:
                # JSONDecodeError and UnicodeDecodeError
                raise DecodeError(
                    f"Invalid JSON response from {request.path}: {body[:200]!r}"
                ) from e
