"""NetSuite HTTP Gateway.

Low-level HTTP client for NetSuite REST calls.
Handles request signing, routing between the record and SuiteQL endpoints,
response normalization and error mapping.

Every call is a single attempt. Retry policy belongs to the caller
(Temporal activity options), not to this layer.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
import asyncio
import json
import logging
import re
import time

import aiohttp

from connectors.netsuite.ns_auth import RequestSigner
from core.observability.metrics import record_api_call

logger = logging.getLogger(__name__)


SUITEQL_ENDPOINT = "/query/v1/suiteql"

# Trailing numeric id of a Location header, e.g. .../record/v1/customer/4521
LOCATION_ID_PATTERN = re.compile(r"/(\d+)/?$")


class NSApiError(Exception):
    """Base exception for NetSuite API errors."""
    def __init__(
        self,
        message: str,
        status_code: int = 0,
        response_body: str = "",
        error_details: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.error_details = error_details or []


class NSAuthenticationError(NSApiError):
    """Authentication failed (401/403)."""
    pass


class NSNotFoundError(NSApiError):
    """Record not found (404)."""
    pass


class NSRateLimitError(NSApiError):
    """Concurrency or request limit exceeded (429)."""
    pass


class NSValidationError(NSApiError):
    """Validation error from NetSuite (400)."""
    pass


_STATUS_ERRORS = {
    400: NSValidationError,
    401: NSAuthenticationError,
    403: NSAuthenticationError,
    404: NSNotFoundError,
    429: NSRateLimitError,
}


def parse_error_details(response_text: str) -> List[str]:
    """Pull the human-readable messages out of a NetSuite error body.

    NetSuite returns errors as:
        {"title": "...", "status": 400, "o:errorDetails": [{"detail": "...", "o:errorCode": "..."}]}
    """
    if not response_text:
        return []
    try:
        payload = json.loads(response_text)
    except ValueError:
        return []
    if not isinstance(payload, dict):
        return []

    details = []
    for entry in payload.get("o:errorDetails") or []:
        if not isinstance(entry, dict):
            continue
        detail = entry.get("detail") or ""
        code = entry.get("o:errorCode")
        details.append(f"{code}: {detail}" if code else detail)
    if not details and payload.get("title"):
        details.append(str(payload["title"]))
    return details


def extract_id_from_location(location: Optional[str], record_type: Optional[str] = None) -> Optional[str]:
    """Extract the new record id from a Location header.

    Args:
        location: Location header value (may be None)
        record_type: When given, the id must follow this path segment
            (e.g. "customer" matches ".../customer/4521")

    Returns:
        The id as a string, or None if absent or unparsable
    """
    if not location:
        return None
    if record_type:
        match = re.search(rf"/{re.escape(record_type)}/(\d+)/?$", location, re.IGNORECASE)
    else:
        match = LOCATION_ID_PATTERN.search(location)
    return match.group(1) if match else None


@dataclass
class NSApiConfig:
    """Configuration for the NetSuite gateway."""
    base_url: str
    rest_api_version: str = "v1"
    timeout_seconds: int = 60

    def get_record_base_url(self) -> str:
        """Base URL for record endpoints."""
        return f"{self.base_url.rstrip('/')}/services/rest/record/{self.rest_api_version}"

    def get_rest_base_url(self) -> str:
        """Base URL for non-record REST services (SuiteQL)."""
        return f"{self.base_url.rstrip('/')}/services/rest"

    def build_url(self, endpoint: str) -> str:
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint
        if endpoint.startswith(SUITEQL_ENDPOINT):
            return self.get_rest_base_url() + endpoint
        return self.get_record_base_url() + endpoint


@dataclass
class NormalizedResult:
    """Uniform view over NetSuite's success responses.

    Some operations answer 200/201 with the record as JSON; creates usually
    answer 204 with no body and point at the new record through Location.
    """
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)
    location: Optional[str] = None
    created_id: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def has_body(self) -> bool:
        return bool(self.body)

    @property
    def record_id(self) -> Optional[str]:
        """Id from the body when present, else from the Location header."""
        body_id = self.body.get("id") if self.body else None
        if body_id not in (None, ""):
            return str(body_id)
        return self.created_id


class ApiGateway:
    """HTTP gateway for the NetSuite REST API.

    Provides:
    - Signed requests (fresh timestamp/nonce per call)
    - Routing between record endpoints and SuiteQL
    - Response normalization (body vs. Location header)
    - Typed errors that keep the upstream response body

    Usage:
        gateway = ApiGateway(signer, NSApiConfig(base_url="https://1234567.suitetalk.api.netsuite.com"))
        await gateway.connect()
        result = await gateway.execute("GET", "/customer/4521")
        await gateway.disconnect()
    """

    def __init__(self, signer: RequestSigner, api_config: NSApiConfig, session: Optional[aiohttp.ClientSession] = None):
        """Initialize gateway.

        Args:
            signer: RequestSigner for the Authorization header
            api_config: Base URL, API version, timeout
            session: Optional pre-built session (the gateway will not close it)
        """
        self.signer = signer
        self.api_config = api_config
        self._session = session
        self._owns_session = session is None

    async def connect(self) -> None:
        """Open the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def disconnect(self) -> None:
        """Close the HTTP session if this gateway opened it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "ApiGateway":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    def _get_headers(self, method: str, url: str, query_params: Optional[Dict[str, Any]], endpoint: str) -> Dict[str, str]:
        headers = {
            "Authorization": self.signer.sign(method, url, query_params),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if endpoint.startswith(SUITEQL_ENDPOINT):
            headers["Prefer"] = "transient"
        return headers

    async def execute(
        self,
        method: str,
        endpoint: str,
        body: Optional[Dict[str, Any]] = None,
        query_params: Optional[Dict[str, Any]] = None,
    ) -> NormalizedResult:
        """Make one signed API request.

        Args:
            method: HTTP method
            endpoint: Record path (e.g. "/customer/4521") or "/query/v1/suiteql"
            body: JSON body
            query_params: Query string parameters (included in the signature)

        Returns:
            NormalizedResult

        Raises:
            NSAuthenticationError: 401/403
            NSNotFoundError: 404
            NSRateLimitError: 429
            NSValidationError: 400
            NSApiError: Other non-2xx responses and network failures
        """
        if self._session is None:
            raise NSApiError("Not connected. Call connect() first.")

        method = method.upper()
        url = self.api_config.build_url(endpoint)
        params = {k: str(v) for k, v in (query_params or {}).items()}
        headers = self._get_headers(method, url, params, endpoint)
        timeout = aiohttp.ClientTimeout(total=self.api_config.timeout_seconds)

        start = time.monotonic()
        try:
            async with self._session.request(
                method,
                url,
                headers=headers,
                params=params or None,
                json=body,
                timeout=timeout,
            ) as response:
                response_text = await response.text()
                status = response.status
                location = response.headers.get("Location")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            duration_ms = (time.monotonic() - start) * 1000
            record_api_call(method, 0, duration_ms)
            logger.error(f"NetSuite {method} {endpoint} failed after {duration_ms:.0f}ms: {type(e).__name__}: {e}")
            raise NSApiError(f"Request to {endpoint} failed: {type(e).__name__}: {e}") from e

        duration_ms = (time.monotonic() - start) * 1000
        record_api_call(method, status, duration_ms)

        if status >= 400:
            details = parse_error_details(response_text)
            logger.error(
                f"NetSuite {method} {endpoint} -> {status} in {duration_ms:.0f}ms: "
                f"{'; '.join(details) or response_text[:500]}"
            )
            error_cls = _STATUS_ERRORS.get(status, NSApiError)
            raise error_cls(
                f"NetSuite API error {status} on {method} {endpoint}"
                + (f": {'; '.join(details)}" if details else ""),
                status,
                response_text,
                details,
            )

        logger.info(f"NetSuite {method} {endpoint} -> {status} in {duration_ms:.0f}ms")

        parsed: Dict[str, Any] = {}
        if response_text:
            try:
                loaded = json.loads(response_text)
            except ValueError:
                logger.warning(f"Non-JSON body from {method} {endpoint}: {response_text[:200]}")
                loaded = {}
            if isinstance(loaded, dict):
                parsed = loaded
            else:
                parsed = {"items": loaded}

        created_id = extract_id_from_location(location)
        if status == 204 and method == "POST" and not created_id:
            logger.warning(f"NetSuite {method} {endpoint} returned 204 without a usable Location header: {location!r}")

        return NormalizedResult(
            status_code=status,
            body=parsed,
            location=location,
            created_id=created_id,
            duration_ms=duration_ms,
        )
