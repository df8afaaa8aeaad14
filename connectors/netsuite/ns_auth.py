"""NetSuite Request Signing.

Token-based authentication (TBA) for the NetSuite REST API. Every request
carries an OAuth 1.0 `Authorization` header signed with HMAC-SHA256
(default) or HMAC-SHA1 (legacy accounts).

Unlike the OAuth2 providers there is no token to fetch or refresh: the
consumer and token secrets are long-lived and each request is signed
independently with a fresh timestamp and nonce.
"""

import base64
import hashlib
import hmac
import logging
import secrets
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Mapping, Optional
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

logger = logging.getLogger(__name__)


class SignatureMethod(str, Enum):
    """Supported OAuth 1.0 signature methods."""
    HMAC_SHA256 = "HMAC-SHA256"
    HMAC_SHA1 = "HMAC-SHA1"


DEFAULT_SIGNATURE_METHOD = SignatureMethod.HMAC_SHA256

_DIGESTS = {
    SignatureMethod.HMAC_SHA256: hashlib.sha256,
    SignatureMethod.HMAC_SHA1: hashlib.sha1,
}


@dataclass
class NSAuthConfig:
    """Configuration for NetSuite token-based authentication.

    Attributes:
        account_id: NetSuite account id, used as the OAuth realm (e.g. "1234567_SB1")
        consumer_key: Integration record consumer key
        consumer_secret: Integration record consumer secret
        token_id: Access token id
        token_secret: Access token secret
        signature_method: "HMAC-SHA256" or "HMAC-SHA1"
    """
    account_id: str
    consumer_key: str
    consumer_secret: str
    token_id: str
    token_secret: str
    signature_method: str = DEFAULT_SIGNATURE_METHOD.value

    def missing_fields(self) -> list:
        """Names of credential fields that are empty."""
        names = ["account_id", "consumer_key", "consumer_secret", "token_id", "token_secret"]
        return [name for name in names if not getattr(self, name)]


def percent_encode(value) -> str:
    """RFC 3986 percent-encoding (only unreserved characters left as-is)."""
    return quote(str(value), safe="~")


def resolve_signature_method(configured: Optional[str]) -> SignatureMethod:
    """Map a configured method name to a SignatureMethod.

    Unknown values fall back to HMAC-SHA256 with a warning.
    """
    try:
        return SignatureMethod(configured)
    except ValueError:
        logger.warning(
            f"Invalid signature method {configured!r} in config, "
            f"defaulting to {DEFAULT_SIGNATURE_METHOD.value}"
        )
        return DEFAULT_SIGNATURE_METHOD


class RequestSigner:
    """Produces OAuth 1.0 Authorization headers for NetSuite requests.

    Usage:
        signer = RequestSigner(NSAuthConfig(...))
        header = signer.sign("POST", "https://1234567.suitetalk.api.netsuite.com/services/rest/query/v1/suiteql",
                             {"limit": 1000})
    """

    def __init__(
        self,
        config: NSAuthConfig,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[], str] = lambda: secrets.token_hex(16),
    ):
        """Initialize the signer.

        Args:
            config: Token-based auth credentials
            clock: Returns the current unix time (overridable in tests)
            nonce_factory: Returns a fresh nonce per call (overridable in tests)
        """
        self.config = config
        self.signature_method = resolve_signature_method(config.signature_method)
        self._clock = clock
        self._nonce_factory = nonce_factory

    def oauth_params(self) -> Dict[str, str]:
        """Fresh protocol parameters for one request."""
        return {
            "oauth_consumer_key": self.config.consumer_key,
            "oauth_token": self.config.token_id,
            "oauth_signature_method": self.signature_method.value,
            "oauth_timestamp": str(int(self._clock())),
            "oauth_nonce": self._nonce_factory(),
            "oauth_version": "1.0",
        }

    @staticmethod
    def normalize_params(params: Mapping[str, object]) -> str:
        """Sort by key and join as percent-encoded k=v pairs."""
        pairs = sorted((str(k), str(v)) for k, v in params.items())
        return "&".join(f"{percent_encode(k)}={percent_encode(v)}" for k, v in pairs)

    @staticmethod
    def base_string(method: str, url: str, param_string: str) -> str:
        """Signature base string: METHOD&enc(url)&enc(params)."""
        return "&".join([method.upper(), percent_encode(url), percent_encode(param_string)])

    def signing_key(self) -> str:
        return f"{percent_encode(self.config.consumer_secret)}&{percent_encode(self.config.token_secret)}"

    def compute_signature(self, base_string: str) -> str:
        digest = hmac.new(
            self.signing_key().encode("utf-8"),
            base_string.encode("utf-8"),
            _DIGESTS[self.signature_method],
        ).digest()
        return base64.b64encode(digest).decode("ascii")

    def sign(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, object]] = None,
    ) -> str:
        """Build the Authorization header value for one request.

        Args:
            method: HTTP method
            url: Target URL; any query string is folded into the signed params
            params: Query parameters that will be sent with the request

        Returns:
            Header value like 'OAuth realm="123", oauth_consumer_key="...", ...'
        """
        parts = urlsplit(url)
        bare_url = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))

        request_params: Dict[str, object] = dict(parse_qsl(parts.query, keep_blank_values=True))
        if params:
            request_params.update(params)

        oauth = self.oauth_params()
        all_params: Dict[str, object] = dict(request_params)
        all_params.update(oauth)

        base = self.base_string(method, bare_url, self.normalize_params(all_params))
        oauth["oauth_signature"] = self.compute_signature(base)

        header = f'OAuth realm="{self.config.account_id}"'
        for key, value in oauth.items():
            header += f', {key}="{percent_encode(value)}"'
        return header
