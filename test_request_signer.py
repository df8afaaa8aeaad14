"""
Request signing tests.

Signatures are checked against an independent HMAC over the expected base
string, with the clock and nonce pinned.
"""

import base64
import hashlib
import hmac
from urllib.parse import unquote

import pytest

from connectors.netsuite.ns_auth import (
    NSAuthConfig,
    RequestSigner,
    SignatureMethod,
    percent_encode,
    resolve_signature_method,
)


URL = "https://1234567-sb1.suitetalk.api.netsuite.com/services/rest/query/v1/suiteql"


def make_signer(method: str = "HMAC-SHA256") -> RequestSigner:
    config = NSAuthConfig(
        account_id="1234567_SB1",
        consumer_key="ck",
        consumer_secret="cs&1",
        token_id="tk",
        token_secret="ts",
        signature_method=method,
    )
    return RequestSigner(config, clock=lambda: 1700000000.9, nonce_factory=lambda: "abc123")


def parse_header(header: str) -> dict:
    assert header.startswith("OAuth ")
    fields = {}
    for part in header[len("OAuth "):].split(", "):
        key, value = part.split("=", 1)
        fields[key] = unquote(value.strip('"'))
    return fields


def expected_signature(method: str, url: str, params: dict, key: str, digest) -> str:
    pairs = sorted((k, str(v)) for k, v in params.items())
    param_string = "&".join(f"{percent_encode(k)}={percent_encode(v)}" for k, v in pairs)
    base = "&".join([method, percent_encode(url), percent_encode(param_string)])
    raw = hmac.new(key.encode(), base.encode(), digest).digest()
    return base64.b64encode(raw).decode()


class TestPercentEncode:

    def test_reserved_characters_are_encoded(self):
        assert percent_encode("a b&c=d/e") == "a%20b%26c%3Dd%2Fe"

    def test_unreserved_characters_are_kept(self):
        assert percent_encode("AZaz09-._~") == "AZaz09-._~"


class TestSignatureMethod:

    def test_known_methods(self):
        assert resolve_signature_method("HMAC-SHA1") == SignatureMethod.HMAC_SHA1
        assert resolve_signature_method("HMAC-SHA256") == SignatureMethod.HMAC_SHA256

    def test_unknown_method_falls_back_to_sha256(self):
        assert resolve_signature_method("PLAINTEXT") == SignatureMethod.HMAC_SHA256
        assert make_signer("RSA-SHA1").signature_method == SignatureMethod.HMAC_SHA256


class TestRequestSigner:

    def test_header_carries_realm_and_protocol_params(self):
        fields = parse_header(make_signer().sign("POST", URL, {"limit": 1000}))

        assert fields["realm"] == "1234567_SB1"
        assert fields["oauth_consumer_key"] == "ck"
        assert fields["oauth_token"] == "tk"
        assert fields["oauth_signature_method"] == "HMAC-SHA256"
        assert fields["oauth_timestamp"] == "1700000000"
        assert fields["oauth_nonce"] == "abc123"
        assert fields["oauth_version"] == "1.0"

    def test_sha256_signature_matches_independent_hmac(self):
        fields = parse_header(make_signer().sign("post", URL, {"limit": 1000, "offset": 0}))

        params = {
            "limit": 1000,
            "offset": 0,
            "oauth_consumer_key": "ck",
            "oauth_token": "tk",
            "oauth_signature_method": "HMAC-SHA256",
            "oauth_timestamp": "1700000000",
            "oauth_nonce": "abc123",
            "oauth_version": "1.0",
        }
        expected = expected_signature("POST", URL, params, "cs%261&ts", hashlib.sha256)
        assert fields["oauth_signature"] == expected

    def test_sha1_signature_matches_independent_hmac(self):
        fields = parse_header(make_signer("HMAC-SHA1").sign("GET", URL))

        params = {
            "oauth_consumer_key": "ck",
            "oauth_token": "tk",
            "oauth_signature_method": "HMAC-SHA1",
            "oauth_timestamp": "1700000000",
            "oauth_nonce": "abc123",
            "oauth_version": "1.0",
        }
        expected = expected_signature("GET", URL, params, "cs%261&ts", hashlib.sha1)
        assert fields["oauth_signature"] == expected

    def test_query_string_in_url_is_signed_like_params(self):
        signer = make_signer()
        from_url = parse_header(signer.sign("GET", URL + "?limit=5"))
        from_params = parse_header(signer.sign("GET", URL, {"limit": 5}))
        assert from_url["oauth_signature"] == from_params["oauth_signature"]

    def test_params_change_the_signature(self):
        signer = make_signer()
        first = parse_header(signer.sign("POST", URL, {"limit": 1}))
        second = parse_header(signer.sign("POST", URL, {"limit": 2}))
        assert first["oauth_signature"] != second["oauth_signature"]

    def test_fresh_nonce_per_request(self):
        nonces = iter(["n1", "n2"])
        signer = RequestSigner(
            NSAuthConfig("1", "ck", "cs", "tk", "ts"),
            clock=lambda: 1700000000,
            nonce_factory=lambda: next(nonces),
        )
        assert parse_header(signer.sign("GET", URL))["oauth_nonce"] == "n1"
        assert parse_header(signer.sign("GET", URL))["oauth_nonce"] == "n2"

    def test_normalize_params_sorts_and_encodes(self):
        assert RequestSigner.normalize_params({"b": "x y", "a": 1}) == "a=1&b=x%20y"


class TestAuthConfig:

    def test_missing_fields(self):
        config = NSAuthConfig(account_id="1", consumer_key="", consumer_secret="cs", token_id="", token_secret="ts")
        assert config.missing_fields() == ["consumer_key", "token_id"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
