"""
Environment selection, credential loading and settings tests.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from connectors.erp_base import create_connector
from connectors.netsuite import (
    NetSuiteConnector,
    NSCredentials,
    current_environment,
    get_environment_info,
    load_credentials,
    validate_environment,
)
from core.models import SyncSettings


SANDBOX_ENV = {
    "NETSUITE_ENVIRONMENT": "sandbox",
    "NETSUITE_SANDBOX_ACCOUNT_ID": "1234567_SB1",
    "NETSUITE_SANDBOX_CONSUMER_KEY": "ck",
    "NETSUITE_SANDBOX_CONSUMER_SECRET": "cs",
    "NETSUITE_SANDBOX_TOKEN_ID": "tk",
    "NETSUITE_SANDBOX_TOKEN_SECRET": "ts",
    "NETSUITE_SANDBOX_BASE_URL": "https://1234567-sb1.suitetalk.api.netsuite.com",
}


def production_credentials(**overrides) -> NSCredentials:
    fields = dict(
        environment="production",
        account_id="1234567",
        consumer_key="ck",
        consumer_secret="cs",
        token_id="tk",
        token_secret="ts",
        base_url="https://1234567.suitetalk.api.netsuite.com",
    )
    fields.update(overrides)
    return NSCredentials(**fields)


class TestEnvironmentSelection:

    def test_default_is_sandbox(self):
        assert current_environment({}) == "sandbox"

    def test_case_insensitive(self):
        assert current_environment({"NETSUITE_ENVIRONMENT": " PRODUCTION "}) == "production"


class TestLoadCredentials:

    def test_prefixed_variables(self):
        credentials = load_credentials(environ=SANDBOX_ENV)
        assert credentials.environment == "sandbox"
        assert credentials.account_id == "1234567_SB1"
        assert credentials.token_secret == "ts"
        assert credentials.signature_method == "HMAC-SHA256"

    def test_unprefixed_fallback(self):
        environ = {"NETSUITE_ACCOUNT_ID": "1234567", "NETSUITE_PRODUCTION_TOKEN_ID": "ptk", "NETSUITE_TOKEN_ID": "tk"}
        credentials = load_credentials("production", environ)
        assert credentials.account_id == "1234567"
        assert credentials.token_id == "ptk"
        assert credentials.consumer_key == ""

    def test_explicit_environment_wins(self):
        credentials = load_credentials("Production", SANDBOX_ENV)
        assert credentials.environment == "production"
        assert credentials.account_id == ""

    def test_erp_config(self):
        config = load_credentials(environ=SANDBOX_ENV).to_erp_config({"default_item_id": 15001})
        assert config.connector_type == "netsuite"
        assert config.auth_config["consumer_secret"] == "cs"
        assert config.custom_settings == {"default_item_id": 15001}

    def test_connector_from_config(self):
        config = load_credentials(environ=SANDBOX_ENV).to_erp_config()
        assert isinstance(create_connector(config), NetSuiteConnector)


class TestValidateEnvironment:

    def test_valid_sandbox(self):
        result = validate_environment(load_credentials(environ=SANDBOX_ENV))
        assert result.valid
        assert result.issues == []

    def test_valid_production(self):
        assert validate_environment(production_credentials()).valid

    def test_missing_fields(self):
        result = validate_environment(production_credentials(token_id="", base_url=""))
        assert "Missing or empty credential field: token_id" in result.issues
        assert "Missing or empty credential field: base_url" in result.issues

    def test_production_with_sandbox_account(self):
        result = validate_environment(production_credentials(
            account_id="1234567_SB1",
            base_url="https://1234567-sb1.suitetalk.api.netsuite.com",
        ))
        assert result.issues == [
            "Production environment should not use sandbox account ID",
            "Production environment should not use sandbox base URL",
        ]

    def test_sandbox_with_production_account(self):
        result = validate_environment(production_credentials(environment="sandbox"))
        assert result.issues == [
            "Sandbox environment should use sandbox account ID (ending with _SB)",
            "Sandbox environment should use sandbox base URL (containing -sb)",
        ]

    def test_unknown_environment(self):
        result = validate_environment(production_credentials(environment="staging"))
        assert "Invalid environment: staging" in result.issues

    def test_info_has_no_secrets(self):
        info = get_environment_info(load_credentials(environ=SANDBOX_ENV))
        assert info["valid"] is True
        assert info["available_environments"] == ["production", "sandbox"]
        assert "consumer_secret" not in info
        assert "token_secret" not in info


class TestSyncSettings:

    def test_defaults(self):
        settings = SyncSettings()
        assert settings.default_subsidiary_id == 1
        assert settings.default_department_id == 3
        assert settings.default_item_id == 14238
        assert settings.total_tolerance == Decimal("0.01")
        assert settings.fail_on_total_mismatch is False

    def test_from_env(self):
        settings = SyncSettings.from_env({
            "NETSUITE_DEFAULT_ITEM_ID": "15001",
            "NETSUITE_INCLUDE_TAX_AS_LINE_ITEM": "true",
            "NETSUITE_TOTAL_TOLERANCE": "0.05",
            "NETSUITE_ITEM_TYPE": "",
            "NETSUITE_DEFAULT_LOCATION_ID": "2",
        })
        assert settings.default_item_id == 15001
        assert settings.include_tax_as_line_item is True
        assert settings.total_tolerance == Decimal("0.05")
        assert settings.item_type == "inventoryItem"
        assert settings.default_location_id == 2

    def test_default_item_must_be_positive(self):
        with pytest.raises(ValidationError):
            SyncSettings.from_env({"NETSUITE_DEFAULT_ITEM_ID": "0"})


class TestTemporalSettings:

    def test_local_default(self):
        from temporal_client import LOCAL_ENDPOINT, TemporalSettings

        settings = TemporalSettings.from_env({})
        assert settings.endpoint == LOCAL_ENDPOINT == "localhost:7233"
        assert settings.namespace == "default"
        assert settings.is_cloud is False

    def test_cloud(self):
        from temporal_client import TemporalSettings

        settings = TemporalSettings.from_env({
            "TEMPORAL_ENDPOINT": "orders.abc12.tmprl.cloud:7233",
            "TEMPORAL_NAMESPACE": "orders.abc12",
            "TEMPORAL_API_KEY": "key",
        })
        assert settings.is_cloud is True
        assert settings.namespace == "orders.abc12"
        assert settings.cert_path is None

    def test_api_key_needs_endpoint(self):
        from temporal_client import TemporalSettings

        with pytest.raises(ValueError, match="TEMPORAL_ENDPOINT"):
            TemporalSettings.from_env({"TEMPORAL_API_KEY": "key"})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
