"""NetSuite environment selection and credential loading.

Two environments are supported, selected by NETSUITE_ENVIRONMENT
(default: sandbox). Credentials are read per environment:

    NETSUITE_SANDBOX_ACCOUNT_ID, NETSUITE_SANDBOX_CONSUMER_KEY, ...
    NETSUITE_PRODUCTION_ACCOUNT_ID, ...

with the unprefixed NETSUITE_ACCOUNT_ID etc. as fallback. A .env file at the
repository root is loaded on import.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv

env_path = Path(__file__).resolve().parents[2] / ".env"
if env_path.exists():
    load_dotenv(env_path)

from connectors.erp_base import ERPConfig, ERPConnector, create_connector
from connectors.netsuite.ns_auth import DEFAULT_SIGNATURE_METHOD
import connectors.netsuite.ns_connector  # noqa: F401  registers "netsuite"
from core.models import SyncSettings


PRODUCTION = "production"
SANDBOX = "sandbox"
AVAILABLE_ENVIRONMENTS = (PRODUCTION, SANDBOX)
DEFAULT_ENVIRONMENT = SANDBOX

CREDENTIAL_FIELDS = ("account_id", "consumer_key", "consumer_secret", "token_id", "token_secret", "base_url")


@dataclass
class NSCredentials:
    """Credentials for one NetSuite environment."""
    environment: str
    account_id: str = ""
    consumer_key: str = ""
    consumer_secret: str = ""
    token_id: str = ""
    token_secret: str = ""
    base_url: str = ""
    signature_method: str = DEFAULT_SIGNATURE_METHOD.value

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION

    @property
    def is_sandbox(self) -> bool:
        return self.environment == SANDBOX

    def to_erp_config(self, custom_settings: Optional[Dict[str, Any]] = None) -> ERPConfig:
        """ERPConfig for create_connector()."""
        return ERPConfig(
            connector_type="netsuite",
            environment=self.environment,
            base_url=self.base_url,
            account_id=self.account_id,
            auth_config={
                "consumer_key": self.consumer_key,
                "consumer_secret": self.consumer_secret,
                "token_id": self.token_id,
                "token_secret": self.token_secret,
                "signature_method": self.signature_method,
            },
            custom_settings=dict(custom_settings or {}),
        )


@dataclass
class EnvironmentValidation:
    """Result of validate_environment()."""
    environment: str
    issues: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues


def current_environment(environ: Optional[Mapping[str, str]] = None) -> str:
    """Selected environment name, lowercased."""
    environ = os.environ if environ is None else environ
    return (environ.get("NETSUITE_ENVIRONMENT") or DEFAULT_ENVIRONMENT).strip().lower()


def load_credentials(
    environment: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> NSCredentials:
    """Read credentials for an environment (default: the selected one)."""
    environ = os.environ if environ is None else environ
    environment = (environment or current_environment(environ)).lower()
    prefix = f"NETSUITE_{environment.upper()}_"

    def read(name: str) -> str:
        return environ.get(prefix + name.upper()) or environ.get(f"NETSUITE_{name.upper()}") or ""

    return NSCredentials(
        environment=environment,
        account_id=read("account_id"),
        consumer_key=read("consumer_key"),
        consumer_secret=read("consumer_secret"),
        token_id=read("token_id"),
        token_secret=read("token_secret"),
        base_url=read("base_url"),
        signature_method=read("signature_method") or DEFAULT_SIGNATURE_METHOD.value,
    )


def validate_environment(credentials: Optional[NSCredentials] = None) -> EnvironmentValidation:
    """Check that credentials are complete and point at the right kind of account.

    Sandbox account ids carry "_SB" and sandbox hosts carry "-sb"; production
    must have neither.
    """
    credentials = credentials or load_credentials()
    result = EnvironmentValidation(environment=credentials.environment)

    if credentials.environment not in AVAILABLE_ENVIRONMENTS:
        result.issues.append(f"Invalid environment: {credentials.environment}")

    for name in CREDENTIAL_FIELDS:
        if not getattr(credentials, name):
            result.issues.append(f"Missing or empty credential field: {name}")

    account_id = credentials.account_id
    if account_id:
        if credentials.is_production and "_SB" in account_id:
            result.issues.append("Production environment should not use sandbox account ID")
        if credentials.is_sandbox and "_SB" not in account_id:
            result.issues.append("Sandbox environment should use sandbox account ID (ending with _SB)")

    base_url = credentials.base_url
    if base_url:
        if credentials.is_production and "-sb" in base_url:
            result.issues.append("Production environment should not use sandbox base URL")
        if credentials.is_sandbox and "-sb" not in base_url:
            result.issues.append("Sandbox environment should use sandbox base URL (containing -sb)")

    return result


def get_environment_info(credentials: Optional[NSCredentials] = None) -> Dict[str, Any]:
    """Display-safe summary of the selected environment (no secrets)."""
    credentials = credentials or load_credentials()
    validation = validate_environment(credentials)
    return {
        "environment": credentials.environment,
        "account_id": credentials.account_id,
        "base_url": credentials.base_url,
        "signature_method": credentials.signature_method,
        "is_production": credentials.is_production,
        "is_sandbox": credentials.is_sandbox,
        "available_environments": list(AVAILABLE_ENVIRONMENTS),
        "valid": validation.valid,
        "issues": validation.issues,
    }


def connector_from_env(
    environment: Optional[str] = None,
    settings: Optional[SyncSettings] = None,
) -> ERPConnector:
    """Unconnected NetSuite connector for an environment (default: the selected one).

    Use it as an async context manager to open and close its session.
    """
    credentials = load_credentials(environment)
    settings = settings or SyncSettings.from_env()
    return create_connector(credentials.to_erp_config(settings.model_dump()))
