"""Temporal client factory for the order sync worker and starter scripts.

With TEMPORAL_API_KEY set the client connects to Temporal Cloud over TLS;
without it, to a local development server (temporal server start-dev).
"""

import os
import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

# Load .env file if it exists
from dotenv import load_dotenv
env_path = Path(__file__).resolve().parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from temporalio.client import Client


LOCAL_ENDPOINT = "localhost:7233"


@dataclass(frozen=True)
class TemporalSettings:
    """Connection settings read from TEMPORAL_* variables."""
    endpoint: str
    namespace: str = "default"
    api_key: Optional[str] = None
    cert_path: Optional[str] = None

    @property
    def is_cloud(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TemporalSettings":
        """
        - TEMPORAL_ENDPOINT: host:port (default: localhost:7233 without an API key)
        - TEMPORAL_NAMESPACE: Namespace (default: "default")
        - TEMPORAL_API_KEY: Temporal Cloud API key; enables TLS
        - TEMPORAL_CERT_PATH: Client certificate chain for mTLS (optional)

        Raises:
            ValueError: An API key is set but no Cloud endpoint is
        """
        environ = os.environ if environ is None else environ
        api_key = environ.get("TEMPORAL_API_KEY") or None
        endpoint = environ.get("TEMPORAL_ENDPOINT") or ""

        if not endpoint:
            if api_key:
                raise ValueError(
                    "TEMPORAL_ENDPOINT environment variable not set. "
                    "Set to your Temporal Cloud endpoint (e.g., 'orders.abc12.tmprl.cloud:7233')"
                )
            endpoint = LOCAL_ENDPOINT

        return cls(
            endpoint=endpoint,
            namespace=environ.get("TEMPORAL_NAMESPACE") or "default",
            api_key=api_key,
            cert_path=environ.get("TEMPORAL_CERT_PATH") or None,
        )


async def get_temporal_client(settings: Optional[TemporalSettings] = None) -> Client:
    """Connect using settings from the environment unless given explicitly."""
    settings = settings or TemporalSettings.from_env()

    if not settings.is_cloud:
        return await Client.connect(settings.endpoint, namespace=settings.namespace)

    tls_config = ssl.create_default_context()
    if settings.cert_path:
        tls_config.load_cert_chain(settings.cert_path)

    return await Client.connect(
        target_host=settings.endpoint,
        namespace=settings.namespace,
        tls=tls_config,
        api_key=settings.api_key,
    )
