"""NetSuite Connector Package.

Implements the ERPConnector interface for NetSuite. Importing this package
registers the "netsuite" connector type.
"""

from connectors.netsuite.ns_auth import NSAuthConfig, RequestSigner, SignatureMethod
from connectors.netsuite.ns_client import (
    ApiGateway,
    NSApiConfig,
    NormalizedResult,
    NSApiError,
    NSAuthenticationError,
    NSNotFoundError,
    NSRateLimitError,
    NSValidationError,
)
from connectors.netsuite.ns_query import QueryExecutor, QueryResult, SuiteQL
from connectors.netsuite.ns_connector import (
    NetSuiteConnector,
    ItemValidation,
    build_customer_payload,
    build_sales_order_payload,
)
from connectors.netsuite.ns_environment import (
    NSCredentials,
    EnvironmentValidation,
    current_environment,
    load_credentials,
    validate_environment,
    get_environment_info,
    connector_from_env,
)

__all__ = [
    # Connector
    "NetSuiteConnector",
    "ItemValidation",
    "build_customer_payload",
    "build_sales_order_payload",
    # Auth
    "NSAuthConfig",
    "RequestSigner",
    "SignatureMethod",
    # Transport
    "ApiGateway",
    "NSApiConfig",
    "NormalizedResult",
    "NSApiError",
    "NSAuthenticationError",
    "NSNotFoundError",
    "NSRateLimitError",
    "NSValidationError",
    # SuiteQL
    "QueryExecutor",
    "QueryResult",
    "SuiteQL",
    # Environment
    "NSCredentials",
    "EnvironmentValidation",
    "current_environment",
    "load_credentials",
    "validate_environment",
    "get_environment_info",
    "connector_from_env",
]
