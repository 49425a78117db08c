"""
selas - async client for the Selas API

Manage customers, credits, tokens and jobs of a Selas account.

Example:
    Session credentials::

        from selas import create_selas_client

        selas = await create_selas_client({"email": "me@example.com", "password": "..."})

        await selas.create_customer("leopold")
        await selas.change_credits("leopold", 10)
        result = await selas.create_token("leopold", quota=1, ttl=60)
        if result.ok:
            print(result.data.key)
        else:
            print(result.error)

    Service credentials::

        selas = await create_selas_client({"app_id": "...", "key": "...", "secret": "..."})
        app_user_id = (await selas.create_app_user()).data

Environment Variables:
    SELAS_URL: Backend URL override
    SELAS_ANON_KEY: Public API key override
"""

from .client import SelasClient, create_selas_client
from .config import configure, configure_from_env, get_config
from .types import (
    Credentials,
    Customer,
    PasswordCredentials,
    ResponseValidationError,
    Result,
    SelasConfig,
    SelasError,
    ServiceCredentials,
    Token,
    parse_credentials,
)

__version__ = "0.1.0"
__all__ = [
    # Client
    "SelasClient",
    "create_selas_client",
    # Configuration
    "configure",
    "configure_from_env",
    "get_config",
    "SelasConfig",
    # Types
    "Credentials",
    "PasswordCredentials",
    "ServiceCredentials",
    "parse_credentials",
    "Customer",
    "Token",
    "Result",
    # Errors
    "SelasError",
    "ResponseValidationError",
]
