"""
SelasClient - credential-scoped access to the Selas backend.

Every method issues exactly one call to the backend (a table query or a
remote procedure) and shapes the answer into a :class:`~selas.types.Result`.
Nothing is cached between calls.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, TYPE_CHECKING

from postgrest.exceptions import APIError
from supabase import AuthError, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from .config import get_config
from .models import (
    first_row,
    parse_credits,
    parse_customer,
    parse_flag,
    parse_identifier,
    parse_token,
)
from .types import (
    Credentials,
    Credits,
    Customer,
    PasswordCredentials,
    ResponseValidationError,
    Result,
    Token,
    parse_credentials,
)

if TYPE_CHECKING:
    from types import TracebackType

    from supabase import AsyncClient

__all__ = ["SelasClient", "create_selas_client"]

logger = logging.getLogger(__name__)

CUSTOMERS_TABLE = "customers"
UNIQUE_VIOLATION = "23505"


def _api_message(error: APIError) -> str:
    return error.message or str(error)


def _as_json(value: str | Mapping[str, Any]) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


def _invalid(error: ResponseValidationError) -> Result[Any]:
    logger.warning("Discarding backend response: %s", error)
    return Result(error=f"Invalid response: {error.message}")


class SelasClient:
    """
    Selas client bound to one backend connection and one set of credentials.

    Use :func:`create_selas_client` to build one; the constructor is for
    callers that already hold a connected Supabase ``AsyncClient``.

    Expected failures (unknown customer, duplicate creation, backend errors)
    come back as ``Result(error=...)``. Transport failures such as
    ``httpx.HTTPError`` are not caught and propagate to the caller.

    The instance keeps no per-call state and can be shared between tasks.
    Service credentials are merged into the parameters of every remote
    procedure call. Use the client as an async context manager, or call
    :meth:`close`, to release its HTTP session.

    Example:
        >>> selas = await create_selas_client({"email": "me@example.com", "password": "..."})
        >>> (await selas.create_customer("leopold")).data.credits
        0
        >>> (await selas.change_credits("leopold", 10)).data
        10
        >>> (await selas.create_token("leopold")).data.key
        'tok_...'
    """

    def __init__(self, backend: "AsyncClient", credentials: Credentials) -> None:
        """
        Args:
            backend: Connected Supabase async client
            credentials: Credentials the client acts with
        """
        self._backend = backend
        self._credentials = credentials

    @property
    def backend(self) -> "AsyncClient":
        return self._backend

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    async def close(self) -> None:
        """Close the HTTP session used for table and procedure calls."""
        await self._backend.postgrest.aclose()

    async def __aenter__(self) -> SelasClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _call(self, name: str, params: Mapping[str, Any]) -> Any:
        # Every procedure goes out with the credential parameters merged in.
        payload = {**params, **self._credentials.as_params()}
        logger.debug("Calling remote procedure %s", name)
        return await self._backend.rpc(name, payload).execute()

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    async def create_customer(self, id: str) -> Result[Customer]:
        """
        Add a customer. A new customer starts with 0 credits.

        Args:
            id: External id of the customer

        Returns:
            The created customer, or an error if it already exists
        """
        logger.debug("Creating customer %s", id)
        try:
            response = await self._backend.table(CUSTOMERS_TABLE).insert(
                {"external_id": id}
            ).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                return Result(error=f"Customer {id} already exists")
            return Result(error=f"Failed to create customer {id}: {_api_message(e)}")

        row = first_row(response.data)
        if row is None:
            # Row level security may hide the inserted row from the caller.
            return Result(data=Customer(external_id=id, credits=0))
        try:
            return Result(data=parse_customer(row))
        except ResponseValidationError as e:
            return _invalid(e)

    async def get_customer_credits(self, id: str) -> Result[Credits]:
        """
        Get the current credit balance of a customer.

        Args:
            id: External id of the customer

        Returns:
            The number of credits, or an error if the customer is unknown
        """
        logger.debug("Fetching credits of customer %s", id)
        try:
            response = await self._backend.table(CUSTOMERS_TABLE).select("*").eq(
                "external_id", id
            ).execute()
        except APIError as e:
            return Result(error=f"Failed to get credits of customer {id}: {_api_message(e)}")

        row = first_row(response.data)
        if row is None:
            return Result(error=f"Customer {id} unknown")
        try:
            return Result(data=parse_customer(row).credits)
        except ResponseValidationError as e:
            return _invalid(e)

    async def delete_customer(self, id: str) -> Result[Credits]:
        """
        Delete a customer. Its remaining credits go back to the owner account.

        Args:
            id: External id of the customer

        Returns:
            The credits the customer had left, or an error if it is unknown
        """
        logger.debug("Deleting customer %s", id)
        try:
            response = await self._backend.table(CUSTOMERS_TABLE).delete().eq(
                "external_id", id
            ).execute()
        except APIError as e:
            return Result(error=f"Failed to delete customer {id}: {_api_message(e)}")

        row = first_row(response.data)
        if row is None:
            return Result(error=f"Customer {id} unknown")
        try:
            return Result(data=parse_customer(row).credits)
        except ResponseValidationError as e:
            return _invalid(e)

    async def change_credits(self, id: str, delta: Credits) -> Result[Credits]:
        """
        Add credits to a customer, or remove them with a negative delta.

        The backend refuses changes that would leave a negative balance.

        Args:
            id: External id of the customer
            delta: Number of credits to add (negative to remove)

        Returns:
            The new balance, or an error
        """
        logger.debug("Changing credits of customer %s by %s", id, delta)
        try:
            response = await self._call(
                "provide_credits_to_customer",
                {"p_external_id": id, "p_nb_credits": delta},
            )
        except APIError as e:
            return Result(error=f"Failed to change credits of customer {id}: {_api_message(e)}")

        if first_row(response.data) is None:
            return Result(error=f"Customer {id} unknown")
        try:
            return Result(data=parse_credits(response.data))
        except ResponseValidationError as e:
            return _invalid(e)

    async def create_token(
        self,
        id: str,
        quota: Credits = 1,
        ttl: int = 60,
        description: str = "",
    ) -> Result[Token]:
        """
        Issue a token a customer can use against the API.

        Args:
            id: External id of the customer
            quota: Maximum number of credits the token may spend
            ttl: Lifetime of the token in seconds
            description: Free-form note stored with the token

        Returns:
            The token record including its secret ``key``
        """
        logger.debug("Creating token for customer %s (quota=%s, ttl=%s)", id, quota, ttl)
        try:
            response = await self._call(
                "create_token",
                {
                    "target_external_id": id,
                    "target_quota": quota,
                    "target_ttl": ttl,
                    "target_description": description,
                },
            )
        except APIError as e:
            return Result(error=_api_message(e))

        if first_row(response.data) is None:
            return Result(error=f"Customer {id} unknown")
        try:
            token = parse_token(response.data)
        except ResponseValidationError as e:
            return _invalid(e)

        return Result(
            data=token,
            message=f"Token created for customer {id} with quota {quota} and scope customer.",
        )

    # ------------------------------------------------------------------
    # Application users
    # ------------------------------------------------------------------

    async def rpc(self, name: str, params: Mapping[str, Any] | None = None) -> Result[Any]:
        """
        Call a remote procedure with the client's credentials attached.

        Service credentials add ``app_id``, ``key`` and ``secret`` to the
        parameters; session credentials add nothing.

        Args:
            name: Procedure name
            params: Procedure parameters

        Returns:
            The raw procedure result, or the backend error message
        """
        try:
            response = await self._call(name, params or {})
        except APIError as e:
            logger.debug("Remote procedure %s failed: %s", name, e)
            return Result(error=_api_message(e))
        return Result(data=response.data)

    async def create_app_user(self) -> Result[str]:
        """Create an application user and return its id."""
        result = await self.rpc("createAppUser")
        if not result.ok:
            return result
        try:
            return Result(data=parse_identifier(result.data))
        except ResponseValidationError as e:
            return _invalid(e)

    async def create_app_user_token(self, app_user_id: str) -> Result[str]:
        """Issue a token for an application user and return its key."""
        result = await self.rpc("createAppUserToken", {"app_user_id": app_user_id})
        if not result.ok:
            return result
        try:
            return Result(data=parse_identifier(result.data))
        except ResponseValidationError as e:
            return _invalid(e)

    async def get_app_user_credits(self, app_user_id: str) -> Result[Credits]:
        result = await self.rpc("getAppUserCredits", {"app_user_id": app_user_id})
        if not result.ok:
            return result
        if first_row(result.data) is None:
            return Result(error=f"App user {app_user_id} unknown")
        try:
            return Result(data=parse_credits(result.data))
        except ResponseValidationError as e:
            return _invalid(e)

    async def add_credit(self, app_user_id: str, amount: Credits) -> Result[Credits]:
        result = await self.rpc("addCredit", {"app_user_id": app_user_id, "amount": amount})
        if not result.ok:
            return result
        if first_row(result.data) is None:
            return Result(error=f"App user {app_user_id} unknown")
        try:
            return Result(data=parse_credits(result.data))
        except ResponseValidationError as e:
            return _invalid(e)

    async def post_job(
        self,
        app_user_id: str,
        app_user_token: str,
        service_id: str,
        job_config: str | Mapping[str, Any],
        worker_filter: str | Mapping[str, Any] | None = None,
    ) -> Result[str]:
        """
        Submit a job on behalf of an application user.

        Args:
            app_user_id: Application user the job is billed to
            app_user_token: Token of that user
            service_id: Service that runs the job
            job_config: Job configuration, as a JSON string or a mapping
            worker_filter: Worker selection, as a JSON string or a mapping

        Returns:
            The id of the created job
        """
        result = await self.rpc(
            "postJob",
            {
                "app_user_id": app_user_id,
                "app_user_token": app_user_token,
                "service_id": service_id,
                "job_config": _as_json(job_config),
                "worker_filter": _as_json(worker_filter or {}),
            },
        )
        if not result.ok:
            return result
        try:
            return Result(data=parse_identifier(result.data))
        except ResponseValidationError as e:
            return _invalid(e)

    async def deactivate_app_user(self, app_user_id: str) -> Result[bool]:
        result = await self.rpc("deactivateAppUser", {"app_user_id": app_user_id})
        if not result.ok:
            return result
        try:
            return Result(data=parse_flag(result.data))
        except ResponseValidationError as e:
            return _invalid(e)


async def create_selas_client(
    credentials: Credentials | Mapping[str, str],
    *,
    url: str | None = None,
    anon_key: str | None = None,
) -> SelasClient:
    """
    Connect to the Selas backend and return a client bound to ``credentials``.

    Sessions are not persisted. With email/password credentials the client
    signs in once; a rejected sign-in is logged and shows up as backend
    errors on the following calls.

    Args:
        credentials: ``PasswordCredentials``, ``ServiceCredentials`` or an
            equivalent mapping
        url: Backend URL override (defaults to the configured URL)
        anon_key: Public API key override (defaults to the configured key)

    Returns:
        A ready-to-use SelasClient

    Raises:
        ValueError: If the credentials mapping has neither known shape

    Example::

        from selas import create_selas_client

        selas = await create_selas_client({
            "app_id": "55d5030b-...",
            "key": "...",
            "secret": "...",
        })
        user = await selas.create_app_user()
    """
    resolved = parse_credentials(credentials)
    config = get_config()

    backend = await acreate_client(
        url or config.url,
        anon_key or config.anon_key,
        options=AsyncClientOptions(persist_session=False),
    )

    if isinstance(resolved, PasswordCredentials):
        try:
            await backend.auth.sign_in_with_password(
                {"email": resolved.email, "password": resolved.password}
            )
        except AuthError as e:
            logger.warning("Sign-in as %s was rejected: %s", resolved.email, e)

    return SelasClient(backend, resolved)
