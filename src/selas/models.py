"""
Response validation for selas

Backend rows and procedure results are validated here before they reach the
caller. Parsers raise :class:`ResponseValidationError` with a short message
naming the offending field.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import (
    BaseModel,
    StrictFloat,
    StrictInt,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from .types import Credits, Customer, ResponseValidationError, Token


class CustomerModel(BaseModel):
    """Pydantic model for a row of the ``customers`` table."""

    external_id: str
    credits: Union[StrictInt, StrictFloat] = 0
    id: Union[int, str, None] = None
    user_id: Union[str, None] = None

    model_config = {"extra": "ignore"}


class TokenModel(BaseModel):
    """Pydantic model for the record returned by ``create_token``.

    The secret may come back as ``key`` or ``token`` depending on the
    procedure revision.
    """

    key: str
    id: Union[int, str, None] = None
    created_at: Union[str, None] = None
    user_id: Union[str, None] = None
    ttl: Union[int, None] = None
    quota: Union[StrictInt, StrictFloat, None] = None
    customer_id: Union[int, str, None] = None
    description: Union[str, None] = None

    model_config = {"extra": "ignore"}

    @field_validator("key", mode="before")
    @classmethod
    def validate_key_not_empty(cls, v: Any) -> str:
        """Validate that the token key is a non-empty string."""
        if v is None:
            raise ValueError("key is required and cannot be null")
        if not isinstance(v, str):
            raise ValueError("key must be a string")
        if not v.strip():
            raise ValueError("key cannot be empty or whitespace-only")
        return v


_credits_adapter: TypeAdapter[Union[int, float]] = TypeAdapter(Union[StrictInt, StrictFloat])
_bool_adapter: TypeAdapter[bool] = TypeAdapter(bool)


def _validation_error(what: str, error: ValidationError) -> ResponseValidationError:
    errors = error.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(loc) for loc in first.get("loc", []))
        msg = first.get("msg", "validation error")
        detail = f"{field} - {msg}" if field else msg
        return ResponseValidationError(f"Invalid {what}: {detail}", cause=error)
    return ResponseValidationError(f"Invalid {what}: {error}", cause=error)


def first_row(payload: Any) -> Any:
    """Return the first element of a list payload, or the payload itself.

    Returns None for an empty list.
    """
    if isinstance(payload, list):
        return payload[0] if payload else None
    return payload


def parse_customer(row: Any) -> Customer:
    """
    Validate a ``customers`` row.

    Raises:
        ResponseValidationError: If the row is not an object or a field is invalid

    Example:
        >>> parse_customer({"external_id": "leopold", "credits": 3}).credits
        3
    """
    if not isinstance(row, dict):
        raise ResponseValidationError(
            f"Invalid customer: expected object, got {type(row).__name__}"
        )
    try:
        validated = CustomerModel.model_validate(row)
    except ValidationError as e:
        raise _validation_error("customer", e) from e

    return Customer(
        external_id=validated.external_id,
        credits=validated.credits,
        id=validated.id,
        user_id=validated.user_id,
    )


def parse_token(payload: Any) -> Token:
    """
    Validate the token record returned by the token procedures.

    Accepts the record itself or a single-row list.

    Raises:
        ResponseValidationError: If the record is missing or has no usable key
    """
    record = first_row(payload)
    if not isinstance(record, dict):
        raise ResponseValidationError(
            f"Invalid token: expected object, got {type(record).__name__}"
        )
    if "key" not in record and "token" in record:
        record = {**record, "key": record["token"]}
    try:
        validated = TokenModel.model_validate(record)
    except ValidationError as e:
        raise _validation_error("token", e) from e

    return Token(
        key=validated.key,
        id=validated.id,
        created_at=validated.created_at,
        user_id=validated.user_id,
        ttl=validated.ttl,
        quota=validated.quota,
        customer_id=validated.customer_id,
        description=validated.description,
    )


def parse_credits(payload: Any) -> Credits:
    """
    Validate a credit balance.

    The backend answers with a bare number, a row carrying ``credits``, or a
    list of such rows depending on the procedure.

    Raises:
        ResponseValidationError: If no numeric balance can be found
    """
    value = first_row(payload)
    if isinstance(value, dict):
        if "credits" not in value:
            raise ResponseValidationError("Invalid credits: credits - Field required")
        value = value["credits"]
    try:
        return _credits_adapter.validate_python(value)
    except ValidationError as e:
        raise _validation_error("credits", e) from e


def parse_identifier(payload: Any) -> str:
    """Validate an identifier returned by a procedure (uuid, int or string)."""
    value = first_row(payload)
    if isinstance(value, dict) and len(value) == 1:
        value = next(iter(value.values()))
    if value is None or isinstance(value, (bool, dict, list)):
        raise ResponseValidationError(
            f"Invalid identifier: expected a scalar, got {type(value).__name__}"
        )
    identifier = str(value).strip()
    if not identifier:
        raise ResponseValidationError("Invalid identifier: empty")
    return identifier


def parse_flag(payload: Any) -> bool:
    """Validate a boolean procedure result."""
    try:
        return _bool_adapter.validate_python(first_row(payload), strict=True)
    except ValidationError as e:
        raise _validation_error("flag", e) from e
