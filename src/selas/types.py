"""
Type definitions for selas

This module contains the credential, record and result types used across the
selas package.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeAlias, TypeVar, Union

from .config import DEFAULT_ANON_KEY, DEFAULT_URL

T = TypeVar("T")

Credits: TypeAlias = Union[int, float]


class SelasError(Exception):
    """Base error for the selas package.

    Attributes:
        message: Human-readable error description
        cause: The underlying exception that caused this error
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.__cause__ = cause


class ResponseValidationError(SelasError):
    """Raised when a backend response does not match the expected schema."""


@dataclass
class SelasConfig:
    """Backend endpoint configuration."""
    url: str = DEFAULT_URL
    anon_key: str = DEFAULT_ANON_KEY


@dataclass(frozen=True)
class PasswordCredentials:
    """Session credentials: the client signs in once with email and password."""
    email: str
    password: str

    def as_params(self) -> dict[str, Any]:
        # The session token travels in the request headers.
        return {}


@dataclass(frozen=True)
class ServiceCredentials:
    """Service credentials attached to every remote procedure call."""
    app_id: str
    key: str
    secret: str

    def as_params(self) -> dict[str, Any]:
        return {"app_id": self.app_id, "key": self.key, "secret": self.secret}

    def __repr__(self) -> str:
        return f"ServiceCredentials(app_id={self.app_id!r}, key=***, secret=***)"


Credentials: TypeAlias = Union[PasswordCredentials, ServiceCredentials]


def parse_credentials(value: Credentials | Mapping[str, str]) -> Credentials:
    """
    Turn a credentials object or mapping into one of the credential variants.

    A mapping must carry either ``email`` and ``password`` or ``app_id``,
    ``key`` and ``secret``.

    Raises:
        ValueError: If the mapping matches neither shape
    """
    if isinstance(value, (PasswordCredentials, ServiceCredentials)):
        return value

    if {"app_id", "key", "secret"} <= value.keys():
        return ServiceCredentials(
            app_id=value["app_id"], key=value["key"], secret=value["secret"]
        )
    if {"email", "password"} <= value.keys():
        return PasswordCredentials(email=value["email"], password=value["password"])

    raise ValueError(
        "Credentials must contain either 'email' and 'password' "
        "or 'app_id', 'key' and 'secret'"
    )


@dataclass
class Customer:
    """Customer row owned by the backend."""
    external_id: str
    credits: Credits = 0
    id: int | str | None = None
    user_id: str | None = None


@dataclass
class Token:
    """Token issued to a customer by the backend."""
    key: str
    id: int | str | None = None
    created_at: str | None = None
    user_id: str | None = None
    ttl: int | None = None
    quota: Credits | None = None
    customer_id: int | str | None = None
    description: str | None = None


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a client operation: either ``data`` or ``error`` is set."""
    data: T | None = None
    error: str | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
