"""
Tests for configuration, credentials and client construction.

Tests cover:
- Endpoint configuration from arguments and environment
- Credential variants and mapping parsing
- create_selas_client connection and sign-in
"""

import os
import logging

import pytest
from unittest.mock import AsyncMock, MagicMock, patch


class TestConfig:
    """Tests for selas.config."""

    def test_default_config(self):
        from selas import get_config
        from selas.config import DEFAULT_ANON_KEY, DEFAULT_URL

        config = get_config()

        assert config.url == DEFAULT_URL
        assert config.anon_key == DEFAULT_ANON_KEY

    def test_configure_overrides(self):
        from selas import configure, get_config

        configure(url="https://test.supabase.co", anon_key="anon")

        config = get_config()
        assert config.url == "https://test.supabase.co"
        assert config.anon_key == "anon"

    def test_configure_ignores_none(self):
        from selas import configure, get_config

        configure(url="https://test.supabase.co")
        configure(url=None)

        assert get_config().url == "https://test.supabase.co"

    def test_configure_from_env(self):
        from selas import configure_from_env, get_config

        with patch.dict(os.environ, {"SELAS_URL": "https://env.supabase.co", "SELAS_ANON_KEY": "env-key"}):
            configure_from_env()

        config = get_config()
        assert config.url == "https://env.supabase.co"
        assert config.anon_key == "env-key"


class TestCredentials:
    """Tests for the credential variants."""

    def test_password_credentials_add_no_params(self):
        from selas import PasswordCredentials

        assert PasswordCredentials(email="a@b.c", password="x").as_params() == {}

    def test_service_credentials_params(self):
        from selas import ServiceCredentials

        creds = ServiceCredentials(app_id="app", key="k", secret="s")

        assert creds.as_params() == {"app_id": "app", "key": "k", "secret": "s"}

    def test_service_credentials_repr_hides_secrets(self):
        from selas import ServiceCredentials

        text = repr(ServiceCredentials(app_id="app", key="k3y", secret="s3cret"))

        assert "app" in text
        assert "s3cret" not in text
        assert "k3y" not in text

    def test_credentials_are_immutable(self):
        from dataclasses import FrozenInstanceError
        from selas import ServiceCredentials

        creds = ServiceCredentials(app_id="app", key="k", secret="s")

        with pytest.raises(FrozenInstanceError):
            creds.secret = "other"

    def test_parse_mapping(self):
        from selas import PasswordCredentials, ServiceCredentials, parse_credentials

        assert parse_credentials({"email": "a@b.c", "password": "x"}) == PasswordCredentials(
            email="a@b.c", password="x"
        )
        assert parse_credentials({"app_id": "a", "key": "k", "secret": "s"}) == ServiceCredentials(
            app_id="a", key="k", secret="s"
        )

    def test_parse_passes_variants_through(self):
        from selas import PasswordCredentials, parse_credentials

        creds = PasswordCredentials(email="a@b.c", password="x")

        assert parse_credentials(creds) is creds

    def test_parse_rejects_unknown_shape(self):
        from selas import parse_credentials

        with pytest.raises(ValueError):
            parse_credentials({"email": "a@b.c"})


class TestCreateSelasClient:
    """Tests for create_selas_client."""

    async def test_connects_without_session_persistence(self):
        from selas import SelasClient, create_selas_client
        from selas.config import DEFAULT_ANON_KEY, DEFAULT_URL

        backend = MagicMock()
        with patch("selas.client.acreate_client", AsyncMock(return_value=backend)) as connect:
            client = await create_selas_client({"app_id": "a", "key": "k", "secret": "s"})

        assert isinstance(client, SelasClient)
        assert client.backend is backend
        args, kwargs = connect.call_args
        assert args == (DEFAULT_URL, DEFAULT_ANON_KEY)
        assert kwargs["options"].persist_session is False

    async def test_uses_configured_endpoint(self):
        from selas import configure, create_selas_client

        configure(url="https://test.supabase.co", anon_key="anon")
        with patch("selas.client.acreate_client", AsyncMock(return_value=MagicMock())) as connect:
            await create_selas_client({"app_id": "a", "key": "k", "secret": "s"})

        assert connect.call_args.args == ("https://test.supabase.co", "anon")

    async def test_explicit_endpoint_wins(self):
        from selas import create_selas_client

        with patch("selas.client.acreate_client", AsyncMock(return_value=MagicMock())) as connect:
            await create_selas_client(
                {"app_id": "a", "key": "k", "secret": "s"},
                url="https://other.supabase.co",
                anon_key="other",
            )

        assert connect.call_args.args == ("https://other.supabase.co", "other")

    async def test_password_credentials_sign_in(self):
        from selas import PasswordCredentials, create_selas_client

        backend = MagicMock()
        backend.auth.sign_in_with_password = AsyncMock()
        with patch("selas.client.acreate_client", AsyncMock(return_value=backend)):
            client = await create_selas_client({"email": "a@b.c", "password": "x"})

        backend.auth.sign_in_with_password.assert_awaited_once_with(
            {"email": "a@b.c", "password": "x"}
        )
        assert client.credentials == PasswordCredentials(email="a@b.c", password="x")

    async def test_service_credentials_do_not_sign_in(self):
        from selas import create_selas_client

        backend = MagicMock()
        backend.auth.sign_in_with_password = AsyncMock()
        with patch("selas.client.acreate_client", AsyncMock(return_value=backend)):
            await create_selas_client({"app_id": "a", "key": "k", "secret": "s"})

        backend.auth.sign_in_with_password.assert_not_awaited()

    async def test_rejected_sign_in_is_logged_not_raised(self, caplog):
        from supabase import AuthApiError
        from selas import create_selas_client

        backend = MagicMock()
        backend.auth.sign_in_with_password = AsyncMock(
            side_effect=AuthApiError("Invalid login credentials", 400, "invalid_credentials")
        )
        with patch("selas.client.acreate_client", AsyncMock(return_value=backend)):
            with caplog.at_level(logging.WARNING, logger="selas.client"):
                client = await create_selas_client({"email": "a@b.c", "password": "wrong"})

        assert client is not None
        assert "Sign-in as a@b.c was rejected" in caplog.text

    async def test_unknown_credentials_shape(self):
        from selas import create_selas_client

        with patch("selas.client.acreate_client", AsyncMock()) as connect:
            with pytest.raises(ValueError):
                await create_selas_client({"token": "x"})

        connect.assert_not_called()
