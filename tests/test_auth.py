"""Tests for remote store authentication."""

import os
from unittest.mock import patch

import pytest

from assocsync.core.auth import StoreAuth


class TestStoreAuth:
    """Tests for StoreAuth class."""

    def test_init_with_credentials(self) -> None:
        auth = StoreAuth(url="https://demo.supabase.co/", api_key="anon-key")

        assert auth.url == "https://demo.supabase.co"
        assert auth.api_key == "anon-key"
        assert auth.verify_credentials()

    def test_init_from_env(self) -> None:
        env = {"SUPABASE_URL": "https://env.supabase.co", "SUPABASE_ANON_KEY": "env-key"}
        with patch.dict(os.environ, env, clear=True):
            auth = StoreAuth()

        assert auth.url == "https://env.supabase.co"
        assert auth.api_key == "env-key"

    def test_init_missing_credentials(self) -> None:
        # Clear env vars and keep a local .env out of the picture
        with patch.dict(os.environ, {}, clear=True), patch("assocsync.core.auth.load_dotenv"):
            with pytest.raises(ValueError, match="Missing store credentials"):
                StoreAuth()

    def test_get_headers(self) -> None:
        auth = StoreAuth(url="https://demo.supabase.co", api_key="anon-key")

        headers = auth.get_headers()

        assert headers["apikey"] == "anon-key"
        assert headers["Authorization"] == "Bearer anon-key"
        assert headers["Content-Type"] == "application/json"
        assert "Prefer" not in headers

    def test_get_headers_with_prefer(self) -> None:
        auth = StoreAuth(url="https://demo.supabase.co", api_key="anon-key")

        headers = auth.get_headers(prefer="return=representation")

        assert headers["Prefer"] == "return=representation"

    def test_get_table_url(self) -> None:
        auth = StoreAuth(url="https://demo.supabase.co", api_key="k")

        assert auth.get_table_url("members") == "https://demo.supabase.co/rest/v1/members"

        url = auth.get_table_url("transactions", [("select", "*"), ("order", "date.desc")])
        assert url == "https://demo.supabase.co/rest/v1/transactions?select=%2A&order=date.desc"

    def test_get_realtime_url(self) -> None:
        auth = StoreAuth(url="https://demo.supabase.co", api_key="k")

        url = auth.get_realtime_url()

        assert url == "wss://demo.supabase.co/realtime/v1/websocket?apikey=k&vsn=1.0.0"

    def test_get_realtime_url_plain_http(self) -> None:
        auth = StoreAuth(url="http://localhost:54321", api_key="k")

        assert auth.get_realtime_url().startswith("ws://localhost:54321/realtime/v1/websocket?")
