"""Test SCOPEGREEN query building and HTTP fetch."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from api.scopegreen.client import (
    REQUEST_TIMEOUT_SECONDS,
    SCOPEGREEN_SEARCH_URL,
    build_query_string,
    build_request_url,
    fetch_metrics,
    get_api_key,
    get_base_url,
)
from api.scopegreen.params import normalize_params


class TestBuildQueryString:
    """Test query parameter order, presence and encoding."""

    def test_should_include_always_present_fields_for_minimal_input(self):
        """Test minimal input sends item_name, defaults, web_mode and not_english."""
        query = build_query_string(normalize_params("Steel"))

        assert query == (
            "item_name=Steel&metric=Carbon%20footprint&mode=lite"
            "&web_mode=false&num_matches=1&not_english=false"
        )

    def test_should_append_optional_fields_in_fixed_order(self):
        """Test every optional field in its stable position."""
        params = normalize_params(
            "Steel", "2020", "EU", "Land Use", "Energy", 2, "lite", True, "kWh"
        )

        assert build_query_string(params) == (
            "item_name=Steel&year=2020&geography=EU&metric=Land%20Use&mode=lite"
            "&web_mode=false&num_matches=2&domain=Energy&not_english=true&unit=kWh"
        )

    def test_should_send_empty_item_name(self):
        """Test item_name is present even when empty."""
        assert build_query_string(normalize_params()).startswith("item_name=&")

    def test_should_percent_encode_like_uri_component(self):
        """Test reserved characters are escaped and unreserved marks kept."""
        params = normalize_params("Wood & paper (recycled)", domain="Materials & Products")
        query = build_query_string(params)

        assert "item_name=Wood%20%26%20paper%20(recycled)" in query
        assert "domain=Materials%20%26%20Products" in query

    def test_should_encode_non_ascii(self):
        """Test UTF-8 percent-encoding of non-English names."""
        query = build_query_string(normalize_params("acier inoxydé", not_english="true"))

        assert "item_name=acier%20inoxyd%C3%A9" in query
        assert query.endswith("not_english=true")


class TestBuildRequestUrl:
    """Test full URL assembly."""

    def test_should_join_base_url_and_query(self):
        """Test explicit base URL is used."""
        url = build_request_url(normalize_params("Steel"), "https://api.test/search")

        assert url.startswith("https://api.test/search?item_name=Steel&")

    def test_should_default_to_env_base_url(self, monkeypatch):
        """Test SCOPEGREEN_API_URL overrides the built-in endpoint."""
        monkeypatch.setenv("SCOPEGREEN_API_URL", "https://env.test/search")

        assert get_base_url() == "https://env.test/search"

    def test_should_fall_back_to_default_endpoint(self, monkeypatch):
        """Test default endpoint when env is unset."""
        monkeypatch.delenv("SCOPEGREEN_API_URL", raising=False)

        assert get_base_url() == SCOPEGREEN_SEARCH_URL


class TestGetApiKey:
    """Test API key lookup."""

    def test_should_strip_quotes(self, monkeypatch):
        """Test quoted .env values are cleaned."""
        monkeypatch.setenv("SCOPEGREEN_API_KEY", ' "sg-key" ')

        assert get_api_key() == "sg-key"

    def test_should_return_none_when_unset(self, monkeypatch):
        """Test missing key."""
        monkeypatch.delenv("SCOPEGREEN_API_KEY", raising=False)

        assert get_api_key() is None


class TestFetchMetrics:
    """Test the HTTP call."""

    def _response(self, status_code: int, text: str) -> MagicMock:
        resp = MagicMock()
        resp.status_code = status_code
        resp.text = text
        return resp

    def test_should_send_bearer_token_and_timeout(self):
        """Test request shape."""
        with patch("api.scopegreen.client.requests.get") as mock_get:
            mock_get.return_value = self._response(200, '{"matches": []}')

            result = fetch_metrics(
                normalize_params("Steel"), api_key="sg-key", base_url="https://api.test/search"
            )

        assert result == (200, '{"matches": []}')
        args, kwargs = mock_get.call_args
        assert args[0].startswith("https://api.test/search?item_name=Steel&")
        assert kwargs["headers"] == {"Authorization": "Bearer sg-key"}
        assert kwargs["timeout"] == REQUEST_TIMEOUT_SECONDS

    def test_should_return_error_status_without_raising(self):
        """Test non-2xx is surfaced as status and body."""
        with patch("api.scopegreen.client.requests.get") as mock_get:
            mock_get.return_value = self._response(500, "Internal Server Error")

            result = fetch_metrics(normalize_params("Steel"), api_key="sg-key")

        assert result == (500, "Internal Server Error")

    def test_should_use_env_key(self, monkeypatch):
        """Test key is read from the environment when not passed."""
        monkeypatch.setenv("SCOPEGREEN_API_KEY", "env-key")
        with patch("api.scopegreen.client.requests.get") as mock_get:
            mock_get.return_value = self._response(200, "{}")

            fetch_metrics(normalize_params("Steel"))

        assert mock_get.call_args.kwargs["headers"]["Authorization"] == "Bearer env-key"

    def test_should_require_api_key(self, monkeypatch):
        """Test missing key raises before any request."""
        monkeypatch.delenv("SCOPEGREEN_API_KEY", raising=False)
        with patch("api.scopegreen.client.requests.get") as mock_get:
            with pytest.raises(ValueError, match="SCOPEGREEN_API_KEY"):
                fetch_metrics(normalize_params("Steel"))

        mock_get.assert_not_called()

    def test_should_propagate_transport_errors(self):
        """Test timeouts are left for the caller to classify."""
        with patch("api.scopegreen.client.requests.get") as mock_get:
            mock_get.side_effect = requests.exceptions.ReadTimeout("Read timed out. (read timeout=50)")

            with pytest.raises(requests.exceptions.Timeout):
                fetch_metrics(normalize_params("Steel"), api_key="sg-key")
