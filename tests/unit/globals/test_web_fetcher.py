"""Unit tests for web fetching functionality."""

from unittest.mock import MagicMock, patch

import requests

from typed_actions.globals.web_fetcher import WebFetcher


def session_returning(*outcomes):
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = list(outcomes)
    return session


class TestWebFetcher:
    """Caching and retries around a requests session."""

    def test_success_is_cached(self):
        response = MagicMock()
        session = session_returning(response)
        fetcher = WebFetcher(session=session)

        assert fetcher.fetch("https://example.com/a") is response
        assert fetcher.fetch("https://example.com/a") is response
        session.get.assert_called_once_with("https://example.com/a", timeout=10)

    @patch("typed_actions.globals.web_fetcher.time.sleep")
    def test_retries_then_succeeds(self, sleep):
        response = MagicMock()
        session = session_returning(requests.ConnectionError("down"), response)
        fetcher = WebFetcher(session=session, max_retries=2, retry_backoff_factor=0.5)

        assert fetcher.fetch("https://example.com/a") is response
        sleep.assert_called_once_with(0.5)

    @patch("typed_actions.globals.web_fetcher.time.sleep")
    def test_failure_is_cached_as_none(self, sleep):
        bad = MagicMock()
        bad.raise_for_status.side_effect = requests.HTTPError("404")
        session = session_returning(bad, bad)
        fetcher = WebFetcher(session=session, max_retries=1)

        assert fetcher.fetch("https://example.com/missing") is None
        assert fetcher.fetch("https://example.com/missing") is None
        assert session.get.call_count == 2

    def test_token_header(self):
        session = session_returning()
        WebFetcher(session=session, github_token="ghp_x")
        assert session.headers["Authorization"] == "token ghp_x"

    def test_clear_cache(self):
        session = session_returning(MagicMock(), MagicMock())
        fetcher = WebFetcher(session=session)
        fetcher.fetch("https://example.com/a")
        fetcher.clear_cache()
        fetcher.fetch("https://example.com/a")
        assert session.get.call_count == 2
