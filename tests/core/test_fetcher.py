"""
ContentFetcher 单元测试（mock aiohttp）
"""
import asyncio
import json
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp

from config import Config
from core.exceptions import (
    EmptyContentError,
    FetchError,
    MalformedResponseError,
    MissingCredentialError,
    TransportError,
    UpstreamAPIError,
    UpstreamHTTPError,
)
from core.fetcher import FirecrawlFetcher, HttpFetcher


def _response(status=200, text=""):
    resp = MagicMock()
    resp.status = status
    resp.text = AsyncMock(return_value=text)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp


def _raw_response(status, raw, charset="utf-8"):
    """按声明的字符集解码原始字节，默认严格模式（与 aiohttp 一致）"""
    resp = _response(status)
    resp.text = AsyncMock(side_effect=lambda encoding=None, errors="strict": raw.decode(encoding or charset, errors))
    return resp


def _firecrawl(api_key="fc-key"):
    cfg = Config()
    cfg.firecrawl.api_key = api_key
    fetcher = FirecrawlFetcher(cfg)
    fetcher.session = MagicMock()
    return fetcher


class TestFirecrawlRequest(unittest.TestCase):
    def test_build_request(self):
        body = _firecrawl().build_request("https://www.ptt.cc/bbs/Beauty/index.html")
        self.assertEqual(body["url"], "https://www.ptt.cc/bbs/Beauty/index.html")
        self.assertEqual(body["headers"]["Cookie"], "over18=1")
        self.assertIn("Chrome/91", body["headers"]["User-Agent"])
        self.assertEqual(body["formats"], ["markdown"])
        self.assertTrue(body["onlyMainContent"])
        self.assertEqual(body["waitFor"], 1000)

    def test_request_sends_bearer_token(self):
        fetcher = _firecrawl()
        payload = {"success": True, "data": {"markdown": "# hello"}}
        fetcher.session.post.return_value = _response(200, json.dumps(payload))

        markdown = asyncio.run(fetcher.fetch("https://www.ptt.cc/x"))

        self.assertEqual(markdown, "# hello")
        _, kwargs = fetcher.session.post.call_args
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer fc-key")
        self.assertEqual(kwargs["json"]["url"], "https://www.ptt.cc/x")
        self.assertEqual(fetcher.stats["pages_fetched"], 1)


class TestFirecrawlErrors(unittest.TestCase):
    def _fetch(self, fetcher):
        return asyncio.run(fetcher.fetch("https://www.ptt.cc/x"))

    def test_missing_key(self):
        fetcher = _firecrawl(api_key=None)
        with self.assertRaises(MissingCredentialError) as ctx:
            self._fetch(fetcher)
        self.assertIn("FIRECRAWL_KEY not set", str(ctx.exception))
        fetcher.session.post.assert_not_called()

    def test_http_error_keeps_status_and_body(self):
        fetcher = _firecrawl()
        fetcher.session.post.return_value = _response(502, "bad gateway")
        with self.assertRaises(UpstreamHTTPError) as ctx:
            self._fetch(fetcher)
        self.assertEqual(ctx.exception.status, 502)
        self.assertEqual(ctx.exception.body, "bad gateway")
        self.assertEqual(fetcher.stats["requests_failed"], 1)

    def test_malformed_json(self):
        fetcher = _firecrawl()
        fetcher.session.post.return_value = _response(200, "<html>")
        with self.assertRaises(MalformedResponseError):
            self._fetch(fetcher)

    def test_structured_api_error(self):
        fetcher = _firecrawl()
        payload = {"success": False, "error": {"code": 429, "message": "rate limited"}}
        fetcher.session.post.return_value = _response(200, json.dumps(payload))
        with self.assertRaises(UpstreamAPIError) as ctx:
            self._fetch(fetcher)
        self.assertEqual(ctx.exception.code, 429)
        self.assertEqual(ctx.exception.message, "rate limited")

    def test_unsuccessful_without_error(self):
        fetcher = _firecrawl()
        fetcher.session.post.return_value = _response(200, json.dumps({"success": False}))
        with self.assertRaises(UpstreamAPIError) as ctx:
            self._fetch(fetcher)
        self.assertIsNone(ctx.exception.code)
        self.assertIn("no error message was provided", ctx.exception.message)

    def test_empty_markdown(self):
        fetcher = _firecrawl()
        payload = {"success": True, "data": {"markdown": ""}}
        fetcher.session.post.return_value = _response(200, json.dumps(payload))
        with self.assertRaises(EmptyContentError):
            self._fetch(fetcher)

    def test_invalid_bytes_in_markdown(self):
        fetcher = _firecrawl()
        raw = b'{"success": true, "data": {"markdown": "# hi \xff"}}'
        fetcher.session.post.return_value = _raw_response(200, raw)
        self.assertEqual(self._fetch(fetcher), "# hi \ufffd")

    def test_transport_error(self):
        fetcher = _firecrawl()
        fetcher.session.post.side_effect = aiohttp.ClientConnectionError("refused")
        with self.assertRaises(TransportError):
            self._fetch(fetcher)

    def test_all_errors_are_fetch_errors(self):
        fetcher = _firecrawl(api_key=None)
        with self.assertRaises(FetchError):
            self._fetch(fetcher)


class TestHttpFetcher(unittest.TestCase):
    def _fetcher(self):
        fetcher = HttpFetcher(Config())
        fetcher.session = MagicMock()
        return fetcher

    def test_headers_carry_age_gate_cookie(self):
        headers = self._fetcher().get_headers()
        self.assertEqual(headers["Cookie"], "over18=1")
        self.assertIn("User-Agent", headers)

    def test_fetch_success(self):
        fetcher = self._fetcher()
        fetcher.session.get.return_value = _response(200, "<html>ok</html>")
        html = asyncio.run(fetcher.fetch("https://www.ptt.cc/bbs/Beauty/index.html"))
        self.assertEqual(html, "<html>ok</html>")
        self.assertEqual(fetcher.stats["pages_fetched"], 1)

    def test_fetch_non_200(self):
        fetcher = self._fetcher()
        fetcher.session.get.return_value = _response(404, "not found")
        with self.assertRaises(UpstreamHTTPError) as ctx:
            asyncio.run(fetcher.fetch("https://www.ptt.cc/missing"))
        self.assertEqual(ctx.exception.status, 404)

    def test_fetch_invalid_bytes_replaced(self):
        fetcher = self._fetcher()
        fetcher.session.get.return_value = _raw_response(200, b"<div class='cl_box'>\xff\xfe bad</div>")
        html = asyncio.run(fetcher.fetch("http://ck101.com/forum-1345-1.html"))
        self.assertIn("\ufffd", html)
        self.assertTrue(html.startswith("<div class='cl_box'>"))
        self.assertEqual(fetcher.stats["pages_fetched"], 1)

    def test_fetch_invalid_bytes_on_error_status(self):
        fetcher = self._fetcher()
        fetcher.session.get.return_value = _raw_response(500, b"\xff oops")
        with self.assertRaises(UpstreamHTTPError) as ctx:
            asyncio.run(fetcher.fetch("https://www.ptt.cc/broken"))
        self.assertEqual(ctx.exception.status, 500)

    def test_fetch_timeout(self):
        fetcher = self._fetcher()
        fetcher.session.get.side_effect = asyncio.TimeoutError()
        with self.assertRaises(TransportError):
            asyncio.run(fetcher.fetch("https://www.ptt.cc/slow"))

    def test_rotating_user_agent(self):
        cfg = Config()
        cfg.crawler.rotate_user_agent = True
        fetcher = HttpFetcher(cfg)
        with patch("core.fetcher.UserAgent") as mock_ua_cls:
            mock_ua_cls.return_value.random = "RandomUA/1.0"
            self.assertEqual(fetcher.user_agent, "RandomUA/1.0")


class TestFetcherSession(unittest.TestCase):
    @patch("core.fetcher.aiohttp.ClientSession")
    def test_init_and_close(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.close = AsyncMock(return_value=None)
        mock_session_cls.return_value = mock_session

        async def run():
            async with HttpFetcher(Config()) as fetcher:
                self.assertIs(fetcher.session, mock_session)
            self.assertIsNone(fetcher.session)

        asyncio.run(run())
        mock_session.close.assert_awaited_once()


if __name__ == '__main__':
    unittest.main()
