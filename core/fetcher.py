"""
内容获取模块

- ContentFetcher: 内容获取接口（URL → 原始页面内容）
- HttpFetcher: 直接请求网页（带年龄验证Cookie）
- FirecrawlFetcher: 通过 Firecrawl 抓取服务获取 Markdown
"""
import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import aiohttp
from fake_useragent import UserAgent
from loguru import logger

from config import Config
from core.exceptions import (
    EmptyContentError,
    MalformedResponseError,
    MissingCredentialError,
    TransportError,
    UpstreamAPIError,
    UpstreamHTTPError,
)


class ContentFetcher(ABC):
    """
    内容获取基类

    提供 HTTP Session 管理和统计信息，子类实现 fetch()。
    fetch() 失败时抛出 FetchError 子类，不返回 None。
    """

    def __init__(self, config: Config):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None
        self._ua: Optional[UserAgent] = None
        self.stats = {
            'pages_fetched': 0,
            'requests_failed': 0,
        }

    async def __aenter__(self):
        """异步上下文管理器入口"""
        await self.init_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def init_session(self):
        """初始化HTTP会话"""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.crawler.request_timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self):
        """关闭会话"""
        if self.session:
            await self.session.close()
            self.session = None
            logger.debug(f"📊 {type(self).__name__} 统计: {self.stats}")

    @property
    def user_agent(self) -> str:
        if not self.config.crawler.rotate_user_agent:
            return self.config.crawler.user_agent
        if self._ua is None:
            self._ua = UserAgent()
        return self._ua.random

    @abstractmethod
    async def fetch(self, url: str) -> str:
        """
        获取页面内容

        Args:
            url: 页面URL

        Returns:
            原始内容（HTML 或 Markdown）

        Raises:
            FetchError: 获取失败
        """


class HttpFetcher(ContentFetcher):
    """直接请求网页"""

    def get_headers(self) -> Dict[str, str]:
        """获取请求头"""
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "zh-TW,zh;q=0.9,en;q=0.8",
            "Cookie": self.config.site.age_gate_cookie,
        }

    async def fetch(self, url: str) -> str:
        await self.init_session()
        logger.debug(f"📄 获取页面: {url}")
        try:
            async with self.session.get(url, headers=self.get_headers()) as response:
                body = await response.text(errors="replace")
                if response.status != 200:
                    self.stats['requests_failed'] += 1
                    raise UpstreamHTTPError(response.status, body, url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.stats['requests_failed'] += 1
            raise TransportError(f"请求失败 {url}: {e!r}") from e

        self.stats['pages_fetched'] += 1
        return body


class FirecrawlFetcher(ContentFetcher):
    """
    Firecrawl 抓取服务

    请求体:
        {url, headers: {Cookie, User-Agent}, formats: ["markdown"],
         onlyMainContent: true, waitFor: 1000}
    响应:
        {success: bool, data: {markdown: str}, error?: {code: int, message: str}}
    """

    def build_request(self, url: str) -> Dict[str, Any]:
        """构造抓取请求体"""
        fc = self.config.firecrawl
        return {
            "url": url,
            "headers": {
                "Cookie": self.config.site.age_gate_cookie,
                "User-Agent": self.user_agent,
            },
            "formats": list(fc.formats),
            "onlyMainContent": fc.only_main_content,
            "waitFor": fc.wait_for,
        }

    async def fetch(self, url: str) -> str:
        api_key = self.config.firecrawl.api_key
        if not api_key:
            raise MissingCredentialError("FIRECRAWL_KEY not set")

        await self.init_session()
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

        logger.debug(f"📄 Firecrawl 抓取: {url}")
        try:
            async with self.session.post(
                self.config.firecrawl.api_url,
                json=self.build_request(url),
                headers=headers,
            ) as response:
                status = response.status
                body = await response.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.stats['requests_failed'] += 1
            raise TransportError(f"Firecrawl 请求失败 {url}: {e!r}") from e

        if not 200 <= status < 300:
            self.stats['requests_failed'] += 1
            raise UpstreamHTTPError(status, body, url)

        markdown = self._parse_response(body)
        self.stats['pages_fetched'] += 1
        return markdown

    def _parse_response(self, body: str) -> str:
        """解析 Firecrawl 响应，返回 Markdown"""
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise MalformedResponseError(f"Firecrawl 响应不是合法JSON: {e}. Response: {body[:200]}") from e
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Firecrawl 响应格式错误: {body[:200]}")

        if not payload.get("success"):
            error = payload.get("error")
            if isinstance(error, dict):
                raise UpstreamAPIError(error.get("code"), str(error.get("message", "")))
            raise UpstreamAPIError(None, "call was not successful, but no error message was provided")

        data = payload.get("data") or {}
        markdown = data.get("markdown") if isinstance(data, dict) else None
        if not markdown:
            raise EmptyContentError("Firecrawl API returned success but markdown content is empty")
        return markdown
