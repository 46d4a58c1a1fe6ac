"""
异常定义模块

- FetchError 及其子类: 内容获取失败（网络 / HTTP / 抓取服务）
- UnsupportedOperationError: 站点不支持的操作（如 CK101 搜索）
"""
from typing import Optional


class CrawlerError(Exception):
    """爬虫异常基类"""


class FetchError(CrawlerError):
    """内容获取失败"""


class TransportError(FetchError):
    """网络层错误（连接失败、超时等）"""


class MissingCredentialError(FetchError):
    """缺少抓取服务的API密钥"""


class UpstreamHTTPError(FetchError):
    """上游返回非 2xx 状态码"""

    def __init__(self, status: int, body: str = "", url: Optional[str] = None):
        self.status = status
        self.body = body
        self.url = url
        target = f" ({url})" if url else ""
        super().__init__(f"HTTP {status}{target}: {body[:200]}")


class MalformedResponseError(FetchError):
    """上游返回的JSON无法解析"""


class UpstreamAPIError(FetchError):
    """抓取服务返回结构化错误，保留上游的错误码和信息"""

    def __init__(self, code: Optional[int], message: str):
        self.code = code
        self.message = message
        if code is None:
            super().__init__(f"Firecrawl API error: {message}")
        else:
            super().__init__(f"Firecrawl API error ({code}): {message}")


class EmptyContentError(FetchError):
    """抓取成功但内容为空"""


class UnsupportedOperationError(CrawlerError, ValueError):
    """站点不支持该操作"""
