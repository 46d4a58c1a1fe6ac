"""
核心模块

包含基础组件：
- models: 数据模型（PostRecord / Article / DownloadResult）
- pagination: 分页解析
- fetcher: 内容获取（直接请求 / Firecrawl）
- link_normalizer: 图片链接规范化
- downloader: 单张图片下载器
- worker_pool: 并发下载工作池
- session: 爬取会话状态
"""
from .models import Article, PostRecord, DownloadResult, DownloadReport, DownloadStatus
from .pagination import PaginationResolver
from .fetcher import ContentFetcher, HttpFetcher, FirecrawlFetcher
from .link_normalizer import ImageLinkNormalizer
from .downloader import ImageDownloader
from .worker_pool import DownloadWorkerPool
from .session import CrawlSession

__all__ = [
    'Article',
    'PostRecord',
    'DownloadResult',
    'DownloadReport',
    'DownloadStatus',
    'PaginationResolver',
    'ContentFetcher',
    'HttpFetcher',
    'FirecrawlFetcher',
    'ImageLinkNormalizer',
    'ImageDownloader',
    'DownloadWorkerPool',
    'CrawlSession',
]
