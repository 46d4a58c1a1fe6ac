"""
爬取调度模块

把分页解析、内容获取、页面解析、链接规范化和下载工作池组合成两类操作：
- 列出帖子（按页码 / 关键词 / 至少N篇）
- 下载一篇帖子中所有符合条件的图片
"""
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from config import Config
from core.downloader import ImageDownloader
from core.exceptions import FetchError
from core.fetcher import ContentFetcher
from core.link_normalizer import ImageLinkNormalizer
from core.models import Article, DownloadReport, PostRecord
from core.pagination import PaginationResolver
from core.session import CrawlSession
from core.worker_pool import DownloadWorkerPool
from parsers.base import BaseParser

# 目录名中不能出现的字符
_UNSAFE_PATH_CHARS = re.compile(r'[\\/\x00]')


class CrawlOrchestrator:
    """
    站点爬取调度器

    各组件通过构造参数注入；每个实例拥有自己的帖子列表（CrawlSession）。
    推荐使用 SpiderFactory.create() 创建。

    Example:
        async with SpiderFactory.create("ptt") as spider:
            count = await spider.list_page(0)
            await spider.download_post(spider.posts.url_at(0))
    """

    def __init__(
        self,
        config: Config,
        fetcher: ContentFetcher,
        parser: BaseParser,
        resolver: Optional[PaginationResolver] = None,
        normalizer: Optional[ImageLinkNormalizer] = None,
        downloader: Optional[ImageDownloader] = None,
    ):
        self.config = config
        self.site = config.site
        self.fetcher = fetcher
        self.parser = parser
        self.resolver = resolver or PaginationResolver(self.site)
        self.normalizer = normalizer or ImageLinkNormalizer()
        self.downloader = downloader or ImageDownloader(config)
        self.pool = DownloadWorkerPool(self.downloader, show_progress=config.crawler.show_progress)
        self.posts = CrawlSession()

        self._thread_id = re.compile(self.site.thread_id_pattern) if self.site.thread_id_pattern else None

        self.stats = {
            "pages_listed": 0,
            "pages_failed": 0,
            "posts_downloaded": 0,
            "posts_skipped": 0,
            "images_saved": 0,
            "images_filtered": 0,
            "images_failed": 0,
        }

        logger.info(f"🚀 初始化爬虫: {self.site.label} ({self.site.transport})")

    async def __aenter__(self):
        """异步上下文管理器入口"""
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def init(self):
        await self.fetcher.init_session()
        await self.downloader.init_session()

    async def close(self):
        await self.fetcher.close()
        await self.downloader.close()
        logger.info(f"📊 爬虫统计: {self.get_statistics()}")

    @property
    def base_dir(self) -> Path:
        return self.config.image.download_dir

    # ========================================================================
    # 列出帖子
    # ========================================================================

    async def _fetch_posts(self, url: str) -> Optional[List[PostRecord]]:
        """获取并解析列表页，获取失败返回 None"""
        try:
            raw = await self.fetcher.fetch(url)
        except FetchError as e:
            self.stats["pages_failed"] += 1
            logger.error(f"❌ 获取列表页失败 {url}: {e}")
            return None
        self.stats["pages_listed"] += 1
        return self.parser.extract_posts(raw, self.site.base_url)

    async def list_page(self, page: int, replace: bool = True) -> int:
        """
        列出指定页的帖子

        Args:
            page: 页码，0 为最新页
            replace: True 替换当前列表，False 追加

        Returns:
            当前列表中的帖子总数。获取失败时：replace 为 True 清空并返回 0，
            否则原列表不变并返回原数量
        """
        url = self.resolver.resolve(page)
        logger.info(f"📄 第 {page} 页: {url}")

        posts = await self._fetch_posts(url)
        if posts is None:
            if replace:
                self.posts.clear()
                return 0
            return self.posts.count

        total = self.posts.store(posts, replace)
        logger.info(f"✅ 解析到 {len(posts)} 篇帖子，当前共 {total} 篇 (replace={replace})")
        return total

    async def list_by_keyword(self, keyword: str) -> int:
        """搜索关键词，总是替换当前列表"""
        url = self.resolver.resolve_search(keyword)
        logger.info(f"🔍 搜索 '{keyword}': {url}")

        posts = await self._fetch_posts(url)
        if posts is None:
            self.posts.clear()
            return 0

        total = self.posts.store(posts, replace=True)
        logger.info(f"✅ 搜索 '{keyword}' 得到 {total} 篇帖子")
        return total

    async def list_at_least(self, min_count: int, start_page: int = 0) -> int:
        """
        从 start_page 开始逐页列出，直到帖子数达到 min_count

        第一页替换，之后追加。最多扫描 crawler.max_scan_pages 页，
        连续 crawler.max_stalled_pages 页没有新帖时停止。
        """
        max_pages = self.config.crawler.max_scan_pages
        max_stalled = self.config.crawler.max_stalled_pages

        page = start_page
        count = await self.list_page(page, replace=True)
        scanned = 1
        stalled = 0 if count else 1

        while count < min_count:
            if scanned >= max_pages:
                logger.warning(f"⚠️  已扫描 {scanned} 页，只有 {count} 篇帖子 (目标 {min_count})")
                break
            if stalled >= max_stalled:
                logger.warning(f"⚠️  连续 {stalled} 页没有新帖子，停止翻页")
                break

            page += 1
            new_count = await self.list_page(page, replace=False)
            scanned += 1
            stalled = stalled + 1 if new_count == count else 0
            count = new_count

        return count

    # ========================================================================
    # 帖子详情与下载
    # ========================================================================

    def has_valid_url(self, url: str) -> bool:
        """帖子URL是否有效（PTT 需要包含帖子ID）"""
        if not url:
            return False
        if self._thread_id is None:
            return True
        return bool(self._thread_id.search(url))

    async def fetch_article(self, url: str) -> Article:
        """获取并解析帖子，获取失败返回空 Article（标题为空）"""
        try:
            raw = await self.fetcher.fetch(url)
        except FetchError as e:
            logger.error(f"❌ 获取帖子失败 {url}: {e}")
            return Article()
        return self.parser.extract_article(raw)

    async def get_all_image_links(self, url: str) -> List[str]:
        """帖子中可下载的图片链接（已规范化、按站点设置过滤图床）"""
        article = await self.fetch_article(url)
        links = self.normalizer.prepare(article.image_urls, filter_hosts=self.site.filter_image_hosts)
        if not links:
            logger.info(f"帖子中没有图片: {url}")
        return links

    async def get_post_reactions(self, url: str) -> Tuple[int, int]:
        """推 / 嘘数（Markdown 模式下固定为 0, 0）"""
        article = await self.fetch_article(url)
        return article.like, article.dislike

    def post_dir(self, title: str) -> Path:
        """帖子的下载目录: <下载目录>/<站点标签> - <标题>"""
        safe_title = _UNSAFE_PATH_CHARS.sub("_", title.strip())
        return self.base_dir / f"{self.site.label} - {safe_title}"

    async def download_post(self, url: str, concurrency: Optional[int] = None) -> Optional[DownloadReport]:
        """
        下载帖子中的图片

        Args:
            url: 帖子URL
            concurrency: 并发数，默认 crawler.max_workers

        Returns:
            下载汇总；目录已存在（已下载过）或帖子获取失败时返回 None
        """
        article = await self.fetch_article(url)
        if article.is_empty:
            logger.warning(f"⚠️  无法获取帖子标题，跳过: {url}")
            return None

        dest_dir = self.post_dir(article.title)
        if dest_dir.exists():
            self.stats["posts_skipped"] += 1
            logger.info(f"⏭️  已下载过，跳过: {dest_dir.name}")
            return None

        logger.info(f"[{self.site.label}]: {article.title} 开始下载...")
        dest_dir.mkdir(mode=self.config.image.dir_mode, parents=True, exist_ok=True)

        links = self.normalizer.prepare(article.image_urls, filter_hosts=self.site.filter_image_hosts)
        report = await self.pool.run(dest_dir, links, concurrency or self.config.crawler.max_workers)

        self.stats["posts_downloaded"] += 1
        self.stats["images_saved"] += report.saved
        self.stats["images_filtered"] += report.filtered
        self.stats["images_failed"] += report.failed
        return report

    def get_statistics(self) -> Dict[str, Any]:
        """获取统计信息"""
        stats = self.stats.copy()
        stats["posts_listed"] = self.posts.count
        stats["fetcher"] = dict(self.fetcher.stats)
        return stats
