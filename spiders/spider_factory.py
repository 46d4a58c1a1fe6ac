"""
爬虫工厂模块

提供统一的爬虫创建接口
"""
from typing import Dict, Optional, Tuple, Type

from loguru import logger

from config import Config, ConfigLoader
from core.fetcher import ContentFetcher, FirecrawlFetcher, HttpFetcher
from core.link_normalizer import ImageLinkNormalizer
from core.pagination import PaginationResolver
from parsers.base import BaseParser
from parsers.ck101_parser import CK101Parser
from parsers.markdown_parser import MarkdownParser
from parsers.ptt_html_parser import PttHtmlParser
from spiders.orchestrator import CrawlOrchestrator


class SpiderFactory:
    """
    爬虫工厂类

    按 (站点, 获取方式) 组合解析器与内容获取器：
    - ptt + firecrawl → MarkdownParser + FirecrawlFetcher
    - ptt + direct    → PttHtmlParser + HttpFetcher
    - ck101 + direct  → CK101Parser + HttpFetcher
    """

    _fetcher_registry: Dict[str, Type[ContentFetcher]] = {
        'firecrawl': FirecrawlFetcher,
        'direct': HttpFetcher,
    }

    _parser_registry: Dict[Tuple[str, str], Type[BaseParser]] = {
        ('ptt', 'firecrawl'): MarkdownParser,
        ('ptt', 'direct'): PttHtmlParser,
        ('ck101', 'direct'): CK101Parser,
    }

    @classmethod
    def register(cls, site: str, transport: str, parser_class: Type[BaseParser]):
        """
        注册新的解析器

        Examples:
            SpiderFactory.register('ck101', 'firecrawl', MyCK101MarkdownParser)
        """
        cls._parser_registry[(site, transport)] = parser_class
        logger.info(f"✅ 注册解析器: {site}/{transport} -> {parser_class.__name__}")

    @classmethod
    def create(
        cls,
        site: Optional[str] = None,
        config: Optional[Config] = None,
        transport: Optional[str] = None,
        fetcher: Optional[ContentFetcher] = None,
    ) -> CrawlOrchestrator:
        """
        创建爬虫实例（工厂方法）

        Args:
            site: 站点预设 (ptt/ck101)，覆盖 config 中的站点
            config: 配置对象（爬虫/图片/日志等）
            transport: 获取方式 (firecrawl/direct)，默认使用站点配置
            fetcher: 自定义内容获取器（测试或自定义传输时注入）

        Returns:
            CrawlOrchestrator 实例

        Raises:
            ValueError: 参数缺失或组合不受支持
        """
        if site:
            final_config = ConfigLoader.load(site, base=config)
        elif config:
            final_config = config.model_copy(deep=True)
        else:
            raise ValueError("必须提供 site 或 config 参数之一")

        if transport:
            final_config.site.transport = transport
        site_name = final_config.site.name.lower()
        transport_name = final_config.site.transport.lower()

        parser_class = cls._parser_registry.get((site_name, transport_name))
        if parser_class is None:
            raise ValueError(f"不支持的组合: site={site_name}, transport={transport_name}")

        if fetcher is None:
            fetcher_class = cls._fetcher_registry.get(transport_name)
            if fetcher_class is None:
                raise ValueError(f"未知的获取方式: {transport_name}")
            fetcher = fetcher_class(final_config)

        normalizer = ImageLinkNormalizer()
        parser = parser_class(category_marker=final_config.site.category_marker, normalizer=normalizer)

        logger.info(f"🏭 创建爬虫: {site_name} ({parser_class.__name__} + {type(fetcher).__name__})")

        return CrawlOrchestrator(
            config=final_config,
            fetcher=fetcher,
            parser=parser,
            resolver=PaginationResolver(final_config.site),
            normalizer=normalizer,
        )
