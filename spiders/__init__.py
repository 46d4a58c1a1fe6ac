"""
爬虫模块

- CrawlOrchestrator: 站点爬取调度器（列出帖子 / 下载帖子图片）
- SpiderFactory: 爬虫工厂
"""
from spiders.orchestrator import CrawlOrchestrator
from spiders.spider_factory import SpiderFactory

__all__ = [
    'CrawlOrchestrator',
    'SpiderFactory',
]
