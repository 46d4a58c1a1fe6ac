"""
解析器模块

包含各种页面解析器：
- BaseParser: 解析器基类
- MarkdownParser: Firecrawl Markdown 解析器（PTT）
- PttHtmlParser: PTT 网页解析器
- CK101Parser: CK101 网页解析器
"""
from parsers.base import BaseParser, check_title, parse_score, extract_post_id
from parsers.markdown_parser import MarkdownParser
from parsers.ptt_html_parser import PttHtmlParser
from parsers.ck101_parser import CK101Parser

__all__ = [
    'BaseParser',
    'MarkdownParser',
    'PttHtmlParser',
    'CK101Parser',
    'check_title',
    'parse_score',
    'extract_post_id',
]
