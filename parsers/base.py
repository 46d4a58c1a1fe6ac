"""
解析器基类模块

包含解析器的抽象基类和公共工具：
- BaseParser: 解析器基类
- ExtractionStrategy / StrategyMatch: 按顺序尝试的命名提取策略
- check_title / parse_score / extract_post_id: 列表解析的公共规则
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
from urllib.parse import urljoin, urlparse

from core.models import Article, PostRecord

# 推文数“爆”表示超过 99
FULL_SCORE_TOKEN = "爆"
FULL_SCORE = 100

_BELOW_THRESHOLD = re.compile(r"^X\d*$")


def check_title(title: str, marker: Optional[str]) -> bool:
    """
    分类过滤：去除首尾空白后以分类标记开头才保留

    marker 为空时不过滤（所有标题都保留）
    """
    if not marker:
        return True
    return title.strip().startswith(marker)


def parse_score(token: str) -> int:
    """
    推文数转换

    - "爆" → 100
    - "X1"、"X5"（低于统计阈值）→ 0
    - 空字符串或其他非数字 → 0
    - 数字 → 对应整数
    """
    token = (token or "").strip()
    if token == FULL_SCORE_TOKEN:
        return FULL_SCORE
    if _BELOW_THRESHOLD.match(token):
        return 0
    try:
        return int(token)
    except ValueError:
        return 0


def extract_post_id(url: str) -> str:
    """
    从URL最后一段路径中提取帖子ID（去掉扩展名）

    https://www.ptt.cc/bbs/Beauty/M.1234567890.A.BCD.html -> M.1234567890.A.BCD
    """
    if not url:
        return ""
    try:
        path = urlparse(url).path
    except ValueError:
        return ""
    filename = path.rstrip("/").rsplit("/", 1)[-1]
    if not filename:
        return ""
    for suffix in (".html", ".htm", ".php"):
        if filename.endswith(suffix):
            return filename[:-len(suffix)]
    return filename


def absolute_url(url: str, base_address: str) -> str:
    """相对链接补全为绝对地址"""
    url = url.strip()
    if url.startswith("http"):
        return url
    if url.startswith("/"):
        return base_address.rstrip("/") + url
    return urljoin(base_address.rstrip("/") + "/", url)


# ============================================================================
# 提取策略
# ============================================================================

@dataclass(frozen=True)
class ExtractionStrategy:
    """
    命名提取策略

    pattern 的命名分组即提取出的字段；confidence 表示该策略结果的完整程度。
    """
    name: str
    pattern: "re.Pattern[str]"
    confidence: float


@dataclass(frozen=True)
class StrategyMatch:
    """策略匹配结果（可能是部分字段）"""
    strategy: str
    fields: Dict[str, str] = field(default_factory=dict)
    start: int = 0
    end: int = 0
    confidence: float = 0.0

    @property
    def matched(self) -> bool:
        return self.confidence > 0

    def get(self, name: str) -> str:
        return self.fields.get(name) or ""


NO_MATCH = StrategyMatch(strategy="none")


def run_strategies(strategies: Sequence[ExtractionStrategy], text: str) -> StrategyMatch:
    """按顺序尝试策略，返回第一个成功的匹配；全部失败返回 NO_MATCH"""
    for strategy in strategies:
        match = strategy.pattern.search(text)
        if match:
            fields = {k: (v or "").strip() for k, v in match.groupdict().items()}
            return StrategyMatch(
                strategy=strategy.name,
                fields=fields,
                start=match.start(),
                end=match.end(),
                confidence=strategy.confidence,
            )
    return NO_MATCH


# ============================================================================
# 解析器基类
# ============================================================================

class BaseParser(ABC):
    """
    解析器基类

    子类需要实现:
    - extract_posts(): 列表页 → PostRecord 列表
    - extract_article(): 详情页 → Article

    解析器是纯函数式的：不访问网络、不抛出解析异常，
    输入残缺时返回部分结果。
    """

    def __init__(self, category_marker: Optional[str] = None):
        self.category_marker = category_marker

    @abstractmethod
    def extract_posts(self, raw: str, base_address: str) -> List[PostRecord]:
        """解析列表页"""

    @abstractmethod
    def extract_article(self, raw: str) -> Article:
        """解析详情页"""

    def _make_post(
        self,
        title: str,
        url: str,
        score_token: str,
        base_address: str,
        author: str = "",
        date: str = "",
    ) -> Optional[PostRecord]:
        """
        按公共规则构造帖子，未通过分类过滤或没有链接时返回 None
        """
        title = title.strip()
        if not url or not url.strip():
            return None
        if not check_title(title, self.category_marker):
            return None
        url = absolute_url(url, base_address)
        return PostRecord(
            id=extract_post_id(url),
            title=title,
            url=url,
            score=parse_score(score_token),
            author=author.strip(),
            date=date.strip(),
        )
