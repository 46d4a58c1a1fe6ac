"""
Markdown 页面解析器

解析 Firecrawl 返回的 PTT 列表页 / 文章页 Markdown。

列表页中每篇帖子是一个三行的块：
    ## [正妹] 标题
    [Read More](https://www.ptt.cc/bbs/Beauty/M.123.A.XYZ.html)
    Author: author1 Date: 5/24 Push: 10

文章页开头是加粗字段组成的元数据块：
    **Author**: user (Nickname)
    **Board**: Beauty
    **Title**: [正妹] 标题
    **Date**: Mon Jan 01 12:34:56 2024
之后是正文、Markdown 图片 ![](url)，最后是签名档 / 推文区。
"""
import re
from typing import List, Optional

from loguru import logger

from core.models import Article, PostRecord
from parsers.base import BaseParser, ExtractionStrategy, run_strategies

# 行间允许空行
_NL = r"[ \t]*\n(?:[ \t]*\n)*"

POST_BLOCK = re.compile(
    r"^##[ \t]*(?P<title>[^\n]*?)" + _NL
    + r"[^\n]*?\[[^\n]*?\]\((?P<url>[^)\s]+)\)" + _NL
    + r"Author:[ \t]*(?P<author>[^\n]*?)[ \t]*Date:[ \t]*(?P<date>[^\n]*?)[ \t]*Push:[ \t]*(?P<score>[^\n]*)",
    re.MULTILINE,
)

METADATA_STRATEGIES = (
    ExtractionStrategy(
        name="full_metadata",
        pattern=re.compile(
            r"^\*\*Author\*\*:[ \t]*(?P<author>[^\n]*?)(?:[ \t]*\([^\n]*?\))?" + _NL
            + r"\*\*Board\*\*:[ \t]*(?P<board>[^\n]*?)" + _NL
            + r"\*\*Title\*\*:[ \t]*(?P<title>[^\n]*?)" + _NL
            + r"\*\*Date\*\*:[ \t]*(?P<date>[^\n]*?)[ \t]*$",
            re.MULTILINE,
        ),
        confidence=1.0,
    ),
    ExtractionStrategy(
        name="title_only",
        pattern=re.compile(r"^\*\*Title\*\*:[ \t]*(?P<title>[^\n]*)", re.MULTILINE),
        confidence=0.5,
    ),
)

IMAGE_MARKUP = re.compile(
    r"!\[[^\n]*?\]\((?P<url>https?://\S+?\.(?:jpg|jpeg|png|gif|bmp|webp))\)",
    re.IGNORECASE,
)

# 签名档 / 推文区的起始行
SIGNATURE = re.compile(
    r"^(?:--[ \t]*$|※\s(?:發信站|編輯|轉錄至看板|推噓紀錄).*|推\s|噓\s|→\s|◆\sFrom:)",
    re.MULTILINE,
)


class MarkdownParser(BaseParser):
    """
    Firecrawl Markdown 解析器

    - extract_posts(): 列表页帖子（分类过滤、推文数转换）
    - extract_article(): 元数据 / 图片 / 正文三个阶段互相独立
    """

    def __init__(self, category_marker: Optional[str] = "[正妹]", normalizer=None):
        """
        Args:
            category_marker: 分类标记
            normalizer: ImageLinkNormalizer，可选；提供时对图片链接做规范化
        """
        super().__init__(category_marker)
        self.normalizer = normalizer

    def extract_posts(self, raw: str, base_address: str) -> List[PostRecord]:
        """
        解析列表页 Markdown

        Args:
            raw: Markdown 内容
            base_address: 站点地址（补全相对链接）

        Returns:
            通过分类过滤的帖子，保持页面顺序
        """
        posts = []
        matched = 0
        for match in POST_BLOCK.finditer(raw or ""):
            matched += 1
            post = self._make_post(
                title=match.group("title"),
                url=match.group("url"),
                score_token=match.group("score"),
                base_address=base_address,
                author=match.group("author"),
                date=match.group("date"),
            )
            if post is None:
                logger.debug(f"⏭️  跳过不符合分类的帖子: {match.group('title').strip()}")
                continue
            posts.append(post)

        if matched == 0 and raw:
            logger.warning(f"⚠️  Markdown 中没有找到帖子，内容片段: {raw[:500]!r}")
        else:
            logger.debug(f"解析到 {matched} 个帖子块，保留 {len(posts)} 个")
        return posts

    def extract_article(self, raw: str) -> Article:
        """
        解析文章页 Markdown

        like / dislike 无法从 Markdown 中得到，固定为 0。
        """
        raw = raw or ""

        # 1. 元数据：完整字段块 → 仅标题 → 全空
        meta = run_strategies(METADATA_STRATEGIES, raw)
        if meta.strategy == "title_only":
            logger.debug(f"元数据块不完整，使用标题回退: {meta.get('title')}")
        elif not meta.matched and raw:
            logger.debug("未找到元数据与标题")
        content_start = meta.end

        # 2. 图片：扫描全文，与元数据结果无关
        image_urls = tuple(self._normalize(m.group("url")) for m in IMAGE_MARKUP.finditer(raw))

        # 3. 正文：元数据之后、签名档之前，去掉图片行
        return Article(
            author=meta.get("author"),
            board=meta.get("board"),
            title=meta.get("title"),
            date=meta.get("date"),
            image_urls=image_urls,
            content=self._extract_content(raw, content_start),
        )

    def _extract_content(self, raw: str, start: int) -> str:
        signature = SIGNATURE.search(raw, start)
        end = signature.start() if signature else len(raw)
        if end <= start:
            return ""
        lines = [line for line in raw[start:end].split("\n") if not IMAGE_MARKUP.search(line)]
        return "\n".join(lines).strip()

    def _normalize(self, link: str) -> str:
        if self.normalizer is None:
            return link
        return self.normalizer.normalize(link)
