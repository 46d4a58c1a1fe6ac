"""
PTT 网页解析器

直接抓取 PTT 网页（带 over18 Cookie）时使用，解析 HTML 而不是 Markdown。
与 MarkdownParser 输出相同的 PostRecord / Article，另外能统计推 / 嘘数。
"""
import re
from typing import List, Optional

from bs4 import BeautifulSoup
from loguru import logger

from core.link_normalizer import ImageLinkNormalizer
from core.models import Article, PostRecord
from parsers.base import BaseParser
from parsers.markdown_parser import SIGNATURE

# 元数据标签 → Article 字段
META_TAGS = {
    "作者": "author",
    "看板": "board",
    "標題": "title",
    "時間": "date",
}

_NICKNAME = re.compile(r"\s*\(.*\)\s*$")


class PttHtmlParser(BaseParser):
    """
    PTT HTML 解析器

    - 列表页: div.r-ent
    - 文章页: .article-metaline 元数据、<a href> 图片链接、.push-tag 推文
    """

    def __init__(
        self,
        category_marker: Optional[str] = "[正妹]",
        normalizer: Optional[ImageLinkNormalizer] = None,
    ):
        super().__init__(category_marker)
        self.normalizer = normalizer or ImageLinkNormalizer()

    def extract_posts(self, raw: str, base_address: str) -> List[PostRecord]:
        """解析列表页"""
        soup = BeautifulSoup(raw or "", "lxml")
        posts = []
        entries = soup.select("div.r-ent")

        for entry in entries:
            link = entry.select_one("div.title a")
            # 已删除的帖子没有链接
            if link is None or not link.get("href"):
                continue
            nrec = entry.select_one("div.nrec")
            author = entry.select_one("div.meta .author")
            date = entry.select_one("div.meta .date")
            post = self._make_post(
                title=link.get_text(),
                url=link["href"],
                score_token=nrec.get_text() if nrec else "",
                base_address=base_address,
                author=author.get_text() if author else "",
                date=date.get_text() if date else "",
            )
            if post is not None:
                posts.append(post)

        if not entries and raw:
            logger.warning("⚠️  页面中没有找到帖子列表 (div.r-ent)")
        return posts

    def extract_article(self, raw: str) -> Article:
        """解析文章页"""
        soup = BeautifulSoup(raw or "", "lxml")

        metadata = self._extract_metadata(soup)
        if not metadata.get("title"):
            logger.debug("文章页中没有找到标题")

        like, dislike = self._count_pushes(soup)

        return Article(
            author=_NICKNAME.sub("", metadata.get("author", "")),
            board=metadata.get("board", ""),
            title=metadata.get("title", ""),
            date=metadata.get("date", ""),
            image_urls=tuple(self.extract_image_links(soup)),
            content=self._extract_content(soup),
            like=like,
            dislike=dislike,
        )

    def extract_image_links(self, soup: BeautifulSoup) -> List[str]:
        """
        整页收集图片链接

        只保留白名单图床的链接，分享链接改写为直链
        """
        hrefs = [a.get("href", "") for a in soup.find_all("a")]
        return self.normalizer.prepare(hrefs, filter_hosts=True)

    def _extract_metadata(self, soup: BeautifulSoup) -> dict:
        metadata = {}
        for line in soup.select(".article-metaline, .article-metaline-right"):
            tag = line.select_one(".article-meta-tag")
            value = line.select_one(".article-meta-value")
            if tag is None or value is None:
                continue
            field_name = META_TAGS.get(tag.get_text(strip=True))
            if field_name:
                metadata[field_name] = value.get_text(strip=True)
        return metadata

    def _count_pushes(self, soup: BeautifulSoup):
        like = dislike = 0
        for tag in soup.select(".push-tag"):
            text = tag.get_text()
            if "推" in text:
                like += 1
            elif "噓" in text:
                dislike += 1
        return like, dislike

    def _extract_content(self, soup: BeautifulSoup) -> str:
        main = soup.select_one("#main-content")
        if main is None:
            return ""
        for node in main.select(".article-metaline, .article-metaline-right, .push"):
            node.decompose()

        text = main.get_text()
        signature = SIGNATURE.search(text)
        if signature:
            text = text[:signature.start()]

        lines = [line for line in text.split("\n") if not self._is_image_line(line)]
        return "\n".join(lines).strip()

    def _is_image_line(self, line: str) -> bool:
        line = line.strip()
        return bool(line) and self.normalizer.is_accepted_host(self.normalizer.normalize(line))
