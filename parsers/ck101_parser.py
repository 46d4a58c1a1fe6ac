"""
CK101 页面解析器
"""
from typing import List, Optional

from bs4 import BeautifulSoup
from loguru import logger

from core.link_normalizer import ImageLinkNormalizer
from core.models import Article, PostRecord
from parsers.base import BaseParser

# <em title="查看 1234">
VIEW_PREFIX = "查看"


class CK101Parser(BaseParser):
    """
    CK101 解析器

    - 列表页: .cl_box 中的 <a title href>，浏览数来自 <em title="查看 N">
    - 文章页: <h1> 标题，div[itemprop=articleBody] 中 img 的 file 属性
    """

    def __init__(
        self,
        category_marker: Optional[str] = None,
        normalizer: Optional[ImageLinkNormalizer] = None,
    ):
        super().__init__(category_marker)
        self.normalizer = normalizer or ImageLinkNormalizer()

    def extract_posts(self, raw: str, base_address: str) -> List[PostRecord]:
        """解析列表页"""
        soup = BeautifulSoup(raw or "", "lxml")
        boxes = soup.select(".cl_box")
        posts = []

        for box in boxes:
            title = url = ""
            # 以最后一个链接为准
            for link in box.find_all("a"):
                title = link.get("title") or ""
                url = link.get("href") or ""

            score = ""
            for em in box.find_all("em"):
                em_title = em.get("title") or ""
                if VIEW_PREFIX in em_title:
                    score = em_title.replace(VIEW_PREFIX, "").strip()

            post = self._make_post(title=title, url=url, score_token=score, base_address=base_address)
            if post is not None:
                posts.append(post)

        if not boxes and raw:
            logger.warning("⚠️  页面中没有找到帖子列表 (.cl_box)")
        return posts

    def extract_article(self, raw: str) -> Article:
        """解析文章页"""
        soup = BeautifulSoup(raw or "", "lxml")

        heading = soup.find("h1")
        title = heading.get_text(strip=True) if heading else ""

        body = soup.select_one("div[itemprop=articleBody]")
        images = []
        content = ""
        if body is not None:
            for img in body.find_all("img"):
                src = img.get("file")
                if src:
                    images.append(self.normalizer.normalize(src))
            content = body.get_text("\n", strip=True)
        else:
            logger.debug("文章页中没有找到正文 (articleBody)")

        return Article(title=title, image_urls=tuple(images), content=content)
