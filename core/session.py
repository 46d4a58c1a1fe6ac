"""
爬取会话状态

保存“当前列出的帖子”，按 replace 标志替换或追加。
每个爬虫实例持有自己的会话，不在实例间共享。
"""
from typing import Iterable, Iterator, List

from core.models import PostRecord


class CrawlSession:
    """当前帖子列表"""

    def __init__(self):
        self._posts: List[PostRecord] = []

    def __len__(self) -> int:
        return len(self._posts)

    def __iter__(self) -> Iterator[PostRecord]:
        return iter(self._posts)

    @property
    def count(self) -> int:
        return len(self._posts)

    @property
    def posts(self) -> List[PostRecord]:
        return list(self._posts)

    def store(self, posts: Iterable[PostRecord], replace: bool) -> int:
        """替换或追加帖子，返回新的总数"""
        if replace:
            self._posts = list(posts)
        else:
            self._posts.extend(posts)
        return len(self._posts)

    def clear(self):
        self._posts = []

    def get(self, index: int):
        if 0 <= index < len(self._posts):
            return self._posts[index]
        return None

    def title_at(self, index: int) -> str:
        post = self.get(index)
        return post.title if post else ""

    def url_at(self, index: int) -> str:
        post = self.get(index)
        return post.url if post else ""

    def score_at(self, index: int) -> int:
        post = self.get(index)
        return post.score if post else 0
