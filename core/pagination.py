"""
分页解析模块

把逻辑页码 / 搜索关键词转换成可抓取的URL，不访问网络。

分页策略：page == 0 为最新列表页（入口地址）；page > 0 直接作为索引号
代入分页模板（index = page + page_offset），不再通过抓取入口页推算最大索引。
"""
from urllib.parse import quote

from config import SiteConfig
from core.exceptions import UnsupportedOperationError


class PaginationResolver:
    """分页解析器"""

    def __init__(self, site: SiteConfig):
        self.site = site

    def resolve(self, page: int) -> str:
        """
        获取列表页URL

        Args:
            page: 逻辑页码（非负整数）

        Returns:
            列表页URL

        Raises:
            ValueError: 页码为负数
        """
        if page < 0:
            raise ValueError(f"页码不能为负数: {page}")
        if page == 0:
            return self.site.entry_url
        return self.site.page_url_template.format(index=page + self.site.page_offset)

    def resolve_search(self, keyword: str) -> str:
        """获取搜索结果页URL"""
        if not self.site.search_url:
            raise UnsupportedOperationError(f"站点 {self.site.name} 不支持搜索")
        return self.site.search_url + quote(keyword)
