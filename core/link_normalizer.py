"""
图片链接规范化模块
"""
import re
from typing import Iterable, List, Optional
from urllib.parse import urlparse

# 支持下载的图床
DEFAULT_ACCEPTED_HOSTS = (
    "i.imgur.com",
    "imgur.com",
    "pbs.twimg.com",
    "i.meee.com.tw",
    "i.ytimg.com",
    "d.img.vision",
)

_SHARE_LINK = re.compile(r"^https?://imgur\.com/(?:[^/?#]+/)*([^/?#]+)/?$")
_HAS_IMAGE_EXT = re.compile(r"\.(?:jpg|jpeg|png|gif|bmp|webp)$", re.IGNORECASE)


class ImageLinkNormalizer:
    """
    图片链接规范化

    - normalize(): imgur 分享链接 → i.imgur.com 直链
    - is_accepted_host(): 图床白名单校验（只在下载前使用）
    """

    def __init__(
        self,
        accepted_hosts: Optional[Iterable[str]] = None,
        direct_host: str = "i.imgur.com",
        default_ext: str = "jpeg",
    ):
        hosts = DEFAULT_ACCEPTED_HOSTS if accepted_hosts is None else accepted_hosts
        self.accepted_hosts = frozenset(h.lower() for h in hosts)
        self.direct_host = direct_host
        self.default_ext = default_ext

    def normalize(self, link: str) -> str:
        """
        规范化图片链接

        分享链接（https://imgur.com/<id>）没有扩展名，统一改写为
        https://i.imgur.com/<id>.jpeg；其他链接原样返回。
        """
        match = _SHARE_LINK.match(link.strip())
        if not match:
            return link
        image_id = match.group(1)
        if _HAS_IMAGE_EXT.search(image_id):
            return f"https://{self.direct_host}/{image_id}"
        return f"https://{self.direct_host}/{image_id}.{self.default_ext}"

    def is_accepted_host(self, link: str) -> bool:
        """链接是否来自白名单图床"""
        if not link:
            return False
        try:
            parsed = urlparse(link)
        except ValueError:
            return False
        if parsed.scheme not in ("http", "https"):
            return False
        return (parsed.hostname or "").lower() in self.accepted_hosts

    def prepare(self, links: Iterable[str], filter_hosts: bool = True) -> List[str]:
        """规范化并（可选）按白名单过滤，保持原顺序"""
        prepared = []
        for link in links:
            normalized = self.normalize(link)
            if filter_hosts and not self.is_accepted_host(normalized):
                continue
            prepared.append(normalized)
        return prepared
