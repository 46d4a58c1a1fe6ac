"""
图片下载器模块
"""
import aiohttp
import io
import re
from pathlib import Path
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse
from loguru import logger
from fake_useragent import UserAgent
from PIL import Image

from config import Config, config as global_config
from core.models import DownloadResult, DownloadStatus

# 文件名与扩展名
IMAGE_NAME = re.compile(r"([^/]+)\.(png|jpg|jpeg|gif)", re.IGNORECASE)
# i.imgur.com 需要 Referer
IMGUR_NAME = re.compile(r"([^/]+)\.(jpg|jpeg|png)", re.IGNORECASE)
IMGUR_DIRECT_HOST = "i.imgur.com"

ENCODERS = {
    "jpg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
}


def image_filename(link: str) -> Optional[Tuple[str, str]]:
    """
    从链接得到 (文件名主干, 规范化扩展名)，jpeg 统一为 jpg

    无法识别时返回 None
    """
    path = urlparse(link).path or link
    match = IMAGE_NAME.search(path)
    if not match:
        return None
    ext = match.group(2).lower()
    if ext == "jpeg":
        ext = "jpg"
    return match.group(1), ext


class ImageDownloader:
    """图片下载器"""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or global_config
        self.image_config = self.config.image
        self.crawler_config = self.config.crawler
        self._ua: Optional[UserAgent] = None
        self.session: Optional[aiohttp.ClientSession] = None
        self.download_stats = {
            "total": 0,
            "saved": 0,
            "filtered": 0,
            "failed": 0,
        }

    async def __aenter__(self):
        """异步上下文管理器入口"""
        await self.init_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def init_session(self):
        """初始化HTTP会话"""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.crawler_config.request_timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)
            logger.debug("Image downloader initialized")

    async def close(self):
        """关闭会话"""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info(f"Download stats: {self.download_stats}")

    def get_headers(self, url: str) -> Dict[str, str]:
        """获取请求头"""
        if self.crawler_config.rotate_user_agent:
            if self._ua is None:
                self._ua = UserAgent()
            user_agent = self._ua.random
        else:
            user_agent = self.crawler_config.user_agent
        headers = {"User-Agent": user_agent}

        if urlparse(url).hostname == IMGUR_DIRECT_HOST:
            match = IMGUR_NAME.search(url)
            if match:
                headers["Referer"] = f"https://imgur.com/{match.group(1)}"
        return headers

    async def download(self, url: str, dest_dir: Path) -> DownloadResult:
        """
        下载单张图片

        Args:
            url: 图片URL
            dest_dir: 保存目录（需已存在）

        Returns:
            下载结果：saved / filtered / failed，失败不会抛出异常
        """
        self.download_stats["total"] += 1

        try:
            image_data = await self._fetch(url)
        except Exception as e:
            logger.error(f"Failed to download {url}: {e!r}")
            return self._result(url, DownloadStatus.FAILED, error=str(e) or repr(e))

        try:
            img = self._decode(image_data)
        except Exception as e:
            logger.error(f"Failed to decode {url}: {e!r}")
            return self._result(url, DownloadStatus.FAILED, error=f"decode: {e}")

        width, height = img.size
        if width <= self.image_config.min_width or height <= self.image_config.min_height:
            logger.debug(f"Image dimensions too small: {url} ({width}x{height})")
            return self._result(url, DownloadStatus.FILTERED, width=width, height=height)

        name = image_filename(url)
        if name is None:
            logger.error(f"Cannot derive filename from {url}")
            return self._result(url, DownloadStatus.FAILED, width=width, height=height,
                                error="unrecognized filename")
        stem, ext = name
        save_path = dest_dir / f"{stem}.{ext}"

        try:
            self._encode(img, save_path, ext)
        except Exception as e:
            logger.error(f"Failed to save {save_path}: {e!r}")
            return self._result(url, DownloadStatus.FAILED, path=save_path,
                                width=width, height=height, error=f"save: {e}")

        logger.success(f"Downloaded: {save_path.name} ({width}x{height})")
        return self._result(url, DownloadStatus.SAVED, path=save_path, width=width, height=height)

    async def _fetch(self, url: str) -> bytes:
        await self.init_session()
        logger.debug(f"Downloading image: {url}")
        async with self.session.get(url, headers=self.get_headers(url)) as response:
            if response.status != 200:
                raise Exception(f"HTTP {response.status}")
            return await response.read()

    def _decode(self, image_data: bytes) -> Image.Image:
        """解码图片，通用解码失败时按 PNG 重试一次"""
        try:
            img = Image.open(io.BytesIO(image_data))
            img.load()
            return img
        except Exception as e:
            logger.debug(f"Generic decode failed ({e!r}), retrying as PNG")
        img = Image.open(io.BytesIO(image_data), formats=["PNG"])
        img.load()
        return img

    def _encode(self, img: Image.Image, save_path: Path, ext: str):
        """按扩展名选择编码器写入文件"""
        fmt = ENCODERS[ext]
        save_kwargs = {}

        if fmt == "JPEG":
            # JPEG 不支持透明通道
            if img.mode in ("RGBA", "LA", "P"):
                if img.mode == "P":
                    img = img.convert("RGBA")
                background = Image.new("RGB", img.size, (255, 255, 255))
                background.paste(img, mask=img.split()[-1])
                img = background
            elif img.mode != "RGB":
                img = img.convert("RGB")
            save_kwargs["quality"] = self.image_config.jpeg_quality

        with open(save_path, "wb") as f:
            img.save(f, format=fmt, **save_kwargs)

    def _result(self, url: str, status: DownloadStatus, **kwargs) -> DownloadResult:
        self.download_stats[status.value] += 1
        return DownloadResult(url=url, status=status, **kwargs)

    def get_stats(self) -> Dict[str, int]:
        """获取下载统计"""
        return self.download_stats.copy()
