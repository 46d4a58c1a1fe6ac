"""
配置管理模块 - 论坛图片爬虫
统一配置管理，支持多站点预设（PTT / CK101）
"""
from pydantic import BaseModel, Field
from typing import Optional, List
import os
from pathlib import Path
from dotenv import load_dotenv
from loguru import logger

load_dotenv()

# 项目根目录
BASE_DIR = Path(__file__).parent

# 默认浏览器标识
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class SiteConfig(BaseModel):
    """站点配置"""
    # 基础信息
    name: str = Field(default="ptt", description="站点标识")
    label: str = Field(default="PTT", description="站点标签（用于下载目录命名）")
    base_url: str = Field(default="https://www.ptt.cc", description="站点基础URL")
    entry_url: str = Field(default="https://www.ptt.cc/bbs/Beauty/index.html", description="最新列表页")

    # 分页
    page_url_template: str = Field(
        default="https://www.ptt.cc/bbs/Beauty/index{index}.html",
        description="分页URL模板，{index} 为页码"
    )
    page_offset: int = Field(default=0, description="页码偏移（一基页码的站点为1）")
    search_url: Optional[str] = Field(
        default="https://www.ptt.cc/bbs/Beauty/search?q=",
        description="搜索入口，为空表示不支持搜索"
    )

    # 过滤与解析
    category_marker: Optional[str] = Field(default="[正妹]", description="分类标记，为空表示不过滤")
    filter_image_hosts: bool = Field(default=True, description="下载前是否按图床白名单过滤")
    thread_id_pattern: Optional[str] = Field(default=r"M\.(\d*)\.", description="帖子URL校验正则")
    transport: str = Field(default="firecrawl", description="内容获取方式: firecrawl/direct")
    age_gate_cookie: str = Field(default="over18=1", description="年龄验证Cookie")


class CrawlerConfig(BaseModel):
    """爬虫配置"""
    # 并发控制
    max_workers: int = Field(default=25, description="下载并发数")
    request_timeout: int = Field(default=30, description="请求超时时间（秒）")

    # User-Agent配置
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="固定UA")
    rotate_user_agent: bool = Field(default=False, description="是否轮换UA")

    # 翻页保护
    max_scan_pages: int = Field(default=10, description="list_at_least 最多扫描页数")
    max_stalled_pages: int = Field(default=3, description="连续无新帖的最大页数")

    show_progress: bool = Field(default=False, description="下载时显示进度条")


class ImageConfig(BaseModel):
    """图片配置"""
    # 存储路径
    download_dir: Path = Field(
        default=Path.home() / "Pictures" / "photomgr",
        description="下载目录"
    )
    dir_mode: int = Field(default=0o755, description="目录权限")

    # 图片过滤（宽高都必须大于阈值）
    min_width: int = Field(default=300, description="最小宽度")
    min_height: int = Field(default=300, description="最小高度")
    jpeg_quality: int = Field(default=75, description="JPEG编码质量")


class FirecrawlConfig(BaseModel):
    """Firecrawl 抓取服务配置"""
    api_url: str = Field(default="https://api.firecrawl.dev/v1/scrape", description="抓取接口")
    api_key: Optional[str] = Field(default=None, description="API密钥 (FIRECRAWL_KEY)")
    formats: List[str] = Field(default_factory=lambda: ["markdown"], description="返回格式")
    only_main_content: bool = Field(default=True, description="只返回正文")
    wait_for: int = Field(default=1000, description="页面等待时间（毫秒）")


class LogConfig(BaseModel):
    """日志配置"""
    log_level: str = Field(default="INFO", description="日志级别")
    log_dir: Path = Field(default=BASE_DIR / "logs", description="日志目录")
    log_file: str = Field(default="photomgr.log", description="日志文件名")
    rotation: str = Field(default="100 MB", description="日志轮转大小")
    retention: str = Field(default="30 days", description="日志保留时间")


class Config(BaseModel):
    """全局配置"""
    site: SiteConfig = Field(default_factory=SiteConfig)
    crawler: CrawlerConfig = Field(default_factory=CrawlerConfig)
    image: ImageConfig = Field(default_factory=ImageConfig)
    firecrawl: FirecrawlConfig = Field(default_factory=FirecrawlConfig)
    log: LogConfig = Field(default_factory=LogConfig)


# ============================================================================
# 站点预设配置
# ============================================================================

class SitePresets:
    """站点预设 - 只包含站点相关的配置"""

    @staticmethod
    def ptt() -> SiteConfig:
        """PTT 表特板"""
        return SiteConfig()

    @staticmethod
    def ck101() -> SiteConfig:
        """CK101 图片区"""
        return SiteConfig(
            name="ck101",
            label="CK101",
            base_url="https://www.CK101.cc",
            entry_url="http://ck101.com/forum-1345-1.html",
            page_url_template="http://ck101.com/forum-1345-{index}.html",
            page_offset=1,
            search_url=None,
            category_marker=None,
            filter_image_hosts=False,
            thread_id_pattern=None,
            transport="direct",
        )


SITE_PRESETS = {
    "ptt": SitePresets.ptt,
    "ck101": SitePresets.ck101,
}


# ============================================================================
# 配置加载器
# ============================================================================

class ConfigLoader:
    """配置加载器"""

    @staticmethod
    def load(site: str = "ptt", base: Optional[Config] = None) -> Config:
        """
        加载站点配置

        Args:
            site: 站点名称 (ptt/ck101)
            base: 基础配置（爬虫/图片/日志等），默认从环境变量加载

        Returns:
            Config实例

        Raises:
            ValueError: 未知的站点名称
        """
        name = site.lower()
        if name not in SITE_PRESETS:
            available = ", ".join(SITE_PRESETS)
            raise ValueError(f"未知的站点: {site}，可用: {available}")

        final_config = (base or load_config_from_env()).model_copy(deep=True)
        final_config.site = SITE_PRESETS[name]()
        logger.debug(f"📋 使用站点预设: {name}")
        return final_config


# 从环境变量加载配置
def load_config_from_env() -> Config:
    """从环境变量加载配置"""
    config_data = {
        "crawler": {
            "max_workers": int(os.getenv("MAX_WORKERS", "25")),
            "request_timeout": int(os.getenv("REQUEST_TIMEOUT", "30")),
        },
        "firecrawl": {
            "api_key": os.getenv("FIRECRAWL_KEY") or None,
        },
        "log": {
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
        }
    }
    api_url = os.getenv("FIRECRAWL_API_URL")
    if api_url:
        config_data["firecrawl"]["api_url"] = api_url
    download_dir = os.getenv("PHOTOMGR_DOWNLOAD_DIR")
    if download_dir:
        config_data["image"] = {"download_dir": Path(download_dir).expanduser()}
    return Config(**config_data)


# 全局配置实例（默认从环境变量加载）
config = load_config_from_env()
