"""
数据模型

- PostRecord: 列表页中的一篇帖子
- Article: 帖子详情页的解析结果
- DownloadResult / DownloadReport: 图片下载结果
"""
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


class PostRecord(BaseModel):
    """列表页帖子"""
    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str
    url: str
    score: int = 0
    author: str = ""
    date: str = ""


class Article(BaseModel):
    """
    帖子详情

    构造后不再修改；标题为空表示获取/解析失败。
    """
    model_config = ConfigDict(frozen=True)

    author: str = ""
    board: str = ""
    title: str = ""
    date: str = ""
    image_urls: Tuple[str, ...] = ()
    content: str = ""
    like: int = 0
    dislike: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.title


class DownloadStatus(str, Enum):
    SAVED = "saved"
    FILTERED = "filtered"
    FAILED = "failed"


class DownloadResult(BaseModel):
    """单张图片的下载结果"""
    model_config = ConfigDict(frozen=True)

    url: str
    status: DownloadStatus
    path: Optional[Path] = None
    width: int = 0
    height: int = 0
    error: Optional[str] = None


class DownloadReport(BaseModel):
    """一次批量下载的结果汇总"""
    dest_dir: Path
    results: List[DownloadResult] = Field(default_factory=list)

    def _count(self, status: DownloadStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def saved(self) -> int:
        return self._count(DownloadStatus.SAVED)

    @property
    def filtered(self) -> int:
        return self._count(DownloadStatus.FILTERED)

    @property
    def failed(self) -> int:
        return self._count(DownloadStatus.FAILED)

    def get_stats(self) -> dict:
        """获取统计"""
        return {
            "total": len(self.results),
            "saved": self.saved,
            "filtered": self.filtered,
            "failed": self.failed,
        }
