"""
下载工作池

生产者-消费者模式：先把全部链接放入无界队列，再启动固定数量的消费者
并发下载，直到队列被取空。单个链接失败只影响该链接。
"""
import asyncio
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger
from tqdm import tqdm

from core.downloader import ImageDownloader
from core.models import DownloadReport, DownloadResult, DownloadStatus


class DownloadWorkerPool:
    """
    图片下载工作池

    Example:
        async with ImageDownloader(config) as downloader:
            pool = DownloadWorkerPool(downloader)
            report = await pool.run(dest_dir, links, concurrency=25)
    """

    def __init__(self, downloader: ImageDownloader, show_progress: bool = False):
        """
        Args:
            downloader: 单张图片下载器（所有消费者共享其 HTTP 会话）
            show_progress: 是否显示进度条
        """
        self.downloader = downloader
        self.show_progress = show_progress

    async def consumer(
        self,
        queue: "asyncio.Queue[str]",
        dest_dir: Path,
        results: List[DownloadResult],
        worker_id: int,
        progress: Optional[tqdm] = None,
    ):
        """
        消费者：从队列取链接并下载，队列取空即退出

        Args:
            queue: 已填充完毕的链接队列
            dest_dir: 保存目录
            results: 共享的结果列表
            worker_id: 消费者ID（用于日志）
            progress: 进度条
        """
        logger.debug(f"🔧 消费者 {worker_id} 启动")
        while True:
            try:
                url = queue.get_nowait()
            except asyncio.QueueEmpty:
                break

            try:
                result = await self.downloader.download(url, dest_dir)
            except Exception as e:
                logger.error(f"   ❌ 消费者 {worker_id} 任务失败: {url} - {e!r}")
                result = DownloadResult(url=url, status=DownloadStatus.FAILED, error=str(e) or repr(e))
            finally:
                queue.task_done()

            results.append(result)
            if progress is not None:
                progress.update(1)

        logger.debug(f"🔒 消费者 {worker_id} 退出")

    async def run(self, dest_dir: Path, links: Sequence[str], concurrency: int) -> DownloadReport:
        """
        并发下载

        Args:
            dest_dir: 保存目录
            links: 图片链接
            concurrency: 消费者数量（正整数）

        Returns:
            每个链接一条结果的汇总（顺序与完成顺序一致）
        """
        if concurrency < 1:
            raise ValueError(f"并发数必须为正整数: {concurrency}")

        dest_dir = Path(dest_dir)
        report = DownloadReport(dest_dir=dest_dir)
        if not links:
            logger.info("⏭️  没有需要下载的图片")
            return report

        queue: "asyncio.Queue[str]" = asyncio.Queue()
        for link in links:
            queue.put_nowait(link)

        logger.info(f"⬇️  下载 {len(links)} 张图片, {concurrency} 个并发 → {dest_dir}")

        progress = tqdm(total=len(links), desc="下载进度") if self.show_progress else None
        try:
            await asyncio.gather(*[
                self.consumer(queue, dest_dir, report.results, worker_id=i, progress=progress)
                for i in range(concurrency)
            ])
        finally:
            if progress is not None:
                progress.close()

        logger.success(f"✅ 下载完成: {report.get_stats()}")
        return report
