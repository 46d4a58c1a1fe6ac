"""
CLI命令处理函数
"""
import webbrowser
from typing import Optional

from loguru import logger

from config import config
from core.exceptions import UnsupportedOperationError
from core.models import DownloadReport
from spiders import SpiderFactory

BROWSE_HELP = "n:下一页  p:上一页  s:第一页  o:打开下载目录  d <序号>:下载  k <关键词>:搜索  quit:退出"


def create_spider(args):
    """按命令行参数创建爬虫"""
    return SpiderFactory.create(site=args.site, config=config, transport=args.transport)


def print_page_result(spider):
    """输出当前帖子列表: <序号>:[<推文数>★]<标题>"""
    posts = spider.posts
    if not len(posts):
        print("（没有帖子）")
        return
    for i in range(len(posts)):
        print(f"{i}:[{posts.score_at(i)}★]{posts.title_at(i)}")


def print_report(report: Optional[DownloadReport]):
    """输出下载结果"""
    if report is None:
        print("⏭️  未下载（已下载过或无法获取帖子）")
        return
    stats = report.get_stats()
    print(f"✅ 下载完成 → {report.dest_dir}")
    print(f"  保存: {stats['saved']}  尺寸过滤: {stats['filtered']}  失败: {stats['failed']}")


def print_statistics(spider):
    """输出统计信息"""
    stats = spider.get_statistics()
    print("\n" + "=" * 60)
    print("📊 爬取统计:")
    print(f"  列表页: {stats['pages_listed']} (失败 {stats['pages_failed']})")
    print(f"  当前帖子数: {stats['posts_listed']}")
    print(f"  下载帖子: {stats['posts_downloaded']} (跳过 {stats['posts_skipped']})")
    print(f"  保存图片: {stats['images_saved']}")
    print(f"  尺寸过滤: {stats['images_filtered']}")
    print(f"  下载失败: {stats['images_failed']}")
    print("=" * 60)


def open_folder(spider):
    """在文件管理器中打开下载目录"""
    base_dir = spider.base_dir
    base_dir.mkdir(parents=True, exist_ok=True)
    webbrowser.open(base_dir.resolve().as_uri())


async def _download_index(spider, argument: str, workers: Optional[int]):
    """处理 browse 中的 d <序号>"""
    try:
        index = int(argument)
    except ValueError:
        print(f"❌ 无效的序号: {argument!r}")
        return
    if index < 0 or index >= len(spider.posts):
        print(f"❌ 序号超出范围: {index} (共 {len(spider.posts)} 篇)")
        return

    url = spider.posts.url_at(index)
    if not spider.has_valid_url(url):
        print(f"❌ 不支持的帖子URL: {url}")
        return

    title = spider.posts.title_at(index)
    print(f"⬇️  下载: {title}")
    report = await spider.download_post(url, concurrency=workers)
    print_report(report)


async def handle_browse(args):
    """处理 browse 子命令（交互浏览）"""
    print(f"\n📌 命令: 交互浏览 {args.site}")
    print(BROWSE_HELP)

    async with create_spider(args) as spider:
        page = 0
        await spider.list_page(page)
        print_page_result(spider)

        while True:
            try:
                line = input(f"[第 {page} 页] > ").strip()
            except EOFError:
                break

            command, _, argument = line.partition(" ")
            argument = argument.strip()

            if command in ("quit", "q", "exit"):
                break
            elif command == "n":
                page += 1
                await spider.list_page(page)
                print_page_result(spider)
            elif command == "p":
                page = max(page - 1, 0)
                await spider.list_page(page)
                print_page_result(spider)
            elif command == "s":
                page = 0
                await spider.list_page(page)
                print_page_result(spider)
            elif command == "o":
                open_folder(spider)
            elif command == "d":
                await _download_index(spider, argument, args.workers)
            elif command == "k":
                if not argument:
                    print("❌ 请输入关键词: k <关键词>")
                    continue
                try:
                    await spider.list_by_keyword(argument)
                except UnsupportedOperationError as e:
                    print(f"❌ {e}")
                    continue
                print_page_result(spider)
            elif command:
                print(BROWSE_HELP)

        print_statistics(spider)


async def handle_list(args):
    """处理 list 子命令"""
    print(f"\n📌 命令: 列出帖子 {args.site}")
    print(f"页码: {args.page}")
    if args.min_count:
        print(f"至少: {args.min_count} 篇")

    async with create_spider(args) as spider:
        if args.min_count:
            await spider.list_at_least(args.min_count, start_page=args.page)
        else:
            await spider.list_page(args.page)
        print_page_result(spider)


async def handle_search(args):
    """处理 search 子命令"""
    print(f"\n📌 命令: 搜索 {args.site}")
    print(f"关键词: {args.keyword}")

    async with create_spider(args) as spider:
        try:
            await spider.list_by_keyword(args.keyword)
        except UnsupportedOperationError as e:
            logger.error(f"❌ {e}")
            return
        print_page_result(spider)


async def handle_download(args):
    """处理 download 子命令"""
    print(f"\n📌 命令: 下载帖子 {args.site}")
    print(f"URL: {args.url}")

    async with create_spider(args) as spider:
        if not spider.has_valid_url(args.url):
            logger.error(f"❌ 无效的帖子URL: {args.url}")
            return
        report = await spider.download_post(args.url, concurrency=args.workers)
        print_report(report)
        print_statistics(spider)
