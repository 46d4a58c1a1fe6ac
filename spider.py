"""
论坛图片下载器 - 命令行入口
支持站点：PTT Beauty（Firecrawl / 直接请求）、CK101
"""
import asyncio
import sys
from typing import List, Optional

from loguru import logger

from config import Config, config
from cli import create_parser, handle_browse, handle_list, handle_search, handle_download

HANDLERS = {
    'browse': handle_browse,
    'list': handle_list,
    'search': handle_search,
    'download': handle_download,
}


def setup_logging(cfg: Config):
    """配置日志：彩色终端输出 + 按大小轮转的日志文件"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=cfg.log.log_level,
        colorize=True
    )

    log_file = cfg.log.log_dir / cfg.log.log_file
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation=cfg.log.rotation,
        retention=cfg.log.retention,
        encoding="utf-8",
        level="DEBUG"
    )


async def main(argv: Optional[List[str]] = None):
    """主函数 - 子命令模式"""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(config)

    print("\n" + "=" * 60)
    print("🖼️  论坛图片下载器")
    print("=" * 60)

    await HANDLERS[args.command](args)


def run():
    """console script 入口"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n👋 已中断")


if __name__ == "__main__":
    run()
