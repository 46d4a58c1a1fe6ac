"""
CLI命令定义（argparse）
"""
import argparse

from config import SITE_PRESETS

TRANSPORTS = ['firecrawl', 'direct']


def _add_site_arguments(parser: argparse.ArgumentParser, sites=None):
    """站点与获取方式参数（各子命令共用）"""
    parser.add_argument('--site', type=str, default='ptt', choices=sites or sorted(SITE_PRESETS),
                        help='站点预设（默认：ptt）')
    parser.add_argument('--transport', type=str, default=None, choices=TRANSPORTS,
                        help='获取方式（默认：站点配置，PTT 为 firecrawl）')


def create_parser() -> argparse.ArgumentParser:
    """
    创建命令行参数解析器

    Returns:
        ArgumentParser 实例
    """
    parser = argparse.ArgumentParser(
        prog='photomgr',
        description='论坛图片下载器 (PTT Beauty / CK101)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
示例:
  # 交互浏览（n 下一页 / p 上一页 / s 第一页 / o 打开目录 / d 3 下载第3篇 / k 关键词 / quit）
  photomgr browse --site ck101 --workers 25

  # 列出最新页 / 至少 50 篇
  photomgr list --site ptt --page 0
  photomgr list --site ptt --min-count 50

  # 搜索（仅 PTT）
  photomgr search --keyword 新垣結衣

  # 下载单篇帖子
  photomgr download --url "https://www.ptt.cc/bbs/Beauty/M.1700000000.A.123.html"

  # 不经过 Firecrawl，直接请求 PTT 页面
  photomgr list --site ptt --transport direct
        '''
    )

    subparsers = parser.add_subparsers(dest='command', help='子命令', required=True)

    # ============================================================================
    # 子命令: browse - 交互浏览并下载
    # ============================================================================
    parser_browse = subparsers.add_parser('browse', help='交互浏览帖子列表并下载')
    _add_site_arguments(parser_browse)
    parser_browse.add_argument('--workers', type=int, default=None,
                               help='下载并发数（默认：MAX_WORKERS，25）')

    # ============================================================================
    # 子命令: list - 列出帖子
    # ============================================================================
    parser_list = subparsers.add_parser('list', help='列出一页帖子，或翻页直到至少 N 篇')
    _add_site_arguments(parser_list)
    parser_list.add_argument('--page', type=int, default=0,
                             help='页码，0 为最新页（默认：0）')
    parser_list.add_argument('--min-count', type=int, default=None,
                             help='至少列出的帖子数（从 --page 开始向后翻页）')

    # ============================================================================
    # 子命令: search - 关键词搜索
    # ============================================================================
    parser_search = subparsers.add_parser('search', help='按关键词搜索帖子（仅 PTT）')
    _add_site_arguments(parser_search, sites=['ptt'])
    parser_search.add_argument('--keyword', type=str, required=True, help='搜索关键词')

    # ============================================================================
    # 子命令: download - 下载单篇帖子
    # ============================================================================
    parser_download = subparsers.add_parser('download', help='下载单篇帖子中的图片')
    _add_site_arguments(parser_download)
    parser_download.add_argument('--url', type=str, required=True, help='帖子 URL')
    parser_download.add_argument('--workers', type=int, default=None,
                                 help='下载并发数（默认：MAX_WORKERS，25）')

    return parser
