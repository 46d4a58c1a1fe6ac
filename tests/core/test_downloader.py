"""
ImageDownloader 单元测试（mock aiohttp，Pillow 生成图片）
"""
import asyncio
import io
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from PIL import Image

from config import Config
from core.downloader import ImageDownloader, image_filename
from core.models import DownloadStatus


def _image_bytes(width, height, fmt="JPEG", mode="RGB"):
    buf = io.BytesIO()
    Image.new(mode, (width, height), color=0).save(buf, format=fmt)
    return buf.getvalue()


def _response(status=200, data=b""):
    resp = MagicMock()
    resp.status = status
    resp.read = AsyncMock(return_value=data)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp


class TestImageFilename(unittest.TestCase):
    def test_jpeg_becomes_jpg(self):
        self.assertEqual(image_filename("https://i.imgur.com/abc.jpeg"), ("abc", "jpg"))

    def test_png(self):
        self.assertEqual(image_filename("https://pbs.twimg.com/media/x.png"), ("x", "png"))

    def test_query_string_ignored(self):
        self.assertEqual(image_filename("https://example.com/a/b.GIF?size=1"), ("b", "gif"))

    def test_unrecognized(self):
        self.assertIsNone(image_filename("https://example.com/image"))


class TestImageDownloaderHeaders(unittest.TestCase):
    def test_imgur_referer(self):
        headers = ImageDownloader(Config()).get_headers("https://i.imgur.com/abc123.jpg")
        self.assertEqual(headers["Referer"], "https://imgur.com/abc123")
        self.assertIn("Chrome/91", headers["User-Agent"])

    def test_no_referer_for_other_hosts(self):
        headers = ImageDownloader(Config()).get_headers("https://pbs.twimg.com/media/abc.jpg")
        self.assertNotIn("Referer", headers)


class TestImageDownloaderDownload(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.downloader = ImageDownloader(Config())
        self.downloader.session = MagicMock()

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _download(self, url, resp):
        self.downloader.session.get.return_value = resp
        return asyncio.run(self.downloader.download(url, self.test_dir))

    def test_large_image_saved(self):
        result = self._download("https://i.imgur.com/big.jpeg", _response(200, _image_bytes(400, 400)))
        self.assertEqual(result.status, DownloadStatus.SAVED)
        self.assertEqual(result.path, self.test_dir / "big.jpg")
        self.assertTrue((self.test_dir / "big.jpg").exists())
        self.assertEqual((result.width, result.height), (400, 400))

    def test_small_image_filtered(self):
        result = self._download("https://i.imgur.com/small.jpg", _response(200, _image_bytes(250, 250)))
        self.assertEqual(result.status, DownloadStatus.FILTERED)
        self.assertFalse((self.test_dir / "small.jpg").exists())

    def test_threshold_is_exclusive(self):
        result = self._download("https://i.imgur.com/edge.jpg", _response(200, _image_bytes(300, 800)))
        self.assertEqual(result.status, DownloadStatus.FILTERED)

    def test_png_saved_as_png(self):
        data = _image_bytes(320, 320, fmt="PNG", mode="RGBA")
        result = self._download("https://pbs.twimg.com/media/p.png", _response(200, data))
        self.assertEqual(result.status, DownloadStatus.SAVED)
        with Image.open(self.test_dir / "p.png") as img:
            self.assertEqual(img.format, "PNG")

    def test_transparent_image_saved_as_jpeg(self):
        data = _image_bytes(320, 320, fmt="PNG", mode="RGBA")
        result = self._download("https://i.imgur.com/alpha.jpg", _response(200, data))
        self.assertEqual(result.status, DownloadStatus.SAVED)
        with Image.open(self.test_dir / "alpha.jpg") as img:
            self.assertEqual(img.format, "JPEG")

    def test_http_error(self):
        result = self._download("https://i.imgur.com/missing.jpg", _response(404))
        self.assertEqual(result.status, DownloadStatus.FAILED)
        self.assertIn("404", result.error)

    def test_undecodable(self):
        result = self._download("https://i.imgur.com/broken.jpg", _response(200, b"not an image"))
        self.assertEqual(result.status, DownloadStatus.FAILED)

    def test_unrecognized_filename(self):
        result = self._download("https://pbs.twimg.com/media/noext", _response(200, _image_bytes(400, 400)))
        self.assertEqual(result.status, DownloadStatus.FAILED)
        self.assertEqual(result.error, "unrecognized filename")

    def test_network_exception(self):
        self.downloader.session.get.side_effect = Exception("network error")
        result = asyncio.run(self.downloader.download("https://i.imgur.com/x.jpg", self.test_dir))
        self.assertEqual(result.status, DownloadStatus.FAILED)

    def test_stats(self):
        self._download("https://i.imgur.com/a.jpg", _response(200, _image_bytes(400, 400)))
        self._download("https://i.imgur.com/b.jpg", _response(200, _image_bytes(100, 100)))
        self._download("https://i.imgur.com/c.jpg", _response(500))
        self.assertEqual(self.downloader.get_stats(), {"total": 3, "saved": 1, "filtered": 1, "failed": 1})


class TestImageDownloaderSession(unittest.TestCase):
    @patch("core.downloader.aiohttp.ClientSession")
    def test_context_manager(self, mock_session_cls):
        mock_session = MagicMock()
        mock_session.close = AsyncMock(return_value=None)
        mock_session_cls.return_value = mock_session

        async def run():
            async with ImageDownloader(Config()) as d:
                self.assertIs(d.session, mock_session)

        asyncio.run(run())
        mock_session.close.assert_awaited_once()


if __name__ == '__main__':
    unittest.main()
