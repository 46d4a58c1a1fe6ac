"""
ImageLinkNormalizer 单元测试
"""
import unittest

from core.link_normalizer import ImageLinkNormalizer


class TestNormalize(unittest.TestCase):
    def setUp(self):
        self.normalizer = ImageLinkNormalizer()

    def test_share_link_becomes_direct_link(self):
        self.assertEqual(self.normalizer.normalize("https://imgur.com/abc123"), "https://i.imgur.com/abc123.jpeg")
        self.assertEqual(self.normalizer.normalize("http://imgur.com/abc123/"), "https://i.imgur.com/abc123.jpeg")

    def test_share_link_with_extension_keeps_extension(self):
        self.assertEqual(self.normalizer.normalize("https://imgur.com/abc123.png"), "https://i.imgur.com/abc123.png")

    def test_direct_link_unchanged(self):
        link = "https://i.imgur.com/abc123.jpg"
        self.assertEqual(self.normalizer.normalize(link), link)

    def test_other_hosts_unchanged(self):
        link = "https://pbs.twimg.com/media/x.jpg"
        self.assertEqual(self.normalizer.normalize(link), link)

    def test_idempotent(self):
        once = self.normalizer.normalize("https://imgur.com/abc123")
        self.assertEqual(self.normalizer.normalize(once), once)


class TestAcceptedHost(unittest.TestCase):
    def setUp(self):
        self.normalizer = ImageLinkNormalizer()

    def test_accepted(self):
        for link in (
            "https://i.imgur.com/a.jpg",
            "https://pbs.twimg.com/media/a.jpg",
            "http://i.meee.com.tw/a.png",
            "https://i.ytimg.com/vi/x/hqdefault.jpg",
            "https://d.img.vision/x/a.jpg",
        ):
            self.assertTrue(self.normalizer.is_accepted_host(link), link)

    def test_rejected(self):
        for link in ("https://example.com/a.jpg", "ftp://i.imgur.com/a.jpg", "", "not a url"):
            self.assertFalse(self.normalizer.is_accepted_host(link), link)

    def test_custom_hosts(self):
        normalizer = ImageLinkNormalizer(accepted_hosts=["example.com"])
        self.assertTrue(normalizer.is_accepted_host("https://example.com/a.jpg"))
        self.assertFalse(normalizer.is_accepted_host("https://i.imgur.com/a.jpg"))


class TestPrepare(unittest.TestCase):
    def test_prepare_filters_and_normalizes_in_order(self):
        links = [
            "https://imgur.com/first",
            "https://example.com/skip.jpg",
            "https://pbs.twimg.com/media/second.jpg",
        ]
        self.assertEqual(
            ImageLinkNormalizer().prepare(links),
            ["https://i.imgur.com/first.jpeg", "https://pbs.twimg.com/media/second.jpg"],
        )

    def test_prepare_without_filter(self):
        links = ["https://example.com/keep.jpg"]
        self.assertEqual(ImageLinkNormalizer().prepare(links, filter_hosts=False), links)

    def test_prepare_keeps_duplicates(self):
        links = [
            "https://i.imgur.com/a.jpg",
            "https://imgur.com/a",
            "https://i.imgur.com/a.jpg",
        ]
        self.assertEqual(
            ImageLinkNormalizer().prepare(links),
            ["https://i.imgur.com/a.jpg", "https://i.imgur.com/a.jpeg", "https://i.imgur.com/a.jpg"],
        )


if __name__ == '__main__':
    unittest.main()
