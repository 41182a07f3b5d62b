"""
元数据规范化测试

测试标题/艺术家清理的幂等性以及搜索排列的顺序和唯一性。
"""

import unittest

from lyricsplus.core.interfaces import TrackIdentity, SearchPermutation
from lyricsplus.lyrics.metadata_normalizer import MetadataNormalizer


class TestCleanText(unittest.TestCase):
    """clean_text 测试类"""

    def setUp(self):
        self.normalizer = MetadataNormalizer()

    def test_strips_remaster_qualifier(self):
        self.assertEqual(self.normalizer.clean_text("Song Title - 2023 Remaster"), "Song Title")

    def test_strips_brackets(self):
        self.assertEqual(self.normalizer.clean_text("Foo (Live)"), "Foo")
        self.assertEqual(self.normalizer.clean_text("Foo [Bonus Track] Bar"), "Foo Bar")

    def test_strips_featuring_clause(self):
        self.assertEqual(self.normalizer.clean_text("A feat. B"), "A")
        self.assertEqual(self.normalizer.clean_text("Song (feat. Artist B)"), "Song")
        self.assertEqual(self.normalizer.clean_text("A ft. B & C"), "A")

    def test_keeps_first_artist_token(self):
        self.assertEqual(self.normalizer.clean_text("Artist A, Artist B"), "Artist A")
        self.assertEqual(self.normalizer.clean_text("X / Y"), "X")

    def test_plain_text_unchanged(self):
        self.assertEqual(self.normalizer.clean_text("Plain Title"), "Plain Title")
        self.assertEqual(self.normalizer.clean_text(""), "")

    def test_idempotent(self):
        """测试重复清理不会再改变结果"""
        samples = [
            "Song Title - 2023 Remaster",
            "Song (feat. Artist B)",
            "Artist A, Artist B",
            "Foo (Live) - Radio Edit",
            "Name - Live (2019) [Deluxe]",
            "  spaced   out  ",
            "(Intro)",
        ]
        for text in samples:
            with self.subTest(text=text):
                once = self.normalizer.clean_text(text)
                self.assertEqual(self.normalizer.clean_text(once), once)


class TestSearchPermutations(unittest.TestCase):
    """搜索排列测试类"""

    def setUp(self):
        self.normalizer = MetadataNormalizer()

    def test_split_artists(self):
        self.assertEqual(
            self.normalizer.split_artists("A feat. B, C & D"),
            ["A", "B", "C", "D"]
        )
        self.assertEqual(self.normalizer.split_artists(""), [])

    def test_original_is_first(self):
        identity = TrackIdentity(uri="u", title="Foo (Live)", artist="A feat. B", album="Alb (Deluxe)")
        permutations = self.normalizer.get_search_permutations(identity)
        self.assertEqual(permutations[0], SearchPermutation("Foo (Live)", "A feat. B", "Alb (Deluxe)"))

    def test_no_duplicates(self):
        identity = TrackIdentity(uri="u", title="Foo (Live)", artist="A feat. B", album="Alb")
        permutations = self.normalizer.get_search_permutations(identity)
        self.assertEqual(len(permutations), len(set(permutations)))

    def test_cleaned_variant_present(self):
        """测试清理后的组合包含在排列中"""
        identity = TrackIdentity(uri="u", title="Foo (Live)", artist="A feat. B", duration_ms=200000)
        permutations = self.normalizer.get_search_permutations(identity)
        cleaned = [p for p in permutations if p.title == "Foo" and p.artist == "A"]
        self.assertTrue(cleaned)
        self.assertEqual(cleaned[0].album, "")

    def test_clean_metadata_collapses_to_single_permutation(self):
        """测试已经干净的元数据且没有专辑时只有一个排列"""
        identity = TrackIdentity(uri="u", title="Song", artist="Artist")
        self.assertEqual(
            self.normalizer.get_search_permutations(identity),
            [SearchPermutation("Song", "Artist", "")]
        )

    def test_order_is_title_then_artist_then_album(self):
        identity = TrackIdentity(uri="u", title="T (x)", artist="A", album="B")
        permutations = self.normalizer.get_search_permutations(identity)
        self.assertEqual([p.as_tuple() for p in permutations], [
            ("T (x)", "A", "B"),
            ("T (x)", "A", ""),
            ("T", "A", "B"),
            ("T", "A", ""),
        ])


if __name__ == '__main__':
    unittest.main()
