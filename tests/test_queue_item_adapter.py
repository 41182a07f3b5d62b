"""
队列条目适配器测试

测试从不同结构的宿主字典中提取曲目身份。
"""

import unittest

from lyricsplus.adapters.queue_item_adapter import (
    extract_metadata,
    extract_uri,
    to_track_identities,
    to_track_identity,
)
from lyricsplus.core.interfaces import TrackIdentity


class TestQueueItemAdapter(unittest.TestCase):
    """队列条目适配器测试类"""

    def test_player_track_with_metadata(self):
        """测试当前曲目的 metadata 结构"""
        item = {
            "uri": "spotify:track:1",
            "metadata": {
                "title": "Foo (Live)",
                "artist_name": "A feat. B",
                "album_title": "Alb",
                "duration": "200000",
            },
        }

        self.assertEqual(
            to_track_identity(item),
            TrackIdentity("spotify:track:1", "Foo (Live)", "A feat. B", "Alb", 200000)
        )

    def test_queue_item_with_context_track(self):
        """测试队列条目的 contextTrack 结构"""
        item = {
            "contextTrack": {
                "uri": "spotify:track:2",
                "metadata": {"title": "Bar"},
                "artists": [{"name": "X"}, {"name": "Y"}],
                "album": {"name": "Album"},
            }
        }

        identity = to_track_identity(item)

        self.assertEqual(identity.uri, "spotify:track:2")
        self.assertEqual(identity.title, "Bar")
        self.assertEqual(identity.artist, "X, Y")
        self.assertEqual(identity.album, "Album")
        self.assertEqual(identity.duration_ms, 0)

    def test_web_api_shape(self):
        item = {
            "uri": "spotify:track:3",
            "name": "Baz",
            "artists": [{"name": "Z"}],
            "album": {"name": "Q"},
            "duration": 180500.0,
        }

        meta = extract_metadata(item)

        self.assertEqual(meta["title"], "Baz")
        self.assertEqual(meta["artist"], "Z")
        self.assertEqual(meta["duration_ms"], 180500)

    def test_missing_uri_returns_none(self):
        self.assertIsNone(to_track_identity({"metadata": {"title": "T", "artist_name": "A"}}))
        self.assertIsNone(to_track_identity(None))
        self.assertIsNone(extract_uri("not a dict"))

    def test_require_fields(self):
        """测试预取要求标题和艺术家，前台解析不要求"""
        item = {"uri": "spotify:track:4", "metadata": {"title": "Only Title"}}

        self.assertIsNone(to_track_identity(item))
        identity = to_track_identity(item, require_fields=False)
        self.assertEqual(identity.title, "Only Title")
        self.assertEqual(identity.artist, "")

    def test_invalid_duration_defaults_to_zero(self):
        item = {"uri": "u", "metadata": {"title": "T", "artist_name": "A", "duration": "n/a"}}
        self.assertEqual(to_track_identity(item).duration_ms, 0)

    def test_to_track_identities_skips_invalid(self):
        items = [
            {"uri": "u1", "metadata": {"title": "T", "artist_name": "A"}},
            {"metadata": {"title": "T", "artist_name": "A"}},
            {"uri": "u3", "metadata": {"title": "T"}},
        ]
        self.assertEqual([i.uri for i in to_track_identities(items)], ["u1"])


if __name__ == '__main__':
    unittest.main()
