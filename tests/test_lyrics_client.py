"""
LRCLIB客户端测试

测试单次查询的HTTP处理、按排列依次查询的结果分类以及过期会话的丢弃。
"""

import json
import pytest
import aiohttp
from unittest.mock import AsyncMock, MagicMock, patch

from lyricsplus.core.interfaces import LyricLine, SearchPermutation, TrackIdentity
from lyricsplus.lyrics.fetch_session import FetchSessionTracker
from lyricsplus.lyrics.lyrics_client import LrcLibClient, QueryResult, ResolveStatus

IDENTITY = TrackIdentity(uri="spotify:track:1", title="Foo (Live)", artist="A feat. B", duration_ms=200000)
PERMUTATIONS = [
    SearchPermutation("Foo (Live)", "A feat. B", ""),
    SearchPermutation("Foo", "A", ""),
    SearchPermutation("Foo", "B", ""),
]
SYNCED = "[00:01.00]Hi\n[00:02.50]There"


def _mock_http(status: int = 200, body: str = ""):
    """构造 aiohttp.ClientSession 的模拟对象"""
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.text = AsyncMock(return_value=body)

    mock_session = MagicMock()
    mock_session.get.return_value.__aenter__.return_value = mock_response
    return mock_session


@pytest.fixture
def client():
    return LrcLibClient(base_url="https://lrclib.test/api/get", timeout=5)


class TestLrcLibQuery:
    """单次查询测试类"""

    @pytest.mark.asyncio
    async def test_query_sends_expected_params(self, client):
        """测试请求参数（时长四舍五入到秒）"""
        mock_session = _mock_http(200, json.dumps({"syncedLyrics": SYNCED, "plainLyrics": "Hi\nThere"}))

        with patch('aiohttp.ClientSession') as mock_session_class:
            mock_session_class.return_value.__aenter__.return_value = mock_session
            result = await client.query(SearchPermutation("Foo", "A", "Alb"), 200600)

        mock_session.get.assert_called_once_with(
            "https://lrclib.test/api/get",
            params={"track_name": "Foo", "artist_name": "A", "album_name": "Alb", "duration": 201}
        )
        assert result.reached is True
        assert result.synced == SYNCED
        assert result.plain == "Hi\nThere"

    @pytest.mark.asyncio
    async def test_query_404_is_reachable_miss(self, client):
        mock_session = _mock_http(404)

        with patch('aiohttp.ClientSession') as mock_session_class:
            mock_session_class.return_value.__aenter__.return_value = mock_session
            result = await client.query(PERMUTATIONS[0], 200000)

        assert result == QueryResult(reached=True)

    @pytest.mark.asyncio
    async def test_query_server_error_is_unreachable(self, client):
        mock_session = _mock_http(503)

        with patch('aiohttp.ClientSession') as mock_session_class:
            mock_session_class.return_value.__aenter__.return_value = mock_session
            result = await client.query(PERMUTATIONS[0], 200000)

        assert result.reached is False

    @pytest.mark.asyncio
    async def test_query_malformed_json_is_unreachable(self, client):
        mock_session = _mock_http(200, "<html>not json</html>")

        with patch('aiohttp.ClientSession') as mock_session_class:
            mock_session_class.return_value.__aenter__.return_value = mock_session
            result = await client.query(PERMUTATIONS[0], 200000)

        assert result.reached is False
        assert result.synced is None

    @pytest.mark.asyncio
    async def test_query_network_error_is_swallowed(self, client):
        """测试网络错误不会向上抛出"""
        mock_session = MagicMock()
        mock_session.get.side_effect = aiohttp.ClientConnectionError("connection refused")

        with patch('aiohttp.ClientSession') as mock_session_class:
            mock_session_class.return_value.__aenter__.return_value = mock_session
            result = await client.query(PERMUTATIONS[0], 200000)

        assert result.reached is False

    @pytest.mark.asyncio
    async def test_query_blank_fields_are_absent(self, client):
        mock_session = _mock_http(200, json.dumps({"syncedLyrics": "  ", "plainLyrics": None}))

        with patch('aiohttp.ClientSession') as mock_session_class:
            mock_session_class.return_value.__aenter__.return_value = mock_session
            result = await client.query(PERMUTATIONS[0], 0)

        assert result.reached is True
        assert result.synced is None
        assert result.plain is None


class TestLrcLibResolve:
    """按排列解析的结果分类测试类"""

    @pytest.mark.asyncio
    async def test_found_synced_collects_distinct_versions(self, client):
        """测试同步歌词版本按原始文本去重"""
        other = "[00:00.50]Other"
        client.query = AsyncMock(side_effect=[
            QueryResult(reached=True, synced=SYNCED),
            QueryResult(reached=True, synced=SYNCED),
            QueryResult(reached=True, synced=other),
        ])

        outcome = await client.resolve(IDENTITY, PERMUTATIONS)

        assert outcome.status == ResolveStatus.FOUND_SYNCED
        assert outcome.versions_found == 2
        assert outcome.lyrics == [LyricLine(1000, "Hi"), LyricLine(2500, "There")]
        assert client.query.await_count == 3

    @pytest.mark.asyncio
    async def test_found_plain_when_no_synced(self, client):
        client.query = AsyncMock(side_effect=[
            QueryResult(reached=True),
            QueryResult(reached=True, plain="first plain"),
            QueryResult(reached=True, plain="second plain"),
        ])

        outcome = await client.resolve(IDENTITY, PERMUTATIONS)

        assert outcome.status == ResolveStatus.FOUND_PLAIN
        assert outcome.plain_text == "first plain"
        assert outcome.lyrics is None

    @pytest.mark.asyncio
    async def test_not_found_when_any_permutation_reached(self, client):
        client.query = AsyncMock(side_effect=[
            QueryResult(reached=False),
            QueryResult(reached=True),
            QueryResult(reached=False),
        ])

        outcome = await client.resolve(IDENTITY, PERMUTATIONS)

        assert outcome.status == ResolveStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_unreachable_when_every_permutation_failed(self, client):
        client.query = AsyncMock(return_value=QueryResult(reached=False))

        outcome = await client.resolve(IDENTITY, PERMUTATIONS)

        assert outcome.status == ResolveStatus.UNREACHABLE
        assert client.query.await_count == len(PERMUTATIONS)

    @pytest.mark.asyncio
    async def test_unparseable_synced_falls_back_to_plain(self, client):
        """测试同步歌词无法解析时使用纯文本"""
        client.query = AsyncMock(return_value=QueryResult(reached=True, synced="no timestamps", plain="plain"))

        outcome = await client.resolve(IDENTITY, PERMUTATIONS[:1])

        assert outcome.status == ResolveStatus.FOUND_PLAIN

    @pytest.mark.asyncio
    async def test_max_versions_stops_early(self):
        client = LrcLibClient(max_versions=1)
        client.query = AsyncMock(return_value=QueryResult(reached=True, synced=SYNCED))

        outcome = await client.resolve(IDENTITY, PERMUTATIONS)

        assert outcome.versions_found == 1
        assert client.query.await_count == 1

    @pytest.mark.asyncio
    async def test_stale_session_discards_result(self, client):
        """测试会话被取代后返回None且不再继续查询"""
        tracker = FetchSessionTracker()
        session = tracker.begin(IDENTITY.uri)

        async def query_then_switch(permutation, duration_ms):
            tracker.begin("spotify:track:2")
            return QueryResult(reached=True, synced=SYNCED)

        client.query = AsyncMock(side_effect=query_then_switch)

        outcome = await client.resolve(IDENTITY, PERMUTATIONS, session)

        assert outcome is None
        assert client.query.await_count == 1

    @pytest.mark.asyncio
    async def test_resolve_single_uses_original_metadata(self, client):
        client.query = AsyncMock(return_value=QueryResult(reached=True, synced=SYNCED))

        lyrics = await client.resolve_single(IDENTITY)

        client.query.assert_awaited_once_with(SearchPermutation("Foo (Live)", "A feat. B", ""), 200000)
        assert lyrics == [LyricLine(1000, "Hi"), LyricLine(2500, "There")]

    @pytest.mark.asyncio
    async def test_resolve_single_plain_fallback(self, client):
        client.query = AsyncMock(return_value=QueryResult(reached=True, plain="a\nb"))

        lyrics = await client.resolve_single(IDENTITY)

        assert lyrics == [LyricLine(0, "a"), LyricLine(2000, "b")]

    @pytest.mark.asyncio
    async def test_resolve_single_miss(self, client):
        client.query = AsyncMock(return_value=QueryResult(reached=True))
        assert await client.resolve_single(IDENTITY) is None
