"""LRCLIB API客户端 - 按搜索排列查询同步歌词"""

import asyncio
import logging
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any

import aiohttp

from lyricsplus.core.interfaces import TrackIdentity, SearchPermutation, LyricLine
from .fetch_session import FetchSession
from .lyrics_parser import LyricsParser

DEFAULT_PROVIDER_URL = "https://lrclib.net/api/get"


class ResolveStatus(Enum):
    """解析结果分类"""
    FOUND_SYNCED = "found_synced"
    FOUND_PLAIN = "found_plain"
    NOT_FOUND = "not_found"
    UNREACHABLE = "unreachable"


@dataclass
class QueryResult:
    """单个搜索排列的查询结果"""
    reached: bool = False  # 是否成功连接到提供方
    synced: Optional[str] = None
    plain: Optional[str] = None


@dataclass
class ResolveOutcome:
    """一次完整解析的结果"""
    status: ResolveStatus
    lyrics: Optional[List[LyricLine]] = None
    plain_text: Optional[str] = None
    versions: List[List[LyricLine]] = field(default_factory=list)
    from_cache: bool = False

    @property
    def versions_found(self) -> int:
        return len(self.versions)


class LrcLibClient:
    """
    LRCLIB API客户端

    依次尝试每个搜索排列，单个排列的失败（网络错误、无效响应、404）
    是预期情况，只记录调试日志并继续下一个排列。
    """

    def __init__(
        self,
        base_url: str = DEFAULT_PROVIDER_URL,
        timeout: float = 10.0,
        user_agent: str = "lyricsplus/1.0",
        max_versions: int = 0,
        parser: Optional[LyricsParser] = None
    ):
        """
        初始化LRCLIB客户端

        Args:
            base_url: 歌词查询端点
            timeout: 单次请求超时（秒）
            user_agent: 请求头中的User-Agent
            max_versions: 找到多少个不同版本后停止查询，0表示查询全部排列
            parser: 歌词解析器
        """
        self.logger = logging.getLogger("lyricsplus.lyrics.lyrics_client")

        self.base_url = base_url
        self.headers = {"User-Agent": user_agent}
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.max_versions = max(0, int(max_versions))
        self.parser = parser or LyricsParser()

        self.logger.debug(f"LRCLIB客户端初始化完成 - 端点: {self.base_url}")

    async def query(self, permutation: SearchPermutation, duration_ms: int) -> QueryResult:
        """
        按一个搜索排列查询歌词

        Args:
            permutation: 搜索排列
            duration_ms: 曲目时长（毫秒）

        Returns:
            查询结果，失败时返回未命中的结果而不是抛出异常
        """
        params = {
            "track_name": permutation.title,
            "artist_name": permutation.artist,
            "album_name": permutation.album,
            "duration": int(round(duration_ms / 1000)) if duration_ms > 0 else 0,
        }

        try:
            async with aiohttp.ClientSession(timeout=self.timeout, headers=self.headers) as session:
                async with session.get(self.base_url, params=params) as response:
                    if response.status == 404:
                        self.logger.debug(f"未找到歌词: {permutation.as_tuple()}")
                        return QueryResult(reached=True)

                    if response.status != 200:
                        self.logger.debug(f"歌词API返回状态 {response.status}: {permutation.as_tuple()}")
                        return QueryResult(reached=False)

                    text_response = await response.text()

        except aiohttp.ClientError as e:
            self.logger.debug(f"请求歌词API失败 {permutation.as_tuple()}: {e}")
            return QueryResult(reached=False)
        except asyncio.TimeoutError:
            self.logger.debug(f"请求歌词API超时: {permutation.as_tuple()}")
            return QueryResult(reached=False)
        except Exception as e:
            self.logger.debug(f"查询歌词时出错 {permutation.as_tuple()}: {e}", exc_info=True)
            return QueryResult(reached=False)

        data = self._parse_response(text_response)
        if data is None:
            return QueryResult(reached=False)

        return QueryResult(
            reached=True,
            synced=(data.get("syncedLyrics") or "").strip() or None,
            plain=(data.get("plainLyrics") or "").strip() or None
        )

    def _parse_response(self, text_response: str) -> Optional[Dict[str, Any]]:
        """把响应文本解析为JSON对象，无效时返回None"""
        if not text_response or not text_response.strip():
            self.logger.debug("收到空歌词响应")
            return None

        try:
            data = json.loads(text_response)
        except json.JSONDecodeError as e:
            self.logger.debug(f"歌词响应不是有效的JSON: {e}")
            return None

        if not isinstance(data, dict):
            self.logger.debug(f"歌词响应格式错误: {type(data).__name__}")
            return None
        return data

    async def resolve(
        self,
        identity: TrackIdentity,
        permutations: List[SearchPermutation],
        session: Optional[FetchSession] = None
    ) -> Optional[ResolveOutcome]:
        """
        依次查询所有搜索排列并对结果分类

        Args:
            identity: 曲目身份
            permutations: 搜索排列（按优先级排序）
            session: 获取会话，被新会话取代后立即停止

        Returns:
            解析结果；会话已过期时返回None
        """
        versions: List[List[LyricLine]] = []
        seen_raw = set()
        plain_fallback = None
        provider_reachable = False

        for permutation in permutations:
            result = await self.query(permutation, identity.duration_ms)

            # 响应到达时曲目可能已经切换
            if session is not None and not session.is_current():
                self.logger.debug(f"丢弃过期结果: {identity.uri}")
                return None

            provider_reachable = provider_reachable or result.reached

            if plain_fallback is None and result.plain:
                plain_fallback = result.plain

            if result.synced and result.synced not in seen_raw:
                parsed = self.parser.parse(result.synced)
                if parsed:
                    versions.append(parsed)
                    seen_raw.add(result.synced)
                    if self.max_versions and len(versions) >= self.max_versions:
                        break

        if versions:
            self.logger.info(f"找到 {len(versions)} 个同步歌词版本: {identity.get_display_name()}")
            return ResolveOutcome(ResolveStatus.FOUND_SYNCED, lyrics=versions[0], versions=versions)
        if plain_fallback:
            self.logger.info(f"只找到纯文本歌词: {identity.get_display_name()}")
            return ResolveOutcome(ResolveStatus.FOUND_PLAIN, plain_text=plain_fallback)
        if provider_reachable:
            self.logger.info(f"未找到歌词: {identity.get_display_name()}")
            return ResolveOutcome(ResolveStatus.NOT_FOUND)

        self.logger.warning("歌词提供方似乎离线")
        return ResolveOutcome(ResolveStatus.UNREACHABLE)

    async def resolve_single(self, identity: TrackIdentity) -> Optional[List[LyricLine]]:
        """
        只用原始元数据查询一次（预取使用）

        没有同步歌词时把纯文本歌词转换为每行2秒的占位时间轴。

        Args:
            identity: 曲目身份

        Returns:
            歌词行列表，未找到时返回None
        """
        permutation = SearchPermutation(identity.title, identity.artist, identity.album)
        result = await self.query(permutation, identity.duration_ms)

        lyrics = self.parser.parse(result.synced) if result.synced else None
        if not lyrics and result.plain:
            lyrics = self.parser.parse_plain(result.plain)
        return lyrics
