"""
歌词缓存 - 按曲目 uri 持久化已解析的歌词

持久化格式: {uri: {"lyrics": [{"time": ms, "text": str}, ...], "timestamp": epoch_ms}}
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from lyricsplus.core.interfaces import IKeyValueStore, LyricLine
from .json_blob_store import JsonBlobStore, Notifier

CACHE_KEY = "lyrics-plus:cache"


@dataclass
class CacheEntry:
    """缓存条目"""
    uri: str
    lyrics: List[LyricLine]
    timestamp: int  # 写入时间（毫秒时间戳）

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lyrics": [line.to_dict() for line in self.lyrics],
            "timestamp": self.timestamp
        }

    @classmethod
    def from_dict(cls, uri: str, data: Dict[str, Any]) -> Optional["CacheEntry"]:
        """
        从持久化字典恢复缓存条目

        Returns:
            CacheEntry对象，数据无效时返回None
        """
        try:
            lyrics = [LyricLine.from_dict(item) for item in data["lyrics"]]
            timestamp = int(data.get("timestamp", 0))
        except (KeyError, TypeError, ValueError, AttributeError):
            return None
        if not lyrics:
            return None
        return cls(uri=uri, lyrics=lyrics, timestamp=timestamp)


class LyricsCache(JsonBlobStore):
    """
    歌词缓存

    每个 uri 只有一个条目，后写入的覆盖先写入的。
    """

    def __init__(
        self,
        kv_store: IKeyValueStore,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        初始化歌词缓存

        Args:
            kv_store: 宿主键值存储
            notifier: 数据损坏时的通知回调
            clock: 返回秒级时间戳的函数，默认 time.time
        """
        super().__init__(
            kv_store,
            CACHE_KEY,
            "Lyrics Plus cache corrupted. Resetting.",
            notifier,
            "lyricsplus.storage.lyrics_cache"
        )
        self.clock = clock or time.time
        self.logger.debug("歌词缓存初始化完成")

    def get(self, uri: str) -> Optional[CacheEntry]:
        """
        获取缓存条目

        Args:
            uri: 曲目uri

        Returns:
            缓存条目，未缓存或条目无效时返回None
        """
        if not uri:
            return None

        data = self._read_snapshot().get(uri)
        if not isinstance(data, dict):
            return None

        entry = CacheEntry.from_dict(uri, data)
        if entry is None:
            self.logger.warning(f"缓存条目无效，已忽略: {uri}")
        return entry

    def contains(self, uri: str) -> bool:
        return self.get(uri) is not None

    def put(self, uri: str, lyrics: List[LyricLine]) -> Optional[CacheEntry]:
        """
        写入缓存条目并记录当前时间

        Args:
            uri: 曲目uri
            lyrics: 歌词行列表（不能为空）

        Returns:
            写入的条目，参数无效或写入失败时返回None
        """
        if not uri or not lyrics:
            self.logger.debug(f"拒绝缓存空歌词: {uri}")
            return None

        entry = CacheEntry(uri=uri, lyrics=list(lyrics), timestamp=int(self.clock() * 1000))

        # 基于最新快照修改后立即写回
        snapshot = self._read_snapshot()
        snapshot[uri] = entry.to_dict()
        if not self._write_snapshot(snapshot):
            return None

        self.logger.debug(f"缓存歌词: {uri} ({len(lyrics)} 行)")
        return entry

    def remove(self, uri: str) -> bool:
        """
        删除单个缓存条目

        Returns:
            条目存在并被删除时返回True
        """
        snapshot = self._read_snapshot()
        if uri not in snapshot:
            return False
        del snapshot[uri]
        if not self._write_snapshot(snapshot):
            return False
        self.logger.info(f"已删除缓存歌词: {uri}")
        return True

    def clear(self) -> bool:
        """清除全部缓存"""
        if not self.reset():
            return False
        self.logger.info("歌词缓存已清除")
        return True

    def stats(self) -> Dict[str, Any]:
        """
        获取缓存统计信息

        Returns:
            缓存统计字典
        """
        snapshot = self._read_snapshot()
        timestamps = [
            entry.get("timestamp", 0) for entry in snapshot.values() if isinstance(entry, dict)
        ]
        return {
            "cache_size": len(snapshot),
            "oldest_timestamp": min(timestamps) if timestamps else None,
            "newest_timestamp": max(timestamps) if timestamps else None,
        }
