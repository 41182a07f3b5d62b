"""偏移量存储 - 每首曲目的歌词时间校正（毫秒）"""

import math
from typing import Any, Callable, Dict, List, Optional

from lyricsplus.core.interfaces import IKeyValueStore
from .json_blob_store import JsonBlobStore, Notifier, StorageCorruptError

OFFSETS_KEY = "lyrics-plus:offsets"

# 设置面板中每次调整的步长
OFFSET_STEP_MS = 100


class OffsetStore(JsonBlobStore):
    """
    偏移量存储

    不存在的键表示偏移量为0，值为0时删除键而不是写入，
    这样"是否有自定义偏移量"可以直接通过键是否存在判断。
    每次修改都会立即持久化并通知监听器重新计算当前歌词行。

    同步引擎每个进度周期都会查询偏移量，因此读取走内存快照，
    快照在 load 和每次成功写入后刷新；修改仍然基于存储中的最新数据。
    """

    def __init__(self, kv_store: IKeyValueStore, notifier: Optional[Notifier] = None):
        super().__init__(
            kv_store,
            OFFSETS_KEY,
            "Lyrics Plus offsets corrupted. Resetting.",
            notifier,
            "lyricsplus.storage.offset_store"
        )
        self._listeners: List[Callable[[str, int], None]] = []
        self._snapshot: Optional[Dict[str, int]] = None

    def _decode(self, data: Any) -> Dict[str, Any]:
        data = super()._decode(data)
        for uri, value in data.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise StorageCorruptError(f"偏移量无效: {uri}={value!r}")
            if isinstance(value, float) and not math.isfinite(value):
                raise StorageCorruptError(f"偏移量不是有限数值: {uri}={value!r}")
        return {uri: int(value) for uri, value in data.items()}

    def _current(self) -> Dict[str, int]:
        if self._snapshot is None:
            self._snapshot = self._read_snapshot()
        return self._snapshot

    def load(self) -> bool:
        snapshot, ok = self._load_snapshot()
        self._snapshot = snapshot
        return ok

    def add_listener(self, callback: Callable[[str, int], None]) -> None:
        """注册偏移量变化监听器 (uri, offset_ms)"""
        self._listeners.append(callback)

    def get(self, uri: Optional[str]) -> int:
        """获取曲目的偏移量，默认0"""
        if not uri:
            return 0
        return self._current().get(uri, 0)

    def has_custom_offset(self, uri: str) -> bool:
        return uri in self._current()

    def set(self, uri: str, offset_ms: int) -> int:
        """
        设置并保存曲目的偏移量

        Args:
            uri: 曲目uri
            offset_ms: 偏移量（毫秒），0表示删除

        Returns:
            保存后的偏移量；写入失败时返回原有偏移量
        """
        if not uri:
            return 0

        offset_ms = int(offset_ms)
        snapshot = self._read_snapshot()
        if offset_ms == 0:
            snapshot.pop(uri, None)
        else:
            snapshot[uri] = offset_ms
        if not self._write_snapshot(snapshot):
            return self.get(uri)
        self._snapshot = snapshot

        self.logger.debug(f"偏移量更新: {uri} -> {offset_ms}ms")
        self._notify_listeners(uri, offset_ms)
        return offset_ms

    def adjust(self, uri: str, delta_ms: int = OFFSET_STEP_MS) -> int:
        """在当前偏移量基础上增减"""
        if not uri:
            return 0
        return self.set(uri, self._read_snapshot().get(uri, 0) + delta_ms)

    def reset_offset(self, uri: str) -> int:
        return self.set(uri, 0)

    def reset(self) -> bool:
        self._snapshot = None
        return super().reset()

    def _notify_listeners(self, uri: str, offset_ms: int) -> None:
        for callback in list(self._listeners):
            try:
                callback(uri, offset_ms)
            except Exception as e:
                self.logger.error(f"偏移量监听器执行失败: {e}", exc_info=True)
