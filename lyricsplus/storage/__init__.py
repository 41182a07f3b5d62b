"""
存储模块 - 歌词缓存、偏移量和用户设置的持久化

三类数据分别保存在宿主键值存储的独立键下，任何一个损坏只会重置它自己。
"""

from .kv_store import JsonFileKeyValueStore, MemoryKeyValueStore
from .json_blob_store import JsonBlobStore, StorageCorruptError
from .lyrics_cache import LyricsCache, CacheEntry
from .offset_store import OffsetStore
from .settings_store import SettingsStore, DEFAULT_SETTINGS

__all__ = [
    "JsonFileKeyValueStore",
    "MemoryKeyValueStore",
    "JsonBlobStore",
    "StorageCorruptError",
    "LyricsCache",
    "CacheEntry",
    "OffsetStore",
    "SettingsStore",
    "DEFAULT_SETTINGS"
]
