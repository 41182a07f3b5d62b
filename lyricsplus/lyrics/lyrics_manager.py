"""歌词管理器 - 协调元数据规范化、歌词获取、缓存、偏移量和同步"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from lyricsplus.adapters.queue_item_adapter import to_track_identity
from lyricsplus.core.event_bus import EventBus
from lyricsplus.core.interfaces import IHostPlayer, IKeyValueStore, LyricLine, TrackIdentity
from lyricsplus.prefetch.prefetch_scheduler import PrefetchScheduler
from lyricsplus.storage.lyrics_cache import LyricsCache
from lyricsplus.storage.offset_store import OffsetStore, OFFSET_STEP_MS
from lyricsplus.storage.settings_store import SettingsStore
from lyricsplus.sync.sync_engine import SyncEngine
from lyricsplus.utils.config_manager import ConfigManager
from .fetch_session import FetchSession, FetchSessionTracker
from .lyrics_client import LrcLibClient, ResolveOutcome, ResolveStatus
from .lyrics_parser import LyricsParser
from .metadata_normalizer import MetadataNormalizer

# 状态指示器的取值
STATUS_IDLE = "idle"
STATUS_CHECKING = "checking"
STATUS_ONLINE = "online"
STATUS_NOT_FOUND = "not-found"
STATUS_OFFLINE = "offline"

_ILLEGAL_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')


class LyricsManager:
    """
    歌词管理器

    宿主播放器的事件在这里汇合：切歌时解析歌词，进度更新时驱动同步引擎，
    并把所有结果通过事件总线发给界面层。

    发出的事件:
        status_changed(status, message)
        lyrics_loaded(uri, lines)
        lyrics_cleared(uri)
        plain_lyrics(uri, lines)
        offset_changed(uri, offset_ms)
        settings_changed(changes)
        cache_changed(uri)
        playback_toggled(is_playing)
    以及同步引擎发出的 line_changed / lyrics_revealed / scroll / sync_state_changed。
    """

    def __init__(
        self,
        kv_store: IKeyValueStore,
        host: Optional[IHostPlayer] = None,
        config: Optional[ConfigManager] = None,
        client: Optional[LrcLibClient] = None,
        event_bus: Optional[EventBus] = None
    ):
        """
        初始化歌词管理器

        Args:
            kv_store: 持久化键值存储
            host: 宿主播放器，可以稍后通过 attach 绑定
            config: 配置管理器，为空时使用默认配置
            client: 歌词客户端，为空时按配置创建
            event_bus: 事件总线
        """
        self.logger = logging.getLogger("lyricsplus.lyrics.lyrics_manager")
        self.config = config or ConfigManager()
        self.events = event_bus or EventBus()
        self.host: Optional[IHostPlayer] = None

        self.parser = LyricsParser()
        self.normalizer = MetadataNormalizer()
        self.client = client or LrcLibClient(
            base_url=self.config.get_provider_url(),
            timeout=self.config.get_provider_timeout(),
            user_agent=self.config.get_user_agent(),
            max_versions=self.config.get_max_versions(),
            parser=self.parser
        )

        self.settings = SettingsStore(kv_store, self._notify)
        self.cache = LyricsCache(kv_store, self._notify)
        self.offsets = OffsetStore(kv_store, self._notify)
        self.offsets.add_listener(self._on_offset_changed)

        self.sessions = FetchSessionTracker()
        self.sync = SyncEngine(
            self.offsets.get,
            self.events,
            resync_delay=self.config.get_resync_delay()
        )
        self.prefetcher = PrefetchScheduler(
            self.client,
            self.cache,
            self._get_queue,
            delay=self.config.get_prefetch_delay(),
            max_items=self.config.get_prefetch_max_items(),
            enabled=self.config.is_prefetch_enabled()
        )

        self.current_track: Optional[TrackIdentity] = None
        self.available_versions: List[List[LyricLine]] = []
        self.status: Tuple[str, str] = (STATUS_IDLE, "")
        self._fetch_task: Optional[asyncio.Task] = None

        if host is not None:
            self.attach(host)

        self.logger.info("歌词管理器初始化完成")

    # 宿主绑定

    def attach(self, host: IHostPlayer) -> None:
        """绑定宿主播放器并订阅它的事件"""
        self.host = host
        self.sync.progress_provider = host.get_progress
        host.add_event_listener("songchange", self._handle_song_change)
        host.add_event_listener("onprogress", self.on_progress)
        host.add_event_listener("onplaypause", self._handle_play_pause)
        self.logger.debug("已绑定宿主播放器")

    async def start(self) -> Optional[ResolveOutcome]:
        """校验持久化数据并解析当前正在播放的曲目"""
        self.settings.load()
        self.cache.load()
        self.offsets.load()

        if self.host is None:
            return None
        return await self.on_track_change(self.host.get_current_track())

    async def shutdown(self) -> None:
        """取消所有后台任务"""
        self.sessions.cancel_current()
        self.sync.unload()
        await self.prefetcher.stop()
        self.logger.info("歌词管理器已关闭")

    async def _handle_song_change(self, track: Optional[Dict[str, Any]] = None) -> None:
        if track is None and self.host is not None:
            track = self.host.get_current_track()
        await self.on_track_change(track)

    def _handle_play_pause(self, *_args: Any) -> None:
        if self.host is not None:
            self.events.emit("playback_toggled", self.host.is_playing())

    # 切歌与解析

    async def on_track_change(self, raw_track: Optional[Dict[str, Any]]) -> Optional[ResolveOutcome]:
        """
        处理曲目变化

        Args:
            raw_track: 宿主提供的曲目字典

        Returns:
            解析结果；没有曲目、曲目未变化或结果已过期时返回None
        """
        identity = to_track_identity(raw_track, require_fields=False) if raw_track else None
        session = self.sessions.begin(identity.uri if identity else None)

        # 每次切歌都触发一次后台预取
        self.prefetcher.schedule()

        if identity is None:
            self.current_track = None
            self._unload()
            self._set_status(STATUS_IDLE, "No song playing")
            return None

        if (self.current_track is not None and self.current_track.uri == identity.uri
                and self.sync.session is not None):
            self.logger.debug(f"曲目未变化，只刷新同步状态: {identity.uri}")
            self.sync.reevaluate()
            return None

        self.current_track = identity
        self._unload()

        task = asyncio.get_running_loop().create_task(self._resolve_track(identity, session))
        session.task = task
        self._fetch_task = task
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and not session.is_current():
                self.logger.debug(f"解析被新曲目取代: {identity.get_display_name()}")
                return None
            raise
        finally:
            if self._fetch_task is task:
                self._fetch_task = None

    async def _resolve_track(self, identity: TrackIdentity, session: FetchSession) -> Optional[ResolveOutcome]:
        entry = self.cache.get(identity.uri)
        if entry is not None:
            self.logger.info(f"使用缓存歌词: {identity.get_display_name()}")
            self.available_versions = [entry.lyrics]
            self._apply_lyrics(identity, entry.lyrics)
            self._set_status(STATUS_ONLINE, "Lyrics Found (Cached)")
            return ResolveOutcome(
                ResolveStatus.FOUND_SYNCED,
                lyrics=entry.lyrics,
                versions=[entry.lyrics],
                from_cache=True
            )

        self._set_status(STATUS_CHECKING, "Searching for lyrics...")
        permutations = self.normalizer.get_search_permutations(identity)
        self.logger.debug(f"搜索 {identity.get_display_name()}: {len(permutations)} 个排列")

        outcome = await self.client.resolve(identity, permutations, session)
        if outcome is None or not session.is_current():
            return None

        self._apply_outcome(identity, outcome)
        return outcome

    def _apply_outcome(self, identity: TrackIdentity, outcome: ResolveOutcome) -> None:
        if outcome.status == ResolveStatus.FOUND_SYNCED:
            self.available_versions = list(outcome.versions)
            self._apply_lyrics(identity, outcome.lyrics)
            if self.settings.get("autoCache") and self.cache.put(identity.uri, outcome.lyrics):
                self.events.emit("cache_changed", identity.uri)
            self._set_status(STATUS_ONLINE, f"Found {outcome.versions_found} version(s)")
            self.prefetcher.schedule()

        elif outcome.status == ResolveStatus.FOUND_PLAIN:
            lines = self.parser.plain_lines(outcome.plain_text or "")
            self.events.emit("plain_lyrics", identity.uri, lines)
            self._set_status(STATUS_NOT_FOUND, "No Synced Lyrics Found")

        elif outcome.status == ResolveStatus.NOT_FOUND:
            self._set_status(STATUS_NOT_FOUND, "No Lyrics Found")

        else:
            self._set_status(STATUS_OFFLINE, "Provider Offline")

    def _apply_lyrics(self, identity: TrackIdentity, lines: List[LyricLine]) -> None:
        self.sync.load(identity.uri, lines)
        self.events.emit("lyrics_loaded", identity.uri, lines)
        self.sync.reevaluate()

    def _unload(self) -> None:
        session = self.sync.session
        self.available_versions = []
        if session is None:
            return
        self.sync.unload()
        self.events.emit("lyrics_cleared", session.uri)

    def select_version(self, index: int) -> bool:
        """
        切换到另一个已找到的歌词版本

        Returns:
            切换成功返回True
        """
        if self.current_track is None or not 0 <= index < len(self.available_versions):
            return False
        self._apply_lyrics(self.current_track, self.available_versions[index])
        return True

    # 同步

    def on_progress(self, progress_ms: int) -> int:
        return self.sync.on_progress(progress_ms)

    def on_manual_scroll(self, delta_lines: float) -> Optional[float]:
        return self.sync.on_manual_scroll(delta_lines)

    def resync(self) -> None:
        self.sync.resync()

    def seek_to_line(self, index: int) -> bool:
        """
        跳转到指定歌词行

        跳转位置加上当前偏移量，保证该行在跳转后立即成为当前行。

        Returns:
            是否发出了跳转
        """
        session = self.sync.session
        if self.host is None or session is None or not 0 <= index < len(session.lines):
            return False
        position_ms = max(0, session.lines[index].time_ms + self.offsets.get(session.uri))
        self.host.seek(position_ms)
        return True

    # 偏移量

    def get_offset(self) -> int:
        return self.offsets.get(self.current_track.uri if self.current_track else None)

    def adjust_offset(self, delta_ms: int = OFFSET_STEP_MS) -> Optional[int]:
        """调整当前曲目的偏移量，没有曲目时返回None"""
        if self.current_track is None:
            return None
        return self.offsets.adjust(self.current_track.uri, delta_ms)

    def reset_offset(self) -> Optional[int]:
        if self.current_track is None:
            return None
        return self.offsets.reset_offset(self.current_track.uri)

    def _on_offset_changed(self, uri: str, offset_ms: int) -> None:
        if self.sync.session is not None and self.sync.session.uri == uri:
            self.sync.reevaluate()
        self.events.emit("offset_changed", uri, offset_ms)

    # 缓存

    def cache_current(self) -> bool:
        """手动缓存当前显示的歌词"""
        session = self.sync.session
        if session is None or not session.lines:
            self._notify("No lyrics to cache.", True)
            return False
        if self.cache.put(session.uri, session.lines) is None:
            return False
        self.events.emit("cache_changed", session.uri)
        self._notify("Lyrics cached.")
        return True

    def clear_current_cache(self) -> bool:
        if self.current_track is None:
            return False
        removed = self.cache.remove(self.current_track.uri)
        if removed:
            self.events.emit("cache_changed", self.current_track.uri)
            self._notify("Cache cleared for this song.")
        return removed

    def clear_all_cache(self) -> bool:
        if not self.cache.clear():
            return False
        self.events.emit("cache_changed", None)
        self._notify("All cached lyrics cleared.")
        return True

    async def cache_tracks(self, items: List[Dict[str, Any]]) -> int:
        """
        为一组曲目（例如整个播放列表）完整解析并缓存歌词

        条目依次处理，不影响当前显示的歌词。

        Args:
            items: 宿主提供的曲目字典列表

        Returns:
            新缓存的曲目数量
        """
        self._notify("Caching lyrics...")
        cached_count = 0
        try:
            for item in items or []:
                identity = to_track_identity(item, require_fields=False)
                if identity is None:
                    continue
                permutations = self.normalizer.get_search_permutations(identity)
                outcome = await self.client.resolve(identity, permutations)
                if outcome is None or outcome.status != ResolveStatus.FOUND_SYNCED:
                    continue
                if self.cache.put(identity.uri, outcome.lyrics):
                    self.events.emit("cache_changed", identity.uri)
                    cached_count += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(f"批量缓存歌词时出错: {e}", exc_info=True)
            self._notify("Error caching lyrics", True)
            return cached_count

        self.logger.info(f"批量缓存完成: {cached_count}/{len(items or [])}")
        self._notify("All lyrics cached!")
        return cached_count

    # 导出

    def build_lrc_export(self) -> Optional[str]:
        """生成当前歌词的LRC文本（包含偏移量）"""
        session = self.sync.session
        if session is None or self.current_track is None or not session.lines:
            return None
        return self.parser.build_lrc(self.current_track, session.lines, self.offsets.get(session.uri))

    def export_lrc(self, directory: Optional[str] = None) -> Optional[Path]:
        """
        把当前歌词导出为 "<艺术家> - <标题>.lrc"

        Args:
            directory: 导出目录，为空时使用配置中的目录

        Returns:
            写入的文件路径，没有歌词或写入失败时返回None
        """
        content = self.build_lrc_export()
        if content is None:
            self._notify("No lyrics to export.", True)
            return None

        identity = self.current_track
        file_name = _ILLEGAL_FILENAME_CHARS.sub("_", f"{identity.artist} - {identity.title}.lrc")
        export_dir = Path(directory or self.config.get_export_dir())

        try:
            export_dir.mkdir(parents=True, exist_ok=True)
            path = export_dir / file_name
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            self.logger.error(f"导出LRC失败: {e}", exc_info=True)
            self._notify("Failed to export lyrics.", True)
            return None

        self.logger.info(f"已导出LRC: {path}")
        self._notify(f"Exported {file_name}")
        return path

    # 设置

    def update_settings(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        applied = self.settings.update(changes)
        if applied:
            self.events.emit("settings_changed", applied)
        return applied

    # 内部工具

    def _set_status(self, status: str, message: str) -> None:
        self.status = (status, message)
        self.logger.debug(f"状态: {status} - {message}")
        self.events.emit("status_changed", status, message)

    def _notify(self, message: str, is_error: bool = False) -> None:
        if is_error:
            self.logger.warning(message)
        else:
            self.logger.debug(message)
        if self.host is None:
            return
        try:
            self.host.notify(message, is_error)
        except Exception as e:
            self.logger.error(f"发送通知失败: {e}", exc_info=True)

    async def _get_queue(self) -> List[Dict[str, Any]]:
        if self.host is None:
            return []
        return await self.host.get_queue()
