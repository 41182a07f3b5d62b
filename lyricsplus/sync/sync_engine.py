"""
同步引擎 - 根据播放进度和偏移量决定当前高亮的歌词行

状态机:
    IDLE             已加载歌词，但还没有任何一行被激活
    SYNCED           当前行跟随播放进度，行变化时滚动到居中位置
    MANUAL_OVERRIDE  用户手动滚动中，停止自动滚动直到重新同步

所有可变状态都保存在 SyncSession 中，切歌时整个会话被替换。
"""

import asyncio
import bisect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from lyricsplus.core.event_bus import EventBus
from lyricsplus.core.interfaces import LyricLine

# 手动滚动后自动重新同步的等待时间（秒）
DEFAULT_RESYNC_DELAY = 3.0


class SyncState(Enum):
    """同步状态枚举"""
    IDLE = "idle"
    SYNCED = "synced"
    MANUAL_OVERRIDE = "manual_override"


class LineState(Enum):
    """单行歌词的显示状态"""
    UPCOMING = "upcoming"
    ACTIVE = "active"
    PAST = "past"


@dataclass
class SyncSession:
    """当前已加载曲目的同步状态"""
    uri: str
    lines: List[LyricLine]
    state: SyncState = SyncState.IDLE
    active_index: int = -1
    started: bool = False
    scroll_position: float = 0.0  # 视图中心所在的行（可以是小数）
    last_progress_ms: Optional[int] = None
    line_states: List[LineState] = field(default_factory=list)
    times: List[int] = field(default_factory=list)

    def __post_init__(self):
        self.line_states = [LineState.UPCOMING] * len(self.lines)
        self.times = [line.time_ms for line in self.lines]

    @property
    def active_line(self) -> Optional[LyricLine]:
        if 0 <= self.active_index < len(self.lines):
            return self.lines[self.active_index]
        return None


class SyncEngine:
    """
    歌词同步引擎

    通过事件总线发出以下事件:
        line_changed(previous_index, current_index)
        lyrics_revealed(uri)
        scroll(position, smooth)
        sync_state_changed(old_state, new_state)
    """

    def __init__(
        self,
        offset_provider: Callable[[str], int],
        event_bus: Optional[EventBus] = None,
        resync_delay: float = DEFAULT_RESYNC_DELAY,
        progress_provider: Optional[Callable[[], int]] = None
    ):
        """
        初始化同步引擎

        Args:
            offset_provider: 根据uri返回偏移量（毫秒）的函数
            event_bus: 事件总线
            resync_delay: 手动滚动后重新同步的等待时间（秒）
            progress_provider: 返回宿主当前播放位置的函数，重新同步时使用
        """
        self.logger = logging.getLogger("lyricsplus.sync.sync_engine")
        self.offset_provider = offset_provider
        self.events = event_bus or EventBus()
        self.resync_delay = resync_delay
        self.progress_provider = progress_provider

        self._session: Optional[SyncSession] = None
        self._resync_task: Optional[asyncio.Task] = None

    @property
    def session(self) -> Optional[SyncSession]:
        return self._session

    @property
    def state(self) -> SyncState:
        return self._session.state if self._session else SyncState.IDLE

    @property
    def active_index(self) -> int:
        return self._session.active_index if self._session else -1

    def load(self, uri: str, lines: List[LyricLine]) -> SyncSession:
        """
        加载新的歌词，进入IDLE状态

        Args:
            uri: 曲目uri
            lines: 按时间排序的歌词行
        """
        self._cancel_resync_timer()
        self._session = SyncSession(uri=uri, lines=list(lines))
        self.logger.debug(f"加载歌词: {uri} ({len(lines)} 行)")
        return self._session

    def unload(self) -> None:
        """卸载当前歌词"""
        self._cancel_resync_timer()
        self._session = None

    @staticmethod
    def find_active_index(times: List[int], adjusted_ms: int) -> int:
        """
        查找时间不晚于 adjusted_ms 的最后一行

        多行时间相同时返回排在最后的一行。

        Returns:
            行索引，没有符合条件的行时返回-1
        """
        return bisect.bisect_right(times, adjusted_ms) - 1

    def on_progress(self, progress_ms: int) -> int:
        """
        根据播放进度更新当前行

        Args:
            progress_ms: 宿主报告的播放位置（毫秒）

        Returns:
            当前行索引
        """
        session = self._session
        if session is None:
            return -1

        session.last_progress_ms = progress_ms
        adjusted_ms = progress_ms - self.offset_provider(session.uri)
        new_index = self.find_active_index(session.times, adjusted_ms)

        if new_index == session.active_index:
            return new_index

        previous_index = session.active_index
        if previous_index >= 0:
            session.line_states[previous_index] = LineState.PAST
        if new_index >= 0:
            session.line_states[new_index] = LineState.ACTIVE
        session.active_index = new_index

        if not session.started and new_index > -1:
            session.started = True
            self.events.emit("lyrics_revealed", session.uri)
            if session.state == SyncState.IDLE:
                self._set_state(session, SyncState.SYNCED)

        self.events.emit("line_changed", previous_index, new_index)

        if session.state == SyncState.SYNCED and new_index >= 0:
            self._scroll_to(session, new_index, smooth=True)

        return new_index

    def on_manual_scroll(self, delta_lines: float) -> Optional[float]:
        """
        处理用户手动滚动

        Args:
            delta_lines: 滚动的行数（正数向下）

        Returns:
            滚动后的位置，没有加载歌词时返回None
        """
        session = self._session
        if session is None or not session.lines:
            return None

        self._cancel_resync_timer()
        if session.state != SyncState.MANUAL_OVERRIDE:
            self._set_state(session, SyncState.MANUAL_OVERRIDE)

        max_position = float(len(session.lines) - 1)
        position = min(max(session.scroll_position + delta_lines, 0.0), max_position)
        session.scroll_position = position
        self.events.emit("scroll", position, False)

        self._start_resync_timer(session)
        return position

    def resync(self) -> None:
        """回到跟随播放的状态，并把视图对齐到当前行"""
        self._cancel_resync_timer()
        session = self._session
        if session is None:
            return

        target_state = SyncState.SYNCED if session.started else SyncState.IDLE
        if session.state != target_state:
            self._set_state(session, target_state)

        index_before = session.active_index
        progress_ms = self._latest_progress(session)
        if progress_ms is not None:
            self.on_progress(progress_ms)

        # 行号没有变化时 on_progress 不会滚动，这里强制对齐
        if session.active_index == index_before:
            self._scroll_to(session, max(session.active_index, 0), smooth=True)

    def reevaluate(self) -> int:
        """用最新的播放位置重新计算当前行（偏移量变化时调用）"""
        session = self._session
        if session is None:
            return -1
        progress_ms = self._latest_progress(session)
        if progress_ms is None:
            return session.active_index
        return self.on_progress(progress_ms)

    def _latest_progress(self, session: SyncSession) -> Optional[int]:
        if self.progress_provider is not None:
            try:
                return int(self.progress_provider())
            except Exception as e:
                self.logger.warning(f"获取播放位置失败，使用最后已知位置: {e}")
        return session.last_progress_ms

    def _set_state(self, session: SyncSession, new_state: SyncState) -> None:
        old_state = session.state
        session.state = new_state
        self.logger.debug(f"同步状态: {old_state.value} -> {new_state.value}")
        self.events.emit("sync_state_changed", old_state, new_state)

    def _scroll_to(self, session: SyncSession, index: int, smooth: bool) -> None:
        session.scroll_position = float(index)
        self.events.emit("scroll", session.scroll_position, smooth)

    def _start_resync_timer(self, session: SyncSession) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.debug("没有运行中的事件循环，等待显式重新同步")
            return
        self._resync_task = loop.create_task(self._resync_after(session, self.resync_delay))

    def _cancel_resync_timer(self) -> None:
        if self._resync_task is not None:
            if not self._resync_task.done():
                self._resync_task.cancel()
            self._resync_task = None

    async def _resync_after(self, session: SyncSession, delay: float) -> None:
        """不活动计时器"""
        await asyncio.sleep(delay)
        self._resync_task = None
        if self._session is not session:
            return
        self.logger.debug("手动滚动超时，重新同步")
        self.resync()
