"""
获取会话 - 为每次歌词解析分配代次，取代比较"最新uri"的隐式取消

每次开始新的解析都会使上一个会话失效并取消其任务；
所有异步续体在修改共享状态前都要检查 is_current()。
"""

import asyncio
import logging
from typing import Optional


class FetchSession:
    """一次歌词解析尝试"""

    def __init__(self, tracker: "FetchSessionTracker", uri: Optional[str], generation: int):
        self._tracker = tracker
        self.uri = uri
        self.generation = generation
        self.task: Optional[asyncio.Task] = None

    def is_current(self) -> bool:
        """该会话是否仍是最新的会话"""
        return self._tracker.generation == self.generation

    def cancel(self) -> None:
        """中止该会话正在进行的请求"""
        if self.task and not self.task.done():
            self.task.cancel()

    def __repr__(self) -> str:
        return f"FetchSession(uri={self.uri!r}, generation={self.generation})"


class FetchSessionTracker:
    """
    会话跟踪器

    同一时间只有一个逻辑会话有效。
    """

    def __init__(self):
        self.logger = logging.getLogger("lyricsplus.lyrics.fetch_session")
        self.generation = 0
        self.current: Optional[FetchSession] = None

    def begin(self, uri: Optional[str]) -> FetchSession:
        """
        开始新会话，取消上一个会话

        Args:
            uri: 新会话对应的曲目uri

        Returns:
            新的会话对象
        """
        previous = self.current
        self.generation += 1
        session = FetchSession(self, uri, self.generation)
        self.current = session

        if previous is not None:
            previous.cancel()
            self.logger.debug(f"会话 {previous.generation} 被会话 {session.generation} 取代")
        return session

    def cancel_current(self) -> None:
        """使当前会话失效（例如关闭时）"""
        if self.current is not None:
            self.current.cancel()
        self.generation += 1
        self.current = None
