"""
预取调度器 - 在后台为即将播放的曲目静默缓存歌词

预取是尽力而为的：只用原始元数据查询一次，任何单个条目的失败都被忽略。
它不与前台解析共享取消信号，也从不阻塞前台解析。
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from lyricsplus.adapters.queue_item_adapter import to_track_identity, extract_uri
from lyricsplus.lyrics.lyrics_client import LrcLibClient
from lyricsplus.storage.lyrics_cache import LyricsCache

QueueProvider = Callable[[], Awaitable[List[Dict[str, Any]]]]

# 相邻两次预取请求之间的间隔（秒）
DEFAULT_PREFETCH_DELAY = 0.15
DEFAULT_MAX_ITEMS = 20


class PrefetchScheduler:
    """
    预取调度器

    同一时间只有一次队列遍历；遍历进行中再次触发时，
    在当前遍历结束后重新遍历一次最新的队列。
    """

    def __init__(
        self,
        client: LrcLibClient,
        cache: LyricsCache,
        queue_provider: QueueProvider,
        delay: float = DEFAULT_PREFETCH_DELAY,
        max_items: int = DEFAULT_MAX_ITEMS,
        enabled: bool = True
    ):
        """
        初始化预取调度器

        Args:
            client: 歌词客户端
            cache: 歌词缓存
            queue_provider: 返回宿主播放队列的异步函数
            delay: 条目之间的间隔（秒）
            max_items: 每次最多处理的队列条目数
            enabled: 是否启用预取
        """
        self.logger = logging.getLogger("lyricsplus.prefetch.prefetch_scheduler")
        self.client = client
        self.cache = cache
        self.queue_provider = queue_provider
        self.delay = delay
        self.max_items = max_items
        self.enabled = enabled

        self._walk_task: Optional[asyncio.Task] = None
        self._rerun_requested = False

    @property
    def is_running(self) -> bool:
        return self._walk_task is not None and not self._walk_task.done()

    def schedule(self) -> Optional[asyncio.Task]:
        """
        触发一次后台预取

        Returns:
            遍历任务；已有遍历在进行时返回该任务
        """
        if not self.enabled:
            return None

        if self.is_running:
            self._rerun_requested = True
            self.logger.debug("预取进行中，结束后重新遍历队列")
            return self._walk_task

        self._walk_task = asyncio.get_running_loop().create_task(self._run())
        return self._walk_task

    async def stop(self) -> None:
        """取消正在进行的预取"""
        self._rerun_requested = False
        task = self._walk_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._walk_task = None

    async def _run(self) -> int:
        """遍历队列，直到没有新的触发请求"""
        total_cached = 0
        while True:
            self._rerun_requested = False
            total_cached += await self.prefetch_queue()
            if not self._rerun_requested:
                return total_cached

    async def prefetch_queue(self) -> int:
        """
        遍历一次播放队列

        Returns:
            本次新缓存的曲目数量
        """
        try:
            queue = await self.queue_provider()
        except Exception as e:
            self.logger.debug(f"获取播放队列失败: {e}")
            return 0

        items = list(queue or [])[:self.max_items]
        cached_count = 0
        for index, item in enumerate(items):
            if await self._prefetch_item(item):
                cached_count += 1
            if index < len(items) - 1:
                await asyncio.sleep(self.delay)

        if cached_count:
            self.logger.info(f"预取完成: 新缓存 {cached_count}/{len(items)} 首曲目的歌词")
        return cached_count

    async def _prefetch_item(self, item: Dict[str, Any]) -> bool:
        """
        静默获取并缓存单个条目的歌词

        Returns:
            是否写入了缓存
        """
        try:
            uri = extract_uri(item)
            if not uri or self.cache.contains(uri):
                return False

            identity = to_track_identity(item)
            if identity is None:
                return False

            lyrics = await self.client.resolve_single(identity)
            if not lyrics:
                return False

            if self.cache.put(uri, lyrics) is None:
                return False
            self.logger.debug(f"预取歌词成功: {identity.get_display_name()}")
            return True

        except Exception as e:
            self.logger.debug(f"预取条目失败: {e}")
            return False
