"""
事件总线 - 歌词引擎对外发出的状态变化通知

核心组件只向事件总线发布事件，渲染层订阅这些事件来更新界面，
核心代码中不直接调用任何界面函数。
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List


class EventBus:
    """
    简单的发布/订阅事件通道

    同步回调立即执行，异步回调作为任务调度到当前事件循环。
    回调中的异常只记录日志，不会影响发布方。
    """

    def __init__(self):
        """初始化事件总线"""
        self.logger = logging.getLogger("lyricsplus.core.event_bus")
        self._subscribers: Dict[str, List[Callable[..., Any]]] = {}
        self._pending_tasks: set = set()

    def subscribe(self, event: str, callback: Callable[..., Any]) -> None:
        """
        订阅事件

        Args:
            event: 事件名称
            callback: 回调函数（可以是同步或异步）
        """
        callbacks = self._subscribers.setdefault(event, [])
        if callback in callbacks:
            return
        callbacks.append(callback)
        self.logger.debug(f"订阅事件: {event}")

    def unsubscribe(self, event: str, callback: Callable[..., Any]) -> bool:
        """
        取消订阅

        Returns:
            如果回调之前已订阅则返回True
        """
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)
            return True
        return False

    def subscriber_count(self, event: str) -> int:
        return len(self._subscribers.get(event, []))

    def emit(self, event: str, *args: Any) -> None:
        """
        发布事件

        Args:
            event: 事件名称
            *args: 传递给回调的参数
        """
        for callback in list(self._subscribers.get(event, [])):
            self._invoke_callback(event, callback, *args)

    def _invoke_callback(self, event: str, callback: Callable[..., Any], *args: Any) -> None:
        """调用回调函数，支持同步和异步回调"""
        try:
            if inspect.iscoroutinefunction(callback):
                task = asyncio.get_running_loop().create_task(callback(*args))
                self._pending_tasks.add(task)
                task.add_done_callback(self._on_task_done)
            else:
                callback(*args)
        except Exception as e:
            self.logger.error(f"调用事件 {event} 的回调时发生错误: {e}", exc_info=True)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._pending_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error(f"异步事件回调失败: {task.exception()}")
