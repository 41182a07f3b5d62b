"""
预取模块 - 为播放队列中即将播放的曲目静默缓存歌词
"""

from .prefetch_scheduler import PrefetchScheduler

__all__ = [
    "PrefetchScheduler"
]
