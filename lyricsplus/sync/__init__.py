"""
同步模块 - 歌词行与播放进度的同步

提供当前行计算、手动滚动覆盖和自动重新同步功能。
"""

from .sync_engine import SyncEngine, SyncSession, SyncState, LineState

__all__ = [
    'SyncEngine',
    'SyncSession',
    'SyncState',
    'LineState'
]
