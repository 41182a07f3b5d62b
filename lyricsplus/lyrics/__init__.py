"""
歌词模块 - 歌词获取、解析和同步功能

提供元数据规范化、LRCLIB查询、LRC格式解析和切歌时的歌词解析流程。
"""

from .lyrics_client import LrcLibClient, ResolveOutcome, ResolveStatus
from .lyrics_parser import LyricsParser
from .metadata_normalizer import MetadataNormalizer
from .fetch_session import FetchSession, FetchSessionTracker
from .lyrics_manager import LyricsManager

__all__ = [
    'LrcLibClient',
    'ResolveOutcome',
    'ResolveStatus',
    'LyricsParser',
    'MetadataNormalizer',
    'FetchSession',
    'FetchSessionTracker',
    'LyricsManager'
]
