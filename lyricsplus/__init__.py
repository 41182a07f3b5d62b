"""Lyrics Plus - 歌词解析与播放同步引擎"""

__version__ = "1.0.0"
