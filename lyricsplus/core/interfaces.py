"""
核心接口定义 - 定义歌词引擎与宿主播放器之间的抽象接口

提供依赖倒置的基础，歌词引擎只依赖这里定义的数据类和接口，
不直接依赖任何具体的播放器或存储实现。
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List, Callable
from dataclasses import dataclass


# 空白歌词行的占位符
PLACEHOLDER_GLYPH = "♪"


@dataclass(frozen=True)
class TrackIdentity:
    """
    曲目身份数据类

    每次切歌时创建，uri 是缓存和偏移量的唯一键。
    """
    uri: str
    title: str
    artist: str
    album: str = ""
    duration_ms: int = 0

    def get_display_name(self) -> str:
        return f"{self.artist} - {self.title}" if self.artist else self.title


@dataclass(frozen=True)
class SearchPermutation:
    """一组候选搜索条件 (标题, 艺术家, 专辑)"""
    title: str
    artist: str
    album: str

    def as_tuple(self) -> tuple:
        return (self.title, self.artist, self.album)


@dataclass(frozen=True)
class LyricLine:
    """表示带时间戳的单行歌词"""
    time_ms: int  # 时间（毫秒）
    text: str  # 歌词文本，空行使用占位符

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time_ms, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LyricLine":
        """
        从持久化字典恢复歌词行

        Raises:
            ValueError: 字段缺失或类型错误
        """
        try:
            time_ms = int(data["time"])
            text = str(data["text"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"歌词行数据无效: {data!r}") from e
        if time_ms < 0:
            raise ValueError(f"歌词行时间为负数: {time_ms}")
        return cls(time_ms=time_ms, text=text or PLACEHOLDER_GLYPH)


class IKeyValueStore(ABC):
    """
    宿主提供的简单持久化键值存储

    值均为字符串（JSON 序列化后的内容）。
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """读取键对应的字符串，不存在时返回None"""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """写入键值"""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """删除键（不存在时静默忽略）"""
        pass


class IHostPlayer(ABC):
    """
    宿主播放器接口

    歌词引擎通过该接口获取当前曲目、播放进度和播放队列，
    并通过事件监听接收切歌、进度和播放/暂停通知。
    """

    @abstractmethod
    def get_current_track(self) -> Optional[Dict[str, Any]]:
        """获取当前曲目的原始元数据（结构松散的字典）"""
        pass

    @abstractmethod
    def get_progress(self) -> int:
        """获取当前播放位置（毫秒）"""
        pass

    @abstractmethod
    def get_duration(self) -> int:
        """获取当前曲目时长（毫秒）"""
        pass

    @abstractmethod
    def is_playing(self) -> bool:
        pass

    @abstractmethod
    def toggle_play(self) -> None:
        pass

    @abstractmethod
    def seek(self, position_ms: int) -> None:
        pass

    @abstractmethod
    def next(self) -> None:
        pass

    @abstractmethod
    def previous(self) -> None:
        pass

    @abstractmethod
    def add_event_listener(self, event: str, callback: Callable[..., Any]) -> None:
        """
        注册宿主事件监听器

        Args:
            event: 事件名称 (songchange / onprogress / onplaypause)
            callback: 回调函数，可以是同步或异步函数
        """
        pass

    @abstractmethod
    async def get_queue(self) -> List[Dict[str, Any]]:
        """获取即将播放的队列（结构松散的字典列表）"""
        pass

    @abstractmethod
    def notify(self, message: str, is_error: bool = False) -> None:
        """在宿主的通知区域显示消息"""
        pass
