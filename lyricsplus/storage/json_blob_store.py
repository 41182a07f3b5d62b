"""
JSON 数据块存储基类 - 处理单个键下 JSON 数据的读取、校验和损坏恢复

缓存、偏移量和设置三个存储各自使用一个独立的键，
任何一个损坏只会重置它自己。
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

from lyricsplus.core.interfaces import IKeyValueStore


class StorageCorruptError(ValueError):
    """持久化数据无法解析或结构不正确"""


Notifier = Callable[[str, bool], None]

WRITE_FAILED_MESSAGE = "Lyrics Plus could not save data."


class JsonBlobStore:
    """
    单键 JSON 存储

    每次修改都先读取最新快照、修改、再立即写回，中间没有挂起点，
    因此多个流程交替修改不同的键时不会丢失更新。
    """

    def __init__(
        self,
        kv_store: IKeyValueStore,
        storage_key: str,
        corrupt_message: str,
        notifier: Optional[Notifier] = None,
        logger_name: str = "lyricsplus.storage"
    ):
        """
        初始化 JSON 数据块存储

        Args:
            kv_store: 宿主键值存储
            storage_key: 存储键
            corrupt_message: 数据损坏时发给用户的通知
            notifier: 通知回调 (message, is_error)
            logger_name: 日志记录器名称
        """
        self.logger = logging.getLogger(logger_name)
        self.kv_store = kv_store
        self.storage_key = storage_key
        self.corrupt_message = corrupt_message
        self.notifier = notifier

    def _decode(self, data: Any) -> Dict[str, Any]:
        """
        校验并转换解析后的 JSON 数据

        Raises:
            StorageCorruptError: 数据结构不正确
        """
        if not isinstance(data, dict):
            raise StorageCorruptError(f"期望JSON对象，实际为 {type(data).__name__}")
        return data

    def _read_snapshot(self) -> Dict[str, Any]:
        """读取最新快照，数据损坏时重置为空"""
        snapshot, _ = self._load_snapshot()
        return snapshot

    def _load_snapshot(self) -> tuple:
        """
        读取快照

        Returns:
            (快照字典, 是否读取成功)
        """
        try:
            raw = self.kv_store.get(self.storage_key)
            if not raw:
                return {}, True
            return self._decode(json.loads(raw)), True
        except ValueError as e:
            # 非法编码、非法JSON和结构错误都按损坏处理
            self._recover_from_corruption(e)
            return {}, False
        except OSError as e:
            self.logger.error(f"读取存储键 {self.storage_key} 失败: {e}")
            return {}, True

    def _recover_from_corruption(self, error: Exception) -> None:
        """重置损坏的数据并通知用户"""
        self.logger.warning(f"存储键 {self.storage_key} 数据损坏，已重置: {error}")
        try:
            self.kv_store.remove(self.storage_key)
        except OSError as e:
            self.logger.error(f"删除损坏数据失败: {e}", exc_info=True)
        self._send_notification(self.corrupt_message)

    def _send_notification(self, message: str) -> None:
        if not self.notifier:
            return
        try:
            self.notifier(message, True)
        except Exception as e:
            self.logger.error(f"发送通知失败: {e}", exc_info=True)

    def _write_snapshot(self, snapshot: Dict[str, Any]) -> bool:
        """
        把快照写回存储

        Returns:
            写入成功返回True，写入失败时记录日志、通知用户并返回False
        """
        try:
            self.kv_store.set(self.storage_key, json.dumps(snapshot, ensure_ascii=False))
            return True
        except OSError as e:
            self.logger.error(f"写入存储键 {self.storage_key} 失败: {e}", exc_info=True)
            self._send_notification(WRITE_FAILED_MESSAGE)
            return False

    def load(self) -> bool:
        """
        校验已持久化的数据

        Returns:
            数据有效（或不存在）返回True，数据损坏并被重置返回False
        """
        _, ok = self._load_snapshot()
        return ok

    def reset(self) -> bool:
        """删除该键下的全部数据"""
        try:
            self.kv_store.remove(self.storage_key)
        except OSError as e:
            self.logger.error(f"重置存储键 {self.storage_key} 失败: {e}", exc_info=True)
            self._send_notification(WRITE_FAILED_MESSAGE)
            return False
        self.logger.info(f"存储键 {self.storage_key} 已重置")
        return True
