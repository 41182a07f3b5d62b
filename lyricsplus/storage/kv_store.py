"""
键值存储实现 - 宿主持久化键值存储的文件版和内存版实现

文件版把每个键保存为数据目录下的一个文件，值为原始字符串。
"""

import logging
import re
from pathlib import Path
from typing import Dict, Optional

from lyricsplus.core.interfaces import IKeyValueStore


class JsonFileKeyValueStore(IKeyValueStore):
    """
    基于文件的键值存储

    每个键对应 data_dir 下的一个 .json 文件。
    """

    def __init__(self, data_dir: str = "data"):
        """
        初始化文件键值存储

        Args:
            data_dir: 数据存储目录
        """
        self.logger = logging.getLogger("lyricsplus.storage.kv_store")
        self.data_dir = Path(data_dir)
        self._ensure_directories()
        self.logger.info(f"键值存储初始化完成 - 数据目录: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """确保数据目录存在"""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except Exception as e:
            self.logger.error(f"创建数据目录失败: {e}")
            raise

    def _get_file_path(self, key: str) -> Path:
        """把键转换为安全的文件名"""
        safe_name = re.sub(r"[^\w.-]", "_", key)
        return self.data_dir / f"{safe_name}.json"

    def get(self, key: str) -> Optional[str]:
        file_path = self._get_file_path(key)
        if not file_path.exists():
            return None
        with open(file_path, "r", encoding="utf-8") as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        file_path = self._get_file_path(key)
        tmp_path = file_path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(value)
        tmp_path.replace(file_path)

    def remove(self, key: str) -> None:
        file_path = self._get_file_path(key)
        if file_path.exists():
            file_path.unlink()
            self.logger.debug(f"删除存储键: {key}")


class MemoryKeyValueStore(IKeyValueStore):
    """内存键值存储，用于嵌入式场景和测试"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)
