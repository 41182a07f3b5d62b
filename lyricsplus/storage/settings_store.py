"""设置存储 - 持久化的用户设置对象，只接受已知的设置键"""

from typing import Any, Dict, Optional

from lyricsplus.core.interfaces import IKeyValueStore
from .json_blob_store import JsonBlobStore, Notifier

CONFIG_KEY = "lyrics-plus:config"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "autoCache": True,
    "performanceMode": False,  # 性能模式
    "fontSize": "medium",  # small / medium / large
    "lyricsAlign": "center",  # left / center / right
    "fontStyle": "sans-serif",
    "fontWeight": "bold",  # normal / bold
    "fontItalic": "normal",  # normal / italic
    "layout": "right",  # default / left / right / lyrics-only
    "animation": "smooth",  # smooth / fast
    "backgroundAnimation": False,
    "backgroundBlur": "medium",  # low / medium / high
}

BOOLEAN_SETTINGS = ("autoCache", "performanceMode", "backgroundAnimation")


class SettingsStore(JsonBlobStore):
    """
    设置存储

    读取时与默认值合并，未知的键在读取和更新时都会被忽略。
    """

    def __init__(self, kv_store: IKeyValueStore, notifier: Optional[Notifier] = None):
        super().__init__(
            kv_store,
            CONFIG_KEY,
            "Lyrics Plus settings corrupted. Resetting to default.",
            notifier,
            "lyricsplus.storage.settings_store"
        )

    def all(self) -> Dict[str, Any]:
        """获取合并默认值后的全部设置"""
        saved = self._read_snapshot()
        settings = dict(DEFAULT_SETTINGS)
        settings.update({k: v for k, v in saved.items() if k in DEFAULT_SETTINGS})
        return settings

    def get(self, key: str) -> Any:
        return self.all().get(key, DEFAULT_SETTINGS.get(key))

    def update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        更新设置

        Args:
            changes: 要修改的设置

        Returns:
            实际生效的修改，写入失败时为空
        """
        applied = {}
        for key, value in changes.items():
            if key not in DEFAULT_SETTINGS:
                self.logger.warning(f"忽略未知设置项: {key}")
                continue
            if key in BOOLEAN_SETTINGS and isinstance(value, str):
                value = value == "true"
            applied[key] = value

        if applied:
            settings = self.all()
            settings.update(applied)
            if not self._write_snapshot(settings):
                return {}
            self.logger.info(f"设置已更新: {applied}")
        return applied
