"""
队列条目适配器 - 把宿主提供的松散字典转换为 TrackIdentity

宿主的当前曲目和队列条目结构不统一（metadata / contextTrack / artists 数组等），
所有默认值和类型转换都在这里完成，核心组件只接收严格的 TrackIdentity。
"""

import logging
from typing import Any, Dict, List, Optional

from lyricsplus.core.interfaces import TrackIdentity

logger = logging.getLogger("lyricsplus.adapters.queue_item")


def _get_path(data: Any, *keys: Any) -> Any:
    """按路径安全地读取嵌套字段"""
    value = data
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
        elif isinstance(value, list) and isinstance(key, int):
            value = value[key] if -len(value) <= key < len(value) else None
        else:
            return None
    return value


def get_first_defined(*values: Any) -> Any:
    """返回第一个不是 None 且不是空字符串的值"""
    for value in values:
        if value is not None and value != "":
            return value
    return None


def _join_artist_names(artists: Any) -> Optional[str]:
    if not isinstance(artists, list):
        return None
    names = [a.get("name") for a in artists if isinstance(a, dict) and a.get("name")]
    return ", ".join(names) if names else None


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def extract_uri(item: Optional[Dict[str, Any]]) -> Optional[str]:
    """获取条目的uri"""
    if not isinstance(item, dict):
        return None
    uri = get_first_defined(
        item.get("uri"),
        _get_path(item, "contextTrack", "uri"),
        item.get("context_uri")
    )
    return str(uri) if uri else None


def extract_metadata(item: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    从松散的条目中提取元数据，缺失字段使用空字符串或0

    Returns:
        包含 title / artist / album / duration_ms 的字典
    """
    if not isinstance(item, dict):
        return {"title": "", "artist": "", "album": "", "duration_ms": 0}

    title = get_first_defined(
        _get_path(item, "metadata", "title"),
        item.get("name"),
        _get_path(item, "contextTrack", "metadata", "title")
    )
    artist = get_first_defined(
        _get_path(item, "metadata", "artist_name"),
        _join_artist_names(item.get("artists")),
        _join_artist_names(_get_path(item, "contextTrack", "artists")),
        item.get("artist")
    )
    album = get_first_defined(
        _get_path(item, "metadata", "album_title"),
        _get_path(item, "album", "name"),
        _get_path(item, "contextTrack", "album", "name")
    )
    duration = get_first_defined(
        _get_path(item, "metadata", "duration"),
        item.get("duration"),
        _get_path(item, "contextTrack", "metadata", "duration")
    )

    return {
        "title": str(title or ""),
        "artist": str(artist or ""),
        "album": str(album or ""),
        "duration_ms": _to_int(duration),
    }


def to_track_identity(item: Optional[Dict[str, Any]], require_fields: bool = True) -> Optional[TrackIdentity]:
    """
    把松散的条目转换为 TrackIdentity

    Args:
        item: 宿主提供的曲目或队列条目
        require_fields: 是否要求标题和艺术家字段存在（预取需要，前台解析不需要）

    Returns:
        TrackIdentity，缺少必要字段时返回None
    """
    uri = extract_uri(item)
    if not uri:
        return None

    meta = extract_metadata(item)
    if require_fields and (not meta["title"] or not meta["artist"]):
        logger.debug(f"条目缺少必要字段，跳过: {uri}")
        return None

    return TrackIdentity(
        uri=uri,
        title=meta["title"],
        artist=meta["artist"],
        album=meta["album"],
        duration_ms=meta["duration_ms"]
    )


def to_track_identities(items: List[Dict[str, Any]]) -> List[TrackIdentity]:
    """批量转换，跳过无效条目"""
    identities = []
    for item in items or []:
        identity = to_track_identity(item)
        if identity is not None:
            identities.append(identity)
    return identities
