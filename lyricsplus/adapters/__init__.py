"""
适配器模块 - 把宿主的松散数据结构转换为核心数据类型
"""

from .queue_item_adapter import to_track_identity, to_track_identities, extract_metadata, extract_uri

__all__ = [
    "to_track_identity",
    "to_track_identities",
    "extract_metadata",
    "extract_uri"
]
