#!/usr/bin/env python3
"""
Lyrics Plus 命令行入口 - 为一首曲目解析同步歌词

使用与播放器集成相同的完整流程（持久化缓存、搜索排列、LRCLIB查询），
打印找到的歌词并可选地导出为LRC文件。
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from lyricsplus.lyrics.lyrics_client import ResolveStatus
from lyricsplus.lyrics.lyrics_manager import LyricsManager
from lyricsplus.lyrics.lyrics_parser import LyricsParser
from lyricsplus.storage.kv_store import JsonFileKeyValueStore
from lyricsplus.utils.config_manager import ConfigManager, DEFAULT_CONFIG_PATH
from lyricsplus.utils.logger import setup_logger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resolve synced lyrics for a track via LRCLIB")
    parser.add_argument("title", help="Track title")
    parser.add_argument("artist", help="Track artist(s)")
    parser.add_argument("--album", default="", help="Album name")
    parser.add_argument("--duration", type=float, default=0, help="Track duration in seconds")
    parser.add_argument("--uri", default=None, help="Track identifier used as the cache key")
    parser.add_argument("--export", nargs="?", const="", default=None, metavar="DIR",
                        help="Export the lyrics as LRC (defaults to export.directory)")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to config.yaml")
    return parser


async def _resolve(args: argparse.Namespace, config: ConfigManager, logger: logging.Logger) -> int:
    kv_store = JsonFileKeyValueStore(config.get_data_dir())
    manager = LyricsManager(kv_store, config=config)

    track = {
        "uri": args.uri or f"cli:{args.artist}:{args.title}",
        "metadata": {
            "title": args.title,
            "artist_name": args.artist,
            "album_title": args.album,
            "duration": int(args.duration * 1000),
        },
    }

    try:
        await manager.start()

        outcome = await manager.on_track_change(track)
        if outcome is None:
            logger.error("❌ 歌词解析没有完成")
            return 1

        logger.info(f"状态: {manager.status[1]}")

        if outcome.status == ResolveStatus.FOUND_SYNCED:
            for line in outcome.lyrics:
                print(f"[{LyricsParser.format_timestamp(line.time_ms)}]{line.text}")
            if args.export is not None:
                path = manager.export_lrc(args.export or None)
                if path is None:
                    return 1
                logger.info(f"✅ 已导出: {path}")
            return 0

        if outcome.status == ResolveStatus.FOUND_PLAIN:
            for text in LyricsParser.plain_lines(outcome.plain_text or ""):
                print(text)
            return 0

        return 1
    finally:
        await manager.shutdown()


def main(argv: Optional[List[str]] = None) -> int:
    """
    命令行主入口函数

    Returns:
        int: 退出代码（0表示找到歌词，1表示未找到或出错）
    """
    args = _build_parser().parse_args(argv)

    try:
        config = ConfigManager(args.config)
    except Exception as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 1

    setup_logger(
        log_level=config.get_log_level(),
        log_file=config.get_log_file(),
        max_size=config.get_log_max_size(),
        backup_count=config.get_log_backup_count()
    )
    logger = logging.getLogger("lyricsplus")
    logger.info(f"🎵 解析歌词: {args.artist} - {args.title}")

    try:
        return asyncio.run(_resolve(args, config, logger))
    except KeyboardInterrupt:
        logger.info("🛑 用户中断 (Ctrl+C)")
        return 1
    except Exception as e:
        logger.error(f"❌ 解析歌词时发生意外错误: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
