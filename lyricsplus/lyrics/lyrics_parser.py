"""LRC格式歌词解析器和导出"""

import logging
import re
from typing import List, Optional

from lyricsplus.core.interfaces import LyricLine, TrackIdentity, PLACEHOLDER_GLYPH

# 纯文本歌词的合成时间间隔
PLAIN_LINE_SPACING_MS = 2000


class LyricsParser:
    """
    LRC格式歌词解析器

    每行只识别开头的一个时间戳 [mm:ss.ff] 或 [mm:ss:fff]，
    没有有效时间戳的行（包括 [ar: ...] 这类元数据标签）直接忽略。
    """

    def __init__(self):
        """初始化歌词解析器"""
        self.logger = logging.getLogger("lyricsplus.lyrics.lyrics_parser")

        # LRC时间戳模式: [mm:ss.ff] / [mm:ss.fff] / [mm:ss:ff]
        self.line_pattern = re.compile(r'^\[(\d{2}):(\d{2})[.:](\d{2,3})\](.*)$')

    def parse(self, lrc_content: Optional[str]) -> Optional[List[LyricLine]]:
        """
        将LRC格式歌词解析为LyricLine对象列表

        Args:
            lrc_content: LRC格式歌词内容

        Returns:
            按时间戳稳定排序的LyricLine列表，没有任何有效行时返回None
        """
        if not lrc_content or not lrc_content.strip():
            return None

        lines = []
        for raw_line in lrc_content.split('\n'):
            match = self.line_pattern.match(raw_line.strip())
            if not match:
                continue

            minutes, seconds, fraction, text = match.groups()
            time_ms = self._convert_timestamp_to_ms(minutes, seconds, fraction)
            lines.append(LyricLine(time_ms=time_ms, text=text.strip() or PLACEHOLDER_GLYPH))

        if not lines:
            self.logger.debug("LRC内容中没有有效的时间戳行")
            return None

        # list.sort 是稳定排序，相同时间戳保持原有顺序
        lines.sort(key=lambda line: line.time_ms)
        self.logger.debug(f"解析了 {len(lines)} 行歌词")
        return lines

    def _convert_timestamp_to_ms(self, minutes: str, seconds: str, fraction: str) -> int:
        """
        将LRC时间戳转换为毫秒

        两位小数视为百分之一秒，右侧补零到千分之一秒。
        """
        return int(minutes) * 60000 + int(seconds) * 1000 + int(fraction.ljust(3, '0'))

    def parse_plain(
        self,
        plain_text: Optional[str],
        spacing_ms: int = PLAIN_LINE_SPACING_MS
    ) -> Optional[List[LyricLine]]:
        """
        把纯文本歌词转换为等间隔的占位时间轴

        Args:
            plain_text: 纯文本歌词
            spacing_ms: 每行之间的间隔（毫秒）

        Returns:
            LyricLine列表，文本为空时返回None
        """
        if not plain_text or not plain_text.strip():
            return None

        return [
            LyricLine(time_ms=index * spacing_ms, text=text)
            for index, text in enumerate(self.plain_lines(plain_text))
        ]

    @staticmethod
    def plain_lines(plain_text: str) -> List[str]:
        """
        纯文本歌词的显示行，空行替换为占位符

        每行都会去掉首尾空白（包括 CRLF 留下的 \\r），只含空白的行同样视为空行。
        """
        return [line.strip() or PLACEHOLDER_GLYPH for line in plain_text.split('\n')]

    @staticmethod
    def format_timestamp(time_ms: int) -> str:
        """
        将毫秒格式化为 mm:ss.ff

        Args:
            time_ms: 时间（毫秒），负数按0处理

        Returns:
            LRC时间戳字符串（不含方括号）
        """
        centiseconds = int(round(max(0, time_ms) / 10))
        minutes, remainder = divmod(centiseconds, 6000)
        seconds, hundredths = divmod(remainder, 100)
        return f"{minutes:02d}:{seconds:02d}.{hundredths:02d}"

    def build_lrc(self, identity: TrackIdentity, lyrics: List[LyricLine], offset_ms: int = 0) -> str:
        """
        生成可导出的LRC文件内容

        每行时间加上该曲目保存的偏移量，结果小于0时按0处理。

        Args:
            identity: 曲目身份
            lyrics: 歌词行列表
            offset_ms: 偏移量（毫秒）

        Returns:
            LRC文件内容
        """
        header = [
            f"[ar: {identity.artist}]",
            f"[ti: {identity.title}]",
            f"[al: {identity.album}]",
            f"[offset: {offset_ms}]",
            "",
        ]
        body = [
            f"[{self.format_timestamp(line.time_ms + offset_ms)}]{line.text}"
            for line in lyrics
        ]
        return "\n".join(header + body) + "\n"
