"""
元数据规范化 - 清理曲目元数据并生成搜索排列

播放器提供的标题和艺术家经常带有 "- 2023 Remaster"、"(feat. X)"、
多位艺术家等修饰，歌词提供方按精确字段匹配，因此需要生成多组候选条件依次尝试。
"""

import logging
import re
from typing import Iterable, List

from lyricsplus.core.interfaces import TrackIdentity, SearchPermutation


class MetadataNormalizer:
    """
    元数据规范化器

    clean_text 是纯函数且幂等；get_search_permutations 的结果
    去重且保持顺序，第一个排列总是未修改的原始元数据。
    """

    # 清理规则（按顺序应用）
    QUALIFIER_PATTERN = re.compile(r'\s-\s.*?(remaster|live|edit|version|mix|deluxe).*', re.IGNORECASE)
    BRACKET_PATTERN = re.compile(r'\s*\(.*?\)\s*|\s*\[.*?\]\s*')
    FEATURING_PATTERN = re.compile(r'\s(feat|ft)\..*', re.IGNORECASE)
    PRIMARY_SPLIT_PATTERN = re.compile(r'[,/&;]')
    ARTIST_SPLIT_PATTERN = re.compile(r',|/|&|;|feat\.|ft\.', re.IGNORECASE)

    # 防止异常输入导致无限循环
    MAX_CLEAN_PASSES = 8

    def __init__(self):
        """初始化元数据规范化器"""
        self.logger = logging.getLogger("lyricsplus.lyrics.metadata_normalizer")

    def _clean_once(self, text: str) -> str:
        cleaned = self.QUALIFIER_PATTERN.sub('', text)
        cleaned = self.BRACKET_PATTERN.sub(' ', cleaned)
        cleaned = self.FEATURING_PATTERN.sub('', cleaned)
        cleaned = self.PRIMARY_SPLIT_PATTERN.split(cleaned)[0]
        return re.sub(r'\s+', ' ', cleaned).strip()

    def clean_text(self, text: str) -> str:
        """
        移除额外信息以提高搜索准确性

        Args:
            text: 原始标题、艺术家或专辑名

        Returns:
            清理后的文本
        """
        if not text:
            return ''

        # 每条规则只会缩短文本，重复应用直到不再变化以保证幂等
        cleaned = text
        for _ in range(self.MAX_CLEAN_PASSES):
            next_cleaned = self._clean_once(cleaned)
            if next_cleaned == cleaned:
                break
            cleaned = next_cleaned
        return cleaned

    def split_artists(self, artist: str) -> List[str]:
        """把艺术家字段拆分为单个艺术家"""
        if not artist:
            return []
        return [part.strip() for part in self.ARTIST_SPLIT_PATTERN.split(artist) if part.strip()]

    @staticmethod
    def _unique(values: Iterable[str]) -> List[str]:
        """去重并保持首次出现的顺序"""
        return list(dict.fromkeys(values))

    def get_search_permutations(self, identity: TrackIdentity) -> List[SearchPermutation]:
        """
        生成曲目的搜索排列

        Args:
            identity: 曲目身份

        Returns:
            去重后的搜索排列列表，原始元数据优先
        """
        original_title = identity.title or ''
        original_artist = identity.artist or ''
        original_album = identity.album or ''

        titles = self._unique([original_title, self.clean_text(original_title)])
        artists = self._unique(
            [original_artist, self.clean_text(original_artist)] + self.split_artists(original_artist)
        )
        albums = self._unique([original_album, self.clean_text(original_album), ''])

        permutations = []
        seen = set()
        for title in titles:
            for artist in artists:
                for album in albums:
                    permutation = SearchPermutation(title=title, artist=artist, album=album)
                    if permutation in seen:
                        continue
                    seen.add(permutation)
                    permutations.append(permutation)

        self.logger.debug(f"为 {identity.get_display_name()} 生成了 {len(permutations)} 个搜索排列")
        return permutations
