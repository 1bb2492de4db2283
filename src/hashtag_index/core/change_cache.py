"""変更検出とサマリキャッシュ.

マップが変更されたか（dirty）を追跡し、チェックサムと Counted List を使い回します。

注意:
    キャッシュの有効性判定は 32bit の CRC に依存するため、異なる内容が同じ値に
    衝突した場合は古い Counted List を返し得る（理論上のリスクとして許容）。
"""

from __future__ import annotations

from .counted import CountItem
from .tag_map import TagMap


class ChangeTracker:
    """`TagMap` のチェックサムと Counted List のキャッシュ."""

    def __init__(self) -> None:
        self._dirty = True
        self._crc = 0
        self._counts_crc: int | None = None
        self._counts: list[CountItem] = []

    @property
    def dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    def checksum(self, tag_map: TagMap) -> int:
        """dirty のときだけ再計算する."""
        if self._dirty:
            self._crc = tag_map.checksum()
            self._dirty = False
        return self._crc

    def counted_list(self, tag_map: TagMap) -> list[CountItem]:
        """チェックサムが一致し、かつキャッシュが空でなければキャッシュを返す."""
        crc = self.checksum(tag_map)
        if crc == self._counts_crc and self._counts:
            return list(self._counts)

        self._counts = tag_map.counted_list()
        self._counts_crc = crc
        return list(self._counts)

    def reset(self) -> None:
        self._dirty = True
        self._counts_crc = None
        self._counts = []
