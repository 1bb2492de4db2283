"""タグ → ID リストの逆引きマップ（Tag Index）.

- タグ単位の追加/削除
- ID 単位の全体スイープ（削除・リネーム）
- 正規順のテキスト表現とチェックサム（CRC-32）
"""

from __future__ import annotations

import zlib
from collections.abc import Callable, Iterator

from loguru import logger

from .counted import CountItem, sort_count_items
from .normalize import is_valid_key, normalize_tag, tag_sort_key
from .source_list import SourceList

WalkFunc = Callable[[str, int], bool]


class TagMap:
    """正規化済みタグをキーに `SourceList` を保持するマップ.

    不変条件:
        - 全ての `SourceList` は昇順・重複なし
        - 空の `SourceList` を持つキーは存在しない
        - キーは空でなく、記号（# / @）で始まる
    """

    def __init__(self) -> None:
        self._map: dict[str, SourceList] = {}

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, tag: object) -> bool:
        return tag in self._map

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TagMap):
            return NotImplemented
        return self.equals(other)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"TagMap(tags={len(self._map)}, total={self.total()})"

    # ------------------------------------------------------------------
    # 追加・削除

    def insert(self, sigil: str, name: str, id_: int) -> bool:
        """`name` を正規化して `id_` を追加する.

        Returns:
            新しい関連付けを作った場合 True（空タグ・重複は False）
        """
        tag = normalize_tag(name, sigil)
        if not tag:
            return False
        return self.insert_key(tag, id_)

    def insert_key(self, tag: str, id_: int) -> bool:
        """正規化済みキーに `id_` を追加する（ロード時に使用）.

        Raises:
            ValueError: キーが記号で始まらない場合
        """
        if not is_valid_key(tag):
            raise ValueError(f"Invalid tag key: {tag!r}")

        sl = self._map.get(tag)
        if sl is None:
            sl = SourceList()
            if not sl.insert(id_):
                return False
            self._map[tag] = sl
            return True
        return sl.insert(id_)

    def remove(self, sigil: str, name: str, id_: int) -> bool:
        """タグ `name` から `id_` を削除する（空になったタグは削除）."""
        tag = normalize_tag(name, sigil)
        if not tag:
            return False

        sl = self._map.get(tag)
        if sl is None or not sl.remove(id_):
            return False
        if not sl:
            del self._map[tag]
        return True

    def remove_id(self, id_: int) -> bool:
        """全タグから `id_` を削除する.

        Returns:
            いずれかのタグが変化した場合 True
        """
        changed = False
        for tag in list(self._map):
            sl = self._map[tag]
            if sl.remove(id_):
                changed = True
                if not sl:
                    del self._map[tag]
        return changed

    def rename_id(self, old_id: int, new_id: int) -> bool:
        """全タグで `old_id` を `new_id` に置き換える.

        `old_id` を含まないタグは変化しない（`new_id` を追加しない）。
        """
        if old_id == new_id:
            return False

        changed = False
        for sl in self._map.values():
            if sl.rename(old_id, new_id):
                changed = True
        return changed

    def walk(self, func: WalkFunc) -> bool:
        """全ての (tag, id) について `func` を呼び出す.

        `func` が偽を返した関連付けは削除される。

        Returns:
            削除が発生した場合 True
        """
        changed = False
        for tag in self.keys():
            sl = self._map[tag]
            for id_ in sl.to_list():
                if func(tag, id_):
                    continue
                sl.remove(id_)
                changed = True
            if not sl:
                del self._map[tag]
                logger.debug(f"Walk removed last ID of {tag}")
        return changed

    def clear(self) -> None:
        for sl in self._map.values():
            sl.clear()
        self._map.clear()

    # ------------------------------------------------------------------
    # 参照

    def ids_for(self, sigil: str, name: str) -> list[int]:
        """タグに紐付く ID 一覧（昇順）."""
        tag = normalize_tag(name, sigil)
        sl = self._map.get(tag) if tag else None
        if sl is None:
            return []
        return sl.to_list()

    def id_count(self, sigil: str, name: str) -> int:
        """タグに紐付く ID 件数（未登録・空タグは -1）."""
        tag = normalize_tag(name, sigil)
        sl = self._map.get(tag) if tag else None
        if sl is None:
            return -1
        return len(sl)

    def tags_for(self, id_: int) -> list[str]:
        """`id_` を含むタグ一覧（タグ文字列全体で昇順）."""
        return sorted(tag for tag, sl in self._map.items() if sl.find_index(id_) >= 0)

    def count(self, sigil: str) -> int:
        """記号 `sigil` で始まるタグの数."""
        return sum(1 for tag in self._map if tag[0] == sigil)

    def total(self) -> int:
        """全タグの ID 件数の合計（関連付けの総数）."""
        return sum(len(sl) for sl in self._map.values())

    def counted_list(self) -> list[CountItem]:
        return sort_count_items(CountItem(tag, len(sl)) for tag, sl in self._map.items())

    def keys(self) -> list[str]:
        """正規順（本体昇順）のキー一覧."""
        return sorted(self._map, key=tag_sort_key)

    def items(self) -> Iterator[tuple[str, list[int]]]:
        """正規順で (tag, ids) を列挙する."""
        for tag in self.keys():
            yield tag, self._map[tag].to_list()

    def equals(self, other: TagMap) -> bool:
        if len(self._map) != len(other._map):
            return False
        for tag, sl in self._map.items():
            osl = other._map.get(tag)
            if osl is None or sl != osl:
                return False
        return True

    def copy(self) -> TagMap:
        """独立したスナップショットを作る（バックグラウンド書き込み用）."""
        result = TagMap()
        result._map = {tag: sl.copy() for tag, sl in self._map.items()}
        return result

    # ------------------------------------------------------------------
    # 正規表現（テキスト形式・チェックサム共通）

    def to_string(self) -> str:
        """`[tag]` 見出し行と ID 行からなる正規テキスト表現."""
        return "".join(f"[{tag}]\n{self._map[tag].to_string()}" for tag in self.keys())

    def checksum(self) -> int:
        """正規テキスト表現の CRC-32（内部の列挙順に依存しない）."""
        return zlib.crc32(self.to_string().encode("utf-8")) & 0xFFFFFFFF
