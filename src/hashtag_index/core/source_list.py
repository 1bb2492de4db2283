"""ID リスト（Source List）.

1つのタグに紐付くドキュメント ID を、昇順・重複なしの list で保持します。
探索は `bisect` による二分探索、挿入/削除は list のシフト（O(n)）です。
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, Iterator

MAX_ID = (1 << 64) - 1


def check_id(value: object) -> int:
    """ID が符号なし64bit整数であることを検証する.

    Raises:
        TypeError: int 以外（bool を含む）が渡された場合
        ValueError: 範囲外の場合
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"ID must be an int, got {type(value).__name__}")
    if value < 0 or value > MAX_ID:
        raise ValueError(f"ID out of range (0..2**64-1): {value}")
    return value


class SourceList:
    """昇順・重複なしの ID リスト."""

    __slots__ = ("_ids",)

    def __init__(self, ids: Iterable[int] = ()) -> None:
        self._ids: list[int] = sorted({check_id(i) for i in ids})

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, int):
            return False
        return self.find_index(item) >= 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SourceList):
            return NotImplemented
        return self._ids == other._ids

    def __repr__(self) -> str:
        return f"SourceList({self._ids!r})"

    def find_index(self, id_: int) -> int:
        """`id_` の位置を返す（見つからなければ -1）."""
        idx = bisect_left(self._ids, id_)
        if idx < len(self._ids) and self._ids[idx] == id_:
            return idx
        return -1

    def insert(self, id_: int) -> bool:
        """`id_` を順序を保って追加する.

        Returns:
            追加した場合 True（既に存在すれば False）
        """
        check_id(id_)
        idx = bisect_left(self._ids, id_)
        if idx < len(self._ids) and self._ids[idx] == id_:
            return False
        self._ids.insert(idx, id_)
        return True

    def remove(self, id_: int) -> bool:
        """`id_` を削除する.

        Returns:
            削除した場合 True（存在しなければ False）
        """
        idx = self.find_index(id_)
        if idx < 0:
            return False
        del self._ids[idx]
        return True

    def rename(self, old_id: int, new_id: int) -> bool:
        """`old_id` を `new_id` に置き換える.

        `old_id` が無い場合は何もしない（`new_id` も追加しない）。
        `new_id` が既に存在する場合は `old_id` を削除するだけになる。

        Returns:
            リストが変化した場合 True
        """
        check_id(new_id)
        if old_id == new_id:
            return False

        old_idx = self.find_index(old_id)
        if old_idx < 0:
            return False

        new_idx = bisect_left(self._ids, new_id)
        if new_idx < len(self._ids) and self._ids[new_idx] == new_id:
            del self._ids[old_idx]
            return True

        # old を取り除いた後の挿入位置が old の位置と一致するならその場で置換できる
        if new_idx in (old_idx, old_idx + 1):
            self._ids[old_idx] = new_id
            return True

        del self._ids[old_idx]
        if new_idx > old_idx:
            new_idx -= 1
        self._ids.insert(new_idx, new_id)
        return True

    def sort(self) -> SourceList:
        """昇順に並べ直す（通常は常にソート済み）."""
        self._ids.sort()
        return self

    def clear(self) -> None:
        self._ids.clear()

    def copy(self) -> SourceList:
        result = SourceList()
        result._ids = list(self._ids)
        return result

    def to_list(self) -> list[int]:
        return list(self._ids)

    def to_string(self) -> str:
        """改行区切り（各行末に改行）の10進表記."""
        return "".join(f"{id_}\n" for id_ in self.sort())
