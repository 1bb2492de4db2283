"""タグごとの ID 件数（Counted List）."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import polars as pl

from .normalize import tag_body


@dataclass(frozen=True, slots=True)
class CountItem:
    tag: str
    count: int

    def __str__(self) -> str:
        return f"{self.tag}: {self.count}"


def sort_count_items(items: Iterable[CountItem]) -> list[CountItem]:
    """本体（記号を除く）昇順、同一本体なら件数昇順、さらにタグ全体で並べる."""
    return sorted(items, key=lambda item: (tag_body(item.tag), item.count, item.tag))


def count_items_to_frame(items: Iterable[CountItem]) -> pl.DataFrame:
    """Counted List を DataFrame（tag, count）に変換する.

    Returns:
        列 `tag`（String）, `count`（UInt32）の DataFrame。順序は入力のまま
    """
    rows = list(items)
    return pl.DataFrame(
        {
            "tag": [item.tag for item in rows],
            "count": [item.count for item in rows],
        },
        schema={"tag": pl.String, "count": pl.UInt32},
    )
