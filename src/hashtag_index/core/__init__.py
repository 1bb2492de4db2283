"""タグインデックスのコア処理群.

- ID リスト（昇順・重複なし）
- タグ → ID リストのマップと全体スイープ
- テキストからのタグ抽出（除外ルール）
- 変更検出とサマリキャッシュ
"""

from .change_cache import ChangeTracker
from .counted import CountItem
from .exceptions import IndexDecodeError, IndexStorageError, StorageOperation
from .normalize import MARK_HASH, MARK_MENTION, normalize_tag
from .parser import extract_tags, parse_text
from .source_list import SourceList
from .tag_map import TagMap

__all__ = [
    "MARK_HASH",
    "MARK_MENTION",
    "normalize_tag",
    "SourceList",
    "TagMap",
    "CountItem",
    "ChangeTracker",
    "extract_tags",
    "parse_text",
    "IndexStorageError",
    "IndexDecodeError",
    "StorageOperation",
]
