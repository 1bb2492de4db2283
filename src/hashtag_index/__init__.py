"""#hashtag / @mention の逆引きインデックス.

テキストからタグ/メンションを抽出し、タグ → ドキュメント ID の対応を保持・永続化します。
"""

from .config import HashtagsConfig, StorageFormat, load_config
from .core import CountItem, IndexDecodeError, IndexStorageError, StorageOperation
from .hash_list import HashList, new_hash_list, open_hash_list
from .synchronized import SynchronizedHashList

__all__ = [
    "HashList",
    "SynchronizedHashList",
    "new_hash_list",
    "open_hash_list",
    "HashtagsConfig",
    "StorageFormat",
    "load_config",
    "CountItem",
    "IndexStorageError",
    "IndexDecodeError",
    "StorageOperation",
]
