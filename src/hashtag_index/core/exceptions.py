"""Hashtag index exceptions.

永続化（load/store）の失敗を表す例外クラスを定義します。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class StorageOperation(str, Enum):
    """失敗した操作の種類."""

    OPEN = "open"
    READ = "read"
    WRITE = "write"
    DECODE = "decode"


class IndexStorageError(Exception):
    """インデックスファイルの読み書きに失敗した場合の例外.

    Attributes:
        path: 対象ファイルのパス
        operation: 失敗した操作（open/read/write/decode）
        reason: 失敗理由
    """

    def __init__(self, path: str | Path, operation: StorageOperation, reason: str) -> None:
        """例外初期化.

        Args:
            path: 対象ファイルのパス
            operation: 失敗した操作
            reason: 失敗理由
        """
        self.path = Path(path)
        self.operation = operation
        self.reason = reason
        super().__init__(f"Failed to {operation.value} index file {self.path}: {reason}")


class IndexDecodeError(IndexStorageError):
    """ファイル内容が壊れている/形式が違う場合の例外."""

    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(path, StorageOperation.DECODE, reason)
