"""インデックス永続化用コーデック（基底クラス）.

テキスト/バイナリの各形式を共通インターフェースで扱うための抽象基底クラスを定義します。
各形式は encode()/decode() のみを実装し、ファイル I/O とエラー分類は基底クラスが担います。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from loguru import logger

from hashtag_index.config import StorageFormat
from hashtag_index.core.exceptions import IndexStorageError, StorageOperation
from hashtag_index.core.tag_map import TagMap


class BaseCodec(ABC):
    """永続化コーデックの基底クラス."""

    storage_format: StorageFormat

    @abstractmethod
    def encode(self, tag_map: TagMap) -> bytes:
        """マップをバイト列に変換する."""
        ...

    @abstractmethod
    def decode(self, data: bytes, path: Path) -> TagMap:
        """バイト列からマップを復元する.

        Raises:
            IndexDecodeError: 内容が不正な場合（`path` はメッセージ用）
        """
        ...

    def load(self, path: Path | str) -> TagMap:
        """ファイルからマップを読み込む.

        ファイルが存在しない場合はエラーではなく空のマップを返す。

        Raises:
            IndexStorageError: open/read/decode に失敗した場合
        """
        path = Path(path)
        try:
            f = open(path, "rb")
        except FileNotFoundError:
            logger.debug(f"Index file not found, starting empty: {path}")
            return TagMap()
        except OSError as e:
            raise IndexStorageError(path, StorageOperation.OPEN, str(e)) from e

        with f:
            try:
                data = f.read()
            except OSError as e:
                raise IndexStorageError(path, StorageOperation.READ, str(e)) from e

        tag_map = self.decode(data, path)
        logger.info(f"Loaded {len(tag_map)} tags from {path} ({self.storage_format.value})")
        return tag_map

    def store(self, tag_map: TagMap, path: Path | str) -> int:
        """マップをファイルへ書き込む（既存内容は上書き）.

        Returns:
            書き込んだバイト数

        Raises:
            IndexStorageError: encode/open/write に失敗した場合
        """
        path = Path(path)
        try:
            data = self.encode(tag_map)
        except IndexStorageError:
            raise
        except Exception as e:
            raise IndexStorageError(path, StorageOperation.WRITE, f"encode failed: {e}") from e

        try:
            f = open(path, "wb")
        except OSError as e:
            raise IndexStorageError(path, StorageOperation.OPEN, str(e)) from e

        with f:
            try:
                written = f.write(data)
            except OSError as e:
                raise IndexStorageError(path, StorageOperation.WRITE, str(e)) from e

        logger.info(f"Stored {len(tag_map)} tags to {path} ({written} bytes, {self.storage_format.value})")
        return written
