"""インデックス永続化用のコーデック群."""

from hashtag_index.config import StorageFormat

from .base_codec import BaseCodec
from .parquet_codec import ParquetCodec
from .text_codec import TextCodec
from .writer import BackgroundWriter


def get_codec(storage_format: StorageFormat | str) -> BaseCodec:
    """保存形式に対応するコーデックを返す.

    Raises:
        ValueError: 未知の保存形式の場合
    """
    fmt = StorageFormat(storage_format)
    if fmt is StorageFormat.BINARY:
        return ParquetCodec()
    return TextCodec()


__all__ = [
    "BaseCodec",
    "TextCodec",
    "ParquetCodec",
    "BackgroundWriter",
    "get_codec",
]
