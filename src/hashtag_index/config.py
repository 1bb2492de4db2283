"""インデックスの設定（保存形式・ロック・自動保存）.

YAML から読み込む場合の形式:

    hashtags:
      filename: data/hashtags.db
      storage_format: binary   # text | binary
      synchronized: true
      auto_persist: true

`hashtags:` キーは省略可（トップレベルに直接書いてもよい）。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import yaml
from loguru import logger


class StorageFormat(str, Enum):
    """永続化形式."""

    TEXT = "text"  # `[tag]` 見出し + ID 行（grep/diff 向き）
    BINARY = "binary"  # Parquet（高速・小サイズ）


@dataclass(frozen=True)
class HashtagsConfig:
    filename: Path | None = None
    storage_format: StorageFormat = StorageFormat.TEXT
    synchronized: bool = False
    auto_persist: bool = True


_KNOWN_KEYS = {"filename", "storage_format", "synchronized", "auto_persist"}


def _parse_bool(key: str, value: object) -> bool:
    if isinstance(value, bool):
        return value
    msg = f"Invalid value for '{key}': expected bool, got {type(value).__name__}"
    raise ValueError(msg)


def config_from_dict(data: dict) -> HashtagsConfig:
    """辞書から設定を作る.

    Args:
        data: 設定辞書（`hashtags:` でネストしていてもよい）

    Returns:
        設定オブジェクト

    Raises:
        ValueError: 未知のキー、不正な保存形式、型不一致の場合
    """
    if "hashtags" in data and isinstance(data["hashtags"], dict):
        data = data["hashtags"]

    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        msg = f"Unknown config keys: {sorted(unknown)}. Valid keys: {sorted(_KNOWN_KEYS)}"
        raise ValueError(msg)

    filename = data.get("filename")
    if filename is not None and not str(filename).strip():
        filename = None

    raw_format = data.get("storage_format", StorageFormat.TEXT.value)
    try:
        storage_format = StorageFormat(str(raw_format).strip().lower())
    except ValueError as e:
        valid = [f.value for f in StorageFormat]
        msg = f"Invalid storage_format '{raw_format}'. Valid formats: {valid}"
        raise ValueError(msg) from e

    return HashtagsConfig(
        filename=Path(filename) if filename is not None else None,
        storage_format=storage_format,
        synchronized=_parse_bool("synchronized", data.get("synchronized", False)),
        auto_persist=_parse_bool("auto_persist", data.get("auto_persist", True)),
    )


def load_config(config_path: Path | str) -> HashtagsConfig:
    """YAML ファイルから設定を読み込む.

    Args:
        config_path: 設定ファイルのパス

    Returns:
        設定オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない場合
        ValueError: YAML が不正、またはトップレベルがマッピングでない場合
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in config file: {config_path}"
        raise ValueError(msg) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"Config file must contain a mapping, got {type(data).__name__}"
        raise ValueError(msg)

    config = config_from_dict(data)
    logger.info(f"Loaded hashtag index config from {config_path} (format={config.storage_format.value})")
    return config
