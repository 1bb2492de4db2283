"""テキスト形式コーデック.

人が読める形式（grep/diff 向き）。正規順で次のように出力します:

    [#hash1]
    12
    345
    [@mention]
    12

読み込み時は空行・前後空白を許容し、直近の `[tag]` 見出しを現在のタグとします。
"""

from __future__ import annotations

import re
from pathlib import Path

from hashtag_index.config import StorageFormat
from hashtag_index.core.exceptions import IndexDecodeError
from hashtag_index.core.tag_map import TagMap

from .base_codec import BaseCodec

HEAD_PATTERN = re.compile(r"^\[\s*([#@][^\]]*?)\s*\]$")


class TextCodec(BaseCodec):
    """`[tag]` 見出し + 10進 ID 行のテキスト形式."""

    storage_format = StorageFormat.TEXT

    def encode(self, tag_map: TagMap) -> bytes:
        return tag_map.to_string().encode("utf-8")

    def decode(self, data: bytes, path: Path) -> TagMap:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise IndexDecodeError(path, f"not UTF-8 text: {e}") from e

        tag_map = TagMap()
        tag = ""
        for lineno, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line:
                continue

            head = HEAD_PATTERN.match(line)
            if head:
                tag = head.group(1).strip().lower()
                if len(tag) < 2:
                    raise IndexDecodeError(path, f"line {lineno}: empty tag header")
                continue

            if not tag:
                raise IndexDecodeError(path, f"line {lineno}: ID before any [tag] header")
            try:
                id_ = int(line, 10)
                tag_map.insert_key(tag, id_)
            except (TypeError, ValueError) as e:
                raise IndexDecodeError(path, f"line {lineno}: invalid ID {line!r}") from e

        return tag_map
