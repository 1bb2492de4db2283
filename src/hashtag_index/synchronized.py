"""読み書きロック付きのインデックス.

`HashList` をラップし、参照は共有ロック、変更は排他ロックで保護します。
自動保存のファイル書き込みはロック外（バックグラウンドスレッド）で行われます。

注意:
    `walk()` のコールバックは排他ロック中に呼ばれるため、同じインデックスの
    メソッドを呼び出すとデッドロックします。
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import polars as pl

from hashtag_index.config import StorageFormat
from hashtag_index.core.counted import CountItem
from hashtag_index.core.tag_map import WalkFunc
from hashtag_index.hash_list import HashList


class ReadWriteLock:
    """書き込み優先の読み書きロック（再入不可）."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class SynchronizedHashList:
    """`HashList` のスレッドセーフなラッパー.

    チェックサムと Counted List はキャッシュを更新するため排他ロックで扱う。
    """

    def __init__(self, inner: HashList) -> None:
        self._inner = inner
        self._lock = ReadWriteLock()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._inner)

    def __str__(self) -> str:
        with self._lock.read():
            return str(self._inner)

    def __repr__(self) -> str:
        return f"SynchronizedHashList({self._inner!r})"

    def __enter__(self) -> SynchronizedHashList:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def inner(self) -> HashList:
        return self._inner

    @property
    def filename(self) -> Path | None:
        with self._lock.read():
            return self._inner.filename

    @property
    def storage_format(self) -> StorageFormat:
        return self._inner.storage_format

    def set_filename(self, filename: Path | str) -> bool:
        with self._lock.write():
            return self._inner.set_filename(filename)

    # 変更系（排他ロック）

    def insert_tag(self, tag: str, id_: int) -> bool:
        with self._lock.write():
            return self._inner.insert_tag(tag, id_)

    def insert_mention(self, mention: str, id_: int) -> bool:
        with self._lock.write():
            return self._inner.insert_mention(mention, id_)

    def remove_tag(self, tag: str, id_: int) -> bool:
        with self._lock.write():
            return self._inner.remove_tag(tag, id_)

    def remove_mention(self, mention: str, id_: int) -> bool:
        with self._lock.write():
            return self._inner.remove_mention(mention, id_)

    def parse_text(self, id_: int, text: str) -> bool:
        with self._lock.write():
            return self._inner.parse_text(id_, text)

    def update_text(self, id_: int, text: str) -> bool:
        with self._lock.write():
            return self._inner.update_text(id_, text)

    def remove_id(self, id_: int) -> bool:
        with self._lock.write():
            return self._inner.remove_id(id_)

    def rename_id(self, old_id: int, new_id: int) -> bool:
        with self._lock.write():
            return self._inner.rename_id(old_id, new_id)

    def walk(self, func: WalkFunc) -> bool:
        with self._lock.write():
            return self._inner.walk(func)

    def clear(self) -> None:
        with self._lock.write():
            self._inner.clear()

    def checksum(self) -> int:
        with self._lock.write():
            return self._inner.checksum()

    def counted_list(self) -> list[CountItem]:
        with self._lock.write():
            return self._inner.counted_list()

    def counted_frame(self) -> pl.DataFrame:
        with self._lock.write():
            return self._inner.counted_frame()

    def load(self) -> int:
        with self._lock.write():
            return self._inner.load()

    # 参照系（共有ロック）

    def tags_for_id(self, id_: int) -> list[str]:
        with self._lock.read():
            return self._inner.tags_for_id(id_)

    def ids_for_tag(self, tag: str) -> list[int]:
        with self._lock.read():
            return self._inner.ids_for_tag(tag)

    def ids_for_mention(self, mention: str) -> list[int]:
        with self._lock.read():
            return self._inner.ids_for_mention(mention)

    def hash_len(self, tag: str) -> int:
        with self._lock.read():
            return self._inner.hash_len(tag)

    def mention_len(self, mention: str) -> int:
        with self._lock.read():
            return self._inner.mention_len(mention)

    def tag_count(self, sigil: str) -> int:
        with self._lock.read():
            return self._inner.tag_count(sigil)

    def hash_count(self) -> int:
        with self._lock.read():
            return self._inner.hash_count()

    def mention_count(self) -> int:
        with self._lock.read():
            return self._inner.mention_count()

    def total_associations(self) -> int:
        with self._lock.read():
            return self._inner.total_associations()

    def store(self) -> int:
        with self._lock.read():
            return self._inner.store()

    def flush(self, timeout: float | None = None) -> bool:
        return self._inner.flush(timeout)

    def close(self, timeout: float | None = None) -> bool:
        with self._lock.write():
            return self._inner.close(timeout)
