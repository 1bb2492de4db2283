"""#hashtag / @mention インデックス（公開ファサード）.

ホストアプリケーションから使う入口です。

- タグ/メンション単位の追加・削除、テキスト解析による一括登録
- ID 単位の削除・リネーム
- 参照（ID 一覧、タグ一覧、件数サマリ、チェックサム）
- 明示的な load/store と、内容が変化したときの自動保存（バックグラウンド）

`HashList` 自体はロックを持ちません。複数スレッドから使う場合は
`new_hash_list(..., synchronized=True)` で `SynchronizedHashList` を使ってください。
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import polars as pl
from loguru import logger

from hashtag_index.config import HashtagsConfig, StorageFormat
from hashtag_index.core.change_cache import ChangeTracker
from hashtag_index.core.counted import CountItem, count_items_to_frame
from hashtag_index.core.normalize import MARK_HASH, MARK_MENTION
from hashtag_index.core.parser import parse_text
from hashtag_index.core.tag_map import TagMap, WalkFunc
from hashtag_index.storage import BackgroundWriter, get_codec

if TYPE_CHECKING:
    from hashtag_index.synchronized import SynchronizedHashList


class HashList:
    """タグ → ID の逆引きインデックス（ロックなし）."""

    def __init__(
        self,
        filename: Path | str | None = None,
        *,
        storage_format: StorageFormat | str = StorageFormat.TEXT,
        auto_persist: bool = True,
    ) -> None:
        """インデックスを初期化する（ファイルは読み込まない）.

        Args:
            filename: 保存先ファイル（None なら自動保存しない）
            storage_format: 保存形式（text / binary）
            auto_persist: 変更時にバックグラウンドで保存するか
        """
        self._fn: Path | None = None
        self._map = TagMap()
        self._tracker = ChangeTracker()
        self._codec = get_codec(storage_format)
        self._auto_persist = auto_persist
        self._writer: BackgroundWriter | None = None
        if filename is not None and not self.set_filename(filename):
            raise ValueError(f"Invalid index filename: {filename!r}")

    def __len__(self) -> int:
        return len(self._map)

    def __str__(self) -> str:
        return self._map.to_string()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(filename={self._fn!s}, tags={len(self._map)})"

    def __enter__(self) -> HashList:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # 設定

    @property
    def filename(self) -> Path | None:
        return self._fn

    @property
    def storage_format(self) -> StorageFormat:
        return self._codec.storage_format

    def set_filename(self, filename: Path | str) -> bool:
        """保存先ファイルを設定する.

        空文字列・空白のみ、または親ディレクトリが存在しない場合は設定しない。

        Returns:
            設定した場合 True
        """
        name = str(filename).strip()
        if not name:
            return False

        path = Path(name)
        if not path.parent.is_dir():
            logger.warning(f"Rejected index filename {path}: directory {path.parent} does not exist")
            return False

        self._fn = path
        return True

    # ------------------------------------------------------------------
    # 変更検出と自動保存

    def _apply(self, op: Callable[[], bool]) -> bool:
        """変更操作を実行し、内容が変わっていれば保存を予約する.

        `op` が例外で中断した場合も途中までの変更があり得るため、
        キャッシュを無効化し、必要なら保存を予約してから例外を送出する。
        """
        persist = self._auto_persist and self._fn is not None
        old_crc = self._tracker.checksum(self._map) if persist else 0

        changed: bool | None = None
        try:
            changed = op()
        finally:
            if changed is not False:
                self._tracker.mark_dirty()
                if persist and self._tracker.checksum(self._map) != old_crc:
                    self._schedule_store()
        return bool(changed)

    def _schedule_store(self) -> None:
        if self._writer is None:
            self._writer = BackgroundWriter(self._codec)
        self._writer.submit(self._map.copy(), self._fn)

    # ------------------------------------------------------------------
    # 追加・削除

    def insert_tag(self, tag: str, id_: int) -> bool:
        """`#tag` に `id_` を追加する（空タグ・重複は False）."""
        if not tag:
            return False
        return self._apply(lambda: self._map.insert(MARK_HASH, tag, id_))

    def insert_mention(self, mention: str, id_: int) -> bool:
        """`@mention` に `id_` を追加する（空・重複は False）."""
        if not mention:
            return False
        return self._apply(lambda: self._map.insert(MARK_MENTION, mention, id_))

    def remove_tag(self, tag: str, id_: int) -> bool:
        if not tag:
            return False
        return self._apply(lambda: self._map.remove(MARK_HASH, tag, id_))

    def remove_mention(self, mention: str, id_: int) -> bool:
        if not mention:
            return False
        return self._apply(lambda: self._map.remove(MARK_MENTION, mention, id_))

    def parse_text(self, id_: int, text: str) -> bool:
        """テキスト中のタグ/メンションを `id_` に関連付ける.

        Returns:
            新しい関連付けを作った場合 True（空テキストは False）
        """
        if not text:
            return False
        return self._apply(lambda: parse_text(self._map, id_, text))

    def update_text(self, id_: int, text: str) -> bool:
        """`id_` の関連付けをテキストの内容で置き換える.

        既存の関連付けを全て外してから再解析する。空テキストなら外すだけになる。

        Returns:
            `id_` に紐付くタグ集合が変化した場合 True
        """

        def op() -> bool:
            before = self._map.tags_for(id_)
            self._map.remove_id(id_)
            if text:
                parse_text(self._map, id_, text)
            return before != self._map.tags_for(id_)

        return self._apply(op)

    def remove_id(self, id_: int) -> bool:
        """全てのタグ/メンションから `id_` を削除する."""
        return self._apply(lambda: self._map.remove_id(id_))

    def rename_id(self, old_id: int, new_id: int) -> bool:
        """全てのタグ/メンションで `old_id` を `new_id` に置き換える.

        `old_id` がどこにも無い場合は何もしない。
        """
        if old_id == new_id:
            return False
        return self._apply(lambda: self._map.rename_id(old_id, new_id))

    def walk(self, func: WalkFunc) -> bool:
        """全ての (tag, id) に `func` を適用し、偽を返した関連付けを削除する."""
        return self._apply(lambda: self._map.walk(func))

    def clear(self) -> None:
        """全てのタグ/メンションを削除する（保存はしない）."""
        self._map.clear()
        self._tracker.mark_dirty()

    # ------------------------------------------------------------------
    # 参照

    def tags_for_id(self, id_: int) -> list[str]:
        return self._map.tags_for(id_)

    def ids_for_tag(self, tag: str) -> list[int]:
        if not tag:
            return []
        return self._map.ids_for(MARK_HASH, tag)

    def ids_for_mention(self, mention: str) -> list[int]:
        if not mention:
            return []
        return self._map.ids_for(MARK_MENTION, mention)

    def hash_len(self, tag: str) -> int:
        """`#tag` の ID 件数（未登録なら -1）."""
        return self._map.id_count(MARK_HASH, tag)

    def mention_len(self, mention: str) -> int:
        """`@mention` の ID 件数（未登録なら -1）."""
        return self._map.id_count(MARK_MENTION, mention)

    def tag_count(self, sigil: str) -> int:
        return self._map.count(sigil)

    def hash_count(self) -> int:
        return self._map.count(MARK_HASH)

    def mention_count(self) -> int:
        return self._map.count(MARK_MENTION)

    def total_associations(self) -> int:
        """(tag, id) の関連付けの総数."""
        return self._map.total()

    def checksum(self) -> int:
        return self._tracker.checksum(self._map)

    def counted_list(self) -> list[CountItem]:
        """タグごとの ID 件数（本体昇順）。変更が無ければキャッシュを返す."""
        return self._tracker.counted_list(self._map)

    def counted_frame(self) -> pl.DataFrame:
        """`counted_list()` を DataFrame（tag, count）で返す."""
        return count_items_to_frame(self.counted_list())

    # ------------------------------------------------------------------
    # 永続化

    def _require_filename(self) -> Path:
        if self._fn is None:
            raise ValueError("No index filename configured; call set_filename() first")
        return self._fn

    def load(self) -> int:
        """設定済みファイルから読み込み、現在の内容を置き換える.

        予約済みの自動保存を先に書き終えてから読み込む（古いスナップショットが
        読み込み後にファイルを上書きしないように）。
        ファイルが無い場合はエラーにせず、現在の内容をそのまま残す。
        読み込みに失敗した場合も現在の内容を変更しない。

        Returns:
            読み込み後のタグ数

        Raises:
            ValueError: ファイル名が未設定の場合
            IndexStorageError: open/read/decode に失敗した場合、または
                予約済みの自動保存が失敗していた場合
        """
        path = self._require_filename()
        self.flush()
        if not path.exists():
            logger.debug(f"Index file {path} does not exist yet; keeping current index")
            return len(self._map)

        tag_map = self._codec.load(path)
        self._map = tag_map
        self._tracker.reset()
        return len(tag_map)

    def store(self) -> int:
        """設定済みファイルへ同期的に書き込む.

        Returns:
            書き込んだバイト数

        Raises:
            ValueError: ファイル名が未設定の場合
            IndexStorageError: open/write に失敗した場合
        """
        path = self._require_filename()
        return self._codec.store(self._map, path)

    def flush(self, timeout: float | None = None) -> bool:
        """予約済みの自動保存が終わるまで待つ（失敗していればその例外を送出）."""
        if self._writer is None:
            return True
        return self._writer.flush(timeout)

    def close(self, timeout: float | None = None) -> bool:
        """自動保存を書き出してワーカーを停止する."""
        if self._writer is None:
            return True
        writer, self._writer = self._writer, None
        return writer.close(timeout)


def new_hash_list(
    filename: Path | str | None = None,
    *,
    storage_format: StorageFormat | str = StorageFormat.TEXT,
    synchronized: bool = False,
    auto_persist: bool = True,
    load: bool = True,
) -> HashList | SynchronizedHashList:
    """インデックスを作成し、ファイルがあれば読み込む.

    Args:
        filename: 保存先ファイル（無くてもエラーにしない）
        storage_format: 保存形式（text / binary）
        synchronized: True なら読み書きロック付きの `SynchronizedHashList` を返す
        auto_persist: 変更時にバックグラウンドで保存するか
        load: 作成直後に `load()` するか

    Raises:
        ValueError: ファイル名が不正（親ディレクトリが無い等）な場合
        IndexStorageError: 読み込みに失敗した場合
    """
    hash_list = HashList(filename, storage_format=storage_format, auto_persist=auto_persist)
    if load and hash_list.filename is not None:
        hash_list.load()

    if synchronized:
        from hashtag_index.synchronized import SynchronizedHashList  # 循環 import を避ける

        return SynchronizedHashList(hash_list)
    return hash_list


def open_hash_list(config: HashtagsConfig) -> HashList | SynchronizedHashList:
    """設定オブジェクトからインデックスを作成する."""
    return new_hash_list(
        config.filename,
        storage_format=config.storage_format,
        synchronized=config.synchronized,
        auto_persist=config.auto_persist,
    )
