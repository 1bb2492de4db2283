"""バックグラウンド書き込み（単一ライター）.

変更のたびに呼び出し元をブロックせずにファイルへ保存するためのワーカーです。

- 書き込みスレッドは1本（同時に実行中の書き込みは最大1つ）
- 書き込み中に届いた要求は合流し、最新のスナップショットだけを次に書く
- 失敗はログに出したうえで保持し、flush() で呼び出し元へ再送出する
"""

from __future__ import annotations

import threading
from pathlib import Path

from loguru import logger

from hashtag_index.core.tag_map import TagMap

from .base_codec import BaseCodec


class BackgroundWriter:
    """スナップショットを順番に保存する単一ライター."""

    def __init__(self, codec: BaseCodec) -> None:
        self.codec = codec
        self._cond = threading.Condition()
        self._pending: tuple[TagMap, Path] | None = None
        self._busy = False
        self._stopped = False
        self._thread: threading.Thread | None = None
        self._last_error: Exception | None = None
        self.writes = 0
        self.coalesced = 0

    @property
    def last_error(self) -> Exception | None:
        with self._cond:
            return self._last_error

    def submit(self, snapshot: TagMap, path: Path | str) -> None:
        """スナップショットの書き込みを予約する（未処理の予約は置き換える）.

        Raises:
            RuntimeError: close() 後に呼び出した場合
        """
        with self._cond:
            if self._stopped:
                raise RuntimeError("BackgroundWriter is closed")
            if self._pending is not None:
                self.coalesced += 1
            self._pending = (snapshot, Path(path))
            self._ensure_thread()
            self._cond.notify_all()

    def _ensure_thread(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._run,
            name="hashtag-index-writer",
            daemon=True,
        )
        self._thread.start()

    def _run(self) -> None:
        while True:
            with self._cond:
                while self._pending is None and not self._stopped:
                    self._cond.wait()
                if self._pending is None:
                    return
                snapshot, path = self._pending
                self._pending = None
                self._busy = True

            error: Exception | None = None
            try:
                self.codec.store(snapshot, path)
            except Exception as e:
                logger.error(f"Background write to {path} failed: {e}")
                error = e

            with self._cond:
                self._busy = False
                if error is None:
                    self.writes += 1
                else:
                    self._last_error = error
                self._cond.notify_all()

    def flush(self, timeout: float | None = None) -> bool:
        """予約済みの書き込みが終わるまで待つ.

        Args:
            timeout: 最大待ち時間（秒）。None なら無制限

        Returns:
            全て書き終えた場合 True、タイムアウトした場合 False

        Raises:
            Exception: 直近のバックグラウンド書き込みが失敗していた場合（その例外）
        """
        with self._cond:
            done = self._cond.wait_for(lambda: self._pending is None and not self._busy, timeout)
            error, self._last_error = self._last_error, None
        if error is not None:
            raise error
        return done

    def close(self, timeout: float | None = None) -> bool:
        """残りを書き出してワーカーを停止する."""
        try:
            return self.flush(timeout)
        finally:
            with self._cond:
                self._stopped = True
                self._cond.notify_all()
                thread = self._thread
            if thread is not None:
                thread.join(timeout)
