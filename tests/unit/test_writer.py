"""Unit tests for BackgroundWriter."""

import threading
from pathlib import Path

import pytest

from hashtag_index.core.exceptions import IndexStorageError, StorageOperation
from hashtag_index.core.tag_map import TagMap
from hashtag_index.storage.text_codec import TextCodec
from hashtag_index.storage.writer import BackgroundWriter


class _GatedCodec(TextCodec):
    """最初の書き込みを gate が開くまで止めるコーデック."""

    def __init__(self) -> None:
        self.gate = threading.Event()
        self.started = threading.Event()
        self.stored: list[str] = []

    def store(self, tag_map: TagMap, path: Path | str) -> int:
        self.started.set()
        self.gate.wait(5)
        self.stored.append(tag_map.to_string())
        return 0


class _FailingCodec(TextCodec):
    def store(self, tag_map: TagMap, path: Path | str) -> int:
        raise IndexStorageError(path, StorageOperation.WRITE, "disk full")


def _map_with(tag: str, id_: int) -> TagMap:
    tag_map = TagMap()
    tag_map.insert_key(tag, id_)
    return tag_map


class TestBackgroundWriter:
    """BackgroundWriterのテスト."""

    def test_writes_file(self, tmp_path: Path) -> None:
        path = tmp_path / "hashtags.db"
        writer = BackgroundWriter(TextCodec())

        writer.submit(_map_with("#a", 1), path)
        assert writer.flush(5) is True
        writer.close(5)

        assert path.read_text(encoding="utf-8") == "[#a]\n1\n"
        assert writer.writes == 1

    def test_flush_without_submit(self) -> None:
        assert BackgroundWriter(TextCodec()).flush(1) is True

    def test_pending_requests_coalesce(self, tmp_path: Path) -> None:
        """書き込み中に届いた要求は最新のものだけが書かれること."""
        codec = _GatedCodec()
        writer = BackgroundWriter(codec)
        path = tmp_path / "hashtags.db"

        writer.submit(_map_with("#first", 1), path)
        assert codec.started.wait(5)
        writer.submit(_map_with("#second", 2), path)
        writer.submit(_map_with("#third", 3), path)
        codec.gate.set()

        assert writer.flush(5) is True
        writer.close(5)
        assert codec.stored == ["[#first]\n1\n", "[#third]\n3\n"]
        assert writer.coalesced == 1
        assert writer.writes == 2

    def test_flush_timeout(self, tmp_path: Path) -> None:
        codec = _GatedCodec()
        writer = BackgroundWriter(codec)

        writer.submit(_map_with("#a", 1), tmp_path / "hashtags.db")
        assert codec.started.wait(5)
        assert writer.flush(0.05) is False

        codec.gate.set()
        assert writer.close(5) is True

    def test_failure_reraised_by_flush(self, tmp_path: Path) -> None:
        """失敗は保持され、flush() で一度だけ再送出されること."""
        writer = BackgroundWriter(_FailingCodec())
        writer.submit(_map_with("#a", 1), tmp_path / "hashtags.db")

        with pytest.raises(IndexStorageError, match="disk full"):
            writer.flush(5)
        assert writer.last_error is None
        assert writer.flush(5) is True
        assert writer.writes == 0
        writer.close(5)

    def test_submit_after_close(self, tmp_path: Path) -> None:
        writer = BackgroundWriter(TextCodec())
        writer.close(1)
        with pytest.raises(RuntimeError, match="closed"):
            writer.submit(TagMap(), tmp_path / "hashtags.db")

    def test_close_writes_pending(self, tmp_path: Path) -> None:
        path = tmp_path / "hashtags.db"
        writer = BackgroundWriter(TextCodec())
        writer.submit(_map_with("#a", 1), path)
        assert writer.close(5) is True
        assert path.exists()
