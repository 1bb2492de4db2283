"""Unit tests for the text index codec."""

from pathlib import Path

import pytest

from hashtag_index.core.exceptions import IndexDecodeError, IndexStorageError, StorageOperation
from hashtag_index.core.normalize import MARK_HASH, MARK_MENTION
from hashtag_index.core.tag_map import TagMap
from hashtag_index.storage.text_codec import TextCodec


def _sample_map() -> TagMap:
    tag_map = TagMap()
    tag_map.insert(MARK_HASH, "hash1", 345)
    tag_map.insert(MARK_HASH, "hash1", 12)
    tag_map.insert(MARK_MENTION, "mention", 12)
    return tag_map


class TestTextCodecEncode:
    def test_encode_canonical(self) -> None:
        assert TextCodec().encode(_sample_map()) == b"[#hash1]\n12\n345\n[@mention]\n12\n"

    def test_encode_empty(self) -> None:
        assert TextCodec().encode(TagMap()) == b""


class TestTextCodecDecode:
    """TextCodec.decodeのテスト."""

    def test_decode_tolerates_blank_lines_and_spaces(self) -> None:
        data = "\n[ #Hash1 ]\n  12 \n\n345\n[@mention]\n12\n\n".encode()
        tag_map = TextCodec().decode(data, Path("x.txt"))
        assert tag_map == _sample_map()

    def test_decode_unsorted_ids(self) -> None:
        tag_map = TextCodec().decode(b"[#a]\n3\n1\n2\n1\n", Path("x.txt"))
        assert tag_map.ids_for(MARK_HASH, "a") == [1, 2, 3]

    def test_decode_header_without_ids(self) -> None:
        """ID 行の無い見出しはタグとして残らないこと."""
        tag_map = TextCodec().decode(b"[#empty]\n[#a]\n1\n", Path("x.txt"))
        assert tag_map.keys() == ["#a"]

    def test_id_before_header(self) -> None:
        with pytest.raises(IndexDecodeError, match="before any"):
            TextCodec().decode(b"12\n[#a]\n1\n", Path("x.txt"))

    def test_invalid_id(self) -> None:
        with pytest.raises(IndexDecodeError, match="line 2: invalid ID"):
            TextCodec().decode(b"[#a]\nabc\n", Path("x.txt"))

    def test_negative_id(self) -> None:
        with pytest.raises(IndexDecodeError, match="invalid ID"):
            TextCodec().decode(b"[#a]\n-5\n", Path("x.txt"))

    def test_empty_header(self) -> None:
        with pytest.raises(IndexDecodeError, match="empty tag header"):
            TextCodec().decode(b"[#]\n1\n", Path("x.txt"))

    def test_not_utf8(self) -> None:
        with pytest.raises(IndexDecodeError, match="not UTF-8") as exc_info:
            TextCodec().decode(b"[#a]\n\xff\xfe\n", Path("x.txt"))
        assert exc_info.value.operation is StorageOperation.DECODE
        assert exc_info.value.path == Path("x.txt")


class TestTextCodecFileIO:
    """ファイル入出力（BaseCodec.load/store）のテスト."""

    def test_store_and_load(self, tmp_path: Path) -> None:
        path = tmp_path / "hashtags.db"
        codec = TextCodec()
        original = _sample_map()

        written = codec.store(original, path)
        assert written == len(path.read_bytes())

        loaded = codec.load(path)
        assert loaded == original
        assert loaded.checksum() == original.checksum()

    def test_store_overwrites(self, tmp_path: Path) -> None:
        path = tmp_path / "hashtags.db"
        path.write_text("old content that is longer than the new one\n", encoding="utf-8")
        tag_map = TagMap()
        tag_map.insert_key("#a", 1)
        TextCodec().store(tag_map, path)
        assert path.read_text(encoding="utf-8") == "[#a]\n1\n"

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """存在しないファイルは空のマップとして読み込まれること."""
        tag_map = TextCodec().load(tmp_path / "missing.db")
        assert len(tag_map) == 0

    def test_load_directory(self, tmp_path: Path) -> None:
        with pytest.raises(IndexStorageError) as exc_info:
            TextCodec().load(tmp_path)
        assert exc_info.value.operation is StorageOperation.OPEN

    def test_store_into_missing_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nope" / "hashtags.db"
        with pytest.raises(IndexStorageError, match="Failed to open index file") as exc_info:
            TextCodec().store(TagMap(), path)
        assert exc_info.value.path == path
