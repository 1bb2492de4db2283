"""Unit tests for the thread-safe HashList wrapper."""

import threading
import time
from pathlib import Path

from hashtag_index import HashList, SynchronizedHashList
from hashtag_index.synchronized import ReadWriteLock


class TestReadWriteLock:
    """ReadWriteLockのテスト."""

    def test_readers_share(self) -> None:
        lock = ReadWriteLock()
        inside = threading.Barrier(2, timeout=5)

        def reader() -> None:
            with lock.read():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)
        assert not any(t.is_alive() for t in threads)

    def test_writer_excludes_readers(self) -> None:
        lock = ReadWriteLock()
        events: list[str] = []
        lock.acquire_write()

        def reader() -> None:
            with lock.read():
                events.append("read")

        t = threading.Thread(target=reader)
        t.start()
        time.sleep(0.05)
        events.append("write-done")
        lock.release_write()
        t.join(5)

        assert events == ["write-done", "read"]


class TestSynchronizedHashList:
    """SynchronizedHashListのテスト."""

    def test_delegates(self, tmp_path: Path) -> None:
        hl = SynchronizedHashList(HashList(tmp_path / "hashtags.db"))
        assert hl.insert_tag("foo", 1) is True
        assert hl.insert_mention("bar", 1) is True
        assert hl.tags_for_id(1) == ["#foo", "@bar"]
        assert hl.hash_len("foo") == 1
        assert hl.total_associations() == 2
        assert len(hl) == 2
        assert hl.checksum() == hl.inner.checksum()
        hl.close(5)
        assert (tmp_path / "hashtags.db").exists()

    def test_concurrent_inserts(self) -> None:
        """複数スレッドからの追加が全て反映されること."""
        hl = SynchronizedHashList(HashList())
        workers = 8
        per_worker = 200

        def insert_range(start: int) -> None:
            for id_ in range(start, start + per_worker):
                hl.insert_tag("shared", id_)
                hl.parse_text(id_, f"#t{id_ % 5} @user{id_ % 3}")

        threads = [threading.Thread(target=insert_range, args=(n * per_worker,)) for n in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(10)

        assert hl.hash_len("shared") == workers * per_worker
        assert hl.hash_count() == 6
        assert hl.mention_count() == 3
        assert hl.total_associations() == 3 * workers * per_worker

    def test_concurrent_readers_and_writers(self) -> None:
        hl = SynchronizedHashList(HashList())
        stop = threading.Event()
        errors: list[Exception] = []

        def read_loop() -> None:
            try:
                while not stop.is_set():
                    hl.counted_list()
                    hl.ids_for_tag("a")
            except Exception as e:
                errors.append(e)

        readers = [threading.Thread(target=read_loop) for _ in range(3)]
        for t in readers:
            t.start()
        for id_ in range(500):
            hl.insert_tag("a", id_)
            if id_ % 2:
                hl.remove_id(id_)
        stop.set()
        for t in readers:
            t.join(5)

        assert errors == []
        assert hl.hash_len("a") == 250
