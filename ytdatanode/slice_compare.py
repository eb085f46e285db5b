"""Comparison of the shards a node holds against the super node's records."""

from __future__ import annotations

import logging
import os
import sqlite3
import time
from collections.abc import Iterable, Iterator

from .base58 import b58encode
from .paths import get_ytfs_path, path_exists

log = logging.getLogger(__name__)

SLICE_COMPARE_DIR = "/gc"
FILE_NEXT_IDX = "/gc/next_index_file"
COMPARED_IDX_FILE = "/gc/compared_index_file"
FILE_DB_TMP = "/gc/temp_index_kvdb"
FILE_DB_SN = "/gc/sn_index_kvdb"
FILE_DB_TODEL = "/gc/entry_to_del_kvdb"
ENTRY_COUNT_DOWNLOAD = 1000

INITIAL_INDEX = "000000000000000000000000"
MIN_COMPARE_TIMES = 3
STALE_AFTER_SECONDS = 1200


class SliceMissingError(LookupError):
    """The super node lists a shard that this node does not hold."""

    def __init__(self, key: bytes) -> None:
        super().__init__(f"key={b58encode(key)} saved in supernode, but not found in datanode")
        self.key = key


class KeyValueStore:
    """A small persistent byte-keyed store; iteration is in key order."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = os.fspath(path)
        self._conn = sqlite3.connect(self.path)
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS kv (key BLOB PRIMARY KEY, value BLOB NOT NULL)"
        )
        self._conn.commit()

    def put(self, key: bytes, value: bytes) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (bytes(key), bytes(value))
        )
        self._conn.commit()

    def get(self, key: bytes) -> bytes:
        """Return the value stored under key; raise KeyError if there is none."""
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (bytes(key),)).fetchone()
        if row is None:
            raise KeyError(key)
        return bytes(row[0])

    def has(self, key: bytes) -> bool:
        row = self._conn.execute("SELECT 1 FROM kv WHERE key = ?", (bytes(key),)).fetchone()
        return row is not None

    def delete(self, key: bytes) -> None:
        """Remove key; removing a missing key is not an error."""
        self._conn.execute("DELETE FROM kv WHERE key = ?", (bytes(key),))
        self._conn.commit()

    def items(self) -> Iterator[tuple[bytes, bytes]]:
        """Yield (key, value) pairs in key order, from a snapshot of the store."""
        rows = self._conn.execute("SELECT key, value FROM kv ORDER BY key").fetchall()
        for key, value in rows:
            yield bytes(key), bytes(value)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "KeyValueStore":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _parse_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


class SliceComparer:
    """Tracks node-side and super-node-side shard records under the gc directory."""

    def __init__(self, base_dir: str | os.PathLike | None = None) -> None:
        self.base_dir = os.fspath(base_dir) if base_dir is not None else get_ytfs_path()
        self.slice_compare_dir = SLICE_COMPARE_DIR
        self.tmp_db = FILE_DB_TMP
        self.sn_db = FILE_DB_SN
        self.to_del_db = FILE_DB_TODEL
        self.compared_idx_file = COMPARED_IDX_FILE
        self.next_idx_file = FILE_NEXT_IDX
        self.entry_count_download = ENTRY_COUNT_DOWNLOAD
        self.compare_times = 0
        self.init_dir(self.slice_compare_dir)
        self.for_init(self.next_idx_file, INITIAL_INDEX)
        self.for_init(self.compared_idx_file, INITIAL_INDEX)

    def _path(self, name: str) -> str:
        return self.base_dir + name

    def init_dir(self, name: str) -> None:
        """Create a directory under the base directory if it is missing."""
        os.makedirs(self._path(name), exist_ok=True)

    def for_init(self, name: str, value: str) -> None:
        """Write value to a file under the base directory unless it exists."""
        path = self._path(name)
        if not path_exists(path):
            with open(path, "w", encoding="utf-8") as stream:
                stream.write(value)

    def open_db(self, name: str) -> KeyValueStore:
        return KeyValueStore(self._path(name))

    def save_sn_record_to_db(self, hash_batch: Iterable[bytes], db_name: str) -> None:
        """Store each hash with its position in the batch as value."""
        with self.open_db(db_name) as db:
            for position, key in enumerate(hash_batch):
                db.put(key, str(position).encode())

    def get_all_records(self, db_name: str) -> list[tuple[str, str]]:
        """Return every record as (base58 key, value text), in key order."""
        with self.open_db(db_name) as db:
            records = [
                (b58encode(key), value.decode("utf-8", errors="replace"))
                for key, value in db.items()
            ]
        for key, value in records:
            log.debug("key[%s]=[%s]", key, value)
        return records

    def get_value_from_file(self, name: str) -> str:
        """Return the text of a file under the base directory."""
        with open(self._path(name), encoding="utf-8") as stream:
            return stream.read()

    def save_value_to_file(self, value: str, name: str) -> None:
        with open(self._path(name), "w", encoding="utf-8") as stream:
            stream.write(value)

    def compare_entry_with_sn_tables(
        self,
        sn_hash_batch: Iterable[bytes],
        tmp_db: KeyValueStore,
        sn_db_name: str,
        next_idx_file: str,
        compared_file: str,
        next_id: str,
    ) -> None:
        """Match a batch of super-node hashes against the node's pending records.

        Matched records leave tmp_db. A hash the node does not hold raises
        SliceMissingError before the compared count is written.
        """
        with self.open_db(sn_db_name) as sn_db:
            self.save_value_to_file(next_id, next_idx_file)
            try:
                total = _parse_int(self.get_value_from_file(self.compared_idx_file))
            except OSError:
                total = 0
            now = str(int(time.time())).encode()
            for key in sn_hash_batch:
                sn_db.put(key, now)
                total += 1
                if not tmp_db.has(key):
                    log.warning(
                        "[slicecompare] key=%s saved in supernode, but not found in datanode",
                        b58encode(key),
                    )
                    raise SliceMissingError(bytes(key))
                tmp_db.delete(key)
        self.save_value_to_file(str(total), compared_file)
        self.compare_times += 1

    def save_entry_in_db_to_del(
        self, tmp_db: KeyValueStore, to_del_db_name: str, now: float | None = None
    ) -> list[bytes]:
        """Move records unmatched for 1200 seconds to the deletion store.

        Does nothing until at least three comparisons have run. Returns the
        keys moved.
        """
        if self.compare_times < MIN_COMPARE_TIMES:
            return []
        now_seconds = int(time.time() if now is None else now)
        moved: list[bytes] = []
        with self.open_db(to_del_db_name) as del_db:
            for key, value in tmp_db.items():
                saved = _parse_int(value.decode("utf-8", errors="replace"))
                if now_seconds - saved < STALE_AFTER_SECONDS:
                    continue
                del_db.put(key, value)
                log.warning(
                    "[slicecompare] key=%s saved in datanode, but not found in supernode",
                    b58encode(key),
                )
                tmp_db.delete(key)
                moved.append(key)
        return moved

    def clean_db(self, name: str) -> None:
        """Delete every record of a store."""
        with self.open_db(name) as db:
            for key, _ in db.items():
                db.delete(key)