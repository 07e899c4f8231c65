"""Append-only, hash-chained transaction journal backed by SQLite.

Every transaction the local chain commits (deployments included) is
appended here. The journal is the audit trail of the chain and the input
to deterministic replay (see ``nftmarketplace.chain.replay``).

Design:
- Append-only: only `append()` writes; no update, no delete.
- Hash-chained: each entry includes SHA-256 of the previous entry.
- WAL journal mode for concurrent readers.
- entry_hash and tx_hash UNIQUE constraints for tamper detection.
- Wei amounts are stored as TEXT; they overflow SQLite's 64-bit integers.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from nftmarketplace.core.hasher import compute_entry_hash
from nftmarketplace.models.journal import JournalEntry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_JOURNAL = """
CREATE TABLE IF NOT EXISTS tx_journal (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_id            TEXT NOT NULL UNIQUE,
    tx_hash             TEXT NOT NULL UNIQUE,
    block_number        INTEGER NOT NULL,
    kind                TEXT NOT NULL,
    contract            TEXT NOT NULL,
    contract_address    TEXT NOT NULL,
    method              TEXT NOT NULL,
    caller              TEXT NOT NULL,
    value               TEXT NOT NULL DEFAULT '0',
    args_json           TEXT NOT NULL DEFAULT '[]',
    events_json         TEXT NOT NULL DEFAULT '[]',
    timestamp_utc       TEXT NOT NULL,
    previous_entry_hash TEXT NOT NULL DEFAULT '',
    entry_hash          TEXT NOT NULL UNIQUE
);
"""

_CREATE_IDX_CONTRACT = """
CREATE INDEX IF NOT EXISTS idx_contract_address ON tx_journal(contract_address, id);
"""


class JournalIntegrityError(RuntimeError):
    """Raised when the hash chain is broken."""


class TransactionJournal:
    """Append-only, hash-chained record of committed transactions.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_JOURNAL)
            conn.execute(_CREATE_IDX_CONTRACT)
            conn.commit()

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append(self, entry: JournalEntry) -> JournalEntry:
        """Append an entry, computing its hash chain link and seal.

        Returns the entry with `previous_entry_hash` and `entry_hash` set.
        """
        previous_hash = self._get_latest_hash()

        entry_dict = entry.model_dump(mode="json")
        entry_dict["previous_entry_hash"] = previous_hash
        entry_dict["entry_hash"] = ""

        sealed = entry.model_copy(
            update={
                "previous_entry_hash": previous_hash,
                "entry_hash": compute_entry_hash(entry_dict),
            }
        )
        self._insert(sealed)
        logger.debug(
            "Journaled %s.%s (tx %s, block %d).",
            sealed.contract,
            sealed.method,
            sealed.tx_hash[:18],
            sealed.block_number,
        )
        return sealed

    def _insert(self, entry: JournalEntry) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tx_journal
                    (entry_id, tx_hash, block_number, kind, contract,
                     contract_address, method, caller, value, args_json,
                     events_json, timestamp_utc, previous_entry_hash, entry_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.entry_id,
                    entry.tx_hash,
                    entry.block_number,
                    entry.kind,
                    entry.contract,
                    entry.contract_address,
                    entry.method,
                    entry.caller,
                    str(entry.value),
                    json.dumps(entry.args),
                    json.dumps(entry.events),
                    entry.timestamp_utc.isoformat(),
                    entry.previous_entry_hash,
                    entry.entry_hash,
                ),
            )
            conn.commit()

    def _get_latest_hash(self) -> str:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT entry_hash FROM tx_journal ORDER BY id DESC LIMIT 1"
            ).fetchone()
        return row[0] if row else ""

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def get_entries(self) -> list[JournalEntry]:
        """Return every entry in commit order."""
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM tx_journal ORDER BY id ASC").fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_latest(self) -> JournalEntry | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM tx_journal ORDER BY id DESC LIMIT 1"
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def get_by_tx_hash(self, tx_hash: str) -> JournalEntry | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM tx_journal WHERE tx_hash = ?", (tx_hash,)
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def get_contract_entries(self, contract_address: str) -> list[JournalEntry]:
        """Return the entries that targeted one contract, in commit order."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM tx_journal WHERE contract_address = ? ORDER BY id ASC",
                (contract_address,),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def count(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM tx_journal").fetchone()[0]

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self) -> bool:
        """Verify the hash chain integrity of the whole journal.

        Returns True if the chain is valid, raises JournalIntegrityError
        otherwise.
        """
        prev_hash = ""
        for entry in self.get_entries():
            if entry.previous_entry_hash != prev_hash:
                raise JournalIntegrityError(
                    f"Chain broken at entry {entry.entry_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {entry.previous_entry_hash!r}"
                )

            expected_hash = compute_entry_hash(entry.model_dump(mode="json"))
            if entry.entry_hash != expected_hash:
                raise JournalIntegrityError(
                    f"Tampered entry {entry.entry_id}: "
                    f"expected hash={expected_hash!r}, "
                    f"got {entry.entry_hash!r}"
                )

            prev_hash = entry.entry_hash

        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_entry(row: tuple) -> JournalEntry:
        (
            _id,
            entry_id,
            tx_hash,
            block_number,
            kind,
            contract,
            contract_address,
            method,
            caller,
            value,
            args_json,
            events_json,
            timestamp_utc,
            previous_entry_hash,
            entry_hash,
        ) = row
        return JournalEntry(
            entry_id=entry_id,
            tx_hash=tx_hash,
            block_number=block_number,
            kind=kind,
            contract=contract,
            contract_address=contract_address,
            method=method,
            caller=caller,
            value=int(value),
            args=json.loads(args_json),
            events=json.loads(events_json),
            timestamp_utc=timestamp_utc,
            previous_entry_hash=previous_entry_hash,
            entry_hash=entry_hash,
        )
