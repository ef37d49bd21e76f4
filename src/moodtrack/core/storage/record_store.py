"""Per-user document store for mood and activity entries.

The store keeps one encrypted JSON document per entry, keyed by owner and
collection. It knows nothing about moods or activities: decoding documents
into domain entries happens in the services, so a single malformed document
can be skipped without failing a whole query.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from moodtrack.core.storage.database import MoodDatabase
from moodtrack.core.storage.encryption import DocumentCipher, EncryptionError
from moodtrack.core.storage.models import StoredRecord
from moodtrack.core.storage.subscription import Subscription

logger = logging.getLogger(__name__)

MOODS = "moods"
COPING_ACTIVITIES = "coping_activities"
MUSIC_SELECTIONS = "music_selections"


class RecordStoreError(Exception):
    """Raised when a write to the record store fails."""


@runtime_checkable
class RecordStore(Protocol):
    """Create / query / listen interface consumed by the services."""

    def create_entry(
        self,
        user_id: str,
        collection: str,
        data: dict[str, Any],
        *,
        timestamp: datetime,
        entry_id: str | None = None,
    ) -> str:
        """Persist a document and return its identifier."""
        ...

    def query_entries(
        self,
        user_id: str,
        collection: str,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[StoredRecord]:
        """Documents with ``since <= timestamp < until``."""
        ...

    def listen_latest(
        self,
        user_id: str,
        collection: str,
        *,
        since: datetime | None = None,
    ) -> Subscription:
        """Subscribe to the latest document at or after ``since``."""
        ...


def _aware(ts: datetime) -> datetime:
    """Naive datetimes are taken to be in the system local zone."""
    return ts if ts.tzinfo is not None else ts.astimezone()


class SQLiteRecordStore:
    """RecordStore backed by :class:`MoodDatabase` with encrypted documents.

    Usage::

        db = MoodDatabase(":memory:")
        db.initialize()
        store = SQLiteRecordStore(db, DocumentCipher(key))

        entry_id = store.create_entry(uid, "moods", {...}, timestamp=now)
        today = store.query_entries(uid, "moods", since=midnight)
    """

    def __init__(self, database: MoodDatabase, cipher: DocumentCipher) -> None:
        self._db = database
        self._cipher = cipher
        self._listeners: dict[tuple[str, str], list[tuple[Subscription, float | None]]] = (
            defaultdict(list)
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_entry(
        self,
        user_id: str,
        collection: str,
        data: dict[str, Any],
        *,
        timestamp: datetime,
        entry_id: str | None = None,
    ) -> str:
        """Encrypt and insert a document.

        Args:
            user_id: Owner of the document.
            collection: Collection name (e.g. ``"moods"``).
            data: JSON-serializable document body.
            timestamp: The entry's point in time; its offset is preserved.
            entry_id: Identifier to use. A UUID string is generated if omitted.

        Returns:
            The document identifier.

        Raises:
            RecordStoreError: If the document cannot be encrypted or written.
        """
        if not user_id:
            raise RecordStoreError("user_id is required")

        ts = _aware(timestamp)
        rid = entry_id or str(uuid.uuid4())
        try:
            data_enc = self._cipher.encrypt_document(data)
            conn = self._db.connection
            conn.execute(
                """INSERT INTO records (id, user_id, collection, timestamp, ts_epoch, data_enc, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    rid,
                    user_id,
                    collection,
                    ts.isoformat(),
                    ts.timestamp(),
                    data_enc,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            conn.commit()
        except EncryptionError as exc:
            raise RecordStoreError(f"Could not encrypt {collection} document: {exc}") from exc
        except Exception as exc:
            raise RecordStoreError(f"Could not write {collection} document: {exc}") from exc

        logger.info("Created %s record %s", collection, rid)
        self._notify(user_id, collection)
        return rid

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query_entries(
        self,
        user_id: str,
        collection: str,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[StoredRecord]:
        """Query documents by time window.

        Args:
            since: Inclusive lower bound.
            until: Exclusive upper bound.
            limit: Maximum rows to return.
            newest_first: Sort descending by timestamp instead of ascending.

        Returns:
            Decrypted records. Rows that cannot be decrypted are skipped.
        """
        conditions = ["user_id = ?", "collection = ?"]
        params: list[Any] = [user_id, collection]

        if since is not None:
            conditions.append("ts_epoch >= ?")
            params.append(_aware(since).timestamp())
        if until is not None:
            conditions.append("ts_epoch < ?")
            params.append(_aware(until).timestamp())

        order = "DESC" if newest_first else "ASC"
        query = f"SELECT * FROM records WHERE {' AND '.join(conditions)} ORDER BY ts_epoch {order}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        records = []
        for row in rows:
            record = self._row_to_record(row)
            if record is not None:
                records.append(record)
        return records

    def get_entry(self, user_id: str, collection: str, entry_id: str) -> StoredRecord | None:
        """Fetch a single document by identifier."""
        row = self._db.connection.execute(
            "SELECT * FROM records WHERE id = ? AND user_id = ? AND collection = ?",
            (entry_id, user_id, collection),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    def count_entries(self, user_id: str | None = None, collection: str | None = None) -> int:
        """Count stored documents, optionally per owner and collection."""
        conditions: list[str] = []
        params: list[Any] = []
        if user_id:
            conditions.append("user_id = ?")
            params.append(user_id)
        if collection:
            conditions.append("collection = ?")
            params.append(collection)
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        row = self._db.connection.execute(f"SELECT COUNT(*) FROM records{where}", params).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Listen
    # ------------------------------------------------------------------

    def listen_latest(
        self,
        user_id: str,
        collection: str,
        *,
        since: datetime | None = None,
    ) -> Subscription:
        """Subscribe to the latest document of a collection.

        The returned subscription first yields the current latest record
        (or ``None``), then the new latest record after every write to the
        collection. Cancel it to stop listening.
        """
        since_epoch = _aware(since).timestamp() if since is not None else None
        key = (user_id, collection)

        def _release(sub: Subscription) -> None:
            self._listeners[key] = [(s, e) for s, e in self._listeners[key] if s is not sub]

        sub = Subscription(self._latest(user_id, collection, since_epoch), on_cancel=_release)
        self._listeners[key].append((sub, since_epoch))
        return sub

    def _latest(self, user_id: str, collection: str, since_epoch: float | None) -> StoredRecord | None:
        query = "SELECT * FROM records WHERE user_id = ? AND collection = ?"
        params: list[Any] = [user_id, collection]
        if since_epoch is not None:
            query += " AND ts_epoch >= ?"
            params.append(since_epoch)
        rows = self._db.connection.execute(query + " ORDER BY ts_epoch DESC", params).fetchall()
        for row in rows:
            record = self._row_to_record(row)
            if record is not None:
                return record
        return None

    def _notify(self, user_id: str, collection: str) -> None:
        for sub, since_epoch in list(self._listeners.get((user_id, collection), [])):
            sub.push(self._latest(user_id, collection, since_epoch))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _row_to_record(self, row: Any) -> StoredRecord | None:
        try:
            data = self._cipher.decrypt_document(row["data_enc"])
        except EncryptionError:
            logger.warning("Skipping undecryptable %s record %s", row["collection"], row["id"])
            return None
        return StoredRecord(
            id=row["id"],
            user_id=row["user_id"],
            collection=row["collection"],
            timestamp=row["timestamp"],
            data=data,
            created_at=row["created_at"] or "",
        )
