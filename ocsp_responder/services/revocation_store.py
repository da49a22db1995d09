"""
Revocation Store - ocsp_responder/services/revocation_store.py
Durable serial -> revocation status mapping backing the OCSP responder
"""
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from ocsp_responder.core.database import Base, create_db_engine, create_session_factory
from ocsp_responder.core.errors import StoreError
from ocsp_responder.core.logging import get_logger
from ocsp_responder.models.revocation import RevokedCertificate
from ocsp_responder.models.status import RevocationRecord, RevocationState, fits_int64

logger = get_logger(__name__)


class ReadWriteLock:
    """
    Many shared holders or one exclusive holder. Waiting exclusive holders
    block new shared holders so a bulk replace is not starved by lookups.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._shared = 0
        self._exclusive = False
        self._exclusive_waiting = 0

    @contextmanager
    def shared(self) -> Iterator[None]:
        with self._cond:
            while self._exclusive or self._exclusive_waiting:
                self._cond.wait()
            self._shared += 1
        try:
            yield
        finally:
            with self._cond:
                self._shared -= 1
                if not self._shared:
                    self._cond.notify_all()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        with self._cond:
            self._exclusive_waiting += 1
            try:
                while self._exclusive or self._shared:
                    self._cond.wait()
            finally:
                self._exclusive_waiting -= 1
            self._exclusive = True
        try:
            yield
        finally:
            with self._cond:
                self._exclusive = False
                self._cond.notify_all()


class RevocationStore:
    """
    Store for revocation records.

    The store is handed to the responder and the API at construction time;
    call init() before use and teardown() when the process stops.
    Lookups, snapshots and upserts share the lock; bulk_replace takes it
    exclusively so nobody observes the table half-way through a replace.
    When the engine hands every session the same connection (in-memory
    SQLite), all operations take the lock exclusively.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        engine: Optional[Engine] = None,
        timeout: float = 5.0,
    ):
        if database_url is None and engine is None:
            raise ValueError("Either database_url or engine is required")
        self.database_url = database_url
        self.timeout = timeout
        self._engine = engine
        self._session_factory = create_session_factory(engine) if engine is not None else None
        self._lock = ReadWriteLock()

    # Lifecycle

    def init(self) -> None:
        """Open the engine and create the schema if missing"""
        with self._guard("init"):
            if self._engine is None:
                self._engine = create_db_engine(self.database_url, timeout=self.timeout)
                self._session_factory = create_session_factory(self._engine)
            Base.metadata.create_all(self._engine, tables=[RevokedCertificate.__table__])
        logger.info(f"Revocation store ready ({self._engine.url.render_as_string(hide_password=True)})")

    def teardown(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Revocation store closed")

    @property
    def engine(self) -> Optional[Engine]:
        return self._engine

    # Reads

    def lookup(self, serial: int) -> RevocationState:
        """
        Return UNKNOWN when there is no record, GOOD for a record that is not
        revoked and REVOKED(at) otherwise. A miss is not an error.
        """
        if not fits_int64(serial):
            # Cannot have been stored
            return RevocationState.unknown()

        with self._access(), self._guard("lookup"), self._session() as session:
            row = session.get(RevokedCertificate, serial)
            if row is None:
                return RevocationState.unknown()
            if row.revoked_at is None:
                return RevocationState.good()
            return RevocationState.revoked(row.revoked_at)

    def get(self, serial: int) -> Optional[RevocationRecord]:
        if not fits_int64(serial):
            return None
        with self._access(), self._guard("get"), self._session() as session:
            row = session.get(RevokedCertificate, serial)
            return self._to_record(row) if row is not None else None

    def snapshot(self) -> List[RevocationRecord]:
        """All records, sorted by serial ascending"""
        with self._access(), self._guard("snapshot"), self._session() as session:
            rows = session.execute(
                select(RevokedCertificate).order_by(RevokedCertificate.serial)
            ).scalars().all()
            return [self._to_record(row) for row in rows]

    # Writes

    def upsert(self, record: RevocationRecord) -> RevocationRecord:
        """
        Insert or replace the record for record.serial (last write wins).

        A record marked revoked without a time is stamped with the current
        UTC time; the stored record is returned.
        """
        stored = self._stamp(record)
        with self._access(), self._guard("upsert"), self._session() as session:
            with session.begin():
                self._write(session, stored)
        logger.debug(f"Upserted record {stored.serial} (revoked_at={stored.revoked_at})")
        return stored

    def bulk_replace(self, records: Iterable[RevocationRecord]) -> List[RevocationRecord]:
        """
        Replace the whole table with records in one transaction.

        Duplicate serials collapse to the last occurrence.
        """
        by_serial = {}
        for record in records:
            by_serial[record.serial] = self._stamp(record)
        stored = [by_serial[serial] for serial in sorted(by_serial)]

        with self._lock.exclusive(), self._guard("bulk_replace"), self._session() as session:
            with session.begin():
                session.execute(delete(RevokedCertificate))
                if stored:
                    session.execute(
                        insert(RevokedCertificate),
                        [{"serial": r.serial, "revoked_at": r.revoked_at} for r in stored],
                    )

        logger.info(f"Revocation store replaced with {len(stored)} records")
        return stored

    # Helpers

    def _session(self) -> Session:
        if self._session_factory is None:
            raise StoreError.internal("Revocation store is not initialised")
        return self._session_factory()

    def _access(self):
        """Lock for everything except bulk_replace"""
        if self._engine is not None and isinstance(self._engine.pool, StaticPool):
            # A single sqlite3 connection cannot run two transactions at once
            return self._lock.exclusive()
        return self._lock.shared()

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Revocation store {operation} failed: {e}")
            raise StoreError.internal(f"Revocation store {operation} failed") from e

    def _write(self, session: Session, record: RevocationRecord) -> None:
        values = {"serial": record.serial, "revoked_at": record.revoked_at}
        dialect = session.get_bind().dialect.name

        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert as dialect_insert
        elif dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert as dialect_insert
        else:
            session.merge(RevokedCertificate(**values))
            return

        stmt = dialect_insert(RevokedCertificate).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[RevokedCertificate.serial],
            set_={"revoked_at": stmt.excluded.revoked_at},
        )
        session.execute(stmt)

    @staticmethod
    def _stamp(record: RevocationRecord) -> RevocationRecord:
        if record.revoked and record.revoked_at is None:
            return RevocationRecord.revoked_on(record.serial, datetime.now(timezone.utc))
        return record

    @staticmethod
    def _to_record(row: RevokedCertificate) -> RevocationRecord:
        if row.revoked_at is None:
            return RevocationRecord.not_revoked(row.serial)
        return RevocationRecord.revoked_on(row.serial, row.revoked_at)
