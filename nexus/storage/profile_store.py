"""
Generic keyed record store over SQLAlchemy.

Records live in named collections, are scoped to a user and carry a
timestamp used for range queries and retention. All SQLAlchemy failures
surface as StoreError.
"""

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from ..utils.config import DatabaseConfig
from ..utils.logging import setup_logger
from .schema_manager import COLLECTIONS, SchemaManager, StoreRecord

logger = setup_logger(__name__)


class StoreError(Exception):
    """Raised when the backing store rejects an operation"""


class StoreTransaction:
    """Operations bound to one open session; committed together or not at all"""

    def __init__(self, session):
        self.session = session

    def _find(self, collection: str, user_id: str, key: str) -> Optional[StoreRecord]:
        return (
            self.session.query(StoreRecord)
            .filter_by(collection=collection, user_id=user_id, record_key=key)
            .one_or_none()
        )

    def insert(self, collection: str, user_id: str, key: str, data: Dict[str, Any],
               timestamp: Optional[datetime] = None):
        if self._find(collection, user_id, key) is not None:
            raise StoreError(f"Record {collection}/{user_id}/{key} already exists")
        self.session.add(StoreRecord(
            collection=collection, user_id=user_id, record_key=key,
            timestamp=timestamp or datetime.now(), data=data,
        ))
        self.session.flush()

    def update(self, collection: str, user_id: str, key: str, data: Dict[str, Any],
               timestamp: Optional[datetime] = None):
        record = self._find(collection, user_id, key)
        if record is None:
            raise StoreError(f"Record {collection}/{user_id}/{key} does not exist")
        record.data = data
        if timestamp is not None:
            record.timestamp = timestamp
        self.session.flush()

    def upsert(self, collection: str, user_id: str, key: str, data: Dict[str, Any],
               timestamp: Optional[datetime] = None):
        record = self._find(collection, user_id, key)
        if record is None:
            self.insert(collection, user_id, key, data, timestamp)
        else:
            record.data = data
            record.timestamp = timestamp or record.timestamp
            self.session.flush()

    def get(self, collection: str, user_id: str, key: str) -> Optional[Dict[str, Any]]:
        record = self._find(collection, user_id, key)
        return record.data if record is not None else None

    def range_query(self, collection: str, user_id: str, start: Optional[datetime] = None,
                    end: Optional[datetime] = None, limit: Optional[int] = None,
                    newest_first: bool = False) -> List[Dict[str, Any]]:
        """Records ordered by timestamp, optionally bounded by ``start <= ts < end``."""
        query = self.session.query(StoreRecord).filter_by(collection=collection, user_id=user_id)
        if start is not None:
            query = query.filter(StoreRecord.timestamp >= start)
        if end is not None:
            query = query.filter(StoreRecord.timestamp < end)
        if newest_first:
            query = query.order_by(StoreRecord.timestamp.desc(), StoreRecord.id.desc())
        else:
            query = query.order_by(StoreRecord.timestamp.asc(), StoreRecord.id.asc())
        if limit is not None:
            query = query.limit(limit)
        return [record.to_dict() for record in query.all()]

    def all(self, collection: str, user_id: str) -> List[Dict[str, Any]]:
        return [record['data'] for record in self.range_query(collection, user_id)]

    def keys(self, collection: str, user_id: str) -> List[str]:
        rows = (
            self.session.query(StoreRecord.record_key)
            .filter_by(collection=collection, user_id=user_id)
            .all()
        )
        return [row[0] for row in rows]

    def count(self, collection: str, user_id: Optional[str] = None) -> int:
        query = self.session.query(func.count(StoreRecord.id)).filter_by(collection=collection)
        if user_id is not None:
            query = query.filter_by(user_id=user_id)
        return int(query.scalar() or 0)

    def delete(self, collection: str, user_id: str, key: str) -> int:
        return (
            self.session.query(StoreRecord)
            .filter_by(collection=collection, user_id=user_id, record_key=key)
            .delete(synchronize_session=False)
        )

    def delete_before(self, user_id: str, cutoff: datetime,
                      collections: Iterable[str] = COLLECTIONS) -> Dict[str, int]:
        deleted = {}
        for collection in collections:
            deleted[collection] = (
                self.session.query(StoreRecord)
                .filter(StoreRecord.collection == collection,
                        StoreRecord.user_id == user_id,
                        StoreRecord.timestamp < cutoff)
                .delete(synchronize_session=False)
            )
        return deleted

    def delete_all(self, user_id: str, collections: Iterable[str] = COLLECTIONS) -> Dict[str, int]:
        deleted = {}
        for collection in collections:
            deleted[collection] = (
                self.session.query(StoreRecord)
                .filter_by(collection=collection, user_id=user_id)
                .delete(synchronize_session=False)
            )
        return deleted


class ProfileStore:
    """
    Keyed record store with atomic multi-record transactions.

    Every method outside ``transaction()`` runs in its own short
    transaction.
    """

    def __init__(self, database_url: str = 'sqlite://', echo: bool = False):
        self._ensure_sqlite_directory(database_url)
        self.schema = SchemaManager(database_url, echo=echo)
        self.schema.create_all_tables()
        logger.info(f"Profile store ready at {make_url(database_url).render_as_string(hide_password=True)}")

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> 'ProfileStore':
        return cls(config.url, echo=config.echo)

    @staticmethod
    def _ensure_sqlite_directory(database_url: str):
        url = make_url(database_url)
        if url.get_backend_name() == 'sqlite' and url.database and url.database != ':memory:':
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """Open a transaction; commit on success, roll back on any error."""
        session = self.schema.get_session()
        try:
            yield StoreTransaction(session)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(str(e)) from e
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def insert(self, collection, user_id, key, data, timestamp=None):
        with self.transaction() as txn:
            txn.insert(collection, user_id, key, data, timestamp)

    def update(self, collection, user_id, key, data, timestamp=None):
        with self.transaction() as txn:
            txn.update(collection, user_id, key, data, timestamp)

    def upsert(self, collection, user_id, key, data, timestamp=None):
        with self.transaction() as txn:
            txn.upsert(collection, user_id, key, data, timestamp)

    def get(self, collection, user_id, key):
        with self.transaction() as txn:
            return txn.get(collection, user_id, key)

    def range_query(self, collection, user_id, start=None, end=None, limit=None, newest_first=False):
        with self.transaction() as txn:
            return txn.range_query(collection, user_id, start, end, limit, newest_first)

    def all(self, collection, user_id):
        with self.transaction() as txn:
            return txn.all(collection, user_id)

    def count(self, collection, user_id=None):
        with self.transaction() as txn:
            return txn.count(collection, user_id)

    def delete(self, collection, user_id, key):
        with self.transaction() as txn:
            return txn.delete(collection, user_id, key)

    def delete_before(self, user_id, cutoff, collections=COLLECTIONS):
        with self.transaction() as txn:
            return txn.delete_before(user_id, cutoff, collections)

    def delete_all(self, user_id, collections=COLLECTIONS):
        with self.transaction() as txn:
            return txn.delete_all(user_id, collections)

    def close(self):
        self.schema.dispose()
