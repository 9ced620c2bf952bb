"""
Schema Manager for the personalization store
Defines the generic keyed record table and engine/session construction
"""
import sqlalchemy as sa
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from typing import Any, Dict
from datetime import datetime

Base = declarative_base()

COLLECTIONS = (
    'profiles',
    'interests',
    'behavior_patterns',
    'preferences',
    'personality_traits',
    'mood_samples',
    'interactions',
)


class StoreRecord(Base):
    """One keyed record in a named collection, scoped to a user"""
    __tablename__ = 'store_records'
    __table_args__ = (
        sa.UniqueConstraint('collection', 'user_id', 'record_key', name='uq_store_record_key'),
        sa.Index('ix_store_records_collection_timestamp', 'collection', 'user_id', 'timestamp'),
    )

    id = sa.Column(sa.Integer, primary_key=True, autoincrement=True)
    collection = sa.Column(sa.String(50), nullable=False)
    user_id = sa.Column(sa.String(100), nullable=False)
    record_key = sa.Column(sa.String(500), nullable=False)

    # Ordering key for range queries and retention
    timestamp = sa.Column(sa.DateTime, nullable=False, default=datetime.now)
    data = sa.Column(sa.JSON, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'collection': self.collection,
            'user_id': self.user_id,
            'key': self.record_key,
            'timestamp': self.timestamp,
            'data': self.data,
        }


class SchemaManager:
    """Manages engine creation and schema operations"""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.engine = self._create_engine(database_url, echo)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @staticmethod
    def _create_engine(database_url: str, echo: bool):
        if database_url in ('sqlite://', 'sqlite:///:memory:'):
            # Share one in-memory database across sessions
            return create_engine(
                database_url,
                echo=echo,
                connect_args={'check_same_thread': False},
                poolclass=StaticPool,
            )
        return create_engine(database_url, echo=echo)

    def create_all_tables(self):
        """Create all tables in the database"""
        Base.metadata.create_all(self.engine)

    def drop_all_tables(self):
        """Drop all tables (use with caution)"""
        Base.metadata.drop_all(self.engine)

    def get_session(self):
        return self.session_factory()

    def dispose(self):
        self.engine.dispose()
