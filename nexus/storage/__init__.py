"""
Profile storage: transactional record store, profile repository and retention.
"""

from .profile_repository import ProfileRepository
from .profile_store import ProfileStore, StoreError, StoreTransaction
from .retention import PrivacyFilter, anonymize_url, clear_user_data, sanitize_text
from .schema_manager import COLLECTIONS, SchemaManager

__all__ = [
    'ProfileRepository',
    'ProfileStore',
    'StoreError',
    'StoreTransaction',
    'PrivacyFilter',
    'anonymize_url',
    'clear_user_data',
    'sanitize_text',
    'COLLECTIONS',
    'SchemaManager',
]
