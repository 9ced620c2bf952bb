"""
Data Retention and Privacy Module

Implements the retention window and anonymisation for stored browsing data.

This module ensures:
1. Stored records older than the retention window can be deleted per user
2. A user's stored data can be cleared completely on request
3. URLs and titles are scrubbed of personal identifiers before storage
"""

import dataclasses
import hashlib
import re
from datetime import datetime, timedelta
from typing import Dict, Optional
from urllib.parse import urlparse

from ..user_profiling.models import VisitRecord
from ..utils.config import PrivacyConfig
from ..utils.logging import setup_logger
from .profile_store import ProfileStore

logger = setup_logger(__name__)

DEFAULT_RETENTION_DAYS = 30

# Anonymization patterns
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_PATTERN = re.compile(r"\b\d{3}[-.]\d{3}[-.]\d{4}\b")


def sanitize_text(text: str) -> str:
    """Mask email addresses and phone numbers."""
    if not text:
        return text
    text = EMAIL_PATTERN.sub('[EMAIL]', text)
    return PHONE_PATTERN.sub('[PHONE]', text)


def anonymize_url(url: str) -> str:
    """
    Keep scheme and host, replace path and query with an MD5 digest.

    Bare origins are returned unchanged. Unparseable URLs are hashed whole.
    """
    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError:
        return hashlib.md5(url.encode('utf-8')).hexdigest()
    if not parsed.scheme or not host:
        return hashlib.md5(url.encode('utf-8')).hexdigest()

    sensitive = parsed.path if parsed.path not in ('', '/') else ''
    if parsed.query:
        sensitive += '?' + parsed.query
    if not sensitive:
        return url
    digest = hashlib.md5(sensitive.encode('utf-8')).hexdigest()
    return f"{parsed.scheme}://{host}/{digest}"


class PrivacyFilter:
    """Applies the configured anonymisation to records before storage"""

    def __init__(self, config: Optional[PrivacyConfig] = None):
        self.config = config or PrivacyConfig()

    def scrub_record(self, record: VisitRecord) -> VisitRecord:
        url = anonymize_url(record.url) if self.config.anonymize_urls and record.url else record.url
        title = sanitize_text(record.title) if self.config.sanitize_text else record.title
        return dataclasses.replace(record, url=url, title=title)


def clear_user_data(store: ProfileStore, user_id: str, retention_days: Optional[int] = None,
                    now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Delete a user's stored records.

    Args:
        store: Backing record store
        user_id: User whose data is cleared
        retention_days: None clears everything; otherwise only records
            older than this many days are deleted
        now: Reference time for the retention window

    Returns:
        Dict of deleted record counts per collection
    """
    if retention_days is None:
        deleted = store.delete_all(user_id)
        logger.info(f"Cleared all stored data for {user_id}: {sum(deleted.values())} records")
        return deleted

    if retention_days < 0:
        raise ValueError("retention_days must not be negative")

    cutoff = (now or datetime.now()) - timedelta(days=retention_days)
    # The profile header is never subject to the window
    collections = ('interests', 'behavior_patterns', 'preferences', 'personality_traits',
                   'mood_samples', 'interactions')
    deleted = store.delete_before(user_id, cutoff, collections)
    logger.info(
        f"Deleted {sum(deleted.values())} records older than {retention_days} days "
        f"for {user_id} (cutoff {cutoff.isoformat()})"
    )
    return deleted
