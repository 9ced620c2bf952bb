"""
Shared fixtures for the personalization engine tests.
"""

from datetime import datetime

import pytest

from nexus.adaptive_learning.scheduler import ManualClock
from nexus.content_understanding.models import (
    CategoryResult, ContentAnalysis, HtmlStructure, Keyword, LanguageResult, NamedEntities,
    PageVisit, ReadabilityResult, SentimentResult
)
from nexus.storage.profile_repository import ProfileRepository
from nexus.storage.profile_store import ProfileStore
from nexus.utils.config import LoggingConfig, SystemConfig

BASE_TIME = datetime(2024, 3, 4, 10, 0, 0)  # a Monday morning


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def store():
    """In-memory profile store."""
    profile_store = ProfileStore('sqlite://')
    yield profile_store
    profile_store.close()


@pytest.fixture
def repository(store):
    return ProfileRepository(store)


@pytest.fixture
def clock():
    return ManualClock(BASE_TIME)


@pytest.fixture
def system_config(tmp_path):
    config = SystemConfig()
    config.database.url = 'sqlite://'
    config.logging = LoggingConfig(log_dir=str(tmp_path / 'logs'), enable_files=False)
    return config


@pytest.fixture
def make_analysis():
    """Factory for hand-built content analyses."""
    def factory(category='technology', keywords=(), polarity='neutral', difficulty='medium',
                word_count=500, images=0, videos=0, forms=0, url='https://example.com/page',
                dates=(), degraded=False):
        return ContentAnalysis(
            url=url,
            category=CategoryResult(primary=category, confidence=1.0),
            language=LanguageResult(primary='english', confidence=0.99),
            readability=ReadabilityResult(flesch_score=60.0, grade_level=9.0, difficulty=difficulty),
            topics=(),
            keywords=tuple(Keyword(word=word, frequency=1, pos='noun') for word in keywords),
            sentiment=SentimentResult(polarity=polarity, intensity=0.2),
            entities=NamedEntities(dates=tuple(dates)),
            structure=HtmlStructure(images=images, videos=videos, forms=forms),
            word_count=word_count,
            degraded=degraded,
        )
    return factory


@pytest.fixture
def make_visit():
    """Factory for page visits at a fixed time."""
    def factory(url='https://example.com/page', text='', timestamp=BASE_TIME, **kwargs):
        return PageVisit(url=url, text=text, timestamp=timestamp, **kwargs)
    return factory
