"""
Content analysis data structures

Page visits supplied by the rendering host and the immutable analysis
records derived from them.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse


@dataclass
class PageVisit:
    """A single navigation as reported by the rendering host"""
    url: str = ''
    title: str = ''
    text: str = ''
    html: str = ''
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    dwell_time: float = 0.0  # seconds
    scroll_depth: float = 0.0  # 0-1
    interaction_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def domain(self) -> str:
        try:
            return urlparse(self.url).hostname or ''
        except ValueError:
            return ''

    @property
    def total_interactions(self) -> int:
        return sum(max(0, int(count)) for count in self.interaction_counts.values())


@dataclass(frozen=True)
class CategoryResult:
    primary: str
    confidence: float
    alternatives: Tuple[Tuple[str, float], ...] = ()


@dataclass(frozen=True)
class LanguageResult:
    primary: str
    confidence: float


@dataclass(frozen=True)
class ReadabilityResult:
    flesch_score: float
    grade_level: float
    difficulty: str  # easy, medium, hard
    avg_sentence_length: float = 0.0
    avg_syllables_per_word: float = 0.0
    reading_level: str = 'intermediate'


@dataclass(frozen=True)
class Topic:
    term: str
    frequency: int
    importance: float


@dataclass(frozen=True)
class Keyword:
    word: str
    frequency: int
    pos: str  # noun, verb, adjective


@dataclass(frozen=True)
class SentimentResult:
    polarity: str  # positive, negative, neutral
    intensity: float
    score: float = 0.0


@dataclass(frozen=True)
class NamedEntities:
    people: Tuple[str, ...] = ()
    places: Tuple[str, ...] = ()
    organizations: Tuple[str, ...] = ()
    dates: Tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return len(self.people) + len(self.places) + len(self.organizations) + len(self.dates)


@dataclass(frozen=True)
class HtmlStructure:
    """Summary of the page markup relevant to engagement"""
    heading_count: int = 0
    has_h1: bool = False
    images: int = 0
    images_missing_alt: int = 0
    videos: int = 0
    audio: int = 0
    iframes: int = 0
    forms: int = 0
    inputs: int = 0
    buttons: int = 0
    links: int = 0
    external_links: int = 0
    share_widgets: int = 0

    @property
    def total_media(self) -> int:
        return self.images + self.videos + self.audio + self.iframes

    @property
    def interactive_elements(self) -> int:
        return self.forms + self.inputs + self.buttons


@dataclass(frozen=True)
class ContentAnalysis:
    """Structured features derived purely from a page visit"""
    url: str
    category: CategoryResult
    language: LanguageResult
    readability: ReadabilityResult
    topics: Tuple[Topic, ...]
    keywords: Tuple[Keyword, ...]
    sentiment: SentimentResult
    entities: NamedEntities
    structure: HtmlStructure = field(default_factory=HtmlStructure)
    word_count: int = 0
    reading_time_minutes: int = 0
    complexity_score: float = 0.0
    degraded: bool = False
    error: Optional[str] = None

    @property
    def keyword_terms(self) -> List[str]:
        return [keyword.word for keyword in self.keywords]

    @property
    def complexity(self) -> str:
        """Complexity label used by preference and personality tracking"""
        return {'easy': 'low', 'hard': 'high'}.get(self.readability.difficulty, 'medium')

    @property
    def content_format(self) -> str:
        if self.structure.videos > 0:
            return 'video'
        if self.structure.images >= 5:
            return 'gallery'
        if self.structure.forms > 0:
            return 'interactive'
        return 'article'

    @property
    def length_bucket(self) -> str:
        if self.word_count < 300:
            return 'short'
        if self.word_count < 1200:
            return 'medium'
        return 'long'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
