"""
Content Analyzer for the personalization engine

Turns a raw page visit into a ContentAnalysis: category, language,
readability, topics, keywords, sentiment, named entities and an HTML
structure summary. Part-of-speech tags and named entities come from a
spaCy pipeline. Analysis is a total function. Empty text or any internal
failure produces the degraded fallback analysis.
"""

import hashlib
import math
import re
import time
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from cachetools import TTLCache
from dateutil import parser as date_parser
from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException
from sklearn.feature_extraction.text import CountVectorizer
from spacy.language import Language

from ..utils.config import AnalyzerConfig
from ..utils.logging import get_data_processing_logger
from .html_structure import analyze_structure
from .lexicons import CATEGORY_KEYWORDS, DEFAULT_CATEGORY, LANGUAGE_NAMES, SENTIMENT_LEXICON, STOP_WORDS
from .models import (
    CategoryResult, ContentAnalysis, HtmlStructure, Keyword, LanguageResult,
    NamedEntities, PageVisit, ReadabilityResult, SentimentResult, Topic
)
from .text_features import (
    ENTITY_FIELDS, TaggedText, count_syllables, is_content_word, load_language_model,
    split_sentences, tag_text, tokenize
)

DetectorFactory.seed = 0

MONTHS = (
    'January|February|March|April|May|June|July|August|September|October|November|December|'
    'Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec'
)
DATE_PATTERNS = (
    re.compile(r'\b\d{4}-\d{2}-\d{2}\b'),
    re.compile(r'\b\d{1,2}/\d{1,2}/\d{4}\b'),
    re.compile(r'\b(?:%s)\.?\s+\d{1,2}(?:st|nd|rd|th)?(?:,?\s+\d{4})?\b' % MONTHS),
    re.compile(r'\b\d{1,2}\s+(?:%s)\.?\s+\d{4}\b' % MONTHS),
)
KEYWORD_TAGS = ('noun', 'verb', 'adjective')
LEADING_ARTICLE = re.compile(r'^(?:the|a|an)\s+', re.IGNORECASE)

FALLBACK_CATEGORY = CategoryResult(primary=DEFAULT_CATEGORY, confidence=0.3)
FALLBACK_LANGUAGE = LanguageResult(primary='english', confidence=0.5)
FALLBACK_READABILITY = ReadabilityResult(
    flesch_score=50.0, grade_level=8.0, difficulty='medium', reading_level='middle_school'
)
NEUTRAL_SENTIMENT = SentimentResult(polarity='neutral', intensity=0.0, score=0.0)


def reading_level(grade_level: float) -> str:
    if grade_level <= 6:
        return 'elementary'
    if grade_level <= 9:
        return 'middle_school'
    if grade_level <= 12:
        return 'high_school'
    return 'college'


def count_occurrences(term: str, lowered_text: str) -> int:
    return len(re.findall(r'\b%s\b' % re.escape(term), lowered_text))


class ContentAnalyzer:
    """Deterministic content analysis for page visits"""

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig()
        self.logger = get_data_processing_logger("ContentAnalyzer")
        DetectorFactory.seed = self.config.language_seed
        self._nlp: Optional[Language] = None

        # url -> (content digest, analysis)
        self._recent: TTLCache = TTLCache(
            maxsize=self.config.cache_size, ttl=self.config.cache_ttl_seconds
        )

    @property
    def nlp(self) -> Language:
        """spaCy pipeline, loaded on first use."""
        if self._nlp is None:
            self._nlp = load_language_model(self.config.spacy_model)
        return self._nlp

    def tag(self, text: str) -> TaggedText:
        return tag_text(self.nlp, text, self.config.max_nlp_characters)

    def analyze(self, visit: PageVisit) -> ContentAnalysis:
        """
        Analyze a page visit.

        Never raises: empty text returns the fallback analysis and internal
        errors return the fallback with ``error`` set.
        """
        text = visit.text or ''
        if not text.strip():
            return self.fallback_analysis(visit.url)

        digest = hashlib.sha1((text + '\x00' + (visit.html or '')).encode('utf-8')).hexdigest()
        cached = self._recent.get(visit.url)
        if cached is not None and cached[0] == digest:
            return cached[1]

        start_time = time.perf_counter()
        self.logger.log_processing_start("analyze_content", len(text))
        try:
            analysis = self._analyze(visit, text)
        except Exception as e:
            self.logger.log_error_with_context("analyze_content", e, {'url': visit.url})
            return self.fallback_analysis(visit.url, error=str(e))

        self._recent[visit.url] = (digest, analysis)
        self.logger.log_processing_complete("analyze_content", time.perf_counter() - start_time)
        return analysis

    def get_recent_analysis(self, url: str) -> Optional[ContentAnalysis]:
        """Return the cached analysis for ``url`` if it is younger than the cache TTL."""
        cached = self._recent.get(url)
        return cached[1] if cached is not None else None

    def fallback_analysis(self, url: str = '', error: Optional[str] = None,
                          language: LanguageResult = FALLBACK_LANGUAGE) -> ContentAnalysis:
        return ContentAnalysis(
            url=url,
            category=FALLBACK_CATEGORY,
            language=language,
            readability=FALLBACK_READABILITY,
            topics=(),
            keywords=(),
            sentiment=NEUTRAL_SENTIMENT,
            entities=NamedEntities(),
            structure=HtmlStructure(),
            degraded=True,
            error=error,
        )

    def _analyze(self, visit: PageVisit, text: str) -> ContentAnalysis:
        language = self.detect_language(text)
        words = tokenize(text)
        if not words:
            # Digits and symbols only
            return self.fallback_analysis(visit.url, language=language)

        lowered_text = text.lower()
        tagged = self.tag(text)
        entities = self.extract_entities(text, visit.timestamp, tagged)

        return ContentAnalysis(
            url=visit.url,
            category=self.classify(tagged.nouns_and_verbs()),
            language=language,
            readability=self.analyze_readability(text, words),
            topics=tuple(self.extract_topics(text, lowered_text, tagged, entities)),
            keywords=tuple(self.extract_keywords(tagged)),
            sentiment=self.analyze_sentiment(words),
            entities=entities,
            structure=analyze_structure(visit.html, visit.url),
            word_count=len(words),
            reading_time_minutes=max(1, math.ceil(len(words) / self.config.words_per_minute)),
            complexity_score=self._complexity_score(words),
        )

    def classify(self, terms: List[str]) -> CategoryResult:
        """Score every category by keyword hits over the given nouns and verbs."""
        scored_text = ' '.join(term.lower() for term in terms)

        hits = []
        for category, keywords in CATEGORY_KEYWORDS:
            count = sum(1 for keyword in keywords if keyword in scored_text)
            hits.append((category, count))

        # Stable sort keeps table order for ties
        ranked = sorted((entry for entry in hits if entry[1] > 0), key=lambda entry: -entry[1])
        if not ranked:
            return CategoryResult(primary=DEFAULT_CATEGORY, confidence=FALLBACK_CATEGORY.confidence)

        primary, best = ranked[0]
        alternatives = tuple(
            (category, min(1.0, count / 3.0))
            for category, count in ranked[1:1 + self.config.max_alternative_categories]
        )
        return CategoryResult(primary=primary, confidence=min(1.0, best / 3.0), alternatives=alternatives)

    def detect_language(self, text: str) -> LanguageResult:
        if len(text.strip()) < self.config.min_language_text_length:
            return FALLBACK_LANGUAGE
        try:
            results = detect_langs(text)
        except LangDetectException as e:
            self.logger.logger.debug(f"Language detection failed: {e}")
            return FALLBACK_LANGUAGE
        if not results:
            return FALLBACK_LANGUAGE

        top = results[0]
        return LanguageResult(
            primary=LANGUAGE_NAMES.get(top.lang, top.lang),
            confidence=round(float(top.prob), 4),
        )

    def analyze_readability(self, text: str, words: List[str]) -> ReadabilityResult:
        sentence_count = max(1, len(split_sentences(text)))
        syllables = sum(count_syllables(word) for word in words)

        avg_sentence_length = len(words) / sentence_count
        avg_syllables_per_word = syllables / len(words)

        flesch = 206.835 - 1.015 * avg_sentence_length - 84.6 * avg_syllables_per_word
        grade = 0.39 * avg_sentence_length + 11.8 * avg_syllables_per_word - 15.59

        if flesch >= 70:
            difficulty = 'easy'
        elif flesch <= 30:
            difficulty = 'hard'
        else:
            difficulty = 'medium'

        return ReadabilityResult(
            flesch_score=max(0.0, min(100.0, flesch)),
            grade_level=max(0.0, grade),
            difficulty=difficulty,
            avg_sentence_length=avg_sentence_length,
            avg_syllables_per_word=avg_syllables_per_word,
            reading_level=reading_level(grade),
        )

    def extract_topics(self, text: str, lowered_text: str, tagged: TaggedText,
                       entities: NamedEntities) -> List[Topic]:
        """Rank noun bigrams, nouns and named entities by importance."""
        tags = tagged.pos_map()
        candidates: List[str] = list(self._noun_bigrams(text, tags))
        candidates.extend(word for word in tagged.words_tagged('noun') if is_content_word(word))
        candidates.extend(name.lower() for name in entities.people + entities.places + entities.organizations)

        seen = set()
        topics = []
        text_length = max(1, len(lowered_text))
        for term in candidates:
            if term in seen or len(term) <= 2:
                continue
            seen.add(term)

            frequency = count_occurrences(term, lowered_text)
            if frequency == 0:
                continue
            first_position = lowered_text.find(term)
            position_weight = 1.0 + 0.5 * (1.0 - first_position / text_length)
            length_weight = 1.0 + 0.5 * (len(term.split()) - 1)
            importance = round(frequency * length_weight * position_weight, 4)
            topics.append(Topic(term=term, frequency=frequency, importance=importance))

        topics.sort(key=lambda topic: (-topic.importance, -topic.frequency, topic.term))
        return topics[:self.config.max_topics]

    def _noun_bigrams(self, text: str, tags: Dict[str, str]) -> List[str]:
        vectorizer = CountVectorizer(ngram_range=(2, 2), stop_words=sorted(STOP_WORDS))
        try:
            vectorizer.fit([text])
        except ValueError:
            # Only stop words left
            return []

        bigrams = []
        for phrase in sorted(vectorizer.vocabulary_):
            first, second = phrase.split(' ', 1)
            if tags.get(first) == 'noun' and tags.get(second) == 'noun':
                bigrams.append(phrase)
        return bigrams

    def extract_keywords(self, tagged: TaggedText) -> List[Keyword]:
        """Nouns, verbs and adjectives outside the stop list, most frequent first."""
        tags = tagged.pos_map()
        counts = Counter(word for word in tagged.words_tagged(*KEYWORD_TAGS) if is_content_word(word))
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [
            Keyword(word=word, frequency=frequency, pos=tags[word])
            for word, frequency in ranked[:self.config.max_keywords]
        ]

    def analyze_sentiment(self, words: List[str]) -> SentimentResult:
        score = float(sum(SENTIMENT_LEXICON.get(word.lower(), 0) for word in words))
        if score > 0:
            polarity = 'positive'
        elif score < 0:
            polarity = 'negative'
        else:
            polarity = 'neutral'
        intensity = min(1.0, abs(score / len(words))) if words else 0.0
        return SentimentResult(polarity=polarity, intensity=intensity, score=score)

    def extract_entities(self, text: str, reference: Optional[datetime] = None,
                         tagged: Optional[TaggedText] = None) -> NamedEntities:
        """People, places and organisations from spaCy NER plus validated date mentions."""
        if tagged is None:
            tagged = self.tag(text)

        found: Dict[str, Dict[str, None]] = {'people': {}, 'places': {}, 'organizations': {}}
        for name, label in tagged.entities:
            bucket = ENTITY_FIELDS.get(label)
            name = LEADING_ARTICLE.sub('', name)
            if bucket is not None and name:
                found[bucket][name] = None

        return NamedEntities(
            people=tuple(found['people']),
            places=tuple(found['places']),
            organizations=tuple(found['organizations']),
            dates=tuple(self._extract_dates(text, reference)),
        )

    def _extract_dates(self, text: str, reference: Optional[datetime]) -> List[str]:
        default = (reference or datetime.now()).replace(hour=0, minute=0, second=0, microsecond=0)
        dates: Dict[str, None] = {}
        spans: List[Tuple[int, int]] = []
        for pattern in DATE_PATTERNS:
            for match in pattern.finditer(text):
                if any(start <= match.start() < end for start, end in spans):
                    continue
                try:
                    parsed = date_parser.parse(match.group(0), default=default)
                except (ValueError, OverflowError):
                    continue
                spans.append(match.span())
                dates[parsed.date().isoformat()] = None
        return list(dates)

    def _complexity_score(self, words: List[str]) -> float:
        total = len(words)
        unique = len({word.lower() for word in words})
        long_words = sum(1 for word in words if len(word) > 6)
        return round((unique / total) * 0.5 + (long_words / total) * 0.5, 4)
