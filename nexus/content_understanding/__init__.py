"""
Content understanding: page visits in, structured content features out.
"""

from .content_analyzer import ContentAnalyzer
from .html_structure import analyze_structure
from .models import (
    CategoryResult, ContentAnalysis, HtmlStructure, Keyword, LanguageResult, NamedEntities,
    PageVisit, ReadabilityResult, SentimentResult, Topic
)

__all__ = [
    'ContentAnalyzer',
    'analyze_structure',
    'CategoryResult',
    'ContentAnalysis',
    'HtmlStructure',
    'Keyword',
    'LanguageResult',
    'NamedEntities',
    'PageVisit',
    'ReadabilityResult',
    'SentimentResult',
    'Topic',
]
