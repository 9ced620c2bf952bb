"""
Tests for content analysis: classification, readability, topics,
keywords, sentiment, entities and HTML structure.
"""

from datetime import datetime

import pytest

from nexus.content_understanding.content_analyzer import ContentAnalyzer, reading_level
from nexus.content_understanding.html_structure import analyze_structure
from nexus.content_understanding.models import PageVisit
from nexus.content_understanding.text_features import TaggedText, count_syllables, tokenize

TECH_TEXT = (
    "Software developer tools make programming on a computer easier for every developer. "
    "The new release of the compiler improves performance for programming teams."
)


class TestTextFeatures:
    """Low level tokenising and tagging."""

    def test_tokenize_keeps_case_and_drops_numbers(self):
        assert tokenize("Hello, world! 42 it's") == ['Hello', 'world', "it's"]

    @pytest.mark.parametrize("word,expected", [
        ('cat', 1), ('happy', 2), ('puppy', 2), ('the', 1), ('make', 1), ('computer', 3),
    ])
    def test_count_syllables(self, word, expected):
        assert count_syllables(word) == expected

    def test_tokenize_non_latin_scripts(self):
        assert tokenize("Привет, мир! Καλημέρα 2024") == ['Привет', 'мир', 'Καλημέρα']

    def test_tag_majority_wins(self):
        tagged = TaggedText(tokens=[('cook', 'verb'), ('cook', 'noun'), ('cook', 'verb'), ('fast', 'adverb')])

        assert tagged.pos_map() == {'cook': 'verb', 'fast': 'adverb'}
        assert tagged.nouns_and_verbs() == ['cook', 'cook', 'cook']


class TestContentAnalyzer:
    """Test the content analyzer."""

    @pytest.fixture
    def analyzer(self):
        return ContentAnalyzer()

    def test_readability_closed_form(self, analyzer):
        """One sentence, ten words, 1.2 syllables per word."""
        visit = PageVisit(url='https://example.com/cat', text="The cat sat on the mat with a happy puppy.")
        readability = analyzer.analyze(visit).readability

        assert readability.avg_sentence_length == pytest.approx(10.0)
        assert readability.avg_syllables_per_word == pytest.approx(1.2)
        assert readability.flesch_score == pytest.approx(206.835 - 1.015 * 10 - 84.6 * 1.2, abs=1e-6)
        assert readability.flesch_score == pytest.approx(95.165, abs=1e-3)
        assert readability.grade_level == pytest.approx(2.47, abs=1e-3)
        assert readability.difficulty == 'easy'
        assert readability.reading_level == 'elementary'

    def test_empty_text_returns_fallback(self, analyzer):
        analysis = analyzer.analyze(PageVisit(url='https://example.com/empty', text='   '))

        assert analysis.degraded is True
        assert analysis.error is None
        assert analysis.category.primary == 'general'
        assert analysis.category.confidence == pytest.approx(0.3)
        assert analysis.language.primary == 'english'
        assert analysis.language.confidence == pytest.approx(0.5)
        assert analysis.readability.flesch_score == 50.0
        assert analysis.readability.grade_level == 8.0
        assert analysis.readability.difficulty == 'medium'
        assert analysis.topics == ()
        assert analysis.keywords == ()
        assert analysis.sentiment.polarity == 'neutral'

    def test_internal_failure_returns_fallback_with_error(self, analyzer, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("tagger exploded")

        monkeypatch.setattr(analyzer, 'classify', explode)
        analysis = analyzer.analyze(PageVisit(url='https://example.com/x', text=TECH_TEXT))

        assert analysis.degraded is True
        assert 'tagger exploded' in analysis.error

    def test_classifies_technology(self, analyzer):
        analysis = analyzer.analyze(PageVisit(url='https://example.com/dev', text=TECH_TEXT))

        assert analysis.category.primary == 'technology'
        assert analysis.category.confidence == pytest.approx(1.0)
        assert analysis.degraded is False

    def test_unmatched_text_is_general(self, analyzer):
        category = analyzer.classify(tokenize("The cat sat on the mat with a happy puppy."))
        assert category.primary == 'general'
        assert category.confidence == pytest.approx(0.3)

    def test_category_ties_follow_table_order(self, analyzer):
        # 'study' scores one hit for both education and science
        category = analyzer.classify(['study'])
        assert category.primary == 'education'
        assert category.alternatives[0][0] == 'science'

    def test_detects_english(self, analyzer):
        language = analyzer.detect_language(
            "This is a reasonably long English sentence about the weather and the city."
        )
        assert language.primary == 'english'
        assert 0.0 < language.confidence <= 1.0

    def test_short_text_language_falls_back(self, analyzer):
        assert analyzer.detect_language("hi there").confidence == pytest.approx(0.5)

    def test_part_of_speech_tags(self, analyzer):
        tags = analyzer.tag("The interesting red car moved quickly during the storm.").pos_map()

        assert tags['interesting'] == 'adjective'
        assert tags['red'] == 'adjective'
        assert tags['car'] == 'noun'
        assert tags['storm'] == 'noun'
        assert tags['moved'] == 'verb'
        assert tags['quickly'] == 'adverb'
        assert tags['during'] == 'other'

    def test_keywords_ranked_by_frequency(self, analyzer):
        keywords = analyzer.extract_keywords(analyzer.tag("The chef cooked pasta. The chef served pasta to the chef."))
        words = [kw.word for kw in keywords]

        assert words[:2] == ['chef', 'pasta']
        assert keywords[0].frequency == 3
        assert keywords[0].pos == 'noun'
        assert {'cooked', 'served'} <= set(words)
        assert 'the' not in words

    def test_adverbs_are_not_keywords(self, analyzer):
        keywords = analyzer.extract_keywords(analyzer.tag("The team quickly shipped the release."))
        assert 'quickly' not in [kw.word for kw in keywords]

    def test_non_latin_text_is_analyzed(self, analyzer):
        text = "Москва является столицей России и крупнейшим городом страны. " * 5
        analysis = analyzer.analyze(PageVisit(url='https://example.ru/moscow', text=text))

        assert analysis.degraded is False
        assert analysis.language.primary == 'russian'
        assert analysis.word_count == 40
        assert analysis.error is None

    def test_text_without_words_is_degraded(self, analyzer):
        analysis = analyzer.analyze(PageVisit(url='https://example.com/n', text='12345 67890 + 2024'))

        assert analysis.degraded is True
        assert analysis.category.primary == 'general'

    def test_topics_include_noun_phrases(self, analyzer):
        analysis = analyzer.analyze(PageVisit(url='https://example.com/dev', text=TECH_TEXT))
        terms = [topic.term for topic in analysis.topics]

        assert 'software developer' in terms
        assert len(terms) <= analyzer.config.max_topics
        importances = [topic.importance for topic in analysis.topics]
        assert importances == sorted(importances, reverse=True)

    def test_sentiment_polarity(self, analyzer):
        positive = analyzer.analyze_sentiment(tokenize("What a wonderful and amazing day"))
        negative = analyzer.analyze_sentiment(tokenize("This is a terrible awful disaster"))
        neutral = analyzer.analyze_sentiment(tokenize("The table is brown"))

        assert positive.polarity == 'positive'
        assert negative.polarity == 'negative'
        assert neutral.polarity == 'neutral'
        assert 0.0 <= positive.intensity <= 1.0

    def test_entities(self, analyzer):
        entities = analyzer.extract_entities(
            "Jane Goodall visited Paris with Acme Corp on 2024-03-01.", datetime(2024, 3, 4)
        )

        assert 'Jane Goodall' in entities.people
        assert 'Paris' in entities.places
        assert 'Acme Corp' in entities.organizations
        assert entities.dates == ('2024-03-01',)

    def test_entity_types(self, analyzer):
        entities = analyzer.extract_entities("Google hired Sundar Pichai in Mountain View.")

        assert 'Google' in entities.organizations
        assert 'Sundar Pichai' in entities.people
        assert 'Mountain View' in entities.places
        assert 'Mountain View' not in entities.people

    def test_month_names_are_not_people(self, analyzer):
        entities = analyzer.extract_entities("Published March 3, 2024 by the team.", datetime(2024, 3, 4))

        assert entities.people == ()
        assert entities.dates == ('2024-03-03',)

    def test_analysis_is_deterministic(self):
        visit = PageVisit(url='https://example.com/dev', text=TECH_TEXT)
        first = ContentAnalyzer().analyze(visit)
        second = ContentAnalyzer().analyze(visit)

        assert first.to_dict() == second.to_dict()

    def test_recent_analysis_cache(self, analyzer):
        visit = PageVisit(url='https://example.com/dev', text=TECH_TEXT)
        analysis = analyzer.analyze(visit)

        assert analyzer.get_recent_analysis(visit.url) is analysis
        assert analyzer.analyze(visit) is analysis

        changed = PageVisit(url=visit.url, text="Breaking news report from the journalist.")
        assert analyzer.analyze(changed) is not analysis

    def test_reading_time(self, analyzer):
        analysis = analyzer.analyze(PageVisit(url='https://example.com/long', text='word ' * 450))
        assert analysis.word_count == 400
        assert analysis.reading_time_minutes == 3

    @pytest.mark.parametrize("grade,level", [
        (3, 'elementary'), (8, 'middle_school'), (11, 'high_school'), (15, 'college'),
    ])
    def test_reading_level(self, grade, level):
        assert reading_level(grade) == level


class TestHtmlStructure:
    """HTML structure summary."""

    def test_counts_media_interactivity_and_sharing(self):
        html = """
        <html><body>
          <h1>Title</h1><h2>Sub</h2>
          <img src="a.png" alt="a"><img src="b.png">
          <video src="clip.mp4"></video>
          <form><input type="text"><button>Go</button></form>
          <a href="https://twitter.com/intent/tweet">Tweet</a>
          <a class="share-button" href="/share">Share</a>
          <a href="https://other.org/x">Elsewhere</a>
        </body></html>
        """
        structure = analyze_structure(html, 'https://example.com/post')

        assert structure.heading_count == 2
        assert structure.has_h1 is True
        assert structure.images == 2
        assert structure.images_missing_alt == 1
        assert structure.videos == 1
        assert structure.forms == 1
        assert structure.inputs == 1
        assert structure.buttons == 1
        assert structure.links == 3
        assert structure.external_links == 2
        assert structure.share_widgets == 2
        assert structure.total_media == 3
        assert structure.interactive_elements == 3

    def test_missing_markup(self):
        assert analyze_structure('') == analyze_structure(None)
        assert analyze_structure('').images == 0

    def test_malformed_markup_is_tolerated(self):
        structure = analyze_structure('<div><img src="x.png"<p>unterminated', 'https://example.com')
        assert structure.images >= 0
