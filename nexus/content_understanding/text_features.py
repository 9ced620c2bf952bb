"""
Text Features

Low level helpers shared by the content analyzer: tokenising, sentence
splitting, syllable counting, and part-of-speech tagging and named
entities from a spaCy pipeline.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Tuple

import spacy
from spacy.language import Language

from .lexicons import STOP_WORDS

# Unicode letters, with inner apostrophes and hyphens
WORD_PATTERN = re.compile(r"[^\W\d_](?:[^\W\d_]|['\-])*")
SENTENCE_PATTERN = re.compile(r'[.!?。！？]+')
VOWEL_GROUPS = re.compile(r'[aeiouy]+')

# spaCy universal POS -> coarse tag
COARSE_POS = {
    'NOUN': 'noun',
    'PROPN': 'noun',
    'VERB': 'verb',
    'ADJ': 'adjective',
    'ADV': 'adverb',
}

# spaCy entity label -> NamedEntities field
ENTITY_FIELDS = {
    'PERSON': 'people',
    'GPE': 'places',
    'LOC': 'places',
    'FAC': 'places',
    'ORG': 'organizations',
}


def tokenize(text: str) -> List[str]:
    """Split text into words, keeping their original case."""
    return [word.strip("'-") for word in WORD_PATTERN.findall(text or '') if word.strip("'-")]


def split_sentences(text: str) -> List[str]:
    sentences = [s.strip() for s in SENTENCE_PATTERN.split(text or '')]
    return [s for s in sentences if s]


def count_syllables(word: str) -> int:
    """Vowel-group count minus a trailing silent 'e', never below one."""
    word = word.lower()
    groups = VOWEL_GROUPS.findall(word)
    count = len(groups)
    if word.endswith('e') and count > 1:
        count -= 1
    return max(1, count)


def is_content_word(word: str) -> bool:
    return len(word) > 2 and word not in STOP_WORDS and not word.isdigit()


@lru_cache(maxsize=4)
def load_language_model(name: str) -> Language:
    """Load a spaCy pipeline once per process; only tagging and NER are run."""
    return spacy.load(name, disable=['parser', 'lemmatizer'])


@dataclass
class TaggedText:
    """Lower-cased word tokens with coarse tags, plus named entity spans."""
    tokens: List[Tuple[str, str]] = field(default_factory=list)
    entities: List[Tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_doc(cls, doc) -> 'TaggedText':
        tokens = [
            (token.lower_, COARSE_POS.get(token.pos_, 'other'))
            for token in doc if token.is_alpha
        ]
        entities = [(ent.text.strip(), ent.label_) for ent in doc.ents]
        return cls(tokens=tokens, entities=entities)

    def pos_map(self) -> Dict[str, str]:
        """Most frequent tag per word; ties go to the first tag seen."""
        counts: Dict[str, Counter] = {}
        for word, pos in self.tokens:
            counts.setdefault(word, Counter())[pos] += 1
        return {word: tags.most_common(1)[0][0] for word, tags in counts.items()}

    def nouns_and_verbs(self) -> List[str]:
        """Content nouns and verbs in text order."""
        return [word for word, pos in self.tokens if pos in ('noun', 'verb') and word not in STOP_WORDS]

    def words_tagged(self, *tags: str) -> List[str]:
        return [word for word, pos in self.tokens if pos in tags]


def tag_text(nlp: Language, text: str, max_characters: int = 100000) -> TaggedText:
    return TaggedText.from_doc(nlp(text[:max_characters]))
