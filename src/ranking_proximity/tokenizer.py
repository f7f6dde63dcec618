"""
Tokenization shared by the bag-of-words and positional pipelines.

Both pipelines split text the same way, lowercase, drop tokens that are not
purely alphabetic, and optionally apply Porter stemming. They differ only in
stopword handling: the positional pipeline keeps stopwords so that token
positions reflect the real spacing of words in the document.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from functools import lru_cache
from html.parser import HTMLParser

from nltk.stem import PorterStemmer

from ranking_proximity.config import DOC_TYPE_HTML, DOC_TYPE_TEXT, check_doc_type
from ranking_proximity.vectors import TermVector

ENGLISH_STOPWORDS: frozenset[str] = frozenset([
    "a", "about", "above", "after", "again", "against", "all", "am", "an", "and",
    "any", "are", "as", "at", "be", "because", "been", "before", "being", "below",
    "between", "both", "but", "by", "can", "could", "did", "do", "does", "doing",
    "down", "during", "each", "few", "for", "from", "further", "had", "has", "have",
    "having", "he", "her", "here", "hers", "herself", "him", "himself", "his", "how",
    "i", "if", "in", "into", "is", "it", "its", "itself", "just", "me", "more",
    "most", "my", "myself", "no", "nor", "not", "now", "of", "off", "on", "once",
    "only", "or", "other", "our", "ours", "ourselves", "out", "over", "own", "same",
    "she", "should", "so", "some", "such", "than", "that", "the", "their", "theirs",
    "them", "themselves", "then", "there", "these", "they", "this", "those", "through",
    "to", "too", "under", "until", "up", "very", "was", "we", "were", "what", "when",
    "where", "which", "while", "who", "whom", "why", "will", "with", "would", "you",
    "your", "yours", "yourself", "yourselves",
])

_SPLIT_PATTERN = re.compile(r"[\s\"'.,;:!?()\[\]{}<>`~@#$%^&*\-_+=|\\/]+")

_STEMMER = PorterStemmer()


@lru_cache(maxsize=65536)
def stem(token: str) -> str:
    """Porter-stem a lowercase token."""
    return _STEMMER.stem(token)


class _TextExtractor(HTMLParser):
    """Collects the character data of an HTML page, skipping script and style bodies."""

    _SKIPPED = frozenset(["script", "style"])

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self._chunks: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in self._SKIPPED:
            self._skip_depth += 1

    def handle_endtag(self, tag):
        if tag in self._SKIPPED and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data):
        if not self._skip_depth:
            self._chunks.append(data)

    def text(self) -> str:
        return " ".join(self._chunks)


def strip_html(markup: str) -> str:
    """Remove tags, comments and script/style content from an HTML page."""
    extractor = _TextExtractor()
    extractor.feed(markup)
    extractor.close()
    return extractor.text()


class Tokenizer:
    """
    Configurable tokenizer.

    Args:
        doc_type: "text" or "html". HTML input is stripped of markup first.
        stem: Apply the Porter stemmer to every surviving token.
        retain_stopwords: Keep stopwords (positional pipeline) instead of
            dropping them (bag-of-words pipeline).
    """

    def __init__(
        self,
        doc_type: str = DOC_TYPE_TEXT,
        stem: bool = False,
        retain_stopwords: bool = False,
        stopwords: frozenset[str] = ENGLISH_STOPWORDS,
    ):
        self.doc_type = check_doc_type(doc_type)
        self.stem = stem
        self.retain_stopwords = retain_stopwords
        self.stopwords = stopwords

    def __repr__(self) -> str:
        return (
            f"Tokenizer(doc_type={self.doc_type!r}, stem={self.stem}, "
            f"retain_stopwords={self.retain_stopwords})"
        )

    def __call__(self, text: str) -> list[str]:
        return self.tokens(text)

    def iter_tokens(self, text: str) -> Iterator[str]:
        """Lazily yield the filtered tokens of `text`. Each call starts over."""
        if self.doc_type == DOC_TYPE_HTML:
            text = strip_html(text)
        for candidate in _SPLIT_PATTERN.split(text):
            if not candidate:
                continue
            token = candidate.lower()
            if not token.isalpha():
                continue
            if not self.retain_stopwords and token in self.stopwords:
                continue
            if self.stem:
                token = stem(token)
            if token:
                yield token

    def tokens(self, text: str) -> list[str]:
        return list(self.iter_tokens(text))

    def term_vector(self, text: str) -> TermVector:
        return TermVector.from_tokens(self.iter_tokens(text))

    def ordered_unique_tokens(self, text: str) -> list[str]:
        """Unique tokens in order of first occurrence."""
        return list(dict.fromkeys(self.iter_tokens(text)))

    def positional(self) -> Tokenizer:
        """The stopword-retaining counterpart of this tokenizer."""
        return Tokenizer(self.doc_type, self.stem, retain_stopwords=True, stopwords=self.stopwords)


__all__ = ["ENGLISH_STOPWORDS", "Tokenizer", "stem", "strip_html"]
