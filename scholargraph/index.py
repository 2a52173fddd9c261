"""Inverted indexes over sampled papers: author, venue and keyword buckets."""

import re
from dataclasses import dataclass
from types import MappingProxyType

from .config import MAX_KEYWORDS_PER_PAPER, MIN_KEYWORD_LENGTH, STOP_WORDS

_PUNCTUATION = re.compile(r"[^\w\s]", re.ASCII)


def normalize_key(value):
    """Lowercase and strip an author or venue name for index lookups."""
    return value.strip().lower()


def extract_keywords(text, max_keywords=MAX_KEYWORDS_PER_PAPER):
    """Extract presence-only keywords from free text.

    Lowercases, replaces every character other than ASCII letters, digits,
    underscores and whitespace with a space, drops stop words and
    tokens shorter than MIN_KEYWORD_LENGTH, and keeps the first
    max_keywords distinct tokens in order of appearance.
    """
    if not text:
        return ()
    keywords = []
    seen = set()
    for token in _PUNCTUATION.sub(" ", text.lower()).split():
        if len(token) < MIN_KEYWORD_LENGTH or token in STOP_WORDS or token in seen:
            continue
        seen.add(token)
        keywords.append(token)
        if len(keywords) >= max_keywords:
            break
    return tuple(keywords)


def paper_text(paper):
    return f"{paper.title} {paper.abstract or ''}"


@dataclass(frozen=True)
class PaperIndexes:
    """Read-only lookup tables shared by the detectors of one build.

    Buckets hold papers in sample order, each paper at most once per bucket.
    """

    authors: MappingProxyType
    venues: MappingProxyType
    keywords: MappingProxyType
    paper_keywords: MappingProxyType
    positions: MappingProxyType

    def papers_by_author(self, name):
        return self.authors.get(normalize_key(name), ())

    def papers_by_venue(self, venue):
        return self.venues.get(normalize_key(venue), ())

    def keywords_for(self, paper_id):
        return self.paper_keywords.get(paper_id, ())


def _add(index, key, paper):
    bucket = index.setdefault(key, [])
    if not bucket or bucket[-1].id != paper.id:
        bucket.append(paper)


def _freeze(index):
    return MappingProxyType({k: tuple(v) for k, v in index.items()})


def build_indexes(papers, max_keywords=MAX_KEYWORDS_PER_PAPER):
    """Build author, venue and keyword indexes for the sampled papers.

    Turns pairwise comparison into bucket lookups: O(S * avg bucket size)
    instead of O(S^2).
    """
    authors = {}
    venues = {}
    keywords = {}
    paper_keywords = {}
    positions = {}

    for position, paper in enumerate(papers):
        positions[paper.id] = position
        for author in paper.authors:
            key = normalize_key(author)
            if key:
                _add(authors, key, paper)

        if paper.venue and normalize_key(paper.venue):
            _add(venues, normalize_key(paper.venue), paper)

        tokens = extract_keywords(paper_text(paper), max_keywords)
        paper_keywords[paper.id] = tokens
        for token in tokens:
            _add(keywords, token, paper)

    return PaperIndexes(
        authors=_freeze(authors),
        venues=_freeze(venues),
        keywords=_freeze(keywords),
        paper_keywords=MappingProxyType(paper_keywords),
        positions=MappingProxyType(positions),
    )
