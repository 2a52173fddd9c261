"""Relationship detectors: citation, author, venue, content and temporal.

Each detector takes (papers, indexes, rng, config) and returns its own list
of Relationship candidates. Detectors read only the sample and the frozen
indexes, so they can run in any order or concurrently.
"""

import logging
import random
from itertools import islice

from .config import (
    AUTHOR_STRENGTH_MAX,
    AUTHOR_STRENGTH_STEP,
    CITATION_STRENGTH,
    CONTENT_STRENGTH_MAX,
    CONTENT_STRENGTH_STEP,
    TEMPORAL_STRENGTH,
    TEMPORAL_YEAR_WINDOW,
    VENUE_STRENGTH,
    BuildConfig,
)
from .errors import DetectorFailure
from .index import normalize_key
from .models import Relationship

logger = logging.getLogger(__name__)


def _later(indexes, paper, candidates):
    """Yield candidates that come after paper in the sample, so each
    unordered pair is visited once."""
    position = indexes.positions[paper.id]
    for other in candidates:
        if indexes.positions[other.id] > position:
            yield other


def find_citation_relationships(papers, indexes, rng, config):
    """Citation edges between sampled papers, from reference and cited-by ids.

    Deterministic: never subsampled.
    """
    relationships = []
    for paper in papers:
        for ref_id in sorted(paper.reference_ids):
            if ref_id in indexes.positions and ref_id != paper.id:
                relationships.append(Relationship(
                    paper.id, ref_id, "citation", CITATION_STRENGTH,
                    {"citation_count": paper.citation_count},
                ))
        for citer_id in sorted(paper.cited_by_ids):
            if citer_id in indexes.positions and citer_id != paper.id:
                relationships.append(Relationship(
                    citer_id, paper.id, "citation", CITATION_STRENGTH,
                    {"citation_count": paper.citation_count},
                ))
    return relationships


def find_author_relationships(papers, indexes, rng, config):
    """Edges between papers sharing at least one author (case-insensitive)."""
    relationships = []
    for paper in papers:
        related = {}
        for author in paper.authors:
            for other in _later(indexes, paper, indexes.papers_by_author(author)):
                related.setdefault(other.id, other)

        for other in related.values():
            other_names = {normalize_key(a) for a in other.authors}
            shared = []
            seen = set()
            for author in paper.authors:
                key = normalize_key(author)
                if key in other_names and key not in seen:
                    seen.add(key)
                    shared.append(author)
            if not shared:
                continue
            strength = min(AUTHOR_STRENGTH_MAX, len(shared) * AUTHOR_STRENGTH_STEP)
            relationships.append(Relationship(
                paper.id, other.id, "author", strength,
                {"shared_authors": shared},
            ))
    return relationships


def find_venue_relationships(papers, indexes, rng, config):
    """Edges between papers from the same venue, kept at venue_keep_rate."""
    keep_rate = config.venue_keep_rate
    if keep_rate <= 0:
        return []

    relationships = []
    for paper in papers:
        if not paper.venue:
            continue
        for other in _later(indexes, paper, indexes.papers_by_venue(paper.venue)):
            if rng.random() < keep_rate:
                relationships.append(Relationship(
                    paper.id, other.id, "venue", VENUE_STRENGTH,
                    {"venue": paper.venue.strip()},
                ))
    return relationships


def find_content_relationships(papers, indexes, rng, config):
    """Edges between papers whose title/abstract keywords overlap enough."""
    threshold = max(1, config.content_overlap_threshold)
    relationships = []
    for paper in papers:
        mine = indexes.keywords_for(paper.id)
        overlap = {}
        for keyword in mine:
            for other in _later(indexes, paper, indexes.keywords.get(keyword, ())):
                overlap[other.id] = overlap.get(other.id, 0) + 1

        for other_id, count in overlap.items():
            if count < threshold:
                continue
            theirs = set(indexes.keywords_for(other_id))
            shared = [k for k in mine if k in theirs]
            relationships.append(Relationship(
                paper.id, other_id, "content",
                min(CONTENT_STRENGTH_MAX, count * CONTENT_STRENGTH_STEP),
                {"shared_keywords": shared[:5]},
            ))
    return relationships


def find_temporal_relationships(papers, indexes, rng, config):
    """Edges between papers published within a year of each other.

    Only the first temporal_edges_per_paper contemporaries that follow a
    paper in the sample are considered, each kept at temporal_keep_rate.
    """
    keep_rate = config.temporal_keep_rate
    cap = config.temporal_edges_per_paper
    if keep_rate <= 0 or cap <= 0:
        return []

    relationships = []
    for i, paper in enumerate(papers):
        if paper.year is None:
            continue
        contemporaries = (
            other for other in papers[i + 1:]
            if other.year is not None
            and abs(other.year - paper.year) <= TEMPORAL_YEAR_WINDOW
        )
        for other in islice(contemporaries, cap):
            if rng.random() < keep_rate:
                relationships.append(Relationship(
                    paper.id, other.id, "temporal", TEMPORAL_STRENGTH,
                    {"year_difference": abs(other.year - paper.year)},
                ))
    return relationships


DETECTORS = (
    ("author", find_author_relationships),
    ("venue", find_venue_relationships),
    ("content", find_content_relationships),
    ("temporal", find_temporal_relationships),
    ("citation", find_citation_relationships),
)


def _run_detector(name, detector, papers, indexes, rng, config):
    try:
        return list(detector(papers, indexes, rng, config))
    except Exception as e:
        failure = DetectorFailure(name, e)
        logger.warning("%s; continuing without %s relationships", failure, name)
        return []


def run_detectors(papers, indexes, rng=None, config=None, detectors=DETECTORS,
                  executor=None):
    """Run every detector and concatenate their candidates.

    Each detector gets its own random.Random seeded from rng in detector
    order, so results do not depend on scheduling. With an executor the
    detectors run concurrently. A detector that raises is logged and
    contributes nothing.

    Args:
        papers: sampled PaperRecords, in sample order
        indexes: PaperIndexes built over the same papers
        rng: random.Random driving the subsampling detectors
        config: BuildConfig
        detectors: sequence of (name, callable) pairs
        executor: optional concurrent.futures.Executor

    Returns:
        list of Relationship, grouped by detector in detector order.
    """
    if rng is None:
        rng = random.Random()
    if config is None:
        config = BuildConfig()

    jobs = [
        (name, detector, random.Random(rng.getrandbits(64)))
        for name, detector in detectors
    ]

    if executor is None:
        results = [
            _run_detector(name, detector, papers, indexes, child_rng, config)
            for name, detector, child_rng in jobs
        ]
    else:
        futures = [
            executor.submit(_run_detector, name, detector, papers, indexes,
                            child_rng, config)
            for name, detector, child_rng in jobs
        ]
        results = [f.result() for f in futures]

    relationships = []
    for (name, _, _), found in zip(jobs, results):
        logger.debug("%s detector produced %d candidates", name, len(found))
        relationships.extend(found)
    return relationships
