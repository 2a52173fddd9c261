"""Temporally stratified sampling of large paper sets."""

import datetime
import logging
import math
from collections import defaultdict

from .config import MAX_COMPARISONS

logger = logging.getLogger(__name__)


def sample_size_for_budget(max_comparisons=MAX_COMPARISONS):
    """Largest sample whose pairwise comparisons stay within the budget.

    50000 comparisons -> 223 papers.
    """
    if max_comparisons <= 0:
        return 0
    return math.isqrt(int(max_comparisons))


def stratified_sample(papers, target_size, default_year=None):
    """Pick up to target_size papers balanced across publication years.

    Papers are bucketed by year (missing year -> default_year, the current
    year unless given). Each bucket is sorted by citation count, most cited
    first, and contributes ceil(target_size / n_buckets) papers in
    ascending year order. The concatenation is truncated to target_size.

    Args:
        papers: sequence of PaperRecord
        target_size: maximum number of papers to return
        default_year: bucket for papers without a year

    Returns:
        list of PaperRecord, at most min(target_size, len(papers)) long.
    """
    if target_size <= 0 or not papers:
        return []
    if default_year is None:
        default_year = datetime.date.today().year

    by_year = defaultdict(list)
    for paper in papers:
        year = paper.year if paper.year is not None else default_year
        by_year[year].append(paper)

    per_year = math.ceil(target_size / len(by_year))
    sample = []
    for year in sorted(by_year):
        bucket = sorted(by_year[year], key=lambda p: p.citation_count, reverse=True)
        sample.extend(bucket[:per_year])

    sample = sample[:target_size]
    if len(sample) < len(papers):
        logger.info("Sampled %d of %d papers across %d years",
                    len(sample), len(papers), len(by_year))
    return sample
