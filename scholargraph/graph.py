"""Deduplicate and rank relationships, and prepare visualization data."""

import logging
from collections import defaultdict

from .config import EDGE_BUDGET, TYPE_COLORS, TYPE_WEIGHTS, VIZ_ABSTRACT_CHARS, VIZ_MAX_AUTHORS

logger = logging.getLogger(__name__)


def deduplicate_relationships(relationships):
    """Drop repeated edges of the same type between the same two papers.

    The key is the unordered (source, target) pair plus the type; the
    first edge seen wins. Edges of different types between the same pair
    are all kept.
    """
    seen_edges = {}
    for rel in relationships:
        key = (rel.pair, rel.type)
        if key not in seen_edges:
            seen_edges[key] = rel
    return list(seen_edges.values())


def relationship_score(rel):
    return TYPE_WEIGHTS.get(rel.type, 0) * rel.strength


def rank_relationships(relationships):
    """Sort by type weight x strength, highest first. Ties keep input order."""
    return sorted(relationships, key=relationship_score, reverse=True)


def select_top_relationships(relationships, budget=EDGE_BUDGET):
    """Deduplicate, rank and truncate to the global edge budget."""
    unique = deduplicate_relationships(relationships)
    ranked = rank_relationships(unique)
    if len(ranked) > budget:
        logger.info("Keeping top %d of %d relationships", budget, len(ranked))
    return ranked[:max(0, budget)]


def count_by_type(relationships):
    counts = defaultdict(int)
    for rel in relationships:
        counts[rel.type] += 1
    return dict(counts)


def _describe(rel):
    meta = rel.metadata or {}
    if rel.type == "author" and meta.get("shared_authors"):
        return "Shared authors: " + ", ".join(meta["shared_authors"])
    if rel.type == "content" and meta.get("shared_keywords"):
        return "Shared keywords: " + ", ".join(meta["shared_keywords"])
    if rel.type == "venue" and meta.get("venue"):
        return f"Same venue: {meta['venue']}"
    if rel.type == "temporal" and "year_difference" in meta:
        return f"Published {meta['year_difference']} year(s) apart"
    if rel.type == "citation":
        return "Cites"
    return ""


def _truncate(text, limit=VIZ_ABSTRACT_CHARS):
    if not text:
        return "No abstract available"
    return text[:limit] + ("..." if len(text) > limit else "")


def prepare_viz_data(artifact):
    """Prepare a graph artifact for a D3.js force-graph frontend.

    Returns dict with "nodes" and "links" plus the build summary fields.
    Node payloads are trimmed (first authors, shortened abstract) to keep
    the response small.
    """
    degree = defaultdict(int)
    for rel in artifact.edges:
        degree[rel.source_id] += 1
        degree[rel.target_id] += 1

    nodes = []
    for paper in artifact.nodes:
        nodes.append({
            "id": paper.id,
            "title": paper.title or "Untitled Paper",
            "authors": list(paper.authors[:VIZ_MAX_AUTHORS]) or ["Unknown Author"],
            "year": paper.year,
            "venue": paper.venue or "Unknown Venue",
            "citation_count": paper.citation_count,
            "abstract": _truncate(paper.abstract),
            "degree": degree.get(paper.id, 0),
        })

    links = []
    for rel in artifact.edges:
        links.append({
            "source": rel.source_id,
            "target": rel.target_id,
            "type": rel.type,
            "strength": rel.strength,
            "color": TYPE_COLORS.get(rel.type, "#95A5A6"),
            "detail": _describe(rel),
        })

    return {
        "topic": artifact.topic,
        "cached": artifact.cached,
        "nodes": nodes,
        "links": links,
        "edge_types": count_by_type(artifact.edges),
    }
