"""Paper, relationship and graph artifact records."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from .errors import InputValidationError

# Accepted spellings for each field, first match wins
_FIELD_ALIASES = {
    "citation_count": ("citation_count", "citationCount"),
    "reference_ids": ("reference_ids", "referenceIds", "references"),
    "cited_by_ids": ("cited_by_ids", "citedByIds", "citations"),
}


@dataclass(frozen=True, slots=True)
class PaperRecord:
    """One paper as supplied by the caller. Never mutated by the engine."""

    id: str
    title: str = ""
    authors: tuple[str, ...] = ()
    year: int | None = None
    venue: str | None = None
    abstract: str | None = None
    citation_count: int = 0
    reference_ids: frozenset[str] = frozenset()
    cited_by_ids: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class Relationship:
    """Typed, weighted edge between two papers."""

    source_id: str
    target_id: str
    type: str
    strength: float
    metadata: dict = field(default_factory=dict)

    @property
    def pair(self) -> frozenset[str]:
        return frozenset((self.source_id, self.target_id))


@dataclass(frozen=True, slots=True)
class GraphArtifact:
    """Result of one graph build, as cached and returned to callers."""

    nodes: tuple[PaperRecord, ...]
    edges: tuple[Relationship, ...]
    fingerprint: str
    created_at: float
    ttl: float
    topic: str
    sampled_count: int = 0
    total_papers_provided: int = 0
    cached: bool = False


def _pick(data, name):
    for key in _FIELD_ALIASES.get(name, (name,)):
        if key in data:
            return data[key]
    return None


def _as_id(value, what):
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InputValidationError(f"{what} must be a string or integer id, got {value!r}")
    value = str(value).strip()
    if not value:
        raise InputValidationError(f"{what} must not be empty")
    return value


def _as_optional_text(value, what):
    if value is None:
        return None
    if not isinstance(value, str):
        raise InputValidationError(f"{what} must be a string, got {type(value).__name__}")
    return value


def _as_id_set(value, what):
    if value is None:
        return frozenset()
    if isinstance(value, (str, bytes)) or not isinstance(value, (Sequence, set, frozenset)):
        raise InputValidationError(f"{what} must be a list of ids")
    return frozenset(_as_id(v, what) for v in value)


def paper_from_dict(data: Mapping) -> PaperRecord:
    """Parse a JSON-like dict into a PaperRecord.

    Accepts snake_case keys as well as the camelCase spellings used by the
    paper search service (citationCount, referenceIds/references,
    citedByIds/citations). Raises InputValidationError on malformed input.
    """
    if not isinstance(data, Mapping):
        raise InputValidationError(f"Paper must be an object, got {type(data).__name__}")

    paper_id = _as_id(data.get("id"), "Paper id")
    what = f"Paper {paper_id!r}"

    title = data.get("title") or ""
    if not isinstance(title, str):
        raise InputValidationError(f"{what}: title must be a string")

    authors = data.get("authors") or []
    if isinstance(authors, str) or not isinstance(authors, Sequence):
        raise InputValidationError(f"{what}: authors must be a list of names")
    if not all(isinstance(a, str) for a in authors):
        raise InputValidationError(f"{what}: authors must be strings")

    year = data.get("year")
    if isinstance(year, str) and year.strip().isdigit():
        year = int(year.strip())
    if year is not None and (isinstance(year, bool) or not isinstance(year, int)):
        raise InputValidationError(f"{what}: year must be an integer, got {year!r}")

    citation_count = _pick(data, "citation_count")
    if citation_count is None:
        citation_count = 0
    if isinstance(citation_count, bool) or not isinstance(citation_count, int):
        raise InputValidationError(f"{what}: citation count must be an integer")
    if citation_count < 0:
        raise InputValidationError(f"{what}: citation count must be >= 0")

    return PaperRecord(
        id=paper_id,
        title=title,
        authors=tuple(authors),
        year=year,
        venue=_as_optional_text(data.get("venue"), f"{what}: venue"),
        abstract=_as_optional_text(data.get("abstract"), f"{what}: abstract"),
        citation_count=citation_count,
        reference_ids=_as_id_set(_pick(data, "reference_ids"), f"{what}: references"),
        cited_by_ids=_as_id_set(_pick(data, "cited_by_ids"), f"{what}: citations"),
    )


def check_record(paper: PaperRecord) -> PaperRecord:
    """Apply the paper_from_dict field rules to an already-built record."""
    if not isinstance(paper.id, str) or not paper.id.strip():
        raise InputValidationError(f"Paper id must be a non-empty string, got {paper.id!r}")
    what = f"Paper {paper.id!r}"

    if not isinstance(paper.title, str):
        raise InputValidationError(f"{what}: title must be a string")
    if not isinstance(paper.authors, (tuple, list)) or not all(isinstance(a, str) for a in paper.authors):
        raise InputValidationError(f"{what}: authors must be a list of names")
    if paper.year is not None and (isinstance(paper.year, bool) or not isinstance(paper.year, int)):
        raise InputValidationError(f"{what}: year must be an integer, got {paper.year!r}")
    _as_optional_text(paper.venue, f"{what}: venue")
    _as_optional_text(paper.abstract, f"{what}: abstract")

    count = paper.citation_count
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise InputValidationError(f"{what}: citation count must be an integer >= 0")

    for name in ("reference_ids", "cited_by_ids"):
        ids = getattr(paper, name)
        if not isinstance(ids, (frozenset, set, tuple, list)) or not all(
                isinstance(i, str) and i for i in ids):
            raise InputValidationError(f"{what}: {name} must be a set of string ids")
    return paper


def parse_papers(papers) -> tuple[PaperRecord, ...]:
    """Validate a caller-supplied paper list.

    Items may be PaperRecords or dicts; both get the same field checks.
    Raises InputValidationError for an empty or non-list input, a malformed
    paper and duplicate ids.
    """
    if papers is None or isinstance(papers, (str, bytes, Mapping)) or not isinstance(papers, Sequence):
        raise InputValidationError("Papers must be a list")
    if not papers:
        raise InputValidationError("Papers list (non-empty) is required")

    parsed = []
    seen = set()
    for item in papers:
        paper = check_record(item) if isinstance(item, PaperRecord) else paper_from_dict(item)
        if paper.id in seen:
            raise InputValidationError(f"Duplicate paper id {paper.id!r}")
        seen.add(paper.id)
        parsed.append(paper)
    return tuple(parsed)


def paper_to_dict(paper: PaperRecord) -> dict:
    return {
        "id": paper.id,
        "title": paper.title,
        "authors": list(paper.authors),
        "year": paper.year,
        "venue": paper.venue,
        "abstract": paper.abstract,
        "citation_count": paper.citation_count,
        "reference_ids": sorted(paper.reference_ids),
        "cited_by_ids": sorted(paper.cited_by_ids),
    }


def relationship_to_dict(rel: Relationship) -> dict:
    return {
        "source": rel.source_id,
        "target": rel.target_id,
        "type": rel.type,
        "strength": rel.strength,
        "metadata": dict(rel.metadata),
    }


def artifact_to_dict(artifact: GraphArtifact) -> dict:
    """JSON-ready form of a GraphArtifact."""
    return {
        "topic": artifact.topic,
        "fingerprint": artifact.fingerprint,
        "created_at": artifact.created_at,
        "ttl": artifact.ttl,
        "cached": artifact.cached,
        "total_papers_provided": artifact.total_papers_provided,
        "papers_in_graph": len(artifact.nodes),
        "sampled_papers": artifact.sampled_count,
        "nodes": [paper_to_dict(p) for p in artifact.nodes],
        "edges": [relationship_to_dict(r) for r in artifact.edges],
    }
