"""Shared test fixtures for the relationship graph test suite."""

import pytest


def make_paper(pid, **kwargs):
    from scholargraph.models import PaperRecord

    kwargs.setdefault("title", f"Paper {pid}")
    if "authors" in kwargs:
        kwargs["authors"] = tuple(kwargs["authors"])
    for key in ("reference_ids", "cited_by_ids"):
        if key in kwargs:
            kwargs[key] = frozenset(kwargs[key])
    return PaperRecord(id=pid, **kwargs)


@pytest.fixture
def paper_factory():
    return make_paper


@pytest.fixture
def no_sampling_config():
    """Config with the randomized detectors switched off."""
    from scholargraph.config import BuildConfig

    return BuildConfig(venue_keep_rate=0.0, temporal_keep_rate=0.0)


@pytest.fixture
def author_scenario():
    """A and B share one author; C shares nothing with either."""
    return [
        make_paper("A", title="Graph neural networks for molecules",
                   authors=["J. Smith", "A. Jones"], year=2015, venue="NeurIPS",
                   citation_count=40),
        make_paper("B", title="Reinforcement learning in games",
                   authors=["K. Lee", "J. Smith"], year=2016, venue="ICML",
                   citation_count=12),
        make_paper("C", title="Coral reef ecology survey",
                   authors=["M. Brown"], year=2022, venue="Nature",
                   citation_count=3),
    ]


@pytest.fixture
def citation_pair():
    """X cites Y; nothing else relates them."""
    return [
        make_paper("X", title="Sparse attention transformers",
                   authors=["R. Diaz"], year=2021, venue="ACL",
                   citation_count=8, reference_ids=["Y", "outside-1"]),
        make_paper("Y", title="Bayesian hierarchical priors",
                   authors=["T. Kim"], year=2010, venue="JASA",
                   citation_count=90),
    ]


VOCABULARY = [
    "graph", "neural", "network", "learning", "quantum", "protein", "folding",
    "language", "model", "transformer", "attention", "sparse", "bayesian",
    "inference", "robust", "optimization", "federated", "privacy", "vision",
    "segmentation", "clustering", "spectral", "kernel", "diffusion",
]
VENUES = ["NeurIPS", "ICML", "ICLR", "ACL", "CVPR"]
AUTHORS = [f"Author {i}" for i in range(40)]


@pytest.fixture
def large_corpus():
    """600 densely related papers spanning 25 years."""
    papers = []
    for i in range(600):
        words = [VOCABULARY[(i + k * 5) % len(VOCABULARY)] for k in range(6)]
        papers.append(make_paper(
            f"p{i}",
            title=" ".join(words[:3]),
            abstract="We study " + " and ".join(words[3:]),
            authors=[AUTHORS[i % 40], AUTHORS[(i * 7) % 40]],
            year=2000 + i % 25,
            venue=VENUES[i % len(VENUES)],
            citation_count=(i * 37) % 101,
            reference_ids=[f"p{i - 1}"] if i else [],
        ))
    return papers
