"""scholargraph: Relationship graphs over sets of research papers."""

from .cache import GraphCache, graph_fingerprint
from .config import BuildConfig, TYPE_COLORS, TYPE_WEIGHTS
from .detect import DETECTORS, run_detectors
from .engine import GraphBuilder, build_graph
from .errors import (
    CacheCorruption,
    DetectorFailure,
    GraphBuildError,
    InputValidationError,
    PersistenceFailure,
)
from .graph import prepare_viz_data, select_top_relationships
from .index import build_indexes, extract_keywords
from .models import (
    GraphArtifact,
    PaperRecord,
    Relationship,
    artifact_to_dict,
    paper_from_dict,
)
from .persist import JsonFileGraphStore
from .sample import sample_size_for_budget, stratified_sample

__all__ = [
    "GraphCache",
    "graph_fingerprint",
    "BuildConfig",
    "TYPE_COLORS",
    "TYPE_WEIGHTS",
    "DETECTORS",
    "run_detectors",
    "GraphBuilder",
    "build_graph",
    "CacheCorruption",
    "DetectorFailure",
    "GraphBuildError",
    "InputValidationError",
    "PersistenceFailure",
    "prepare_viz_data",
    "select_top_relationships",
    "build_indexes",
    "extract_keywords",
    "GraphArtifact",
    "PaperRecord",
    "Relationship",
    "artifact_to_dict",
    "paper_from_dict",
    "JsonFileGraphStore",
    "sample_size_for_budget",
    "stratified_sample",
]
