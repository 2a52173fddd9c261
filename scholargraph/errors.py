"""Error taxonomy for graph builds.

Only InputValidationError reaches callers of build_graph; the others are
raised and caught inside the pipeline so a build degrades to a partial
but valid graph.
"""


class GraphBuildError(Exception):
    """Base class for graph build errors."""


class InputValidationError(GraphBuildError, ValueError):
    """The paper list is empty or malformed."""


class DetectorFailure(GraphBuildError):
    """A relationship detector raised; its candidates are dropped."""

    def __init__(self, detector, cause):
        self.detector = detector
        self.cause = cause
        super().__init__(f"{detector} detector failed: {cause}")


class PersistenceFailure(GraphBuildError):
    """A background write to the graph store failed."""

    def __init__(self, topic, cause):
        self.topic = topic
        self.cause = cause
        super().__init__(f"Persisting graph for topic {topic!r} failed: {cause}")


class CacheCorruption(GraphBuildError):
    """A cached artifact failed validation and must be recomputed."""
