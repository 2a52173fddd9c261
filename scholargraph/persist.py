"""Hand finished graphs to an external graph store without blocking the build."""

import hashlib
import json
import logging
import re
from pathlib import Path
from typing import Protocol

from .errors import PersistenceFailure
from .models import paper_to_dict, relationship_to_dict

logger = logging.getLogger(__name__)


class GraphStore(Protocol):
    """Anything that can take a built graph, e.g. a Neo4j writer."""

    def persist(self, nodes, edges, topic): ...


def slugify(text, max_len=50):
    """Convert a topic to a filesystem-safe slug."""
    s = text.lower().strip()
    s = re.sub(r'[^a-z0-9\s-]', '', s)
    s = re.sub(r'[\s]+', '-', s)
    s = re.sub(r'-+', '-', s).strip('-')
    return s[:max_len] or "graph"


class JsonFileGraphStore:
    """Writes each topic's latest graph to <directory>/<topic-slug>-<hash>.json.

    The hash is taken over the exact topic string, so topics that slugify the
    same way still get separate files.
    """

    def __init__(self, directory):
        self.directory = Path(directory)

    def path_for(self, topic):
        digest = hashlib.sha256(topic.encode("utf-8")).hexdigest()[:12]
        return self.directory / f"{slugify(topic)}-{digest}.json"

    def persist(self, nodes, edges, topic):
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(topic)
        payload = {
            "topic": topic,
            "nodes": [paper_to_dict(p) for p in nodes],
            "edges": [relationship_to_dict(r) for r in edges],
        }
        path.write_text(json.dumps(payload, indent=2))
        return path


def _persist(store, nodes, edges, topic):
    try:
        store.persist(nodes, edges, topic)
    except Exception as e:
        logger.warning("%s", PersistenceFailure(topic, e))
        return False
    logger.info("Stored graph for topic %r (%d nodes, %d edges)",
                topic, len(nodes), len(edges))
    return True


def persist_in_background(store, artifact, executor):
    """Submit a store write to executor and return its Future.

    The future resolves to True on success and False on failure; failures
    are logged, never raised. Returns None if the executor has already been
    shut down.
    """
    try:
        return executor.submit(_persist, store, artifact.nodes, artifact.edges,
                               artifact.topic)
    except RuntimeError as e:
        logger.warning("%s", PersistenceFailure(artifact.topic, e))
        return None
