"""TTL cache for complete graph builds, keyed by a fingerprint of the inputs."""

import hashlib
import json
import logging
import threading
import time

from .config import CACHE_MAX_SIZE, CACHE_TTL_MINUTES
from .errors import CacheCorruption
from .models import GraphArtifact, PaperRecord, Relationship

logger = logging.getLogger(__name__)


def graph_fingerprint(topic, paper_ids):
    """Fixed-width key for a (topic, paper id set) pair.

    Order and repeats of the ids do not matter.
    """
    payload = json.dumps([topic, sorted({str(i) for i in paper_ids})],
                         separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def validate_artifact(key, artifact):
    """Raise CacheCorruption if a cached value is not a usable artifact."""
    if not isinstance(artifact, GraphArtifact):
        raise CacheCorruption(f"Entry {key[:12]} is {type(artifact).__name__}, not a graph")
    if not isinstance(artifact.fingerprint, str):
        raise CacheCorruption(f"Entry {key[:12]} has no usable fingerprint")
    if artifact.fingerprint != key:
        raise CacheCorruption(f"Entry {key[:12]} carries fingerprint {artifact.fingerprint[:12]}")
    if not all(isinstance(p, PaperRecord) for p in artifact.nodes):
        raise CacheCorruption(f"Entry {key[:12]} holds a node that is not a paper")
    if not all(isinstance(r, Relationship) for r in artifact.edges):
        raise CacheCorruption(f"Entry {key[:12]} holds an edge that is not a relationship")
    node_ids = {p.id for p in artifact.nodes}
    for rel in artifact.edges:
        if not isinstance(rel.strength, (int, float)):
            raise CacheCorruption(f"Entry {key[:12]} has a non-numeric edge strength")
        if not 0.0 <= rel.strength <= 1.0:
            raise CacheCorruption(f"Entry {key[:12]} has edge strength {rel.strength}")
        if rel.source_id not in node_ids or rel.target_id not in node_ids:
            raise CacheCorruption(f"Entry {key[:12]} has an edge to an unknown paper")


class GraphCache:
    """Thread-safe in-memory cache with per-entry TTL and a size cap.

    Expired entries are dropped lazily on read. When an insert would exceed
    max_size, expired entries are swept first, then the oldest entries are
    evicted.
    """

    def __init__(self, max_size=CACHE_MAX_SIZE, ttl_minutes=CACHE_TTL_MINUTES,
                 clock=time.time):
        self.max_size = max_size
        self.default_ttl = ttl_minutes * 60
        self._clock = clock
        self._entries = {}  # key -> (artifact, stored_at, ttl_seconds)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key):
        """Return the cached artifact for key, or None if absent, expired or corrupt."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            artifact, stored_at, ttl = entry
            if self._clock() - stored_at > ttl:
                del self._entries[key]
                self.misses += 1
                return None

            try:
                validate_artifact(key, artifact)
            except CacheCorruption as e:
                logger.warning("Discarding corrupt cache entry: %s", e)
                del self._entries[key]
                self.misses += 1
                return None

            self.hits += 1
            return artifact

    def set(self, key, artifact, ttl_minutes=None):
        ttl = self.default_ttl if ttl_minutes is None else ttl_minutes * 60
        with self._lock:
            if self.max_size <= 0:
                return
            if key not in self._entries and len(self._entries) >= self.max_size:
                self._make_room()
            self._entries[key] = (artifact, self._clock(), ttl)

    def _make_room(self):
        self._sweep_expired()
        if len(self._entries) < self.max_size:
            return
        by_age = sorted(self._entries.items(), key=lambda item: item[1][1])
        excess = len(self._entries) - self.max_size + 1
        for key, _ in by_age[:excess]:
            del self._entries[key]
        logger.info("Evicted %d oldest graph cache entries", excess)

    def _sweep_expired(self):
        now = self._clock()
        expired = [
            key for key, (_, stored_at, ttl) in self._entries.items()
            if now - stored_at > ttl
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self):
        with self._lock:
            self._sweep_expired()
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "hits": self.hits,
                "misses": self.misses,
            }

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key):
        with self._lock:
            return key in self._entries
