"""Build, cache and persist relationship graphs for a set of papers."""

import dataclasses
import logging
import random
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor

from .cache import GraphCache, graph_fingerprint
from .config import BuildConfig
from .detect import DETECTORS, run_detectors
from .errors import InputValidationError
from .graph import count_by_type, select_top_relationships
from .index import build_indexes
from .models import GraphArtifact, parse_papers
from .persist import persist_in_background
from .sample import sample_size_for_budget, stratified_sample

logger = logging.getLogger(__name__)


class GraphBuilder:
    """Runs the sample -> index -> detect -> rank pipeline behind a cache.

    Args:
        config: BuildConfig with budgets, keep-rates and cache settings
        cache: GraphCache to use (one is created from config if omitted)
        store: optional GraphStore; finished builds are written to it on a
            background thread
        seed: makes the randomized detectors reproducible. Each build
            derives its own random source from (seed, fingerprint).
        parallel_detectors: run the detectors of one build on a thread pool
        detectors: (name, callable) pairs, defaults to all five detectors
        clock: time source for created_at and cache expiry
    """

    def __init__(self, config=None, cache=None, store=None, seed=None,
                 parallel_detectors=False, detectors=DETECTORS, clock=time.time):
        self.config = config or BuildConfig()
        if cache is None:
            cache = GraphCache(self.config.cache_max_size,
                               self.config.cache_ttl_minutes, clock=clock)
        self.cache = cache
        self.store = store
        self.seed = seed
        self.detectors = tuple(detectors)
        self._clock = clock

        self._in_flight: dict[str, Future] = {}
        self._in_flight_lock = threading.Lock()

        self._detector_pool = None
        if parallel_detectors:
            self._detector_pool = ThreadPoolExecutor(
                max_workers=max(1, len(self.detectors)),
                thread_name_prefix="detector",
            )
        self._store_pool = None
        if store is not None:
            self._store_pool = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="graph-store",
            )
        self.last_persist: Future | None = None

    def build_graph(self, papers, topic=None) -> GraphArtifact:
        """Build (or fetch from cache) the relationship graph for papers.

        Papers may be PaperRecords or dicts. Raises InputValidationError for
        an empty or malformed list; every other failure degrades to a
        smaller graph.
        """
        records = parse_papers(papers)
        topic = self._resolve_topic(topic)
        key = graph_fingerprint(topic, [p.id for p in records])

        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Returning cached graph for topic %r", topic)
            return dataclasses.replace(cached, cached=True)

        with self._in_flight_lock:
            pending = self._in_flight.get(key)
            if pending is None:
                pending = Future()
                self._in_flight[key] = pending
                owner = True
            else:
                owner = False

        if not owner:
            logger.info("Waiting for in-flight build of topic %r", topic)
            return dataclasses.replace(pending.result(), cached=True)

        try:
            artifact = self._compute(records, topic, key)
            self.cache.set(key, artifact, self.config.cache_ttl_minutes)
            pending.set_result(artifact)
        except BaseException as e:
            pending.set_exception(e)
            raise
        finally:
            with self._in_flight_lock:
                self._in_flight.pop(key, None)

        if self.store is not None:
            self.last_persist = persist_in_background(
                self.store, artifact, self._store_pool)
        return artifact

    def _resolve_topic(self, topic):
        if topic is None:
            return self.config.default_topic
        if not isinstance(topic, str):
            raise InputValidationError("Topic must be a string")
        return topic.strip() or self.config.default_topic

    def _rng_for(self, key):
        if self.seed is None:
            return random.Random()
        return random.Random(f"{self.seed}:{key}")

    def _compute(self, records, topic, key):
        config = self.config
        limited = records[:config.max_input_papers]
        if len(limited) < len(records):
            logger.info("Using first %d of %d papers", len(limited), len(records))

        target = min(sample_size_for_budget(config.max_comparisons), len(limited))
        sampled = stratified_sample(limited, target)
        indexes = build_indexes(sampled, config.max_keywords_per_paper)

        candidates = run_detectors(
            sampled, indexes, self._rng_for(key), config,
            detectors=self.detectors, executor=self._detector_pool,
        )
        edges = select_top_relationships(candidates, config.edge_budget)

        logger.info(
            "Built graph for topic %r: %d nodes (%d sampled), %d of %d candidate edges %s",
            topic, len(limited), len(sampled), len(edges), len(candidates),
            count_by_type(edges),
        )
        return GraphArtifact(
            nodes=tuple(limited),
            edges=tuple(edges),
            fingerprint=key,
            created_at=self._clock(),
            ttl=config.cache_ttl_minutes * 60,
            topic=topic,
            sampled_count=len(sampled),
            total_papers_provided=len(records),
        )

    def close(self, wait=True):
        """Shut down the detector and store thread pools."""
        for pool in (self._detector_pool, self._store_pool):
            if pool is not None:
                pool.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


_default_builder = None
_default_lock = threading.Lock()


def get_default_builder():
    global _default_builder
    with _default_lock:
        if _default_builder is None:
            _default_builder = GraphBuilder()
        return _default_builder


def build_graph(papers, topic=None):
    """Build a graph with the shared default GraphBuilder."""
    return get_default_builder().build_graph(papers, topic)
