"""Tests for scholargraph.engine: the full build pipeline behind the cache."""

import threading
import time
from unittest.mock import MagicMock

import pytest


class TestBuildGraph:
    def test_shared_author_scenario(self, author_scenario, no_sampling_config):
        from scholargraph.engine import GraphBuilder

        artifact = GraphBuilder(no_sampling_config, seed=1).build_graph(author_scenario, "gnn")
        assert len(artifact.edges) == 1
        edge = artifact.edges[0]
        assert edge.type == "author"
        assert edge.pair == frozenset({"A", "B"})
        assert edge.strength == pytest.approx(0.3)
        assert not any("C" in e.pair for e in artifact.edges)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
    def test_citation_scenario_any_seed(self, citation_pair, seed):
        from scholargraph.engine import GraphBuilder

        artifact = GraphBuilder(seed=seed).build_graph(citation_pair, "nlp")
        citations = [e for e in artifact.edges if e.type == "citation"]
        assert len(citations) == 1
        assert (citations[0].source_id, citations[0].target_id) == ("X", "Y")
        assert citations[0].strength == 0.9

    def test_large_corpus_stays_bounded(self, large_corpus):
        from scholargraph.config import BuildConfig
        from scholargraph.engine import GraphBuilder

        config = BuildConfig(max_comparisons=224 * 224)
        artifact = GraphBuilder(config, seed=7).build_graph(large_corpus, "ml")
        assert artifact.sampled_count <= 224
        assert len(artifact.edges) <= 200
        assert artifact.total_papers_provided == 600
        assert len(artifact.nodes) == 500

    def test_edge_invariants(self, large_corpus):
        from scholargraph.engine import GraphBuilder

        artifact = GraphBuilder(seed=3).build_graph(large_corpus[:300], "ml")
        keys = [(e.pair, e.type) for e in artifact.edges]
        assert len(keys) == len(set(keys))
        assert all(0.0 <= e.strength <= 1.0 for e in artifact.edges)
        node_ids = {p.id for p in artifact.nodes}
        assert all(e.source_id in node_ids and e.target_id in node_ids
                   for e in artifact.edges)

    def test_edge_budget_is_configurable(self, large_corpus):
        from scholargraph.config import BuildConfig
        from scholargraph.engine import GraphBuilder

        artifact = GraphBuilder(BuildConfig(edge_budget=25), seed=3).build_graph(large_corpus)
        assert len(artifact.edges) == 25

    def test_unrelated_papers_give_zero_edges(self, paper_factory):
        from scholargraph.engine import GraphBuilder

        papers = [paper_factory("solo", title="Lonely work", year=1990)]
        artifact = GraphBuilder(seed=0).build_graph(papers, "t")
        assert artifact.edges == ()
        assert len(artifact.nodes) == 1

    def test_accepts_dicts(self):
        from scholargraph.engine import GraphBuilder

        papers = [
            {"id": "1", "title": "One", "authors": ["Ann"], "references": ["2"]},
            {"id": "2", "title": "Two", "authors": ["Ann"]},
        ]
        artifact = GraphBuilder(seed=0).build_graph(papers, "t")
        assert {e.type for e in artifact.edges} >= {"citation", "author"}

    def test_default_topic(self, author_scenario):
        from scholargraph.engine import GraphBuilder

        builder = GraphBuilder(seed=0)
        assert builder.build_graph(author_scenario).topic == "research_graph_topic"
        assert builder.build_graph(author_scenario, "  ").topic == "research_graph_topic"

    def test_rejects_empty_input(self):
        from scholargraph.engine import GraphBuilder
        from scholargraph.errors import InputValidationError

        with pytest.raises(InputValidationError):
            GraphBuilder().build_graph([], "t")

    def test_rejects_malformed_input(self):
        from scholargraph.engine import GraphBuilder
        from scholargraph.errors import InputValidationError

        with pytest.raises(InputValidationError):
            GraphBuilder().build_graph([{"title": "no id"}], "t")
        with pytest.raises(InputValidationError):
            GraphBuilder().build_graph("not a list", "t")

    def test_rejects_malformed_records(self):
        from scholargraph.engine import GraphBuilder
        from scholargraph.errors import InputValidationError
        from scholargraph.models import PaperRecord

        with pytest.raises(InputValidationError):
            GraphBuilder().build_graph([PaperRecord(id="a", authors=(None,))], "t")
        with pytest.raises(InputValidationError):
            GraphBuilder().build_graph([PaperRecord(id="a", citation_count=None)], "t")


class TestCaching:
    def test_second_build_is_cached(self, large_corpus):
        from scholargraph.engine import GraphBuilder

        builder = GraphBuilder()
        first = builder.build_graph(large_corpus[:150], "ml")
        second = builder.build_graph(list(reversed(large_corpus[:150])), "ml")
        assert first.cached is False
        assert second.cached is True
        assert second.nodes == first.nodes
        assert second.edges == first.edges

    def test_topic_changes_key(self, author_scenario):
        from scholargraph.engine import GraphBuilder

        builder = GraphBuilder(seed=0)
        builder.build_graph(author_scenario, "one")
        assert builder.build_graph(author_scenario, "two").cached is False

    def test_cache_hit_skips_pipeline(self, author_scenario):
        from scholargraph.engine import GraphBuilder

        calls = []

        def counting(papers, indexes, rng, config):
            calls.append(1)
            return []

        builder = GraphBuilder(detectors=[("counting", counting)])
        builder.build_graph(author_scenario, "t")
        builder.build_graph(author_scenario, "t")
        assert len(calls) == 1

    def test_rebuilds_after_ttl(self, author_scenario):
        from scholargraph.config import BuildConfig
        from scholargraph.engine import GraphBuilder

        now = [0.0]
        builder = GraphBuilder(BuildConfig(cache_ttl_minutes=5), seed=0,
                               clock=lambda: now[0])
        builder.build_graph(author_scenario, "t")
        now[0] += 6 * 60
        assert builder.build_graph(author_scenario, "t").cached is False

    def test_corrupt_cache_entry_is_rebuilt(self, author_scenario, caplog):
        from scholargraph.cache import graph_fingerprint
        from scholargraph.engine import GraphBuilder
        from scholargraph.models import GraphArtifact

        builder = GraphBuilder(seed=0)
        key = graph_fingerprint("t", [p.id for p in author_scenario])
        builder.cache.set(key, GraphArtifact(
            nodes=tuple(author_scenario), edges=({"source": "A"},), fingerprint=key,
            created_at=0.0, ttl=3600.0, topic="t"))

        with caplog.at_level("WARNING"):
            artifact = builder.build_graph(author_scenario, "t")
        assert artifact.cached is False
        assert all(e.source_id in {"A", "B", "C"} for e in artifact.edges)
        assert "corrupt" in caplog.text.lower()
        assert builder.build_graph(author_scenario, "t").cached is True

    def test_seeded_builds_repeat_without_cache(self, large_corpus):
        from scholargraph.engine import GraphBuilder

        first = GraphBuilder(seed=11).build_graph(large_corpus[:200], "ml")
        second = GraphBuilder(seed=11).build_graph(large_corpus[:200], "ml")
        assert first.edges == second.edges

    def test_parallel_detectors_match_sequential(self, large_corpus):
        from scholargraph.engine import GraphBuilder

        sequential = GraphBuilder(seed=5).build_graph(large_corpus[:200], "ml")
        with GraphBuilder(seed=5, parallel_detectors=True) as builder:
            parallel = builder.build_graph(large_corpus[:200], "ml")
        assert sequential.edges == parallel.edges


class TestFaultContainment:
    def test_detector_failure_degrades(self, author_scenario, no_sampling_config, caplog):
        from scholargraph.detect import DETECTORS
        from scholargraph.engine import GraphBuilder

        def broken(papers, indexes, rng, config):
            raise ValueError("bad data")

        builder = GraphBuilder(no_sampling_config,
                               detectors=(("broken", broken),) + DETECTORS)
        with caplog.at_level("WARNING"):
            artifact = builder.build_graph(author_scenario, "t")
        assert [e.type for e in artifact.edges] == ["author"]
        assert "broken detector failed" in caplog.text

    def test_persists_in_background(self, author_scenario):
        from scholargraph.engine import GraphBuilder

        store = MagicMock()
        with GraphBuilder(store=store, seed=0) as builder:
            artifact = builder.build_graph(author_scenario, "gnn")
            assert builder.last_persist.result(timeout=5) is True
        store.persist.assert_called_once_with(artifact.nodes, artifact.edges, "gnn")

    def test_persistence_failure_is_logged(self, author_scenario, caplog):
        from scholargraph.engine import GraphBuilder

        store = MagicMock()
        store.persist.side_effect = ConnectionError("graph store down")
        with caplog.at_level("WARNING"):
            with GraphBuilder(store=store, seed=0) as builder:
                artifact = builder.build_graph(author_scenario, "gnn")
                assert builder.last_persist.result(timeout=5) is False
        assert artifact.nodes
        assert "graph store down" in caplog.text

    def test_build_after_close_skips_persistence(self, author_scenario, caplog):
        from scholargraph.engine import GraphBuilder

        store = MagicMock()
        builder = GraphBuilder(store=store, seed=0)
        builder.close()
        with caplog.at_level("WARNING"):
            artifact = builder.build_graph(author_scenario, "gnn")
        assert artifact.nodes
        assert builder.last_persist is None
        store.persist.assert_not_called()
        assert "Persisting graph for topic 'gnn' failed" in caplog.text

    def test_cache_hit_does_not_persist_again(self, author_scenario):
        from scholargraph.engine import GraphBuilder

        store = MagicMock()
        with GraphBuilder(store=store, seed=0) as builder:
            builder.build_graph(author_scenario, "gnn")
            builder.build_graph(author_scenario, "gnn")
        assert store.persist.call_count == 1


class TestInFlightCoalescing:
    def test_concurrent_identical_builds_compute_once(self, author_scenario):
        from scholargraph.engine import GraphBuilder

        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow(papers, indexes, rng, config):
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return []

        builder = GraphBuilder(detectors=[("slow", slow)])
        results = []

        def build():
            results.append(builder.build_graph(author_scenario, "t"))

        first = threading.Thread(target=build)
        first.start()
        assert started.wait(timeout=5)
        second = threading.Thread(target=build)
        second.start()
        time.sleep(0.1)
        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert len(calls) == 1
        assert sorted(r.cached for r in results) == [False, True]
        assert results[0].edges == results[1].edges
