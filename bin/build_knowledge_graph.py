#!/usr/bin/env python3
"""
build_knowledge_graph.py: Build a relationship graph from a JSON paper list.

Given a JSON file holding a list of papers (or {"papers": [...]}), this script:
1. Validates the papers
2. Samples, indexes and runs the relationship detectors
3. Ranks the edges and writes the graph artifact as JSON

Usage:
    python3 build_knowledge_graph.py --papers papers.json
    python3 build_knowledge_graph.py --papers papers.json --topic "q-series" --out graph.json
    python3 build_knowledge_graph.py --papers papers.json --seed 7 --store-dir graphs/
"""

import json
import sys
from pathlib import Path

from scholargraph import BuildConfig, GraphBuilder, InputValidationError
from scholargraph.graph import count_by_type
from scholargraph.models import artifact_to_dict
from scholargraph.persist import JsonFileGraphStore


def load_papers(path):
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("papers")
    return data


def main():
    args = sys.argv[1:]

    papers_file = None
    out_file = None
    topic = None
    seed = None
    store_dir = None

    i = 0
    while i < len(args):
        if args[i] == '--papers' and i + 1 < len(args):
            papers_file = Path(args[i + 1])
            i += 2
        elif args[i] == '--out' and i + 1 < len(args):
            out_file = Path(args[i + 1])
            i += 2
        elif args[i] == '--topic' and i + 1 < len(args):
            topic = args[i + 1]
            i += 2
        elif args[i] == '--seed' and i + 1 < len(args):
            seed = int(args[i + 1])
            i += 2
        elif args[i] == '--store-dir' and i + 1 < len(args):
            store_dir = Path(args[i + 1])
            i += 2
        else:
            i += 1

    if papers_file is None:
        print("Error: --papers <file> is required")
        print(__doc__)
        sys.exit(1)
    if not papers_file.exists():
        print(f"Error: {papers_file} not found")
        sys.exit(1)

    if out_file is None:
        out_file = papers_file.with_name("knowledge_graph.json")

    store = JsonFileGraphStore(store_dir) if store_dir else None
    builder = GraphBuilder(BuildConfig.from_env(), store=store, seed=seed)

    papers = load_papers(papers_file)
    try:
        artifact = builder.build_graph(papers, topic)
    except InputValidationError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        builder.close()

    with open(out_file, 'w') as f:
        json.dump(artifact_to_dict(artifact), f, indent=2)

    print(f"Knowledge graph saved to {out_file}")
    print(f"  topic:   {artifact.topic}")
    print(f"  papers:  {len(artifact.nodes)} ({artifact.sampled_count} sampled, "
          f"{artifact.total_papers_provided} provided)")
    print(f"  edges:   {len(artifact.edges)}")
    for rel_type, count in sorted(count_by_type(artifact.edges).items(),
                                  key=lambda x: x[1], reverse=True):
        print(f"    {rel_type:10s} {count}")
    if store is not None:
        print(f"  stored:  {store.path_for(artifact.topic)}")


if __name__ == "__main__":
    main()
