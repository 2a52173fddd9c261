"""FastAPI web application for relationship graph construction.

Provides the graph build endpoint plus cache statistics and health checks.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from scholargraph.config import BuildConfig
from scholargraph.engine import GraphBuilder
from scholargraph.errors import InputValidationError
from scholargraph.graph import prepare_viz_data
from scholargraph.models import artifact_to_dict

logger = logging.getLogger(__name__)

CACHE_SWEEP_INTERVAL = 3600  # seconds


class BuildGraphRequest(BaseModel):
    papers: list[Any] | None = None
    topic: str | None = None


def graph_response(artifact):
    """Response body for a build: summary fields plus nodes/links for the frontend."""
    data = artifact_to_dict(artifact)
    data.pop("nodes")
    data.pop("edges")
    data.update(prepare_viz_data(artifact))
    return {
        "success": True,
        "message": (f"Knowledge graph built with {len(artifact.nodes)} nodes "
                    f"and {len(artifact.edges)} connections"),
        "data": data,
    }


def create_app(builder: GraphBuilder | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if builder is None:
        builder = GraphBuilder(BuildConfig.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Sweep expired cache entries periodically; release pools on shutdown."""
        async def _sweep_loop():
            while True:
                await asyncio.sleep(CACHE_SWEEP_INTERVAL)
                try:
                    stats = builder.cache.stats()
                    logger.info("Graph cache: %d entries", stats["size"])
                except Exception as e:
                    logger.warning("Cache sweep error: %s", e)
        task = asyncio.create_task(_sweep_loop())
        yield
        task.cancel()
        builder.close(wait=False)

    app = FastAPI(title="Scholar Graph Builder", lifespan=lifespan)
    app.state.builder = builder

    @app.post("/api/build-knowledge-graph")
    async def build_knowledge_graph(request: BuildGraphRequest):
        try:
            artifact = await asyncio.to_thread(
                builder.build_graph, request.papers, request.topic
            )
        except InputValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception:
            logger.exception("Error building knowledge graph")
            raise HTTPException(status_code=500, detail="Error building knowledge graph")

        return graph_response(artifact)

    @app.get("/api/cache-stats")
    async def cache_stats():
        return {
            "success": True,
            "message": "Cache statistics retrieved successfully",
            "data": {"graph_cache": builder.cache.stats()},
        }

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "graph_cache": builder.cache.stats()}

    return app


# Create the app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("web.app:app", host="127.0.0.1", port=8000)
