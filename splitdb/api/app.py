"""HTTP surface over the data-access layer.

Every route catches failures itself: the client receives a generic message
and a 500, the details go to the log.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from ..logger import get_logger
from ..service import DataLayer
from ..settings import Settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)

# Keeps (page - 1) * limit well inside the bigint OFFSET range.
MAX_PAGINATION_VALUE = 2**31 - 1


def _server_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


def get_layer(request: Request) -> DataLayer:
    layer: DataLayer = request.app.state.layer
    return layer


def create_app(layer: DataLayer | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Parameters
    ----------
    layer
        Pre-built data layer; built from ``settings`` when omitted.
    settings
        Defaults to ``Settings()``, i.e. the environment.
    """
    if settings is None:
        settings = Settings()
    data_layer = layer if layer is not None else DataLayer.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await data_layer.astart(bootstrap=settings.server.bootstrap_on_startup)
        yield
        await data_layer.aclose()

    app = FastAPI(title="splitdb", description="Read/write split blog storage", lifespan=lifespan)
    app.state.layer = data_layer

    @app.post("/blog")
    async def create_blog(
        payload: Annotated[Any, Body()],
        layer: Annotated[DataLayer, Depends(get_layer)],
    ) -> Any:
        try:
            await layer.writer.acreate(payload)
        except Exception:
            logger.exception("Error inserting blog")
            return _server_error("Error inserting blog")
        return {"message": "created"}

    @app.get("/blogs")
    async def list_blogs(
        layer: Annotated[DataLayer, Depends(get_layer)],
        page: Annotated[int, Query(ge=1, le=MAX_PAGINATION_VALUE)] = 1,
        limit: Annotated[int, Query(ge=1, le=MAX_PAGINATION_VALUE)] = 5,
    ) -> Any:
        try:
            result = await layer.reader.alist(page, limit)
        except Exception:
            logger.exception("Error fetching blogs", page=page, limit=limit)
            return _server_error("Error fetching blogs")
        return result.model_dump(mode="json")

    @app.delete("/blog/{blog_id}")
    async def delete_blog(blog_id: int, layer: Annotated[DataLayer, Depends(get_layer)]) -> Any:
        try:
            await layer.writer.adelete(blog_id)
        except Exception:
            logger.exception("Error deleting blog", blog_id=blog_id)
            return _server_error("Error deleting blog")
        return {"message": "deleted"}

    @app.get("/health")
    async def health(layer: Annotated[DataLayer, Depends(get_layer)]) -> Any:
        progress = layer.bootstrap_progress
        return {
            "status": "ok",
            "replicas": layer.registry.replica_count,
            "bootstrap": progress.summary() if progress is not None else [],
        }

    return app
