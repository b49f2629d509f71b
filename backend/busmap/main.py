import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from busmap import config  # Loads .env before anything reads settings

logger = logging.getLogger("busmap")
logging.basicConfig(level=config.LOG_LEVEL)

# Global state populated during startup
app_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the route and shape catalogs once, and set up viewer sessions."""
    from busmap.catalog import CatalogError, RouteCatalog, fetch_catalog
    from busmap.sessions import ViewerSessionManager

    remote = bool(config.ROUTES_URL or config.SHAPES_URL)
    http_client = httpx.AsyncClient(timeout=config.HTTP_TIMEOUT) if remote else None
    if remote:
        logger.info("Fetching catalog documents from remote sources...")
    else:
        logger.info(f"Loading catalog documents from {config.DATA_DIR}...")

    try:
        catalog = await fetch_catalog(http_client)
    except CatalogError as e:
        logger.error(f"Catalog failed to load, starting with an empty catalog: {e}")
        catalog = RouteCatalog([], [])
    finally:
        if http_client is not None:
            await http_client.aclose()

    app_state["catalog"] = catalog
    if not catalog.records:
        logger.warning("Route catalog is empty, search and filters will return nothing")

    app_state["sessions"] = ViewerSessionManager()

    yield

    logger.info("Shutting down...")
    app_state.clear()


app = FastAPI(title="Bus Reliability Map API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from busmap.routes import router  # noqa: E402

app.include_router(router, prefix="/api")


def run():
    uvicorn.run("busmap.main:app", host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
