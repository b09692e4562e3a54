import asyncio
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from marketplace.api.responses import MongoJSONResponse
from marketplace.api.router import api_router
from marketplace.config import settings
from marketplace.database.mongo import MongoStore, StoreConnectionError, StoreNotReadyError
from marketplace.lifecycle import Lifecycle, RequestTracker

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app(store: MongoStore | None = None) -> FastAPI:
    """
    Build the API around ``store``.

    The lifespan connects the store if nobody has yet, so the app also works
    under ``uvicorn marketplace.main:app``; on shutdown it drains requests and
    closes the connection.
    """
    if store is None:
        store = MongoStore(settings.MONGO_URI)
    tracker = RequestTracker()
    lifecycle = Lifecycle(store, tracker, settings.SHUTDOWN_TIMEOUT)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not store.is_ready:
            await store.connect()
        yield
        await lifecycle.shutdown()

    app = FastAPI(title="Marketplace Listings API", lifespan=lifespan)
    app.state.store = store
    app.state.lifecycle = lifecycle

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def track_in_flight(request: Request, call_next):
        async with tracker.track():
            return await call_next(request)

    @app.exception_handler(StoreNotReadyError)
    async def store_not_ready(request: Request, exc: StoreNotReadyError):
        logger.error("%s %s rejected: %s", request.method, request.url.path, exc)
        return MongoJSONResponse({"message": str(exc)}, status_code=500)

    app.include_router(api_router)

    @app.get("/")
    def root():
        return {"status": "running", "message": "Marketplace Listings API"}

    return app


async def serve():
    store = MongoStore(settings.MONGO_URI)
    try:
        await store.connect()
    except StoreConnectionError:
        # nothing can be served without the database
        sys.exit(1)

    config = uvicorn.Config(
        create_app(store),
        host=settings.HOST,
        port=settings.PORT,
        timeout_graceful_shutdown=int(settings.SHUTDOWN_TIMEOUT),
        log_config=None,
    )
    logger.info("Server running on port %s", settings.PORT)
    await uvicorn.Server(config).serve()


def run():
    configure_logging()
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        # uvicorn re-raises the interrupt once shutdown has finished
        pass


app = create_app()


if __name__ == "__main__":
    run()
