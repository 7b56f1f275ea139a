import uvicorn
import time
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from cistern.api.builds import router as builds_router
from cistern.api.refresh import router as refresh_router
from cistern.api.settings import router as settings_router
from cistern.api.status import router as status_router
from cistern.core import config
from cistern.services.circleci_client import CircleCIClient
from cistern.services.poller import BuildPoller
from cistern.services.settings_store import PollSettings, SettingsStore
from cistern.services.token_store import TokenStore
from cistern.utils.logging_config import setup_logging

# Initialize enhanced logging
setup_logging(level=logging.INFO)
logger = logging.getLogger("main")


# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"{request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {process_time:.2f}ms"
            )
            return response
        except Exception as e:
            logger.error(f"Request failed: {request.method} {request.url.path} - Error: {str(e)}")
            raise e


def create_app(
    token_store: Optional[TokenStore] = None,
    settings_store: Optional[SettingsStore] = None,
    client: Optional[CircleCIClient] = None,
    start_poller: bool = True,
) -> FastAPI:
    token_store = token_store or TokenStore(config.CIRCLECI_TOKEN)
    settings_store = settings_store or SettingsStore(
        PollSettings(organization=config.CIRCLECI_ORG, poll_interval=config.POLL_INTERVAL)
    )
    client = client or CircleCIClient(token_store)
    poller = BuildPoller(client, token_store, settings_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_poller:
            poller.start()
        yield
        await poller.stop()
        await client.aclose()

    app = FastAPI(title="Cistern CircleCI Build Monitor", lifespan=lifespan)
    app.state.token_store = token_store
    app.state.settings_store = settings_store
    app.state.client = client
    app.state.poller = poller

    app.add_middleware(LoggingMiddleware)

    # -----------------------------------------------------------------------
    # CORS: browser origins come from CORS_ORIGINS
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    # Register routers
    app.include_router(builds_router, tags=["Builds"])
    app.include_router(status_router, tags=["Builds"])
    app.include_router(refresh_router, tags=["Builds"])
    app.include_router(settings_router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
