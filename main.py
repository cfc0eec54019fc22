from typing import Optional

from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from fastapi.responses import JSONResponse
import httpx
from app.core.config import settings
from app.core.errors import FlowError
from app.core.logging import get_logger, setup_logging
from app.apis.flows.main import router as flows_router
from app.modules.flows.main import LearningFlows

import uvicorn
from fastapi.middleware.cors import CORSMiddleware

logger = get_logger(__name__)


def create_app(flows: Optional[LearningFlows] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if flows is not None:
            app.state.flows = flows
            yield
            return
        # One pooled HTTP client for the YouTube lookups of every request
        async with httpx.AsyncClient(timeout=httpx.Timeout(15.0)) as http:
            app.state.flows = LearningFlows.from_settings(settings, http_client=http)
            logger.info("Learning flows ready (provider=%s)", settings.model_provider)
            yield

    app = FastAPI(
        title=settings.app.name, version=settings.app.version, lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(FlowError)
    async def flow_error_handler(request: Request, exc: FlowError) -> JSONResponse:
        return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})

    app.include_router(flows_router)

    @app.get("/")
    async def root():
        return {
            "status": "ok",
            "app": settings.app.name,
            "version": settings.app.version,
        }

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    try:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.app.port,
            reload=not settings.app.is_production,
        )
    except Exception as e:
        print(f"An error occurred when starting the server: {e}.")
