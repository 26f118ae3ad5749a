"""FastAPI application setup."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from .routes import control, knowledge, messaging, observability, status


def create_fastapi_app(application: Application, sim: Any = None) -> FastAPI:
    """Create and configure the FastAPI application around an Application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="EchoShop API",
        description="Agent pipeline and personalization API for EchoShop",
        version="0.1.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:8080"],  # Vite dev servers
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(messaging.create_messaging_router(application))
    fastapi_app.include_router(status.create_status_router(application))
    fastapi_app.include_router(knowledge.create_knowledge_router(application))
    fastapi_app.include_router(observability.create_observability_router(application))
    fastapi_app.include_router(control.create_control_router(application, sim))

    return fastapi_app
