"""FastAPI application entry point for the resume store API."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ats_resume_store.api.routes import health, resumes
from ats_resume_store.store import ResumeStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


def create_app(store_factory: Callable[[], ResumeStore] = ResumeStore.from_env) -> FastAPI:
    """Build the API application.

    Args:
        store_factory: Builds the store on startup. Tests pass one bound
            to a temporary database.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Start the store on startup and close it on shutdown."""
        store = store_factory()
        app.state.store = store
        await store.start()
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(
        title="ATS Resume Store API",
        description="Resume persistence with backend reachability reporting",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(resumes.router, prefix="/api")
    return app


app = create_app()


def main(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the development server."""
    import uvicorn

    uvicorn.run("ats_resume_store.api.main:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
