from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from core.config import Settings, load_settings
from core.db import Database
from core.log import configure_logging
from core.media import CloudinaryMediaStore
from projects.repository import ProjectRepository
from projects.router import router as projects_router
from projects.service import ProjectService


def create_app(settings: Settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One pool and one service per process.
        db = Database(settings)
        await db.connect()
        app.state.project_service = ProjectService(
            ProjectRepository(db),
            CloudinaryMediaStore(settings),
        )
        try:
            yield
        finally:
            await db.close()

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings

    # Allow the portfolio site and admin page to call this API from the browser.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(projects_router, tags=["projects"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "Portfolio Backend API is running."

    return app


settings = load_settings()
configure_logging(settings.log_level)
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
