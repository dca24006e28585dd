from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roster_scheduler.api.routes import api_router
from roster_scheduler.core.config import get_settings
from roster_scheduler.core.logging import configure_logging


def create_application() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        description="API for generating monthly shift rosters and coordinating who may edit them.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_application()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}
