from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dbtunnel.config.settings import get_settings
from dbtunnel.router import router


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Database Tunnel API",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()
