from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from field_timesheets.api.router import router as api_router
from field_timesheets.core.logging import RequestContextMiddleware, configure_logging


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Field Timesheets", version="0.1.0")
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)
    return app


app = create_app()
