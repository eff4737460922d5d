"""
FastAPI application entry point for Ask Quasimatt.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from quasimatt.config import Settings, get_settings
from quasimatt.db import DbClient
from quasimatt.dependencies import build_db_client
from quasimatt.routes import router
from quasimatt.service_worker import ServiceWorkerConfig, render_service_worker

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
STATIC_DIR = PACKAGE_DIR / "static"
templates = Jinja2Templates(directory=PACKAGE_DIR / "templates")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.db is None:
        app.state.db = build_db_client(app.state.settings)
    app.state.db.initialize()
    logger.info("Store client ready")
    try:
        yield
    finally:
        app.state.db.close()
        logger.info("Store client closed")


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Read handlers report every failure as 500, writes as 400.
    status_code = 500 if request.method == "GET" else 400
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
        for err in errors
    )
    return JSONResponse(
        status_code=status_code, content={"message": message or "Bad request"}
    )


def create_app(
    settings: Settings | None = None, db: DbClient | None = None
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Ask Quasimatt", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(router, prefix=settings.api_prefix)

    sw_source = render_service_worker(ServiceWorkerConfig.from_settings(settings))

    @app.get("/", include_in_schema=False)
    def index(request: Request):
        return templates.TemplateResponse(
            request, "index.html", {"api_prefix": settings.api_prefix}
        )

    @app.get("/manifest.json", include_in_schema=False)
    def manifest():
        return FileResponse(
            STATIC_DIR / "manifest.json", media_type="application/manifest+json"
        )

    @app.get("/icon.svg", include_in_schema=False)
    def icon():
        return FileResponse(STATIC_DIR / "icon.svg", media_type="image/svg+xml")

    @app.get("/style.css", include_in_schema=False)
    def stylesheet():
        return FileResponse(STATIC_DIR / "style.css", media_type="text/css")

    @app.get("/service-worker.js", include_in_schema=False)
    def service_worker():
        return Response(
            content=sw_source,
            media_type="application/javascript",
            headers={"Cache-Control": "no-cache"},
        )

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )
    uvicorn.run(
        "quasimatt.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
