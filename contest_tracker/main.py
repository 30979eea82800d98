import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from contest_tracker import auth
from contest_tracker.clock import Clock, utcnow
from contest_tracker.config import Settings, load_settings
from contest_tracker.db import create_db_engine, init_db
from contest_tracker.errors import AppError
from contest_tracker.gate import access_gate
from contest_tracker.routers import bookmarks, contests, pages, profile, solutions

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, clock: Clock = utcnow) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # one engine per process, handed to the repositories through app.state
        engine = create_db_engine(settings.database_url)
        init_db(engine)
        app.state.engine = engine
        logger.info("database ready at %s", engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            engine.dispose()
            logger.info("database connections closed")

    app = FastAPI(title="Contest Tracker", lifespan=lifespan)
    app.state.settings = settings
    app.state.clock = clock

    app.middleware("http")(access_gate)

    app.include_router(auth.router)
    app.include_router(contests.router)
    app.include_router(bookmarks.router)
    app.include_router(solutions.router)
    app.include_router(profile.router)
    app.include_router(pages.router)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse({"detail": exc.message}, status_code=exc.http_status)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"detail": "Internal Server Error"}, status_code=500)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
