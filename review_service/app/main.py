import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .agents.review_analyst import ReviewAnalyst
from .config import AppConfig, cors_origins_from_env, load_config
from .errors import AnalysisError, ValidationError
from .models import Analysis, AnalyzeRequest, ErrorResponse
from .pipeline import analyze
from .scrapers.bs4_scraper import PageFetcher

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("Server")


class SPAStaticFiles(StaticFiles):
    """Serves the built frontend; unknown paths fall back to index.html."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


def _warn_placeholder_key() -> None:
    logger.warning("--- !!! ---")
    logger.warning("GEMINI_API_KEY is still the placeholder value.")
    logger.warning("Every analysis will fail until a real key from Google AI Studio is set.")
    logger.warning("--- !!! ---")


def create_app(
    config: AppConfig | None = None,
    fetcher: PageFetcher | None = None,
    analyst: ReviewAnalyst | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Raises ConfigError when GEMINI_API_KEY is missing: the app never becomes ready
        cfg = config or load_config()
        app.state.config = cfg
        app.state.fetcher = fetcher or PageFetcher(cfg)
        app.state.analyst = analyst or ReviewAnalyst(cfg)
        await app.state.fetcher.open()

        if cfg.has_placeholder_key:
            _warn_placeholder_key()

        if cfg.frontend_dist.is_dir():
            app.mount("/", SPAStaticFiles(directory=cfg.frontend_dist, html=True), name="frontend")
            logger.info(f"Serving frontend from {cfg.frontend_dist}")

        logger.info("Review analysis service ready to receive requests")
        yield
        await app.state.fetcher.close()

    app = FastAPI(title="Review Lens", lifespan=lifespan)

    # Middleware is fixed before startup, so without an injected config
    # the origins come from the same parser load_config uses.
    cors_origins = config.cors_origins if config else cors_origins_from_env()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AnalysisError)
    async def analysis_error_handler(request: Request, exc: AnalysisError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error in request")
        return JSONResponse(status_code=500, content=AnalysisError().to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        err = ValidationError()
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.post(
        "/api/analyze",
        response_model=Analysis,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def analyze_route(request: Request, req: Optional[AnalyzeRequest] = None):
        url = req.url if req else None
        logger.info(f"Received URL: {url}")
        state = request.app.state
        result = await analyze(url, config=state.config, fetcher=state.fetcher, analyst=state.analyst)
        logger.info("Success! Sending full analysis to the client.")
        return result

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    cfg = load_config()
    uvicorn.run(create_app(cfg), host="0.0.0.0", port=cfg.port)
