import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import router
from app.core.config import settings
from app.core.exceptions import InvalidInputError
from app.core.exceptions import PipelineError
from app.core.exceptions import UpstreamUnavailable
from app.core.logging import setup_logging

setup_logging()

app = FastAPI(title="Prompt Forge")

logger = logging.getLogger(__name__)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error(f"HTTP exception: {exc.detail} (status: {exc.status_code})")
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error("Request validation failed: %s", exc.errors(), exc_info=False)
    return JSONResponse(
        {"error": "Input validation failed", "details": exc.errors()},
        status_code=422,
    )


@app.exception_handler(InvalidInputError)
async def invalid_input_exception_handler(_request: Request, exc: InvalidInputError) -> JSONResponse:
    logger.warning(f"Invalid input: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=400)


@app.exception_handler(UpstreamUnavailable)
async def upstream_exception_handler(_request: Request, exc: UpstreamUnavailable) -> JSONResponse:
    logger.error(f"LLM provider error: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=502)


@app.exception_handler(PipelineError)
async def pipeline_exception_handler(_request: Request, exc: PipelineError) -> JSONResponse:
    logger.error(f"Pipeline error: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    logger.info("Health check endpoint called")
    return {"status": "ok"}


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(router)
