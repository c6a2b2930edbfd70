"""FastAPI application entry point."""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.catalog import router as catalog_router
from app.catalog.models import ErrorDetail, ErrorResponse
from app.config import get_settings
from app.counts import router as counts_router
from app.dependencies import DirectoryError, logger
from app.search import router as search_router

settings = get_settings()

app = FastAPI(title="Tool Directory", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(search_router.router)
app.include_router(catalog_router.router)
app.include_router(counts_router.router)


@app.exception_handler(DirectoryError)
async def directory_error_handler(request: Request, exc: DirectoryError) -> JSONResponse:
    """Answer unhandled dataset and store failures with the error envelope."""
    logger.error("request_failed", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error=ErrorDetail(message=str(exc), code=type(exc).__name__)
        ).model_dump(),
    )


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "0.1.0",
        "tools_data_path": str(settings.tools_data_path),
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {"name": "Tool Directory", "version": "0.1.0", "docs": "/docs"}


logger.info("app_startup", extra={"host": settings.host, "port": settings.port})
