import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .api import redirect
from .config import settings
from .core.exceptions import RedirectError
from .database import pool_manager

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await pool_manager.close()


# Initialize FastAPI app
app = FastAPI(
    title="Click Tracking Redirector",
    description="Resolves short link tokens and records click analytics",
    version="1.0.0",
    lifespan=lifespan
)


async def redirect_error_handler(request: Request, exc: RedirectError):
    """Map pipeline errors to plain text responses without leaking detail"""
    if exc.status_code >= 500:
        logger.error("Redirect error: %s: %s", type(exc).__name__, exc)
    else:
        logger.info("Rejected %s: %s", request.url.path, exc)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return PlainTextResponse("Internal error", status_code=500)


app.add_exception_handler(RedirectError, redirect_error_handler)
app.add_exception_handler(Exception, unexpected_error_handler)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "Click Tracking Redirector", "pool": pool_manager.state}


# Redirect routes (must be last to not conflict with other routes)
prefix = settings.REDIRECT_ROUTE_PREFIX.rstrip("/")
if prefix:
    app.add_api_route(prefix, redirect.missing_token, methods=["GET", "HEAD"], include_in_schema=False)
app.include_router(redirect.router, prefix=prefix, tags=["redirect"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
