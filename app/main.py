"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI

from app.api.envelope import register_exception_handlers
from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.cors import PreflightCORSMiddleware
from app.services.auth_provider import SupabaseAuthProvider


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """One pooled provider client per process, closed on shutdown."""
    app.state.auth_provider = SupabaseAuthProvider.from_settings(settings)
    try:
        yield
    finally:
        await app.state.auth_provider.aclose()


app = FastAPI(
    title="Identity API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=settings.CORS_CREDENTIALS,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Identity API"}
