"""Forkchat FastAPI application entry point."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from anthropic import AsyncAnthropic
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from forkchat.db.connection import Database
from forkchat.generation.service import GenerationService
from forkchat.providers.anthropic import AnthropicProvider
from forkchat.providers.registry import clear_providers, get_all_providers, register_provider
from forkchat.settings.router import get_settings_service
from forkchat.settings.router import router as settings_router
from forkchat.settings.service import SettingsService
from forkchat.trees.router import get_generation_service, get_tree_service
from forkchat.trees.router import router as trees_router
from forkchat.trees.service import TreeService
from forkchat.trees.snapshot import SnapshotDecodeError

logger = logging.getLogger(__name__)

# Loaded at import so the CORS origins below see it too.
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    db = await Database.connect(os.environ.get("FORKCHAT_DB_PATH", "forkchat.db"))

    tree_service = TreeService(db)
    app.dependency_overrides[get_tree_service] = lambda: tree_service

    settings_service = SettingsService(db)
    app.dependency_overrides[get_settings_service] = lambda: settings_service

    gen_service = GenerationService(tree_service, settings_service)
    app.dependency_overrides[get_generation_service] = lambda: gen_service

    if os.environ.get("ANTHROPIC_API_KEY"):
        register_provider(AnthropicProvider(AsyncAnthropic()))
        logger.info("Registered anthropic provider")
    else:
        logger.warning("ANTHROPIC_API_KEY not set; message generation is unavailable")

    if os.environ.get("FORKCHAT_SEED_DEMO", "1") != "0":
        await tree_service.seed_demo_if_empty()

    app.state.db = db
    yield

    clear_providers()
    await db.close()


app = FastAPI(
    title="Forkchat",
    description="Branching conversations with an AI assistant",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("FORKCHAT_CORS_ORIGINS", "http://localhost:5173").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)


async def unreadable_tree_handler(request: Request, exc: SnapshotDecodeError) -> JSONResponse:
    """A stored snapshot that no longer decodes. Import routes report bad input themselves."""
    logger.warning("Unreadable stored tree on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": f"Stored tree is unreadable: {exc}"})


app.add_exception_handler(SnapshotDecodeError, unreadable_tree_handler)

app.include_router(trees_router)
app.include_router(settings_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": "0.1.0"}


@app.get("/api/providers")
async def providers() -> list[dict]:
    return [
        {"name": p.name, "available": True, "models": p.suggested_models}
        for p in get_all_providers()
    ]
