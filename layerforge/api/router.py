"""Main API router."""

from typing import Any

from fastapi import APIRouter, Body

from layerforge import __version__
from layerforge.fetch import source_cache
from layerforge.renderers import list_renderers
from layerforge.validation import validate_design

from .rendering import router as rendering_router

api_router = APIRouter()


@api_router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@api_router.get("/renderers")
async def renderers():
    """List the registered type renderers and the layer types they handle."""
    return {"renderers": list_renderers()}


@api_router.get("/cache/stats")
async def cache_stats():
    """Get source cache statistics."""
    return source_cache.stats


@api_router.post("/validate")
async def validate(design: dict[str, Any] = Body(...)):
    """Check a design snapshot without rendering it."""
    return validate_design(design).to_dict()


api_router.include_router(rendering_router)
