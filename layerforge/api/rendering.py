"""Rendering API endpoints - design snapshots in, SVG or PNG out."""

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query, Response

from layerforge.exceptions import DesignValidationError
from layerforge.export import render_design_png, render_design_svg
from layerforge.models import Design

router = APIRouter(prefix="/render", tags=["rendering"])


def _parse_design(payload: dict[str, Any]) -> Design:
    """Parse a raw design payload.

    Raises:
        HTTPException: 400 when the payload is not a design object.
    """
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Design must be a JSON object")
    return Design.from_api_dict(payload)


@router.post("/svg")
async def render_svg(design: dict[str, Any] = Body(...)):
    """Render a design snapshot to an SVG document."""
    try:
        svg = render_design_svg(_parse_design(design))
    except DesignValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)
    return Response(content=svg, media_type="image/svg+xml")


@router.post("/png")
async def render_png(
    design: dict[str, Any] = Body(...),
    scale: float = Query(default=1.0, gt=0, le=8),
):
    """Render a design snapshot to a PNG image."""
    try:
        png = render_design_png(_parse_design(design), scale=scale)
    except DesignValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)
    return Response(content=png, media_type="image/png")
