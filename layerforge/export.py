"""
Static target: render a design snapshot to an SVG document and raster images.

Document order:
    <style> (custom CSS, sanitized)   optional
    <defs>                            resources of the pass, exactly once
    background                        color / gradient / image
    grid overlay, safe-area guide     optional canvas settings
    layers                            z-order

Rasterization uses resvg (the only SVG renderer used here) and Pillow.
"""

import io
import logging
from typing import Any, Optional, Union

import numpy as np
from PIL import Image
from resvg_py import svg_to_bytes

from layerforge.builders import SvgDocumentBuilder
from layerforge.config import settings
from layerforge.dispatcher import LayerDispatcher, layer_dispatcher
from layerforge.exceptions import DesignValidationError, InvalidSvgError, SourceFetchError
from layerforge.fetch import SourceCache
from layerforge.models import Design
from layerforge.paint import ElementSpec, ResourceCollection, paint_attrs, resolve_fill
from layerforge.recovery import fallback_svg
from layerforge.renderers import RenderContext
from layerforge.validation import sanitize_css, sanitize_svg_string, validate_dimensions, validate_svg_string

logger = logging.getLogger(__name__)

GRID_SIZE = 20
GRID_PATTERN_ID = 'grid-pattern'


def coerce_design(design: Union[Design, dict[str, Any]]) -> Design:
    if isinstance(design, Design):
        return design
    return Design.from_api_dict(design)


def check_dimensions(design: Design) -> None:
    """
    Raises:
        DesignValidationError: when width or height is not in (0, MAX_DESIGN_SIZE]
    """
    errors = validate_dimensions(design.width, design.height)
    if errors:
        raise DesignValidationError(errors)


def background_nodes(design: Design, ctx: RenderContext) -> list[Any]:
    builder = ctx.builder
    background = design.background
    full = {'width': '100%', 'height': '100%'}

    if background.type == 'color':
        return [builder.element('rect', {**full, 'fill': background.color})]

    if background.type == 'gradient':
        paint = resolve_fill(background.gradient, ctx.resources)
        return [builder.element('rect', {**full, **paint_attrs(paint)})]

    if background.type == 'image' and background.image:
        nodes = [builder.element('rect', {**full, 'fill': background.color})]
        if ctx.is_interactive:
            # The editor shell loads the background itself
            href = background.image
        else:
            try:
                href = ctx.href_for(ctx.load('background', background.image, 'image'), background.image)
            except SourceFetchError as e:
                logger.warning(f"Background image unavailable: {e}")
                return nodes
        nodes.append(builder.element('image', {
            'x': 0,
            'y': 0,
            'width': design.width,
            'height': design.height,
            'href': href,
            'preserveAspectRatio': 'xMidYMid slice',
        }))
        return nodes
    return []


def canvas_nodes(design: Design, ctx: RenderContext) -> list[Any]:
    builder = ctx.builder
    canvas = design.canvas_settings
    nodes = []

    if canvas.show_grid:
        ctx.resources.add_named(GRID_PATTERN_ID, 'pattern', ElementSpec('pattern', {
            'width': GRID_SIZE,
            'height': GRID_SIZE,
            'patternUnits': 'userSpaceOnUse',
        }, [ElementSpec('path', {
            'd': f'M {GRID_SIZE} 0 L 0 0 0 {GRID_SIZE}',
            'fill': 'none',
            'stroke': '#e0e0e0',
            'stroke-width': 1,
        })]))
        nodes.append(builder.element('rect', {
            'width': '100%',
            'height': '100%',
            'fill': f'url(#{GRID_PATTERN_ID})',
            'opacity': 0.5,
        }))

    if canvas.show_safe_area:
        margin = min(design.width, design.height) * 0.1
        nodes.append(builder.element('rect', {
            'x': margin,
            'y': margin,
            'width': design.width - 2 * margin,
            'height': design.height - 2 * margin,
            'fill': 'none',
            'stroke': '#ff6b6b',
            'stroke-width': 2,
            'stroke-dasharray': '10,5',
            'opacity': 0.7,
        }))
    return nodes


def _background_color(design: Design) -> str:
    return design.background.color if design.background.type == 'color' else '#ffffff'


def _build_document(
    design: Design,
    dispatcher: LayerDispatcher,
    sources: Optional[SourceCache],
) -> str:
    builder = SvgDocumentBuilder(design.width, design.height)
    ctx = RenderContext(builder=builder, resources=ResourceCollection(), target='static')
    if sources is not None:
        ctx.sources = sources

    nodes = background_nodes(design, ctx)
    nodes.extend(canvas_nodes(design, ctx))
    layer_nodes = dispatcher.render_layers(design.layers, ctx)
    nodes.extend(layer_nodes)

    css = design.canvas_settings.custom_css
    style = sanitize_css(css) if css else None
    root = builder.document(nodes, ctx.resources, style=style)
    logger.info(
        f"Rendered design {design.id or '(unnamed)'}: "
        f"{len(layer_nodes)} of {len(design.layers)} root layers, {len(ctx.resources)} resources"
    )
    return SvgDocumentBuilder.to_string(root)


def render_design_svg(
    design: Union[Design, dict[str, Any]],
    dispatcher: Optional[LayerDispatcher] = None,
    sources: Optional[SourceCache] = None,
    validate: Optional[bool] = None,
) -> str:
    """
    Render a design snapshot to an SVG document string.

    The output is validated; invalid output is sanitized, and when that fails
    too (or the pass itself fails) a fallback document is returned.

    Raises:
        DesignValidationError: for non-positive or oversized dimensions
    """
    design = coerce_design(design)
    check_dimensions(design)
    validate = settings.VALIDATE_OUTPUT if validate is None else validate

    try:
        svg = _build_document(design, dispatcher or layer_dispatcher, sources)
    except Exception as e:
        logger.error(f"Failed to render design {design.id or '(unnamed)'}: {e}")
        return fallback_svg(design.width, design.height, _background_color(design))

    if not validate:
        return svg

    report = validate_svg_string(svg)
    if report.valid:
        return svg

    logger.warning(f"Generated SVG has validation issues: {report.errors}")
    try:
        return sanitize_svg_string(svg)
    except InvalidSvgError as e:
        logger.error(f"Failed to sanitize SVG: {e}")
        return fallback_svg(design.width, design.height, _background_color(design))


def rasterize_svg(svg: str, width: int, height: int, supersample: Optional[int] = None) -> Image.Image:
    """Render an SVG string to an RGBA Pillow image of ``width`` x ``height``."""
    supersample = max(1, supersample or settings.RASTER_SUPERSAMPLE)
    png_bytes = svg_to_bytes(
        svg_string=svg,
        width=width * supersample,
        height=height * supersample,
    )
    image = Image.open(io.BytesIO(bytes(png_bytes))).convert('RGBA')
    if supersample > 1 or image.size != (width, height):
        image = image.resize((width, height), Image.Resampling.LANCZOS)
    return image


def _pixel_size(design: Design, scale: float) -> tuple[int, int]:
    return max(1, round(design.width * scale)), max(1, round(design.height * scale))


def render_design_png(
    design: Union[Design, dict[str, Any]],
    scale: float = 1.0,
    sources: Optional[SourceCache] = None,
) -> bytes:
    """Render a design to PNG bytes at ``scale`` times its size."""
    design = coerce_design(design)
    if scale <= 0:
        raise DesignValidationError(['Scale must be greater than 0'])
    svg = render_design_svg(design, sources=sources)
    width, height = _pixel_size(design, scale)
    image = rasterize_svg(svg, width, height)
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


def render_design_array(
    design: Union[Design, dict[str, Any]],
    scale: float = 1.0,
    sources: Optional[SourceCache] = None,
) -> np.ndarray:
    """Render a design to an RGBA array of shape (height, width, 4), dtype uint8."""
    design = coerce_design(design)
    if scale <= 0:
        raise DesignValidationError(['Scale must be greater than 0'])
    svg = render_design_svg(design, sources=sources)
    width, height = _pixel_size(design, scale)
    return np.array(rasterize_svg(svg, width, height), dtype=np.uint8)
