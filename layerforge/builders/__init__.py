"""Output builders: SVG documents (static target) and scene graphs (interactive target)."""

from .base import NodeBuilder
from .scene import Scene, SceneBuilder, SceneNode
from .svg import SVG_NS, XLINK_NS, SvgDocumentBuilder, local_name

__all__ = [
    'NodeBuilder',
    'SvgDocumentBuilder',
    'SceneBuilder',
    'SceneNode',
    'Scene',
    'SVG_NS',
    'XLINK_NS',
    'local_name',
]
