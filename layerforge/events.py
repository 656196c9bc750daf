"""
Event surface of the interactive target.

The editor shell subscribes to layer events; handlers receive a payload
dict. A failing handler is logged and does not stop the others.

Events:
    layer:select          {"layerId"}
    layer:dragstart       {"layerId", "x", "y"}
    layer:positionchange  {"layerId", "x", "y"}
    layer:load            {"layerId", "src"}
    layer:error           {"layerId", "src", "error"}
"""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], None]

LAYER_SELECT = 'layer:select'
LAYER_DRAGSTART = 'layer:dragstart'
LAYER_POSITIONCHANGE = 'layer:positionchange'
LAYER_LOAD = 'layer:load'
LAYER_ERROR = 'layer:error'


class EventEmitter:
    """Minimal named-event dispatcher."""

    def __init__(self):
        self._handlers: dict[str, list[Handler]] = {}

    def on(self, event: str, handler: Handler) -> None:
        """Register a handler for an event (registering twice is a no-op)."""
        handlers = self._handlers.setdefault(event, [])
        if handler not in handlers:
            handlers.append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, payload: dict[str, Any]) -> int:
        """Call every handler of ``event``; returns how many were called."""
        handlers = list(self._handlers.get(event, []))
        for handler in handlers:
            try:
                handler(payload)
            except Exception as e:
                logger.warning(f"Handler for {event} failed: {e}")
        return len(handlers)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))
