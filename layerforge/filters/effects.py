"""
Composite effects: drop shadow and outer glow.

Both follow the same primitive chain: gaussian-blur the source (alpha for
shadows, the adjusted graphic for glows), offset (shadow only), flood a color at an
opacity, composite "in" against the blurred alpha, then composite the
filtered graphic "over" the result.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from layerforge.models import Glow, Shadow
from layerforge.paint import ElementSpec

from .base import CompositeEffect
from .registry import register_effect


@register_effect
@dataclass
class ShadowEffect(CompositeEffect):
    offset_x: float = 0.0
    offset_y: float = 0.0

    name: ClassVar[str] = 'shadow'

    @classmethod
    def from_descriptor(cls, shadow: Optional[Shadow]) -> Optional['ShadowEffect']:
        if shadow is None or not shadow.enabled:
            return None
        return cls(
            color=shadow.color,
            blur=shadow.blur,
            opacity=shadow.opacity,
            offset_x=shadow.offset_x,
            offset_y=shadow.offset_y,
        )

    def params(self) -> dict[str, Any]:
        return {**super().params(), 'dx': self.offset_x, 'dy': self.offset_y}

    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        return [
            ElementSpec('feGaussianBlur', {'in': 'SourceAlpha', 'stdDeviation': self.blur, 'result': 'shadow-blur'}),
            ElementSpec('feOffset', {'in': 'shadow-blur', 'dx': self.offset_x, 'dy': self.offset_y, 'result': 'shadow-offset'}),
            ElementSpec('feFlood', {'flood-color': self.color, 'flood-opacity': self.opacity, 'result': 'shadow-color'}),
            ElementSpec('feComposite', {'in': 'shadow-color', 'in2': 'shadow-offset', 'operator': 'in', 'result': 'shadow'}),
            ElementSpec('feComposite', {'in': source, 'in2': 'shadow', 'operator': 'over', 'result': result}),
        ]


@register_effect
@dataclass
class GlowEffect(CompositeEffect):
    name: ClassVar[str] = 'glow'

    @classmethod
    def from_descriptor(cls, glow: Optional[Glow]) -> Optional['GlowEffect']:
        if glow is None or not glow.enabled:
            return None
        return cls(color=glow.color, blur=glow.blur, opacity=glow.opacity)

    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        return [
            ElementSpec('feGaussianBlur', {'in': source, 'stdDeviation': self.blur, 'result': 'glow-blur'}),
            ElementSpec('feFlood', {'flood-color': self.color, 'flood-opacity': self.opacity, 'result': 'glow-color'}),
            ElementSpec('feComposite', {'in': 'glow-color', 'in2': 'glow-blur', 'operator': 'in', 'result': 'glow'}),
            ElementSpec('feComposite', {'in': source, 'in2': 'glow', 'operator': 'over', 'result': result}),
        ]
