"""
Adjustment stages as SVG filter primitives.

Amounts follow the CSS filter-effects definitions: brightness, contrast and
saturation use 1 as identity; hue is a rotation in degrees; sepia,
grayscale and invert are amounts in [0, 1].
"""

from dataclasses import dataclass
from typing import ClassVar

import numpy as np

from layerforge.geometry import fmt
from layerforge.paint import ElementSpec

from .base import AdjustmentStage
from .registry import register_stage

_SEPIA = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
])
_LUMINANCE = np.array([0.2126, 0.7152, 0.0722])


def _color_matrix(rgb: np.ndarray) -> str:
    """Expand a 3x3 RGB matrix into the 20 values of an feColorMatrix."""
    full = np.zeros((4, 5))
    full[:3, :3] = rgb
    full[3, 3] = 1.0
    return ' '.join(fmt(v) for v in full.flatten())


def _transfer(func_type: str, result: str, source: str, **attrs) -> ElementSpec:
    funcs = [
        ElementSpec(f'feFunc{channel}', {'type': func_type, **attrs})
        for channel in ('R', 'G', 'B')
    ]
    return ElementSpec('feComponentTransfer', {'in': source, 'result': result}, funcs)


@register_stage
@dataclass
class Blur(AdjustmentStage):
    name: ClassVar[str] = 'blur'
    identity: ClassVar[float] = 0.0

    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        return [ElementSpec('feGaussianBlur', {
            'in': source, 'stdDeviation': self.amount, 'result': result,
        })]


@register_stage
@dataclass
class Brightness(AdjustmentStage):
    name: ClassVar[str] = 'brightness'
    identity: ClassVar[float] = 1.0

    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        return [_transfer('linear', result, source, slope=self.amount)]


@register_stage
@dataclass
class Contrast(AdjustmentStage):
    name: ClassVar[str] = 'contrast'
    identity: ClassVar[float] = 1.0

    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        intercept = -0.5 * self.amount + 0.5
        return [_transfer('linear', result, source, slope=self.amount, intercept=intercept)]


@register_stage
@dataclass
class Saturation(AdjustmentStage):
    name: ClassVar[str] = 'saturation'
    identity: ClassVar[float] = 1.0

    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        return [ElementSpec('feColorMatrix', {
            'in': source, 'type': 'saturate', 'values': self.amount, 'result': result,
        })]


@register_stage
@dataclass
class Hue(AdjustmentStage):
    name: ClassVar[str] = 'hue'
    identity: ClassVar[float] = 0.0

    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        return [ElementSpec('feColorMatrix', {
            'in': source, 'type': 'hueRotate', 'values': self.amount, 'result': result,
        })]


@register_stage
@dataclass
class Sepia(AdjustmentStage):
    name: ClassVar[str] = 'sepia'
    identity: ClassVar[float] = 0.0

    def matrix(self) -> np.ndarray:
        # Interpolate between identity and the full sepia matrix
        return np.eye(3) * (1 - self.amount) + _SEPIA * self.amount

    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        return [ElementSpec('feColorMatrix', {
            'in': source, 'type': 'matrix', 'values': _color_matrix(self.matrix()), 'result': result,
        })]


@register_stage
@dataclass
class Grayscale(AdjustmentStage):
    name: ClassVar[str] = 'grayscale'
    identity: ClassVar[float] = 0.0

    def matrix(self) -> np.ndarray:
        full = np.tile(_LUMINANCE, (3, 1))
        return np.eye(3) * (1 - self.amount) + full * self.amount

    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        return [ElementSpec('feColorMatrix', {
            'in': source, 'type': 'matrix', 'values': _color_matrix(self.matrix()), 'result': result,
        })]


@register_stage
@dataclass
class Invert(AdjustmentStage):
    name: ClassVar[str] = 'invert'
    identity: ClassVar[float] = 0.0

    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        table = f'{fmt(self.amount)} {fmt(1 - self.amount)}'
        return [_transfer('table', result, source, tableValues=table)]
