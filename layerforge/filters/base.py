"""
Filter stage base classes.

Two families:
- AdjustmentStage: color/blur adjustments read from a layer property
  (identity value = no stage)
- CompositeEffect: shadow and glow, built from an effect descriptor

Every stage emits builder-neutral filter primitives (``ElementSpec``) and
the parameters that identify it, so identical chains share one filter
resource.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from layerforge.paint import ElementSpec


@dataclass
class AdjustmentStage(ABC):
    """
    One adjustment of the fixed-order chain.

    Subclasses declare the property they read and its identity value:

        @register_stage
        @dataclass
        class Brightness(AdjustmentStage):
            name: ClassVar[str] = 'brightness'
            identity: ClassVar[float] = 1.0
    """

    amount: float

    name: ClassVar[str] = 'base'
    identity: ClassVar[float] = 0.0

    @classmethod
    def from_properties(cls, properties: Any) -> Optional['AdjustmentStage']:
        """Build the stage from ``properties.<name>``, or None when absent or identity."""
        value = getattr(properties, cls.name, None)
        if value is None or value == cls.identity:
            return None
        return cls(amount=float(value))

    def params(self) -> dict[str, Any]:
        return {'stage': self.name, 'amount': self.amount}

    @abstractmethod
    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        """Primitives reading ``source`` whose last element writes ``result``."""


@dataclass
class CompositeEffect(ABC):
    """Shadow or glow composited under the filtered graphic."""

    color: str
    blur: float
    opacity: float

    name: ClassVar[str] = 'base'

    @classmethod
    @abstractmethod
    def from_descriptor(cls, descriptor: Any) -> Optional['CompositeEffect']:
        """Build the effect from a layer descriptor, or None when it is absent or disabled."""

    def params(self) -> dict[str, Any]:
        return {'effect': self.name, 'color': self.color, 'blur': self.blur, 'opacity': self.opacity}

    @abstractmethod
    def primitives(self, source: str, result: str) -> list[ElementSpec]:
        """Primitives compositing the effect with ``source`` into ``result``."""
