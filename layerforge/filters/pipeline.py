"""
Filter pipeline: collect the stages a layer needs and register one filter
resource per distinct chain.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from layerforge.paint import ElementSpec, ResourceCollection

from .base import AdjustmentStage, CompositeEffect
from .registry import effect_order, effect_registry, filter_registry, filter_stage_order


@dataclass
class FilterChain:
    """Ordered adjustment stages followed by ordered composite effects."""
    stages: list[AdjustmentStage] = field(default_factory=list)
    effects: list[CompositeEffect] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.stages and not self.effects

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.stages] + [e.name for e in self.effects]

    def params(self) -> dict[str, Any]:
        return {
            'stages': [s.params() for s in self.stages],
            'effects': [e.params() for e in self.effects],
        }


def build_chain(properties: Any) -> FilterChain:
    """
    Build the chain for a properties model.

    Adjustments are read by attribute name in ``filter_stage_order``;
    ``shadow`` and ``glow`` descriptors follow in ``effect_order``.
    Models without those attributes simply contribute nothing.
    """
    chain = FilterChain()
    for name in filter_stage_order:
        stage_class = filter_registry.get(name)
        if stage_class is None:
            continue
        stage = stage_class.from_properties(properties)
        if stage is not None:
            chain.stages.append(stage)

    for name in effect_order:
        effect_class = effect_registry.get(name)
        if effect_class is None:
            continue
        effect = effect_class.from_descriptor(getattr(properties, name, None))
        if effect is not None:
            chain.effects.append(effect)
    return chain


def build_filter_element(chain: FilterChain) -> ElementSpec:
    """Chain every primitive, each reading the previous stage's result."""
    primitives = []
    source = 'SourceGraphic'
    for index, stage in enumerate(chain.stages):
        result = f'stage{index}'
        primitives.extend(stage.primitives(source, result))
        source = result
    for effect in chain.effects:
        result = f'{effect.name}-out'
        primitives.extend(effect.primitives(source, result))
        source = result
    return ElementSpec('filter', {
        'x': '-50%',
        'y': '-50%',
        'width': '200%',
        'height': '200%',
        'color-interpolation-filters': 'sRGB',
    }, primitives)


def apply_filters(properties: Any, resources: ResourceCollection) -> Optional[str]:
    """
    Register the layer's filter chain and return ``url(#id)``, or None when
    the layer needs no filter.
    """
    chain = build_chain(properties)
    if chain.is_empty:
        return None
    resource_id = resources.add('filter', chain.params(), lambda _id: build_filter_element(chain))
    return f'url(#{resource_id})'
