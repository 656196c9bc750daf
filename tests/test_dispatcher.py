"""Tests for the layer dispatcher and error recovery."""

import logging

import pytest

from layerforge.builders import SceneBuilder
from layerforge.dispatcher import LayerDispatcher, z_ordered
from layerforge.models import Layer, Transform
from layerforge.recovery import fallback_svg, is_invalid_transform, recover_layer
from layerforge.renderers import RenderContext, ShapeRenderer


def _layer(layer_id, layer_type='shape', **data):
    return Layer.from_api_dict({'id': layer_id, 'type': layer_type, **data})


@pytest.fixture
def ctx(sources):
    return RenderContext(builder=SceneBuilder(), sources=sources)


class FlakyShapeRenderer(ShapeRenderer):
    """Fails on the first call, succeeds afterwards."""

    def __init__(self):
        self.calls = 0

    def render_content(self, layer, ctx):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError('first attempt fails')
        return super().render_content(layer, ctx)


class BrokenShapeRenderer(ShapeRenderer):
    def render_content(self, layer, ctx):
        raise RuntimeError('always fails')


class TestZOrder:
    """Tests for z-ordering."""

    def test_sorted_by_z_index(self):
        """Layers sort by zIndex ascending."""
        layers = [_layer('c', zIndex=3), _layer('a', zIndex=1), _layer('b', zIndex=2)]
        assert [layer.id for layer in z_ordered(layers)] == ['a', 'b', 'c']

    def test_ties_keep_order(self):
        """Equal zIndex keeps input order."""
        layers = [_layer('x', zIndex=1), _layer('y', zIndex=0), _layer('z', zIndex=1)]
        assert [layer.id for layer in z_ordered(layers)] == ['y', 'x', 'z']


class TestDispatch:
    """Tests for per-layer dispatch."""

    def test_renders_in_z_order(self, ctx):
        """Rendered wrappers follow z-order and are recorded on the context."""
        dispatcher = LayerDispatcher()
        nodes = dispatcher.render_layers([_layer('top', zIndex=5), _layer('bottom', 'text')], ctx)
        assert [node.layer_id for node in nodes] == ['bottom', 'top']
        assert set(ctx.rendered) == {'top', 'bottom'}
        assert ctx.dispatcher is dispatcher

    def test_skips_invisible_and_unknown(self, ctx):
        """Hidden layers and unknown types produce no output and no error."""
        layers = [_layer('hidden', visible=False), _layer('alien', 'hologram'), _layer('ok')]
        nodes = LayerDispatcher().render_layers(layers, ctx)
        assert [node.layer_id for node in nodes] == ['ok']

    def test_renderer_instances_are_reused(self):
        """One renderer instance per class."""
        dispatcher = LayerDispatcher()
        assert dispatcher.renderer_for('svg') is dispatcher.renderer_for('vector-source')
        assert dispatcher.renderer_for('hologram') is None

    def test_recovers_after_failure(self, ctx, caplog):
        """A failing layer is repaired and retried once."""
        dispatcher = LayerDispatcher()
        flaky = FlakyShapeRenderer()
        dispatcher._renderers[ShapeRenderer] = flaky
        with caplog.at_level(logging.WARNING, logger='layerforge.dispatcher'):
            nodes = dispatcher.render_layers([_layer('s')], ctx)
        assert [node.layer_id for node in nodes] == ['s']
        assert flaky.calls == 2
        assert 'Failed to render layer s' in caplog.text

    def test_unrecoverable_layer_is_omitted(self, ctx, caplog):
        """A layer failing twice is left out while the rest still renders."""
        dispatcher = LayerDispatcher()
        dispatcher._renderers[ShapeRenderer] = BrokenShapeRenderer()
        layers = [_layer('bad'), _layer('label', 'text', zIndex=1)]
        with caplog.at_level(logging.WARNING, logger='layerforge.dispatcher'):
            nodes = dispatcher.render_layers(layers, ctx)
        assert [node.layer_id for node in nodes] == ['label']
        assert 'could not be recovered' in caplog.text


class TestRecovery:
    """Tests for layer repair."""

    @pytest.mark.parametrize("transform,invalid", [
        ({}, False),
        ({'width': 0}, True),
        ({'scaleX': 0}, True),
        ({'x': 200000}, True),
        ({'height': 150000}, True),
    ])
    def test_invalid_transform(self, transform, invalid):
        """Zero sizes, non-positive scales and huge coordinates are invalid."""
        assert is_invalid_transform(Transform.model_validate(transform)) is invalid

    def test_transform_is_reset(self):
        """An invalid transform becomes the default box."""
        layer = _layer('s', transform={'x': 500000, 'width': 0, 'opacity': 0.5})
        recovered = recover_layer(layer)
        assert recovered.transform == Transform()
        assert recovered.id == 's'

    def test_valid_transform_is_kept(self):
        """A valid transform is left alone."""
        layer = _layer('s', transform={'x': 10, 'width': 40})
        assert recover_layer(layer).transform == layer.transform

    def test_negative_z_index(self):
        """A negative zIndex becomes 0."""
        assert recover_layer(_layer('s', zIndex=-4)).z_index == 0

    def test_empty_properties_take_defaults(self):
        """Empty property values are dropped so defaults apply."""
        layer = _layer('t', 'text', properties={'text': '', 'color': '#ff0000'})
        recovered = recover_layer(layer)
        assert recovered.properties.text == 'Text'
        assert recovered.properties.color == '#ff0000'

    def test_original_is_untouched(self):
        """Recovery returns a copy."""
        layer = _layer('s', zIndex=-1)
        recover_layer(layer)
        assert layer.z_index == -1


class TestFallback:
    """Tests for the fallback document."""

    def test_fallback_document(self):
        """The fallback is a complete document with the failure label."""
        svg = fallback_svg(300, 200, '#123456')
        assert svg.startswith('<?xml')
        assert 'width="300"' in svg
        assert 'Design rendering failed' in svg
        assert 'fill="#123456"' in svg

    def test_invalid_background_color(self):
        """An unusable background color falls back to white."""
        assert 'fill="#ffffff"' in fallback_svg(300, 200, 'not-a-color')
