"""Video and audio layers. Both render as labeled placeholders."""

from typing import ClassVar, Optional

from pydantic import Field

from .base import LayerProperties


class VideoProperties(LayerProperties):
    layer_types: ClassVar[tuple[str, ...]] = ('video',)

    src: Optional[str] = Field(default=None)
    poster: Optional[str] = Field(default=None)
    autoplay: bool = Field(default=False)
    loop: bool = Field(default=False)
    muted: bool = Field(default=True)


class AudioProperties(LayerProperties):
    layer_types: ClassVar[tuple[str, ...]] = ('audio',)

    src: Optional[str] = Field(default=None)
    autoplay: bool = Field(default=False)
    loop: bool = Field(default=False)
    volume: float = Field(default=1.0, ge=0.0, le=1.0)
