"""
Text layout shared by both render targets.

Line breaking uses a character-count heuristic (average glyph width of
``0.6 * fontSize``) rather than real font metrics. The same heuristic must run
for preview and export or wrapped lines would differ.
"""

from dataclasses import dataclass, field

from layerforge.models import TextProperties

CHAR_WIDTH_FACTOR = 0.6

_ANCHORS = {
    'left': 'start',
    'center': 'middle',
    'right': 'end',
}


@dataclass
class TextLine:
    """One positioned line of a multi-line text block."""
    text: str
    x: float
    dy: float


@dataclass
class TextLayout:
    """
    Resolved placement of a text layer.

    For single-line text ``lines`` is empty and ``text`` holds the content;
    ``dominant_baseline`` is then ``middle``.
    """
    x: float
    y: float
    anchor: str
    multiline: bool
    text: str = ''
    lines: list[TextLine] = field(default_factory=list)
    line_height_px: float = 0.0
    dominant_baseline: str = ''


def text_anchor(text_align: str) -> str:
    """Map ``textAlign`` to an SVG ``text-anchor`` (justify behaves like left)."""
    return _ANCHORS.get(text_align, 'start')


def text_x(text_align: str, width: float) -> float:
    if text_align == 'center':
        return width / 2
    if text_align == 'right':
        return width
    return 0.0


def max_chars_per_line(width: float, font_size: float) -> int:
    return int(width / (font_size * CHAR_WIDTH_FACTOR))


def wrap_lines(lines: list[str], width: float, font_size: float) -> list[str]:
    """
    Greedily pack words into lines of at most ``max_chars_per_line`` characters.

    A single word longer than the limit stays on its own line. When the limit
    is zero or less the lines are returned unchanged.
    """
    limit = max_chars_per_line(width, font_size)
    if limit <= 0:
        return list(lines)

    wrapped = []
    for line in lines:
        if len(line) <= limit:
            wrapped.append(line)
            continue
        current = ''
        for word in line.split(' '):
            candidate = f'{current} {word}' if current else word
            if len(candidate) <= limit:
                current = candidate
            else:
                if current:
                    wrapped.append(current)
                current = word
        if current:
            wrapped.append(current)
    return wrapped


def layout_text(properties: TextProperties, width: float, height: float) -> TextLayout:
    """
    Place a text layer inside its ``width`` x ``height`` box.

    Single line: x from the alignment, ``y = height / 2``, middle baseline.
    Multi-line or word wrap: the block of ``n`` lines is centred with its
    first baseline at ``(height - n * lineHeightPx) / 2 + fontSize``; each
    non-blank line gets ``dy`` of 0 (first emitted line) or ``lineHeightPx``.
    """
    align = properties.text_align
    x = text_x(align, width)
    anchor = text_anchor(align)

    if not properties.is_multiline:
        return TextLayout(
            x=x,
            y=height / 2,
            anchor=anchor,
            multiline=False,
            text=properties.text,
            dominant_baseline='middle',
        )

    lines = properties.lines
    if properties.word_wrap:
        lines = wrap_lines(lines, width, properties.font_size)

    line_height_px = properties.font_size * properties.line_height
    total_height = len(lines) * line_height_px
    start_y = (height - total_height) / 2 + properties.font_size

    positioned = []
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        positioned.append(TextLine(
            text=stripped,
            x=x,
            dy=0.0 if not positioned else line_height_px,
        ))

    return TextLayout(
        x=x,
        y=start_y,
        anchor=anchor,
        multiline=True,
        lines=positioned,
        line_height_px=line_height_px,
    )
