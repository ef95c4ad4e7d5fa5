"""Rectangle math and text wrapping for the curses layout."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

HORIZONTAL = "horizontal"
VERTICAL = "vertical"


@dataclass(frozen=True)
class Rect:
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class Spacing:
    top: int = 0
    bottom: int = 0
    left: int = 0
    right: int = 0

    @classmethod
    def uniform(cls, value: int) -> "Spacing":
        return cls(value, value, value, value)

    @property
    def horizontal(self) -> int:
        return self.left + self.right

    @property
    def vertical(self) -> int:
        return self.top + self.bottom


@dataclass(frozen=True)
class Percentage:
    x: int
    y: int


@dataclass(frozen=True)
class AbsoluteInner:
    width: int
    height: int


@dataclass(frozen=True)
class AbsoluteOuter:
    x: int
    y: int


CenterPosition = Union[Percentage, AbsoluteInner, AbsoluteOuter]


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _center_span(start: int, total: int, size: int) -> tuple[int, int]:
    size = _clamp(size, 0, max(total, 0))
    return start + (max(total, 0) - size) // 2, size


def centered_rect(position: CenterPosition, base: Rect) -> Rect:
    """Center a rectangle inside ``base``.

    Sizes larger than ``base`` are clamped to it, and margins never go negative.
    When the leftover space is odd, the extra cell goes to the right/bottom side.
    """

    if isinstance(position, AbsoluteInner):
        x, width = _center_span(base.x, base.width, position.width)
        y, height = _center_span(base.y, base.height, position.height)
    elif isinstance(position, AbsoluteOuter):
        margin_x = _clamp(position.x, 0, base.width // 2)
        margin_y = _clamp(position.y, 0, base.height // 2)
        x, width = base.x + margin_x, base.width - margin_x * 2
        y, height = base.y + margin_y, base.height - margin_y * 2
    elif isinstance(position, Percentage):
        pct_x = _clamp(position.x, 0, 100)
        pct_y = _clamp(position.y, 0, 100)
        x, width = _center_span(base.x, base.width, base.width * pct_x // 100)
        y, height = _center_span(base.y, base.height, base.height * pct_y // 100)
    else:
        raise TypeError(f"Unknown center position: {position!r}")
    return Rect(x, y, width, height)


def centered_line(width: int, height: int, top_padding: int, base: Rect) -> Rect:
    """Horizontally center a ``width`` x ``height`` strip, ``top_padding`` rows below the top."""

    x, width = _center_span(base.x, base.width, width)
    top_padding = _clamp(top_padding, 0, max(base.height, 0))
    height = _clamp(height, 0, max(base.height - top_padding, 0))
    return Rect(x, base.y + top_padding, width, height)


def split_rect(first_percentage: int, direction: str, rect: Rect) -> tuple[Rect, Rect]:
    """Split ``rect`` in two along ``direction``; the first part gets ``first_percentage``."""

    pct = _clamp(first_percentage, 0, 100)
    if direction == HORIZONTAL:
        first = rect.width * pct // 100
        return (
            Rect(rect.x, rect.y, first, rect.height),
            Rect(rect.x + first, rect.y, rect.width - first, rect.height),
        )
    if direction == VERTICAL:
        first = rect.height * pct // 100
        return (
            Rect(rect.x, rect.y, rect.width, first),
            Rect(rect.x, rect.y + first, rect.width, rect.height - first),
        )
    raise ValueError(f"direction must be {HORIZONTAL!r} or {VERTICAL!r}")


def split_fixed(rect: Rect, sizes: list[int], direction: str = VERTICAL) -> list[Rect]:
    """Cut consecutive fixed-size slices off ``rect``; the last slice takes the remainder."""

    parts: list[Rect] = []
    offset = 0
    total = rect.height if direction == VERTICAL else rect.width
    for index, size in enumerate(sizes):
        remaining = max(total - offset, 0)
        length = remaining if index == len(sizes) - 1 else _clamp(size, 0, remaining)
        if direction == VERTICAL:
            parts.append(Rect(rect.x, rect.y + offset, rect.width, length))
        else:
            parts.append(Rect(rect.x + offset, rect.y, length, rect.height))
        offset += length
    return parts


def expand_area(area: Rect, spacing: Spacing) -> Rect:
    x = max(area.x - spacing.left, 0)
    y = max(area.y - spacing.top, 0)
    width = area.width + (area.x - x) + max(spacing.right, 0)
    height = area.height + (area.y - y) + max(spacing.bottom, 0)
    return Rect(x, y, width, height)


def shrink_area(area: Rect, spacing: Spacing) -> Rect:
    left = _clamp(spacing.left, 0, max(area.width, 0))
    top = _clamp(spacing.top, 0, max(area.height, 0))
    width = max(area.width - spacing.left - spacing.right, 0)
    height = max(area.height - spacing.top - spacing.bottom, 0)
    return Rect(area.x + left, area.y + top, width, height)


def _next_break(text: str, separator: str) -> tuple[int, int]:
    """Position and length of the first separator or space in ``text``."""

    candidates = []
    sep_at = text.find(separator)
    if sep_at > 0:
        candidates.append((sep_at, len(separator)))
    space_at = text.find(" ")
    if space_at > 0:
        candidates.append((space_at, 1))
    if not candidates:
        return -1, 0
    return min(candidates)


def wrap_text(text: str, separator: str, max_width: int) -> list[str]:
    """Greedily break ``text`` into lines no wider than ``max_width``.

    Lines break at the last ``separator`` that fits, then at the last space.
    A single token that is wider than ``max_width`` is kept whole on its own line.
    """

    separator = separator or " "
    max_width = max(max_width, 1)
    remaining = text.strip()
    lines: list[str] = []

    while len(remaining) > max_width:
        cut = remaining.rfind(separator, 0, max_width + len(separator))
        if cut > 0:
            lines.append(remaining[:cut].rstrip())
            remaining = remaining[cut + len(separator):].lstrip()
            continue

        cut = remaining.rfind(" ", 0, max_width + 1)
        if cut > 0:
            lines.append(remaining[:cut].rstrip())
            remaining = remaining[cut + 1:].lstrip()
            continue

        cut, length = _next_break(remaining, separator)
        if cut < 0:
            break
        lines.append(remaining[:cut])
        remaining = remaining[cut + length:].lstrip()

    lines.append(remaining)
    return lines


def wrap_paragraphs(text: str, max_width: int) -> list[str]:
    lines: list[str] = []
    for paragraph in text.split("\n"):
        lines.extend(wrap_text(paragraph, " ", max_width))
    return lines


def text_extent(text: str, padding: Spacing | None = None) -> tuple[int, int]:
    """Width of the longest line and line count, plus ``padding``."""

    padding = padding or Spacing()
    lines = text.split("\n")
    longest = max((len(line) for line in lines), default=0)
    return longest + padding.horizontal, len(lines) + padding.vertical
