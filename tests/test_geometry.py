import unittest

import pytest

from matrix_tui.geometry import (
    HORIZONTAL,
    VERTICAL,
    AbsoluteInner,
    AbsoluteOuter,
    Percentage,
    Rect,
    Spacing,
    centered_line,
    centered_rect,
    expand_area,
    shrink_area,
    split_fixed,
    split_rect,
    text_extent,
    wrap_paragraphs,
    wrap_text,
)


class CenteredRectTests(unittest.TestCase):
    def test_absolute_inner_keeps_requested_size(self):
        base = Rect(0, 0, 81, 24)
        for width in range(0, 82, 7):
            for height in range(0, 25, 5):
                rect = centered_rect(AbsoluteInner(width, height), base)
                self.assertEqual((rect.width, rect.height), (width, height))
                left = rect.x - base.x
                right = base.right - rect.right
                top = rect.y - base.y
                bottom = base.bottom - rect.bottom
                self.assertLessEqual(abs(left - right), 1)
                self.assertLessEqual(abs(top - bottom), 1)

    def test_odd_leftover_goes_right(self):
        rect = centered_rect(AbsoluteInner(10, 4), Rect(0, 0, 81, 24))
        self.assertEqual(rect, Rect(35, 10, 10, 4))

    def test_oversized_request_is_clamped(self):
        base = Rect(2, 3, 20, 10)
        self.assertEqual(centered_rect(AbsoluteInner(100, 100), base), base)

    def test_percentage(self):
        self.assertEqual(centered_rect(Percentage(50, 50), Rect(0, 0, 80, 24)), Rect(20, 6, 40, 12))

    def test_absolute_outer_margins(self):
        self.assertEqual(centered_rect(AbsoluteOuter(5, 2), Rect(0, 0, 80, 24)), Rect(5, 2, 70, 20))
        collapsed = centered_rect(AbsoluteOuter(100, 100), Rect(0, 0, 80, 24))
        self.assertEqual((collapsed.width, collapsed.height), (0, 0))

    def test_degenerate_base(self):
        rect = centered_rect(AbsoluteInner(5, 5), Rect(0, 0, 0, 0))
        self.assertTrue(rect.is_empty())
        self.assertGreaterEqual(rect.x, 0)

    def test_unknown_position_rejected(self):
        with self.assertRaises(TypeError):
            centered_rect((1, 2), Rect(0, 0, 5, 5))


def test_centered_line_offsets_from_top():
    assert centered_line(36, 1, 3, Rect(10, 5, 40, 5)) == Rect(12, 8, 36, 1)


def test_centered_line_clamps_padding():
    line = centered_line(5, 3, 10, Rect(0, 0, 10, 4))
    assert line.height == 0
    assert line.y == 4


def test_split_rect_horizontal_and_vertical():
    assert split_rect(40, HORIZONTAL, Rect(0, 0, 36, 1)) == (Rect(0, 0, 14, 1), Rect(14, 0, 22, 1))
    assert split_rect(50, VERTICAL, Rect(0, 0, 10, 5)) == (Rect(0, 0, 10, 2), Rect(0, 2, 10, 3))


def test_split_rect_rejects_unknown_direction():
    with pytest.raises(ValueError):
        split_rect(50, "diagonal", Rect(0, 0, 10, 10))


def test_split_fixed_last_slice_takes_remainder():
    assert split_fixed(Rect(0, 0, 10, 10), [3, 0]) == [Rect(0, 0, 10, 3), Rect(0, 3, 10, 7)]
    assert split_fixed(Rect(0, 0, 10, 2), [5, 1, 0]) == [
        Rect(0, 0, 10, 2),
        Rect(0, 2, 10, 0),
        Rect(0, 2, 10, 0),
    ]


def test_expand_area_saturates_at_origin():
    assert expand_area(Rect(1, 1, 5, 5), Spacing.uniform(2)) == Rect(0, 0, 8, 8)
    assert expand_area(Rect(5, 5, 2, 2), Spacing.uniform(1)) == Rect(4, 4, 4, 4)


def test_shrink_area_never_goes_negative():
    assert shrink_area(Rect(0, 0, 3, 3), Spacing.uniform(2)) == Rect(2, 2, 0, 0)
    assert shrink_area(Rect(0, 0, 10, 6), Spacing(1, 1, 4, 4)) == Rect(4, 1, 2, 4)


def test_text_extent_includes_padding():
    assert text_extent("ab\ncde", Spacing(1, 1, 4, 4)) == (11, 4)
    assert text_extent("") == (0, 1)


class WrapTextTests(unittest.TestCase):
    def test_prefers_separator(self):
        self.assertEqual(wrap_text("a, b, c", ", ", 4), ["a, b", "c"])

    def test_falls_back_to_space(self):
        self.assertEqual(wrap_text("hello world foo", " ", 11), ["hello world", "foo"])

    def test_long_token_kept_whole(self):
        self.assertEqual(wrap_text("abcdefghij kl", " ", 4), ["abcdefghij", "kl"])

    def test_empty_text(self):
        self.assertEqual(wrap_text("", ", ", 10), [""])

    def test_help_line_breaks_between_entries(self):
        text = "Alt+? - Toggle help menu, Ctrl+D - Exit matrix-tui, Up - Select up"
        lines = wrap_text(text, ", ", 30)
        self.assertEqual(lines, ["Alt+? - Toggle help menu", "Ctrl+D - Exit matrix-tui", "Up - Select up"])

    def test_lines_fit_unless_single_token(self):
        samples = [
            "Please resize your screen so there is more space to draw!",
            "Unable to connect to home server.",
            "a bb ccc dddd eeeee ffffff ggggggg",
            "supercalifragilistic is long",
        ]
        for text in samples:
            for width in range(1, 40):
                lines = wrap_text(text, " ", width)
                for line in lines:
                    if len(line) > width:
                        self.assertNotIn(" ", line, (text, width, line))
                self.assertEqual(" ".join(lines).split(), text.split())


def test_wrap_paragraphs_keeps_newlines():
    assert wrap_paragraphs("one two\nthree", 3) == ["one", "two", "three"]
