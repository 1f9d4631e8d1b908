import pytest

from badge_colors import (
    BLACK,
    COLORS,
    WHITE,
    Color,
    contrast_ratio,
    format_rgb,
    parse_color,
    resolve_text_color,
)


def test_named_colors_are_case_insensitive():
    assert parse_color("green") == Color(76, 175, 80)
    assert parse_color("GREEN") == Color(76, 175, 80)
    assert parse_color(" Blue ") == Color(0, 122, 255)


def test_palette_has_at_least_35_names():
    assert len(COLORS) >= 35


@pytest.mark.parametrize("token", ["#FF0000", "ff0000", "FF0000", "#ff0000"])
def test_hex_tokens_decode(token):
    assert parse_color(token) == Color(255, 0, 0)


@pytest.mark.parametrize(
    "token",
    [None, 42, 3.5, [], {}, "", "   ", "#FFF", "12345", "1234567", "#GGGGGG", "not-a-color", "##ff0000"],
)
def test_unresolvable_tokens_fall_back_to_white(token):
    assert parse_color(token) == WHITE


def test_format_rgb():
    assert format_rgb(Color(1, 2, 3)) == "rgb(1, 2, 3)"


def test_contrast_ratio_extremes():
    assert contrast_ratio(WHITE, BLACK) == pytest.approx(21.0)
    assert contrast_ratio(BLACK, WHITE) == pytest.approx(21.0)
    assert contrast_ratio(WHITE, WHITE) == pytest.approx(1.0)


def test_text_color_without_auto_contrast_uses_caller_value():
    background = parse_color("yellow")
    assert resolve_text_color(None, background) == WHITE
    assert resolve_text_color("white", background) == WHITE
    assert resolve_text_color("red", background) == parse_color("red")


def test_auto_contrast_keeps_readable_caller_color():
    assert resolve_text_color("white", BLACK, auto_contrast=True) == WHITE


def test_auto_contrast_replaces_unreadable_caller_color():
    background = parse_color("yellow")
    assert resolve_text_color("white", background, auto_contrast=True) == BLACK


def test_auto_contrast_without_caller_color_picks_best():
    assert resolve_text_color(None, parse_color("indigo"), auto_contrast=True) == WHITE
    assert resolve_text_color("auto", parse_color("ivory"), auto_contrast=True) == BLACK
