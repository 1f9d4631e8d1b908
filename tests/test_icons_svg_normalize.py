import base64

import pytest

from icons_svg_normalize import SvgBox, extract_dimensions, inject_root_attributes, normalize_svg, sanitize_svg

NS = 'xmlns="http://www.w3.org/2000/svg"'


def decode(icon):
    return base64.b64decode(icon.data_uri.split(",", 1)[1]).decode("utf-8")


def test_sanitize_strips_active_content():
    markup = (
        f'<svg {NS} viewBox="0 0 24 24" onload="alert(1)">'
        '<script>alert(2)</script>'
        '<foreignObject><div>x</div></foreignObject>'
        '<path d="M0 0h24v24H0z" onclick="steal()"/>'
        '</svg>'
    )
    clean = sanitize_svg(markup)
    assert clean is not None
    lowered = clean.lower()
    for needle in ("script", "alert", "onload", "onclick", "foreignobject", "<div"):
        assert needle not in lowered
    assert "<path" in clean
    assert 'viewBox="0 0 24 24"' in clean


def test_sanitize_keeps_fragment_refs_only():
    markup = (
        f'<svg {NS} xmlns:xlink="http://www.w3.org/1999/xlink">'
        '<defs><path id="a" d="M0 0"/></defs>'
        '<use xlink:href="#a"/>'
        '<use href="https://evil.example/sprite.svg#a"/>'
        '</svg>'
    )
    clean = sanitize_svg(markup)
    assert 'href="#a"' in clean
    assert "evil.example" not in clean


def test_sanitize_drops_external_css_urls():
    markup = f'<svg {NS}><path d="M0 0" style="fill:url(https://evil.example/x)"/><path d="M1 1" fill="url(#g)"/></svg>'
    clean = sanitize_svg(markup)
    assert "evil.example" not in clean
    assert 'fill="url(#g)"' in clean

    block = f'<svg {NS}><style>path{{fill:url(https://tracker.example/p.svg#a)}}</style><path d="M0 0"/></svg>'
    assert "tracker.example" not in sanitize_svg(block)

    local = f'<svg {NS}><style>path{{fill:url(#g)}}</style><path d="M0 0"/></svg>'
    assert "url(#g)" in sanitize_svg(local)


def test_normalize_drops_style_block_with_external_url():
    markup = (
        f'<svg {NS} viewBox="0 0 24 24"><style>.a{{fill:url("https://tracker.example/p.svg#a")}}</style>'
        '<path class="a" d="M0 0h24v24H0z"/></svg>'
    ).encode()
    icon = normalize_svg(markup, "red")
    assert icon is not None
    assert "tracker.example" not in decode(icon)


def test_sanitize_blanks_unsafe_style_blocks():
    markup = f'<svg {NS}><style>@import url(https://evil.example/a.css);</style><path d="M0 0"/></svg>'
    assert "evil.example" not in sanitize_svg(markup)


@pytest.mark.parametrize(
    "markup",
    [
        '<!DOCTYPE svg [<!ENTITY boom "boom">]><svg xmlns="http://www.w3.org/2000/svg">&boom;</svg>',
        "<html><body>not an icon</body></html>",
        "<svg><path></svg>",
        "plain text",
    ],
)
def test_sanitize_rejects_unusable_markup(markup):
    assert sanitize_svg(markup) is None


def test_sanitize_accepts_prolog_and_bom():
    markup = '\ufeff<?xml version="1.0" encoding="UTF-8"?>\n<svg xmlns="http://www.w3.org/2000/svg"><path d="M0 0"/></svg>'
    assert sanitize_svg(markup).startswith("<svg")


@pytest.mark.parametrize(
    "markup, expected",
    [
        ('<svg viewBox="0 0 48 24"/>', SvgBox(0, 0, 48, 24)),
        ('<svg viewBox="-2,-2,28,28" width="10" height="10"/>', SvgBox(-2, -2, 28, 28)),
        ('<svg width="32px" height="16"/>', SvgBox(0, 0, 32, 16)),
        ('<svg><rect width="100" height="5"/></svg>', SvgBox(0, 0, 24, 24)),
        ('<svg width="100%" height="0"/>', SvgBox(0, 0, 24, 24)),
    ],
)
def test_extract_dimensions(markup, expected):
    assert extract_dimensions(markup) == expected


def test_inject_root_attributes_replaces_size():
    out = inject_root_attributes('<svg width="999" height="1" class="x"><path d="M0 0"/></svg>', SvgBox(0, 0, 48, 24), 32, 16)
    assert out.startswith('<svg class="x" ')
    assert 'width="32"' in out and 'height="16"' in out
    assert 'viewBox="0 0 48 24"' in out
    assert 'width="999"' not in out
    assert out.count('xmlns="http://www.w3.org/2000/svg"') == 1
    assert 'shape-rendering="geometricPrecision"' in out


def test_normalize_svg_sizes_icon():
    icon = normalize_svg(f'<svg {NS} viewBox="0 0 48 24"><path d="M0 0h48v24H0z"/></svg>'.encode())
    assert (icon.width, icon.height) == (32, 16)
    markup = decode(icon)
    assert 'width="32"' in markup
    assert 'viewBox="0 0 48 24"' in markup
    assert NS in markup


def test_normalize_svg_recolors(github_svg):
    icon = normalize_svg(github_svg, "FF0000")
    markup = decode(icon)
    assert "rgb(255, 0, 0)" in markup
    assert "#181717" not in markup
    assert (icon.width, icon.height) == (16, 16)


def test_normalize_svg_rejects_garbage():
    assert normalize_svg(b"not svg at all") is None
    assert normalize_svg(b"\xff\xfe\x00garbage") is None
