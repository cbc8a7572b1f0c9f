"""
Tests for the maintenance-copy filters.
"""

from __future__ import annotations

import pytest

from sitegate.sanitize import autop, clean_rich_text, clean_text, clean_url


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, ""),
        ("", ""),
        ("Plain title", "Plain title"),
        ("  <em>Back</em>\n\tsoon  ", "Back soon"),
        ("Fish & Chips", "Fish & Chips"),
        ("<script>alert(1)</script>Hello", "Hello"),
    ],
)
def test_clean_text(raw, expected) -> None:
    assert clean_text(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("https://cdn.example.test/logo.png", "https://cdn.example.test/logo.png"),
        ("  http://example.test/a.png ", "http://example.test/a.png"),
        ("javascript:alert(1)", ""),
        ("data:image/png;base64,AAAA", ""),
        ("//example.test/logo.png", ""),
        ("https://exa mple.test/x.png", ""),
        ("", ""),
        (None, ""),
    ],
)
def test_clean_url(raw, expected) -> None:
    assert clean_url(raw) == expected


def test_clean_rich_text_keeps_formatting_and_drops_scripts() -> None:
    cleaned = clean_rich_text(
        '<p style="color:red" onmouseover="x()">We are <strong>upgrading</strong></p>'
        "<script>steal()</script><a href=\"javascript:x()\">link</a>"
    )
    assert "<strong>upgrading</strong>" in cleaned
    assert "onmouseover" not in cleaned
    assert "steal" not in cleaned
    assert "javascript" not in cleaned


def test_clean_rich_text_is_stable() -> None:
    once = clean_rich_text("<p>Tea &amp; <em>cake</em></p>")
    assert clean_rich_text(once) == once


def test_autop_paragraphs_and_line_breaks() -> None:
    html = autop("First line\nsecond line\n\nNew paragraph")
    assert str(html) == "<p>First line<br>\nsecond line</p>\n<p>New paragraph</p>"


def test_autop_leaves_block_markup_alone() -> None:
    html = autop("<p>Already</p>\n\n<ul><li>a</li></ul>")
    assert str(html) == "<p>Already</p>\n<ul><li>a</li></ul>"


def test_autop_empty() -> None:
    assert str(autop("")) == ""


def test_autop_does_not_nest_paragraphs() -> None:
    html = autop("Hi\n<p>x</p>")
    assert str(html) == "<p>Hi</p>\n<p>x</p>"
    assert "<p><p>" not in str(autop("Intro <em>text</em>\n<ul><li>a</li></ul>"))
