"""Tests for the fallback error document."""

from html.parser import HTMLParser

from bundlepdf_backend.error_page import build_error_html


class _TagCounter(HTMLParser):
    def __init__(self):
        super().__init__()
        self.opened = []

    def handle_starttag(self, tag, attrs):
        self.opened.append(tag)


def test_contains_message():
    html = build_error_html("details")

    assert "details" in html
    assert html.startswith("<!DOCTYPE html>")
    assert html.rstrip().endswith("</html>")


def test_message_is_escaped():
    html = build_error_html('<script>alert("x")</script> & more')

    assert "<script>" not in html
    assert "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt; &amp; more" in html


def test_parseable_single_page():
    parser = _TagCounter()
    parser.feed(build_error_html("boom"))

    assert parser.opened.count("section") == 1
    assert "head" in parser.opened
    assert "body" in parser.opened


def test_never_fails_on_odd_input():
    class Unprintable:
        def __str__(self):
            raise RuntimeError("no")

    assert "Something went wrong" in build_error_html(None)
    assert "Something went wrong" in build_error_html(12345)
    assert "Something went wrong" in build_error_html(Unprintable())


def test_percent_signs_survive():
    assert "100% broken %s" in build_error_html("100% broken %s")
