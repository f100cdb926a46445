"""
Tests for the free-text sanitizer.
"""
import pytest

from justchiro.core.sanitizer import sanitize, sanitize_fields, sanitize_payload
from justchiro.schemas import chiropractor_rules


class TestSanitize:

    def test_trims(self):
        assert sanitize("  hello  ") == "hello"

    def test_keeps_formatting_tags(self):
        assert sanitize("<b>bold</b> and <em>italic</em>") == "<b>bold</b> and <em>italic</em>"

    def test_strips_script_tags(self):
        cleaned = sanitize("<script>alert(1)</script>Great care")
        assert "<script" not in cleaned
        assert "Great care" in cleaned

    def test_drops_javascript_links(self):
        cleaned = sanitize('<a href="javascript:alert(1)">click</a>')
        assert "javascript:" not in cleaned
        assert "click" in cleaned

    def test_keeps_https_links(self):
        cleaned = sanitize('<a href="https://www.chiro.com">site</a>')
        assert 'href="https://www.chiro.com"' in cleaned

    def test_strips_event_handlers(self):
        cleaned = sanitize('<p onclick="steal()">text</p>')
        assert "onclick" not in cleaned
        assert "text" in cleaned

    @pytest.mark.parametrize("value", [
        "plain text",
        "Tom & Jerry <i>rocks</i>",
        "<script>alert(1)</script><b>x</b>",
        '<a href="javascript:void(0)" title="t">y</a>',
        "  <div><p>nested</p></div>  ",
    ])
    def test_idempotent(self, value):
        once = sanitize(value)
        assert sanitize(once) == once

    @pytest.mark.parametrize("value", [None, 5, 2.5, True, False])
    def test_non_strings_pass_through(self, value):
        assert sanitize(value) is value

    def test_collections_are_sanitized_element_wise(self):
        assert sanitize(["<script>x</script>a", " b "]) == ["xa", "b"]
        assert sanitize({"site_name": " <b>Chiro</b> "}) == {"site_name": "<b>Chiro</b>"}


class TestSanitizeFields:

    def test_only_named_fields(self):
        data = {"name": "<script>x</script>Name", "phone": "<b>555</b>"}
        cleaned = sanitize_fields(data, ["name"])
        assert "<script" not in cleaned["name"]
        assert cleaned["phone"] == "<b>555</b>"
        assert data["name"] == "<script>x</script>Name"

    def test_payload_uses_rule_set_flags(self):
        cleaned = sanitize_payload(chiropractor_rules, {
            "description": "<img src=x onerror=alert(1)>Gentle care",
            "website": "https://www.chiro.com",
        })
        assert "<img" not in cleaned["description"]
        assert cleaned["website"] == "https://www.chiro.com"
