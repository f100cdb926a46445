"""
Tests for declarative field validation.
"""
import pytest

from justchiro.core.exceptions import ValidationFailed
from justchiro.core.validation import (
    FieldSpec, IsArrayOf, IsBoolean, IsInteger, IsOneOf, IsURL, LengthRange,
    Required, RuleSet, SkipIfEmpty, Trim,
)
from justchiro.schemas import (
    blog_post_rules, chiropractor_rules, password_change_rules, settings_bulk_rules,
)


def fields_of(violations):
    return [v["field"] for v in violations]


@pytest.fixture
def listing():
    return {
        "name": "  Dr. James Wilson ",
        "state": "Florida",
        "address": "321 Palm Drive, Miami, FL 33101",
        "phone": "(555) 456-7890",
        "email": "James.Wilson@Chiro.com",
    }


class TestChiropractorRules:

    def test_valid_payload_is_transformed(self, listing):
        data = chiropractor_rules.ensure_valid(listing)
        assert data["name"] == "Dr. James Wilson"
        assert data["email"] == "james.wilson@chiro.com"

    def test_empty_optional_fields_are_left_out(self, listing):
        listing.update({"website": "", "specialty": "   ", "description": None})
        data = chiropractor_rules.ensure_valid(listing)
        assert "website" not in data
        assert "specialty" not in data
        assert "description" not in data

    def test_unknown_keys_are_dropped(self, listing):
        listing["is_active"] = False
        listing["id"] = 99
        data = chiropractor_rules.ensure_valid(listing)
        assert "is_active" not in data
        assert "id" not in data

    def test_bad_phone_is_rejected(self, listing):
        listing["phone"] = "abc"
        outcome = chiropractor_rules.validate(listing)
        assert not outcome.accepted
        assert outcome.violations == [{"field": "phone", "message": "Invalid phone number format"}]

    def test_every_failing_rule_is_reported(self, listing):
        listing["name"] = ""
        listing["email"] = "not-an-email"
        outcome = chiropractor_rules.validate(listing)
        assert fields_of(outcome.violations) == ["name", "name", "email"]
        messages = [v["message"] for v in outcome.violations]
        assert "Name is required" in messages
        assert "Name must be between 2 and 255 characters" in messages
        assert "Invalid email address" in messages

    def test_missing_required_fields(self):
        outcome = chiropractor_rules.validate({})
        for name in ("name", "state", "address", "phone", "email"):
            assert name in fields_of(outcome.violations)

    def test_is_featured_false_is_kept(self, listing):
        listing["is_featured"] = False
        assert chiropractor_rules.ensure_valid(listing)["is_featured"] is False

    def test_is_featured_string_is_coerced(self, listing):
        listing["is_featured"] = "true"
        assert chiropractor_rules.ensure_valid(listing)["is_featured"] is True

    def test_is_featured_garbage_is_rejected(self, listing):
        listing["is_featured"] = "maybe"
        outcome = chiropractor_rules.validate(listing)
        assert outcome.violations == [{"field": "is_featured", "message": "is_featured must be a boolean"}]

    def test_website_must_be_http(self, listing):
        listing["website"] = "ftp://files.chiro.com"
        outcome = chiropractor_rules.validate(listing)
        assert outcome.violations == [{"field": "website", "message": "Invalid website URL"}]

    def test_non_object_body(self):
        with pytest.raises(ValidationFailed) as exc_info:
            chiropractor_rules.ensure_valid(["not", "an", "object"])
        assert exc_info.value.violations == [
            {"field": "body", "message": "Request body must be a JSON object"}
        ]


class TestBlogRules:

    def test_tags_must_be_array(self):
        outcome = blog_post_rules.validate({
            "title": "A valid title",
            "content": "x" * 60,
            "author": "Someone",
            "tags": "Health",
        })
        assert outcome.violations == [{"field": "tags", "message": "Tags must be an array"}]

    def test_tag_elements_are_checked(self):
        outcome = blog_post_rules.validate({
            "title": "A valid title",
            "content": "x" * 60,
            "author": "Someone",
            "tags": [" Health ", "t" * 51],
        })
        assert outcome.violations == [
            {"field": "tags[1]", "message": "Each tag must be less than 50 characters"}
        ]

    def test_tag_elements_are_trimmed(self):
        data = blog_post_rules.ensure_valid({
            "title": "A valid title",
            "content": "x" * 60,
            "author": "Someone",
            "tags": [" Health ", "Wellness"],
            "is_published": False,
        })
        assert data["tags"] == ["Health", "Wellness"]
        assert data["is_published"] is False

    def test_short_content(self):
        outcome = blog_post_rules.validate({"title": "A valid title", "content": "too short", "author": "A"})
        assert outcome.violations == [
            {"field": "content", "message": "Content must be at least 50 characters"}
        ]


class TestPasswordRules:

    def test_weak_password(self):
        outcome = password_change_rules.validate({"currentPassword": "x", "newPassword": "alllowercase"})
        assert outcome.violations == [
            {"field": "newPassword", "message": "Password must contain uppercase, lowercase, and number"}
        ]

    def test_short_and_weak_password(self):
        outcome = password_change_rules.validate({"currentPassword": "x", "newPassword": "abc"})
        assert fields_of(outcome.violations) == ["newPassword", "newPassword"]


class TestSettingsRules:

    def test_bulk_requires_object(self):
        outcome = settings_bulk_rules.validate({"settings": ["site_name"]})
        assert outcome.violations == [{"field": "settings", "message": "Invalid settings data"}]

    def test_bulk_missing_settings(self):
        outcome = settings_bulk_rules.validate({})
        assert fields_of(outcome.violations) == ["settings", "settings"]


class TestRules:

    @pytest.mark.parametrize("value, ok", [
        ("https://www.chiro.com", True),
        ("http://localhost:3000/path", True),
        ("http://nodot", False),
        ("javascript:alert(1)", False),
        ("https://has space.com", False),
        ("", False),
        (42, False),
    ])
    def test_is_url(self, value, ok):
        assert IsURL().apply(value).ok is ok

    def test_is_integer_coerces_and_bounds(self):
        rule = IsInteger(min=1, max=100)
        assert rule.apply("42").value == 42
        assert rule.apply(7).value == 7
        assert not rule.apply(0).ok
        assert not rule.apply("101").ok
        assert not rule.apply(True).ok
        assert not rule.apply("4.5").ok

    @pytest.mark.parametrize("value, expected", [
        (True, True), (False, False), ("yes", True), ("0", False), (1, True),
    ])
    def test_is_boolean(self, value, expected):
        result = IsBoolean().apply(value)
        assert result.ok
        assert result.value is expected

    def test_is_one_of(self):
        rule = IsOneOf(values=("text", "color", "url"))
        assert rule.apply("color").ok
        assert not rule.apply("number").ok

    def test_required_rejects_blank_and_empty_collections(self):
        rule = Required()
        assert not rule.apply("   ").ok
        assert not rule.apply([]).ok
        assert not rule.apply(None).ok
        assert rule.apply(0).ok

    def test_skip_if_empty(self):
        assert SkipIfEmpty().is_empty("")
        assert SkipIfEmpty().is_empty(False)
        assert not SkipIfEmpty(check_falsy=False).is_empty(False)
        assert not SkipIfEmpty(check_falsy=False).is_empty("")

    def test_transforms_chain_in_order(self):
        rules = RuleSet([
            FieldSpec("code", [Trim(), LengthRange(3, 3, "Code must be 3 characters")]),
        ])
        assert rules.ensure_valid({"code": "  abc  "}) == {"code": "abc"}

    def test_array_elements_chain(self):
        rules = RuleSet([FieldSpec("ids", [IsArrayOf([IsInteger(min=1)])])])
        assert rules.ensure_valid({"ids": ["1", 2]}) == {"ids": [1, 2]}
        outcome = rules.validate({"ids": [1, "x"]})
        assert outcome.violations == [{"field": "ids[1]", "message": "Must be an integer"}]

    def test_sanitized_fields(self):
        assert "title" in blog_post_rules.sanitized_fields
        assert "featured_image" not in blog_post_rules.sanitized_fields

    def test_lengths_rechecked_on_sanitized_payload(self):
        escaped = {"title": "A&amp;" * 100, "content": "x" * 60, "author": "Dr. A", "tags": ["Q&amp;A" * 8]}
        with pytest.raises(ValidationFailed) as exc_info:
            blog_post_rules.ensure_lengths(escaped)
        fields = [v["field"] for v in exc_info.value.violations]
        assert fields == ["title", "tags[0]"]

    def test_lengths_recheck_passes_through(self):
        data = {"title": "Tips &amp; Tricks", "content": "x" * 60, "author": "Dr. A", "tags": ["Q&amp;A"]}
        assert blog_post_rules.ensure_lengths(data) is data
