"""
Blog post payload rules
"""
from justchiro.core.validation import (
    FieldSpec, RuleSet, Trim, Required, LengthRange,
    IsURL, IsBoolean, IsArrayOf, SkipIfEmpty,
)

blog_post_rules = RuleSet([
    FieldSpec("title", [
        Trim(),
        Required("Title is required"),
        LengthRange(5, 500, "Title must be between 5 and 500 characters"),
    ], sanitize=True),
    FieldSpec("content", [
        Trim(),
        Required("Content is required"),
        LengthRange(min=50, message="Content must be at least 50 characters"),
    ], sanitize=True),
    FieldSpec("author", [
        Trim(),
        Required("Author is required"),
        LengthRange(max=255, message="Author must be less than 255 characters"),
    ], sanitize=True),
    FieldSpec("excerpt", [
        SkipIfEmpty(),
        Trim(),
        LengthRange(max=500, message="Excerpt must be less than 500 characters"),
    ], sanitize=True),
    FieldSpec("featured_image", [
        SkipIfEmpty(),
        Trim(),
        IsURL(message="Invalid image URL"),
    ]),
    FieldSpec("tags", [
        SkipIfEmpty(check_falsy=False),
        IsArrayOf(
            [Trim(), LengthRange(max=50, message="Each tag must be less than 50 characters")],
            message="Tags must be an array",
        ),
    ], sanitize=True),
    FieldSpec("meta_title", [
        SkipIfEmpty(),
        Trim(),
        LengthRange(max=255, message="Meta title must be less than 255 characters"),
    ], sanitize=True),
    FieldSpec("meta_description", [
        SkipIfEmpty(),
        Trim(),
        LengthRange(max=500, message="Meta description must be less than 500 characters"),
    ], sanitize=True),
    FieldSpec("is_published", [
        SkipIfEmpty(check_falsy=False),
        IsBoolean("is_published must be a boolean"),
    ]),
])
