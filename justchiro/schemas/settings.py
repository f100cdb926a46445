"""
Site settings payload rules
"""
from justchiro.core.validation import (
    FieldSpec, RuleSet, Trim, Required, LengthRange, Pattern, IsObject, SkipIfEmpty,
)

SETTING_KEY_PATTERN = r"^[a-z_]+$"

setting_create_rules = RuleSet([
    FieldSpec("setting_key", [
        Trim(),
        Required("Setting key is required"),
        LengthRange(max=255, message="Setting key must be less than 255 characters"),
        Pattern(SETTING_KEY_PATTERN, "Setting key must be lowercase letters and underscores only"),
    ]),
    FieldSpec("setting_value", [
        SkipIfEmpty(check_falsy=False),
    ], sanitize=True),
    FieldSpec("setting_type", [
        SkipIfEmpty(),
        Trim(),
        LengthRange(max=50, message="Setting type must be less than 50 characters"),
    ]),
    FieldSpec("description", [
        SkipIfEmpty(),
        Trim(),
    ], sanitize=True),
])

setting_update_rules = RuleSet([
    FieldSpec("value", [
        SkipIfEmpty(check_falsy=False),
    ], sanitize=True),
])

settings_bulk_rules = RuleSet([
    FieldSpec("settings", [
        Required("Invalid settings data"),
        IsObject("Invalid settings data"),
    ], sanitize=True),
])
