"""
Chiropractor listing payload rules
"""
from justchiro.core.validation import (
    FieldSpec, RuleSet, Trim, Required, LengthRange, Pattern,
    IsEmail, IsURL, IsBoolean, SkipIfEmpty,
)

PHONE_PATTERN = r"^[\d\s\-\(\)\+\.]+$"

chiropractor_rules = RuleSet([
    FieldSpec("name", [
        Trim(),
        Required("Name is required"),
        LengthRange(2, 255, "Name must be between 2 and 255 characters"),
    ], sanitize=True),
    FieldSpec("state", [
        Trim(),
        Required("State is required"),
        LengthRange(max=100, message="State must be less than 100 characters"),
    ], sanitize=True),
    FieldSpec("address", [
        Trim(),
        Required("Address is required"),
        LengthRange(max=500, message="Address must be less than 500 characters"),
    ], sanitize=True),
    FieldSpec("phone", [
        Trim(),
        Required("Phone is required"),
        Pattern(PHONE_PATTERN, "Invalid phone number format"),
        LengthRange(max=50, message="Phone must be less than 50 characters"),
    ]),
    FieldSpec("email", [
        Trim(),
        Required("Email is required"),
        IsEmail("Invalid email address"),
        LengthRange(max=255, message="Email must be less than 255 characters"),
    ]),
    FieldSpec("website", [
        SkipIfEmpty(),
        Trim(),
        IsURL(message="Invalid website URL"),
        LengthRange(max=500, message="Website URL must be less than 500 characters"),
    ]),
    FieldSpec("specialty", [
        SkipIfEmpty(),
        Trim(),
        LengthRange(max=255, message="Specialty must be less than 255 characters"),
    ], sanitize=True),
    FieldSpec("description", [
        SkipIfEmpty(),
        Trim(),
    ], sanitize=True),
    FieldSpec("is_featured", [
        SkipIfEmpty(check_falsy=False),
        IsBoolean("is_featured must be a boolean"),
    ]),
])
