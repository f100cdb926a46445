"""
Admin account payload rules
"""
from justchiro.core.validation import FieldSpec, RuleSet, Trim, Required, LengthRange, IsEmail

user_create_rules = RuleSet([
    FieldSpec("email", [
        Trim(),
        IsEmail("Invalid email address"),
    ]),
    FieldSpec("password", [
        LengthRange(min=8, message="Password must be at least 8 characters"),
    ]),
    FieldSpec("name", [
        Trim(),
        Required("Name is required"),
    ], sanitize=True),
])
