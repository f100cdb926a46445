"""
Authentication payload rules
"""
from justchiro.core.validation import FieldSpec, RuleSet, Trim, Required, LengthRange, Pattern, IsEmail

PASSWORD_STRENGTH_PATTERN = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)"

login_rules = RuleSet([
    FieldSpec("email", [
        Trim(),
        Required("Email is required"),
        IsEmail("Invalid email address"),
    ]),
    FieldSpec("password", [
        Required("Password is required"),
    ]),
])

password_change_rules = RuleSet([
    FieldSpec("currentPassword", [
        Required("Current password is required"),
    ]),
    FieldSpec("newPassword", [
        Required("New password is required"),
        LengthRange(min=8, message="Password must be at least 8 characters"),
        Pattern(PASSWORD_STRENGTH_PATTERN, "Password must contain uppercase, lowercase, and number"),
    ]),
])
