"""
Declarative field validation

A RuleSet is an ordered list of FieldSpecs; each FieldSpec is an ordered
list of small rule objects sharing one contract:

    rule.apply(value) -> RuleResult(ok, value, message)

Rules are either checks (value unchanged) or transforms (Trim, IsEmail,
IsInteger, IsBoolean return a normalized value). Every rule of a field runs,
in declared order, against the output of the previous transform, and every
failing rule contributes one {field, message} violation. The caller gets
either the accepted, transformed payload or the full violation list.

Usage:
    rules = RuleSet([
        FieldSpec("name", [Trim(), Required("Name is required"), LengthRange(2, 255)], sanitize=True),
        FieldSpec("website", [SkipIfEmpty(), Trim(), IsURL()]),
    ])
    data = rules.ensure_valid(payload)   # raises ValidationFailed
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from email_validator import EmailNotValidError, validate_email

from justchiro.core.exceptions import ValidationFailed

MISSING = object()


@dataclass(frozen=True)
class RuleResult:
    ok: bool
    value: Any
    message: Optional[str] = None


def _as_text(value: Any) -> str:
    if value is None or value is MISSING:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


class Rule:
    """Base rule. Subclasses set `kind` and implement apply()."""

    kind = "rule"
    message = "Invalid value"

    def apply(self, value: Any) -> RuleResult:
        raise NotImplementedError

    def passed(self, value: Any) -> RuleResult:
        return RuleResult(True, value)

    def failed(self, value: Any) -> RuleResult:
        return RuleResult(False, value, self.message)


@dataclass
class SkipIfEmpty(Rule):
    """
    Marks a field optional. Absent or null values (and, with check_falsy,
    blank strings and False) skip every other rule and are left out of the
    accepted payload.
    """
    check_falsy: bool = True
    kind = "optional"

    def is_empty(self, value: Any) -> bool:
        if value is MISSING or value is None:
            return True
        if self.check_falsy:
            if value is False:
                return True
            if isinstance(value, str) and value.strip() == "":
                return True
        return False

    def apply(self, value: Any) -> RuleResult:
        return self.passed(value)


@dataclass
class Trim(Rule):
    kind = "trim"

    def apply(self, value: Any) -> RuleResult:
        if isinstance(value, str):
            return self.passed(value.strip())
        return self.passed(value)


@dataclass
class Required(Rule):
    message: str = "This field is required"
    kind = "required"

    def apply(self, value: Any) -> RuleResult:
        if value is MISSING or value is None:
            return self.failed(value)
        if isinstance(value, str) and value.strip() == "":
            return self.failed(value)
        if isinstance(value, (list, dict)) and not value:
            return self.failed(value)
        return self.passed(value)


@dataclass
class LengthRange(Rule):
    min: Optional[int] = None
    max: Optional[int] = None
    message: str = "Invalid length"
    kind = "length"

    def apply(self, value: Any) -> RuleResult:
        text = _as_text(value)
        if self.min is not None and len(text) < self.min:
            return self.failed(value)
        if self.max is not None and len(text) > self.max:
            return self.failed(value)
        return self.passed(value)


@dataclass
class Pattern(Rule):
    regex: str = ".*"
    message: str = "Invalid format"
    kind = "pattern"

    def __post_init__(self):
        self._compiled = re.compile(self.regex)

    def apply(self, value: Any) -> RuleResult:
        if not isinstance(value, str) or not self._compiled.search(value):
            return self.failed(value)
        return self.passed(value)


@dataclass
class IsEmail(Rule):
    """Syntax check via email-validator; the accepted value is case-folded."""
    message: str = "Invalid email address"
    kind = "email"

    def apply(self, value: Any) -> RuleResult:
        if not isinstance(value, str) or not value:
            return self.failed(value)
        try:
            result = validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return self.failed(value)
        return self.passed(result.normalized.lower())


@dataclass
class IsURL(Rule):
    schemes: Tuple[str, ...] = ("http", "https")
    message: str = "Invalid URL"
    kind = "url"

    def apply(self, value: Any) -> RuleResult:
        if not isinstance(value, str) or not value or any(c.isspace() for c in value):
            return self.failed(value)
        parsed = urlparse(value)
        if parsed.scheme.lower() not in self.schemes:
            return self.failed(value)
        host = parsed.hostname or ""
        if not host or ("." not in host and host != "localhost"):
            return self.failed(value)
        return self.passed(value)


@dataclass
class IsInteger(Rule):
    min: Optional[int] = None
    max: Optional[int] = None
    message: str = "Must be an integer"
    kind = "integer"

    def apply(self, value: Any) -> RuleResult:
        if isinstance(value, bool):
            return self.failed(value)
        if isinstance(value, int):
            number = value
        elif isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()):
            number = int(value.strip())
        else:
            return self.failed(value)
        if self.min is not None and number < self.min:
            return self.failed(value)
        if self.max is not None and number > self.max:
            return self.failed(value)
        return self.passed(number)


@dataclass
class IsBoolean(Rule):
    message: str = "Must be a boolean"
    kind = "boolean"

    TRUE_VALUES = ("true", "1", "yes", "on")
    FALSE_VALUES = ("false", "0", "no", "off")

    def apply(self, value: Any) -> RuleResult:
        if isinstance(value, bool):
            return self.passed(value)
        if isinstance(value, int) and value in (0, 1):
            return self.passed(bool(value))
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in self.TRUE_VALUES:
                return self.passed(True)
            if lowered in self.FALSE_VALUES:
                return self.passed(False)
        return self.failed(value)


@dataclass
class IsOneOf(Rule):
    values: Sequence[Any] = ()
    message: str = "Invalid choice"
    kind = "one_of"

    def apply(self, value: Any) -> RuleResult:
        if value not in self.values:
            return self.failed(value)
        return self.passed(value)


@dataclass
class IsObject(Rule):
    message: str = "Must be an object"
    kind = "object"

    def apply(self, value: Any) -> RuleResult:
        if not isinstance(value, dict):
            return self.failed(value)
        return self.passed(value)


@dataclass
class IsArrayOf(Rule):
    """
    Value must be a list; each element runs through `element_rules`.
    Element violations are reported as `field[index]`.
    """
    element_rules: Sequence[Rule] = ()
    message: str = "Must be an array"
    kind = "array"

    def apply(self, value: Any) -> RuleResult:
        if not isinstance(value, list):
            return self.failed(value)
        return self.passed(value)

    def apply_elements(self, name: str, items: List[Any]) -> Tuple[List[Any], List[Dict[str, str]]]:
        accepted: List[Any] = []
        violations: List[Dict[str, str]] = []
        for index, item in enumerate(items):
            current = item
            for rule in self.element_rules:
                result = rule.apply(current)
                if result.ok:
                    current = result.value
                else:
                    violations.append({"field": f"{name}[{index}]", "message": result.message})
            accepted.append(current)
        return accepted, violations


@dataclass
class FieldSpec:
    name: str
    rules: List[Rule] = field(default_factory=list)
    sanitize: bool = False

    @property
    def optional_rule(self) -> Optional[SkipIfEmpty]:
        for rule in self.rules:
            if isinstance(rule, SkipIfEmpty):
                return rule
        return None

    def check(self, value: Any) -> Tuple[Any, List[Dict[str, str]]]:
        violations: List[Dict[str, str]] = []
        current = value
        for rule in self.rules:
            if isinstance(rule, SkipIfEmpty):
                continue
            result = rule.apply(current)
            if not result.ok:
                violations.append({"field": self.name, "message": result.message})
                continue
            current = result.value
            if isinstance(rule, IsArrayOf):
                current, element_violations = rule.apply_elements(self.name, current)
                violations.extend(element_violations)
        return current, violations

    def check_lengths(self, value: Any) -> List[Dict[str, str]]:
        """Run only the LengthRange rules (element rules too) against `value`."""
        violations: List[Dict[str, str]] = []
        for rule in self.rules:
            if isinstance(rule, LengthRange) and not rule.apply(value).ok:
                violations.append({"field": self.name, "message": rule.message})
            elif isinstance(rule, IsArrayOf) and isinstance(value, list):
                for index, item in enumerate(value):
                    for element_rule in rule.element_rules:
                        if isinstance(element_rule, LengthRange) and not element_rule.apply(item).ok:
                            violations.append({"field": f"{self.name}[{index}]", "message": element_rule.message})
        return violations


@dataclass
class ValidationOutcome:
    data: Dict[str, Any]
    violations: List[Dict[str, str]]

    @property
    def accepted(self) -> bool:
        return not self.violations


class RuleSet:
    """Ordered collection of FieldSpecs evaluated against one payload."""

    def __init__(self, fields: List[FieldSpec]):
        self.fields = list(fields)

    @property
    def sanitized_fields(self) -> List[str]:
        return [spec.name for spec in self.fields if spec.sanitize]

    def validate(self, payload: Any) -> ValidationOutcome:
        if not isinstance(payload, dict):
            return ValidationOutcome(
                data={},
                violations=[{"field": "body", "message": "Request body must be a JSON object"}],
            )

        data: Dict[str, Any] = {}
        violations: List[Dict[str, str]] = []
        for spec in self.fields:
            value = payload.get(spec.name, MISSING)
            optional = spec.optional_rule
            if optional is not None and optional.is_empty(value):
                continue
            accepted, field_violations = spec.check(value)
            violations.extend(field_violations)
            if not field_violations and accepted is not MISSING:
                data[spec.name] = accepted
        return ValidationOutcome(data=data, violations=violations)

    def ensure_valid(self, payload: Any) -> Dict[str, Any]:
        outcome = self.validate(payload)
        if not outcome.accepted:
            raise ValidationFailed(outcome.violations)
        return outcome.data

    def ensure_lengths(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Re-apply length limits to an already accepted payload.

        Sanitizing escapes markup characters (`&` -> `&amp;`), so a value
        that passed validation can come out longer than its column allows.
        """
        violations: List[Dict[str, str]] = []
        for spec in self.fields:
            if spec.name in data:
                violations.extend(spec.check_lengths(data[spec.name]))
        if violations:
            raise ValidationFailed(violations)
        return data
