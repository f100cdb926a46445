"""
Free-text sanitizer

Trims strings and cleans them with bleach so the stored value can be
rendered unescaped in an HTML page: only a small set of formatting tags
survives, every other tag is stripped, and links may only use http, https
or mailto. Running the sanitizer twice gives the same result as once.
"""
import logging
from typing import Any, Dict

import bleach

logger = logging.getLogger(__name__)

ALLOWED_TAGS = frozenset({
    "a", "b", "strong", "i", "em", "u", "p", "br",
    "ul", "ol", "li", "blockquote", "code", "pre",
    "h2", "h3", "h4",
})
ALLOWED_ATTRIBUTES = {
    "a": ["href", "title"],
}
ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})


def sanitize(value: Any) -> Any:
    """Sanitize a single value. Non-string scalars pass through unchanged."""
    if isinstance(value, str):
        cleaned = bleach.clean(
            value.strip(),
            tags=ALLOWED_TAGS,
            attributes=ALLOWED_ATTRIBUTES,
            protocols=ALLOWED_PROTOCOLS,
            strip=True,
            strip_comments=True,
        )
        return cleaned.strip()
    if isinstance(value, list):
        return [sanitize(item) for item in value]
    if isinstance(value, dict):
        return {key: sanitize(item) for key, item in value.items()}
    return value


def sanitize_fields(data: Dict[str, Any], fields) -> Dict[str, Any]:
    """Return a copy of `data` with the named fields sanitized."""
    cleaned = dict(data)
    for name in fields:
        if name in cleaned:
            cleaned[name] = sanitize(cleaned[name])
    return cleaned


def sanitize_payload(rule_set, data: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitize the fields a RuleSet marks with sanitize=True."""
    return sanitize_fields(data, rule_set.sanitized_fields)
