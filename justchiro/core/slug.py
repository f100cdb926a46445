"""
URL slug helpers for blog posts and listing URLs.
"""
import html
import re
import time

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def slugify(title: str) -> str:
    """
    Decode HTML entities, lower-case, collapse every run of characters
    outside [a-z0-9] into a single hyphen, strip leading/trailing hyphens.
    Sanitized titles carry `&amp;` for `&`; both give the same slug.

        >>> slugify("5 Benefits of Regular Chiropractic Care")
        '5-benefits-of-regular-chiropractic-care'
    """
    return _NON_ALNUM.sub("-", html.unescape(title or "").lower()).strip("-")


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def disambiguate(slug: str, now_ms: int = None) -> str:
    """Append a base-36 millisecond timestamp to `slug`."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = to_base36(now_ms)
    return f"{slug}-{suffix}" if slug else suffix
