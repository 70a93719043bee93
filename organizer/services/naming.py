"""Naming helpers — path segment sanitizer, free-text cleaning, id checks.

sanitize_segment() turns a human-readable location name into the ASCII
segment stored in Location.path:

    "Garaż"         -> "garaz"
    "Półka #1"      -> "polka_1"
    "  Top--Shelf " -> "top_shelf"

It is pure and deterministic, and is only ever applied to the node being
created or renamed; ancestors are never re-sanitized.
"""

import re
import unicodedata

import bleach

from organizer.errors import ValidationError

# Letters that NFKD leaves intact (no combining-mark decomposition).
_TRANSLITERATIONS = {
    "ł": "l", "Ł": "L",
    "đ": "d", "Đ": "D",
    "ø": "o", "Ø": "O",
    "ß": "ss", "ẞ": "SS",
    "æ": "ae", "Æ": "AE",
    "œ": "oe", "Œ": "OE",
    "þ": "th", "Þ": "TH",
    "ð": "d", "Ð": "D",
    "ı": "i",
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def transliterate(text):
    """Map diacritics to their base Latin letters, dropping anything non-ASCII."""
    text = "".join(_TRANSLITERATIONS.get(ch, ch) for ch in text)
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.encode("ascii", "ignore").decode("ascii")


def sanitize_segment(raw_name):
    """Convert a raw location name to a path segment.

    Returns an empty string when nothing alphanumeric survives; callers
    treat that as invalid input.
    """
    value = transliterate(raw_name or "").lower()
    value = _NON_ALNUM.sub("_", value)
    return value.strip("_")


def path_depth(path):
    """Number of segments in a materialized path ("" -> 0)."""
    if not path:
        return 0
    return len(path.split("."))


def join_path(parent_path, segment):
    if not parent_path:
        return segment
    return f"{parent_path}.{segment}"


def clean_text(text):
    """Strip all HTML tags and surrounding whitespace from user input."""
    if text is None:
        return text
    return bleach.clean(text, tags=[], strip=True).strip()


def clean_field(value, field, max_length, required=True):
    """clean_text() plus type and length validation for one input field.

    Raises:
        ValidationError: wrong type, empty when required, or too long.
    """
    if value is None:
        if required:
            raise ValidationError(f"{field} is required.", field=field)
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string.", field=field)

    cleaned = clean_text(value)
    if not cleaned:
        if required:
            raise ValidationError(f"{field} is required.", field=field)
        return None
    if len(cleaned) > max_length:
        raise ValidationError(
            f"{field} must be at most {max_length} characters.",
            field=field,
            max_length=max_length,
        )
    return cleaned


def check_id(value, field):
    """Reject ids that are not strings before they reach a query.

    None passes through; callers decide whether the id is optional.
    """
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string.", field=field)
    return value
