import re

from unidecode import unidecode

_TAGS = re.compile(r"<[^>]*>")
_ENTITIES = re.compile(r"&[a-z0-9#]+;", re.IGNORECASE)
_INVALID = re.compile(r"[^a-z0-9_-]+")
_HYPHENS = re.compile(r"-{2,}")


def slugify(value: str) -> str:
    """Turn a product slug or title into a lowercase, hyphenated ASCII slug."""
    if not value:
        return ""
    text = unidecode(str(value))
    text = _ENTITIES.sub("", _TAGS.sub("", text)).lower()
    text = _INVALID.sub("-", text.replace(".", "-"))
    return _HYPHENS.sub("-", text).strip("-")
