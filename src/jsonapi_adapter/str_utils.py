"""
JSON:API Member Name Utilities

Converts between model attribute keys (snake_case) and JSON:API member names
(dash-case), with camelCase support for clients that send it.
"""

import re
from functools import lru_cache

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[\s_\-]+")


def _words(value: str) -> list[str]:
    value = _CAMEL_BOUNDARY.sub(" ", value)
    return [w.lower() for w in _SEPARATORS.split(value) if w]


@lru_cache(maxsize=512)
def dasherize(value: str) -> str:
    """deleted_at / deletedAt -> deleted-at"""
    return "-".join(_words(value))


@lru_cache(maxsize=512)
def underscore(value: str) -> str:
    """deleted-at / deletedAt -> deleted_at"""
    return "_".join(_words(value))


@lru_cache(maxsize=512)
def camelize(value: str) -> str:
    words = _words(value)
    if not words:
        return ""
    return words[0] + "".join(w.capitalize() for w in words[1:])
